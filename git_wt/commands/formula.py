"""
formula.py (command)

Responsibility: hidden `formula` sub-commands for maintaining the package-manager recipe.

  render  print (or write) the Ruby recipe rendered from the YAML manifest
  stage   lay out a build tree (launcher + completion scripts) for `install`
  install apply the manifest's install layout to a prefix
  test    run the smoke test against an installed prefix
  verify  check that the source URL/branch resolve
"""

from __future__ import annotations

import argparse
from pathlib import Path

from git_wt import ui
from git_wt.commands import CommandError
from git_wt.completion import SHELLS, render_completion
from git_wt.config import load_settings
from git_wt.formula import (
    install_formula,
    parse_formula,
    render_formula,
    run_smoke_test,
    stage_build_tree,
    verify_sources,
)
from git_wt.github_client import GitHubClient

DEFAULT_MANIFEST = Path("Formula") / "git-wt.yml"


def render_cmd(args: argparse.Namespace) -> int:
    text = render_formula(parse_formula(args.formula))
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        ui.success(f"Wrote {args.output}")
    else:
        print(text, end="")
    return 0


def stage_cmd(args: argparse.Namespace) -> int:
    formula = parse_formula(args.formula)
    completions = {shell: render_completion(shell, args.root_parser) for shell in SHELLS}
    for path in stage_build_tree(formula, args.directory, completions):
        ui.echo(str(path))
    return 0


def install_cmd(args: argparse.Namespace) -> int:
    formula = parse_formula(args.formula)
    result = install_formula(formula, args.source, args.prefix)
    for path in result.installed:
        ui.success(str(path))
    return 0


def test_cmd(args: argparse.Namespace) -> int:
    formula = parse_formula(args.formula)
    result = run_smoke_test(formula, args.prefix)
    ui.success(f"{' '.join(result.command)} exited {result.returncode}")
    return 0


def verify_cmd(args: argparse.Namespace) -> int:
    formula = parse_formula(args.formula)
    token = args.github_token or load_settings().github_token
    checks = verify_sources(formula, GitHubClient(token))

    failed = 0
    for check in checks:
        where = f"{check.url}" + (f" ({check.branch})" if check.branch else "")
        if check.ok:
            ui.echo(ui.success_prefix("", f"{check.label}: {where} {ui.muted(check.detail)}"))
        else:
            failed += 1
            ui.echo(ui.fail_prefix("", f"{check.label}: {where} {check.detail}"))
    if failed:
        raise CommandError(f"{failed} source(s) did not resolve")
    return 0


def register(sub: argparse._SubParsersAction, root: argparse.ArgumentParser) -> None:
    f = sub.add_parser("formula", description="Maintain the package-manager recipe")
    fsub = f.add_subparsers(dest="formula_command", required=True)

    def add(name: str, help_text: str) -> argparse.ArgumentParser:
        p = fsub.add_parser(name, help=help_text)
        p.add_argument(
            "--formula",
            default=str(DEFAULT_MANIFEST),
            help=f"Path to the YAML manifest (default: {DEFAULT_MANIFEST})",
        )
        return p

    r = add("render", "Render the Ruby recipe from the manifest")
    r.add_argument("--output", "-o", default=None, help="Write to this file instead of stdout")
    r.set_defaults(func=render_cmd)

    s = add("stage", "Lay out a build tree for install")
    s.add_argument("directory", help="Build tree directory")
    s.set_defaults(func=stage_cmd, root_parser=root)

    i = add("install", "Install into a prefix")
    i.add_argument("--source", default=".", help="Build tree holding the install sources (default: .)")
    i.add_argument("--prefix", required=True, help="Install prefix")
    i.set_defaults(func=install_cmd)

    t = add("test", "Run the smoke test against an installed prefix")
    t.add_argument("--prefix", required=True, help="Install prefix")
    t.set_defaults(func=test_cmd)

    v = add("verify", "Check that the source URL and branch resolve")
    v.add_argument("--github-token", default=None, help="GitHub token (or set env GITHUB_TOKEN)")
    v.set_defaults(func=verify_cmd)

"""
formula.py

Responsibility: the package-manager manifest for git-wt.

- Parse the YAML manifest into a typed, immutable `Formula`.
- Render the package manager's Ruby recipe from it.
- Apply its install layout to a prefix (one binary, three completion scripts).
- Run its smoke test (`git-wt help` must exit 0).
- Check that its source URL and branch resolve to a fetchable repository.

Dependency resolution, sandboxing and caching belong to the package manager and
are not modelled here.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml
from jinja2 import Environment, PackageLoader, StrictUndefined

from git_wt import GitWtError, __version__, git
from git_wt.github_client import GitHubClient, GitHubError, parse_github_url

log = logging.getLogger(__name__)

# Install kinds and their directories relative to the install prefix.
INSTALL_DIRS: dict[str, str] = {
    "bin": "bin",
    "bash_completion": "etc/bash_completion.d",
    "zsh_completion": "share/zsh/site-functions",
    "fish_completion": "share/fish/vendor_completions.d",
}

COMPLETION_SHELLS: dict[str, str] = {
    "bash_completion": "bash",
    "zsh_completion": "zsh",
    "fish_completion": "fish",
}


class FormulaError(GitWtError):
    pass


class InstallError(GitWtError):
    pass


class SmokeTestError(GitWtError):
    pass


@dataclass(frozen=True)
class HeadSpec:
    url: str
    branch: str | None = None


@dataclass(frozen=True)
class InstallStep:
    """Copy `source` (relative to the build tree) into the `kind` directory as `target`."""

    source: str
    kind: str
    target: str

    @property
    def renamed(self) -> bool:
        return self.target != Path(self.source).name


@dataclass(frozen=True)
class Formula:
    name: str
    url: str
    version: str
    desc: str = ""
    homepage: str = ""
    branch: str | None = None
    license: str | None = None
    head: HeadSpec | None = None
    depends_on: tuple[str, ...] = ()
    install: tuple[InstallStep, ...] = ()
    test_args: tuple[str, ...] = ()

    @property
    def test_binary(self) -> str:
        for step in self.install:
            if step.kind == "bin":
                return step.target
        return self.name


@dataclass(frozen=True)
class InstallResult:
    prefix: Path
    installed: list[Path] = field(default_factory=list)


@dataclass(frozen=True)
class SmokeTestResult:
    command: list[str]
    returncode: int
    output: str


@dataclass(frozen=True)
class SourceCheck:
    label: str
    url: str
    branch: str | None
    ok: bool
    detail: str = ""


def class_name(name: str) -> str:
    """
    Package-manager class name for a formula name: `git-wt` -> `GitWt`, `foo@2` -> `FooAT2`.
    """
    normalized = name.replace("@", "AT").replace("+", "x")
    parts = re.split(r"[-_.\s]+", normalized)
    return "".join(p[:1].upper() + p[1:] for p in parts if p)


def _str(data: Mapping[str, Any], key: str, *, required: bool = False) -> str | None:
    value = data.get(key)
    if value is None or str(value).strip() == "":
        if required:
            raise FormulaError(f"Formula must define `{key}`.")
        return None
    if isinstance(value, (dict, list)):
        raise FormulaError(f"`{key}` must be a string.")
    return str(value).strip()


def _parse_head(data: Mapping[str, Any], url: str, branch: str | None) -> HeadSpec | None:
    raw = data.get("head", None)
    if raw is False:
        return None
    if raw is None:
        return HeadSpec(url=url, branch=branch)
    if isinstance(raw, str):
        return HeadSpec(url=raw.strip(), branch=branch)
    if not isinstance(raw, dict):
        raise FormulaError("`head` must be a URL string or a mapping with `url` and `branch`.")
    return HeadSpec(url=_str(raw, "url") or url, branch=_str(raw, "branch") or branch)


def _parse_depends_on(data: Mapping[str, Any]) -> tuple[str, ...]:
    raw = data.get("depends_on") or []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list) or not all(isinstance(d, str) and d.strip() for d in raw):
        raise FormulaError("`depends_on` must be a list of formula names.")
    return tuple(d.strip() for d in raw)


def _parse_install(data: Mapping[str, Any]) -> tuple[InstallStep, ...]:
    raw = data.get("install") or {}
    if not isinstance(raw, dict):
        raise FormulaError("`install` must be a mapping of install kind to sources.")

    steps: list[InstallStep] = []
    for kind, sources in raw.items():
        if kind not in INSTALL_DIRS:
            raise FormulaError(f"Unknown install kind `{kind}` (expected one of: {', '.join(INSTALL_DIRS)}).")
        if isinstance(sources, str):
            sources = [sources]
        if isinstance(sources, list):
            pairs = [(str(s), Path(str(s)).name) for s in sources]
        elif isinstance(sources, dict):
            pairs = [(str(s), str(t)) for s, t in sources.items()]
        else:
            raise FormulaError(f"`install.{kind}` must be a list of sources or a mapping of source to target.")
        steps.extend(InstallStep(source=s, kind=kind, target=t) for s, t in pairs)
    return tuple(steps)


def _parse_test(data: Mapping[str, Any]) -> tuple[str, ...]:
    raw = data.get("test") or []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise FormulaError("`test` must be a list of arguments.")
    return tuple(str(a) for a in raw)


def load_formula(data: Mapping[str, Any]) -> Formula:
    if not isinstance(data, dict):
        raise FormulaError("Formula manifest must be a mapping/object at the top level.")

    name = _str(data, "name", required=True)
    url = _str(data, "url", required=True)
    if isinstance(data.get("version"), (int, float, bool)):
        raise FormulaError(f"`version` must be a quoted string (YAML read it as {data['version']!r}).")
    version = _str(data, "version", required=True)
    branch = _str(data, "branch")

    return Formula(
        name=name,
        url=url,
        version=version,
        desc=_str(data, "desc") or "",
        homepage=_str(data, "homepage") or "",
        branch=branch,
        license=_str(data, "license"),
        head=_parse_head(data, url, branch),
        depends_on=_parse_depends_on(data),
        install=_parse_install(data),
        test_args=_parse_test(data),
    )


def parse_formula(path: str | Path) -> Formula:
    """
    Parse a YAML formula manifest.

    Required keys: name, url, version. `head` defaults to url/branch.
    """
    p = Path(path)
    if not p.exists():
        raise FormulaError(f"Formula manifest does not exist: {p}")
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise FormulaError(f"Formula manifest is not valid YAML: {p}") from e
    return load_formula(data)


def _rb(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("#{", "\\#{")
    return f'"{escaped}"'


def _install_line(step: InstallStep) -> str:
    line = f"{step.kind}.install {_rb(step.source)}"
    if step.renamed:
        line += f" => {_rb(step.target)}"
    return line


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("git_wt", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["rb"] = _rb
    env.filters["install_line"] = _install_line
    return env


def render_formula(formula: Formula) -> str:
    """
    Render the package manager's Ruby recipe.
    """
    template = _environment().get_template("formula.rb.j2")
    return template.render(formula=formula, class_name=class_name(formula.name))


def stage_build_tree(formula: Formula, directory: str | Path, completions: Mapping[str, str]) -> list[Path]:
    """
    Lay out a build tree the install step can consume.

    Bin sources get a launcher for this interpreter; completion sources get the
    script for their shell from `completions` (keyed by shell name).
    """
    root = Path(directory)
    written: list[Path] = []
    launcher = _environment().get_template("launcher.j2").render(
        python=sys.executable, prog=formula.name, version=__version__
    )
    for step in formula.install:
        dst = root / step.source
        dst.parent.mkdir(parents=True, exist_ok=True)
        if step.kind == "bin":
            dst.write_text(launcher, encoding="utf-8")
            dst.chmod(0o755)
        else:
            shell = COMPLETION_SHELLS[step.kind]
            if shell not in completions:
                raise InstallError(f"No {shell} completion script to stage for {step.source}")
            dst.write_text(completions[shell], encoding="utf-8")
        written.append(dst)
    return written


def install_formula(formula: Formula, source_dir: str | Path, prefix: str | Path) -> InstallResult:
    """
    Copy each install step's source into its directory under prefix.

    Aborts on the first failing step; files already copied are left in place.
    """
    src_root = Path(source_dir).resolve()
    dst_root = Path(prefix).resolve()
    result = InstallResult(prefix=dst_root)

    for step in formula.install:
        src = src_root / step.source
        if not src.is_file():
            raise InstallError(f"Install source not found: {step.source} (in {src_root})")
        dst_dir = dst_root / INSTALL_DIRS[step.kind]
        dst = dst_dir / step.target
        try:
            dst_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst)
            if step.kind == "bin":
                dst.chmod(dst.stat().st_mode | 0o755)
        except OSError as e:
            raise InstallError(f"Failed to install {step.source} -> {dst}: {e}") from e
        log.info("installed %s -> %s", step.source, dst)
        result.installed.append(dst)

    return result


def run_smoke_test(formula: Formula, prefix: str | Path, *, timeout: float = 60) -> SmokeTestResult:
    """
    Invoke the installed binary with the formula's test arguments; a non-zero exit fails.
    """
    binary = Path(prefix) / INSTALL_DIRS["bin"] / formula.test_binary
    if not binary.is_file() or not os.access(binary, os.X_OK):
        raise SmokeTestError(f"Installed binary not found or not executable: {binary}")

    cmd = [str(binary), *formula.test_args]
    try:
        proc = subprocess.run(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, timeout=timeout, check=False
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise SmokeTestError(f"Smoke test could not run: {' '.join(cmd)}: {e}") from e

    if proc.returncode != 0:
        raise SmokeTestError(f"Smoke test failed ({proc.returncode}): {' '.join(cmd)}\n\n{proc.stdout}")
    return SmokeTestResult(command=cmd, returncode=proc.returncode, output=proc.stdout)


def _check_github(label: str, url: str, branch: str | None, owner: str, name: str, client: GitHubClient) -> SourceCheck:
    try:
        if branch:
            found = client.get_branch(owner, name, branch)
            if found is None:
                repo = client.get_repo(owner, name)
                detail = f"branch '{branch}' not found" if repo else f"repository {owner}/{name} not found"
                return SourceCheck(label, url, branch, ok=False, detail=detail)
            return SourceCheck(label, url, branch, ok=True, detail=found.sha)
        repo = client.get_repo(owner, name)
        if repo is None:
            return SourceCheck(label, url, branch, ok=False, detail=f"repository {owner}/{name} not found")
        return SourceCheck(label, url, branch, ok=True, detail=repo.default_branch)
    except GitHubError as e:
        return SourceCheck(label, url, branch, ok=False, detail=str(e))


def _check_ls_remote(label: str, url: str, branch: str | None) -> SourceCheck:
    try:
        if branch:
            out = git.query("ls-remote", "--heads", url, branch)
        else:
            out = git.query("ls-remote", url, "HEAD")
    except git.GitError as e:
        return SourceCheck(label, url, branch, ok=False, detail=e.output or str(e))
    if not out:
        return SourceCheck(label, url, branch, ok=False, detail=f"branch '{branch}' not found" if branch else "no HEAD")
    return SourceCheck(label, url, branch, ok=True, detail=out.split()[0])


def verify_sources(formula: Formula, client: GitHubClient | None = None) -> list[SourceCheck]:
    """
    Check that url/branch (and head url/branch) resolve to a fetchable repository.

    github.com URLs are checked through the REST API, anything else with `git ls-remote`.
    """
    sources = [("url", formula.url, formula.branch)]
    if formula.head is not None and (formula.head.url, formula.head.branch) != (formula.url, formula.branch):
        sources.append(("head", formula.head.url, formula.head.branch))

    checks: list[SourceCheck] = []
    for label, url, branch in sources:
        gh = parse_github_url(url)
        if gh is not None:
            checks.append(_check_github(label, url, branch, *gh, client or GitHubClient()))
        else:
            checks.append(_check_ls_remote(label, url, branch))
    return checks

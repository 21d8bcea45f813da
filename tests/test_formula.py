import stat
from pathlib import Path

import pytest

from git_wt import formula as fm
from git_wt.cli import _build_parser
from git_wt.completion import SHELLS, render_completion
from git_wt.github_client import BranchInfo, RepoInfo

ROOT = Path(__file__).resolve().parents[1]
MANIFEST = ROOT / "Formula" / "git-wt.yml"
RECIPE = ROOT / "Formula" / "git-wt.rb"


def test_parse_manifest() -> None:
    f = fm.parse_formula(MANIFEST)
    assert f.name == "git-wt"
    assert f.version == "0.1.0"
    assert f.branch == "main"
    assert f.head == fm.HeadSpec(url="https://github.com/ahmedelgabri/git-wt.git", branch="main")
    assert f.depends_on == ("fzf", "git")
    assert f.install == (
        fm.InstallStep("git-wt", "bin", "git-wt"),
        fm.InstallStep("completions/git-wt.bash", "bash_completion", "git-wt"),
        fm.InstallStep("completions/git-wt.zsh", "zsh_completion", "_git-wt"),
        fm.InstallStep("completions/git-wt.fish", "fish_completion", "git-wt.fish"),
    )
    assert f.test_binary == "git-wt"
    assert f.test_args == ("help",)


def test_render_matches_committed_recipe() -> None:
    assert fm.render_formula(fm.parse_formula(MANIFEST)) == RECIPE.read_text(encoding="utf-8")


def test_render_minimal_formula() -> None:
    f = fm.load_formula({"name": "foo-bar", "url": "https://example.com/foo.tar.gz", "version": "1.0", "head": False})
    text = fm.render_formula(f)
    assert text.startswith("class FooBar < Formula\n")
    assert '  url "https://example.com/foo.tar.gz"\n' in text
    assert "head" not in text
    assert "depends_on" not in text
    assert "test do" not in text


def test_class_name() -> None:
    assert fm.class_name("git-wt") == "GitWt"
    assert fm.class_name("foo@2") == "FooAT2"


@pytest.mark.parametrize(
    "data, message",
    [
        ({"url": "u", "version": "1"}, "`name`"),
        ({"name": "x", "version": "1"}, "`url`"),
        ({"name": "x", "url": "u", "version": "1", "install": {"lib": ["a"]}}, "Unknown install kind"),
        ({"name": "x", "url": "u", "version": "1", "depends_on": [1]}, "depends_on"),
        ([], "mapping"),
    ],
)
def test_invalid_manifests(data, message: str) -> None:
    with pytest.raises(fm.FormulaError, match=message):
        fm.load_formula(data)


def test_parse_missing_and_invalid_yaml(tmp_path: Path) -> None:
    with pytest.raises(fm.FormulaError, match="does not exist"):
        fm.parse_formula(tmp_path / "missing.yml")
    bad = tmp_path / "bad.yml"
    bad.write_text("name: [unclosed\n", encoding="utf-8")
    with pytest.raises(fm.FormulaError, match="not valid YAML"):
        fm.parse_formula(bad)


def test_unquoted_numeric_version_is_rejected(tmp_path: Path) -> None:
    manifest = tmp_path / "x.yml"
    manifest.write_text("name: x\nurl: u\nversion: 1.10\n", encoding="utf-8")
    with pytest.raises(fm.FormulaError, match=r"`version` must be a quoted string \(YAML read it as 1\.1\)"):
        fm.parse_formula(manifest)


def _stage(tmp_path: Path) -> tuple[fm.Formula, Path]:
    f = fm.parse_formula(MANIFEST)
    build = tmp_path / "build"
    fm.stage_build_tree(f, build, {"bash": "# bash\n", "zsh": "#compdef git-wt\n", "fish": "# fish\n"})
    return f, build


def test_stage_and_install(tmp_path: Path) -> None:
    f, build = _stage(tmp_path)
    assert (build / "git-wt").read_text(encoding="utf-8").startswith("#!")

    prefix = tmp_path / "prefix"
    result = fm.install_formula(f, build, prefix)

    assert [p.relative_to(prefix.resolve()).as_posix() for p in result.installed] == [
        "bin/git-wt",
        "etc/bash_completion.d/git-wt",
        "share/zsh/site-functions/_git-wt",
        "share/fish/vendor_completions.d/git-wt.fish",
    ]
    assert stat.S_IMODE((prefix / "bin" / "git-wt").stat().st_mode) & 0o111
    assert (prefix / "share/zsh/site-functions/_git-wt").read_text(encoding="utf-8") == "#compdef git-wt\n"


def test_stage_requires_every_completion(tmp_path: Path) -> None:
    with pytest.raises(fm.InstallError, match="No fish completion"):
        fm.stage_build_tree(fm.parse_formula(MANIFEST), tmp_path, {"bash": "", "zsh": ""})


def test_install_missing_source(tmp_path: Path) -> None:
    with pytest.raises(fm.InstallError, match="Install source not found: git-wt"):
        fm.install_formula(fm.parse_formula(MANIFEST), tmp_path, tmp_path / "prefix")


def _fake_binary(prefix: Path, exit_code: int) -> None:
    bin_dir = prefix / "bin"
    bin_dir.mkdir(parents=True)
    script = bin_dir / "git-wt"
    script.write_text(f'#!/bin/sh\necho "called $1"\nexit {exit_code}\n', encoding="utf-8")
    script.chmod(0o755)


def test_smoke_test_passes(tmp_path: Path) -> None:
    _fake_binary(tmp_path, 0)
    result = fm.run_smoke_test(fm.parse_formula(MANIFEST), tmp_path)
    assert result.returncode == 0
    assert result.output.strip() == "called help"


def test_smoke_test_fails_on_nonzero_exit(tmp_path: Path) -> None:
    _fake_binary(tmp_path, 3)
    with pytest.raises(fm.SmokeTestError, match=r"failed \(3\)"):
        fm.run_smoke_test(fm.parse_formula(MANIFEST), tmp_path)


def test_staged_launcher_installs_and_passes_smoke_test(tmp_path: Path) -> None:
    f = fm.parse_formula(MANIFEST)
    parser = _build_parser()
    completions = {shell: render_completion(shell, parser) for shell in SHELLS}
    fm.stage_build_tree(f, tmp_path / "build", completions)
    fm.install_formula(f, tmp_path / "build", tmp_path / "prefix")

    result = fm.run_smoke_test(f, tmp_path / "prefix")
    assert result.returncode == 0
    assert "usage: git-wt" in result.output
    bash = (tmp_path / "prefix" / "etc/bash_completion.d" / "git-wt").read_text(encoding="utf-8")
    assert "complete -o default -F _git_wt git-wt" in bash


def test_smoke_test_missing_binary(tmp_path: Path) -> None:
    with pytest.raises(fm.SmokeTestError, match="not found"):
        fm.run_smoke_test(fm.parse_formula(MANIFEST), tmp_path)


class FakeClient:
    def __init__(self, branches: dict[str, str], repo: bool = True) -> None:
        self.branches = branches
        self.repo = repo

    def get_branch(self, owner: str, name: str, branch: str):
        sha = self.branches.get(branch)
        return BranchInfo(name=branch, sha=sha) if sha else None

    def get_repo(self, owner: str, name: str):
        if not self.repo:
            return None
        return RepoInfo(owner, name, "https://github.com/x/y", "https://github.com/x/y.git", "main")


def test_verify_github_source() -> None:
    checks = fm.verify_sources(fm.parse_formula(MANIFEST), FakeClient({"main": "abc123"}))
    # head equals url/branch, so only one check
    assert len(checks) == 1
    assert checks[0].ok
    assert checks[0].detail == "abc123"


def test_verify_github_missing_branch_and_repo() -> None:
    f = fm.parse_formula(MANIFEST)
    assert fm.verify_sources(f, FakeClient({}))[0].detail == "branch 'main' not found"
    assert fm.verify_sources(f, FakeClient({}, repo=False))[0].detail == "repository ahmedelgabri/git-wt not found"


def test_verify_non_github_source_uses_ls_remote(origin_repo: Path) -> None:
    f = fm.load_formula({"name": "x", "url": str(origin_repo), "version": "1", "branch": "feature", "head": {"branch": "nope"}})
    checks = fm.verify_sources(f)
    assert [(c.label, c.ok) for c in checks] == [("url", True), ("head", False)]
    assert checks[1].detail == "branch 'nope' not found"

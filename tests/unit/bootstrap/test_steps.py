import os
import stat
import sys
from pathlib import Path

import pytest

from boxinit.bootstrap import (
    check_command,
    ensure_directory,
    ensure_file,
    ensure_mode,
    ensure_ownership,
    iter_tree,
    resolve_gid,
    resolve_uid,
)
from boxinit.exceptions import BootstrapError


def mode_of(path: Path) -> int:
    return stat.S_IMODE(path.lstat().st_mode)


@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    root = tmp_path / "html"
    (root / "assets").mkdir(parents=True)
    (root / "assets" / "app.css").write_text("body {}")
    (root / "index.html").write_text("<html></html>")
    return root


class TestResolveIds:
    def test_passes_through_numbers_and_none(self) -> None:
        assert resolve_uid(None) is None
        assert resolve_uid(33) == 33
        assert resolve_gid("33") == 33

    def test_resolves_names(self) -> None:
        assert resolve_uid("root") == 0
        assert resolve_gid(0) == 0

    def test_unknown_name(self) -> None:
        with pytest.raises(KeyError):
            _ = resolve_uid("boxinit-no-such-user")


class TestIterTree:
    def test_recursive(self, web_root: Path) -> None:
        entries = set(iter_tree(web_root, recursive=True))

        assert entries == {
            web_root,
            web_root / "assets",
            web_root / "assets" / "app.css",
            web_root / "index.html",
        }

    def test_non_recursive(self, web_root: Path) -> None:
        assert list(iter_tree(web_root, recursive=False)) == [web_root]

    def test_does_not_follow_symlinks(self, tmp_path: Path, web_root: Path) -> None:
        link = tmp_path / "link"
        link.symlink_to(web_root)

        assert list(iter_tree(link, recursive=True)) == [link]


class TestEnsureDirectory:
    def test_creates_missing_directory(self, tmp_path: Path) -> None:
        target = tmp_path / "run" / "php"
        step = ensure_directory("run-dir", target, mode=0o750)

        assert not step.check()
        step.action()

        assert target.is_dir()
        assert mode_of(target) == 0o750
        assert step.check()

    def test_existing_directory_is_satisfied(self, tmp_path: Path) -> None:
        step = ensure_directory(
            "tmp", tmp_path, owner=os.getuid(), group=os.getgid()
        )

        assert step.check()

    def test_wrong_mode_is_not_satisfied(self, tmp_path: Path) -> None:
        target = tmp_path / "logs"
        target.mkdir(mode=0o700)
        target.chmod(0o700)
        step = ensure_directory("logs", target, mode=0o755)

        assert not step.check()
        step.action()
        assert mode_of(target) == 0o755

    def test_describes_path(self, tmp_path: Path) -> None:
        step = ensure_directory("logs", tmp_path / "logs")

        assert step.name == "logs"
        assert str(tmp_path / "logs") in step.description


class TestEnsureOwnership:
    def test_satisfied_when_tree_already_owned(self, web_root: Path) -> None:
        step = ensure_ownership(
            "owner", web_root, owner=os.getuid(), group=os.getgid()
        )

        assert step.check()

    def test_missing_path_is_not_satisfied(self, tmp_path: Path) -> None:
        step = ensure_ownership("owner", tmp_path / "missing", owner=os.getuid())

        assert not step.check()

    def test_only_mismatched_entries_are_changed(
        self, web_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        changed: list[Path] = []
        real_stat = Path.lstat
        foreign = web_root / "index.html"

        class FakeStat:
            def __init__(self, st: os.stat_result) -> None:
                self.st_mode = st.st_mode
                self.st_uid = st.st_uid + 1
                self.st_gid = st.st_gid

        def fake_lstat(self: Path) -> object:
            st = real_stat(self)
            return FakeStat(st) if self == foreign else st

        monkeypatch.setattr(Path, "lstat", fake_lstat)
        monkeypatch.setattr(
            "boxinit.bootstrap._steps.os.chown",
            lambda path, *_args, **_kwargs: changed.append(Path(path)),
        )
        step = ensure_ownership("owner", web_root, owner=os.getuid())

        assert not step.check()
        step.action()

        assert changed == [foreign]

    def test_description(self, web_root: Path) -> None:
        step = ensure_ownership("owner", web_root, owner="www-data", group="www-data")

        assert step.description == f"chown -R www-data:www-data {web_root}"


class TestEnsureMode:
    def test_applies_mode_recursively(self, web_root: Path) -> None:
        step = ensure_mode("mode", web_root, mode=0o755)

        step.action()

        assert all(mode_of(p) == 0o755 for p in iter_tree(web_root, recursive=True))
        assert step.check()

    def test_second_run_changes_nothing(
        self, web_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        step = ensure_mode("mode", web_root, mode=0o755)
        step.action()
        calls: list[Path] = []
        monkeypatch.setattr(Path, "chmod", lambda self, _mode: calls.append(self))

        assert step.check()
        step.action()

        assert calls == []

    def test_skips_symlinks(self, web_root: Path) -> None:
        link = web_root / "latest.css"
        link.symlink_to(web_root / "assets" / "app.css")
        step = ensure_mode("mode", web_root, mode=0o700)

        step.action()

        assert step.check()
        assert mode_of(web_root / "assets" / "app.css") == 0o700


class TestEnsureFile:
    def test_creates_default_file(self, tmp_path: Path) -> None:
        index = tmp_path / "html" / "index.php"
        step = ensure_file("index", index, content="<?php phpinfo(); ?>\n", mode=0o644)

        assert not step.check()
        step.action()

        assert index.read_text() == "<?php phpinfo(); ?>\n"
        assert mode_of(index) == 0o644
        assert step.check()

    def test_never_overwrites(self, tmp_path: Path) -> None:
        index = tmp_path / "index.php"
        index.write_text("custom")
        step = ensure_file("index", index, content="default")

        assert step.check()
        assert index.read_text() == "custom"


class TestCheckCommand:
    def test_successful_command_is_satisfied(self) -> None:
        step = check_command("ok", [sys.executable, "-c", "pass"])

        assert step.check()

    def test_failure_carries_output(self) -> None:
        step = check_command(
            "nginx-config",
            [sys.executable, "-c", "import sys; print('bad directive'); sys.exit(1)"],
        )

        assert not step.check()
        with pytest.raises(BootstrapError, match="bad directive") as exc_info:
            step.action()

        assert exc_info.value.step_name == "nginx-config"
        assert "exit code 1" in str(exc_info.value)

    def test_missing_program_raises(self) -> None:
        step = check_command("missing", ["/nonexistent/boxinit-check"])

        with pytest.raises(FileNotFoundError):
            _ = step.check()

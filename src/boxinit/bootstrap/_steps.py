"""Factories for the built-in bootstrap step kinds.

Each factory returns a BootstrapStep whose predicate is true exactly when
its action would change nothing, so re-running the bootstrap on an
initialized filesystem performs no writes.
"""

import grp
import os
import pwd
import shlex
import stat
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from boxinit.exceptions import BootstrapError

from ._models import BootstrapStep

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

# Maximum command output carried into error messages
MAX_OUTPUT_CHARS: int = 2000


def resolve_uid(owner: str | int | None) -> int | None:
    """Resolve a user name or numeric id to a uid.

    Raises:
        KeyError: If the user name is unknown.
    """
    if owner is None or isinstance(owner, int):
        return owner
    if owner.isdigit():
        return int(owner)
    return pwd.getpwnam(owner).pw_uid


def resolve_gid(group: str | int | None) -> int | None:
    """Resolve a group name or numeric id to a gid.

    Raises:
        KeyError: If the group name is unknown.
    """
    if group is None or isinstance(group, int):
        return group
    if group.isdigit():
        return int(group)
    return grp.getgrnam(group).gr_gid


def iter_tree(path: Path, *, recursive: bool) -> "Iterator[Path]":
    """Yield ``path`` and, when recursive, every entry below it.

    Symbolic links are yielded but never followed.
    """
    yield path
    if not recursive or path.is_symlink() or not path.is_dir():
        return
    for root, dirs, files in os.walk(path):
        for name in (*dirs, *files):
            yield Path(root) / name


def _owner_matches(path: Path, uid: int | None, gid: int | None) -> bool:
    st = path.lstat()
    return (uid is None or st.st_uid == uid) and (gid is None or st.st_gid == gid)


def _mode_matches(path: Path, mode: int) -> bool:
    return stat.S_IMODE(path.lstat().st_mode) == mode


def _chown(path: Path, uid: int | None, gid: int | None) -> None:
    os.chown(
        path,
        -1 if uid is None else uid,
        -1 if gid is None else gid,
        follow_symlinks=False,
    )


def ensure_directory(
    name: str,
    path: Path,
    *,
    mode: int | None = None,
    owner: str | int | None = None,
    group: str | int | None = None,
) -> BootstrapStep:
    """Ensure a directory exists with the given owner and mode (``mkdir -p``)."""

    def check() -> bool:
        if not path.is_dir():
            return False
        if mode is not None and not _mode_matches(path, mode):
            return False
        return _owner_matches(path, resolve_uid(owner), resolve_gid(group))

    def action() -> None:
        path.mkdir(parents=True, exist_ok=True)
        # mkdir is subject to the umask, so apply the mode explicitly
        if mode is not None and not _mode_matches(path, mode):
            path.chmod(mode)
        uid, gid = resolve_uid(owner), resolve_gid(group)
        if not _owner_matches(path, uid, gid):
            _chown(path, uid, gid)

    return BootstrapStep(
        name=name,
        check=check,
        action=action,
        description=f"directory {path}",
    )


def ensure_ownership(
    name: str,
    path: Path,
    *,
    owner: str | int | None = None,
    group: str | int | None = None,
    recursive: bool = True,
) -> BootstrapStep:
    """Ensure ``path`` (and everything below it) has the given owner (``chown -R``).

    Only entries whose ownership differs are changed.
    """

    def check() -> bool:
        if not path.exists():
            return False
        uid, gid = resolve_uid(owner), resolve_gid(group)
        return all(
            _owner_matches(entry, uid, gid)
            for entry in iter_tree(path, recursive=recursive)
        )

    def action() -> None:
        uid, gid = resolve_uid(owner), resolve_gid(group)
        for entry in iter_tree(path, recursive=recursive):
            if not _owner_matches(entry, uid, gid):
                _chown(entry, uid, gid)

    who = ":".join(str(part) for part in (owner, group) if part is not None)
    return BootstrapStep(
        name=name,
        check=check,
        action=action,
        description=f"chown {'-R ' if recursive else ''}{who} {path}",
    )


def ensure_mode(
    name: str,
    path: Path,
    *,
    mode: int,
    recursive: bool = True,
) -> BootstrapStep:
    """Ensure ``path`` (and everything below it) has the given mode (``chmod -R``).

    Symbolic links are left alone. Only entries whose mode differs are
    changed.
    """

    def entries() -> "Iterator[Path]":
        return (
            entry
            for entry in iter_tree(path, recursive=recursive)
            if not entry.is_symlink()
        )

    def check() -> bool:
        if not path.exists():
            return False
        return all(_mode_matches(entry, mode) for entry in entries())

    def action() -> None:
        for entry in entries():
            if not _mode_matches(entry, mode):
                entry.chmod(mode)

    return BootstrapStep(
        name=name,
        check=check,
        action=action,
        description=f"chmod {'-R ' if recursive else ''}{mode:o} {path}",
    )


def ensure_file(  # noqa: PLR0913
    name: str,
    path: Path,
    *,
    content: str = "",
    mode: int | None = None,
    owner: str | int | None = None,
    group: str | int | None = None,
) -> BootstrapStep:
    """Create a file with default content if it does not exist.

    An existing file is never overwritten.
    """

    def check() -> bool:
        return path.exists()

    def action() -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(content)
        if mode is not None:
            path.chmod(mode)
        uid, gid = resolve_uid(owner), resolve_gid(group)
        if not _owner_matches(path, uid, gid):
            _chown(path, uid, gid)

    return BootstrapStep(
        name=name,
        check=check,
        action=action,
        description=f"default file {path}",
    )


def check_command(
    name: str,
    command: "Sequence[str]",
    *,
    timeout: float = 30.0,
) -> BootstrapStep:
    """Verify a command succeeds, e.g. a web server configuration test.

    The predicate runs the command; a zero exit status satisfies the step.
    Otherwise the action fails the bootstrap with the command's output.
    """
    last_output: list[str] = []

    def check() -> bool:
        result = subprocess.run(  # noqa: S603
            list(command),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
        last_output[:] = [result.stdout + result.stderr, str(result.returncode)]
        return result.returncode == 0

    def action() -> None:
        output, returncode = last_output if last_output else ("", "?")
        output = output.strip()[-MAX_OUTPUT_CHARS:]
        msg = f"`{shlex.join(command)}` failed with exit code {returncode}"
        if output:
            msg = f"{msg}: {output}"
        raise BootstrapError(msg, step_name=name)

    return BootstrapStep(
        name=name,
        check=check,
        action=action,
        description=f"check `{shlex.join(command)}`",
    )

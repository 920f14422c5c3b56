"""Privilege gate for writes and commands touching system-owned locations."""

import os
import shutil
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path

from .command_executor import CommandExecutor, CommandResult
from .errors import StoreWriteError
from .logging_config import LOGGER


def _effective_uid() -> int:
    # Windows has no geteuid; treat it as unprivileged
    geteuid = getattr(os, "geteuid", None)
    return geteuid() if geteuid is not None else -1


class PrivilegeGate:
    """Runs each operation directly or re-issues it through an elevation command.

    Rights are checked per operation and never cached, since a run mixes
    system directory writes with home directory writes.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        geteuid: Callable[[], int] = _effective_uid,
        elevation: Sequence[str] = ("sudo",),
    ) -> None:
        """Initialize privilege gate.

        Args:
            executor: Command executor used for commands and elevated writes
            geteuid: Returns the effective user id
            elevation: Command prefix used to re-issue privileged operations
        """
        self.executor = executor
        self.geteuid = geteuid
        self.elevation = tuple(elevation)

    def is_privileged(self) -> bool:
        return self.geteuid() == 0

    def can_write(self, path: Path) -> bool:
        """True if privileged or the nearest existing ancestor of path is writable."""
        if self.is_privileged():
            return True
        candidate = path
        while not candidate.exists():
            if candidate.parent == candidate:
                return False
            candidate = candidate.parent
        return os.access(candidate, os.W_OK)

    def run(self, command: Sequence[str], privileged: bool = True) -> CommandResult:
        """Run command, prefixing the elevation command when rights are missing."""
        argv = tuple(command)
        if privileged and not self.is_privileged():
            LOGGER.info("Requesting elevated privileges for: %s", " ".join(argv))
            argv = self.elevation + argv
        return self.executor.run(argv)

    def make_dirs(self, path: Path) -> None:
        """Create directory and parents; no-op if it already exists."""
        if path.is_dir():
            return
        if self.can_write(path):
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StoreWriteError(path, e.strerror or str(e)) from e
            return
        self._run_elevated_write(path, ("mkdir", "-p", str(path)))

    def copy_file(self, source: Path, destination: Path) -> None:
        """Copy source over destination, replacing any existing file."""
        if self.can_write(destination):
            try:
                shutil.copyfile(source, destination)
            except OSError as e:
                raise StoreWriteError(destination, e.strerror or str(e)) from e
            return
        self._run_elevated_write(destination, ("cp", str(source), str(destination)))

    def write_file(self, data: bytes, destination: Path) -> None:
        """Write data over destination, replacing any existing file.

        Without direct rights the data is staged in a world-readable
        temporary file and copied into place through the elevation command.
        """
        if self.can_write(destination):
            try:
                destination.write_bytes(data)
            except OSError as e:
                raise StoreWriteError(destination, e.strerror or str(e)) from e
            return

        fd, staged_name = tempfile.mkstemp(prefix="ca_trust_", suffix=destination.suffix)
        staged = Path(staged_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            staged.chmod(0o644)
            self._run_elevated_write(destination, ("cp", str(staged), str(destination)))
        finally:
            staged.unlink(missing_ok=True)

    def symlink(self, target: Path, link: Path) -> None:
        """Point link at target, replacing any existing link or file."""
        if self.can_write(link):
            try:
                if link.is_symlink() or link.exists():
                    link.unlink()
                link.symlink_to(target)
            except OSError as e:
                raise StoreWriteError(link, e.strerror or str(e)) from e
            return
        self._run_elevated_write(link, ("ln", "-sf", str(target), str(link)))

    def _run_elevated_write(self, path: Path, command: tuple[str, ...]) -> None:
        result = self.run(command, privileged=True)
        if not result.ok:
            raise StoreWriteError(path, result.output or f"{command[0]} exited with status {result.returncode}")

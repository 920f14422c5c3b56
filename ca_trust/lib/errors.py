"""Exception taxonomy for CA trust installation."""

from collections.abc import Sequence
from pathlib import Path


class CATrustError(Exception):
    """Base class for installer failures."""


class InvalidInputError(CATrustError):
    """Certificate or key file missing, unreadable, or unusable."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class UnsupportedPlatformError(CATrustError):
    """Host platform or trust anchor location not supported."""


class StoreWriteError(CATrustError):
    """Creating, copying or linking inside a trust store failed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"failed to write {path}: {reason}")


class StoreRefreshError(CATrustError):
    """Trust refresh command exited non-zero."""

    def __init__(self, command: Sequence[str], returncode: int, output: str = "") -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.output = output
        message = f"command {' '.join(self.command)!r} exited with status {returncode}"
        if output:
            message = f"{message}: {output}"
        super().__init__(message)


class ToolUnavailableError(CATrustError):
    """External certificate database tool not found on PATH."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"{tool} not found on PATH")


class ProfileDiscoveryEmpty(CATrustError):
    """No browser profiles found under any known profiles root."""

    def __init__(self, roots: Sequence[Path]) -> None:
        self.roots = tuple(roots)
        searched = ", ".join(str(root) for root in self.roots) or "no known profiles root"
        super().__init__(f"no browser profiles found (searched: {searched})")

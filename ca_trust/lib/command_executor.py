"""External command execution capability."""

import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from .logging_config import LOGGER


@dataclass(frozen=True)
class CommandResult:
    command: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stderr if present, else stdout, stripped."""
        return self.stderr.strip() or self.stdout.strip()


class CommandExecutor(Protocol):
    """Runs external commands and locates tools on PATH."""

    def run(self, command: Sequence[str]) -> CommandResult: ...

    def which(self, tool: str) -> str | None: ...


class SubprocessExecutor:
    """CommandExecutor backed by subprocess.run."""

    def run(self, command: Sequence[str]) -> CommandResult:
        argv = tuple(command)
        LOGGER.debug("Running %s", " ".join(argv))
        try:
            completed = subprocess.run(
                argv, capture_output=True, text=True, check=False
            )
        except FileNotFoundError as e:
            # Same statuses a shell reports for unknown and non-executable commands
            return CommandResult(command=argv, returncode=127, stderr=str(e))
        except OSError as e:
            return CommandResult(command=argv, returncode=126, stderr=str(e))

        return CommandResult(
            command=argv,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

    def which(self, tool: str) -> str | None:
        return shutil.which(tool)

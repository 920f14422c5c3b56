"""Result models for CA trust installation."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class PlatformVariant(Enum):
    """Trust store family of the host."""

    DEBIAN = "debian"
    REDHAT = "redhat"
    FEDORA = "fedora"
    MACOS = "macos"
    WINDOWS = "windows"
    LINUX_OTHER = "linux-other"
    UNKNOWN = "unknown"


class TargetKind(Enum):
    SYSTEM = "system"
    BROWSER = "browser"


class BrowserPhaseStatus(Enum):
    INSTALLED = "installed"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass(frozen=True)
class InstallationOutcome:
    """One attempted installation into a system store or browser profile."""

    target_kind: TargetKind
    path: Path
    succeeded: bool
    detail: str


@dataclass(frozen=True)
class DeferredAction:
    """Installation script to be run later in an elevated, interactive shell.

    Produced instead of an InstallationOutcome when the store cannot be
    mutated from this process.
    """

    variant: PlatformVariant
    script_name: str
    script_content: str
    invocation: str


@dataclass(frozen=True)
class ProfilesRoot:
    """Directory holding browser profiles (e.g. ~/.mozilla/firefox)."""

    label: str
    path: Path


@dataclass(frozen=True)
class BrowserProfile:
    profile_path: Path
    has_cert_database: bool


@dataclass(frozen=True)
class FallbackGuide:
    """Manual import instructions written when the NSS tool is missing."""

    profiles_root: ProfilesRoot
    guide_path: Path
    certificate_reference: Path | None


@dataclass
class BrowserReport:
    """Aggregated result of the browser phase.

    status is one of installed, degraded (nothing installed because the
    database tool is missing) or failed (no profiles, or every attempt failed).
    """

    outcomes: list[InstallationOutcome] = field(default_factory=list)
    guides: list[FallbackGuide] = field(default_factory=list)
    status: BrowserPhaseStatus = BrowserPhaseStatus.FAILED

    @property
    def any_installed(self) -> bool:
        return any(outcome.succeeded for outcome in self.outcomes)


@dataclass
class InstallReport:
    """Final report of one installer run.

    Fatal errors are raised rather than recorded, so a report only exists for
    runs whose system phase completed.
    """

    variant: PlatformVariant
    system: InstallationOutcome | None = None
    deferred: DeferredAction | None = None
    browser: BrowserReport | None = None

    @property
    def outcomes(self) -> list[InstallationOutcome]:
        """Outcomes in the order installations were attempted."""
        ordered = [self.system] if self.system is not None else []
        if self.browser is not None:
            ordered.extend(self.browser.outcomes)
        return ordered

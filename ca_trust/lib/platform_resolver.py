"""Platform detection from host signals."""

import platform
from dataclasses import dataclass
from pathlib import Path

from .models import PlatformVariant

# Checked in order; a host carrying several markers resolves to the first one.
DISTRO_MARKERS: tuple[tuple[str, PlatformVariant], ...] = (
    ("etc/debian_version", PlatformVariant.DEBIAN),
    ("etc/redhat-release", PlatformVariant.REDHAT),
    ("etc/fedora-release", PlatformVariant.FEDORA),
)

_WINDOWS_KERNEL_PREFIXES = ("MINGW", "MSYS", "CYGWIN")


@dataclass(frozen=True)
class HostSignals:
    """Snapshot of the host facts platform detection depends on."""

    kernel_name: str
    sysroot: Path = Path("/")

    @classmethod
    def from_host(cls, sysroot: Path = Path("/")) -> "HostSignals":
        return cls(kernel_name=platform.system(), sysroot=sysroot)

    def has_file(self, relative: str) -> bool:
        return (self.sysroot / relative).is_file()


def resolve_platform(signals: HostSignals) -> PlatformVariant:
    """Map host signals to a PlatformVariant; never raises."""
    kernel = signals.kernel_name
    if kernel == "Darwin":
        return PlatformVariant.MACOS
    if kernel == "Windows" or kernel.upper().startswith(_WINDOWS_KERNEL_PREFIXES):
        return PlatformVariant.WINDOWS
    if kernel == "Linux":
        for marker, variant in DISTRO_MARKERS:
            if signals.has_file(marker):
                return variant
        return PlatformVariant.LINUX_OTHER
    return PlatformVariant.UNKNOWN

"""Installer configuration and static trust store table."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .models import PlatformVariant


@dataclass(frozen=True)
class TrustStoreTarget:
    """Where and how a platform keeps its trust anchors.

    anchor_dir is None for API-backed stores (macOS keychain, Windows
    certificate store) where no flat directory is written.
    """

    variant: PlatformVariant
    anchor_dir: Path | None
    file_extension: str
    refresh_command: tuple[str, ...]


MACOS_SYSTEM_KEYCHAIN = Path("/Library/Keychains/System.keychain")

DEBIAN_TARGET = TrustStoreTarget(
    variant=PlatformVariant.DEBIAN,
    anchor_dir=Path("/usr/local/share/ca-certificates"),
    file_extension="crt",
    refresh_command=("update-ca-certificates",),
)

REDHAT_TARGET = TrustStoreTarget(
    variant=PlatformVariant.REDHAT,
    anchor_dir=Path("/etc/pki/ca-trust/source/anchors"),
    file_extension="pem",
    refresh_command=("update-ca-trust", "extract"),
)

# Hash link creation stands in for a refresh on hosts without a bundle builder.
LINUX_OTHER_TARGET = TrustStoreTarget(
    variant=PlatformVariant.LINUX_OTHER,
    anchor_dir=Path("/etc/ssl/certs"),
    file_extension="pem",
    refresh_command=("openssl", "x509", "-hash", "-noout", "-in"),
)

MACOS_TARGET = TrustStoreTarget(
    variant=PlatformVariant.MACOS,
    anchor_dir=None,
    file_extension="pem",
    refresh_command=(
        "security",
        "add-trusted-cert",
        "-d",
        "-r",
        "trustRoot",
        "-k",
        str(MACOS_SYSTEM_KEYCHAIN),
    ),
)

WINDOWS_TARGET = TrustStoreTarget(
    variant=PlatformVariant.WINDOWS,
    anchor_dir=None,
    file_extension="cer",
    refresh_command=("powershell", "-ExecutionPolicy", "Bypass", "-File"),
)

# Fedora shares the RedHat anchors.
TRUST_STORE_TARGETS: dict[PlatformVariant, TrustStoreTarget] = {
    PlatformVariant.DEBIAN: DEBIAN_TARGET,
    PlatformVariant.REDHAT: REDHAT_TARGET,
    PlatformVariant.FEDORA: REDHAT_TARGET,
    PlatformVariant.LINUX_OTHER: LINUX_OTHER_TARGET,
    PlatformVariant.MACOS: MACOS_TARGET,
    PlatformVariant.WINDOWS: WINDOWS_TARGET,
}

# (label, path relative to the home directory)
FIREFOX_LINUX_ROOTS: tuple[tuple[str, str], ...] = (
    ("firefox", ".mozilla/firefox"),
    ("firefox-snap", "snap/firefox/common/.mozilla/firefox"),
    ("firefox-flatpak", ".var/app/org.mozilla.firefox/.mozilla/firefox"),
)
FIREFOX_MACOS_ROOT = "Library/Application Support/Firefox/Profiles"
FIREFOX_WINDOWS_ROOT = "Mozilla/Firefox/Profiles"


@dataclass(frozen=True)
class PackageInstall:
    """Package manager commands providing the NSS certutil tool."""

    commands: tuple[tuple[str, ...], ...]
    privileged: bool = True


NSS_TOOL_PACKAGES: dict[PlatformVariant, PackageInstall] = {
    PlatformVariant.MACOS: PackageInstall(commands=(("brew", "install", "nss"),), privileged=False),
    PlatformVariant.DEBIAN: PackageInstall(
        commands=(("apt-get", "update"), ("apt-get", "install", "-y", "libnss3-tools"))
    ),
    PlatformVariant.REDHAT: PackageInstall(commands=(("yum", "install", "-y", "nss-tools"),)),
    PlatformVariant.FEDORA: PackageInstall(commands=(("yum", "install", "-y", "nss-tools"),)),
}


@dataclass
class InstallConfig:
    """Settings for one installer run.

    Built once at the entry point; components never read the process
    environment themselves.
    """

    cert_path: Path
    key_path: Path | None = None
    install_browser: bool = False
    install_nss_tool: bool = False
    home: Path = field(default_factory=Path.home)
    appdata: Path | None = None
    sysroot: Path = Path("/")
    guide_dir: Path | None = None
    nss_tool: str = "certutil"
    elevation_command: tuple[str, ...] = ("sudo",)
    windows_script_name: str = "install_cert_windows.ps1"

    @classmethod
    def from_environment(cls, cert_path: Path, **overrides: object) -> "InstallConfig":
        """Build config from the current user's home and APPDATA."""
        appdata = os.environ.get("APPDATA")
        defaults: dict[str, object] = {
            "home": Path.home(),
            "appdata": Path(appdata) if appdata else None,
        }
        defaults.update(overrides)
        return cls(cert_path=cert_path, **defaults)  # type: ignore[arg-type]

    def system_path(self, path: Path) -> Path:
        """Resolve an absolute system path under sysroot."""
        return self.sysroot / path.relative_to(path.anchor)

    def resolved_guide_dir(self) -> Path:
        if self.guide_dir is not None:
            return self.guide_dir
        return self.cert_path.parent / "firefox_cert_installer"

"""Trust store strategies, one per platform variant."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import assert_never

from .certificate import CertificateDescriptor
from .command_executor import CommandResult
from .config import TRUST_STORE_TARGETS, InstallConfig, TrustStoreTarget
from .errors import StoreRefreshError, UnsupportedPlatformError
from .logging_config import LOGGER
from .models import DeferredAction, InstallationOutcome, PlatformVariant, TargetKind
from .privilege import PrivilegeGate
from .rendering import render_template

WINDOWS_CERT_STORE = r"Cert:\LocalMachine\Root"


class TrustStoreStrategy(ABC):
    """Installs a certificate into one platform trust store."""

    def __init__(self, target: TrustStoreTarget, config: InstallConfig, gate: PrivilegeGate) -> None:
        self.target = target
        self.config = config
        self.gate = gate

    @abstractmethod
    def install(self, descriptor: CertificateDescriptor) -> InstallationOutcome | DeferredAction:
        """Install certificate, raising on failure."""

    def _refresh(self, command: tuple[str, ...], privileged: bool = True) -> CommandResult:
        result = self.gate.run(command, privileged=privileged)
        if not result.ok:
            raise StoreRefreshError(command, result.returncode, result.output)
        return result


class AnchorDirectoryStrategy(TrustStoreStrategy):
    """Copy into a flat anchor directory, then rebuild the trust bundle.

    Used for Debian (update-ca-certificates) and RedHat/Fedora
    (update-ca-trust extract).
    """

    def anchor_dir(self) -> Path:
        if self.target.anchor_dir is None:
            raise UnsupportedPlatformError(f"{self.target.variant.value} has no anchor directory")
        return self.config.system_path(self.target.anchor_dir)

    def destination(self, descriptor: CertificateDescriptor, anchor_dir: Path) -> Path:
        return anchor_dir / f"{descriptor.derived_name}.{self.target.file_extension}"

    def place_certificate(self, descriptor: CertificateDescriptor, destination: Path) -> None:
        """Write the PEM encoding to destination, copying the file as-is when it was not parsed."""
        if descriptor.pem_data is not None:
            self.gate.write_file(descriptor.pem_data, destination)
        else:
            self.gate.copy_file(descriptor.source_path, destination)

    def install(self, descriptor: CertificateDescriptor) -> InstallationOutcome:
        anchor_dir = self.anchor_dir()
        destination = self.destination(descriptor, anchor_dir)
        LOGGER.info("Installing certificate to %s", destination)

        self.gate.make_dirs(anchor_dir)
        self.place_certificate(descriptor, destination)
        self._refresh(self.target.refresh_command)

        LOGGER.info("Certificate successfully installed: %s", destination)
        return InstallationOutcome(
            target_kind=TargetKind.SYSTEM,
            path=destination,
            succeeded=True,
            detail=f"refreshed with {' '.join(self.target.refresh_command)}",
        )


class OpenSSLDirectoryStrategy(AnchorDirectoryStrategy):
    """Generic Linux fallback: copy into the OpenSSL certs directory and add a hash link.

    The directory must already exist; no location is guessed.
    """

    def anchor_dir(self) -> Path:
        anchor_dir = super().anchor_dir()
        if not anchor_dir.is_dir():
            raise UnsupportedPlatformError(
                f"no OpenSSL certificate directory found at {anchor_dir}; "
                "install the certificate manually for this distribution"
            )
        return anchor_dir

    def install(self, descriptor: CertificateDescriptor) -> InstallationOutcome:
        anchor_dir = self.anchor_dir()
        destination = self.destination(descriptor, anchor_dir)
        LOGGER.info("Unknown Linux distribution, installing certificate to %s", destination)

        self.place_certificate(descriptor, destination)

        hash_command = self.target.refresh_command + (str(destination),)
        subject_hash = self._refresh(hash_command, privileged=False).stdout.strip()
        if not subject_hash:
            raise StoreRefreshError(hash_command, 0, "no subject hash printed")
        link = self._hash_link(anchor_dir, subject_hash, destination)
        self.gate.symlink(Path(destination.name), link)

        LOGGER.info("Certificate installed with hash link %s", link)
        LOGGER.warning("The system CA bundle may need to be rebuilt manually on this distribution")
        return InstallationOutcome(
            target_kind=TargetKind.SYSTEM,
            path=destination,
            succeeded=True,
            detail=f"linked as {link.name}",
        )

    @staticmethod
    def _hash_link(anchor_dir: Path, subject_hash: str, destination: Path) -> Path:
        """First <hash>.N that is free or already points at destination."""
        index = 0
        while True:
            link = anchor_dir / f"{subject_hash}.{index}"
            if not link.is_symlink() and not link.exists():
                return link
            if link.is_symlink() and link.readlink().name == destination.name:
                return link
            index += 1


class MacOSKeychainStrategy(TrustStoreStrategy):
    """Add the certificate as trusted root to the System keychain, then the login keychain."""

    def install(self, descriptor: CertificateDescriptor) -> InstallationOutcome:
        LOGGER.info("Installing certificate to macOS System keychain")
        self._refresh(self.target.refresh_command + (str(descriptor.source_path),))

        login_keychain = self.config.home / "Library" / "Keychains" / "login.keychain"
        user_command = (
            "security",
            "add-trusted-cert",
            "-r",
            "trustRoot",
            "-k",
            str(login_keychain),
            str(descriptor.source_path),
        )
        result = self.gate.run(user_command, privileged=False)
        if result.ok:
            LOGGER.info("Certificate also installed to user keychain %s", login_keychain)
        else:
            LOGGER.warning("Failed to install certificate to user keychain %s: %s", login_keychain, result.output)

        keychain = Path(self.target.refresh_command[-1])
        return InstallationOutcome(
            target_kind=TargetKind.SYSTEM,
            path=keychain,
            succeeded=True,
            detail=f"trusted as root in {keychain}",
        )


class WindowsScriptStrategy(TrustStoreStrategy):
    """Produce a PowerShell script for an Administrator to run; mutates nothing."""

    def install(self, descriptor: CertificateDescriptor) -> DeferredAction:
        script_name = self.config.windows_script_name
        content = render_template(
            "install_cert_windows.ps1.j2",
            cert_file=descriptor.source_path.absolute(),
            cert_name=descriptor.derived_name,
            store_location=WINDOWS_CERT_STORE,
        )
        invocation = " ".join(self.target.refresh_command + (script_name,))
        LOGGER.info("Prepared PowerShell installation script %s", script_name)
        return DeferredAction(
            variant=self.target.variant,
            script_name=script_name,
            script_content=content,
            invocation=invocation,
        )


def select_strategy(
    variant: PlatformVariant, config: InstallConfig, gate: PrivilegeGate
) -> TrustStoreStrategy:
    """Return the strategy for variant.

    Raises:
        UnsupportedPlatformError: For PlatformVariant.UNKNOWN
    """
    match variant:
        case PlatformVariant.DEBIAN | PlatformVariant.REDHAT | PlatformVariant.FEDORA:
            return AnchorDirectoryStrategy(TRUST_STORE_TARGETS[variant], config, gate)
        case PlatformVariant.LINUX_OTHER:
            return OpenSSLDirectoryStrategy(TRUST_STORE_TARGETS[variant], config, gate)
        case PlatformVariant.MACOS:
            return MacOSKeychainStrategy(TRUST_STORE_TARGETS[variant], config, gate)
        case PlatformVariant.WINDOWS:
            return WindowsScriptStrategy(TRUST_STORE_TARGETS[variant], config, gate)
        case PlatformVariant.UNKNOWN:
            raise UnsupportedPlatformError(
                "unsupported operating system, cannot install certificate automatically"
            )
        case _:
            assert_never(variant)

"""Firefox (NSS) certificate database installation."""

from pathlib import Path

from .certificate import CertificateDescriptor
from .config import (
    FIREFOX_LINUX_ROOTS,
    FIREFOX_MACOS_ROOT,
    FIREFOX_WINDOWS_ROOT,
    NSS_TOOL_PACKAGES,
    InstallConfig,
)
from .errors import ProfileDiscoveryEmpty, ToolUnavailableError
from .logging_config import LOGGER
from .models import (
    BrowserPhaseStatus,
    BrowserProfile,
    BrowserReport,
    FallbackGuide,
    InstallationOutcome,
    PlatformVariant,
    ProfilesRoot,
    TargetKind,
)
from .privilege import PrivilegeGate
from .rendering import render_template

PROFILE_NAME_MARKERS = (".default", ".normal")
CERT_DATABASE = "cert9.db"
# "C,," trusts the CA to issue website certificates only (not email or code signing)
NSS_TRUST_FLAGS = "C,,"


def profiles_roots(variant: PlatformVariant, config: InstallConfig) -> list[ProfilesRoot]:
    """Known Firefox profiles roots for variant; empty when undeterminable."""
    match variant:
        case PlatformVariant.MACOS:
            return [ProfilesRoot("firefox", config.home / FIREFOX_MACOS_ROOT)]
        case (
            PlatformVariant.DEBIAN
            | PlatformVariant.REDHAT
            | PlatformVariant.FEDORA
            | PlatformVariant.LINUX_OTHER
        ):
            return [ProfilesRoot(label, config.home / relative) for label, relative in FIREFOX_LINUX_ROOTS]
        case PlatformVariant.WINDOWS:
            if config.appdata is None:
                return []
            return [ProfilesRoot("firefox", config.appdata / FIREFOX_WINDOWS_ROOT)]
        case _:
            return []


def discover_profiles(root: ProfilesRoot) -> list[BrowserProfile]:
    """Profile directories directly under root named like *.default* or *.normal*."""
    if not root.path.is_dir():
        LOGGER.debug("Firefox profiles directory not found: %s", root.path)
        return []
    try:
        entries = sorted(root.path.iterdir())
    except OSError as e:
        LOGGER.warning("Cannot read Firefox profiles directory %s: %s", root.path, e)
        return []
    return [
        BrowserProfile(
            profile_path=entry,
            has_cert_database=(entry / CERT_DATABASE).is_file(),
        )
        for entry in entries
        if entry.is_dir() and any(marker in entry.name for marker in PROFILE_NAME_MARKERS)
    ]


class BrowserStoreInstaller:
    """Installs a CA certificate into every discovered Firefox profile.

    Profiles are processed sequentially and independently; one failure never
    stops the others. Without the NSS certutil tool a manual HTML guide is
    written per profiles root instead.
    """

    def __init__(self, config: InstallConfig, gate: PrivilegeGate, variant: PlatformVariant) -> None:
        self.config = config
        self.gate = gate
        self.variant = variant
        self.executor = gate.executor

    def install(self, descriptor: CertificateDescriptor) -> BrowserReport:
        """Install into all profiles and fold the results into one report."""
        roots = profiles_roots(self.variant, self.config)
        discovered = [(root, discover_profiles(root)) for root in roots]
        discovered = [(root, profiles) for root, profiles in discovered if profiles]

        if not discovered:
            LOGGER.warning("%s", ProfileDiscoveryEmpty([root.path for root in roots]))
            return BrowserReport(status=BrowserPhaseStatus.FAILED)

        try:
            tool = self._require_tool()
        except ToolUnavailableError as e:
            LOGGER.warning("%s, writing manual installation guide instead", e)
            guides = []
            for root, profiles in discovered:
                try:
                    guides.append(self.write_fallback_guide(descriptor, root, profiles))
                except OSError as guide_error:
                    LOGGER.error("Could not write installation guide for %s: %s", root.path, guide_error)
            return BrowserReport(guides=guides, status=BrowserPhaseStatus.DEGRADED)

        outcomes = [
            self.install_profile(descriptor, profile, tool)
            for _root, profiles in discovered
            for profile in profiles
        ]
        report = BrowserReport(outcomes=outcomes)
        report.status = BrowserPhaseStatus.INSTALLED if report.any_installed else BrowserPhaseStatus.FAILED
        if report.any_installed:
            LOGGER.info("Restart Firefox for the new certificate to take effect")
        return report

    def install_profile(self, descriptor: CertificateDescriptor, profile: BrowserProfile, tool: str) -> InstallationOutcome:
        """Add the certificate to one profile's NSS database."""
        database = f"sql:{profile.profile_path}"
        LOGGER.info("Installing certificate to Firefox profile: %s", profile.profile_path)

        if not profile.has_cert_database:
            LOGGER.info("Creating NSS certificate database in %s", profile.profile_path)
            result = self.executor.run((tool, "-N", "--empty-password", "-d", database))
            if not result.ok:
                return self._failed(profile, f"database initialization failed: {result.output}")

        result = self.executor.run(
            (
                tool,
                "-A",
                "-n",
                descriptor.derived_name,
                "-t",
                NSS_TRUST_FLAGS,
                "-i",
                str(descriptor.source_path),
                "-d",
                database,
            )
        )
        if not result.ok:
            return self._failed(profile, f"{tool} -A exited with status {result.returncode}: {result.output}")

        LOGGER.info("Certificate installed to Firefox profile: %s", profile.profile_path)
        return InstallationOutcome(
            target_kind=TargetKind.BROWSER,
            path=profile.profile_path,
            succeeded=True,
            detail=f"added as {descriptor.derived_name!r} with trust {NSS_TRUST_FLAGS}",
        )

    def write_fallback_guide(
        self,
        descriptor: CertificateDescriptor,
        root: ProfilesRoot,
        profiles: list[BrowserProfile],
    ) -> FallbackGuide:
        """Write the manual import guide for root plus a reference to the certificate."""
        guide_dir = self.config.resolved_guide_dir()
        guide_dir.mkdir(parents=True, exist_ok=True)
        reference = self._place_certificate_reference(descriptor.source_path, guide_dir)

        guide_path = guide_dir / f"install_cert_{root.label}.html"
        guide_path.write_text(
            render_template(
                "firefox_guide.html.j2",
                tool=self.config.nss_tool,
                cert_name=descriptor.derived_name,
                cert_path=descriptor.source_path.absolute(),
                profiles_root=root.path,
                profiles=[profile.profile_path for profile in profiles],
                certificate_reference=reference,
            ),
            encoding="utf-8",
        )
        LOGGER.info("Created Firefox certificate installation guide: %s", guide_path)
        return FallbackGuide(profiles_root=root, guide_path=guide_path, certificate_reference=reference)

    def _require_tool(self) -> str:
        tool = self.config.nss_tool
        if self.executor.which(tool):
            return tool
        if self.config.install_nss_tool and self._install_tool():
            if self.executor.which(tool):
                return tool
        raise ToolUnavailableError(tool)

    def _install_tool(self) -> bool:
        """Install the NSS tools package with the platform package manager."""
        package = NSS_TOOL_PACKAGES.get(self.variant)
        if package is None:
            LOGGER.warning("Cannot install %s automatically on %s", self.config.nss_tool, self.variant.value)
            return False
        for command in package.commands:
            LOGGER.info("Installing NSS tools: %s", " ".join(command))
            if not self.executor.which(command[0]):
                LOGGER.warning("%s not found, cannot install NSS tools", command[0])
                return False
            result = self.gate.run(command, privileged=package.privileged)
            if not result.ok:
                LOGGER.warning("Failed to install NSS tools (%s): %s", " ".join(command), result.output)
                return False
        return True

    @staticmethod
    def _place_certificate_reference(source: Path, guide_dir: Path) -> Path | None:
        """Symlink the certificate beside the guide, copying when links are not permitted."""
        reference = guide_dir / source.name
        target = source.absolute()
        if reference.absolute() == target:
            return reference
        try:
            if reference.is_symlink() or reference.exists():
                reference.unlink()
            reference.symlink_to(target)
            return reference
        except OSError as e:
            LOGGER.debug("Symlink to %s not permitted (%s), copying instead", target, e)
        try:
            reference.write_bytes(source.read_bytes())
            return reference
        except OSError as e:
            LOGGER.warning("Could not place certificate reference at %s: %s", reference, e)
            return None

    @staticmethod
    def _failed(profile: BrowserProfile, detail: str) -> InstallationOutcome:
        LOGGER.error("Failed to install certificate to Firefox profile %s: %s", profile.profile_path, detail)
        return InstallationOutcome(
            target_kind=TargetKind.BROWSER,
            path=profile.profile_path,
            succeeded=False,
            detail=detail,
        )

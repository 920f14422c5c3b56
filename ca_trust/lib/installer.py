"""Installer driving platform resolution, system store and browser store phases."""

from .browser_store import BrowserStoreInstaller
from .certificate import CertificateDescriptor, require_readable_file
from .command_executor import CommandExecutor, SubprocessExecutor
from .config import InstallConfig
from .logging_config import LOGGER
from .models import DeferredAction, InstallReport
from .platform_resolver import HostSignals, resolve_platform
from .privilege import PrivilegeGate
from .trust_store import select_strategy


class CATrustInstaller:
    """Installs a CA root certificate into the host trust store and Firefox profiles."""

    def __init__(
        self,
        config: InstallConfig,
        executor: CommandExecutor | None = None,
        gate: PrivilegeGate | None = None,
        signals: HostSignals | None = None,
    ) -> None:
        """Initialize installer.

        Args:
            config: Run configuration (certificate path, flags, locations)
            executor: Command executor; defaults to SubprocessExecutor
            gate: Privilege gate; defaults to one wrapping executor
            signals: Host signals; read from the host when first needed
        """
        self.config = config
        self.executor = executor if executor is not None else SubprocessExecutor()
        self.gate = gate if gate is not None else PrivilegeGate(self.executor, elevation=config.elevation_command)
        self.signals = signals

    def load_certificate(self) -> CertificateDescriptor:
        """Validate input files and build the certificate descriptor.

        Raises:
            InvalidInputError: If the certificate or the optional key is unusable
        """
        descriptor = CertificateDescriptor.from_path(self.config.cert_path)
        if self.config.key_path is not None:
            require_readable_file(self.config.key_path, kind="private key")
        return descriptor

    def install(self, descriptor: CertificateDescriptor) -> InstallReport:
        """Install descriptor into the system store, then Firefox if requested.

        System store failures propagate; browser failures are only reported.

        Raises:
            UnsupportedPlatformError: If the platform or its anchor directory is unsupported
            StoreWriteError: If writing into the trust store fails
            StoreRefreshError: If the trust refresh command fails
        """
        signals = self.signals if self.signals is not None else HostSignals.from_host(self.config.sysroot)
        variant = resolve_platform(signals)
        LOGGER.info("Detected OS: %s", variant.value)

        strategy = select_strategy(variant, self.config, self.gate)
        result = strategy.install(descriptor)

        report = InstallReport(variant=variant)
        if isinstance(result, DeferredAction):
            report.deferred = result
        else:
            report.system = result

        if self.config.install_browser:
            LOGGER.info("Installing certificate to Firefox...")
            browser = BrowserStoreInstaller(self.config, self.gate, variant)
            report.browser = browser.install(descriptor)
            LOGGER.info("Firefox installation status: %s", report.browser.status.value)

        return report

    def run(self) -> InstallReport:
        """Load the certificate and install it."""
        descriptor = self.load_certificate()
        LOGGER.info("Installing CA root certificate %r from %s", descriptor.derived_name, descriptor.source_path)
        return self.install(descriptor)

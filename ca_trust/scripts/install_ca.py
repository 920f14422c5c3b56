#!/usr/bin/env python3
"""Install a CA root certificate into the system trust store (and optionally Firefox)."""

import argparse
import sys
from pathlib import Path

from ca_trust.lib.config import InstallConfig
from ca_trust.lib.errors import CATrustError, InvalidInputError, UnsupportedPlatformError
from ca_trust.lib.installer import CATrustInstaller
from ca_trust.lib.logging_config import LOGGER, set_log_level
from ca_trust.lib.models import DeferredAction, InstallReport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Install a CA root certificate into the system trust store"
    )
    parser.add_argument(
        "-c",
        "--cert",
        type=Path,
        required=True,
        help="Path to the CA root certificate PEM file",
    )
    parser.add_argument(
        "-k",
        "--key",
        type=Path,
        default=None,
        help="Path to the private key PEM file (optional, only checked for existence)",
    )
    parser.add_argument(
        "-f",
        "--firefox",
        action="store_true",
        help="Also install to the Firefox certificate store (if Firefox is installed)",
    )
    parser.add_argument(
        "--install-nss-tool",
        action="store_true",
        help="Try to install NSS certutil with the package manager when it is missing",
    )
    parser.add_argument(
        "--guide-dir",
        type=Path,
        default=None,
        help="Directory for the Firefox manual installation guide "
        "(default: <certificate dir>/firefox_cert_installer)",
    )
    parser.add_argument(
        "--script-dir",
        type=Path,
        default=Path("."),
        help="Directory for the generated Windows PowerShell script (default: current directory)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Log level (default: INFO)",
    )
    return parser


def write_deferred_script(action: DeferredAction, script_dir: Path) -> Path:
    """Write the deferred installation script to script_dir."""
    script_dir.mkdir(parents=True, exist_ok=True)
    script_path = script_dir / action.script_name
    script_path.write_text(action.script_content, encoding="utf-8")
    return script_path


def log_report(report: InstallReport) -> None:
    if report.system is not None:
        LOGGER.info("System trust store: %s (%s)", report.system.path, report.system.detail)

    if report.browser is None:
        return

    for outcome in report.browser.outcomes:
        if outcome.succeeded:
            LOGGER.info("Firefox profile %s: installed", outcome.path)
        else:
            LOGGER.warning("Firefox profile %s: failed (%s)", outcome.path, outcome.detail)
    for guide in report.browser.guides:
        LOGGER.info("Manual installation required, open %s in a web browser for instructions", guide.guide_path)
    if not report.browser.any_installed:
        LOGGER.warning("Certificate not installed to Firefox (%s)", report.browser.status.value)


def main(argv: list[str] | None = None) -> int:
    """Install CA root certificate.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args(argv)

    try:
        set_log_level(args.log_level)
    except ValueError as e:
        LOGGER.error("%s", e)
        return 1

    config = InstallConfig.from_environment(
        args.cert,
        key_path=args.key,
        install_browser=args.firefox,
        install_nss_tool=args.install_nss_tool,
        guide_dir=args.guide_dir,
    )

    try:
        installer = CATrustInstaller(config)
        report = installer.run()

        if report.deferred is not None:
            script_path = write_deferred_script(report.deferred, args.script_dir)
            LOGGER.info("PowerShell script created: %s", script_path)
            LOGGER.info("To install the certificate, run as Administrator: %s", report.deferred.invocation)

        log_report(report)
        LOGGER.info("CA root certificate installation completed")
        return 0

    except InvalidInputError as e:
        LOGGER.error("Invalid input: %s", e)
        return 1
    except UnsupportedPlatformError as e:
        LOGGER.error("Unsupported platform: %s", e)
        return 1
    except CATrustError as e:
        LOGGER.error("Failed to install certificate: %s", e)
        return 1
    except OSError as e:
        LOGGER.error("Filesystem error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Test fixtures for ca_trust tests."""

import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.x509.oid import NameOID

from ca_trust.lib.config import InstallConfig
from ca_trust.lib.privilege import PrivilegeGate
from ca_trust.tests.fakes import FakeExecutor


def build_ca_certificate(key: RSAPrivateKey, common_name: str | None) -> x509.Certificate:
    """Build a self-signed CA certificate, optionally without a CN."""
    attributes = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test Org")]
    if common_name is not None:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    name = x509.Name(attributes)
    not_before = datetime.now(UTC)

    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_before + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def ca_key() -> RSAPrivateKey:
    """Generate one RSA key shared by all test certificates."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def make_cert_file(tmp_path: Path, ca_key: RSAPrivateKey) -> Callable[..., Path]:
    """Return factory writing a CA certificate file into tmp_path/certs."""

    def _make(
        name: str = "ca.pem",
        common_name: str | None = "Example Root CA",
        encoding: serialization.Encoding = serialization.Encoding.PEM,
    ) -> Path:
        cert_dir = tmp_path / "certs"
        cert_dir.mkdir(exist_ok=True)
        path = cert_dir / name
        path.write_bytes(build_ca_certificate(ca_key, common_name).public_bytes(encoding))
        return path

    return _make


@pytest.fixture
def cert_file(make_cert_file: Callable[..., Path]) -> Path:
    """Return PEM certificate with subject CN 'Example Root CA'."""
    return make_cert_file()


@pytest.fixture
def sysroot(tmp_path: Path) -> Path:
    """Return empty directory standing in for the filesystem root."""
    root = tmp_path / "sysroot"
    root.mkdir()
    return root


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Return empty directory standing in for the user's home."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def install_config(cert_file: Path, sysroot: Path, home: Path, tmp_path: Path) -> InstallConfig:
    """Return config rooted in temporary directories."""
    return InstallConfig(
        cert_path=cert_file,
        home=home,
        appdata=tmp_path / "appdata",
        sysroot=sysroot,
        guide_dir=tmp_path / "guide",
    )


@pytest.fixture
def executor() -> FakeExecutor:
    """Return executor with certutil available."""
    return FakeExecutor(tools=["certutil"])


@pytest.fixture
def root_gate(executor: FakeExecutor) -> PrivilegeGate:
    """Return gate that believes it runs as root."""
    return PrivilegeGate(executor, geteuid=lambda: 0)


@pytest.fixture
def user_gate(executor: FakeExecutor) -> PrivilegeGate:
    """Return gate that believes it runs as an unprivileged user."""
    return PrivilegeGate(executor, geteuid=lambda: 1000)


@pytest.fixture
def no_write_access(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make every path look unwritable; read checks are unaffected."""
    monkeypatch.setattr("ca_trust.lib.privilege.os.access", lambda _path, mode: mode != os.W_OK)

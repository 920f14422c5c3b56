"""Certificate descriptor: source path plus a filesystem-safe installed name."""

import os
import re
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from .errors import InvalidInputError
from .logging_config import LOGGER

# Path separators, control characters and characters Windows rejects in filenames.
_UNSAFE_NAME_CHARS = re.compile(r'[\\/\x00-\x1f\x7f<>:"|?*]')


def require_readable_file(path: Path, kind: str = "certificate") -> Path:
    """Check path is an existing, readable regular file.

    Raises:
        InvalidInputError: If the file is missing, not a file or unreadable
    """
    if not path.exists():
        raise InvalidInputError(path, f"{kind} file not found")
    if not path.is_file():
        raise InvalidInputError(path, f"{kind} path is not a file")
    if not os.access(path, os.R_OK):
        raise InvalidInputError(path, f"{kind} file is not readable")
    return path


def load_certificate(data: bytes) -> x509.Certificate:
    """Load an X.509 certificate from PEM or DER bytes."""
    if b"-----BEGIN" in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def extract_common_name(cert: x509.Certificate) -> str:
    """Return the subject CN trimmed at the first comma, or '' if absent."""
    attributes = cert.subject.get_attributes_for_oid(x509.NameOID.COMMON_NAME)
    if not attributes:
        return ""
    value = attributes[0].value
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return value.split(",")[0].strip()


def sanitize_name(name: str) -> str:
    """Make name usable as a single filename component.

    Returns '' when nothing usable remains.
    """
    cleaned = _UNSAFE_NAME_CHARS.sub("_", name).strip().strip(".").strip()
    if cleaned in ("", "_"):
        return ""
    return cleaned


@dataclass(frozen=True)
class CertificateDescriptor:
    """Certificate file and the name it is installed under.

    pem_data is the certificate re-encoded as PEM, or None when the file
    could not be parsed.
    """

    source_path: Path
    derived_name: str
    pem_data: bytes | None = None

    @classmethod
    def from_path(cls, path: Path) -> "CertificateDescriptor":
        """Build descriptor, deriving the name from subject CN or file stem.

        Args:
            path: Certificate file (PEM or DER)

        Returns:
            CertificateDescriptor with sanitized derived_name

        Raises:
            InvalidInputError: If the file is unusable or no name can be derived
        """
        require_readable_file(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise InvalidInputError(path, f"certificate file is not readable ({e.strerror})") from e

        common_name = ""
        pem_data = None
        try:
            cert = load_certificate(data)
            common_name = extract_common_name(cert)
            pem_data = cert.public_bytes(serialization.Encoding.PEM)
        except ValueError as e:
            LOGGER.warning("Could not parse certificate %s, using file name: %s", path, e)

        derived_name = sanitize_name(common_name)
        if not derived_name:
            derived_name = sanitize_name(path.stem)
        if not derived_name:
            raise InvalidInputError(path, "cannot derive a certificate name")

        LOGGER.debug("Derived certificate name %r from %s", derived_name, path)
        return cls(source_path=path, derived_name=derived_name, pem_data=pem_data)

"""Password helpers and read-only inspection of issued certificates."""

import secrets
import string
from pathlib import Path

from cryptography import x509
from cryptography.x509.oid import NameOID

from .models import CertificateSummary

PASSWORD_ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = 20) -> str:
    """Generate an alphanumeric password from a CSPRNG."""
    if length <= 0:
        raise ValueError("password length must be positive")
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def write_password_file(path: Path, password: str) -> Path:
    """Write the bundle password to ``path`` readable by the owner only."""
    path.touch(mode=0o600, exist_ok=True)
    path.chmod(0o600)
    path.write_text(password + "\n")
    return path


def parse_alternates(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated list of names, dropping blanks (e.g. "a, b,,c")."""
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def load_certificate(path: Path) -> x509.Certificate:
    """Load a PEM certificate from disk."""
    return x509.load_pem_x509_certificate(path.read_bytes())


def get_certificate_serial_hex(cert: x509.Certificate) -> str:
    """Return certificate serial number as hex with colons (e.g., 3A:F2:B1:...)."""
    serial_hex = f"{cert.serial_number:X}"
    if len(serial_hex) % 2 != 0:
        serial_hex = "0" + serial_hex
    return ":".join(serial_hex[i : i + 2] for i in range(0, len(serial_hex), 2))


def _common_name(name: x509.Name) -> str:
    attributes = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return name.rfc4514_string()
    value = attributes[0].value
    return value if isinstance(value, str) else value.decode()


def extract_certificate_summary(cert: x509.Certificate) -> CertificateSummary:
    """Extract the facts logged after a certificate is issued.

    Args:
        cert: X.509 certificate to summarise

    Returns:
        CertificateSummary with names, serial, validity window and SANs
    """
    dns_names: list[str] = []
    ip_addresses: list[str] = []
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        san = None
    if san is not None:
        dns_names = san.get_values_for_type(x509.DNSName)
        ip_addresses = [str(ip) for ip in san.get_values_for_type(x509.IPAddress)]

    return CertificateSummary(
        subject=_common_name(cert.subject),
        issuer=_common_name(cert.issuer),
        serialNumber=get_certificate_serial_hex(cert),
        notBefore=cert.not_valid_before_utc.isoformat(),
        notAfter=cert.not_valid_after_utc.isoformat(),
        dnsNames=dns_names,
        ipAddresses=ip_addresses,
        selfIssued=cert.subject == cert.issuer,
    )

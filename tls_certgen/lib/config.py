"""Certificate request configuration dataclasses."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

DEFAULT_DOMAIN = "myapplication.example.com"
DEFAULT_IP_ADDRESS = "10.20.30.40"


@dataclass
class CertgenConfig:
    """Tool-wide defaults for output locations and CA generation."""

    output_dir: Path = Path("certs")
    ca_dir: Path = Path("certs/ca")
    openssl_binary: str = "openssl"
    request_default_bits: int = 2048
    ca_key_size: int = 4096
    ca_validity_days: int = 3650
    ca_common_name: str = "Local Certificate Authority"
    password_length: int = 20


@dataclass(frozen=True)
class SubjectIdentity:
    """X.509 subject fields shared by the certificate and the local CA."""

    country: str = "US"
    state: str = "State"
    locality: str = "City"
    organization: str = "CloudApps"

    def to_subj(self, common_name: str) -> str:
        """Render as an ``openssl req -subj`` argument."""
        return (
            f"/C={self.country}/ST={self.state}/L={self.locality}"
            f"/O={self.organization}/CN={common_name}"
        )


@dataclass(frozen=True)
class DomainTarget:
    """Certificate issued for a DNS name plus optional extra names."""

    primary: str
    alternates: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.primary:
            raise ValueError("domain target requires a primary name")
        object.__setattr__(self, "alternates", tuple(self.alternates))

    @property
    def file_stem(self) -> str:
        return self.primary


@dataclass(frozen=True)
class IPAddressTarget:
    """Certificate issued for an IP address plus optional extra addresses."""

    primary: str
    alternates: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.primary:
            raise ValueError("IP target requires a primary address")
        object.__setattr__(self, "alternates", tuple(self.alternates))

    @property
    def file_stem(self) -> str:
        return "ipaddress"


CertificateTarget = DomainTarget | IPAddressTarget


class ExtensionPolicy(Enum):
    """Which X.509v3 extensions the request asks for."""

    NONE = "none"
    SUBJECT_ALT_NAMES_ONLY = "san"
    EXTENDED_KEY_USAGE_ONLY = "eku"
    BOTH = "both"

    @property
    def includes_san(self) -> bool:
        return self in (ExtensionPolicy.SUBJECT_ALT_NAMES_ONLY, ExtensionPolicy.BOTH)

    @property
    def includes_extended_key_usage(self) -> bool:
        return self in (ExtensionPolicy.EXTENDED_KEY_USAGE_ONLY, ExtensionPolicy.BOTH)


@dataclass(frozen=True)
class RSAKey:
    bits: int = 2048


@dataclass(frozen=True)
class ECKey:
    curve_name: str = "secp384r1"


KeyAlgorithm = RSAKey | ECKey

KEY_ALGORITHM_PRESETS: dict[str, KeyAlgorithm] = {
    "rsa2048": RSAKey(2048),
    "rsa4096": RSAKey(4096),
    "ec": ECKey("secp384r1"),
}


@dataclass(frozen=True)
class SelfSigned:
    """Sign the request with its own key."""


@dataclass(frozen=True)
class CASigned:
    """Sign the request with the local CA key pair."""

    ca_cert: Path
    ca_key: Path


SigningMode = SelfSigned | CASigned


class AppType(Enum):
    """Deployment target the certificate is produced for."""

    ASPNET = "aspnet"
    NGINX = "nginx"
    GENERAL = "general"

    @property
    def needs_pkcs12(self) -> bool:
        return self is AppType.ASPNET


@dataclass(frozen=True)
class ValidityPeriod:
    """Certificate lifetime in days."""

    days: int = 365

    def __post_init__(self) -> None:
        if isinstance(self.days, bool) or not isinstance(self.days, int) or self.days <= 0:
            raise ValueError(f"validity must be a positive number of days, got {self.days!r}")

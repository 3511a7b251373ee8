"""OpenSSL request configuration builder.

Requests are described as an ordered list of named sections and only turned
into OpenSSL's INI-style text at the end. Domain and IP targets follow
different extension rules:

    Domain: [v3_req] exists only when the policy asks for SANs or extended
            key usage.
    IP:     [v3_req] and subjectAltName are always present; only the extra
            addresses and clientAuth depend on the policy.
"""

from dataclasses import dataclass, field
from pathlib import Path

from .config import (
    CertificateTarget,
    DomainTarget,
    ExtensionPolicy,
    IPAddressTarget,
    SubjectIdentity,
)

REQ_SECTION = "req"
DN_SECTION = "req_distinguished_name"
EXTENSIONS_SECTION = "v3_req"
ALT_NAMES_SECTION = "alt_names"


# Special to the OpenSSL config parser. Backslash must be escaped first.
_SPECIAL_CHARACTERS = ("\\", "#", "$")


def escape_value(value: str) -> str:
    """Backslash-escape ``value`` so OpenSSL reads it literally (e.g. "R&D #1")."""
    for char in _SPECIAL_CHARACTERS:
        value = value.replace(char, "\\" + char)
    return value


@dataclass
class ConfigSection:
    """One ``[name]`` block with its entries in insertion order."""

    name: str
    entries: dict[str, str] = field(default_factory=dict)

    def set(self, key: str, value: str) -> None:
        self.entries[key] = value

    def to_text(self) -> str:
        lines = [f"[{self.name}]"]
        lines.extend(f"{key} = {escape_value(value)}" for key, value in self.entries.items())
        return "\n".join(lines)


class RequestConfig:
    """Ordered collection of configuration sections."""

    def __init__(self) -> None:
        self._sections: list[ConfigSection] = []

    def add_section(self, name: str) -> ConfigSection:
        """Return the named section, appending it if it does not exist yet."""
        existing = self.get_section(name)
        if existing is not None:
            return existing
        section = ConfigSection(name)
        self._sections.append(section)
        return section

    def get_section(self, name: str) -> ConfigSection | None:
        for section in self._sections:
            if section.name == name:
                return section
        return None

    def section(self, name: str) -> dict[str, str]:
        """Return a copy of the entries of a section.

        Raises:
            KeyError: If the section was not emitted
        """
        found = self.get_section(name)
        if found is None:
            raise KeyError(name)
        return dict(found.entries)

    @property
    def section_names(self) -> list[str]:
        return [section.name for section in self._sections]

    @property
    def has_extensions(self) -> bool:
        return self.get_section(EXTENSIONS_SECTION) is not None

    def to_text(self) -> str:
        return "\n\n".join(section.to_text() for section in self._sections) + "\n"

    def write(self, path: Path) -> Path:
        path.write_text(self.to_text())
        return path


def _distinguished_name(
    config: RequestConfig, subject: SubjectIdentity, common_name: str
) -> None:
    dn = config.add_section(DN_SECTION)
    dn.set("C", subject.country)
    dn.set("ST", subject.state)
    dn.set("L", subject.locality)
    dn.set("O", subject.organization)
    dn.set("CN", common_name)


def _build_domain_config(
    target: DomainTarget,
    subject: SubjectIdentity,
    policy: ExtensionPolicy,
    default_bits: int,
) -> RequestConfig:
    config = RequestConfig()
    req = config.add_section(REQ_SECTION)
    req.set("default_bits", str(default_bits))
    req.set("prompt", "no")
    req.set("default_md", "sha256")
    req.set("distinguished_name", DN_SECTION)

    _distinguished_name(config, subject, target.primary)

    if policy.includes_san:
        req.set("req_extensions", EXTENSIONS_SECTION)
        config.add_section(EXTENSIONS_SECTION).set("subjectAltName", f"@{ALT_NAMES_SECTION}")
        alt_names = config.add_section(ALT_NAMES_SECTION)
        for index, name in enumerate((target.primary, *target.alternates), start=1):
            alt_names.set(f"DNS.{index}", name)

    if policy.includes_extended_key_usage:
        # add_section reuses [v3_req] when the SAN branch already created it
        req.set("req_extensions", EXTENSIONS_SECTION)
        extensions = config.add_section(EXTENSIONS_SECTION)
        extensions.set("extendedKeyUsage", "serverAuth, clientAuth")
        extensions.set("keyUsage", "digitalSignature, keyEncipherment")

    return config


def _build_ip_config(
    target: IPAddressTarget,
    subject: SubjectIdentity,
    policy: ExtensionPolicy,
) -> RequestConfig:
    config = RequestConfig()
    req = config.add_section(REQ_SECTION)
    req.set("distinguished_name", DN_SECTION)
    req.set("req_extensions", EXTENSIONS_SECTION)
    req.set("prompt", "no")

    _distinguished_name(config, subject, target.primary)

    extensions = config.add_section(EXTENSIONS_SECTION)
    extensions.set("keyUsage", "keyEncipherment, dataEncipherment")
    if policy.includes_extended_key_usage:
        extensions.set("extendedKeyUsage", "serverAuth, clientAuth")
    else:
        extensions.set("extendedKeyUsage", "serverAuth")
    extensions.set("subjectAltName", f"@{ALT_NAMES_SECTION}")

    alt_names = config.add_section(ALT_NAMES_SECTION)
    alt_names.set("IP.1", target.primary)
    if policy.includes_san:
        for index, address in enumerate(target.alternates, start=2):
            alt_names.set(f"IP.{index}", address)

    return config


def build_config(
    target: CertificateTarget,
    subject: SubjectIdentity,
    policy: ExtensionPolicy,
    default_bits: int = 2048,
) -> RequestConfig:
    """Build the OpenSSL request configuration for a certificate target.

    Args:
        target: Domain or IP identity the certificate is issued for
        subject: Subject fields for the distinguished name
        policy: Requested X.509v3 extensions
        default_bits: ``default_bits`` written into domain requests

    Returns:
        RequestConfig ready to be written to disk
    """
    if isinstance(target, DomainTarget):
        return _build_domain_config(target, subject, policy, default_bits)
    if isinstance(target, IPAddressTarget):
        return _build_ip_config(target, subject, policy)
    raise TypeError(f"unsupported certificate target: {target!r}")

"""Result models for certificate generation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TypedDict


class CertificateSummary(TypedDict):
    """Human-facing facts read back from an issued certificate."""

    subject: str
    issuer: str
    serialNumber: str
    notBefore: str
    notAfter: str
    dnsNames: list[str]
    ipAddresses: list[str]
    selfIssued: bool


@dataclass
class CAMaterial:
    """Local CA key/certificate pair on disk.

    ``created`` is True only when this run generated the pair.
    """

    key_path: Path
    cert_path: Path
    created: bool


@dataclass
class IssuanceResult:
    """Result from a completed issuance pipeline.

    Contains file paths for every artifact produced and the names of the
    steps that ran, in order.
    """

    key_path: Path
    cert_path: Path
    pfx_path: Path | None = None
    password_path: Path | None = None
    ca: CAMaterial | None = None
    completed_steps: list[str] = field(default_factory=list)

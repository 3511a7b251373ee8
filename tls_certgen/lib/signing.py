"""Signing path selection for certificate requests."""

from dataclasses import dataclass
from pathlib import Path

from .config import (
    CASigned,
    CertificateTarget,
    DomainTarget,
    ExtensionPolicy,
    SelfSigned,
    SigningMode,
)
from .request_config import EXTENSIONS_SECTION


@dataclass(frozen=True)
class SigningInvocation:
    """Shape of the ``openssl x509 -req`` call that signs a request.

    ``ca`` is None for self-signed certificates.
    """

    ca: CASigned | None
    apply_extensions: bool

    @property
    def self_signed(self) -> bool:
        return self.ca is None

    def to_args(
        self,
        csr_path: Path,
        key_path: Path,
        cert_path: Path,
        config_path: Path,
        days: int,
    ) -> list[str]:
        """Build the argument list that follows the ``openssl`` binary name."""
        args = ["x509", "-req", "-days", str(days), "-in", str(csr_path)]
        if self.ca is None:
            args += ["-signkey", str(key_path)]
        else:
            args += [
                "-CA",
                str(self.ca.ca_cert),
                "-CAkey",
                str(self.ca.ca_key),
                "-CAcreateserial",
            ]
        args += ["-out", str(cert_path)]
        if self.apply_extensions:
            args += ["-extensions", EXTENSIONS_SECTION, "-extfile", str(config_path)]
        return args


def select_signing_invocation(
    mode: SigningMode,
    policy: ExtensionPolicy,
    target: CertificateTarget,
) -> SigningInvocation:
    """Pick one of the four signing shapes.

    Domain requests reference the extension file only when some extension
    was requested. IP requests always carry [v3_req], so both the
    self-signed and the CA-signed path reference it unconditionally.
    """
    if isinstance(target, DomainTarget):
        apply_extensions = policy is not ExtensionPolicy.NONE
    else:
        apply_extensions = True

    if isinstance(mode, CASigned):
        return SigningInvocation(ca=mode, apply_extensions=apply_extensions)
    if isinstance(mode, SelfSigned):
        return SigningInvocation(ca=None, apply_extensions=apply_extensions)
    raise TypeError(f"unsupported signing mode: {mode!r}")

"""Certificate issuance pipeline.

A run is an explicit ordered list of steps:

    generate_key -> write_request_config -> create_request -> [acquire_ca]
        -> sign -> [discard_ca_serial] -> [export_pkcs12 -> write_password]

Bracketed steps only appear in CA mode or for ASP.NET targets. Every step
runs exactly once. The first failure is logged with the step name and
re-raised as is; files produced by earlier steps are left in place.
"""

import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .ca_manager import CAManager
from .cert_utils import write_password_file
from .config import (
    AppType,
    CertgenConfig,
    CertificateTarget,
    ExtensionPolicy,
    KeyAlgorithm,
    RSAKey,
    SelfSigned,
    SigningMode,
    SubjectIdentity,
    ValidityPeriod,
)
from .logging_config import LOGGER
from .models import CAMaterial, IssuanceResult
from .openssl_client import OpenSSLClient
from .request_config import RequestConfig, build_config
from .signing import select_signing_invocation

PASSWORD_FILE_NAME = "cert-password.txt"


@dataclass(frozen=True)
class IssuanceRequest:
    """Normalized user choices for one certificate."""

    target: CertificateTarget
    subject: SubjectIdentity = field(default_factory=SubjectIdentity)
    policy: ExtensionPolicy = ExtensionPolicy.NONE
    key_algorithm: KeyAlgorithm = field(default_factory=RSAKey)
    app_type: AppType = AppType.GENERAL
    validity: ValidityPeriod = field(default_factory=ValidityPeriod)
    use_ca: bool = False
    password: str | None = None

    def __post_init__(self) -> None:
        if self.app_type.needs_pkcs12 and not self.password:
            raise ValueError("a PKCS#12 password is required for ASP.NET certificates")


@dataclass
class IssuanceContext:
    """State handed from one step to the next."""

    request: IssuanceRequest
    work_dir: Path
    key_path: Path
    cert_path: Path
    config_path: Path
    csr_path: Path
    request_config: RequestConfig | None = None
    signing_mode: SigningMode = field(default_factory=SelfSigned)
    ca: CAMaterial | None = None
    pfx_path: Path | None = None
    password_path: Path | None = None


@dataclass(frozen=True)
class PipelineStep:
    name: str
    action: Callable[[IssuanceContext], None]


class CertificatePipeline:
    """Runs the issuance steps for a single certificate."""

    def __init__(
        self,
        config: CertgenConfig,
        client: OpenSSLClient,
        ca_manager: CAManager | None = None,
    ) -> None:
        """Initialize pipeline.

        Args:
            config: Tool configuration (output and CA locations)
            client: openssl client every step delegates to
            ca_manager: CA manager, created from ``config`` when omitted
        """
        self.config = config
        self.client = client
        self.ca_manager = ca_manager or CAManager(config, client)

    def steps_for(self, request: IssuanceRequest) -> list[PipelineStep]:
        """Return the ordered steps a request goes through."""
        steps = [
            PipelineStep("generate_key", self._generate_key),
            PipelineStep("write_request_config", self._write_request_config),
            PipelineStep("create_request", self._create_request),
        ]
        if request.use_ca:
            steps.append(PipelineStep("acquire_ca", self._acquire_ca))
        steps.append(PipelineStep("sign", self._sign))
        if request.use_ca:
            steps.append(PipelineStep("discard_ca_serial", self._discard_ca_serial))
        if request.app_type.needs_pkcs12:
            steps.append(PipelineStep("export_pkcs12", self._export_pkcs12))
            steps.append(PipelineStep("write_password", self._write_password))
        return steps

    def run(self, request: IssuanceRequest) -> IssuanceResult:
        """Issue a certificate for ``request``.

        Returns:
            IssuanceResult with artifact paths and the completed step names

        Raises:
            OpenSSLError: If any openssl invocation fails
        """
        output_dir = self.config.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)
        stem = request.target.file_stem
        completed: list[str] = []

        with tempfile.TemporaryDirectory(prefix="tls-certgen-") as scratch:
            work_dir = Path(scratch)
            context = IssuanceContext(
                request=request,
                work_dir=work_dir,
                key_path=output_dir / f"{stem}.key",
                cert_path=output_dir / f"{stem}.crt",
                config_path=work_dir / f"{stem}.conf",
                csr_path=work_dir / f"{stem}.csr",
            )

            for step in self.steps_for(request):
                LOGGER.debug("Step %s starting", step.name)
                try:
                    step.action(context)
                except Exception:
                    LOGGER.error("Step %s failed after %s", step.name, completed or "no steps")
                    raise
                completed.append(step.name)

        return IssuanceResult(
            key_path=context.key_path,
            cert_path=context.cert_path,
            pfx_path=context.pfx_path,
            password_path=context.password_path,
            ca=context.ca,
            completed_steps=completed,
        )

    def _generate_key(self, context: IssuanceContext) -> None:
        self.client.generate_key(context.key_path, context.request.key_algorithm)

    def _write_request_config(self, context: IssuanceContext) -> None:
        request = context.request
        context.request_config = build_config(
            request.target,
            request.subject,
            request.policy,
            default_bits=self.config.request_default_bits,
        )
        context.request_config.write(context.config_path)

    def _create_request(self, context: IssuanceContext) -> None:
        self.client.create_csr(context.key_path, context.csr_path, context.config_path)

    def _acquire_ca(self, context: IssuanceContext) -> None:
        context.ca = self.ca_manager.acquire(context.request.subject)
        context.signing_mode = self.ca_manager.signing_mode()

    def _sign(self, context: IssuanceContext) -> None:
        request = context.request
        invocation = select_signing_invocation(
            context.signing_mode, request.policy, request.target
        )
        LOGGER.info(
            "Signing %s (%s, extensions %s)",
            request.target.primary,
            "self-signed" if invocation.self_signed else "CA-signed",
            "applied" if invocation.apply_extensions else "not applied",
        )
        self.client.sign(
            invocation,
            csr_path=context.csr_path,
            key_path=context.key_path,
            cert_path=context.cert_path,
            config_path=context.config_path,
            days=request.validity.days,
        )

    def _discard_ca_serial(self, context: IssuanceContext) -> None:
        self.ca_manager.cleanup_serial()

    def _export_pkcs12(self, context: IssuanceContext) -> None:
        pfx_path = context.cert_path.with_suffix(".pfx")
        password = context.request.password or ""
        context.pfx_path = self.client.export_pkcs12(
            context.cert_path, context.key_path, pfx_path, password
        )

    def _write_password(self, context: IssuanceContext) -> None:
        context.password_path = write_password_file(
            self.config.output_dir / PASSWORD_FILE_NAME, context.request.password or ""
        )

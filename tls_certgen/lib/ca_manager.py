"""Local certificate authority used for CA-signed certificates."""

import shutil
import tempfile
from pathlib import Path

from .config import CASigned, CertgenConfig, SubjectIdentity
from .logging_config import LOGGER
from .models import CAMaterial
from .openssl_client import OpenSSLClient

CA_KEY_NAME = "ca.key"
CA_CERT_NAME = "ca.crt"
CA_SERIAL_NAME = "ca.srl"


class CAManager:
    """Acquire-or-create contract for the CA key/certificate pair.

    The pair lives under ``config.ca_dir`` and is shared by every run.
    Existence is the only guard; there is no lock, so concurrent runs
    against the same directory are not supported.
    """

    def __init__(self, config: CertgenConfig, client: OpenSSLClient) -> None:
        """Initialize CA manager.

        Args:
            config: Tool configuration with CA directory and parameters
            client: openssl client used to generate missing material
        """
        self.config = config
        self.client = client

    @property
    def key_path(self) -> Path:
        return self.config.ca_dir / CA_KEY_NAME

    @property
    def cert_path(self) -> Path:
        return self.config.ca_dir / CA_CERT_NAME

    def exists(self) -> bool:
        return self.key_path.is_file() and self.cert_path.is_file()

    def signing_mode(self) -> CASigned:
        return CASigned(ca_cert=self.cert_path, ca_key=self.key_path)

    def acquire(self, subject: SubjectIdentity) -> CAMaterial:
        """Return the CA pair, generating both files if either is missing.

        Args:
            subject: Subject fields for a newly generated CA certificate

        Returns:
            CAMaterial pointing at the CA key and certificate

        Raises:
            OpenSSLError: If generating the pair fails
        """
        if self.exists():
            LOGGER.info("Reusing CA from %s", self.config.ca_dir)
            return CAMaterial(key_path=self.key_path, cert_path=self.cert_path, created=False)

        LOGGER.info("Generating Certificate Authority in %s", self.config.ca_dir)
        self.config.ca_dir.mkdir(parents=True, exist_ok=True)

        # Both files are produced in a staging directory and only then moved
        # over whatever is left in the CA directory.
        with tempfile.TemporaryDirectory(
            prefix=".ca-staging-", dir=self.config.ca_dir
        ) as staging:
            staged_key = Path(staging) / CA_KEY_NAME
            staged_cert = Path(staging) / CA_CERT_NAME
            self.client.generate_ca(
                key_path=staged_key,
                cert_path=staged_cert,
                subj=subject.to_subj(self.config.ca_common_name),
                key_size=self.config.ca_key_size,
                days=self.config.ca_validity_days,
            )
            staged_key.chmod(0o600)
            shutil.move(str(staged_key), self.key_path)
            shutil.move(str(staged_cert), self.cert_path)

        LOGGER.info("CA files created in %s", self.config.ca_dir)
        return CAMaterial(key_path=self.key_path, cert_path=self.cert_path, created=True)

    def cleanup_serial(self) -> None:
        """Remove the serial file left behind by ``-CAcreateserial``."""
        (self.config.ca_dir / CA_SERIAL_NAME).unlink(missing_ok=True)

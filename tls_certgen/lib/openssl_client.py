"""Client for the openssl command-line tool."""

import subprocess
from pathlib import Path

from .config import ECKey, KeyAlgorithm, RSAKey
from .logging_config import LOGGER
from .signing import SigningInvocation


def redact(command: list[str]) -> list[str]:
    """Mask ``pass:`` password arguments for logs and error messages."""
    return ["pass:****" if arg.startswith("pass:") else arg for arg in command]


class OpenSSLError(RuntimeError):
    """An openssl invocation could not be started or exited non-zero."""

    def __init__(self, command: list[str], returncode: int | None, stderr: str = "") -> None:
        self.command = redact(command)
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(
            f"command failed with exit status {returncode}: {' '.join(self.command)}{detail}"
        )


class OpenSSLClient:
    """Runs openssl subcommands synchronously (each call runs once, no retries)."""

    def __init__(self, binary: str = "openssl") -> None:
        """Initialize openssl client.

        Args:
            binary: Name or path of the openssl executable
        """
        self.binary = binary

    def run(self, args: list[str]) -> str:
        """Run ``openssl <args>`` and return its stdout.

        Raises:
            OpenSSLError: If the binary is missing or exits non-zero
        """
        command = [self.binary, *args]
        LOGGER.debug("Running: %s", " ".join(redact(command)))
        try:
            completed = subprocess.run(command, check=True, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise OpenSSLError(command, None, str(e)) from e
        except subprocess.CalledProcessError as e:
            raise OpenSSLError(command, e.returncode, e.stderr or "") from e
        return completed.stdout

    def generate_key(self, key_path: Path, algorithm: KeyAlgorithm) -> Path:
        """Generate an RSA or EC private key in PEM format."""
        if isinstance(algorithm, ECKey):
            self.run(["ecparam", "-genkey", "-name", algorithm.curve_name, "-out", str(key_path)])
        elif isinstance(algorithm, RSAKey):
            self.run(["genrsa", "-out", str(key_path), str(algorithm.bits)])
        else:
            raise TypeError(f"unsupported key algorithm: {algorithm!r}")
        return key_path

    def create_csr(self, key_path: Path, csr_path: Path, config_path: Path) -> Path:
        """Create a certificate signing request from a key and request config."""
        self.run(
            [
                "req",
                "-new",
                "-key",
                str(key_path),
                "-out",
                str(csr_path),
                "-config",
                str(config_path),
            ]
        )
        return csr_path

    def sign(
        self,
        invocation: SigningInvocation,
        csr_path: Path,
        key_path: Path,
        cert_path: Path,
        config_path: Path,
        days: int,
    ) -> Path:
        """Sign a request, self-signed or with the CA, per ``invocation``."""
        self.run(invocation.to_args(csr_path, key_path, cert_path, config_path, days))
        return cert_path

    def export_pkcs12(
        self, cert_path: Path, key_path: Path, pfx_path: Path, password: str
    ) -> Path:
        """Bundle certificate and key into a password-protected PKCS#12 file."""
        self.run(
            [
                "pkcs12",
                "-export",
                "-out",
                str(pfx_path),
                "-inkey",
                str(key_path),
                "-in",
                str(cert_path),
                "-password",
                f"pass:{password}",
            ]
        )
        return pfx_path

    def generate_ca(
        self,
        key_path: Path,
        cert_path: Path,
        subj: str,
        key_size: int,
        days: int,
    ) -> tuple[Path, Path]:
        """Generate an RSA CA key and a self-signed CA certificate from it."""
        self.generate_key(key_path, RSAKey(key_size))
        self.run(
            [
                "req",
                "-new",
                "-x509",
                "-days",
                str(days),
                "-key",
                str(key_path),
                "-out",
                str(cert_path),
                "-subj",
                subj,
            ]
        )
        return key_path, cert_path

"""Tests for openssl client module."""

import subprocess
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from tls_certgen.lib.config import CASigned, ECKey, RSAKey
from tls_certgen.lib.openssl_client import OpenSSLClient, OpenSSLError, redact
from tls_certgen.lib.signing import SigningInvocation


@pytest.fixture
def mock_run() -> Generator[MagicMock]:
    with patch("tls_certgen.lib.openssl_client.subprocess.run") as mock:
        mock.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        yield mock


def _command(mock_run: MagicMock, call: int = 0) -> list[str]:
    return mock_run.call_args_list[call][0][0]


class TestRun:
    """Tests for OpenSSLClient.run."""

    def test_prefixes_binary_and_checks_exit_status(self, mock_run: MagicMock) -> None:
        OpenSSLClient("/usr/bin/openssl").run(["version"])

        mock_run.assert_called_once_with(
            ["/usr/bin/openssl", "version"], check=True, capture_output=True, text=True
        )

    def test_returns_stdout(self, mock_run: MagicMock) -> None:
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="OpenSSL 3.0.13\n", stderr=""
        )

        assert OpenSSLClient().run(["version"]) == "OpenSSL 3.0.13\n"

    def test_non_zero_exit_raises_openssl_error(self, mock_run: MagicMock) -> None:
        """Exit status and stderr of the failed command are carried verbatim."""
        mock_run.side_effect = subprocess.CalledProcessError(
            1, ["openssl", "genrsa"], stderr="genrsa: bad key size\n"
        )

        with pytest.raises(OpenSSLError, match="bad key size") as exc_info:
            OpenSSLClient().run(["genrsa", "-out", "a.key", "12"])

        assert exc_info.value.returncode == 1
        assert exc_info.value.command == ["openssl", "genrsa", "-out", "a.key", "12"]
        assert isinstance(exc_info.value.__cause__, subprocess.CalledProcessError)

    def test_missing_binary_raises_openssl_error(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = FileNotFoundError(2, "No such file or directory", "nope")

        with pytest.raises(OpenSSLError) as exc_info:
            OpenSSLClient("nope").run(["version"])

        assert exc_info.value.returncode is None

    def test_error_message_hides_password(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = subprocess.CalledProcessError(1, [], stderr="")

        with pytest.raises(OpenSSLError) as exc_info:
            OpenSSLClient().run(["pkcs12", "-password", "pass:s3cret"])

        assert "s3cret" not in str(exc_info.value)
        assert "pass:****" in exc_info.value.command

    def test_runs_once_without_retry(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = subprocess.CalledProcessError(1, [], stderr="")

        with pytest.raises(OpenSSLError):
            OpenSSLClient().run(["req"])

        assert mock_run.call_count == 1


class TestCommands:
    """Tests for the argument lists of each delegated operation."""

    def test_generate_rsa_key(self, mock_run: MagicMock) -> None:
        OpenSSLClient().generate_key(Path("a.key"), RSAKey(4096))

        assert _command(mock_run) == ["openssl", "genrsa", "-out", "a.key", "4096"]

    def test_generate_ec_key(self, mock_run: MagicMock) -> None:
        OpenSSLClient().generate_key(Path("a.key"), ECKey("secp384r1"))

        assert _command(mock_run) == [
            "openssl", "ecparam", "-genkey", "-name", "secp384r1", "-out", "a.key",
        ]  # fmt: skip

    def test_generate_key_rejects_unknown_algorithm(self, mock_run: MagicMock) -> None:
        with pytest.raises(TypeError):
            OpenSSLClient().generate_key(Path("a.key"), "dsa")  # type: ignore[arg-type]

        mock_run.assert_not_called()

    def test_create_csr(self, mock_run: MagicMock) -> None:
        OpenSSLClient().create_csr(Path("a.key"), Path("a.csr"), Path("a.conf"))

        assert _command(mock_run) == [
            "openssl", "req", "-new", "-key", "a.key", "-out", "a.csr", "-config", "a.conf",
        ]  # fmt: skip

    def test_sign_uses_invocation_args(self, mock_run: MagicMock) -> None:
        invocation = SigningInvocation(
            ca=CASigned(ca_cert=Path("ca.crt"), ca_key=Path("ca.key")), apply_extensions=True
        )

        OpenSSLClient().sign(
            invocation, Path("a.csr"), Path("a.key"), Path("a.crt"), Path("a.conf"), 30
        )

        command = _command(mock_run)
        assert command[:3] == ["openssl", "x509", "-req"]
        assert command[command.index("-CA") + 1] == "ca.crt"
        assert command[-2:] == ["-extfile", "a.conf"]

    def test_export_pkcs12(self, mock_run: MagicMock) -> None:
        result = OpenSSLClient().export_pkcs12(
            Path("a.crt"), Path("a.key"), Path("a.pfx"), "s3cret"
        )

        assert result == Path("a.pfx")
        assert _command(mock_run) == [
            "openssl", "pkcs12", "-export", "-out", "a.pfx",
            "-inkey", "a.key", "-in", "a.crt", "-password", "pass:s3cret",
        ]  # fmt: skip

    def test_generate_ca_runs_key_then_certificate(self, mock_run: MagicMock) -> None:
        OpenSSLClient().generate_ca(
            Path("ca.key"), Path("ca.crt"), "/C=US/CN=Local Certificate Authority", 4096, 3650
        )

        assert _command(mock_run, 0) == ["openssl", "genrsa", "-out", "ca.key", "4096"]
        assert _command(mock_run, 1) == [
            "openssl", "req", "-new", "-x509", "-days", "3650",
            "-key", "ca.key", "-out", "ca.crt",
            "-subj", "/C=US/CN=Local Certificate Authority",
        ]  # fmt: skip

    def test_generate_ca_stops_when_key_fails(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = subprocess.CalledProcessError(1, [], stderr="")

        with pytest.raises(OpenSSLError):
            OpenSSLClient().generate_ca(Path("ca.key"), Path("ca.crt"), "/CN=x", 4096, 3650)

        assert mock_run.call_count == 1


def test_redact_masks_only_password_arguments() -> None:
    assert redact(["pkcs12", "-password", "pass:abc", "-in", "a.crt"]) == [
        "pkcs12", "-password", "pass:****", "-in", "a.crt",
    ]  # fmt: skip

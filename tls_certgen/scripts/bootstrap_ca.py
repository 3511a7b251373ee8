#!/usr/bin/env python3
"""Create the local CA key and certificate, or reuse the existing pair."""

import argparse
import sys
from pathlib import Path

from tls_certgen.lib.ca_manager import CAManager
from tls_certgen.lib.cert_utils import extract_certificate_summary, load_certificate
from tls_certgen.lib.config import CertgenConfig, SubjectIdentity
from tls_certgen.lib.logging_config import LOGGER
from tls_certgen.lib.openssl_client import OpenSSLClient


def main(argv: list[str] | None = None) -> int:
    """Acquire the CA pair.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    defaults = SubjectIdentity()
    config = CertgenConfig()

    parser = argparse.ArgumentParser(description="Create or reuse the local certificate authority")
    parser.add_argument(
        "--ca-dir",
        type=Path,
        default=config.ca_dir,
        help=f"Directory for the CA key and certificate (default: {config.ca_dir})",
    )
    parser.add_argument("--country", default=defaults.country)
    parser.add_argument("--state", default=defaults.state)
    parser.add_argument("--locality", default=defaults.locality)
    parser.add_argument("--organization", default=defaults.organization)
    parser.add_argument("--openssl", default=config.openssl_binary, help="openssl executable")
    args = parser.parse_args(argv)

    try:
        config = CertgenConfig(ca_dir=args.ca_dir, openssl_binary=args.openssl)
        ca_manager = CAManager(config, OpenSSLClient(config.openssl_binary))

        material = ca_manager.acquire(
            SubjectIdentity(
                country=args.country,
                state=args.state,
                locality=args.locality,
                organization=args.organization,
            )
        )

        summary = extract_certificate_summary(load_certificate(material.cert_path))
        LOGGER.info("CA %s:", "created" if material.created else "reused")
        LOGGER.info("  Key: %s", material.key_path)
        LOGGER.info("  Cert: %s", material.cert_path)
        LOGGER.info("  Serial: %s", summary["serialNumber"])
        LOGGER.info("  Valid until: %s", summary["notAfter"])
        return 0

    except Exception as e:
        LOGGER.error("CA bootstrap failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

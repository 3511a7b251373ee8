#!/usr/bin/env python3
"""Generate a TLS certificate for ASP.NET Core, Nginx or general use via openssl."""

import argparse
import sys
from pathlib import Path

from tls_certgen.lib.cert_utils import (
    extract_certificate_summary,
    generate_password,
    load_certificate,
    parse_alternates,
)
from tls_certgen.lib.config import (
    DEFAULT_DOMAIN,
    DEFAULT_IP_ADDRESS,
    KEY_ALGORITHM_PRESETS,
    AppType,
    CertgenConfig,
    CertificateTarget,
    DomainTarget,
    ExtensionPolicy,
    IPAddressTarget,
    SubjectIdentity,
    ValidityPeriod,
)
from tls_certgen.lib.logging_config import LOGGER, set_verbose
from tls_certgen.lib.models import IssuanceResult
from tls_certgen.lib.openssl_client import OpenSSLClient, OpenSSLError
from tls_certgen.lib.pipeline import CertificatePipeline, IssuanceRequest


def positive_days(value: str) -> int:
    """argparse type for the validity period."""
    try:
        return ValidityPeriod(int(value)).days
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from e


def build_parser() -> argparse.ArgumentParser:
    defaults = SubjectIdentity()
    config = CertgenConfig()

    parser = argparse.ArgumentParser(
        description="Generate self-signed or CA-signed TLS certificates with openssl"
    )
    parser.add_argument(
        "--cert-type",
        choices=["domain", "ip"],
        required=True,
        help="Issue the certificate for a domain name or an IP address",
    )
    parser.add_argument(
        "--app-type",
        choices=[app.value for app in AppType],
        default=AppType.GENERAL.value,
        help="aspnet also produces a PKCS#12 bundle (default: general)",
    )
    parser.add_argument("--domain", default=DEFAULT_DOMAIN, help=f"(default: {DEFAULT_DOMAIN})")
    parser.add_argument(
        "--ip", default=DEFAULT_IP_ADDRESS, help=f"(default: {DEFAULT_IP_ADDRESS})"
    )
    parser.add_argument(
        "--alt-names",
        default="",
        help="Comma-separated additional names or addresses (used with san/both)",
    )
    parser.add_argument(
        "--extensions",
        choices=[policy.value for policy in ExtensionPolicy],
        default=ExtensionPolicy.NONE.value,
        help="san, eku (extended key usage), both, or none (default: none)",
    )
    parser.add_argument(
        "--key-algorithm",
        choices=sorted(KEY_ALGORITHM_PRESETS),
        default="rsa2048",
        help="rsa2048, rsa4096 or ec (secp384r1) (default: rsa2048)",
    )
    parser.add_argument(
        "--days", type=positive_days, default=365, help="Validity in days (default: 365)"
    )
    parser.add_argument(
        "--use-ca", action="store_true", help="Sign with the local CA, creating it if needed"
    )
    parser.add_argument(
        "--password",
        help="PKCS#12 password for aspnet (default: generate a random one)",
    )
    parser.add_argument("--country", default=defaults.country)
    parser.add_argument("--state", default=defaults.state)
    parser.add_argument("--locality", default=defaults.locality)
    parser.add_argument("--organization", default=defaults.organization)
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=config.output_dir,
        help=f"Output directory for certificate artifacts (default: {config.output_dir})",
    )
    parser.add_argument(
        "--ca-dir",
        type=Path,
        default=config.ca_dir,
        help=f"Directory holding the reusable CA pair (default: {config.ca_dir})",
    )
    parser.add_argument("--openssl", default=config.openssl_binary, help="openssl executable")
    parser.add_argument("--verbose", action="store_true", help="Log every openssl command")
    return parser


def build_target(args: argparse.Namespace, policy: ExtensionPolicy) -> CertificateTarget:
    """Build the target, keeping alternates only when SANs were requested."""
    alternates = parse_alternates(args.alt_names) if policy.includes_san else ()
    if args.cert_type == "domain":
        return DomainTarget(args.domain or DEFAULT_DOMAIN, alternates)
    if args.cert_type == "ip":
        return IPAddressTarget(args.ip or DEFAULT_IP_ADDRESS, alternates)
    raise ValueError(f"invalid certificate type: {args.cert_type!r}")


def log_result(result: IssuanceResult) -> None:
    if result.pfx_path is not None:
        LOGGER.info("Certificate bundle created at: %s", result.pfx_path)
    LOGGER.info("Certificate: %s", result.cert_path)
    LOGGER.info("Private key: %s", result.key_path)
    if result.password_path is not None:
        LOGGER.info("Password saved to %s for your reference", result.password_path)

    summary = extract_certificate_summary(load_certificate(result.cert_path))
    LOGGER.info("  Subject: %s", summary["subject"])
    LOGGER.info("  Issuer: %s", summary["issuer"])
    LOGGER.info("  Serial: %s", summary["serialNumber"])
    LOGGER.info("  Valid until: %s", summary["notAfter"])
    if summary["dnsNames"] or summary["ipAddresses"]:
        LOGGER.info("  SANs: %s", ", ".join(summary["dnsNames"] + summary["ipAddresses"]))

    if result.ca is not None:
        LOGGER.info("To trust this certificate, install the CA certificate %s", result.ca.cert_path)
        LOGGER.info("Keep the CA private key %s secure", result.ca.key_path)
        LOGGER.info(
            "On Linux: sudo cp %s /usr/local/share/ca-certificates/ && sudo update-ca-certificates",
            result.ca.cert_path,
        )


def main(argv: list[str] | None = None) -> int:
    """Generate a certificate from command-line choices.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args(argv)
    set_verbose(args.verbose)

    try:
        policy = ExtensionPolicy(args.extensions)
        app_type = AppType(args.app_type)
        target = build_target(args, policy)

        password = args.password
        if app_type.needs_pkcs12 and not password:
            password = generate_password(CertgenConfig.password_length)
            LOGGER.info("Generated password: %s", password)
            LOGGER.info("Save this password for your ASP.NET Core application")

        request = IssuanceRequest(
            target=target,
            subject=SubjectIdentity(
                country=args.country or SubjectIdentity.country,
                state=args.state or SubjectIdentity.state,
                locality=args.locality or SubjectIdentity.locality,
                organization=args.organization or SubjectIdentity.organization,
            ),
            policy=policy,
            key_algorithm=KEY_ALGORITHM_PRESETS[args.key_algorithm],
            app_type=app_type,
            validity=ValidityPeriod(args.days),
            use_ca=args.use_ca,
            password=password if app_type.needs_pkcs12 else None,
        )
        config = CertgenConfig(
            output_dir=args.output_dir,
            ca_dir=args.ca_dir,
            openssl_binary=args.openssl,
        )

        LOGGER.info("Generating certificate for %s: %s", args.cert_type, target.primary)
        pipeline = CertificatePipeline(config, OpenSSLClient(config.openssl_binary))
        result = pipeline.run(request)

        log_result(result)
        LOGGER.info("Certificate generation completed successfully")
        return 0

    except OpenSSLError as e:
        LOGGER.error("openssl failed: %s", e)
        return 1
    except Exception as e:
        LOGGER.error("Certificate generation failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

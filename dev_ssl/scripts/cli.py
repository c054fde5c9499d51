#!/usr/bin/env python3
"""Command line entry point for the local development CA."""

import argparse
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from dev_ssl.lib.artifact_store import SERVER_CERT, FileArtifactStore
from dev_ssl.lib.cert_utils import deserialize_certificate
from dev_ssl.lib.certificate_issuer import CertificateIssuer
from dev_ssl.lib.certificate_text import render_certificate_text
from dev_ssl.lib.config import DIRECTORY_ENV_VAR, SslSettings
from dev_ssl.lib.config_store import DEFAULT_CONFIG, ConfigStore
from dev_ssl.lib.ephemeral_secret import EphemeralSecret
from dev_ssl.lib.errors import ArtifactMissingError
from dev_ssl.lib.keychain import add_ca_to_keychain
from dev_ssl.lib.logging_config import LOGGER
from dev_ssl.lib.san_extension import SanExtensionBuilder

# CSR template key -> (command line flag, interactive question)
CONFIG_FIELDS = {
    "C": ("country", "Enter the country of your organization"),
    "ST": ("state", "Enter the state or province of your organization"),
    "L": ("locality", "Enter the city of your organization"),
    "O": ("organization", "Enter your organization name"),
    "emailAddress": ("email", "Enter your email"),
    "CN": ("common_name", "Enter your local SSL domain"),
}


def ask(question: str) -> str:
    """Prompt on stdout and read one line from stdin."""
    print(question)
    return sys.stdin.readline().strip()


def setup(args: argparse.Namespace, settings: SslSettings) -> None:
    """Create the working directory."""
    directory = Path(args.directory) if args.directory else settings.directory
    directory.mkdir(parents=True, exist_ok=True)
    LOGGER.info("Using SSL directory %s", directory)


def generate_config(
    args: argparse.Namespace,
    settings: SslSettings,
    prompt: Callable[[str], str] = ask,
) -> None:
    """Collect distinguished name fields and write server.csr.cnf.

    Flags take precedence; interactive mode asks for the remaining fields and
    blank answers fall back to defaults.
    """
    config_store = ConfigStore(FileArtifactStore(settings.directory))
    if args.force:
        config_store.reset()

    overrides = {}
    for key, (flag, question) in CONFIG_FIELDS.items():
        value = getattr(args, flag)
        if value is None and not args.non_interactive:
            value = prompt(f"{question} [{DEFAULT_CONFIG[key]}]")
        if value is not None:
            overrides[key] = value

    if config_store.exists():
        LOGGER.warning("Keeping existing server.csr.cnf; pass --force to replace it")
    config_store.persist(config_store.resolve(overrides))


def generate_v3_ext_file(args: argparse.Namespace, settings: SslSettings) -> None:
    """Rewrite v3.ext from server.csr.cnf."""
    store = FileArtifactStore(settings.directory)
    spec = SanExtensionBuilder(store, ConfigStore(store)).regenerate()
    LOGGER.info("Subject alternative names: %s", spec.dns_names + spec.ip_addresses)


def generate_certificates(args: argparse.Namespace, settings: SslSettings) -> None:
    """Create the root CA if needed and issue server.key/server.crt."""
    issuer = CertificateIssuer(FileArtifactStore(settings.directory), settings)
    with EphemeralSecret().session() as secret:
        result = issuer.issue(secret, emit_pem_bundle=args.pem_file)
    LOGGER.info("Issued %s for %s (serial %s)", result.cert_name, result.common_name, result.serial_number)


def display_certificate(args: argparse.Namespace, settings: SslSettings) -> None:
    """Print server.crt as text."""
    store = FileArtifactStore(settings.directory)
    if not store.exists(SERVER_CERT):
        raise ArtifactMissingError("Certificate missing. Have you generated the certificate already?")
    print(render_certificate_text(deserialize_certificate(store.read(SERVER_CERT))), end="")


def add_to_keychain(args: argparse.Namespace, settings: SslSettings) -> None:
    """Trust rootCA.pem in the macOS system keychain."""
    add_ca_to_keychain(settings.directory)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dev-ssl",
        description="Local development certificate authority",
    )
    parser.add_argument(
        "--dir",
        type=Path,
        dest="working_dir",
        help=f"SSL working directory (default: ${DIRECTORY_ENV_VAR} or ./ssl)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup", help="Create the SSL directory")
    setup_parser.add_argument("directory", nargs="?", help="Directory to create")
    setup_parser.set_defaults(handler=setup)

    config_parser = subparsers.add_parser(
        "generate_config", help="Configure certificate information"
    )
    config_parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Do not prompt; use flags and defaults",
    )
    config_parser.add_argument(
        "--force",
        action="store_true",
        help="Replace an existing server.csr.cnf",
    )
    for key, (flag, _question) in CONFIG_FIELDS.items():
        config_parser.add_argument(
            f"--{flag.replace('_', '-')}",
            dest=flag,
            help=f"{key} field (default: {DEFAULT_CONFIG[key]})",
        )
    config_parser.set_defaults(handler=generate_config)

    ext_parser = subparsers.add_parser(
        "generate_v3_ext_file", help="Generate subject alternative name extension file"
    )
    ext_parser.set_defaults(handler=generate_v3_ext_file)

    certs_parser = subparsers.add_parser("generate_certificates", help="Generate SSL certificates")
    certs_parser.add_argument(
        "--pem-file",
        action="store_true",
        help="Also write server.pem with certificate and key",
    )
    certs_parser.set_defaults(handler=generate_certificates)

    display_parser = subparsers.add_parser(
        "display_certificate", help="Display the information in your SSL certificate"
    )
    display_parser.set_defaults(handler=display_certificate)

    keychain_parser = subparsers.add_parser(
        "add_ca_to_keychain",
        help="Add the root CA to the OS X keychain (requires admin privileges)",
    )
    keychain_parser.set_defaults(handler=add_to_keychain)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run one command.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args(argv)
    settings = SslSettings.from_env(args.working_dir)

    try:
        args.handler(args, settings)
        return 0

    except Exception as e:
        LOGGER.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Installing the root CA into the macOS system keychain."""

import subprocess
from pathlib import Path

from .artifact_store import CA_CERT
from .errors import ArtifactMissingError
from .logging_config import LOGGER

SYSTEM_KEYCHAIN = "/Library/Keychains/System.keychain"


def add_ca_to_keychain(directory: Path) -> None:
    """Mark rootCA.pem as a trusted root in the system keychain.

    Requires admin privileges; sudo prompts on the terminal.

    Raises:
        ArtifactMissingError: If rootCA.pem does not exist
        subprocess.CalledProcessError: If the security tool fails
    """
    ca_cert_path = Path(directory) / CA_CERT
    if not ca_cert_path.is_file():
        raise ArtifactMissingError(f"{ca_cert_path} missing. Run generate_certificates first")

    LOGGER.info("Adding %s to system keychain", CA_CERT)
    subprocess.run(
        [
            "sudo",
            "-p",
            "sudo password:",
            "security",
            "add-trusted-cert",
            "-d",
            "-r",
            "trustRoot",
            "-k",
            SYSTEM_KEYCHAIN,
            str(ca_cert_path),
        ],
        check=True,
    )

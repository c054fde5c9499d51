"""Result models for dev SSL operations."""

from dataclasses import dataclass


@dataclass
class CAKeyPair:
    """Root CA artifacts in the working directory.

    The created flags report whether this invocation generated the artifact
    or reused one that already existed.
    """

    key_name: str
    cert_name: str
    key_created: bool
    cert_created: bool


@dataclass
class LeafCertificate:
    """Signed server certificate artifacts.

    Contains artifact names, the asserted hostname and the hex serial number.
    """

    key_name: str
    cert_name: str
    common_name: str
    serial_number: str
    bundle_name: str | None = None

"""Settings and distinguished name dataclasses."""

import os
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.x509 import oid

DEFAULT_DIRECTORY_NAME = "ssl"
DIRECTORY_ENV_VAR = "DEV_SSL_DIR"
ORGANIZATIONAL_UNIT = "Test Domain"


@dataclass
class SslSettings:
    """Key sizes and validity windows for the dev CA and its leaf certificate."""

    directory: Path = Path(DEFAULT_DIRECTORY_NAME)
    ca_key_size: int = 2048
    ca_validity_days: int = 1024
    leaf_key_size: int = 2048
    leaf_validity_days: int = 500

    @classmethod
    def from_env(cls, directory: Path | None = None) -> "SslSettings":
        """Build settings, resolving the working directory.

        Precedence: explicit argument, then $DEV_SSL_DIR, then ./ssl.
        """
        if directory is None:
            env_dir = os.environ.get(DIRECTORY_ENV_VAR)
            directory = Path(env_dir) if env_dir else Path.cwd() / DEFAULT_DIRECTORY_NAME
        return cls(directory=Path(directory))


@dataclass(frozen=True)
class DistinguishedNameConfig:
    """Subject fields written to server.csr.cnf and embedded in every certificate."""

    country: str
    state: str
    locality: str
    organization: str
    email_address: str
    common_name: str

    # Field name -> key used in the [dn] section of server.csr.cnf
    FIELD_KEYS = {
        "country": "C",
        "state": "ST",
        "locality": "L",
        "organization": "O",
        "email_address": "emailAddress",
        "common_name": "CN",
    }

    def to_dn_section(self) -> dict[str, str]:
        """Return the ordered [dn] section, including the fixed OU."""
        return {
            "C": self.country,
            "ST": self.state,
            "L": self.locality,
            "O": self.organization,
            "OU": ORGANIZATIONAL_UNIT,
            "emailAddress": self.email_address,
            "CN": self.common_name,
        }

    @classmethod
    def from_dn_section(cls, section: dict[str, str]) -> "DistinguishedNameConfig":
        """Build from a parsed [dn] section keyed by C/ST/L/O/emailAddress/CN."""
        return cls(**{field: section.get(key, "") for field, key in cls.FIELD_KEYS.items()})

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name for certificate generation."""
        return x509.Name(
            [
                x509.NameAttribute(oid.NameOID.COUNTRY_NAME, self.country),
                x509.NameAttribute(oid.NameOID.STATE_OR_PROVINCE_NAME, self.state),
                x509.NameAttribute(oid.NameOID.LOCALITY_NAME, self.locality),
                x509.NameAttribute(oid.NameOID.ORGANIZATION_NAME, self.organization),
                x509.NameAttribute(oid.NameOID.ORGANIZATIONAL_UNIT_NAME, ORGANIZATIONAL_UNIT),
                x509.NameAttribute(oid.NameOID.EMAIL_ADDRESS, self.email_address),
                x509.NameAttribute(oid.NameOID.COMMON_NAME, self.common_name),
            ]
        )

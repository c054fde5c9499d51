"""Distinguished name configuration persisted as the CSR template."""

from collections.abc import Mapping

from .artifact_store import CSR_CONFIG, ArtifactStore
from .config import DistinguishedNameConfig
from .errors import ArtifactMissingError, ConfigurationError
from .logging_config import LOGGER
from .openssl_conf import parse_openssl_config

DEFAULT_CONFIG = {
    "C": "US",
    "ST": "California",
    "L": "San Francisco",
    "O": "My Organization",
    "emailAddress": "dev-ssl-user@example.com",
    "CN": "localhost.ssl",
}

CSR_TEMPLATE = """\
[req]
default_bits = 2048
prompt = no
default_md = sha256
distinguished_name = dn

[dn]
{dn}
"""


class ConfigStore:
    """Resolves and persists the DistinguishedNameConfig for a working directory."""

    def __init__(self, store: ArtifactStore) -> None:
        self.store = store

    def exists(self) -> bool:
        return self.store.exists(CSR_CONFIG)

    def load(self) -> DistinguishedNameConfig:
        """Parse the persisted server.csr.cnf.

        Raises:
            ArtifactMissingError: If server.csr.cnf does not exist
            ConfigurationError: If the template has no [dn] section or a blank field
        """
        if not self.exists():
            raise ArtifactMissingError(f"{CSR_CONFIG} missing. Run generate_config first")

        try:
            sections = parse_openssl_config(self.store.read_text(CSR_CONFIG))
        except ValueError as e:
            raise ConfigurationError(f"{CSR_CONFIG} is not readable: {e}") from e

        if "dn" not in sections:
            raise ConfigurationError(f"{CSR_CONFIG} has no [dn] section")

        blank = [key for key in DEFAULT_CONFIG if not sections["dn"].get(key)]
        if blank:
            raise ConfigurationError(f"{CSR_CONFIG} has blank distinguished name fields: {blank}")
        return DistinguishedNameConfig.from_dn_section(sections["dn"])

    def resolve(
        self,
        overrides: Mapping[str, str] | None = None,
        use_defaults: bool = True,
    ) -> DistinguishedNameConfig:
        """Return the effective configuration.

        A persisted template always wins and overrides are ignored. Otherwise
        overrides (keyed C/ST/L/O/emailAddress/CN) are merged over the
        defaults, with blank strings treated as absent.

        Args:
            overrides: User-supplied DN fields
            use_defaults: Fill absent fields from DEFAULT_CONFIG. When False,
                absent fields are a ConfigurationError.

        Returns:
            Complete DistinguishedNameConfig
        """
        if self.exists():
            return self.load()

        supplied = {key: value for key, value in (overrides or {}).items() if value.strip()}
        unknown = set(supplied) - set(DEFAULT_CONFIG)
        if unknown:
            raise ConfigurationError(f"unknown distinguished name fields: {sorted(unknown)}")

        if use_defaults:
            merged = {**DEFAULT_CONFIG, **supplied}
        else:
            missing = [key for key in DEFAULT_CONFIG if key not in supplied]
            if missing:
                raise ConfigurationError(f"distinguished name incomplete, missing: {missing}")
            merged = supplied

        # "#" starts a comment and a newline ends the entry in server.csr.cnf
        unsafe = [key for key, value in merged.items() if "#" in value or "\n" in value]
        if unsafe:
            raise ConfigurationError(f"values cannot contain '#' or line breaks: {unsafe}")

        if len(merged["C"]) != 2:
            raise ConfigurationError(f"country must be a 2 letter code, got {merged['C']!r}")

        return DistinguishedNameConfig.from_dn_section(merged)

    def persist(self, config: DistinguishedNameConfig) -> None:
        """Write config into server.csr.cnf, the CSR template used by every signing step."""
        LOGGER.info("Writing %s", CSR_CONFIG)
        dn = "\n".join(f"{key}={value}" for key, value in config.to_dn_section().items())
        self.store.write_text(CSR_CONFIG, CSR_TEMPLATE.format(dn=dn))

    def reset(self) -> None:
        """Delete the persisted template so the next resolve honours new overrides."""
        if self.exists():
            LOGGER.info("Removing %s", CSR_CONFIG)
            self.store.delete(CSR_CONFIG)

"""Subject Alternative Name extension file (v3.ext) for the leaf certificate."""

import ipaddress
from dataclasses import dataclass, field

from cryptography import x509

from .artifact_store import CSR_CONFIG, V3_EXT, ArtifactStore
from .config import DistinguishedNameConfig
from .config_store import ConfigStore
from .errors import ConfigurationError
from .logging_config import LOGGER
from .openssl_conf import DEFAULT_SECTION, parse_openssl_config

DEFAULT_KEY_USAGE = ("digitalSignature", "nonRepudiation", "keyEncipherment", "dataEncipherment")

# OpenSSL keyUsage names -> cryptography KeyUsage arguments
KEY_USAGE_NAMES = {
    "digitalSignature": "digital_signature",
    "nonRepudiation": "content_commitment",
    "keyEncipherment": "key_encipherment",
    "dataEncipherment": "data_encipherment",
    "keyAgreement": "key_agreement",
    "keyCertSign": "key_cert_sign",
    "cRLSign": "crl_sign",
    "encipherOnly": "encipher_only",
    "decipherOnly": "decipher_only",
}

V3_EXT_TEMPLATE = """\
authorityKeyIdentifier=keyid,issuer
basicConstraints=CA:FALSE
keyUsage = {key_usage}
subjectAltName = @alt_names

[alt_names]
{alt_names}
"""


@dataclass
class SanExtensionSpec:
    """Extensions applied when the CA signs the leaf certificate."""

    dns_names: list[str]
    ip_addresses: list[str] = field(default_factory=list)
    key_usage: tuple[str, ...] = DEFAULT_KEY_USAGE
    ca: bool = False
    authority_key_identifier: bool = True

    def render(self) -> str:
        """Render as v3.ext text."""
        alt_names = [f"DNS.{i} = {name}" for i, name in enumerate(self.dns_names, start=1)]
        alt_names += [f"IP.{i} = {ip}" for i, ip in enumerate(self.ip_addresses, start=1)]
        return V3_EXT_TEMPLATE.format(
            key_usage=", ".join(self.key_usage),
            alt_names="\n".join(alt_names),
        )

    @classmethod
    def parse(cls, text: str) -> "SanExtensionSpec":
        """Parse v3.ext text.

        subjectAltName may point at a section (``@alt_names``) or list names
        inline (``DNS:a.test, IP:127.0.0.1``).

        Raises:
            ConfigurationError: If the file is malformed or names no hosts
        """
        try:
            sections = parse_openssl_config(text)
        except ValueError as e:
            raise ConfigurationError(f"{V3_EXT} is not readable: {e}") from e
        main = sections.get(DEFAULT_SECTION, {})

        dns_names: list[str] = []
        ip_addresses: list[str] = []
        san = main.get("subjectAltName", "").strip()
        if san.startswith("@"):
            section_name = san[1:].strip()
            if section_name not in sections:
                raise ConfigurationError(f"{V3_EXT} references missing section [{section_name}]")
            entries = [
                (key.split(".", 1)[0], value.strip())
                for key, value in sections[section_name].items()
            ]
        else:
            entries = []
            for item in san.split(","):
                kind, sep, value = item.partition(":")
                if sep:
                    entries.append((kind.strip(), value.strip()))
        for kind, value in entries:
            if kind.upper() == "DNS":
                dns_names.append(value)
            elif kind.upper() == "IP":
                ip_addresses.append(value)

        if not dns_names and not ip_addresses:
            raise ConfigurationError(f"{V3_EXT} declares no subject alternative names")

        key_usage = tuple(
            usage.strip()
            for usage in main.get("keyUsage", ", ".join(DEFAULT_KEY_USAGE)).split(",")
            if usage.strip() and usage.strip() != "critical"
        )
        unknown = [usage for usage in key_usage if usage not in KEY_USAGE_NAMES]
        if unknown:
            raise ConfigurationError(f"{V3_EXT} has unknown keyUsage values: {unknown}")

        return cls(
            dns_names=dns_names,
            ip_addresses=ip_addresses,
            key_usage=key_usage,
            ca="CA:TRUE" in main.get("basicConstraints", "").replace(" ", "").upper(),
            authority_key_identifier="authorityKeyIdentifier" in main,
        )

    def subject_alternative_name(self) -> x509.SubjectAlternativeName:
        names: list[x509.GeneralName] = [x509.DNSName(name) for name in self.dns_names]
        names += [x509.IPAddress(ipaddress.ip_address(ip)) for ip in self.ip_addresses]
        return x509.SubjectAlternativeName(names)

    def key_usage_extension(self) -> x509.KeyUsage:
        flags = {argument: False for argument in KEY_USAGE_NAMES.values()}
        for usage in self.key_usage:
            flags[KEY_USAGE_NAMES[usage]] = True
        return x509.KeyUsage(**flags)


class SanExtensionBuilder:
    """Materialises v3.ext from the persisted CSR template."""

    def __init__(self, store: ArtifactStore, config_store: ConfigStore) -> None:
        self.store = store
        self.config_store = config_store

    def ensure(self) -> SanExtensionSpec:
        """Create v3.ext if it does not exist and return its parsed content.

        CN is read from server.csr.cnf, not from an in-memory config, so the
        SAN matches what is signed. An existing v3.ext is never rewritten,
        even if the configured CN has changed since it was generated.

        Raises:
            ArtifactMissingError: If server.csr.cnf does not exist
        """
        config = self.config_store.load()

        if not self.store.exists(V3_EXT):
            return self._write(config)

        spec = SanExtensionSpec.parse(self.store.read_text(V3_EXT))
        if config.common_name not in spec.dns_names:
            LOGGER.warning(
                "%s names %s but %s has CN=%s; delete %s to regenerate it",
                V3_EXT,
                spec.dns_names,
                CSR_CONFIG,
                config.common_name,
                V3_EXT,
            )
        return spec

    def regenerate(self) -> SanExtensionSpec:
        """Rewrite v3.ext from the current server.csr.cnf unconditionally.

        Raises:
            ArtifactMissingError: If server.csr.cnf does not exist
        """
        return self._write(self.config_store.load())

    def _write(self, config: DistinguishedNameConfig) -> SanExtensionSpec:
        LOGGER.info("Generating %s", V3_EXT)
        spec = SanExtensionSpec(dns_names=[config.common_name])
        self.store.write_text(V3_EXT, spec.render())
        return spec

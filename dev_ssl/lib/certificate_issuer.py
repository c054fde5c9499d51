"""Leaf certificate issuance pipeline."""

from .artifact_store import (
    CA_CERT,
    CA_KEY,
    CA_SERIAL,
    SERVER_CERT,
    SERVER_CSR,
    SERVER_KEY,
    SERVER_PEM,
    ArtifactStore,
)
from .ca_manager import CRYPTO_ERRORS, CAManager
from .cert_utils import (
    deserialize_certificate,
    format_serial_file,
    generate_private_key,
    get_certificate_serial_hex,
    next_serial_number,
    serialize_certificate,
    serialize_csr,
    serialize_private_key,
)
from .certificate_builder import CertificateBuilder
from .config import SslSettings
from .config_store import ConfigStore
from .ephemeral_secret import EphemeralSecretHandle
from .errors import ConfigurationError, DirectoryMissingError, SigningError
from .logging_config import LOGGER
from .models import LeafCertificate
from .san_extension import SanExtensionBuilder


class CertificateIssuer:
    """Issues server.key and server.crt signed by the working directory's root CA."""

    def __init__(
        self,
        store: ArtifactStore,
        settings: SslSettings,
        config_store: ConfigStore | None = None,
        ca_manager: CAManager | None = None,
        san_builder: SanExtensionBuilder | None = None,
    ) -> None:
        """Initialize issuer, building default collaborators over the same store.

        Args:
            store: Working directory artifacts
            settings: Key sizes and validity periods
            config_store: Distinguished name configuration
            ca_manager: Root CA creation
            san_builder: v3.ext materialisation
        """
        self.store = store
        self.settings = settings
        self.config_store = config_store or ConfigStore(store)
        self.ca_manager = ca_manager or CAManager(store, self.config_store, settings)
        self.san_builder = san_builder or SanExtensionBuilder(store, self.config_store)

    def issue(self, secret: EphemeralSecretHandle, emit_pem_bundle: bool = False) -> LeafCertificate:
        """Run the full pipeline.

        1. Check the working directory exists
        2. Persist default config if server.csr.cnf is missing
        3. Ensure root CA key and certificate
        4. Generate leaf key and CSR
        5. Ensure v3.ext
        6. Sign the CSR with the root CA
        7. Delete the CSR
        8. Write server.key and server.crt
        9. Write server.pem (certificate + key), or remove an older one

        Args:
            secret: Passphrase handle for the root CA key
            emit_pem_bundle: Also write the combined server.pem

        Returns:
            LeafCertificate with artifact names and serial number

        Raises:
            DirectoryMissingError: If the working directory does not exist
            ConfigurationError: If the CA artifacts are absent after creation
            SigningError: If any cryptographic operation fails
        """
        if not self.store.available():
            raise DirectoryMissingError(f"Directory ({self._location()}) doesn't exist")

        if not self.config_store.exists():
            self.config_store.persist(self.config_store.resolve())

        self.ca_manager.ensure(secret)
        for name in (CA_KEY, CA_CERT):
            if not self.store.exists(name):
                raise ConfigurationError(f"{name} missing after CA setup")

        # Leaf artifacts stay untouched when the CA key cannot be decrypted
        ca_key = self.ca_manager.load_key(secret)
        ca_cert = deserialize_certificate(self.store.read(CA_CERT))

        subject_dn = self.config_store.load()

        LOGGER.info("Generating %s", SERVER_KEY)
        try:
            leaf_key = generate_private_key(self.settings.leaf_key_size)
            csr = CertificateBuilder.build_csr(subject_dn, leaf_key)
        except CRYPTO_ERRORS as e:
            raise SigningError(f"failed to generate {SERVER_KEY}: {e}") from e
        self.store.write(SERVER_CSR, serialize_csr(csr))

        try:
            extensions = self.san_builder.ensure()

            LOGGER.info("Generating %s", SERVER_CERT)
            serial_number = self._allocate_serial()
            try:
                leaf_cert = CertificateBuilder.build_leaf_certificate(
                    csr=csr,
                    issuer_cert=ca_cert,
                    issuer_key=ca_key,
                    extensions=extensions,
                    validity_days=self.settings.leaf_validity_days,
                    serial_number=serial_number,
                )
            except CRYPTO_ERRORS as e:
                raise SigningError(f"failed to sign {SERVER_CERT}: {e}") from e
        finally:
            # remove intermediary file, signed or not
            if self.store.exists(SERVER_CSR):
                self.store.delete(SERVER_CSR)

        # server.key is only replaced together with a certificate signed for it
        key_pem = serialize_private_key(leaf_key)
        cert_pem = serialize_certificate(leaf_cert)
        self.store.write(SERVER_KEY, key_pem, private=True)
        self.store.write(SERVER_CERT, cert_pem)
        self.store.write(CA_SERIAL, format_serial_file(serial_number))

        bundle_name = None
        if emit_pem_bundle:
            LOGGER.info("Writing %s", SERVER_PEM)
            self.store.write(SERVER_PEM, cert_pem + key_pem, private=True)
            bundle_name = SERVER_PEM
        elif self.store.exists(SERVER_PEM):
            LOGGER.info("Removing stale %s", SERVER_PEM)
            self.store.delete(SERVER_PEM)

        return LeafCertificate(
            key_name=SERVER_KEY,
            cert_name=SERVER_CERT,
            common_name=subject_dn.common_name,
            serial_number=get_certificate_serial_hex(leaf_cert),
            bundle_name=bundle_name,
        )

    def _allocate_serial(self) -> int:
        serial_file = self.store.read(CA_SERIAL) if self.store.exists(CA_SERIAL) else None
        try:
            return next_serial_number(serial_file)
        except ValueError as e:
            raise ConfigurationError(f"{CA_SERIAL} does not contain a hex serial: {e}") from e

    def _location(self) -> str:
        return str(getattr(self.store, "directory", "working directory"))

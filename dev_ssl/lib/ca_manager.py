"""CA manager for the local development root certificate authority."""

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .artifact_store import CA_CERT, CA_KEY, CSR_CONFIG, ArtifactStore
from .cert_utils import (
    deserialize_private_key,
    generate_private_key,
    serialize_certificate,
    serialize_private_key,
)
from .certificate_builder import CertificateBuilder
from .config import SslSettings
from .config_store import ConfigStore
from .ephemeral_secret import EphemeralSecretHandle, read_passphrase
from .errors import ArtifactMissingError, SigningError
from .logging_config import LOGGER
from .models import CAKeyPair

CRYPTO_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


class CAManager:
    """Creates or reuses the root CA key and self-signed certificate.

    Existing artifacts are never regenerated: the root may already be
    installed in an OS trust store.
    """

    def __init__(self, store: ArtifactStore, config_store: ConfigStore, settings: SslSettings) -> None:
        """Initialize CA manager.

        Args:
            store: Working directory artifacts
            config_store: Source of the persisted distinguished name
            settings: Key size and validity period
        """
        self.store = store
        self.config_store = config_store
        self.settings = settings

    def ensure(self, secret: EphemeralSecretHandle) -> CAKeyPair:
        """Generate rootCA.key and rootCA.pem when missing.

        Args:
            secret: Passphrase handle used to encrypt and decrypt the CA key

        Returns:
            CAKeyPair describing which artifacts were created

        Raises:
            ArtifactMissingError: If server.csr.cnf has not been written
            SigningError: If key generation, decryption or signing fails
        """
        if not self.config_store.exists():
            raise ArtifactMissingError(f"{CSR_CONFIG} missing. Run generate_config first")

        key_created = False
        cert_created = False

        if self.store.exists(CA_KEY):
            LOGGER.info("Reusing existing %s", CA_KEY)
        else:
            LOGGER.info("Generating %s", CA_KEY)
            try:
                ca_key = generate_private_key(self.settings.ca_key_size)
                key_pem = serialize_private_key(ca_key, passphrase=read_passphrase(secret))
            except CRYPTO_ERRORS as e:
                raise SigningError(f"failed to generate {CA_KEY}: {e}") from e
            self.store.write(CA_KEY, key_pem, private=True)
            key_created = True

        if self.store.exists(CA_CERT):
            LOGGER.info("Reusing existing %s", CA_CERT)
        else:
            LOGGER.info("Generating %s", CA_CERT)
            subject_dn = self.config_store.load()
            ca_key = self.load_key(secret)
            try:
                ca_cert = CertificateBuilder.build_root_ca(
                    subject_dn=subject_dn,
                    private_key=ca_key,
                    validity_days=self.settings.ca_validity_days,
                )
            except CRYPTO_ERRORS as e:
                raise SigningError(f"failed to self-sign {CA_CERT}: {e}") from e
            self.store.write(CA_CERT, serialize_certificate(ca_cert))
            cert_created = True

        return CAKeyPair(
            key_name=CA_KEY,
            cert_name=CA_CERT,
            key_created=key_created,
            cert_created=cert_created,
        )

    def load_key(self, secret: EphemeralSecretHandle) -> RSAPrivateKey:
        """Decrypt rootCA.key with the session passphrase.

        Raises:
            ArtifactMissingError: If rootCA.key does not exist
            SigningError: If the key cannot be decrypted, e.g. it was
                encrypted by a previous invocation's passphrase
        """
        key_pem = self.store.read(CA_KEY)
        try:
            return deserialize_private_key(key_pem, passphrase=read_passphrase(secret))
        except CRYPTO_ERRORS as e:
            raise SigningError(
                f"cannot decrypt {CA_KEY} with this session's passphrase; "
                f"remove {CA_KEY} and {CA_CERT} to create a new root CA ({e})"
            ) from e

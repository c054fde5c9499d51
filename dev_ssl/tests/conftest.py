"""Test fixtures for dev_ssl tests."""

from collections.abc import Generator
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from dev_ssl.lib.artifact_store import FileArtifactStore, InMemoryArtifactStore
from dev_ssl.lib.cert_utils import generate_private_key
from dev_ssl.lib.certificate_builder import CertificateBuilder
from dev_ssl.lib.config import DistinguishedNameConfig, SslSettings
from dev_ssl.lib.config_store import ConfigStore
from dev_ssl.lib.ephemeral_secret import EphemeralSecret, EphemeralSecretHandle


@pytest.fixture
def ssl_dir(tmp_path: Path) -> Path:
    """Return an existing working directory."""
    directory = tmp_path / "ssl"
    directory.mkdir()
    return directory


@pytest.fixture
def file_store(ssl_dir: Path) -> FileArtifactStore:
    """Return file-backed store over the working directory."""
    return FileArtifactStore(ssl_dir)


@pytest.fixture
def memory_store() -> InMemoryArtifactStore:
    """Return empty in-memory store."""
    return InMemoryArtifactStore()


@pytest.fixture
def settings(ssl_dir: Path) -> SslSettings:
    """Return settings with short validity periods."""
    return SslSettings(
        directory=ssl_dir,
        ca_key_size=2048,
        ca_validity_days=30,
        leaf_key_size=2048,
        leaf_validity_days=10,
    )


@pytest.fixture
def dn_config() -> DistinguishedNameConfig:
    """Return test distinguished name."""
    return DistinguishedNameConfig(
        country="GB",
        state="London",
        locality="London",
        organization="Test Org",
        email_address="dev@example.test",
        common_name="app.test",
    )


@pytest.fixture
def persisted_store(
    memory_store: InMemoryArtifactStore, dn_config: DistinguishedNameConfig
) -> InMemoryArtifactStore:
    """Return in-memory store with server.csr.cnf already written."""
    ConfigStore(memory_store).persist(dn_config)
    return memory_store


@pytest.fixture
def secret() -> EphemeralSecret:
    """Return passphrase source shared by one test."""
    return EphemeralSecret()


@pytest.fixture
def secret_handle(secret: EphemeralSecret) -> Generator[EphemeralSecretHandle]:
    """Yield a live passphrase handle, released after the test."""
    with secret.session() as handle:
        yield handle


@pytest.fixture
def ca_key() -> RSAPrivateKey:
    """Generate RSA private key for the root CA."""
    return generate_private_key(key_size=2048)


@pytest.fixture
def ca_cert(ca_key: RSAPrivateKey, dn_config: DistinguishedNameConfig) -> x509.Certificate:
    """Generate self-signed root CA certificate."""
    return CertificateBuilder.build_root_ca(
        subject_dn=dn_config,
        private_key=ca_key,
        validity_days=30,
    )


@pytest.fixture
def leaf_key() -> RSAPrivateKey:
    """Generate RSA private key for the leaf certificate."""
    return generate_private_key(key_size=2048)


@pytest.fixture
def leaf_csr(
    leaf_key: RSAPrivateKey, dn_config: DistinguishedNameConfig
) -> x509.CertificateSigningRequest:
    """Generate leaf CSR."""
    return CertificateBuilder.build_csr(dn_config, leaf_key)

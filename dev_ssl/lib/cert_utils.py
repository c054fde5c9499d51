"""Certificate utility functions for key generation, serialization and serial numbers."""

import uuid

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey


def generate_private_key(key_size: int = 2048) -> RSAPrivateKey:
    """Generate RSA private key with specified size."""
    return rsa.generate_private_key(
        public_exponent=65537,
        key_size=key_size,
    )


def serialize_private_key(key: RSAPrivateKey, passphrase: bytes | None = None) -> bytes:
    """Serialize private key to PEM format (PKCS8).

    Encrypted with the passphrase when one is given, otherwise unencrypted.
    """
    if passphrase is None:
        encryption: serialization.KeySerializationEncryption = serialization.NoEncryption()
    else:
        encryption = serialization.BestAvailableEncryption(passphrase)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    )


def deserialize_private_key(pem_data: bytes, passphrase: bytes | None = None) -> RSAPrivateKey:
    """Deserialize private key from PEM bytes.

    Raises:
        ValueError: If the passphrase is wrong or the key is not RSA
    """
    key = serialization.load_pem_private_key(pem_data, password=passphrase)
    if not isinstance(key, RSAPrivateKey):
        raise ValueError("expected RSA private key")
    return key


def serialize_certificate(cert: x509.Certificate) -> bytes:
    """Serialize certificate to PEM format."""
    return cert.public_bytes(serialization.Encoding.PEM)


def deserialize_certificate(pem_data: bytes) -> x509.Certificate:
    """Deserialize certificate from PEM bytes."""
    return x509.load_pem_x509_certificate(pem_data)


def serialize_csr(csr: x509.CertificateSigningRequest) -> bytes:
    """Serialize CSR to PEM format."""
    return csr.public_bytes(serialization.Encoding.PEM)


def deserialize_csr(pem_data: bytes) -> x509.CertificateSigningRequest:
    """Deserialize CSR from PEM bytes."""
    return x509.load_pem_x509_csr(pem_data)


def generate_serial_number() -> int:
    """Generate certificate serial number from UUID4.

    UUID v4 gives a 128-bit value with ~122 bits of entropy, above the
    64-bit CSPRNG minimum.

    Returns:
        Integer serial number for x509.CertificateBuilder.serial_number()
    """
    return uuid.uuid4().int


def next_serial_number(serial_file: bytes | None) -> int:
    """Return the serial after the one recorded in a serial file.

    The serial file holds a single hex number, as written by
    format_serial_file(). A missing file starts from a random serial.

    Raises:
        ValueError: If the file does not contain a hex number
    """
    if serial_file is None:
        return generate_serial_number()
    return int(serial_file.decode("ascii").strip(), 16) + 1


def format_serial_file(serial_number: int) -> bytes:
    """Serialize a serial number as upper-case hex, padded to whole bytes."""
    serial_hex = f"{serial_number:X}"
    if len(serial_hex) % 2 != 0:
        serial_hex = "0" + serial_hex
    return f"{serial_hex}\n".encode("ascii")


def get_certificate_serial_hex(cert: x509.Certificate) -> str:
    """Return certificate serial number as hex with colons (e.g., 3A:F2:B1:...)."""
    serial_hex = format_serial_file(cert.serial_number).decode("ascii").strip()
    return ":".join(serial_hex[i : i + 2] for i in range(0, len(serial_hex), 2))


def extract_csr_public_key(
    csr: x509.CertificateSigningRequest,
) -> rsa.RSAPublicKey:
    """Extract public key from CSR.

    Raises:
        ValueError: If public key is not RSA type
    """
    public_key = csr.public_key()
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise ValueError("CSR public key must be RSA type")
    return public_key


def validate_csr_signature(csr: x509.CertificateSigningRequest) -> bool:
    """Verify CSR self-signature to prove private key possession.

    Returns:
        True if signature is valid, False otherwise
    """
    try:
        return csr.is_signature_valid
    except Exception:
        return False

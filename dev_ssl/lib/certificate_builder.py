"""Certificate builder for X.509 certificate construction."""

from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .cert_utils import extract_csr_public_key, generate_serial_number, validate_csr_signature
from .config import DistinguishedNameConfig
from .san_extension import SanExtensionSpec


class CertificateBuilder:
    """Builds the dev root CA certificate, leaf CSRs and CA-signed leaf certificates."""

    @staticmethod
    def build_root_ca(
        subject_dn: DistinguishedNameConfig,
        private_key: RSAPrivateKey,
        validity_days: int,
    ) -> x509.Certificate:
        """Build self-signed Root CA certificate.

        Args:
            subject_dn: Distinguished name for certificate subject and issuer
            private_key: RSA private key for signing
            validity_days: Certificate validity period in days

        Returns:
            Self-signed X.509 certificate with CA extensions
        """
        subject = subject_dn.to_x509_name()
        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(private_key.public_key())
            .serial_number(generate_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=True, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=False,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
                critical=False,
            )
        )

        return builder.sign(private_key, hashes.SHA256())

    @staticmethod
    def build_csr(
        subject_dn: DistinguishedNameConfig,
        private_key: RSAPrivateKey,
    ) -> x509.CertificateSigningRequest:
        """Build a SHA-256 CSR for the leaf key."""
        return (
            x509.CertificateSigningRequestBuilder()
            .subject_name(subject_dn.to_x509_name())
            .sign(private_key, hashes.SHA256())
        )

    @staticmethod
    def build_leaf_certificate(
        csr: x509.CertificateSigningRequest,
        issuer_cert: x509.Certificate,
        issuer_key: RSAPrivateKey,
        extensions: SanExtensionSpec,
        validity_days: int,
        serial_number: int,
    ) -> x509.Certificate:
        """Build server certificate from CSR, signed by the root CA.

        Extensions come from v3.ext rather than the CSR, matching how
        ``openssl x509 -req -extfile`` ignores requested extensions.

        Args:
            csr: Certificate signing request for the leaf key
            issuer_cert: Root CA certificate (issuer)
            issuer_key: Root CA private key for signing
            extensions: Parsed v3.ext content
            validity_days: Certificate validity period in days
            serial_number: Serial allocated from the CA serial file

        Returns:
            X.509 end-entity certificate signed by the root CA

        Raises:
            ValueError: If CSR signature is invalid
        """
        if not validate_csr_signature(csr):
            raise ValueError("CSR signature validation failed")

        public_key = extract_csr_public_key(csr)
        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(csr.subject)
            .issuer_name(issuer_cert.subject)
            .public_key(public_key)
            .serial_number(serial_number)
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=extensions.ca, path_length=None),
                critical=False,
            )
            .add_extension(extensions.key_usage_extension(), critical=False)
            .add_extension(extensions.subject_alternative_name(), critical=False)
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(public_key),
                critical=False,
            )
        )

        if extensions.authority_key_identifier:
            builder = builder.add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_key.public_key()),
                critical=False,
            )

        return builder.sign(issuer_key, hashes.SHA256())

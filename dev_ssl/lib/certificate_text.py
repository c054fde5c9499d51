"""Human-readable certificate dump in the layout of ``openssl x509 -text``."""

from datetime import datetime

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import ExtensionOID, NameOID, SignatureAlgorithmOID

from .cert_utils import get_certificate_serial_hex

NAME_LABELS = {
    NameOID.COUNTRY_NAME: "C",
    NameOID.STATE_OR_PROVINCE_NAME: "ST",
    NameOID.LOCALITY_NAME: "L",
    NameOID.ORGANIZATION_NAME: "O",
    NameOID.ORGANIZATIONAL_UNIT_NAME: "OU",
    NameOID.EMAIL_ADDRESS: "emailAddress",
    NameOID.COMMON_NAME: "CN",
}

SIGNATURE_LABELS = {
    SignatureAlgorithmOID.RSA_WITH_SHA256: "sha256WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA384: "sha384WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA512: "sha512WithRSAEncryption",
    SignatureAlgorithmOID.ECDSA_WITH_SHA256: "ecdsa-with-SHA256",
    SignatureAlgorithmOID.ECDSA_WITH_SHA384: "ecdsa-with-SHA384",
}

EXTENSION_LABELS = {
    ExtensionOID.BASIC_CONSTRAINTS: "X509v3 Basic Constraints",
    ExtensionOID.KEY_USAGE: "X509v3 Key Usage",
    ExtensionOID.SUBJECT_ALTERNATIVE_NAME: "X509v3 Subject Alternative Name",
    ExtensionOID.SUBJECT_KEY_IDENTIFIER: "X509v3 Subject Key Identifier",
    ExtensionOID.AUTHORITY_KEY_IDENTIFIER: "X509v3 Authority Key Identifier",
}

KEY_USAGE_LABELS = [
    ("digital_signature", "Digital Signature"),
    ("content_commitment", "Non Repudiation"),
    ("key_encipherment", "Key Encipherment"),
    ("data_encipherment", "Data Encipherment"),
    ("key_agreement", "Key Agreement"),
    ("key_cert_sign", "Certificate Sign"),
    ("crl_sign", "CRL Sign"),
]


def _format_name(name: x509.Name) -> str:
    return ", ".join(
        f"{NAME_LABELS.get(attr.oid, attr.oid.dotted_string)} = {attr.value}" for attr in name
    )


def _format_time(value: datetime) -> str:
    return value.strftime("%b %d %H:%M:%S %Y GMT")


def _hex_colon(data: bytes) -> str:
    return ":".join(f"{byte:02X}" for byte in data)


def _format_general_name(general_name: x509.GeneralName) -> str:
    if isinstance(general_name, x509.DNSName):
        return f"DNS:{general_name.value}"
    if isinstance(general_name, x509.IPAddress):
        return f"IP Address:{general_name.value}"
    if isinstance(general_name, x509.RFC822Name):
        return f"email:{general_name.value}"
    return str(general_name.value)


def _format_extension_value(value: x509.ExtensionType) -> str:
    if isinstance(value, x509.BasicConstraints):
        text = f"CA:{'TRUE' if value.ca else 'FALSE'}"
        if value.path_length is not None:
            text += f", pathlen:{value.path_length}"
        return text
    if isinstance(value, x509.KeyUsage):
        labels = [label for attr, label in KEY_USAGE_LABELS if getattr(value, attr)]
        # encipher_only/decipher_only are only defined alongside key_agreement
        if value.key_agreement:
            if value.encipher_only:
                labels.append("Encipher Only")
            if value.decipher_only:
                labels.append("Decipher Only")
        return ", ".join(labels)
    if isinstance(value, x509.SubjectAlternativeName):
        return ", ".join(_format_general_name(name) for name in value)
    if isinstance(value, x509.SubjectKeyIdentifier):
        return _hex_colon(value.digest)
    if isinstance(value, x509.AuthorityKeyIdentifier):
        if value.key_identifier is None:
            return ""
        return f"keyid:{_hex_colon(value.key_identifier)}"
    return "<unsupported>"


def _public_key_lines(cert: x509.Certificate) -> list[str]:
    key = cert.public_key()
    if isinstance(key, rsa.RSAPublicKey):
        exponent = key.public_numbers().e
        return [
            "Public Key Algorithm: rsaEncryption",
            f"    Public-Key: ({key.key_size} bit)",
            f"    Exponent: {exponent} (0x{exponent:x})",
        ]
    if isinstance(key, ec.EllipticCurvePublicKey):
        return [
            "Public Key Algorithm: id-ecPublicKey",
            f"    Public-Key: ({key.curve.key_size} bit)",
            f"    ASN1 OID: {key.curve.name}",
        ]
    return [f"Public Key Algorithm: {type(key).__name__}"]


def render_certificate_text(cert: x509.Certificate) -> str:
    """Render a certificate as indented text starting with ``Certificate:``."""
    signature = SIGNATURE_LABELS.get(
        cert.signature_algorithm_oid, cert.signature_algorithm_oid.dotted_string
    )
    lines = [
        "Certificate:",
        "    Data:",
        f"        Version: {cert.version.value + 1} (0x{cert.version.value:x})",
        "        Serial Number:",
        f"            {get_certificate_serial_hex(cert)}",
        f"        Signature Algorithm: {signature}",
        f"        Issuer: {_format_name(cert.issuer)}",
        "        Validity",
        f"            Not Before: {_format_time(cert.not_valid_before_utc)}",
        f"            Not After : {_format_time(cert.not_valid_after_utc)}",
        f"        Subject: {_format_name(cert.subject)}",
        "        Subject Public Key Info:",
    ]
    lines.extend(f"            {line}" for line in _public_key_lines(cert))

    if len(cert.extensions):
        lines.append("        X509v3 extensions:")
        for extension in cert.extensions:
            label = EXTENSION_LABELS.get(extension.oid, extension.oid.dotted_string)
            critical = " critical" if extension.critical else ""
            lines.append(f"            {label}:{critical}")
            lines.append(f"                {_format_extension_value(extension.value)}")

    lines.append(f"    Signature Algorithm: {signature}")
    return "\n".join(lines) + "\n"

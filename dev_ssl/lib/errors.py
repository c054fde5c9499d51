"""Error hierarchy for dev SSL certificate operations."""


class DevSslError(Exception):
    """Base error for all certificate workflow failures."""


class DirectoryMissingError(DevSslError):
    """Working directory does not exist when generation is requested."""


class ArtifactMissingError(DevSslError, FileNotFoundError):
    """A required artifact (config template, key, certificate) does not exist."""


class ConfigurationError(DevSslError):
    """An invariant of the pipeline was violated or configuration is incomplete."""


class SigningError(DevSslError):
    """An underlying key generation, decryption or signing operation failed."""

"""Process-lifetime passphrase protecting the root CA key."""

import os
import secrets
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from .logging_config import LOGGER

SECRET_BYTES = 64


@dataclass
class EphemeralSecretHandle:
    """Reference to the temporary file holding the passphrase.

    Only the location is exposed; use read_passphrase() at the point of use.
    """

    path: Path
    released: bool = field(default=False, compare=False)


class EphemeralSecret:
    """Generates one random passphrase and hands it out through temporary files.

    The value lives for the lifetime of this object (one CLI invocation) and
    is never persisted in the working directory, logged or passed as an
    argument.
    """

    def __init__(self) -> None:
        self._secret: str | None = None

    def _value(self) -> str:
        if self._secret is None:
            # Hex encoded, 64 bytes of entropy
            self._secret = secrets.token_hex(SECRET_BYTES)
        return self._secret

    def acquire(self) -> EphemeralSecretHandle:
        """Write the passphrase to a private temporary file.

        Returns:
            Handle to the file; must be passed to release() exactly once
        """
        fd, name = tempfile.mkstemp(prefix="dev-ssl-", suffix=".pass")
        try:
            os.chmod(name, 0o600)
            with os.fdopen(fd, "w", encoding="ascii") as fh:
                fh.write(self._value())
        except BaseException:
            Path(name).unlink(missing_ok=True)
            raise
        LOGGER.debug("Acquired passphrase file")
        return EphemeralSecretHandle(path=Path(name))

    def release(self, handle: EphemeralSecretHandle) -> None:
        """Delete the passphrase file.

        Raises:
            RuntimeError: If the handle was already released
        """
        if handle.released:
            raise RuntimeError("passphrase handle already released")
        handle.released = True
        handle.path.unlink(missing_ok=True)
        LOGGER.debug("Released passphrase file")

    @contextmanager
    def session(self) -> Iterator[EphemeralSecretHandle]:
        """Acquire a handle for the duration of a with-block, releasing it on any exit."""
        handle = self.acquire()
        try:
            yield handle
        finally:
            self.release(handle)


def read_passphrase(handle: EphemeralSecretHandle) -> bytes:
    """Read the passphrase behind a live handle.

    Raises:
        RuntimeError: If the handle was already released
    """
    if handle.released:
        raise RuntimeError("passphrase handle already released")
    return handle.path.read_bytes()

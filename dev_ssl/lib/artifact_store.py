"""Named artifact storage backing the working directory."""

import os
import tempfile
from pathlib import Path

from .errors import ArtifactMissingError

CSR_CONFIG = "server.csr.cnf"
V3_EXT = "v3.ext"
CA_KEY = "rootCA.key"
CA_CERT = "rootCA.pem"
CA_SERIAL = "rootCA.srl"
SERVER_KEY = "server.key"
SERVER_CSR = "server.csr"
SERVER_CERT = "server.crt"
SERVER_PEM = "server.pem"


class ArtifactStore:
    """Interface for reading and writing named artifacts.

    Every component goes through a store so tests can swap in
    InMemoryArtifactStore.
    """

    def available(self) -> bool:
        """Return True if the backing location exists."""
        raise NotImplementedError

    def exists(self, name: str) -> bool:
        raise NotImplementedError

    def read(self, name: str) -> bytes:
        raise NotImplementedError

    def write(self, name: str, content: bytes, private: bool = False) -> None:
        raise NotImplementedError

    def delete(self, name: str) -> None:
        raise NotImplementedError

    def read_text(self, name: str) -> str:
        """Read an artifact decoded as UTF-8."""
        return self.read(name).decode("utf-8")

    def write_text(self, name: str, content: str) -> None:
        """Write a UTF-8 text artifact."""
        self.write(name, content.encode("utf-8"))


class FileArtifactStore(ArtifactStore):
    """Artifact store over a directory on disk."""

    def __init__(self, directory: Path) -> None:
        """Initialize store.

        Args:
            directory: Working directory holding all artifacts. It is never
                created here; see the setup command.
        """
        self.directory = Path(directory)

    def path(self, name: str) -> Path:
        """Return the on-disk location of an artifact."""
        return self.directory / name

    def available(self) -> bool:
        return self.directory.is_dir()

    def exists(self, name: str) -> bool:
        return self.path(name).is_file()

    def read(self, name: str) -> bytes:
        """Read artifact bytes.

        Raises:
            ArtifactMissingError: If the artifact does not exist
        """
        try:
            return self.path(name).read_bytes()
        except FileNotFoundError as e:
            raise ArtifactMissingError(f"{name} not found in {self.directory}") from e

    def write(self, name: str, content: bytes, private: bool = False) -> None:
        """Atomically replace an artifact.

        Content goes to a temporary file in the same directory which is then
        renamed over the target, so readers never observe a partial write.

        Args:
            name: Artifact name
            content: Bytes to store
            private: Restrict permissions to the owner (key material)
        """
        fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
            if not private:
                os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path(name))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, name: str) -> None:
        """Remove an artifact.

        Raises:
            ArtifactMissingError: If the artifact does not exist
        """
        try:
            self.path(name).unlink()
        except FileNotFoundError as e:
            raise ArtifactMissingError(f"{name} not found in {self.directory}") from e


class InMemoryArtifactStore(ArtifactStore):
    """Dict-backed store with the same contract as FileArtifactStore."""

    def __init__(self, artifacts: dict[str, bytes] | None = None, available: bool = True) -> None:
        self.artifacts: dict[str, bytes] = dict(artifacts or {})
        self.private: set[str] = set()
        self._available = available

    def available(self) -> bool:
        return self._available

    def exists(self, name: str) -> bool:
        return name in self.artifacts

    def read(self, name: str) -> bytes:
        try:
            return self.artifacts[name]
        except KeyError as e:
            raise ArtifactMissingError(f"{name} not found") from e

    def write(self, name: str, content: bytes, private: bool = False) -> None:
        self.artifacts[name] = bytes(content)
        if private:
            self.private.add(name)
        else:
            self.private.discard(name)

    def delete(self, name: str) -> None:
        if name not in self.artifacts:
            raise ArtifactMissingError(f"{name} not found")
        del self.artifacts[name]
        self.private.discard(name)

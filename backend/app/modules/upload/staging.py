"""Local scratch files for uploads being processed.

Every file staged during one upload is registered with a ``StagingScope``;
leaving the scope deletes all of them no matter how the upload ended.
"""

import logging
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1 << 20


class StagingLimitExceeded(Exception):
    """Raised when a staged stream turns out larger than allowed."""

    def __init__(self, name: str, limit: int):
        super().__init__(f"{name} exceeds the {limit} byte limit")
        self.name = name
        self.limit = limit


@dataclass(frozen=True)
class StagedArtifact:
    """A scratch file and the run that owns it."""

    path: str
    owner: str = field(default="", compare=False)

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def exists(self) -> bool:
        return os.path.exists(self.path)


class TempStagingStore:
    """Writes, tracks and removes scratch files under one directory."""

    def __init__(self, root: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.root = Path(root)
        self.chunk_size = chunk_size
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> str:
        if not name or os.path.basename(name) != name or name in (".", ".."):
            raise ValueError(f"Invalid staging name: {name!r}")
        return str(self.root / name)

    def stage(
        self,
        name: str,
        stream: BinaryIO,
        max_bytes: Optional[int] = None,
        owner: str = "",
    ) -> StagedArtifact:
        """Copy ``stream`` into a new scratch file called ``name``.

        A partially written file is removed before any error propagates.

        Raises:
            StagingLimitExceeded: If the stream is longer than ``max_bytes``
            FileExistsError: If a file with that name is already staged
        """
        artifact = StagedArtifact(path=self.path_for(name), owner=owner)
        written = 0
        try:
            with open(artifact.path, "xb") as out:
                while True:
                    chunk = stream.read(self.chunk_size)
                    if not chunk:
                        break
                    written += len(chunk)
                    if max_bytes is not None and written > max_bytes:
                        raise StagingLimitExceeded(name, max_bytes)
                    out.write(chunk)
        except FileExistsError:
            raise
        except BaseException:
            self.delete(artifact)
            raise

        logger.debug("Staged file", extra={"path": artifact.path, "size": written})
        return artifact

    def track(self, path: str, owner: str = "") -> StagedArtifact:
        """Wrap a scratch file created by another component."""
        return StagedArtifact(path=path, owner=owner)

    def delete(self, artifact: StagedArtifact) -> None:
        """Remove a scratch file. Missing files are fine; errors are logged."""
        try:
            os.unlink(artifact.path)
        except FileNotFoundError:
            return
        except OSError as e:
            logger.warning(
                "Failed to remove staged file",
                extra={"path": artifact.path, "error": str(e)},
            )
            return
        logger.debug("Removed staged file", extra={"path": artifact.path})

    def scope(self) -> "StagingScope":
        return StagingScope(self)


class StagingScope:
    """Owns the scratch files of a single run.

    Use as a context manager; every artifact staged or tracked through the
    scope is deleted exactly once when the block exits.
    """

    def __init__(self, store: TempStagingStore):
        self.store = store
        self.run_id = uuid.uuid4().hex
        self._artifacts: list[StagedArtifact] = []
        self._names: set[str] = set()
        self._closed = False

    @property
    def artifacts(self) -> list[StagedArtifact]:
        return list(self._artifacts)

    def _register(self, artifact: StagedArtifact) -> StagedArtifact:
        if self._closed:
            raise RuntimeError("Staging scope is already closed")
        if artifact.name in self._names:
            raise ValueError(f"Staging name reused within one run: {artifact.name}")
        self._names.add(artifact.name)
        self._artifacts.append(artifact)
        return artifact

    def stage(
        self,
        name: str,
        stream: BinaryIO,
        max_bytes: Optional[int] = None,
    ) -> StagedArtifact:
        artifact = self._register(
            StagedArtifact(path=self.store.path_for(name), owner=self.run_id)
        )
        try:
            self.store.stage(name, stream, max_bytes=max_bytes, owner=self.run_id)
        except FileExistsError:
            # Not ours to delete
            self._artifacts.remove(artifact)
            raise
        return artifact

    def track(self, path: str) -> StagedArtifact:
        """Register a file some other component will create or has created.

        Registering before the file exists means a half-written output is
        still cleaned up if its producer fails.
        """
        return self._register(self.store.track(path, owner=self.run_id))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for artifact in reversed(self._artifacts):
            self.store.delete(artifact)

    def __enter__(self) -> "StagingScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

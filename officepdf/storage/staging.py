"""Bridge remote disks and local conversion through a scratch area."""

from __future__ import annotations

import logging
import shutil
import threading
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from types import TracebackType
from typing import Literal

from officepdf.converter.errors import InputNotFoundError, WriteFailedError
from officepdf.converter.models import ConversionOutcome, ConversionRequest
from officepdf.converter.profile import default_scratch_root
from officepdf.storage.disks import Disk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagingArtifact:
    """A scratch path created for one request, deleted during cleanup."""

    path: Path
    kind: Literal["file", "directory"]


def remote_key(directory: str, filename: str) -> str:
    directory = directory.strip("/")
    return str(PurePosixPath(directory) / filename) if directory else filename


class StagingArea:
    """Downloads remote inputs, uploads outputs, and always cleans up.

    Use as a context manager around the whole remote operation; cleanup()
    runs on every exit path. Per-file download failures are collected in
    ``failures`` (keyed by request id) instead of being raised, so one missing
    key doesn't hold back the rest of the batch.
    """

    def __init__(self, scratch_root: str | Path | None = None) -> None:
        self.scratch_root = Path(scratch_root) if scratch_root else default_scratch_root()
        self.failures: dict[str, ConversionOutcome] = {}
        self._artifacts: list[StagingArtifact] = []
        self._lock = threading.Lock()

    def __enter__(self) -> StagingArea:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    @property
    def artifacts(self) -> list[StagingArtifact]:
        with self._lock:
            return list(self._artifacts)

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    def scratch_dir(self, label: str = "batch") -> Path:
        """Create a uniquely named scratch directory (tracked for cleanup)."""
        try:
            self.scratch_root.mkdir(parents=True, exist_ok=True)
            path = self.scratch_root / f"{label}_{uuid.uuid4().hex}"
            path.mkdir()
        except OSError as e:
            raise WriteFailedError("Failed to create scratch directory", str(self.scratch_root)) from e
        self._track(StagingArtifact(path, "directory"))
        return path

    def stage(
        self, requests: Iterable[ConversionRequest], source_disk: Disk
    ) -> list[ConversionRequest]:
        """Download each request's input key to a local scratch file.

        Returns the requests that were staged, rewritten to point at their
        local copies (``source_key`` keeps the original key). Requests whose
        key is missing or unreadable are recorded in ``failures``.
        """
        staged: list[ConversionRequest] = []
        for request in requests:
            key = request.input_path
            try:
                local = self._download(source_disk, key)
            except (InputNotFoundError, WriteFailedError) as e:
                logger.warning("staging failed for %s: %s", key, e)
                self.failures[request.id] = ConversionOutcome.from_error(request, e)
                continue
            staged.append(
                request.model_copy(update={"input_path": str(local), "source_key": key})
            )
        return staged

    def _download(self, disk: Disk, key: str) -> Path:
        try:
            found = disk.exists(key)
        except Exception as e:
            raise InputNotFoundError(f"Could not look up file on disk '{disk.name}'", key) from e
        if not found:
            raise InputNotFoundError(f"File not found on disk '{disk.name}'", key)

        try:
            data = disk.get(key)
        except Exception as e:
            raise InputNotFoundError(f"Could not read file from disk '{disk.name}'", key) from e

        local = self.scratch_root / f"{uuid.uuid4().hex}_{PurePosixPath(key).name}"
        # tracked before writing so a half-written file is still cleaned up
        self._track(StagingArtifact(local, "file"))
        try:
            self.scratch_root.mkdir(parents=True, exist_ok=True)
            local.write_bytes(data)
        except OSError as e:
            raise WriteFailedError("Failed to write staged file", str(local)) from e

        logger.debug("staged %s -> %s (%d bytes)", key, local, len(data))
        return local

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit(
        self,
        outcomes: Iterable[ConversionOutcome],
        destination_disk: Disk,
        destination_dir: str,
    ) -> list[ConversionOutcome]:
        """Upload every successful output to ``<destination_dir>/<basename>``.

        Returns the outcomes annotated with ``remote_output_key``. An upload
        failure turns only that outcome into a ``write_failed`` one.
        """
        committed: list[ConversionOutcome] = []
        for outcome in outcomes:
            if not outcome.success or not outcome.output_path:
                committed.append(outcome)
                continue

            local = Path(outcome.output_path)
            key = remote_key(destination_dir, local.name)
            try:
                destination_disk.put(key, local.read_bytes())
            except Exception as e:
                logger.warning("upload of %s to %s failed: %s", local, key, e)
                error = WriteFailedError(f"Upload to disk '{destination_disk.name}' failed: {e}", key)
                committed.append(
                    ConversionOutcome.from_error(outcome.request, error, outcome.duration)
                )
                continue
            committed.append(outcome.model_copy(update={"remote_output_key": key}))
        return committed

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def cleanup(self) -> None:
        """Delete every tracked artifact once. Safe to call repeatedly."""
        with self._lock:
            artifacts, self._artifacts = self._artifacts, []

        for artifact in artifacts:
            try:
                if artifact.kind == "directory":
                    shutil.rmtree(artifact.path)
                else:
                    artifact.path.unlink()
            except FileNotFoundError:
                pass
            except OSError:
                logger.warning("Failed to remove staging artifact %s", artifact.path, exc_info=True)

    def _track(self, artifact: StagingArtifact) -> None:
        with self._lock:
            self._artifacts.append(artifact)

"""Moving renderer output into place without exposing partial files."""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path

from officepdf.converter.errors import WriteFailedError

logger = logging.getLogger(__name__)


def ensure_directory(path: Path) -> None:
    """Create *path* and its parents. Safe to call concurrently."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteFailedError("Failed to create output directory", str(path)) from e


def move_into_place(source: Path, destination: Path) -> Path:
    """Move *source* to *destination*, creating parent directories.

    Tries a plain rename first. When that fails (different filesystem,
    locked target) the bytes are copied into a hidden sibling of the
    destination and swapped in with ``os.replace``, so readers only ever
    see a complete file or none.
    """
    ensure_directory(destination.parent)

    try:
        os.rename(source, destination)
        return destination
    except OSError as e:
        logger.debug("rename %s -> %s failed (%s), copying instead", source, destination, e)

    partial = destination.parent / f".{destination.name}.{uuid.uuid4().hex}.part"
    try:
        shutil.copyfile(source, partial)
        os.replace(partial, destination)
    except OSError as e:
        partial.unlink(missing_ok=True)
        raise WriteFailedError("Failed to move converted file", str(destination)) from e

    try:
        source.unlink(missing_ok=True)
    except OSError:
        logger.debug("Left %s behind after copy", source, exc_info=True)
    return destination

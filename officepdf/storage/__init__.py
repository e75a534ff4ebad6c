"""Storage disks and remote staging."""

from officepdf.storage.disks import (
    REMOTE_DRIVERS,
    Disk,
    DiskRegistry,
    LocalDisk,
    S3Disk,
    build_disk,
    is_remote,
)
from officepdf.storage.staging import StagingArea, StagingArtifact

__all__ = [
    "Disk",
    "DiskRegistry",
    "LocalDisk",
    "REMOTE_DRIVERS",
    "S3Disk",
    "StagingArea",
    "StagingArtifact",
    "build_disk",
    "is_remote",
]

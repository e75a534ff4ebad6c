"""Storage disks: local filesystem, S3, and plugin-provided drivers."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import boto3
from botocore.exceptions import ClientError

if TYPE_CHECKING:
    from officepdf.config.models import DiskConfig
    from officepdf.plugins.loader import PluginLoader

logger = logging.getLogger(__name__)

# Drivers whose disks live off-host; inputs must be staged locally before conversion.
REMOTE_DRIVERS: frozenset[str] = frozenset(
    {"s3", "gcs", "azure", "ftp", "sftp", "dropbox", "rackspace"}
)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


@runtime_checkable
class Disk(Protocol):
    """Key/value file storage addressed by relative keys."""

    name: str

    def exists(self, key: str) -> bool: ...

    def get(self, key: str) -> bytes: ...

    def put(self, key: str, data: bytes) -> None: ...

    def path(self, key: str) -> str: ...

    def is_remote(self) -> bool: ...


class LocalDisk:
    """Disk rooted at a local directory. Absolute keys bypass the root."""

    def __init__(self, root: str | Path = ".", name: str = "local") -> None:
        self.name = name
        self.root = Path(root)

    def path(self, key: str) -> str:
        p = Path(key)
        return str(p if p.is_absolute() else self.root / p)

    def exists(self, key: str) -> bool:
        return Path(self.path(key)).is_file()

    def get(self, key: str) -> bytes:
        return Path(self.path(key)).read_bytes()

    def put(self, key: str, data: bytes) -> None:
        dest = Path(self.path(key))
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)

    def is_remote(self) -> bool:
        return False


class S3Disk:
    """Disk backed by an S3 (or S3-compatible) bucket, optionally under a key prefix."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        name: str = "s3",
        client=None,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self.name = name
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self._client = client or boto3.client(
            "s3", region_name=region, endpoint_url=endpoint_url
        )

    def object_key(self, key: str) -> str:
        key = key.lstrip("/")
        return f"{self.prefix}/{key}" if self.prefix else key

    def exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=self.object_key(key))
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False
            raise
        return True

    def get(self, key: str) -> bytes:
        resp = self._client.get_object(Bucket=self.bucket, Key=self.object_key(key))
        return resp["Body"].read()

    def put(self, key: str, data: bytes) -> None:
        self._client.put_object(Bucket=self.bucket, Key=self.object_key(key), Body=data)
        logger.debug("uploaded s3://%s/%s (%d bytes)", self.bucket, self.object_key(key), len(data))

    def path(self, key: str) -> str:
        raise NotImplementedError(f"Disk '{self.name}' has no local path for {key!r}")

    def is_remote(self) -> bool:
        return True


def is_remote(disk: Disk, config: DiskConfig | None = None) -> bool:
    """Whether *disk* needs download/upload staging.

    True when the disk reports itself remote or its config declares a remote
    driver. A disk that can't answer counts as local.
    """
    declared = config is not None and config.driver.lower() in REMOTE_DRIVERS
    try:
        capable = bool(disk.is_remote())
    except Exception:
        logger.warning(
            "Could not classify disk %r; treating it as local",
            getattr(disk, "name", disk),
            exc_info=True,
        )
        capable = False
    return declared or capable


def build_disk(name: str, config: DiskConfig, loader: PluginLoader | None = None) -> Disk:
    """Instantiate a disk from its config entry."""
    driver = config.driver.lower()
    if driver == "local":
        return LocalDisk(config.root or ".", name=name)
    if driver == "s3":
        if not config.bucket:
            raise ValueError(f"Disk '{name}' uses the s3 driver but has no bucket")
        return S3Disk(
            config.bucket,
            prefix=config.prefix,
            name=name,
            region=config.region,
            endpoint_url=config.endpoint_url,
        )
    if loader is None:
        raise ValueError(f"Unsupported disk driver {config.driver!r} for disk '{name}'")
    factory = loader.load_disk_factory(driver)
    return factory(name, config)


class DiskRegistry:
    """Lazily builds and caches the disks named in config."""

    def __init__(
        self,
        configs: dict[str, DiskConfig] | None = None,
        loader: PluginLoader | None = None,
    ) -> None:
        self._configs = dict(configs or {})
        self._loader = loader
        self._disks: dict[str, Disk] = {}
        self._lock = threading.Lock()

    def register(self, disk: Disk, config: DiskConfig | None = None) -> None:
        with self._lock:
            self._disks[disk.name] = disk
            if config is not None:
                self._configs[disk.name] = config

    def config_for(self, name: str) -> DiskConfig | None:
        return self._configs.get(name)

    def get(self, name: str) -> Disk:
        with self._lock:
            disk = self._disks.get(name)
            if disk is not None:
                return disk
            config = self._configs.get(name)
            if config is None:
                raise ValueError(f"Unknown disk '{name}'")
            disk = build_disk(name, config, self._loader)
            self._disks[name] = disk
            return disk

    def is_remote(self, name: str) -> bool:
        return is_remote(self.get(name), self.config_for(name))

from pydantic import BaseModel, Field
from typing import Literal

from officepdf.converter.models import ConversionOptions


class RendererConfig(BaseModel):
    binary: str = "soffice"
    timeout: float = Field(default=120.0, gt=0)
    extra_args: list[str] = Field(default_factory=list)


class BatchConfig(BaseModel):
    workers: int | None = Field(default=None, gt=0)


class DiskConfig(BaseModel):
    driver: str = "local"
    root: str | None = None
    bucket: str | None = None
    prefix: str = ""
    region: str | None = None
    endpoint_url: str | None = None
    options: dict[str, str] = Field(default_factory=dict)


class PluginsConfig(BaseModel):
    renderers: list[str] = Field(default_factory=list)


class OfficePdfConfig(BaseModel):
    renderer: RendererConfig = Field(default_factory=RendererConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    defaults: ConversionOptions = Field(default_factory=ConversionOptions)
    temp_dir: str | None = None
    disks: dict[str, DiskConfig] = Field(default_factory=dict)
    default_disk: str | None = None
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"

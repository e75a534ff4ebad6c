from .loader import load_config
from .models import (
    BatchConfig,
    DiskConfig,
    OfficePdfConfig,
    PluginsConfig,
    RendererConfig,
)

__all__ = [
    "BatchConfig",
    "DiskConfig",
    "OfficePdfConfig",
    "PluginsConfig",
    "RendererConfig",
    "load_config",
]

"""officepdf - office documents to PDF through headless LibreOffice, single or batched."""

from officepdf.batch import BatchConverter
from officepdf.config import OfficePdfConfig, load_config
from officepdf.converter import (
    BatchResult,
    ConversionFailedError,
    ConversionOptions,
    ConversionOutcome,
    ConversionRequest,
    ConverterError,
    InputNotFoundError,
    LibreOfficeRenderer,
    WriteFailedError,
    resolve_filter,
    to_profile_url,
)
from officepdf.service import PdfConverter
from officepdf.storage import DiskRegistry, LocalDisk, S3Disk, StagingArea, is_remote

__version__ = "0.1.0"

__all__ = [
    "BatchConverter",
    "BatchResult",
    "ConversionFailedError",
    "ConversionOptions",
    "ConversionOutcome",
    "ConversionRequest",
    "ConverterError",
    "DiskRegistry",
    "InputNotFoundError",
    "LibreOfficeRenderer",
    "LocalDisk",
    "OfficePdfConfig",
    "PdfConverter",
    "S3Disk",
    "StagingArea",
    "WriteFailedError",
    "is_remote",
    "load_config",
    "resolve_filter",
    "to_profile_url",
]

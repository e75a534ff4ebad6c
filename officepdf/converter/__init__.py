"""Single-file conversion: filters, profile isolation, LibreOffice invocation."""

from officepdf.converter.base import Renderer
from officepdf.converter.errors import (
    ConversionFailedError,
    ConverterError,
    ErrorKind,
    InputNotFoundError,
    WriteFailedError,
)
from officepdf.converter.formats import output_extension, resolve_filter
from officepdf.converter.libreoffice import LibreOfficeRenderer
from officepdf.converter.models import (
    BatchResult,
    ConversionOptions,
    ConversionOutcome,
    ConversionRequest,
)
from officepdf.converter.paths import to_profile_url
from officepdf.converter.profile import ExecutionProfile

__all__ = [
    "BatchResult",
    "ConversionFailedError",
    "ConversionOptions",
    "ConversionOutcome",
    "ConversionRequest",
    "ConverterError",
    "ErrorKind",
    "ExecutionProfile",
    "InputNotFoundError",
    "LibreOfficeRenderer",
    "Renderer",
    "WriteFailedError",
    "output_extension",
    "resolve_filter",
    "to_profile_url",
]

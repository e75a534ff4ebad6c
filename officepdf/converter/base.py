"""Renderer interface shared by the LibreOffice invoker and native plugins."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

from officepdf.converter.models import ConversionOptions


@runtime_checkable
class Renderer(Protocol):
    """Turns one input file into one output file.

    Implementations raise ``ConverterError`` subclasses on failure and return
    the final output path on success.
    """

    name: str

    def supports(self, extension: str) -> bool: ...

    def render(
        self,
        input_path: str | Path,
        output_path: str | Path,
        target: str | None = None,
        options: ConversionOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Path: ...

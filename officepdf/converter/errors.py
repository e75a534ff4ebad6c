"""Typed errors raised by the conversion layer."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers and recorded in batch outcomes."""

    file_not_found = "file_not_found"
    write_failed = "write_failed"
    conversion_failed = "conversion_failed"


class ConverterError(Exception):
    """Base error for a single conversion.

    Carries the offending path (or remote key) and, where the renderer ran,
    its raw combined stdout/stderr for triage.
    """

    kind: ErrorKind = ErrorKind.conversion_failed

    def __init__(
        self,
        message: str,
        path: str | None = None,
        diagnostics: str | None = None,
    ) -> None:
        self.message = message
        self.path = path
        self.diagnostics = diagnostics
        detail = f"{message}: {path}" if path else message
        super().__init__(detail)


class InputNotFoundError(ConverterError):
    """The input file (or remote key) does not exist."""

    kind = ErrorKind.file_not_found


class WriteFailedError(ConverterError):
    """An output location could not be created or populated."""

    kind = ErrorKind.write_failed


class ConversionFailedError(ConverterError):
    """The renderer failed, timed out, or produced no usable output."""

    kind = ErrorKind.conversion_failed

"""Pydantic models for conversion requests, options, and outcomes."""

from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from officepdf.converter.errors import ConverterError, ErrorKind


class ConversionOptions(BaseModel):
    """Immutable option set applied to one conversion or a whole batch.

    Unknown keys are kept as-is so newer renderer settings can be passed
    through without a schema change.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    page_size: str | None = None
    orientation: Literal["landscape", "portrait"] | None = None
    margin: float | None = Field(default=None, ge=0)
    font_size: float | None = Field(default=None, gt=0)
    header_row: bool | None = None
    workers: int | None = Field(default=None, gt=0)
    timeout: float | None = Field(default=None, gt=0)
    native: bool = False
    header_text: str | None = None
    footer_text: str | None = None

    @field_validator("orientation", mode="before")
    @classmethod
    def _lower_orientation(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def merged(self, overrides: ConversionOptions | dict[str, Any] | None) -> ConversionOptions:
        """Return a copy with every explicitly set field of *overrides* applied."""
        if overrides is None:
            return self
        if isinstance(overrides, ConversionOptions):
            overrides = overrides.model_dump(exclude_unset=True)
        base = self.model_dump(exclude_unset=True)
        base.update(overrides)
        return ConversionOptions.model_validate(base)

    @property
    def extra_options(self) -> dict[str, Any]:
        """Pass-through keys that aren't part of the schema."""
        return dict(self.model_extra or {})

    # -- presets ---------------------------------------------------------------

    @classmethod
    def a4(cls) -> ConversionOptions:
        return cls(page_size="A4")

    @classmethod
    def a3(cls) -> ConversionOptions:
        return cls(page_size="A3")

    @classmethod
    def tabloid(cls) -> ConversionOptions:
        return cls(page_size="Tabloid")

    @classmethod
    def wide_format(cls) -> ConversionOptions:
        """A3 landscape with small type, for spreadsheets with many columns."""
        return cls(page_size="A3", orientation="landscape", font_size=8, margin=10)


class ConversionRequest(BaseModel):
    """One file to convert. Frozen once handed to a worker."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    input_path: str = Field(min_length=1)
    output_path: str | None = None
    target: str | None = None
    options: ConversionOptions = Field(default_factory=ConversionOptions)
    source_key: str | None = None

    @property
    def display_name(self) -> str:
        return self.source_key or self.input_path


class ConversionOutcome(BaseModel):
    """Per-file result of a conversion attempt."""

    model_config = ConfigDict(frozen=True)

    request: ConversionRequest
    success: bool
    output_path: str | None = None
    error_kind: ErrorKind | None = None
    error_message: str | None = None
    error_path: str | None = None
    diagnostics: str | None = None
    remote_output_key: str | None = None
    duration: float = 0.0

    @classmethod
    def succeeded(
        cls, request: ConversionRequest, output_path: str, duration: float = 0.0
    ) -> ConversionOutcome:
        return cls(request=request, success=True, output_path=output_path, duration=duration)

    @classmethod
    def from_error(
        cls, request: ConversionRequest, error: ConverterError, duration: float = 0.0
    ) -> ConversionOutcome:
        return cls(
            request=request,
            success=False,
            error_kind=error.kind,
            error_message=error.message,
            error_path=error.path,
            diagnostics=error.diagnostics,
            duration=duration,
        )


class BatchResult(BaseModel):
    """Outcomes of a batch, in submission order."""

    outcomes: list[ConversionOutcome] = Field(default_factory=list)
    output_dir: str | None = None
    storage_disk: str | None = None
    cloud_storage: bool = False
    cloud_output_dir: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return len(self.outcomes)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def success(self) -> bool:
        return self.failed == 0

    def failures(self) -> list[ConversionOutcome]:
        return [o for o in self.outcomes if not o.success]

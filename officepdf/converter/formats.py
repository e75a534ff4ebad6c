"""Extension -> LibreOffice export filter mapping."""

from __future__ import annotations

from pathlib import PurePath

GENERIC_PDF_FILTER = "pdf"
IMPRESS_PDF_FILTER = "pdf:impress_pdf_Export"
CALC_PDF_FILTER = "pdf:calc_pdf_Export"
WRITER_PDF_FILTER = "pdf:writer_pdf_Export"

PRESENTATION_EXTENSIONS: frozenset[str] = frozenset({"ppt", "pptx", "pps", "ppsx", "odp"})
SPREADSHEET_EXTENSIONS: frozenset[str] = frozenset({"xls", "xlsx", "ods", "csv"})
DOCUMENT_EXTENSIONS: frozenset[str] = frozenset({"doc", "docx", "odt", "rtf", "txt"})

_FILTER_MAP: dict[str, str] = {
    **{ext: IMPRESS_PDF_FILTER for ext in PRESENTATION_EXTENSIONS},
    **{ext: CALC_PDF_FILTER for ext in SPREADSHEET_EXTENSIONS},
    **{ext: WRITER_PDF_FILTER for ext in DOCUMENT_EXTENSIONS},
}


def normalize_extension(value: str) -> str:
    """Lowercase an extension and strip the leading dot.

    Accepts a bare extension (``"DOCX"``, ``".docx"``) or a file name/path
    (``"report.docx"``). Anything containing a dot or a path separator is
    treated as a file name.
    """
    value = value.strip()
    if value.startswith(".") and value.count(".") == 1 and "/" not in value and "\\" not in value:
        return value[1:].lower()
    if "." in value or "/" in value or "\\" in value:
        return PurePath(value.replace("\\", "/")).suffix.lstrip(".").lower()
    return value.lower()


def resolve_filter(extension: str) -> str:
    """Return the renderer filter for an extension.

    Unknown extensions fall back to the generic ``pdf`` filter; this never raises.
    """
    return _FILTER_MAP.get(normalize_extension(extension), GENERIC_PDF_FILTER)


def output_extension(target: str) -> str:
    """Extension of the file a ``--convert-to`` target produces.

    ``"pdf:calc_pdf_Export"`` -> ``"pdf"``, ``'docx:"MS Word 2007 XML"'`` -> ``"docx"``.
    """
    return target.split(":", 1)[0].strip().lower()


def is_pdf_target(target: str) -> bool:
    return output_extension(target) == "pdf"

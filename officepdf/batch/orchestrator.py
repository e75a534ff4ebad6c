"""Fan a list of conversion requests out over a bounded thread pool."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from officepdf.converter.base import Renderer
from officepdf.converter.errors import ConversionFailedError, ConverterError
from officepdf.converter.files import ensure_directory
from officepdf.converter.formats import normalize_extension, output_extension, resolve_filter
from officepdf.converter.models import (
    BatchResult,
    ConversionOptions,
    ConversionOutcome,
    ConversionRequest,
)

logger = logging.getLogger(__name__)


class BatchConverter:
    """Runs many single-file conversions concurrently.

    Each worker handles one request at a time and each request gets its own
    renderer profile, so the only thing workers share is the output
    directory. A failing file becomes a failed outcome; it never stops its
    siblings. Outcomes come back in submission order.
    """

    def __init__(
        self,
        renderer: Renderer,
        native_renderers: Sequence[Renderer] = (),
        default_workers: int | None = None,
        default_options: ConversionOptions | None = None,
    ) -> None:
        self._renderer = renderer
        self._native = list(native_renderers)
        self._default_workers = default_workers
        self._defaults = default_options or ConversionOptions()
        self._active: set[threading.Event] = set()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def convert_batch(
        self,
        requests: Iterable[ConversionRequest],
        output_dir: str | Path,
        options: ConversionOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BatchResult:
        """Convert every request; outputs without an explicit path go to *output_dir*.

        Only failing to create *output_dir* aborts the batch (WriteFailedError,
        raised before any conversion starts).
        """
        requests = list(requests)
        out_dir = Path(output_dir)
        ensure_directory(out_dir)

        opts = self._defaults.merged(options)
        if not requests:
            return BatchResult(output_dir=str(out_dir))

        workers = self.worker_count(opts, len(requests))
        event = cancel_event or threading.Event()
        with self._lock:
            self._active.add(event)

        targets = self.plan_outputs(requests, out_dir)
        logger.info("converting %d file(s) with %d worker(s)", len(requests), workers)
        started = time.monotonic()
        try:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="officepdf") as pool:
                futures = [
                    pool.submit(self.convert_one, request, out_dir, opts, event, target)
                    for request, target in zip(requests, targets)
                ]
                outcomes = [future.result() for future in futures]
        finally:
            with self._lock:
                self._active.discard(event)

        result = BatchResult(outcomes=outcomes, output_dir=str(out_dir))
        logger.info(
            "batch finished in %.1fs: %d succeeded, %d failed",
            time.monotonic() - started,
            result.succeeded,
            result.failed,
        )
        return result

    def convert_one(
        self,
        request: ConversionRequest,
        output_dir: str | Path,
        options: ConversionOptions | None = None,
        cancel_event: threading.Event | None = None,
        output_path: Path | None = None,
    ) -> ConversionOutcome:
        """Convert a single request, reporting any failure as an outcome.

        *output_path* overrides the default ``<output_dir>/<stem>.<ext>``.
        """
        opts = self._defaults.merged(options).merged(request.options)
        started = time.monotonic()

        if cancel_event is not None and cancel_event.is_set():
            error = ConversionFailedError("Conversion cancelled", request.display_name)
            return ConversionOutcome.from_error(request, error)

        try:
            renderer = self.select_renderer(request, opts)
            final = renderer.render(
                request.input_path,
                output_path or self.output_path_for(request, output_dir),
                request.target,
                opts,
                cancel_event,
            )
        except ConverterError as e:
            logger.warning("conversion failed for %s: %s", request.display_name, e)
            return ConversionOutcome.from_error(request, e, time.monotonic() - started)
        except Exception as e:
            logger.exception("unexpected error converting %s", request.display_name)
            error = ConversionFailedError(f"Unexpected error: {e}", request.display_name)
            return ConversionOutcome.from_error(request, error, time.monotonic() - started)

        return ConversionOutcome.succeeded(request, str(final), time.monotonic() - started)

    def cancel(self) -> None:
        """Cancel running batches: queued files are skipped, running renderers killed."""
        with self._lock:
            for event in self._active:
                event.set()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def worker_count(self, options: ConversionOptions, pending: int) -> int:
        configured = options.workers or self._default_workers or os.cpu_count() or 1
        return max(1, min(configured, pending))

    def select_renderer(self, request: ConversionRequest, options: ConversionOptions) -> Renderer:
        """Pick a native renderer when asked for and available, else the default."""
        if options.native:
            ext = normalize_extension(request.input_path)
            for renderer in self._native:
                if renderer.supports(ext):
                    return renderer
            logger.warning(
                "native conversion requested for %s but no native renderer handles .%s; using %s",
                request.display_name,
                ext,
                self._renderer.name,
            )
        return self._renderer

    @classmethod
    def plan_outputs(
        cls, requests: Sequence[ConversionRequest], output_dir: str | Path
    ) -> list[Path]:
        """Destination for every request, unique within the batch.

        Explicit output paths are kept and reserved first. A default name
        already taken gets ``-1``, ``-2`` ... appended, in submission order,
        so ``a/report.docx`` and ``b/report.docx`` land in ``report.pdf``
        and ``report-1.pdf``.
        """
        taken = {_path_key(Path(r.output_path)) for r in requests if r.output_path}
        planned: list[Path] = []
        for request in requests:
            path = cls.output_path_for(request, output_dir)
            if not request.output_path:
                candidate, n = path, 1
                while _path_key(candidate) in taken:
                    candidate = path.with_name(f"{path.stem}-{n}{path.suffix}")
                    n += 1
                if candidate != path:
                    logger.warning(
                        "%s would overwrite %s from the same batch; writing %s",
                        request.display_name,
                        path.name,
                        candidate.name,
                    )
                path = candidate
            taken.add(_path_key(path))
            planned.append(path)
        return planned

    @staticmethod
    def output_path_for(request: ConversionRequest, output_dir: str | Path) -> Path:
        if request.output_path:
            return Path(request.output_path)
        target = request.target or resolve_filter(request.input_path)
        ext = output_extension(target) or "pdf"
        # staged inputs carry a scratch-unique file name; name the output after the original key
        stem = Path(request.source_key or request.input_path).stem
        return Path(output_dir) / f"{stem}.{ext}"


def _path_key(path: Path) -> str:
    return os.path.normcase(os.path.abspath(path))

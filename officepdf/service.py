"""PdfConverter: the entry point tying renderer, batches, and storage together."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from officepdf.batch.orchestrator import BatchConverter
from officepdf.config.models import OfficePdfConfig
from officepdf.converter.base import Renderer
from officepdf.converter.errors import WriteFailedError
from officepdf.converter.formats import output_extension, resolve_filter
from officepdf.converter.libreoffice import LibreOfficeRenderer
from officepdf.converter.models import BatchResult, ConversionOptions, ConversionRequest
from officepdf.converter.profile import default_scratch_root
from officepdf.plugins.loader import PluginLoader
from officepdf.storage.disks import Disk, DiskRegistry
from officepdf.storage.staging import StagingArea

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "pdf-output"


class PdfConverter:
    """Converts office documents to PDF, one at a time or in batches.

    Batches can read from and write to any configured disk. Remote disks
    are staged through a scratch area that is always removed afterwards.
    """

    def __init__(
        self,
        config: OfficePdfConfig | None = None,
        renderer: LibreOfficeRenderer | None = None,
        disks: DiskRegistry | None = None,
        native_renderers: Sequence[Renderer] | None = None,
    ) -> None:
        self.config = config or OfficePdfConfig()
        self.scratch_root = (
            Path(self.config.temp_dir) if self.config.temp_dir else default_scratch_root()
        )
        loader = PluginLoader(self.config)
        self.renderer = renderer or LibreOfficeRenderer.from_config(
            self.config.renderer, self.scratch_root
        )
        if native_renderers is None:
            native_renderers = loader.load_renderers()
        self.disks = disks or DiskRegistry(self.config.disks, loader)
        self.batch = BatchConverter(
            self.renderer,
            native_renderers=native_renderers,
            default_workers=self.config.batch.workers,
            default_options=self.config.defaults,
        )

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------

    def convert(
        self,
        input_path: str | Path,
        output_path: str | Path | None = None,
        target: str | None = None,
        options: ConversionOptions | None = None,
    ) -> Path:
        """Convert one file and return the output path.

        The output defaults to the input path with a ``.pdf`` suffix. Raises
        InputNotFoundError, WriteFailedError or ConversionFailedError.
        """
        ext = output_extension(target or resolve_filter(str(input_path)))
        output = Path(output_path) if output_path else Path(input_path).with_suffix(f".{ext}")
        self._guard_overwrite(input_path, output)

        opts = self.config.defaults.merged(options)
        request = ConversionRequest(input_path=str(input_path), target=target, options=opts)
        renderer = self.batch.select_renderer(request, opts)
        return renderer.render(input_path, output, target, opts)

    def convert_to(
        self,
        input_path: str | Path,
        output_path: str | Path,
        fmt: str,
        options: ConversionOptions | None = None,
    ) -> Path:
        """Convert one file to an arbitrary LibreOffice output format."""
        self._guard_overwrite(input_path, Path(output_path))
        opts = self.config.defaults.merged(options)
        return self.renderer.convert_to(input_path, output_path, fmt, opts)

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def convert_batch(
        self,
        inputs: Sequence[str | Path | ConversionRequest],
        output_dir: str | None = None,
        options: ConversionOptions | None = None,
        disk: str | None = None,
        output_disk: str | None = None,
    ) -> BatchResult:
        """Convert many files; always returns one outcome per input, in order.

        *disk* names the disk input keys live on (default: ``default_disk``
        from config, else plain paths). *output_disk* defaults to *disk*.
        """
        requests = [
            item if isinstance(item, ConversionRequest) else ConversionRequest(input_path=str(item))
            for item in inputs
        ]
        disk_name = disk or self.config.default_disk
        out_disk_name = output_disk or disk_name
        out_dir = output_dir or self._default_output_dir(requests)

        source = self.disks.get(disk_name) if disk_name else None
        dest = self.disks.get(out_disk_name) if out_disk_name else None
        remote_source = source if disk_name and self.disks.is_remote(disk_name) else None
        remote_dest = dest if out_disk_name and self.disks.is_remote(out_disk_name) else None

        if remote_source is None and remote_dest is None:
            local_requests = [self._localize(r, source) for r in requests]
            result = self.batch.convert_batch(local_requests, self._local_dir(out_dir, dest), options)
            return result.model_copy(update={"storage_disk": disk_name})

        return self._convert_staged(
            requests,
            out_dir,
            options,
            source=source,
            dest=dest,
            remote_source=remote_source,
            remote_dest=remote_dest,
            disk_name=disk_name,
        )

    def _convert_staged(
        self,
        requests: list[ConversionRequest],
        out_dir: str,
        options: ConversionOptions | None,
        *,
        source: Disk | None,
        dest: Disk | None,
        remote_source: Disk | None,
        remote_dest: Disk | None,
        disk_name: str | None,
    ) -> BatchResult:
        with StagingArea(self.scratch_root) as staging:
            if remote_source is not None:
                work = staging.stage(requests, remote_source)
            else:
                work = [self._localize(r, source) for r in requests]

            if remote_dest is not None:
                local_out = staging.scratch_dir("batch")
            else:
                local_out = self._local_dir(out_dir, dest)
            result = self.batch.convert_batch(work, local_out, options)

            outcomes = result.outcomes
            if remote_dest is not None:
                outcomes = staging.commit(outcomes, remote_dest, out_dir)

            by_id = {o.request.id: o for o in outcomes}
            by_id.update(staging.failures)

        ordered = [by_id[r.id] for r in requests]
        uploaded = remote_dest is not None
        return BatchResult(
            outcomes=ordered,
            output_dir=out_dir if uploaded else str(local_out),
            storage_disk=disk_name,
            cloud_storage=True,
            cloud_output_dir=out_dir if uploaded else None,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Cancel batches in flight."""
        self.batch.cancel()

    @staticmethod
    def _guard_overwrite(input_path: str | Path, output: Path) -> None:
        try:
            same = Path(input_path).resolve() == output.resolve()
        except OSError:
            same = False
        if same:
            raise WriteFailedError("Output path would overwrite the input", str(output))

    @staticmethod
    def _default_output_dir(requests: list[ConversionRequest]) -> str:
        """Directory of the first input, as the batch default."""
        if not requests:
            return DEFAULT_OUTPUT_DIR
        return str(PurePosixPath(requests[0].input_path.replace("\\", "/")).parent)

    @staticmethod
    def _localize(request: ConversionRequest, disk: Disk | None) -> ConversionRequest:
        if disk is None:
            return request
        return request.model_copy(update={"input_path": disk.path(request.input_path)})

    @staticmethod
    def _local_dir(out_dir: str, disk: Disk | None) -> Path:
        return Path(disk.path(out_dir) if disk is not None else out_dir)

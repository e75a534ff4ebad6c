"""Headless LibreOffice invoker with per-run profile isolation."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from officepdf.converter.errors import (
    ConversionFailedError,
    ConverterError,
    InputNotFoundError,
)
from officepdf.converter.files import move_into_place
from officepdf.converter.formats import is_pdf_target, resolve_filter
from officepdf.converter.models import ConversionOptions, ConversionOutcome, ConversionRequest
from officepdf.converter.paths import to_profile_url
from officepdf.converter.profile import PROFILE_DIRNAME, ExecutionProfile

if TYPE_CHECKING:
    from officepdf.config.models import RendererConfig

logger = logging.getLogger(__name__)

HEADLESS_FLAGS: tuple[str, ...] = (
    "--headless",
    "--invisible",
    "--nologo",
    "--nofirststartwizard",
)

_POSIX = os.name == "posix"


def _absolute(path: str | Path) -> str:
    try:
        return str(Path(path).resolve())
    except (OSError, RuntimeError):
        return str(path)


def _kill(proc: subprocess.Popen) -> None:
    """Kill the renderer and anything it forked (soffice execs soffice.bin)."""
    if _POSIX:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except (ProcessLookupError, PermissionError):
            pass
    try:
        proc.kill()
    except ProcessLookupError:
        pass


class LibreOfficeRenderer:
    """Runs ``soffice --convert-to`` for a single file.

    Every call gets a fresh ExecutionProfile: LibreOffice serializes (or
    corrupts) concurrent use of one user profile, so profiles are never
    shared or reused. ``HOME`` is pointed at the scratch directory so the
    process can't fall back to the real user's profile either.
    """

    name = "libreoffice"

    def __init__(
        self,
        binary: str = "soffice",
        timeout: float = 120.0,
        scratch_root: str | Path | None = None,
        extra_args: Sequence[str] = (),
        poll_interval: float = 0.2,
    ) -> None:
        self.binary = binary
        self.timeout = timeout
        self.scratch_root = Path(scratch_root) if scratch_root else None
        self.extra_args = tuple(extra_args)
        self._poll_interval = poll_interval

    @classmethod
    def from_config(
        cls, config: RendererConfig, scratch_root: str | Path | None = None
    ) -> LibreOfficeRenderer:
        return cls(
            binary=config.binary,
            timeout=config.timeout,
            scratch_root=scratch_root,
            extra_args=config.extra_args,
        )

    # ------------------------------------------------------------------
    # Renderer protocol
    # ------------------------------------------------------------------

    def supports(self, extension: str) -> bool:
        return True

    def render(
        self,
        input_path: str | Path,
        output_path: str | Path,
        target: str | None = None,
        options: ConversionOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Path:
        """Convert *input_path* and place the result at *output_path*.

        *target* is a ``--convert-to`` value; when omitted it is resolved from
        the input's extension. Raises InputNotFoundError, WriteFailedError or
        ConversionFailedError.
        """
        target = target or resolve_filter(str(input_path))
        return self._run(
            input_path,
            output_path,
            target,
            options,
            cancel_event,
            pdf_only=is_pdf_target(target),
        )

    def convert_to(
        self,
        input_path: str | Path,
        output_path: str | Path,
        fmt: str,
        options: ConversionOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Path:
        """Convert to an arbitrary LibreOffice format (``docx``, ``odt``, ``png`` ...)."""
        return self._run(input_path, output_path, fmt, options, cancel_event, pdf_only=False)

    def convert(
        self,
        input_path: str | Path,
        output_path: str | Path,
        target: str | None = None,
        options: ConversionOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ConversionOutcome:
        """Like render(), but reports failure as an outcome instead of raising."""
        request = ConversionRequest(
            input_path=str(input_path),
            output_path=str(output_path),
            target=target,
            options=options or ConversionOptions(),
        )
        started = time.monotonic()
        try:
            final = self.render(input_path, output_path, target, options, cancel_event)
        except ConverterError as e:
            return ConversionOutcome.from_error(request, e, time.monotonic() - started)
        return ConversionOutcome.succeeded(request, str(final), time.monotonic() - started)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def build_command(self, abs_input: str, target: str, profile: ExecutionProfile) -> list[str]:
        return [
            self.binary,
            f"-env:UserInstallation={to_profile_url(str(profile.profile_dir))}",
            *HEADLESS_FLAGS,
            *self.extra_args,
            "--convert-to",
            target,
            "--outdir",
            str(profile.path),
            abs_input,
        ]

    def _run(
        self,
        input_path: str | Path,
        output_path: str | Path,
        target: str,
        options: ConversionOptions | None,
        cancel_event: threading.Event | None,
        *,
        pdf_only: bool,
    ) -> Path:
        label = str(input_path)
        if not Path(input_path).is_file():
            raise InputNotFoundError("File not found", label)

        timeout = (options.timeout if options and options.timeout else None) or self.timeout

        with ExecutionProfile(self.scratch_root) as profile:
            workdir = profile.path
            cmd = self.build_command(_absolute(input_path), target, profile)
            env = {**os.environ, "HOME": str(workdir)}

            logger.debug("rendering %s (%s) in %s", label, target, workdir)
            diagnostics = self._execute(cmd, env, timeout, cancel_event, label)
            generated = self._find_output(workdir, pdf_only, label, diagnostics)
            final = move_into_place(generated, Path(output_path))

        logger.debug("rendered %s -> %s", label, final)
        return final

    def _execute(
        self,
        cmd: list[str],
        env: dict[str, str],
        timeout: float,
        cancel_event: threading.Event | None,
        label: str,
    ) -> str:
        """Run the renderer to completion; returns combined stdout/stderr."""
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=env,
                start_new_session=_POSIX,
            )
        except OSError as e:
            raise ConversionFailedError(
                f"Could not start renderer {self.binary!r}", label, diagnostics=str(e)
            ) from e

        deadline = time.monotonic() + timeout
        reason: str | None = None
        try:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    reason = "Conversion cancelled"
                    break
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    reason = f"Conversion timed out after {timeout:g}s"
                    break
                try:
                    out, _ = proc.communicate(timeout=min(self._poll_interval, remaining))
                    break
                except subprocess.TimeoutExpired:
                    continue
        except BaseException:
            _kill(proc)
            proc.communicate()
            raise

        if reason is not None:
            _kill(proc)
            out, _ = proc.communicate()
            logger.warning("%s: %s", reason, label)
            raise ConversionFailedError(reason, label, diagnostics=_decode(out))

        diagnostics = _decode(out)
        if proc.returncode != 0:
            logger.warning("Renderer exited %d for %s", proc.returncode, label)
            raise ConversionFailedError(
                f"LibreOffice conversion failed (exit {proc.returncode})",
                label,
                diagnostics=diagnostics,
            )
        return diagnostics

    @staticmethod
    def _find_output(scratch: Path, pdf_only: bool, label: str, diagnostics: str) -> Path:
        """Locate the single file the renderer wrote into *scratch*.

        Zero or several qualifying entries are both failures; exit status
        alone doesn't prove LibreOffice wrote anything.
        """
        candidates = []
        for entry in sorted(scratch.iterdir()):
            if entry.name == PROFILE_DIRNAME or entry.name.startswith("."):
                continue
            if not entry.is_file():
                continue
            if pdf_only and entry.suffix.lower() != ".pdf":
                continue
            candidates.append(entry)

        if not candidates:
            raise ConversionFailedError(
                "LibreOffice did not produce an output file", label, diagnostics=diagnostics
            )
        if len(candidates) > 1:
            names = ", ".join(c.name for c in candidates)
            raise ConversionFailedError(
                f"LibreOffice produced multiple candidate outputs ({names})",
                label,
                diagnostics=diagnostics,
            )
        return candidates[0]


def _decode(raw: bytes | None) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")

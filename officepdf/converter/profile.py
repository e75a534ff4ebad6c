"""Per-invocation scratch directory holding an isolated renderer profile."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from types import TracebackType

from officepdf.converter.errors import ConversionFailedError

logger = logging.getLogger(__name__)

PROFILE_DIRNAME = "profile"


def default_scratch_root() -> Path:
    return Path(tempfile.gettempdir()) / "officepdf"


class ExecutionProfile:
    """Scratch directory + ``profile/`` subdirectory for one renderer run.

    LibreOffice locks its user profile, so every invocation gets a brand-new
    one. The whole tree is removed when the context exits, on every path.
    """

    def __init__(self, scratch_root: Path | str | None = None) -> None:
        self._scratch_root = Path(scratch_root) if scratch_root else default_scratch_root()
        self.root: Path | None = None

    @property
    def path(self) -> Path:
        """The scratch root of the active run; also the renderer's --outdir."""
        if self.root is None:
            raise RuntimeError("ExecutionProfile used outside its context")
        return self.root

    @property
    def profile_dir(self) -> Path:
        return self.path / PROFILE_DIRNAME

    def __enter__(self) -> ExecutionProfile:
        try:
            self._scratch_root.mkdir(parents=True, exist_ok=True)
            self.root = Path(tempfile.mkdtemp(prefix="officepdf-", dir=self._scratch_root))
            (self.root / PROFILE_DIRNAME).mkdir()
        except OSError as e:
            if self.root is not None:
                shutil.rmtree(self.root, ignore_errors=True)
                self.root = None
            raise ConversionFailedError(
                "Failed to create renderer scratch directory", str(self._scratch_root)
            ) from e
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.root is None:
            return
        shutil.rmtree(self.root, ignore_errors=True)
        if self.root.exists():
            logger.warning("Could not fully remove scratch directory %s", self.root)
        self.root = None

"""Shared test fixtures for officepdf."""

import logging
import os
import sys
from pathlib import Path

import pytest

from officepdf.config.models import OfficePdfConfig
from officepdf.converter.libreoffice import LibreOfficeRenderer

# Stand-in for soffice: honours --convert-to/--outdir and writes "<stem>.<ext>"
# into the outdir. File names steer behaviour:
#   *fail*  -> exit 1 with a diagnostic line
#   *empty* -> exit 0 without writing anything
#   *multi* -> writes two candidate outputs
#   *slow*  -> sleeps far longer than any test timeout
FAKE_SOFFICE = """#!__PYTHON__
import json
import os
import sys
import time

args = sys.argv[1:]
outdir = args[args.index("--outdir") + 1]
target = args[args.index("--convert-to") + 1]
src = args[-1]
name = os.path.basename(src).lower()

log = os.environ.get("FAKE_SOFFICE_LOG")
if log:
    with open(log, "a") as f:
        f.write(json.dumps({"argv": args, "home": os.environ.get("HOME")}) + "\\n")

time.sleep(float(os.environ.get("FAKE_SOFFICE_DELAY", "0")))

if "slow" in name:
    time.sleep(60)
if "fail" in name:
    print("Error: source file could not be loaded")
    sys.exit(1)

ext = target.split(":", 1)[0]
stem = os.path.splitext(os.path.basename(src))[0]
if "empty" not in name:
    with open(src, "rb") as f:
        data = f.read()
    with open(os.path.join(outdir, stem + "." + ext), "wb") as f:
        f.write(b"%PDF-1.4 fake\\n" + data)
if "multi" in name:
    with open(os.path.join(outdir, stem + "-extra." + ext), "wb") as f:
        f.write(b"extra")
print("convert " + src + " -> " + ext)
"""


@pytest.fixture
def fake_soffice(tmp_path):
    if os.name != "posix":
        pytest.skip("fake soffice is a shebang script")
    script = tmp_path / "bin" / "soffice"
    script.parent.mkdir()
    script.write_text(FAKE_SOFFICE.replace("__PYTHON__", sys.executable))
    script.chmod(0o755)
    return script


@pytest.fixture
def scratch_root(tmp_path):
    return tmp_path / "scratch"


@pytest.fixture
def renderer(fake_soffice, scratch_root):
    return LibreOfficeRenderer(
        binary=str(fake_soffice),
        timeout=30,
        scratch_root=scratch_root,
        poll_interval=0.05,
    )


@pytest.fixture
def make_doc(tmp_path):
    """Factory writing a small input document under tmp_path/docs."""
    docs = tmp_path / "docs"

    def _make(name: str, content: bytes = b"document body") -> Path:
        docs.mkdir(exist_ok=True)
        path = docs / name
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def sample_config():
    return OfficePdfConfig()


@pytest.fixture
def profile_dirs(scratch_root):
    """Callable listing live execution-profile directories under the scratch root."""

    def _list() -> list[Path]:
        if not scratch_root.exists():
            return []
        return [p for p in scratch_root.iterdir() if p.name.startswith("officepdf-")]

    return _list


@pytest.fixture(autouse=True)
def _reset_officepdf_logger():
    """Undo configure_logging() between tests so caplog keeps seeing records."""
    yield
    logger = logging.getLogger("officepdf")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


class MemoryDisk:
    """In-memory remote disk. Keys listed in ``fail_put``/``fail_get`` raise."""

    def __init__(self, name="remote", files=None):
        self.name = name
        self.files = dict(files or {})
        self.fail_put = set()
        self.fail_get = set()

    def exists(self, key):
        return key in self.files

    def get(self, key):
        if key in self.fail_get:
            raise ConnectionError(f"read of {key} interrupted")
        return self.files[key]

    def put(self, key, data):
        if any(key.endswith(name) for name in self.fail_put):
            raise ConnectionError(f"upload of {key} refused")
        self.files[key] = data

    def path(self, key):
        raise NotImplementedError(key)

    def is_remote(self):
        return True


@pytest.fixture
def memory_disk():
    return MemoryDisk()

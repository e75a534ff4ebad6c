"""Locate officepdf.yaml, expand ${VAR} references, and validate it."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import OfficePdfConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG = Path("officepdf.yaml")
USER_CONFIG = Path(".officepdf") / "config.yaml"

# ${NAME} or ${NAME:-fallback}
_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def config_candidates(cli_path: str | None = None) -> list[Path]:
    """Files consulted in order: explicit path, ./officepdf.yaml, ~/.officepdf/config.yaml."""
    candidates = [Path(cli_path)] if cli_path else []
    candidates += [PROJECT_CONFIG, Path.home() / USER_CONFIG]
    return candidates


def load_config(cli_path: str | None = None) -> OfficePdfConfig:
    """Return the first non-empty config file found, else the built-in defaults.

    Raises ValueError naming the file when it is not valid YAML or does not
    validate.
    """
    for path in config_candidates(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            logger.debug("config file %s is empty; skipping", path)
            continue
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid config in {path}: expected a mapping at the top level")
        try:
            config = OfficePdfConfig(**_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug("loaded config from %s", path)
        return config

    logger.debug("no config file found; using defaults")
    return OfficePdfConfig()


def _read_yaml(path: Path) -> object:
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} and ${VAR:-default} references in strings.

    An unset variable without a default expands to "" and logs a warning.
    """
    if isinstance(obj, str):
        return _ENV_REF.sub(_env_value, obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _env_value(match: re.Match[str]) -> str:
    name, default = match.group(1), match.group(2)
    value = os.environ.get(name)
    if value is not None:
        return value
    if default is not None:
        return default
    logger.warning("environment variable %s is not set; substituting an empty string", name)
    return ""


# Default YAML template for `officepdf config init`
DEFAULT_CONFIG_TEMPLATE = """\
# officepdf.yaml

# External renderer
renderer:
  binary: "soffice"            # path to soffice / libreoffice
  timeout: 120                 # seconds per file
  # extra_args: []

# Batch execution
batch:
  workers: null                # defaults to the host CPU count

# Default conversion options (overridable per call)
defaults:
  # page_size: "A4"
  # orientation: "portrait"    # portrait | landscape
  # margin: 10
  # font_size: 10
  # header_row: true
  native: false

# Scratch space for renderer profiles and staged files
# temp_dir: "/tmp/officepdf"

# Storage disks
disks:
  local:
    driver: "local"
    root: "."
#  s3:
#    driver: "s3"
#    bucket: "${OFFICEPDF_BUCKET}"
#    prefix: "documents"
#    region: "us-east-1"
#    # endpoint_url: "http://localhost:9000"

# default_disk: "local"

# Native renderer plugins (entry point names)
plugins:
  renderers: []

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""

"""Filesystem path -> file:// URL for the renderer's -env:UserInstallation flag."""

from __future__ import annotations

import re
from urllib.parse import quote

_DRIVE_RE = re.compile(r"^[A-Za-z]:(/|$)")

# Characters left unescaped in the URL path; ':' keeps drive letters readable.
_SAFE = "/:-._~!$&'()*+,;=@"


def to_profile_url(path: str) -> str:
    """Convert an absolute path into a ``file://`` URL.

    Pure string transform, no filesystem access. Handles POSIX paths,
    Windows drive paths (``C:\\x`` -> ``file:///C:/x``) and UNC paths
    (``\\\\host\\share`` -> ``file://host/share``) regardless of the host OS.
    """
    normalized = path.replace("\\", "/")

    if normalized.startswith("//") and not normalized.startswith("///"):
        host, _, rest = normalized[2:].partition("/")
        return f"file://{host}/{quote(rest, safe=_SAFE)}"

    if _DRIVE_RE.match(normalized):
        return "file:///" + quote(normalized, safe=_SAFE)

    if not normalized.startswith("/"):
        normalized = "/" + normalized
    return "file://" + quote(normalized, safe=_SAFE)

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Union
from urllib.parse import unquote, urlparse


def utc_ts() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def safe_filename(name: str, max_len: int = 120) -> str:
    name = name.strip()
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name)
    name = re.sub(r"_+", "_", name).strip("_")
    if not name:
        name = "file"
    return name[:max_len]


def source_stem(source: Union[str, Path]) -> str:
    """Best-effort file stem for a local path or a URL, used to name outputs."""
    s = str(source)
    parsed = urlparse(s)
    if parsed.scheme and parsed.netloc:
        s = unquote(parsed.path.rstrip("/").rsplit("/", 1)[-1])
    return safe_filename(Path(s).stem)

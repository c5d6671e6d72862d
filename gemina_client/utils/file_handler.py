"""Local file helpers for uploads."""

from __future__ import annotations

import base64
import uuid
from pathlib import Path

import aiofiles
from loguru import logger

EXTERNAL_ID_PREFIX = "ex_id_"


def new_external_id() -> str:
    """Generate a caller-side id correlating an upload with its prediction."""
    return f"{EXTERNAL_ID_PREFIX}{uuid.uuid4()}"


async def read_as_base64(path: Path) -> str:
    """Read a file and return its contents base64-encoded.

    Raises FileNotFoundError if the file does not exist.
    """
    path = Path(path)
    async with aiofiles.open(path, "rb") as f:
        content = await f.read()

    logger.debug(f"Read {path.name} ({len(content) / 1024:.1f} KB)")
    return base64.b64encode(content).decode("utf-8")


def is_remote(source: str | Path) -> bool:
    """Return True if ``source`` is an http(s) URL rather than a local path."""
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))

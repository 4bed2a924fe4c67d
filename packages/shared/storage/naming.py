"""Collision-resistant storage filenames."""

import re
import secrets
import time
from pathlib import PurePath

# Characters kept from user-supplied names
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")

MAX_BASE_LENGTH = 64

FORMAT_EXTENSIONS: dict[str, str] = {
    "jpg": ".jpg",
    "jpeg": ".jpg",
    "png": ".png",
    "webp": ".webp",
    "avif": ".avif",
}


def sanitize_component(value: str) -> str:
    """Strip everything outside the safe alphanumeric/dash/underscore set."""
    return _UNSAFE_CHARS.sub("", value or "")


def extension_for_format(fmt: str) -> str:
    """
    Get the file extension for an output format.

    Unknown formats map to ``.jpg``.
    """
    return FORMAT_EXTENSIONS.get(fmt.lower(), ".jpg")


def generate_filename(
    original_name: str,
    prefix: str = "",
    output_format: str | None = None,
) -> str:
    """
    Generate a unique storage filename.

    Format: <prefix><timestamp_ms>-<48 random bits as hex>-<safe base><ext>

    Args:
        original_name: Name supplied by the client
        prefix: Optional prefix (sanitized like the base name)
        output_format: Target format; its extension replaces the original one

    Returns:
        Filename safe to use as a storage key
    """
    # Only the final component matters; clients may send full paths
    name = PurePath((original_name or "").replace("\\", "/")).name
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = ext, ""

    safe_base = sanitize_component(stem)[:MAX_BASE_LENGTH] or "file"

    if output_format:
        extension = extension_for_format(output_format)
    else:
        safe_ext = sanitize_component(ext).lower()
        extension = f".{safe_ext}" if safe_ext else ""

    timestamp = int(time.time() * 1000)
    random_part = secrets.token_hex(6)
    return f"{sanitize_component(prefix)}{timestamp}-{random_part}-{safe_base}{extension}"

"""URL generation from templates plus the small helpers the builders share."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Sequence

from .models import ExtractedRecord, GeneratedUrl

PLACEHOLDER_PATTERN = re.compile(r"\{([^}]+)\}")
BUILTIN_PLACEHOLDERS = ("width", "format")
FALLBACK_EXTENSION = "jpg"

MIME_TYPES: Dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "avif": "image/avif",
    "svg": "image/svg+xml",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "ico": "image/x-icon",
    "tiff": "image/tiff",
    "auto": "image/webp",
}


def resolve_format(format: str, record: ExtractedRecord) -> str:
    """Map the ``original`` pseudo-format onto the extracted extension."""
    if format != "original":
        return format
    return record.get("ext") or record.get("originalExt") or FALLBACK_EXTENSION


def generate_url(template: str, record: ExtractedRecord, width: int, format: str) -> str:
    """Substitute ``{name}`` placeholders; unknown placeholders are left as-is."""
    replacements = dict(record)
    replacements["width"] = str(width)
    replacements["format"] = resolve_format(format, record)

    placeholders = re.compile("|".join(re.escape("{" + key + "}") for key in replacements))
    return placeholders.sub(lambda match: replacements[match.group(0)[1:-1]], template)


def expand_urls(
    template: str,
    record: ExtractedRecord,
    widths: Sequence[int],
    formats: Sequence[str],
) -> List[GeneratedUrl]:
    """Build the format x width matrix, formats outermost."""
    return [
        GeneratedUrl(generate_url(template, record, width, format), width, format)
        for format in formats
        for width in widths
    ]


def generate_srcset(urls: Iterable[GeneratedUrl]) -> str:
    return ", ".join(f"{item.url} {item.width}w" for item in urls)


def get_mime_type(format: str) -> str:
    """Return the MIME type for a format, or an empty string when unknown."""
    return MIME_TYPES.get(format.lower(), "")


def select_default_src(urls: Sequence[str]) -> str:
    """Pick the middle candidate so the fallback is neither smallest nor largest."""
    if not urls:
        return ""
    return urls[len(urls) // 2]


def extract_placeholders(template: str) -> List[str]:
    placeholders: List[str] = []
    for name in PLACEHOLDER_PATTERN.findall(template):
        if name not in placeholders:
            placeholders.append(name)
    return placeholders


def missing_placeholders(template: str, record: ExtractedRecord) -> List[str]:
    """List template placeholders the record cannot fill."""
    return [
        name
        for name in extract_placeholders(template)
        if name not in BUILTIN_PLACEHOLDERS and name not in record
    ]

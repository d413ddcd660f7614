"""Built-in preset rule sets."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import ErrorCode, TransformError
from .extractor import extract_cloudinary_url, extract_standard_url
from .models import Config, ExtractedRecord, FunctionExtract, PatternExtract, Rule


@dataclass
class Preset:
    name: str
    description: str
    rules: List[Rule]


def _cloudinary_or_standard(src: str) -> Optional[ExtractedRecord]:
    """Prefer Cloudinary fields; fall back to a plain URL split for Cloudinary hosts."""
    record = extract_cloudinary_url(src)
    if record:
        return record
    standard = extract_standard_url(src)
    if standard and "cloudinary" in src:
        return {**standard, "publicId": standard["filename"]}
    return None


PRESETS: Dict[str, Preset] = {
    "cloudinary": Preset(
        name="cloudinary",
        description="Optimized for Cloudinary image CDN",
        rules=[
            Rule(
                selector="img",
                extract=FunctionExtract(_cloudinary_or_standard),
                url_template="{base}/w_{width},f_{format}/v1234567890/{publicId}",
                widths=[400, 800, 1200, 1600],
                formats=["auto"],
                output_kind="srcset",
            )
        ],
    ),
    "standard": Preset(
        name="standard",
        description="Standard responsive image configuration",
        rules=[
            Rule(
                selector="img",
                extract=PatternExtract(
                    r"^(.*)/([^/]+)\.([^.]+)$",
                    {"basePath": 1, "filename": 2, "ext": 3},
                ),
                url_template="{basePath}/{filename}_{width}w.{format}",
                widths=[320, 640, 960, 1280, 1920],
                formats=["webp", "original"],
                output_kind="picture",
                sizes="(max-width: 640px) 100vw, (max-width: 1280px) 50vw, 33vw",
                loading="lazy",
            )
        ],
    ),
}


def load_preset(
    name: str,
    rules: Optional[List[Rule]] = None,
    cdn_base: Optional[str] = None,
) -> Config:
    """Build a Config from a preset; explicit ``rules`` replace the preset's own."""
    preset = PRESETS.get(name)
    if preset is None:
        raise TransformError(
            ErrorCode.INVALID_CONFIG,
            f"Unknown preset: {name}",
            {"available": get_available_presets()},
        )
    selected = list(rules) if rules else copy.deepcopy(preset.rules)
    return Config(rules=selected, preset=name, cdn_base=cdn_base)


def get_available_presets() -> List[str]:
    return list(PRESETS)


def get_preset_info(name: str) -> Optional[Preset]:
    return PRESETS.get(name)

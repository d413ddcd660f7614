"""Markup builders producing <picture> elements and srcset-enabled <img> tags."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from .generator import generate_srcset, get_mime_type, select_default_src
from .models import ExtractedRecord, GeneratedUrl
from .utils import build_tag

REPLACED_ATTRIBUTES = ("src", "srcset", "sizes")


def preserve_attributes(
    original: Mapping[str, str],
    updates: Mapping[str, Optional[str]],
) -> Dict[str, str]:
    """Keep original attributes except src/srcset/sizes, then overlay updates."""
    preserved = {
        name: value for name, value in original.items() if name not in REPLACED_ATTRIBUTES
    }
    for name, value in updates.items():
        if value is not None:
            preserved[name] = value
    return preserved


def build_srcset_img(
    generated: Sequence[GeneratedUrl],
    attributes: Mapping[str, str],
    format: Optional[str] = None,
    sizes: Optional[str] = None,
    loading: Optional[str] = None,
) -> str:
    """Render a single <img> carrying srcset for one target format.

    The target is ``format`` when given, else the first format present. With no
    candidates left the srcset attribute is dropped and the original src kept.
    """
    target = format or (generated[0].format if generated else None)
    candidates = [item for item in generated if item.format == target]

    src = select_default_src([item.url for item in candidates]) or attributes.get("src")
    updates = {
        "src": src,
        "srcset": generate_srcset(candidates) if candidates else None,
        "sizes": sizes or attributes.get("sizes"),
        "loading": loading or attributes.get("loading"),
    }
    return build_tag("img", preserve_attributes(attributes, updates))


def build_picture(
    generated: Sequence[GeneratedUrl],
    attributes: Mapping[str, str],
    formats: Sequence[str],
    sizes: Optional[str] = None,
    loading: Optional[str] = None,
    record: Optional[ExtractedRecord] = None,
) -> str:
    """Render a <picture> with typed sources first, the original last, then <img>."""
    by_format: Dict[str, List[GeneratedUrl]] = {}
    for item in generated:
        by_format.setdefault(item.format, []).append(item)

    sources: List[str] = []
    for format in formats:
        if format == "original":
            continue
        bucket = by_format.get(format)
        if not bucket:
            continue
        sources.append(
            build_tag(
                "source",
                {
                    "type": get_mime_type(format) or None,
                    "srcset": generate_srcset(bucket),
                    "sizes": sizes,
                },
            )
        )

    original_bucket = by_format.get("original")
    if original_bucket:
        sources.append(
            build_tag("source", {"srcset": generate_srcset(original_bucket), "sizes": sizes})
        )

    extension = (record or {}).get("ext") or "jpg"
    fallback = [item for item in generated if item.format in ("original", extension)]
    default_src = select_default_src([item.url for item in fallback or generated])

    img_attributes = preserve_attributes(
        attributes,
        {
            "src": default_src or attributes.get("src"),
            "loading": loading or attributes.get("loading"),
        },
    )
    return "<picture>" + "".join(sources) + build_tag("img", img_attributes) + "</picture>"

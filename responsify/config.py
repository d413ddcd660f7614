"""Configuration constants and loaders for rule sets."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from .errors import ErrorCode, TransformError
from .extractor import BUILTIN_EXTRACTORS
from .models import Config, ExtractSpec, FunctionExtract, PatternExtract, Rule
from .presets import load_preset

DEFAULT_FORMATS = ["original"]
OUTPUT_KINDS = ("picture", "srcset")
LOADING_VALUES = ("lazy", "eager")
CHUNK_SIZE = 50

ConfigInput = Union[Config, Mapping[str, Any]]


def extract_spec_from_mapping(data: Mapping[str, Any]) -> ExtractSpec:
    """Convert a JSON-style ``extract`` block into its tagged variant."""
    custom = data.get("custom")
    has_pattern = data.get("pattern") is not None and data.get("groups") is not None
    if custom is not None and has_pattern:
        raise TransformError(
            ErrorCode.INVALID_CONFIG,
            "extract configuration must not combine pattern+groups with a custom function",
        )
    if custom is not None:
        if callable(custom):
            return FunctionExtract(custom)
        if isinstance(custom, str) and custom in BUILTIN_EXTRACTORS:
            return FunctionExtract(BUILTIN_EXTRACTORS[custom])
        raise TransformError(
            ErrorCode.INVALID_CONFIG,
            f"Unknown custom extractor: {custom!r}",
            {"available": sorted(BUILTIN_EXTRACTORS)},
        )
    if has_pattern:
        return PatternExtract(data["pattern"], dict(data["groups"]))
    raise TransformError(
        ErrorCode.INVALID_CONFIG,
        "extract configuration must have either pattern+groups or custom function",
    )


def rule_from_mapping(data: Mapping[str, Any]) -> Rule:
    extract = data.get("extract")
    if isinstance(extract, Mapping):
        extract = extract_spec_from_mapping(extract)
    return Rule(
        selector=data.get("selector"),
        extract=extract,
        url_template=data.get("urlTemplate"),
        widths=list(data.get("widths") or []),
        formats=list(data.get("formats") or DEFAULT_FORMATS),
        output_kind=data.get("type"),
        sizes=data.get("sizes"),
        loading=data.get("loading"),
    )


def config_from_mapping(data: Mapping[str, Any]) -> Config:
    """Build a Config from the JSON configuration shape.

    A mapping naming a ``preset`` without its own ``transforms`` loads that
    preset; otherwise the listed transforms are used in order.
    """
    transforms: List[Mapping[str, Any]] = data.get("transforms") or []
    rules = [rule_from_mapping(item) for item in transforms]
    preset = data.get("preset")
    cdn_base = data.get("cdnBase")
    if preset:
        return load_preset(preset, rules=rules or None, cdn_base=cdn_base)
    return Config(rules=rules, cdn_base=cdn_base)


def coerce_config(config: ConfigInput) -> Config:
    if isinstance(config, Config):
        return config
    return config_from_mapping(config)


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a JSON configuration file and return the raw mapping."""
    config_path = Path(path).expanduser()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise TransformError(
            ErrorCode.INVALID_CONFIG,
            f"Could not read config file: {config_path} ({exc})",
        ) from exc
    except json.JSONDecodeError as exc:
        raise TransformError(
            ErrorCode.INVALID_CONFIG,
            f"Config file is not valid JSON: {config_path} ({exc})",
        ) from exc
    if not isinstance(data, dict):
        raise TransformError(
            ErrorCode.INVALID_CONFIG,
            f"Config file must contain a JSON object: {config_path}",
        )
    return data

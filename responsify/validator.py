"""Pre-flight validation of rule configurations."""

from __future__ import annotations

import re
from numbers import Real
from typing import Any, List, Mapping

from .config import LOADING_VALUES, OUTPUT_KINDS, ConfigInput, extract_spec_from_mapping
from .errors import TransformError
from .models import Config, FunctionExtract, PatternExtract, Rule, ValidationResult
from .presets import PRESETS
from .selector import is_valid_selector

# Rule attribute -> key used by the JSON configuration shape.
FIELD_KEYS = {
    "selector": "selector",
    "extract": "extract",
    "url_template": "urlTemplate",
    "widths": "widths",
    "formats": "formats",
    "output_kind": "type",
    "sizes": "sizes",
    "loading": "loading",
}


def validate_config(config: ConfigInput) -> ValidationResult:
    """Check a Config (or its JSON mapping) without touching any HTML."""
    errors: List[str] = []

    if isinstance(config, Config):
        rules = config.rules
    elif isinstance(config, Mapping):
        rules = config.get("transforms")
        preset = config.get("preset")
        if preset is not None and preset not in PRESETS:
            errors.append(f"Unknown preset: {preset}")
            return ValidationResult(valid=False, errors=errors)
        if preset is not None and not rules:
            return ValidationResult(valid=True)
    else:
        rules = None

    if not isinstance(rules, (list, tuple)):
        errors.append("Configuration must have a transforms array")
        return ValidationResult(valid=False, errors=errors)
    if not rules:
        errors.append("Transforms array cannot be empty")
        return ValidationResult(valid=False, errors=errors)

    for index, rule in enumerate(rules):
        for error in validate_rule(rule):
            errors.append(f"Transform {index}: {error}")

    return ValidationResult(valid=not errors, errors=errors)


def _field(rule: Any, name: str) -> Any:
    if isinstance(rule, Rule):
        return getattr(rule, name)
    return rule.get(FIELD_KEYS[name])


def validate_rule(rule: Any) -> List[str]:
    if not isinstance(rule, (Rule, Mapping)):
        return ["transform must be an object"]

    errors: List[str] = []

    selector = _field(rule, "selector")
    if not selector or not isinstance(selector, str):
        errors.append("selector is required and must be a string")
    elif not is_valid_selector(selector):
        errors.append(f"Invalid CSS selector: {selector}")

    errors.extend(_validate_extract(_field(rule, "extract")))

    template = _field(rule, "url_template")
    if not template or not isinstance(template, str):
        errors.append("urlTemplate is required and must be a string")

    widths = _field(rule, "widths")
    if not isinstance(widths, (list, tuple)):
        errors.append("widths must be an array")
    elif not widths:
        errors.append("widths array cannot be empty")
    elif not all(
        isinstance(width, Real) and not isinstance(width, bool) and width > 0 for width in widths
    ):
        errors.append("widths must contain only positive numbers")

    formats = _field(rule, "formats")
    if formats is not None:
        if not isinstance(formats, (list, tuple)):
            errors.append("formats must be an array if provided")
        elif not formats:
            errors.append("formats array cannot be empty if provided")
        elif not all(isinstance(format, str) and format for format in formats):
            errors.append("formats must contain only non-empty strings")

    if _field(rule, "output_kind") not in OUTPUT_KINDS:
        errors.append('type must be either "picture" or "srcset"')

    sizes = _field(rule, "sizes")
    if sizes is not None and not isinstance(sizes, str):
        errors.append("sizes must be a string if provided")

    loading = _field(rule, "loading")
    if loading is not None and loading not in LOADING_VALUES:
        errors.append('loading must be either "lazy" or "eager" if provided')

    return errors


def _validate_extract(extract: Any) -> List[str]:
    if extract is None:
        return ["extract configuration is required"]
    if isinstance(extract, Mapping):
        try:
            extract = extract_spec_from_mapping(extract)
        except TransformError as exc:
            return [str(exc)]
    if isinstance(extract, FunctionExtract):
        if not callable(extract.func):
            return ["extract custom must be callable"]
        return []
    if isinstance(extract, PatternExtract):
        if not isinstance(extract.pattern, (str, re.Pattern)):
            return ["extract pattern must be a string or compiled regular expression"]
        if not isinstance(extract.groups, Mapping):
            return ["extract groups must map field names to group indices"]
        try:
            extract.compiled()
        except re.error as exc:
            return [f"extract pattern is not a valid regular expression: {exc}"]
        return []
    return ["extract configuration must have either pattern+groups or custom function"]

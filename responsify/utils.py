"""Utility helpers for attribute escaping and serialization."""

from __future__ import annotations

import html
from typing import Mapping, Optional


def escape_attribute_value(value: str) -> str:
    """Escape a value that will be delimited by double quotes."""
    return html.escape(value, quote=True)


def serialize_attributes(attributes: Mapping[str, Optional[str]]) -> str:
    """Render attributes in order, skipping None; empty values become bare names."""
    parts = []
    for name, value in attributes.items():
        if value is None:
            continue
        if value == "":
            parts.append(name)
        else:
            parts.append(f'{name}="{escape_attribute_value(value)}"')
    return " ".join(parts)


def build_tag(name: str, attributes: Mapping[str, Optional[str]]) -> str:
    rendered = serialize_attributes(attributes)
    return f"<{name} {rendered}>" if rendered else f"<{name}>"

"""Selector matching strategies used by the HTML backend."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import soupsieve
from bs4 import Tag

from .errors import ErrorCode, TransformError

TAG_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9-]*$")
CLASS_PATTERN = re.compile(r"^(?:\.[_a-zA-Z][_a-zA-Z0-9-]*)+$")
ID_PATTERN = re.compile(r"^#([^.\s\[]+)$")
ATTRIBUTE_SELECTOR_PATTERN = re.compile(
    r"""^([a-zA-Z][a-zA-Z0-9-]*)?\[\s*([^\s*=\]]+)\s*(?:(\*?=)\s*(?:"([^"]*)"|'([^']*)'|([^\]\s]+))\s*)?\]$"""
)


def is_always_invalid(selector: str) -> bool:
    """Forms rejected before any matching is attempted."""
    stripped = selector.strip()
    return not stripped or stripped.startswith(">") or ">>>" in stripped


def is_valid_selector(selector: str) -> bool:
    """Check selector syntax without needing a document."""
    if not isinstance(selector, str) or is_always_invalid(selector):
        return False
    try:
        soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError:
        return False
    return True


def _selector_error(selector: str, exc: Optional[Exception] = None) -> TransformError:
    detail = f" ({exc})" if exc else ""
    return TransformError(
        ErrorCode.SELECTOR_ERROR,
        f"Invalid CSS selector: {selector}{detail}",
        {"selector": selector},
    )


class SelectorMatcher:
    """Decide whether a parsed element satisfies a selector."""

    def matches(self, element: Any, selector: str) -> bool:
        raise NotImplementedError


class CssSelectorMatcher(SelectorMatcher):
    """Full CSS selector support backed by soupsieve."""

    def matches(self, element: Any, selector: str) -> bool:
        if is_always_invalid(selector):
            raise _selector_error(selector)
        try:
            return soupsieve.match(selector, element)
        except soupsieve.SelectorSyntaxError as exc:
            raise _selector_error(selector, exc) from exc


class SimpleSelectorMatcher(SelectorMatcher):
    """Hand-written matcher covering tag, class, id and attribute predicates.

    Anything outside that subset falls back to querying the element's parent and
    checking whether the element itself is among the results.
    """

    def matches(self, element: Any, selector: str) -> bool:
        if is_always_invalid(selector):
            raise _selector_error(selector)
        selector = selector.strip()

        if TAG_PATTERN.match(selector):
            return _tag_name(element) == selector.lower()

        if CLASS_PATTERN.match(selector):
            wanted = selector[1:].split(".")
            classes = _classes(element)
            return all(name in classes for name in wanted)

        id_match = ID_PATTERN.match(selector)
        if id_match:
            return _attribute(element, "id") == id_match.group(1)

        attr_match = ATTRIBUTE_SELECTOR_PATTERN.match(selector)
        if attr_match:
            return self._match_attribute(element, attr_match)

        return self._match_structural(element, selector)

    @staticmethod
    def _match_attribute(element: Any, match: "re.Match[str]") -> bool:
        tag, name, operator, double, single, bare = match.groups()
        if tag and _tag_name(element) != tag.lower():
            return False
        value = _attribute(element, name)
        if operator is None:
            return value is not None
        if value is None:
            return False
        expected = next(part for part in (double, single, bare) if part is not None)
        if operator == "*=":
            return bool(expected) and expected in value
        return value == expected

    @staticmethod
    def _match_structural(element: Any, selector: str) -> bool:
        parent = getattr(element, "parent", None)
        if parent is None:
            return False
        try:
            candidates = parent.select(selector)
        except soupsieve.SelectorSyntaxError as exc:
            raise _selector_error(selector, exc) from exc
        return any(candidate is element for candidate in candidates)


def _tag_name(element: Any) -> str:
    return (getattr(element, "name", None) or "").lower()


def _attribute(element: Any, name: str) -> Optional[str]:
    if isinstance(element, Tag):
        value = element.get(name)
    else:
        attrs: Dict[str, Any] = getattr(element, "attrs", None) or {}
        value = attrs.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value


def _classes(element: Any) -> List[str]:
    return (_attribute(element, "class") or "").split()

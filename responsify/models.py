"""Data models used throughout the transformation pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple, Union

from .errors import ErrorCode

ExtractedRecord = Dict[str, str]
ExtractFunction = Callable[[str], Optional[Dict[str, Any]]]


@dataclass
class PatternExtract:
    """Regex extraction: capture groups mapped to output field names."""

    pattern: Union[str, Pattern[str]]
    groups: Dict[str, int]
    _compiled: Optional[Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    def compiled(self) -> Pattern[str]:
        """Return the compiled pattern, compiling a string form only once."""
        if self._compiled is None:
            if isinstance(self.pattern, str):
                self._compiled = re.compile(self.pattern)
            else:
                self._compiled = self.pattern
        return self._compiled


@dataclass
class FunctionExtract:
    """User-supplied extraction returning a record, or None for no match."""

    func: ExtractFunction


ExtractSpec = Union[PatternExtract, FunctionExtract]


@dataclass
class Rule:
    """A single selector-scoped transformation rule."""

    selector: str
    extract: ExtractSpec
    url_template: str
    widths: List[int]
    formats: List[str] = field(default_factory=lambda: ["original"])
    output_kind: str = "picture"
    sizes: Optional[str] = None
    loading: Optional[str] = None


@dataclass
class Config:
    """Ordered rule set plus the preset metadata it may have come from."""

    rules: List[Rule]
    preset: Optional[str] = None
    cdn_base: Optional[str] = None


@dataclass
class ImageElement:
    """An <img> found while parsing, addressed by its position in the arena.

    ``span`` is the (start, end) offset of the start tag in the source text;
    ``replacement`` holds the markup spliced over that span once transformed.
    """

    handle: int
    src: str
    attributes: Dict[str, str]
    element: Any = field(default=None, repr=False, compare=False)
    span: Optional[Tuple[int, int]] = field(default=None, compare=False)
    replacement: Optional[str] = field(default=None, repr=False, compare=False)


@dataclass
class GeneratedUrl:
    url: str
    width: int
    format: str


@dataclass
class TransformStats:
    """Counters accumulated over a single transformation run."""

    images_found: int = 0
    images_transformed: int = 0
    rules_applied: int = 0
    processing_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imagesFound": self.images_found,
            "imagesTransformed": self.images_transformed,
            "rulesApplied": self.rules_applied,
            "processingTime": round(self.processing_time_ms, 3),
        }


@dataclass
class TransformSuccess:
    html: str
    stats: TransformStats
    success: bool = field(default=True, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "html": self.html, "stats": self.stats.to_dict()}


@dataclass
class TransformFailure:
    error: str
    stats: TransformStats
    code: Optional[ErrorCode] = None
    success: bool = field(default=False, init=False)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "error": self.error,
            "stats": self.stats.to_dict(),
        }
        if self.code is not None:
            payload["code"] = self.code.value
        return payload


TransformResult = Union[TransformSuccess, TransformFailure]


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)

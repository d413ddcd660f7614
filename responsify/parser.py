"""HTML backend: parsing, serialization, selector matching and node replacement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, ParserRejectedMarkup, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from .errors import ErrorCode, TransformError
from .models import ImageElement
from .selector import CssSelectorMatcher, SelectorMatcher

logger = logging.getLogger("responsify")

DEFAULT_PARSER = "html.parser"


class SourceOrderFormatter(HTMLFormatter):
    """Serialize attributes in source order, without XHTML-style void tags."""

    def __init__(self) -> None:
        super().__init__(
            entity_substitution=EntitySubstitution.substitute_xml,
            void_element_close_prefix=None,
            empty_attributes_are_booleans=False,
        )

    def attributes(self, tag: Tag):
        if tag.attrs is None:
            return []
        return list(tag.attrs.items())


@dataclass
class ParsedDocument:
    root: BeautifulSoup
    images: List[ImageElement]
    source: str = ""


def _line_offsets(source: str) -> List[int]:
    offsets = [0]
    index = source.find("\n")
    while index != -1:
        offsets.append(index + 1)
        index = source.find("\n", index + 1)
    return offsets


def _start_tag_end(source: str, start: int) -> Optional[int]:
    """Offset just past the start tag opening at ``start``.

    Quotes only delimit a value right after ``=``, so an apostrophe inside an
    unquoted value does not swallow the rest of the document.
    """
    index = start + 1
    after_equals = False
    while index < len(source):
        char = source[index]
        if char == ">":
            return index + 1
        if after_equals and char in "\"'":
            close = source.find(char, index + 1)
            if close == -1:
                return None
            index = close + 1
            after_equals = False
            continue
        if char == "=":
            after_equals = True
        elif not char.isspace():
            after_equals = False
        index += 1
    return None


def _start_tag_span(source: str, offsets: List[int], tag: Tag) -> Optional[Tuple[int, int]]:
    line, column = tag.sourceline, tag.sourcepos
    if line is None or column is None or not 0 < line <= len(offsets):
        return None
    start = offsets[line - 1] + column
    if source[start : start + 4].lower() != "<img":
        return None
    end = _start_tag_end(source, start)
    if end is None:
        return None
    return start, end


class SoupBackend:
    """BeautifulSoup-backed implementation of the HTML backend contract.

    The tree is used for finding and matching images. Output is the original
    source with only the start tags of replaced images swapped out, so every
    other byte survives exactly as written.
    """

    def __init__(
        self,
        matcher: Optional[SelectorMatcher] = None,
        parser: str = DEFAULT_PARSER,
    ) -> None:
        self.matcher = matcher or CssSelectorMatcher()
        self.parser = parser
        self.formatter = SourceOrderFormatter()

    def _soup(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html, self.parser, multi_valued_attributes=None)

    def parse(self, html: str) -> ParsedDocument:
        """Parse a document and enumerate its <img> elements in document order."""
        if not isinstance(html, str):
            raise TransformError(
                ErrorCode.INVALID_HTML,
                f"Failed to parse HTML: expected str, got {type(html).__name__}",
            )
        try:
            root = self._soup(html)
        except ParserRejectedMarkup as exc:
            raise TransformError(
                ErrorCode.INVALID_HTML,
                f"Failed to parse HTML: {exc}",
                {"html": html[:100]},
            ) from exc

        offsets = _line_offsets(html)
        images: List[ImageElement] = []
        for handle, img in enumerate(root.find_all("img")):
            attributes: Dict[str, str] = {
                name: value if value is not None else "" for name, value in img.attrs.items()
            }
            if any("<" in name for name in attributes):
                raise TransformError(
                    ErrorCode.INVALID_HTML,
                    "Invalid HTML: Malformed img tag with unclosed attributes",
                    {"html": html[:100]},
                )
            images.append(
                ImageElement(
                    handle=handle,
                    src=attributes.get("src", ""),
                    attributes=attributes,
                    element=img,
                    span=_start_tag_span(html, offsets, img),
                )
            )
        logger.debug("Parsed document with %d image(s)", len(images))
        return ParsedDocument(root=root, images=images, source=html)

    def serialize(self, document: ParsedDocument) -> str:
        """Return the source text with replaced images spliced in.

        With nothing replaced the source comes back unchanged. The tree is only
        re-serialized when a replaced image has no known source position.
        """
        edits = [image for image in document.images if image.replacement is not None]
        if not edits:
            return document.source
        if any(image.span is None for image in edits):
            logger.debug("Source positions unavailable; re-serializing the parsed tree")
            return document.root.decode(formatter=self.formatter)

        pieces: List[str] = []
        cursor = 0
        for image in sorted(edits, key=lambda image: image.span[0]):
            start, end = image.span
            pieces.append(document.source[cursor:start])
            pieces.append(image.replacement)
            cursor = end
        pieces.append(document.source[cursor:])
        return "".join(pieces)

    def matches(self, element: Any, selector: str) -> bool:
        return self.matcher.matches(element, selector)

    def replace(self, image: ImageElement, markup: str) -> None:
        """Swap ``image`` for the nodes parsed from ``markup``.

        The tree is updated too, so later rules match against the rewritten
        structure.
        """
        image.replacement = markup
        fragment = self._soup(markup)
        nodes = list(fragment.contents)
        element = image.element

        replace_with = getattr(element, "replace_with", None)
        if callable(replace_with):
            replace_with(*nodes)
            return

        parent = element.parent
        if parent is None:
            raise TransformError(
                ErrorCode.GENERATION_FAILED,
                "Cannot replace an image that is detached from the document",
                {"src": image.src},
            )
        index = parent.index(element)
        element.extract()
        for offset, node in enumerate(nodes):
            parent.insert(index + offset, node)

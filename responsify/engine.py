"""High-level orchestration: match rules, rewrite images and collect statistics."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, List, Optional, Set

from .config import CHUNK_SIZE, ConfigInput, coerce_config
from .errors import ErrorCode, TransformError
from .extractor import extract_url_components
from .generator import expand_urls, missing_placeholders
from .markup import build_picture, build_srcset_img
from .models import (
    Config,
    ImageElement,
    Rule,
    TransformFailure,
    TransformResult,
    TransformStats,
    TransformSuccess,
)
from .parser import SoupBackend
from .validator import validate_config

logger = logging.getLogger("responsify")


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def _failure(exc: Exception, start: float) -> TransformFailure:
    code = exc.code if isinstance(exc, TransformError) else None
    message = str(exc) or type(exc).__name__
    return TransformFailure(
        error=message,
        stats=TransformStats(processing_time_ms=_elapsed_ms(start)),
        code=code,
    )


def render_replacement(rule: Rule, image: ImageElement) -> Optional[str]:
    """Build the replacement markup for one image, or None if extraction misses."""
    record = extract_url_components(image.src, rule.extract)
    if record is None:
        logger.debug("No extraction match for %s under %r", image.src, rule.selector)
        return None

    missing = missing_placeholders(rule.url_template, record)
    if missing:
        logger.debug(
            "Template %s has no value for %s; leaving placeholders in place",
            rule.url_template,
            ", ".join(missing),
        )

    generated = expand_urls(rule.url_template, record, rule.widths, rule.formats)
    if rule.output_kind == "picture":
        return build_picture(
            generated,
            image.attributes,
            rule.formats,
            sizes=rule.sizes,
            loading=rule.loading,
            record=record,
        )
    return build_srcset_img(
        generated,
        image.attributes,
        rule.formats[0] if rule.formats else None,
        sizes=rule.sizes,
        loading=rule.loading,
    )


def _apply_rule(
    rule: Rule,
    images: Iterable[ImageElement],
    transformed: Set[int],
    stats: TransformStats,
    backend: SoupBackend,
) -> int:
    """Transform the not-yet-claimed images in ``images`` that ``rule`` matches.

    Returns the number of images transformed. Selector errors propagate so the
    caller can drop the rule for the rest of the run.
    """
    count = 0
    for image in images:
        if image.handle in transformed:
            continue
        if not backend.matches(image.element, rule.selector):
            continue
        markup = render_replacement(rule, image)
        if markup is None:
            continue
        backend.replace(image, markup)
        transformed.add(image.handle)
        stats.images_transformed += 1
        count += 1
        logger.debug("Rewrote %s as %s via %r", image.src, rule.output_kind, rule.selector)
    return count


def _batches(images: List[ImageElement], size: int) -> Iterable[List[ImageElement]]:
    for offset in range(0, len(images), size):
        yield images[offset : offset + size]


def _skip_rule(rule: Rule, exc: TransformError) -> None:
    logger.warning("Skipping rule %r: %s", rule.selector, exc)


def transform_images(
    html: str,
    config: Config,
    backend: Optional[SoupBackend] = None,
) -> TransformResult:
    """Apply ``config`` to ``html``; the first matching rule wins for each image."""
    start = time.perf_counter()
    backend = backend or SoupBackend()
    try:
        document = backend.parse(html)
        stats = TransformStats(images_found=len(document.images))
        transformed: Set[int] = set()

        for rule in config.rules:
            try:
                applied = _apply_rule(rule, document.images, transformed, stats, backend)
            except TransformError as exc:
                if exc.code is not ErrorCode.SELECTOR_ERROR:
                    raise
                _skip_rule(rule, exc)
                continue
            if applied:
                stats.rules_applied += 1

        output = backend.serialize(document)
        stats.processing_time_ms = _elapsed_ms(start)
    except TransformError as exc:
        logger.debug("Transformation failed (%s): %s", exc.code.value, exc)
        return _failure(exc, start)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Unexpected error while transforming images")
        return _failure(exc, start)
    return TransformSuccess(html=output, stats=stats)


async def transform_images_async(
    html: str,
    config: Config,
    backend: Optional[SoupBackend] = None,
    batch_size: int = CHUNK_SIZE,
) -> TransformResult:
    """Same algorithm as :func:`transform_images`, yielding between image batches."""
    start = time.perf_counter()
    backend = backend or SoupBackend()
    try:
        document = backend.parse(html)
        stats = TransformStats(images_found=len(document.images))
        transformed: Set[int] = set()

        for rule in config.rules:
            applied = 0
            try:
                for batch in _batches(document.images, batch_size):
                    applied += _apply_rule(rule, batch, transformed, stats, backend)
                    await asyncio.sleep(0)
            except TransformError as exc:
                if exc.code is not ErrorCode.SELECTOR_ERROR:
                    raise
                _skip_rule(rule, exc)
                continue
            if applied:
                stats.rules_applied += 1

        output = backend.serialize(document)
        stats.processing_time_ms = _elapsed_ms(start)
    except TransformError as exc:
        logger.debug("Transformation failed (%s): %s", exc.code.value, exc)
        return _failure(exc, start)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Unexpected error while transforming images")
        return _failure(exc, start)
    return TransformSuccess(html=output, stats=stats)


def _prepare(config: ConfigInput) -> Config | TransformFailure:
    validation = validate_config(config)
    if not validation.valid:
        return TransformFailure(
            error=f"Invalid configuration: {', '.join(validation.errors)}",
            stats=TransformStats(),
            code=ErrorCode.INVALID_CONFIG,
        )
    try:
        return coerce_config(config)
    except TransformError as exc:
        return TransformFailure(error=str(exc), stats=TransformStats(), code=exc.code)


def responsify(
    html: str,
    config: ConfigInput,
    backend: Optional[SoupBackend] = None,
) -> TransformResult:
    """Validate ``config`` and rewrite the images in ``html``."""
    prepared = _prepare(config)
    if isinstance(prepared, TransformFailure):
        return prepared
    return transform_images(html, prepared, backend)


async def responsify_async(
    html: str,
    config: ConfigInput,
    backend: Optional[SoupBackend] = None,
) -> TransformResult:
    prepared = _prepare(config)
    if isinstance(prepared, TransformFailure):
        return prepared
    return await transform_images_async(html, prepared, backend)

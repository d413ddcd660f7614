"""Turn an image source URL into a flat record of named fields."""

from __future__ import annotations

import re
from typing import Dict, Optional
from urllib.parse import urljoin, urlparse

from .errors import ErrorCode, TransformError
from .models import ExtractedRecord, ExtractFunction, ExtractSpec, FunctionExtract, PatternExtract

CLOUDINARY_PATTERN = re.compile(
    r"^(.*?cloudinary\.com/([^/]+)/image/upload)/(?:.*/)?v\d+/(.+)\.([^.]+)$"
)
S3_DEFAULT_REGION = "us-east-1"


def extract_url_components(url: str, spec: ExtractSpec) -> Optional[ExtractedRecord]:
    """Extract named fields from ``url``; returns None when nothing matched.

    A raising extraction function is reported as EXTRACTION_FAILED instead of
    being treated as a miss.
    """
    if isinstance(spec, FunctionExtract):
        return _extract_with_function(url, spec.func)
    if isinstance(spec, PatternExtract):
        return _extract_with_pattern(url, spec)
    raise TransformError(
        ErrorCode.EXTRACTION_FAILED,
        f"Failed to extract URL components: unsupported extract spec {type(spec).__name__}",
        {"url": url},
    )


def _extract_with_function(url: str, func: ExtractFunction) -> Optional[ExtractedRecord]:
    try:
        result = func(url)
    except Exception as exc:
        raise TransformError(
            ErrorCode.EXTRACTION_FAILED,
            f"Failed to extract URL components: {exc}",
            {"url": url},
        ) from exc
    if not result:
        return None
    record = {str(key): str(value) for key, value in result.items() if value is not None}
    return record or None


def _extract_with_pattern(url: str, spec: PatternExtract) -> Optional[ExtractedRecord]:
    try:
        pattern = spec.compiled()
    except re.error as exc:
        raise TransformError(
            ErrorCode.EXTRACTION_FAILED,
            f"Failed to extract URL components: invalid pattern ({exc})",
            {"url": url, "pattern": str(spec.pattern)},
        ) from exc

    match = pattern.search(url)
    if match is None or not spec.groups:
        return None

    extracted: Dict[str, str] = {}
    for name, index in spec.groups.items():
        if not 0 <= index <= pattern.groups:
            continue
        value = match.group(index)
        if value:
            extracted[name] = value
    return extracted or None


def _split_filename(filename: str) -> tuple:
    name, _, ext = filename.partition(".")
    ext = ext.split(".")[0]
    return name, ext


def extract_cloudinary_url(src: str) -> Optional[ExtractedRecord]:
    """Extract account, public id and extension from a Cloudinary delivery URL."""
    match = CLOUDINARY_PATTERN.match(src)
    if not match:
        return None
    return {
        "account": match.group(2),
        "publicId": match.group(3),
        "ext": match.group(4),
        "base": match.group(1),
    }


def extract_s3_url(src: str) -> Optional[ExtractedRecord]:
    """Extract bucket, region, key path, name and extension from an S3 URL."""
    parsed = urlparse(src)
    hostname = parsed.hostname
    if not parsed.scheme or not hostname:
        return None
    path_parts = [part for part in parsed.path.split("/") if part]
    filename = path_parts[-1] if path_parts else ""
    name, ext = _split_filename(filename)
    region = S3_DEFAULT_REGION
    if ".s3." in hostname:
        label = hostname.split(".s3.")[1].split(".")[0]
        if label != "amazonaws":
            region = label
    return {
        "bucket": hostname.split(".")[0],
        "path": "/".join(path_parts[:-1]),
        "name": name,
        "ext": ext,
        "region": region,
    }


def extract_standard_url(src: str) -> Optional[ExtractedRecord]:
    """Split an absolute or relative URL into protocol, domain, path, filename and ext."""
    parsed = urlparse(urljoin("https://example.com/", src))
    path_parts = [part for part in parsed.path.split("/") if part]
    filename = path_parts[-1] if path_parts else ""
    name, ext = _split_filename(filename)
    return {
        "protocol": parsed.scheme,
        "domain": parsed.hostname or "",
        "path": "/".join(path_parts[:-1]),
        "filename": name,
        "ext": ext,
        "query": f"?{parsed.query}" if parsed.query else "",
    }


BUILTIN_EXTRACTORS: Dict[str, ExtractFunction] = {
    "cloudinary": extract_cloudinary_url,
    "s3": extract_s3_url,
    "standard": extract_standard_url,
}

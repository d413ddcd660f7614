"""Rewrite <img> elements into responsive <picture> or srcset markup."""

from .config import config_from_mapping, load_config_file
from .engine import responsify, responsify_async, transform_images, transform_images_async
from .errors import ErrorCode, TransformError
from .extractor import (
    extract_cloudinary_url,
    extract_s3_url,
    extract_standard_url,
    extract_url_components,
)
from .generator import generate_srcset, generate_url, get_mime_type
from .models import (
    Config,
    FunctionExtract,
    PatternExtract,
    Rule,
    TransformFailure,
    TransformStats,
    TransformSuccess,
    ValidationResult,
)
from .parser import SoupBackend
from .presets import get_available_presets, get_preset_info, load_preset
from .selector import CssSelectorMatcher, SimpleSelectorMatcher
from .validator import validate_config

__version__ = "1.0.0"

__all__ = [
    "Config",
    "CssSelectorMatcher",
    "ErrorCode",
    "FunctionExtract",
    "PatternExtract",
    "Rule",
    "SimpleSelectorMatcher",
    "SoupBackend",
    "TransformError",
    "TransformFailure",
    "TransformStats",
    "TransformSuccess",
    "ValidationResult",
    "config_from_mapping",
    "extract_cloudinary_url",
    "extract_s3_url",
    "extract_standard_url",
    "extract_url_components",
    "generate_srcset",
    "generate_url",
    "get_available_presets",
    "get_mime_type",
    "get_preset_info",
    "load_config_file",
    "load_preset",
    "responsify",
    "responsify_async",
    "transform_images",
    "transform_images_async",
    "validate_config",
]

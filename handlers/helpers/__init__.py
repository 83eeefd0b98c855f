"""
Handler helpers - JSON payload navigation and HTTP response interpretation.
"""

from handlers.helpers.json_navigator import JsonNavigator, NotJsonError, PathNotFoundError
from handlers.helpers.response_classifier import (
    HeaderMap,
    classify,
    extract_headers,
    interpret,
    try_parse_json,
)

__all__ = [
    "JsonNavigator",
    "NotJsonError",
    "PathNotFoundError",
    "HeaderMap",
    "classify",
    "extract_headers",
    "interpret",
    "try_parse_json",
]

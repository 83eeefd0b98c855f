# ============================================================================
# RESPONSE CLASSIFIER
# ============================================================================
# STATUS: Handler helper - Interpret outbound HTTP responses
# PURPOSE: Classify body as json / xml / string; collect response headers
# CREATED: 17 OCT 2026
# ============================================================================
"""
Response Classifier

Classification rules:
    JSON   content-type contains "json", or trimmed body starts with { or [
    XML    content-type contains "xml", or trimmed body starts with <
    TEXT   everything else (including empty bodies)

A body classified as JSON that fails to parse is reported as TEXT with the
raw body, so the caller never loses the response.
"""

import json
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import httpx

from core.contracts import ResponseKind


def classify(content_type: Optional[str], body: str) -> ResponseKind:
    """Classify a response by content type and body prefix."""
    media = (content_type or "").lower()
    trimmed = (body or "").strip()

    if "json" in media or trimmed.startswith(("{", "[")):
        return ResponseKind.JSON
    if "xml" in media or trimmed.startswith("<"):
        return ResponseKind.XML
    return ResponseKind.TEXT


def try_parse_json(text: Optional[str]) -> Tuple[bool, Any]:
    """(True, tree) when text is JSON, else (False, None)."""
    if text is None or not text.strip():
        return False, None
    try:
        return True, json.loads(text)
    except ValueError:
        return False, None


def interpret(content_type: Optional[str], body: str) -> Tuple[ResponseKind, Any]:
    """
    Classify and decode a response body.

    Returns:
        (ResponseKind.JSON, tree) for parseable JSON,
        (kind, body) otherwise
    """
    if not body or not body.strip():
        return ResponseKind.TEXT, body or ""

    kind = classify(content_type, body)
    if kind == ResponseKind.JSON:
        ok, tree = try_parse_json(body)
        if ok:
            return ResponseKind.JSON, tree
        return ResponseKind.TEXT, body
    return kind, body


# ============================================================================
# HEADERS
# ============================================================================

HeaderSource = Union[httpx.Headers, httpx.Response, Iterable[Tuple[str, str]]]


class HeaderMap:
    """
    Case-insensitive, multi-valued header collection.

    Keeps every value per name and the casing of the first occurrence.
    """

    def __init__(self):
        self._names: Dict[str, str] = {}
        self._values: Dict[str, List[str]] = {}

    def add(self, name: str, value: str) -> None:
        key = name.lower()
        if key not in self._names:
            self._names[key] = name
            self._values[key] = []
        self._values[key].append(value)

    def get_all(self, name: str) -> List[str]:
        return list(self._values.get(name.lower(), []))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        values = self._values.get(name.lower())
        return values[0] if values else default

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def __len__(self) -> int:
        return len(self._names)

    def to_dict(self) -> Dict[str, List[str]]:
        """{original name: [values...]} in first-seen order."""
        return {self._names[key]: list(values) for key, values in self._values.items()}


def _pairs(source: HeaderSource) -> Iterable[Tuple[str, str]]:
    if isinstance(source, httpx.Response):
        source = source.headers
    if isinstance(source, httpx.Headers):
        # raw keeps the casing the server sent
        return [
            (name.decode("latin-1"), value.decode("latin-1"))
            for name, value in source.raw
        ]
    if isinstance(source, Mapping):
        return list(source.items())
    return source


def extract_headers(*sources: HeaderSource) -> HeaderMap:
    """Merge several header sources into one HeaderMap."""
    headers = HeaderMap()
    for source in sources:
        if source is None:
            continue
        for name, value in _pairs(source):
            headers.add(name, value)
    return headers


__all__ = [
    "classify",
    "interpret",
    "try_parse_json",
    "HeaderMap",
    "extract_headers",
]

# ============================================================================
# JSON NAVIGATOR
# ============================================================================
# STATUS: Handler helper - Locate values inside loosely-typed JSON payloads
# PURPOSE: Coerce, unwrap (base64 / embedded JSON), path and deep search
# CREATED: 17 OCT 2026
# ============================================================================
"""
JSON Navigator

Process variables frequently carry JSON in awkward wrappings: JSON text
inside a JSON string, base64 of JSON, base64 of a JSON string holding JSON.
The navigator turns any such value into a plain tree (dict / list /
scalars) and finds values inside it.

Unwrapping rule (applied repeatedly, up to max_unwrap_depth):
    1. A string that base64-decodes (strict alphabet, length % 4 == 0) to
       UTF-8 text that parses as JSON is replaced by that tree.
    2. Otherwise a string that parses as JSON is replaced by that tree.
    3. Otherwise unwrapping stops.

Usage:
    navigator = JsonNavigator(SerializationConfig())
    data = navigator.navigate(raw_value, ["payload", "inputPayload", "data"])
    code = navigator.lookup(raw_value, "result.code", default=None)
"""

import base64
import binascii
import logging
from collections import deque
from typing import Any, Deque, List, Mapping, Optional, Sequence, Tuple, Union

from core.models.variable import TypedValue
from core.contracts import ValueKind
from core.serialization import SerializationConfig

logger = logging.getLogger(__name__)


PathLike = Union[str, Sequence[Union[str, int]]]


class NotJsonError(ValueError):
    """Value cannot be interpreted as JSON."""
    pass


class PathNotFoundError(LookupError):
    """Requested path or property does not exist in the tree."""

    def __init__(self, path: Any, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Path not found: {path}")


class JsonNavigator:
    """
    Coerces variable values to JSON trees and navigates them.

    Stateless apart from its configuration; safe to share between
    concurrently running jobs.
    """

    def __init__(
        self,
        serialization: SerializationConfig,
        max_unwrap_depth: int = 8,
        max_search_depth: int = 32,
    ):
        self.serialization = serialization
        self.max_unwrap_depth = max_unwrap_depth
        self.max_search_depth = max_search_depth

    # ------------------------------------------------------------------
    # Coercion
    # ------------------------------------------------------------------

    def coerce(self, value: Any) -> Any:
        """
        Convert a value into a JSON tree.

        Raises:
            NotJsonError: value is None, null, or text that is neither JSON
                nor base64-wrapped JSON
        """
        if value is None:
            raise NotJsonError("Value is null")

        if isinstance(value, TypedValue):
            if value.kind == ValueKind.NULL:
                raise NotJsonError("Value is null")
            if value.kind == ValueKind.STRING:
                return self.coerce(value.value)
            return self.unwrap(value.value)

        if isinstance(value, str):
            return self.unwrap(self._parse_text(value))

        if isinstance(value, (bytes, bytearray)):
            try:
                text = bytes(value).decode("utf-8")
            except UnicodeDecodeError as e:
                raise NotJsonError("Bytes value is not valid UTF-8") from e
            ok, tree = self._try_parse(text)
            if not ok:
                raise NotJsonError("Bytes value is not UTF-8 JSON")
            return self.unwrap(tree)

        if isinstance(value, (bool, int, float)):
            return value

        if isinstance(value, (Mapping, list, tuple)):
            try:
                tree = self.serialization.normalize(
                    dict(value) if isinstance(value, Mapping) else list(value)
                )
            except (TypeError, ValueError) as e:
                raise NotJsonError(f"Cannot serialize {type(value).__name__}: {e}") from e
            return self.unwrap(tree)

        # Opaque objects: their text form must itself be JSON
        ok, tree = self._try_parse(str(value))
        if not ok:
            raise NotJsonError(
                f"Unsupported value type {type(value).__name__} and its text is not JSON"
            )
        return self.unwrap(tree)

    def unwrap(self, node: Any, max_depth: Optional[int] = None) -> Any:
        """Expand base64 / embedded JSON strings, up to max_depth layers."""
        depth = self.max_unwrap_depth if max_depth is None else max_depth
        for _ in range(depth):
            if not isinstance(node, str):
                break

            ok, tree = self._try_base64_json(node)
            if ok:
                node = tree
                continue

            ok, tree = self._try_parse(node)
            if ok:
                node = tree
                continue

            break
        return node

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def find_path(self, tree: Any, segments: PathLike) -> Any:
        """
        Follow a path through a tree.

        Each hop unwraps the current node. Objects are indexed by key.
        Arrays yield the first (unwrapped) object element holding the key;
        there is no positional indexing.

        Raises:
            PathNotFoundError: some hop has nowhere to go
        """
        path = self.split_path(segments)
        current = self.unwrap(tree)

        for position, segment in enumerate(path):
            current = self.unwrap(current)
            moved, current = self._step(current, segment)
            if not moved:
                raise PathNotFoundError(
                    path,
                    f"Path {'.'.join(path)} not found at segment '{segment}' (hop {position})",
                )

        return self.unwrap(current)

    def navigate(self, value: Any, segments: PathLike) -> Any:
        """coerce + find_path. Raises PathNotFoundError when value is not JSON."""
        try:
            tree = self.coerce(value)
        except NotJsonError as e:
            raise PathNotFoundError(segments, f"Value is not JSON: {e}") from e
        return self.find_path(tree, segments)

    def lookup(self, value: Any, segments: PathLike, default: Any = None) -> Any:
        """Non-raising navigate."""
        try:
            return self.navigate(value, segments)
        except PathNotFoundError:
            return default

    def find_deep(
        self,
        tree: Any,
        name: str,
        case_insensitive: bool = False,
        max_depth: Optional[int] = None,
    ) -> Any:
        """
        Breadth-first search for the first property called `name`.

        Object properties are visited in declaration order, array items in
        index order. Strings met along the way are unwrapped and searched.

        Raises:
            PathNotFoundError: no property with that name within max_depth
        """
        limit = self.max_search_depth if max_depth is None else max_depth
        wanted = name.casefold() if case_insensitive else name

        queue: Deque[Tuple[Any, int]] = deque([(self.unwrap(tree), 0)])
        while queue:
            node, depth = queue.popleft()
            if depth > limit:
                continue

            if isinstance(node, dict):
                for key, child in node.items():
                    candidate = key.casefold() if case_insensitive else key
                    if candidate == wanted:
                        return self.unwrap(child)
                    queue.append((self.unwrap(child), depth + 1))
            elif isinstance(node, list):
                for item in node:
                    queue.append((self.unwrap(item), depth + 1))
            elif isinstance(node, str):
                expanded = self.unwrap(node)
                if not isinstance(expanded, str):
                    queue.append((expanded, depth + 1))

        raise PathNotFoundError(name, f"Property '{name}' not found")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def split_path(segments: PathLike) -> List[str]:
        """'a.b.0' -> ['a', 'b', '0']; sequences are normalized to strings."""
        if isinstance(segments, str):
            return [segment for segment in segments.split(".") if segment]
        return [str(segment) for segment in segments]

    def dumps(self, tree: Any) -> str:
        """Serialize a tree with the configured options."""
        return self.serialization.dumps(tree)

    def _step(self, node: Any, segment: str) -> Tuple[bool, Any]:
        if isinstance(node, dict):
            if segment in node:
                return True, node[segment]
            return False, node

        if isinstance(node, list):
            for item in node:
                candidate = self.unwrap(item)
                if isinstance(candidate, dict) and segment in candidate:
                    return True, candidate[segment]
            return False, node

        return False, node

    def _parse_text(self, text: str) -> Any:
        ok, tree = self._try_parse(text)
        if ok:
            return tree
        ok, tree = self._try_base64_json(text)
        if ok:
            return tree
        raise NotJsonError("String value is not valid JSON")

    def _try_parse(self, text: str) -> Tuple[bool, Any]:
        if not text or not text.strip():
            return False, None
        try:
            return True, self.serialization.loads(text)
        except ValueError:
            return False, None

    def _try_base64_json(self, text: str) -> Tuple[bool, Any]:
        if not text or not text.strip() or len(text) % 4 != 0:
            return False, None
        try:
            decoded = base64.b64decode(text, validate=True).decode("utf-8")
        except (binascii.Error, ValueError):
            return False, None
        return self._try_parse(decoded)


__all__ = [
    "JsonNavigator",
    "NotJsonError",
    "PathNotFoundError",
]

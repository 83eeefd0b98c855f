# ============================================================================
# SERIALIZATION CONFIG
# ============================================================================
# STATUS: Core - JSON serialization options
# PURPOSE: One explicit serialization value shared by constructor injection
# CREATED: 17 OCT 2026
# ============================================================================
"""
Serialization Config

Every component that writes JSON (navigator, HTTP handlers, engine client)
receives a SerializationConfig in its constructor. There is no module-level
options object to mutate.

Usage:
    serialization = SerializationConfig()
    body = serialization.dumps(serialization.prune({"a": 1, "b": None}))
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class SerializationConfig:
    """JSON serialization options."""

    # Drop None-valued top-level fields from request bodies
    ignore_none: bool = True
    ensure_ascii: bool = False
    compact: bool = True

    @property
    def separators(self):
        return (",", ":") if self.compact else (", ", ": ")

    def dumps(self, value: Any) -> str:
        """Serialize a value to JSON text."""
        return json.dumps(
            value,
            ensure_ascii=self.ensure_ascii,
            separators=self.separators,
            default=str,
        )

    def loads(self, text: str) -> Any:
        """Parse JSON text. Raises ValueError on invalid input."""
        return json.loads(text)

    def prune(self, mapping: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a copy without None values (when ignore_none is set)."""
        if not self.ignore_none:
            return dict(mapping)
        return {key: value for key, value in mapping.items() if value is not None}

    def normalize(self, value: Any) -> Any:
        """Round-trip a value through JSON to get a plain JSON tree."""
        return self.loads(self.dumps(value))


__all__ = [
    "SerializationConfig",
]

"""
HTTP forwarding handlers.

Importing this package registers the "raw" and "path" strategies.
"""

from handlers.http.forwarder import HttpForwardingHandler, PathPayloadHandler, RawPayloadHandler

__all__ = [
    "HttpForwardingHandler",
    "RawPayloadHandler",
    "PathPayloadHandler",
]

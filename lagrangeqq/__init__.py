"""Building blocks for an NT QQ client: cipher, login state, packet decoding, caches and events."""

__version__ = "0.1.0"

__all__ = [
    "auth",
    "cache",
    "entity",
    "errors",
    "eventhandle",
    "events",
    "highway",
    "network",
    "oicq",
    "tea",
]
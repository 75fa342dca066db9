"""UI-agnostic engine for tracking marked line ranges across files."""

__all__ = [
    "adapters",
    "host",
    "ranges",
    "runtime",
    "store",
]

__version__ = "0.1.0"

"""Evaluator helper modules for the Kestrel runtime."""

__all__ = [
    "blocks",
    "expr",
    "fn",
    "helpers",
]

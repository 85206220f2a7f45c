"""Evaluator helper modules for the Lox runtime."""

__all__ = [
    "common",
    "expr",
    "fn",
    "helpers",
    "objects",
]

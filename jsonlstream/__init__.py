"""Async reading of JSON Lines data: forward lines, head, tail, count, parsing and reverse line reading."""

__version__ = "0.4.0"
__all__ = ["jsonl", "revbuf", "take_n"]
"""Whole-file reading for a single log dump."""

import os


def read_text(filepath: str) -> str:
    """Return the file's text; undecodable bytes are replaced.

    Raises FileNotFoundError if the path is not an existing file.
    """
    if not os.path.isfile(filepath):
        raise FileNotFoundError(f"File not found: {filepath}")
    with open(filepath, "r", encoding="utf-8", errors="replace", newline="") as f:
        return f.read()


def split_lines(text: str) -> list[str]:
    """Split on newlines, dropping a trailing CR per line; empty text has no lines."""
    if not text:
        return []
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def read_lines(filepath: str) -> list[str]:
    return split_lines(read_text(filepath))

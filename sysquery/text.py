"""Text helpers for splitting delimited strings."""

from __future__ import annotations

import re

__all__ = ["split"]


def split(s: str, delim: str = " \t") -> list[str]:
    """Split ``s`` on any character in ``delim``.

    Empty pieces are dropped and every remaining piece is stripped of
    surrounding whitespace.
    """
    if not delim:
        pieces = [s]
    else:
        pattern = "[" + "".join(re.escape(char) for char in delim) + "]"
        pieces = re.split(pattern, s)
    return [piece.strip() for piece in pieces if piece != ""]
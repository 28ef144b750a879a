"""
Bionic reading: emphasize the leading part of each word so the eye can
anchor on it. Output uses Markdown-style ``**`` markers around the
emphasized prefix.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

EMPHASIS_MARKER = "**"


def split_token(token: str, bold_ratio: float = 0.5, min_chars: int = 3) -> Tuple[str, str]:
    """
    Return ``(emphasized, rest)`` for one token. Tokens shorter than
    ``min_chars`` are not emphasized at all.
    """
    if len(token) < min_chars:
        return "", token
    bold_length = max(1, math.ceil(len(token) * bold_ratio))
    return token[:bold_length], token[bold_length:]


def transform(text: str, bold_ratio: float = 0.5, min_chars: int = 3) -> str:
    """
    Split on single spaces and wrap each token's leading share in emphasis
    markers. Newlines inside a token are kept as part of it. ``bold_ratio``
    is used as given.
    """
    if not text:
        return ""

    tokens = []
    for token in text.split(" "):
        emphasized, rest = split_token(token, bold_ratio, min_chars)
        if emphasized:
            tokens.append(f"{EMPHASIS_MARKER}{emphasized}{EMPHASIS_MARKER}{rest}")
        else:
            tokens.append(rest)
    return " ".join(tokens)


@dataclass(frozen=True)
class BionicTransformer:
    bold_ratio: float = 0.5
    min_chars: int = 3

    def __call__(self, text: str) -> str:
        return transform(text, self.bold_ratio, self.min_chars)

from __future__ import annotations

import hashlib
import math
import re
from pathlib import PurePosixPath
from typing import List
from urllib.parse import unquote

DEFAULT_WORDS_PER_MINUTE = 200


def local_file_path(uri: str) -> str:
    """
    Turn a file:// URI into a plain path. Anything else (content:// URIs,
    plain paths) is returned untouched.
    """
    if uri.startswith("file://"):
        return unquote(uri[len("file://"):])
    return uri


def document_key(document_id: str) -> str:
    """
    Stable storage key for a document path or URI: a readable slug of the
    file name plus a short digest of the full normalized path.
    """
    normalized = local_file_path(document_id.strip())
    stem = PurePosixPath(normalized).stem.lower()
    slug = "".join(ch if ch.isalnum() else "-" for ch in stem).strip("-") or "document"
    digest = hashlib.md5(normalized.encode("utf-8")).hexdigest()[:8]
    return f"{slug}-{digest}"


def normalize_page_text(text: str) -> str:
    text = re.sub(r"[^\S\n]+", " ", text)
    text = re.sub(r"\n+", "\n", text)
    return text.strip()


def count_words(text: str) -> int:
    return len(text.split())


def estimate_reading_minutes(text: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE) -> int:
    return math.ceil(count_words(text) / words_per_minute)


def split_lines(text: str) -> List[str]:
    """Lines a focus navigator can step through; blank lines are skipped."""
    return [line for line in text.splitlines() if line.strip()]

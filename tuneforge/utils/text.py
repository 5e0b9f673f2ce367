"""Text normalization utilities for TuneForge."""

import re
import unicodedata

from slugify import slugify

# Words too common to be useful as search tokens
STOPWORDS = frozenset({"a", "an", "and", "of", "the", "to", "in", "on", "for"})

# Firestore allows at most 30 values in an array_contains_any filter
MAX_QUERY_TOKENS = 30


def normalize_text(text: str) -> str:
    """Normalize free text for matching.

    - Lowercase
    - Fold unicode to ASCII
    - Replace punctuation with spaces
    - Collapse whitespace
    """
    text = unicodedata.normalize("NFKD", text.strip().lower())
    text = text.encode("ascii", "ignore").decode("ascii")

    # Keep apostrophes inside words ("don't" -> "dont")
    text = text.replace("'", "")
    text = re.sub(r"[^a-z0-9]+", " ", text)

    return re.sub(r"\s+", " ", text).strip()


def tokenize(text: str) -> list[str]:
    """Split text into normalized, de-duplicated tokens, skipping stopwords."""
    seen: list[str] = []
    for token in normalize_text(text).split(" "):
        if token and token not in STOPWORDS and token not in seen:
            seen.append(token)
    return seen


def search_tokens(*fields: str | None) -> list[str]:
    """Build the search_terms array stored on a document from its text fields."""
    tokens: list[str] = []
    for field in fields:
        if not field:
            continue
        for token in tokenize(field):
            if token not in tokens:
                tokens.append(token)
    return tokens


def query_tokens(query: str) -> list[str]:
    """Tokens for an array_contains_any search query (capped to Firestore's limit)."""
    return tokenize(query)[:MAX_QUERY_TOKENS]


def stored_filename(prefix: str, original_name: str, unique: str) -> str:
    """Build a safe storage name like ``song-<unique>.mp3`` from an uploaded file name."""
    stem, dot, ext = original_name.rpartition(".")
    extension = slugify(ext) if dot and stem else ""
    name = f"{prefix}-{unique}"
    return f"{name}.{extension}" if extension else name

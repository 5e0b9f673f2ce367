"""Utility modules for TuneForge."""

from tuneforge.utils.text import normalize_text, query_tokens, search_tokens, stored_filename, tokenize

__all__ = ["normalize_text", "tokenize", "search_tokens", "query_tokens", "stored_filename"]

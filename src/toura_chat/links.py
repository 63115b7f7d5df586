"""Find links inside free-form reply text."""

from __future__ import annotations

import re
from urllib.parse import urlparse

_URL_CANDIDATE_RE = re.compile(
    r"(?P<url>(?:https?://|www\.)[^\s<>\"'`]+)",
    re.IGNORECASE,
)
_TRAILING_PUNCTUATION = ".,;:!?'\""
_BRACKET_PAIRS = {")": "(", "]": "[", "}": "{"}


def _trim_candidate(candidate: str) -> str:
    while candidate:
        tail = candidate[-1]
        if tail in _TRAILING_PUNCTUATION:
            candidate = candidate[:-1]
            continue
        opener = _BRACKET_PAIRS.get(tail)
        # Keep a closing bracket only when the URL itself opened it.
        if opener is not None and candidate.count(opener) < candidate.count(tail):
            candidate = candidate[:-1]
            continue
        break
    return candidate


def _normalize(candidate: str) -> str | None:
    if candidate.lower().startswith("www."):
        candidate = f"http://{candidate}"
    parsed = urlparse(candidate)
    if parsed.scheme.lower() not in {"http", "https"}:
        return None
    hostname = (parsed.hostname or "").strip()
    if not hostname:
        return None
    if "." not in hostname and hostname.lower() != "localhost":
        return None
    return candidate


def find_urls(text: str) -> list[str]:
    """Return every well-formed http(s) URL in ``text`` in order of appearance."""
    found: list[str] = []
    for match in _URL_CANDIDATE_RE.finditer(text or ""):
        url = _normalize(_trim_candidate(match.group("url")))
        if url is not None:
            found.append(url)
    return found


def find_first_url(text: str) -> str | None:
    """Return the first well-formed URL in ``text`` or ``None``."""
    urls = find_urls(text)
    return urls[0] if urls else None

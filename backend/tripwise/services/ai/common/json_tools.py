"""Robust JSON extraction from LLM responses.

The first top-level ``{...}`` span is captured with a quote-aware brace scan
(fenced code blocks are tried as further candidates), then parsed through an
ordered cascade of cleaning strategies. Each strategy is a pure
``str -> str`` function; the first candidate that parses into an object wins.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterator
from typing import Any

logger = logging.getLogger(__name__)

# Printable ASCII, CJK symbols/punctuation, CJK unified ideographs, full-width forms.
_DISALLOWED_CHARS = re.compile(r"[^\x20-\x7E\u3000-\u303f\u4e00-\u9fff\uff00-\uffef]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_WHITESPACE_RUN = re.compile(r"\s+")

_BARE_KEY = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:")
_BARE_VALUE = re.compile(r":\s*([^\",{\[\]}]+?)(\s*[,}\]])")
_DOUBLED_QUOTES = re.compile(r'"\s*"([^"]*?)"\s*"')
_JSON_LITERAL = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null")

# A keyed string value: the value ends at the first quote followed by a structural char.
_STRING_VALUE = re.compile(r'([{,]\s*"[^"]*"\s*:\s*")(.*?)("\s*(?=[,}\]]|$))', re.DOTALL)
_UNESCAPED_QUOTE = re.compile(r'(?<!\\)"')
_VALUE_NOISE = re.compile(r"[^\w\s\u4e00-\u9fff.,!?()（），。！？]")

_FENCED_BLOCKS = (
    re.compile(r"```json\s*(\{.*?\})\s*```", re.DOTALL),
    re.compile(r"```\s*(\{.*?\})\s*```", re.DOTALL),
)

_CLOSERS = {"{": "}", "[": "]"}


def capture_first_object(text: str) -> str | None:
    """Return the first top-level ``{...}`` span of *text*.

    Braces inside quoted strings are ignored. When the object never closes
    (a truncated response) everything from the opening brace onward is
    returned so the repair strategy can complete it.
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(text)):
        ch = text[i]

        if escape:
            escape = False
            continue

        if ch == "\\":
            if in_string:
                escape = True
            continue

        if ch == '"':
            in_string = not in_string
            continue

        if in_string:
            continue

        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return text[start:]


def candidate_spans(text: str) -> Iterator[str]:
    """Yield distinct JSON candidates: the first bare object, then fenced blocks."""
    seen: set[str] = set()
    captured = capture_first_object(text)
    if captured is not None:
        seen.add(captured)
        yield captured
    for pattern in _FENCED_BLOCKS:
        match = pattern.search(text)
        if match and match.group(1) not in seen:
            seen.add(match.group(1))
            yield match.group(1)


# --- Cleaning strategies ---


def _strip_noise(text: str) -> str:
    text = _DISALLOWED_CHARS.sub("", text)
    return _TRAILING_COMMA.sub(r"\1", text)


def as_is(text: str) -> str:
    return text.strip()


def strip_noise(text: str) -> str:
    """Drop characters outside printable ASCII/CJK and trailing commas."""
    return _strip_noise(text).strip()


def _quote_bare_value(match: re.Match) -> str:
    value = match.group(1).strip()
    if _JSON_LITERAL.fullmatch(value):
        return f":{value}{match.group(2)}"
    return f':"{value}"{match.group(2)}'


def quote_bare_tokens(text: str) -> str:
    """Quote bare property names and bare scalar values."""
    text = _strip_noise(text)
    text = _BARE_KEY.sub(r'\1"\2":', text)
    text = _BARE_VALUE.sub(_quote_bare_value, text)
    text = _DOUBLED_QUOTES.sub(r'"\1"', text)
    return text.strip()


def _requote_value(match: re.Match) -> str:
    value = _WHITESPACE_RUN.sub(" ", match.group(2)).strip()
    value = _UNESCAPED_QUOTE.sub(r'\\"', value)
    return f"{match.group(1)}{value}{match.group(3)}"


def requote_string_values(text: str) -> str:
    """Escape embedded quotes and collapse whitespace inside string values."""
    text = _strip_noise(text)
    return _STRING_VALUE.sub(_requote_value, text).strip()


def _scrub_value(match: re.Match) -> str:
    value = _VALUE_NOISE.sub(" ", match.group(2))
    value = _WHITESPACE_RUN.sub(" ", value).strip()
    return f"{match.group(1)}{value}{match.group(3)}"


def scrub_string_values(text: str) -> str:
    """Blank out disallowed characters and strip punctuation noise from values."""
    text = _DISALLOWED_CHARS.sub(" ", text)
    text = _TRAILING_COMMA.sub(r"\1", text)
    text = _WHITESPACE_RUN.sub(" ", text)
    return _STRING_VALUE.sub(_scrub_value, text).strip()


def balance_braces(text: str) -> str:
    """Close whatever a truncated response left open.

    Brackets and braces are tracked on a stack outside quoted strings; an
    unterminated string is closed first, then the missing closers are
    appended innermost-first.
    """
    cleaned = _CONTROL_CHARS.sub("", text)
    cleaned = _TRAILING_COMMA.sub(r"\1", cleaned).strip()

    stack: list[str] = []
    in_string = False
    escape = False

    for ch in cleaned:
        if escape:
            escape = False
            continue
        if ch == "\\" and in_string:
            escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif stack and ch == stack[-1]:
            stack.pop()

    if in_string:
        cleaned += '"'

    cleaned = cleaned.rstrip()
    if cleaned.endswith(","):
        cleaned = cleaned[:-1].rstrip()
    elif cleaned.endswith(":"):
        cleaned += " null"

    return cleaned + "".join(reversed(stack))


CLEANING_STRATEGIES: tuple[Callable[[str], str], ...] = (
    as_is,
    strip_noise,
    quote_bare_tokens,
    requote_string_values,
    scrub_string_values,
    balance_braces,
)


def extract_json(text: str) -> dict[str, Any] | None:
    """Recover the first JSON object in *text*, or ``None``.

    Never raises: every parse failure moves on to the next strategy, then
    to the next candidate span.
    """
    if not text or not text.strip():
        return None

    for span in candidate_spans(text):
        for strategy in CLEANING_STRATEGIES:
            try:
                parsed = json.loads(strategy(span))
            except (ValueError, RecursionError) as exc:
                logger.debug("JSON strategy %s failed: %s", strategy.__name__, exc)
                continue
            if isinstance(parsed, dict):
                if strategy is not as_is:
                    logger.info("Recovered JSON object with strategy %s", strategy.__name__)
                return parsed

    return None

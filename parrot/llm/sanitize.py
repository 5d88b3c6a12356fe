"""Turn raw model output into one short terminal-friendly line."""

from __future__ import annotations

MAX_LENGTH = 150
SENTENCE_FLOOR = 50
ELLIPSIS = "..."

LABEL_PREFIXES = (
    "Response:",
    "Parrot says:",
    "\U0001F99C",
)
LENGTH_KEYWORD = "character"


def _first_line(text: str) -> str:
    lines = text.splitlines()
    return lines[0].strip() if lines else ""


def _strip_label(text: str) -> str:
    for prefix in LABEL_PREFIXES:
        if text.startswith(prefix):
            return text[len(prefix):].strip()
    return text


def _strip_length_note(text: str) -> str:
    # e.g. "Nice try (42 characters)"
    idx = text.find(" (")
    if idx != -1:
        rest = text[idx:]
        if LENGTH_KEYWORD in rest and ")" in rest:
            return text[:idx].strip()
    return text


def _strip_note(text: str) -> str:
    idx = text.find("Note:")
    if idx != -1:
        return text[:idx].strip()
    return text


def _strip_footnote(text: str) -> str:
    idx = text.find(" *")
    if idx != -1 and text[idx:].strip().startswith("* "):
        return text[:idx].strip()
    return text


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1]
    return text


def _cap_length(text: str) -> str:
    if len(text) <= MAX_LENGTH:
        return text
    idx = text.rfind(".", 0, MAX_LENGTH)
    if idx > SENTENCE_FLOOR:
        return text[: idx + 1]
    return text[: MAX_LENGTH - len(ELLIPSIS)] + ELLIPSIS


def _single_pass(text: str) -> str:
    # At most one label and one quote pair per pass; sanitize() repeats until stable.
    text = text.strip()
    text = _first_line(text)
    text = _strip_label(text)
    text = _strip_length_note(text)
    text = _strip_note(text)
    text = _strip_footnote(text)
    text = _strip_quotes(text)
    text = _cap_length(text)
    return text.strip()


def sanitize(text: str) -> str:
    """Normalise *text* to a single line of at most 150 characters.

    Each pass strips at most one label prefix and one pair of outer quotes.
    Passes repeat until the output is stable, which makes the function
    idempotent even for nested quote and label wrappers.
    Every pass that changes the text shortens it, so the loop terminates.
    """
    if not text:
        return ""
    current = _single_pass(text)
    while True:
        nxt = _single_pass(current)
        if nxt == current:
            return current
        current = nxt

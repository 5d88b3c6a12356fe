from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from rich.text import Text

PARROT = "\U0001F99C"


@dataclass(frozen=True)
class ParrotStyle:
    parrot: str
    response: str
    accent: str


STYLES: Dict[str, ParrotStyle] = {
    "mild": ParrotStyle(parrot="bright_blue", response="blue", accent="bright_cyan"),
    "sarcastic": ParrotStyle(parrot="bright_yellow", response="yellow", accent="bright_magenta"),
    "savage": ParrotStyle(parrot="bright_red", response="red", accent="bright_yellow"),
    "default": ParrotStyle(parrot="bright_green", response="green", accent="bright_cyan"),
}

EMPHASIS_WORDS = frozenset(
    {
        "failed", "error", "disaster", "incompetent", "broken",
        "genius", "classic", "impressive", "amazing", "brilliant",
        "404", "rejected", "crashed", "destroyed",
    }
)
_PUNCTUATION = ".,!?;:"


def format_parrot_output(personality: str, response: str, *, enhanced: bool = False, colors: bool = True) -> Text:
    if not colors:
        return Text(f"{PARROT} {response}")

    style = STYLES.get(personality, STYLES["default"])
    if not enhanced:
        text = Text()
        text.append(PARROT, style=style.parrot)
        text.append(" ")
        text.append(response, style=style.response)
        return text

    text = Text()
    text.append("━", style=style.accent)
    text.append(" ")
    text.append(f"{PARROT} ▶", style=style.parrot)
    text.append(" ")
    text.append_text(_emphasize(style, response))
    return text


def _emphasize(style: ParrotStyle, response: str) -> Text:
    out = Text(style=style.response)
    for i, word in enumerate(response.split()):
        if i:
            out.append(" ")
        bare = word.strip(_PUNCTUATION)
        if bare.lower() in EMPHASIS_WORDS:
            head, _, tail = word.partition(bare)
            out.append(head)
            out.append(bare.upper(), style=f"bold {style.accent}")
            out.append(tail)
        else:
            out.append(word)
    return out

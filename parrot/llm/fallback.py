from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

GENERIC = "generic"

FALLBACK_RESPONSES: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "git": (
            "Git good? More like git rekt!",
            "Did you forget to pull again? Classic amateur move.",
            "Another git genius strikes again!",
            "Your commits are as broken as your workflow.",
        ),
        "nodejs": (
            "NPM install failed? Shocking! Nobody saw that coming.",
            "Your package.json is crying. Fix it.",
            "Node modules: where dependencies go to die.",
            "Even npm doesn't want to deal with your code.",
        ),
        "docker": (
            "Docker container more like docker DISASTER!",
            "Even containers can't contain your incompetence.",
            "Your Dockerfile needs therapy.",
            "Container exit code: user error detected.",
        ),
        "http": (
            "404: Competence not found.",
            "Even the internet doesn't want to talk to you.",
            "Connection refused? So is your logic.",
            "HTTP status: 500 Internal User Error.",
        ),
        GENERIC: (
            "Wow, you managed to break something simple. Impressive!",
            "Maybe try reading the manual... oh wait, who am I kidding?",
            "Error code says it all: user error!",
            "Have you tried turning your brain on and off again?",
        ),
    }
)

_INT64 = 1 << 64
_INT64_MAX = (1 << 63) - 1


def category_hash(category: str) -> int:
    """Rolling ``h * 31 + c`` hash with signed 64-bit wraparound."""
    value = 0
    for char in category:
        value = (value * 31 + ord(char)) % _INT64
    if value > _INT64_MAX:
        value -= _INT64
    return abs(value)


def fallback_response(
    category: str,
    table: Mapping[str, Tuple[str, ...]] = FALLBACK_RESPONSES,
) -> str:
    """Pick a canned line for *category*; unknown categories use the generic bucket."""
    bucket = table.get(category) or table[GENERIC]
    return bucket[category_hash(category) % len(bucket)]

"""Noise filtering for retrieved memories.

Drops low-quality memories that would only add noise to a recall context:
agent denials ("I don't recall..."), meta-questions about memory itself and
session boilerplate.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

# Agent-side denial patterns
DENIAL_PATTERNS = [
    re.compile(r"i don'?t have (any )?(information|data|memory|record)", re.IGNORECASE),
    re.compile(r"i'?m not sure about", re.IGNORECASE),
    re.compile(r"i don'?t recall", re.IGNORECASE),
    re.compile(r"i don'?t remember", re.IGNORECASE),
    re.compile(r"it looks like i don'?t", re.IGNORECASE),
    re.compile(r"i wasn'?t able to find", re.IGNORECASE),
    re.compile(r"no (relevant )?memories found", re.IGNORECASE),
    re.compile(r"i don'?t have access to", re.IGNORECASE),
]

# User-side meta-questions (about memory itself, not content)
META_QUESTION_PATTERNS = [
    re.compile(r"\bdo you (remember|recall|know about)\b", re.IGNORECASE),
    re.compile(r"\bcan you (remember|recall)\b", re.IGNORECASE),
    re.compile(r"\bdid i (tell|mention|say|share)\b", re.IGNORECASE),
    re.compile(r"\bhave i (told|mentioned|said)\b", re.IGNORECASE),
    re.compile(r"\bwhat did i (tell|say|mention)\b", re.IGNORECASE),
]

# Session boilerplate
BOILERPLATE_PATTERNS = [
    re.compile(r"^(hi|hello|hey|good morning|good evening|greetings)", re.IGNORECASE),
    re.compile(r"^fresh session", re.IGNORECASE),
    re.compile(r"^new session", re.IGNORECASE),
    re.compile(r"^HEARTBEAT", re.IGNORECASE),
]

MIN_MEMORY_LENGTH = 5


@dataclass(frozen=True)
class NoiseFilterOptions:
    """Which noise categories to filter.

    Attributes:
        filter_denials: Drop agent denial responses.
        filter_meta_questions: Drop meta-questions about memory.
        filter_boilerplate: Drop session boilerplate.
    """

    filter_denials: bool = True
    filter_meta_questions: bool = True
    filter_boilerplate: bool = True


DEFAULT_NOISE_OPTIONS = NoiseFilterOptions()


def is_noise(text: str, options: NoiseFilterOptions = DEFAULT_NOISE_OPTIONS) -> bool:
    """Check whether a memory text is noise.

    Args:
        text: Memory text.
        options: Noise categories to check.

    Returns:
        True if the text should be filtered out.
    """
    trimmed = text.strip()

    if len(trimmed) < MIN_MEMORY_LENGTH:
        return True
    if options.filter_denials and any(p.search(trimmed) for p in DENIAL_PATTERNS):
        return True
    if options.filter_meta_questions and any(p.search(trimmed) for p in META_QUESTION_PATTERNS):
        return True
    if options.filter_boilerplate and any(p.search(trimmed) for p in BOILERPLATE_PATTERNS):
        return True
    return False


def filter_noise(
    items: list[T],
    get_text: Callable[[T], str],
    options: NoiseFilterOptions = DEFAULT_NOISE_OPTIONS,
) -> list[T]:
    """Remove noise entries from a list, preserving order.

    Args:
        items: Items to filter.
        get_text: Extracts the text to classify from an item.
        options: Noise categories to check.

    Returns:
        Items whose text is not noise.
    """
    return [item for item in items if not is_noise(get_text(item), options)]

"""Adaptive retrieval gate.

Decides whether a query needs memory retrieval at all. Greetings, commands,
bare affirmations and other chatter are skipped before any embedding or
search call is made.
"""

import re

# Queries that are clearly not memory-retrieval candidates
SKIP_PATTERNS = [
    # Greetings and pleasantries
    re.compile(
        r"^(hi|hello|hey|good\s*(morning|afternoon|evening|night)|greetings|yo|sup|howdy|what'?s up)\b",
        re.IGNORECASE,
    ),
    # Slash commands
    re.compile(r"^/"),
    # Shell-like commands
    re.compile(
        r"^(run|build|test|ls|cd|git|npm|pip|docker|curl|cat|grep|find|make|sudo)\b",
        re.IGNORECASE,
    ),
    # Simple affirmations and negations
    re.compile(
        r"^(yes|no|yep|nope|ok|okay|sure|fine|thanks|thank you|thx|ty|got it|understood"
        r"|cool|nice|great|good|perfect|awesome|👍|👎|✅|❌)\s*[.!]?$",
        re.IGNORECASE,
    ),
    # Continuation prompts
    re.compile(
        r"^(go ahead|continue|proceed|do it|start|begin|next|实施|开始|继续|好的|可以|行)\s*[.!]?$",
        re.IGNORECASE,
    ),
    # Pure emoji
    re.compile(
        r"^[\U0001F000-\U0001FAFF\u2300-\u23FF\u2600-\u27BF\u2B00-\u2BFF\uFE0F\u200D\s]+$"
    ),
    # Heartbeat / system messages
    re.compile(r"^HEARTBEAT", re.IGNORECASE),
    re.compile(r"^\[System", re.IGNORECASE),
]

# Queries that should trigger retrieval even when short
FORCE_RETRIEVE_PATTERNS = [
    re.compile(r"\b(remember|recall|forgot|memory|memories)\b", re.IGNORECASE),
    re.compile(r"\b(last time|before|previously|earlier|yesterday|ago)\b", re.IGNORECASE),
    re.compile(r"\b(my (name|email|phone|address|birthday|preference))\b", re.IGNORECASE),
    re.compile(r"\b(what did (i|we)|did i (tell|say|mention))\b", re.IGNORECASE),
    re.compile(r"(你记得|之前|上次|以前|还记得|提到过|说过)"),
]

CJK_PATTERN = re.compile(r"[\u4e00-\u9fff\u3040-\u309f\u30a0-\u30ff\uac00-\ud7af]")

MIN_QUERY_LENGTH = 5
MIN_LENGTH_CJK = 6
MIN_LENGTH_LATIN = 15


def should_skip_retrieval(query: str) -> bool:
    """Determine whether a query should skip memory retrieval.

    Force-retrieve patterns are checked before the length rules so short
    but intent-bearing queries (e.g. "你记得吗") are never skipped.

    Args:
        query: Raw user query.

    Returns:
        True if retrieval should be skipped.
    """
    trimmed = query.strip()

    if any(pattern.search(trimmed) for pattern in FORCE_RETRIEVE_PATTERNS):
        return False

    if len(trimmed) < MIN_QUERY_LENGTH:
        return True

    if any(pattern.search(trimmed) for pattern in SKIP_PATTERNS):
        return True

    # CJK carries more meaning per character, so it gets a lower threshold
    min_length = MIN_LENGTH_CJK if CJK_PATTERN.search(trimmed) else MIN_LENGTH_LATIN
    if len(trimmed) < min_length and "?" not in trimmed and "？" not in trimmed:
        return True

    return False

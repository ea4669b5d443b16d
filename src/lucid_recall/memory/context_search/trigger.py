# cheap, LLM-free gatekeeper deciding whether a message needs the recursive context search at all

import re
from typing import NamedTuple

from lucid_recall.common.logging.logger import logger

class TriggerDecision(NamedTuple):
    should_search: bool
    reason: str

# (pattern, reason) pairs, checked in order; first match wins
HISTORICAL_REFERENCE_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"what did (we|i|you) (talk|discuss|say|mention)", re.IGNORECASE), "historical discussion reference"),
    (re.compile(r"remember when", re.IGNORECASE), "memory recall request"),
    (re.compile(r"you (mentioned|said|told me|brought up)", re.IGNORECASE), "referencing past statement"),
    (re.compile(r"we (talked|discussed|spoke) about", re.IGNORECASE), "past conversation reference"),
    (re.compile(r"earlier (you|we|i) (said|mentioned|discussed)", re.IGNORECASE), "earlier context reference"),
    (re.compile(r"back when", re.IGNORECASE), "historical reference"),
    (re.compile(r"do you recall", re.IGNORECASE), "memory recall request"),
    (re.compile(r"as (we|you|i) discussed", re.IGNORECASE), "referencing past discussion"),
    (re.compile(r"what was (that|the) (thing|idea|concept)", re.IGNORECASE), "recall request"),
    (re.compile(r"can you remind me", re.IGNORECASE), "reminder request"),
]

TIME_REFERENCE_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"last (week|month|time|session)", re.IGNORECASE), "time-based reference"),
    (re.compile(r"(a |few |couple )?(days|weeks|months) ago", re.IGNORECASE), "time-based reference"),
    (re.compile(r"the other day", re.IGNORECASE), "recent past reference"),
    (re.compile(r"previously", re.IGNORECASE), "previous context reference"),
    (re.compile(r"in (our )?(earlier|previous|past) (conversation|chat|discussion)", re.IGNORECASE), "past conversation reference"),
    (re.compile(r"first time (we|i|you)", re.IGNORECASE), "historical reference"),
    (re.compile(r"when we (first|started)", re.IGNORECASE), "origin reference"),
]

RECALL_REQUEST_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"search (for|through|my|our)", re.IGNORECASE), "explicit search request"),
    (re.compile(r"find (what|when|where|that)", re.IGNORECASE), "explicit find request"),
    (re.compile(r"look (up|back|through)", re.IGNORECASE), "lookup request"),
    (re.compile(r"what do you know about", re.IGNORECASE), "knowledge query"),
    (re.compile(r"have (we|i) (ever|talked|mentioned|discussed)", re.IGNORECASE), "historical query"),
    (re.compile(r"tell me (again|what)", re.IGNORECASE), "recall request"),
]

def should_use_recursive_search(message: str) -> TriggerDecision:
    """
    Lexical-pattern-only check for historical references, time references and explicit recall requests.

    NOTE: no length- or elapsed-time-based triggers; those fired on ordinary phrasing in long
    conversations, so some legitimately deep queries are missed in exchange for precision.
    """
    if not message:
        return TriggerDecision(False, "empty message")

    for group_name, patterns in (
        ("historical", HISTORICAL_REFERENCE_PATTERNS),
        ("time", TIME_REFERENCE_PATTERNS),
        ("recall", RECALL_REQUEST_PATTERNS),
    ):
        for pattern, reason in patterns:
            if pattern.search(message):
                logger.debug(f"Recursive search triggered by {group_name} pattern '{pattern.pattern}': {reason}")
                return TriggerDecision(True, reason)

    return TriggerDecision(False, "no trigger patterns detected")

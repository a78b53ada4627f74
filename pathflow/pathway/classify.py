"""Yes/no question detection.

Plain case-insensitive substring heuristics, OR-ed together. There is no
negation handling: "do you" inside a longer open-ended sentence still counts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from .types import Node, canonical_kind

YES_NO_OPENERS = (
    "are you",
    "do you",
    "have you",
    "would you",
    "can you",
    "will you",
    "is this",
    "is that",
    "are they",
    "did you",
    "should",
    "could",
)

TOPIC_KEYWORDS = (
    "interested",
    "want to",
    "medicare",
    "medicaid",
    "insurance",
    "coverage",
)

SHORT_QUESTION_MAX_LEN = 100

Rule = Literal["opener", "topic", "short-question"]


@dataclass(frozen=True)
class BinaryChoice:
    rule: Rule
    matched: str


@dataclass(frozen=True)
class Other:
    pass


Classification = Union[BinaryChoice, Other]


def classify(node: Node) -> Classification:
    if canonical_kind(node.kind) != "question":
        return Other()

    text = node.text
    lowered = text.lower()
    for phrase in YES_NO_OPENERS:
        if phrase in lowered:
            return BinaryChoice(rule="opener", matched=phrase)
    for kw in TOPIC_KEYWORDS:
        if kw in lowered:
            return BinaryChoice(rule="topic", matched=kw)
    if "?" in text and len(text) < SHORT_QUESTION_MAX_LEN:
        return BinaryChoice(rule="short-question", matched="?")
    return Other()


def is_binary_choice(node: Node) -> bool:
    return isinstance(classify(node), BinaryChoice)


def variable_name_for(text: str) -> str:
    lowered = (text or "").lower()
    for kw, var in (
        ("medicare", "medicare_status"),
        ("medicaid", "medicaid_status"),
        ("insurance", "insurance_status"),
        ("coverage", "coverage_status"),
    ):
        if kw in lowered:
            return var
    return "response"

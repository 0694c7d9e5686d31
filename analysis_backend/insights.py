from __future__ import annotations

import re

MAX_INSIGHTS = 5
MIN_INSIGHT_LENGTH = 10
BULLET_MARKERS = ("•", "-", "*")

_LEADING_MARKER = re.compile(r"^[•\-*]\s*")
_SENTENCE = re.compile(r"[^.!?]+[.!?]+")


def _bullet_insights(lines: list[str]) -> list[str]:
    insights: list[str] = []
    for line in lines:
        if not any(marker in line for marker in BULLET_MARKERS):
            continue
        insight = _LEADING_MARKER.sub("", line).strip()
        if len(insight) > MIN_INSIGHT_LENGTH:
            insights.append(insight)
    return insights


def _sentence_insights(text: str) -> list[str]:
    insights: list[str] = []
    for sentence in _SENTENCE.findall(text)[:MAX_INSIGHTS]:
        sentence = sentence.strip()
        if len(sentence) > MIN_INSIGHT_LENGTH:
            insights.append(sentence)
    return insights


def extract_key_insights(text: str | None) -> list[str]:
    """Pull up to five short insights out of a free-text completion.

    Lines carrying a bullet marker win; when none qualify the first sentences
    of the text are used instead. Order is preserved and nothing is deduplicated.
    """
    text = text or ""
    insights = _bullet_insights(text.split("\n"))
    if not insights:
        insights = _sentence_insights(text)
    return insights[:MAX_INSIGHTS]

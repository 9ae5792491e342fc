# services/knowledge_search.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence

from services.brainnova_repository import BrainnovaRepository
from services.errors import StoreError
from services.models import KnowledgeItem

logger = logging.getLogger("brainnova-backend.knowledge")

_PUNCTUATION_RE = re.compile(r"[¿?¡!]")

STOP_WORDS: FrozenSet[str] = frozenset({
    "son", "las", "los", "del", "de", "la", "el", "en", "un", "una", "que",
    "con", "por", "para",
    "cuáles", "cuales", "cuál", "cual", "qué", "cómo", "como",
    "cuándo", "cuando", "dónde", "donde",
})

# Relevance weights per matched term
TITLE_WEIGHT = 3
KEYWORD_WEIGHT = 2
CONTENT_WEIGHT = 1


@dataclass(frozen=True)
class RankedKnowledgeItem:
    item: KnowledgeItem
    relevance: int


def clean_query(query: str) -> str:
    return _PUNCTUATION_RE.sub("", query or "").strip()


# Short tokens that still carry meaning: "ia", "ue", and anything with a digit ("5g")
SHORT_TERMS: FrozenSet[str] = frozenset({"ia", "ue"})


def _is_term(token: str, stop_words: FrozenSet[str]) -> bool:
    if token in stop_words:
        return False
    if len(token) > 2:
        return True
    return token in SHORT_TERMS or any(c.isdigit() for c in token)


def extract_terms(query: str, stop_words: FrozenSet[str] = STOP_WORDS) -> List[str]:
    cleaned = clean_query(query).lower()
    return [t for t in cleaned.split() if _is_term(t, stop_words)]


def calculate_relevance(item: KnowledgeItem, terms: Sequence[str]) -> int:
    title = item.title.lower()
    content = item.content.lower()
    keywords = [k.lower() for k in item.keywords]

    score = 0
    for term in terms:
        if term in title:
            score += TITLE_WEIGHT
        if any(term in k for k in keywords):
            score += KEYWORD_WEIGHT
        if term in content:
            score += CONTENT_WEIGHT
    return score


def rank(items: Sequence[KnowledgeItem], terms: Sequence[str]) -> List[RankedKnowledgeItem]:
    ranked = [RankedKnowledgeItem(item, calculate_relevance(item, terms)) for item in items]
    # sorted() is stable: equal relevance keeps the store order (newest first)
    return sorted(ranked, key=lambda r: r.relevance, reverse=True)


class KnowledgeSearch:
    """
    Free-text relevance search over the chatbot_knowledge corpus.

    Never raises: a failing store degrades to a title-only search on the
    longest term, and then to an empty result.
    """

    def __init__(self, repository: BrainnovaRepository, stop_words: FrozenSet[str] = STOP_WORDS, limit: int = 10):
        self.repository = repository
        self.stop_words = stop_words
        self.limit = limit

    async def search(self, query: str, category: Optional[str] = None) -> List[RankedKnowledgeItem]:
        terms = extract_terms(query, self.stop_words)
        if not terms:
            return []

        # Longer terms are more specific; they lead the OR condition
        by_length = sorted(terms, key=len, reverse=True)

        try:
            items = await self.repository.search_knowledge(by_length, category=category, limit=self.limit)
        except StoreError as e:
            logger.warning("Knowledge search failed, retrying on title only: %s", e)
            try:
                items = await self.repository.search_knowledge_titles(by_length[0], limit=self.limit)
            except StoreError as e2:
                logger.error("Fallback knowledge search also failed: %s", e2)
                return []

        return rank(items, terms)

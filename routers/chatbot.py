"""
routers/chatbot.py

BRAINNOVA Chatbot API
────────────────────────────────────────
- Ask a question (intent cascade → Spanish answer)
- Knowledge base search (ranked)
- Refresh of the province comparison used by the chatbot
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from services.chatbot_service import ChatbotService
from services.container import get_chatbot, get_knowledge_search
from services.knowledge_search import KnowledgeSearch


router = APIRouter(
    prefix="/api/v1/chatbot",
    tags=["BRAINNOVA Chatbot"],
)


# ============================================================
# Models
# ============================================================

class AskRequest(BaseModel):
    query: str = Field(..., max_length=1000)


class AskResponse(BaseModel):
    answer: str
    intent: str


class KnowledgeHit(BaseModel):
    id: str
    category: str
    title: str
    content: str
    keywords: List[str] = []
    source: Optional[str] = None
    relevance: int


class ProvinceSummaryOut(BaseModel):
    territory_key: str
    index: float
    rank: int
    top_dimension: str
    top_dimension_score: float


# ============================================================
# Endpoints
# ============================================================

@router.post("/ask", response_model=AskResponse)
async def ask(payload: AskRequest, chatbot: ChatbotService = Depends(get_chatbot)):
    answer = await chatbot.respond(payload.query)
    return AskResponse(answer=answer.text, intent=answer.intent)


@router.get("/knowledge", response_model=List[KnowledgeHit])
async def search_knowledge(
    q: str = Query(..., min_length=1),
    category: Optional[str] = None,
    knowledge: KnowledgeSearch = Depends(get_knowledge_search),
):
    results = await knowledge.search(q, category=category)
    return [
        KnowledgeHit(
            id=r.item.id,
            category=r.item.category,
            title=r.item.title,
            content=r.item.content,
            keywords=list(r.item.keywords),
            source=r.item.source,
            relevance=r.relevance,
        )
        for r in results
    ]


@router.post("/province-summaries/refresh", response_model=List[ProvinceSummaryOut])
async def refresh_province_summaries(
    period: Optional[int] = None,
    chatbot: ChatbotService = Depends(get_chatbot),
):
    """
    Operator action: recomputes the province comparison and installs it on the
    shared chatbot, so every later /ask answer uses the new figures until the
    next refresh or restart. Scores themselves are never cached.
    """
    summaries = await chatbot.refresh_province_summaries(period)
    if not summaries:
        raise HTTPException(status_code=404, detail="No province data available")
    return [
        ProvinceSummaryOut(
            territory_key=s.territory_key,
            index=s.index,
            rank=s.rank,
            top_dimension=s.top_dimension,
            top_dimension_score=s.top_dimension_score,
        )
        for s in sorted(summaries.values(), key=lambda s: s.rank)
    ]

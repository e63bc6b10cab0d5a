from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from flashdeck.config import AI_DEFAULT_CARD_COUNT, MAX_UPLOAD_BYTES, MAX_WORDS_PER_CHUNK
from flashdeck.db import get_session
from flashdeck.middleware.rate_limit import ai_generation_limit, upload_limit
from flashdeck.models import Deck
from flashdeck.services.extraction import extract_text, normalize_media_type, process_document
from flashdeck.services.llm import generate_flashcards_with_ai
from flashdeck.services.study_session import estimate_read_minutes, select_cards


router = APIRouter(prefix="/documents", tags=["documents"])


async def _read_upload(file: UploadFile) -> bytes:
    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"File exceeds {MAX_UPLOAD_BYTES} bytes")
    return content


def _save_deck(session: Session, file: UploadFile, source: str, cards) -> dict:
    deck = Deck(
        filename=file.filename or "document",
        media_type=normalize_media_type(file.content_type),
        source=source,
        cards=[c.to_json_dict() for c in cards],
    )
    session.add(deck)
    session.commit()
    session.refresh(deck)
    return {
        "deck_id": deck.id,
        "filename": deck.filename,
        "source": source,
        "total_cards": len(cards),
        "estimated_read_minutes": estimate_read_minutes(len(cards)),
        "flashcards": deck.cards,
    }


@router.post("/flashcards")
@upload_limit()
async def create_flashcards(
    request: Request,
    file: UploadFile = File(...),
    max_words_per_chunk: int = Form(MAX_WORDS_PER_CHUNK, ge=1),
    card_count: Optional[int] = Form(None, ge=1),
    session: Session = Depends(get_session),
):
    """Chunk an uploaded PDF or Word document into flashcards"""
    content = await _read_upload(file)
    cards = await run_in_threadpool(process_document, content, file.content_type, max_words_per_chunk)
    selected = select_cards(cards, card_count)
    result = await run_in_threadpool(_save_deck, session, file, "chunker", selected)
    result["available_cards"] = len(cards)
    return result


@router.post("/flashcards/ai")
@ai_generation_limit()
async def create_flashcards_with_ai(
    request: Request,
    file: UploadFile = File(...),
    card_count: int = Form(AI_DEFAULT_CARD_COUNT, ge=1),
    session: Session = Depends(get_session),
):
    """Have the AI service author flashcards for an uploaded document"""
    content = await _read_upload(file)
    text = await run_in_threadpool(extract_text, content, file.content_type)
    if not text.strip():
        raise HTTPException(status_code=422, detail="Document contains no extractable text")
    cards = await run_in_threadpool(generate_flashcards_with_ai, text, card_count)
    result = await run_in_threadpool(_save_deck, session, file, "ai", cards)
    result["available_cards"] = len(cards)
    return result

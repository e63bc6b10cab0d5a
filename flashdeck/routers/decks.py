from fastapi import APIRouter, Depends, Form, HTTPException
from sqlmodel import Session

from flashdeck.db import get_session
from flashdeck.errors import UnknownCardError
from flashdeck.models import Deck
from flashdeck.services.llm import answer_card_question
from flashdeck.services.study_session import StudySession, estimate_read_minutes


router = APIRouter(prefix="/decks", tags=["decks"])


def _get_deck(deck_id: int, session: Session) -> Deck:
    deck = session.get(Deck, deck_id)
    if not deck:
        raise HTTPException(status_code=404, detail="Deck not found")
    return deck


def _commit(session: Session, deck: Deck, study: StudySession) -> dict:
    study.save_to(deck)
    session.add(deck)
    session.commit()
    return study.progress()


@router.get("/{deck_id}")
def get_deck(deck_id: int, session: Session = Depends(get_session)):
    deck = _get_deck(deck_id, session)
    return {
        "deck_id": deck.id,
        "filename": deck.filename,
        "media_type": deck.media_type,
        "source": deck.source,
        "created_at": deck.created_at_utc().isoformat(),
        "estimated_read_minutes": estimate_read_minutes(len(deck.cards)),
        "flashcards": deck.cards,
        "progress": StudySession.from_deck(deck).progress(),
    }


@router.post("/{deck_id}/cards/{card_id}/viewed")
def mark_viewed(deck_id: int, card_id: int, session: Session = Depends(get_session)):
    deck = _get_deck(deck_id, session)
    study = StudySession.from_deck(deck)
    study.mark_viewed(card_id)
    return _commit(session, deck, study)


@router.post("/{deck_id}/cards/{card_id}/bookmark")
def toggle_bookmark(deck_id: int, card_id: int, session: Session = Depends(get_session)):
    deck = _get_deck(deck_id, session)
    study = StudySession.from_deck(deck)
    bookmarked = study.toggle_bookmark(card_id)
    progress = _commit(session, deck, study)
    return {"card_id": card_id, "bookmarked": bookmarked, "progress": progress}


@router.post("/{deck_id}/cards/{card_id}/answer")
def record_answer(deck_id: int, card_id: int, correct: bool = Form(...), session: Session = Depends(get_session)):
    deck = _get_deck(deck_id, session)
    study = StudySession.from_deck(deck)
    study.record_answer(card_id, correct)
    return _commit(session, deck, study)


@router.post("/{deck_id}/reset")
def reset_deck(deck_id: int, session: Session = Depends(get_session)):
    deck = _get_deck(deck_id, session)
    study = StudySession.from_deck(deck)
    study.reset()
    return _commit(session, deck, study)


@router.post("/{deck_id}/cards/{card_id}/ask")
def ask_about_card(deck_id: int, card_id: int, question: str = Form(...), session: Session = Depends(get_session)):
    """Ask the AI service a question about one card"""
    deck = _get_deck(deck_id, session)
    card = next((c for c in deck.cards if c["id"] == card_id), None)
    if card is None:
        raise UnknownCardError(card_id)
    try:
        answer = answer_card_question(card["content"], question)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"card_id": card_id, "question": question.strip(), "answer": answer}

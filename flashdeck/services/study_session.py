"""
Per-deck study progress: which cards were viewed, bookmarked and answered.
"""
from typing import Iterable, List, Optional, Sequence

from flashdeck.errors import UnknownCardError
from flashdeck.models import Deck, Flashcard

SECONDS_PER_CARD = 8


def select_cards(cards: Sequence[Flashcard], card_count: Optional[int] = None) -> List[Flashcard]:
    """First ``card_count`` cards in order; ``None`` keeps them all."""
    if card_count is None:
        return list(cards)
    if card_count < 1:
        raise ValueError("card_count must be a positive integer")
    return list(cards[:card_count])


def estimate_read_minutes(card_count: int) -> int:
    return round(card_count * SECONDS_PER_CARD / 60)


class StudySession:
    def __init__(self, card_ids: Iterable[int], viewed: Iterable[int] = (),
                 bookmarked: Iterable[int] = (), answered: Iterable[int] = (),
                 correct: Iterable[int] = ()):
        self.card_ids = list(card_ids)
        self._known = set(self.card_ids)
        self.viewed = set(viewed) & self._known
        self.bookmarked = set(bookmarked) & self._known
        self.answered = set(answered) & self._known
        self.correct = set(correct) & self.answered

    @classmethod
    def from_deck(cls, deck: Deck) -> "StudySession":
        return cls(
            [card["id"] for card in deck.cards],
            viewed=deck.viewed,
            bookmarked=deck.bookmarked,
            answered=deck.answered,
            correct=deck.correct,
        )

    def save_to(self, deck: Deck) -> None:
        # Assign fresh lists so the JSON columns are flagged dirty
        deck.viewed = sorted(self.viewed)
        deck.bookmarked = sorted(self.bookmarked)
        deck.answered = sorted(self.answered)
        deck.correct = sorted(self.correct)

    def _require(self, card_id: int) -> None:
        if card_id not in self._known:
            raise UnknownCardError(card_id)

    def mark_viewed(self, card_id: int) -> None:
        self._require(card_id)
        self.viewed.add(card_id)

    def toggle_bookmark(self, card_id: int) -> bool:
        """Flip the bookmark and return whether the card is now bookmarked."""
        self._require(card_id)
        if card_id in self.bookmarked:
            self.bookmarked.discard(card_id)
            return False
        self.bookmarked.add(card_id)
        return True

    def record_answer(self, card_id: int, is_correct: bool) -> None:
        self._require(card_id)
        self.answered.add(card_id)
        self.viewed.add(card_id)
        if is_correct:
            self.correct.add(card_id)
        else:
            self.correct.discard(card_id)

    def reset(self) -> None:
        """Start the deck over; bookmarks are kept."""
        self.viewed.clear()
        self.answered.clear()
        self.correct.clear()

    @property
    def is_complete(self) -> bool:
        return bool(self.card_ids) and len(self.answered) == len(self.card_ids)

    @property
    def accuracy(self) -> float:
        if not self.answered:
            return 0.0
        return len(self.correct) / len(self.answered) * 100

    def progress(self) -> dict:
        return {
            "total": len(self.card_ids),
            "viewed": sorted(self.viewed),
            "bookmarked": sorted(self.bookmarked),
            "answered": len(self.answered),
            "correct": len(self.correct),
            "accuracy": round(self.accuracy, 2),
            "is_complete": self.is_complete,
        }

"""
Text-to-flashcard chunking.

Extracted document text is split into paragraphs, paragraphs are greedily
regrouped into chunks of at most ``max_words_per_chunk`` words, and each
chunk becomes one flashcard with a short headline taken from its front.
"""
import re
from typing import List

from flashdeck.models import Flashcard

DEFAULT_MAX_WORDS = 120
HEADLINE_MAX_CHARS = 60
ELLIPSIS = "..."

PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")
SENTENCE_END_RE = re.compile(r"[.!?]")


# -------------------- PARAGRAPHS / WORDS --------------------

def split_into_paragraphs(text: str) -> List[str]:
    paragraphs = (p.strip() for p in PARAGRAPH_BREAK_RE.split(text or ""))
    return [p for p in paragraphs if p]


def count_words(text: str) -> int:
    return len(text.split())


# -------------------- REGROUPING --------------------

def group_paragraphs(paragraphs: List[str], max_words_per_chunk: int = DEFAULT_MAX_WORDS) -> List[str]:
    """Greedily merge paragraphs into chunks bounded by ``max_words_per_chunk``.

    The accumulator is flushed only when the next paragraph would overflow it.
    A paragraph longer than the bound is never merged with its neighbours; it
    is cut into consecutive groups of exactly ``max_words_per_chunk`` words
    (the last group may be shorter) and each group becomes its own chunk.
    """
    if max_words_per_chunk < 1:
        raise ValueError("max_words_per_chunk must be a positive integer")

    chunks: List[str] = []
    current = ""
    for paragraph in paragraphs:
        words = paragraph.split()
        if count_words(current) + len(words) > max_words_per_chunk:
            if current:
                chunks.append(current)
                current = ""
            if len(words) > max_words_per_chunk:
                for start in range(0, len(words), max_words_per_chunk):
                    chunks.append(" ".join(words[start:start + max_words_per_chunk]))
            else:
                current = paragraph
        else:
            current = f"{current} {paragraph}" if current else paragraph
    if current:
        chunks.append(current)
    return chunks


# -------------------- HEADLINES --------------------

def derive_headline(content: str) -> str:
    first_sentence = SENTENCE_END_RE.split(content, maxsplit=1)[0].strip()
    if not first_sentence:
        # Content opens with a terminator ("...", "?!"); fall back to its prefix
        prefix = content[:HEADLINE_MAX_CHARS].strip()
        return prefix + ELLIPSIS if len(content) > HEADLINE_MAX_CHARS else prefix
    if len(first_sentence) <= HEADLINE_MAX_CHARS:
        return first_sentence
    return content[:HEADLINE_MAX_CHARS].strip() + ELLIPSIS


# -------------------- FLASHCARDS --------------------

def chunk(text: str, max_words_per_chunk: int = DEFAULT_MAX_WORDS) -> List[Flashcard]:
    """Turn plain document text into ordered flashcards.

    Pure and deterministic: the same input always yields the same cards.
    Text with no non-blank paragraphs yields an empty list.
    """
    chunks = group_paragraphs(split_into_paragraphs(text), max_words_per_chunk)
    return [
        Flashcard(
            id=index + 1,
            headline=derive_headline(content),
            content=content,
            source_offset=index,
        )
        for index, content in enumerate(chunks)
    ]

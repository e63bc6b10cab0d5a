"""
Document dispatch and plain-text extraction for PDF and Word uploads
"""
import io
from typing import List

import structlog
from docx import Document
from pypdf import PdfReader

from flashdeck.config import MAX_WORDS_PER_CHUNK
from flashdeck.errors import ExtractionError, UnsupportedInputError
from flashdeck.models import Flashcard
from flashdeck.services.cache import cache, document_cache_key
from flashdeck.services.chunker import chunk
from flashdeck.services.logging import log_performance
from flashdeck.services.monitoring import CARDS_GENERATED, DOCUMENTS_PROCESSED

logger = structlog.get_logger()

PDF = "pdf"
WORD = "word"

MEDIA_TYPES = {
    "application/pdf": PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": WORD,
    "application/msword": WORD,
}


def normalize_media_type(media_type: str) -> str:
    return (media_type or "").split(";", 1)[0].strip().lower()


def document_kind(media_type: str) -> str:
    """Map a declared media type to PDF or WORD, rejecting everything else"""
    kind = MEDIA_TYPES.get(normalize_media_type(media_type))
    if kind is None:
        raise UnsupportedInputError(media_type)
    return kind


# -------------------- EXTRACTORS --------------------

@log_performance("extract_text_from_pdf")
def extract_text_from_pdf(data: bytes) -> str:
    """Concatenate page text, keeping a paragraph break between pages"""
    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            reader.decrypt("")
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    except Exception as e:
        raise ExtractionError(f"Could not read PDF: {e}") from e
    return "\n\n".join(pages)


@log_performance("extract_text_from_docx")
def extract_text_from_docx(data: bytes) -> str:
    try:
        doc = Document(io.BytesIO(data))
        paragraphs = [p.text for p in doc.paragraphs]
    except Exception as e:
        raise ExtractionError(f"Could not read Word document: {e}") from e
    return "\n\n".join(paragraphs)


EXTRACTORS = {
    PDF: extract_text_from_pdf,
    WORD: extract_text_from_docx,
}


def extract_text(data: bytes, media_type: str) -> str:
    kind = document_kind(media_type)
    key = document_cache_key(data, kind)
    cached = cache.get(key)
    if cached is not None:
        logger.info("document_text_cache_hit", kind=kind, chars=len(cached))
        return cached

    text = EXTRACTORS[kind](data)
    cache.set(key, text)
    logger.info("document_text_extracted", kind=kind, bytes=len(data), chars=len(text))
    return text


def process_document(data: bytes, media_type: str,
                     max_words_per_chunk: int = MAX_WORDS_PER_CHUNK) -> List[Flashcard]:
    """Dispatch on media type, extract text and chunk it into flashcards"""
    try:
        text = extract_text(data, media_type)
    except UnsupportedInputError:
        DOCUMENTS_PROCESSED.labels(kind="unsupported", status="rejected").inc()
        raise
    except ExtractionError:
        DOCUMENTS_PROCESSED.labels(kind=document_kind(media_type), status="failed").inc()
        raise

    cards = chunk(text, max_words_per_chunk)
    DOCUMENTS_PROCESSED.labels(kind=document_kind(media_type), status="success").inc()
    CARDS_GENERATED.labels(source="chunker").inc(len(cards))
    logger.info("document_chunked", cards=len(cards), max_words_per_chunk=max_words_per_chunk)
    return cards

from __future__ import annotations

import json
from typing import List

import openai
import structlog
from openai import OpenAI

from flashdeck import config
from flashdeck.errors import RemoteProcessingError
from flashdeck.models import Flashcard
from flashdeck.services.monitoring import AI_GENERATION_REQUESTS, CARDS_GENERATED

logger = structlog.get_logger()

SYSTEM_PROMPT = (
    "You are an expert at creating educational flashcards. When given a document, "
    "return a JSON array of flashcards, each with headline, content, and (optionally) "
    "category, sourceOffset, and deeperContent. Only return the JSON array."
)

FLASHCARD_PROMPT = """Carefully read the entire document below. Generate a comprehensive set of flashcards that cover all major sections, key points, and important details throughout the document, not just the introduction or summary.

Follow these standards:
- Generate exactly {card_count} flashcards, dividing the document as evenly as possible by topic and content. If there are fewer than {card_count} major sections, split larger sections into multiple cards.
- Chunk content by semantic boundaries (headings, sentences), targeting 100-150 words per card.
- Each flashcard should focus on a single idea or concept.
- Use clear, student-friendly, and concise language.
- For each card, generate a headline (at most 60 characters) using the first heading or a concise summary.
- Avoid redundancy or overlap between cards.
- If a section has deeper context, include it in the deeperContent field.
- Include a category (if possible) and a sourceOffset (section index).
- Format the output as a JSON array, where each card has: headline (string), content (string), and optionally category (string), sourceOffset (number), and deeperContent (string).
- Return only the JSON array of flashcards.

Document:

{text}"""

QUESTION_PROMPT = """Answer the student's question using the flashcard content below. Be concise and say so if the content does not cover the question.

Flashcard:
{content}

Question: {question}"""


def _get_client() -> OpenAI:
    if not config.OPENAI_API_KEY:
        raise RemoteProcessingError("OPENAI_API_KEY not set")
    return OpenAI(api_key=config.OPENAI_API_KEY, timeout=config.OPENAI_TIMEOUT)


def _complete(messages: List[dict], kind: str) -> str:
    client = _get_client()
    try:
        rsp = client.chat.completions.create(
            model=config.OPENAI_MODEL,
            messages=messages,
            temperature=0.2,
        )
    except openai.OpenAIError as e:
        AI_GENERATION_REQUESTS.labels(type=kind, status="error").inc()
        logger.error("ai_request_failed", type=kind, error=str(e))
        raise RemoteProcessingError(f"AI service request failed: {e}") from e
    return rsp.choices[0].message.content or ""


def _clean_json_like(content: str) -> str:
    # Strip common code fences ```json ... ``` or ``` ... ```
    text = content.strip()
    if text.startswith("```"):
        first_nl = text.find("\n")
        if first_nl != -1:
            text = text[first_nl + 1 :]
        if text.endswith("```"):
            text = text[:-3]
    # Extract the outermost JSON array if the model wrapped it in prose
    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1]
    return text


def parse_flashcards(content: str) -> List[Flashcard]:
    """Validate a remote response into flashcards; any defect fails the whole call."""
    try:
        data = json.loads(_clean_json_like(content))
    except json.JSONDecodeError as e:
        raise RemoteProcessingError(f"AI response is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise RemoteProcessingError("AI response is not a JSON array")

    cards: List[Flashcard] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise RemoteProcessingError(f"Flashcard {index} is not an object")
        headline = item.get("headline")
        body = item.get("content")
        if not isinstance(headline, str) or not isinstance(body, str) or not body.strip():
            raise RemoteProcessingError(f"Flashcard {index} is missing headline or content")

        offset = item.get("sourceOffset", index)
        if isinstance(offset, bool) or not isinstance(offset, (int, float)) or offset < 0:
            raise RemoteProcessingError(f"Flashcard {index} has an invalid sourceOffset")
        category = item.get("category")
        deeper = item.get("deeperContent")
        if category is not None and not isinstance(category, str):
            raise RemoteProcessingError(f"Flashcard {index} has a non-string category")
        if deeper is not None and not isinstance(deeper, str):
            raise RemoteProcessingError(f"Flashcard {index} has non-string deeperContent")

        cards.append(Flashcard(
            id=index + 1,
            headline=headline.strip(),
            content=body.strip(),
            source_offset=int(offset),
            category=category,
            deeper_content=deeper,
        ))
    return cards


def generate_flashcards_with_ai(text: str, card_count: int = config.AI_DEFAULT_CARD_COUNT) -> List[Flashcard]:
    if card_count < 1:
        raise ValueError("card_count must be a positive integer")
    prompt = FLASHCARD_PROMPT.format(card_count=card_count, text=text[:config.AI_MAX_INPUT_CHARS])
    content = _complete(
        [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        kind="flashcards",
    )
    try:
        cards = parse_flashcards(content)
    except RemoteProcessingError:
        AI_GENERATION_REQUESTS.labels(type="flashcards", status="malformed").inc()
        logger.error("ai_flashcards_malformed", preview=content[:200])
        raise

    AI_GENERATION_REQUESTS.labels(type="flashcards", status="success").inc()
    CARDS_GENERATED.labels(source="ai").inc(len(cards))
    logger.info("ai_flashcards_generated", cards=len(cards), requested=card_count)
    return cards


def answer_card_question(content: str, question: str) -> str:
    """Ask the AI service a question about one card's content."""
    question = (question or "").strip()
    if not question:
        raise ValueError("question must not be blank")
    answer = _complete(
        [{"role": "user", "content": QUESTION_PROMPT.format(content=content, question=question)}],
        kind="question",
    ).strip()
    if not answer:
        AI_GENERATION_REQUESTS.labels(type="question", status="malformed").inc()
        raise RemoteProcessingError("AI service returned an empty answer")
    AI_GENERATION_REQUESTS.labels(type="question", status="success").inc()
    return answer

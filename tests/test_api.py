"""
Integration tests for API endpoints
"""
import inspect
import json
from unittest.mock import patch

from flashdeck.routers import decks

from factories import DOCX_TYPE, PDF_TYPE, make_blank_pdf, make_docx, words

NOTES = make_docx(
    "The heart pumps blood. It has four chambers.",
    "Arteries carry blood away from the heart.",
    words(130, "vein"),
)

AI_CARDS = [
    {"headline": "Heart", "content": "The heart pumps blood.", "category": "Biology"},
    {"headline": "Arteries", "content": "Arteries carry blood away.", "deeperContent": "They have thick walls."},
]


def upload(client, data=NOTES, media_type=DOCX_TYPE, filename="notes.docx", path="/documents/flashcards", **form):
    return client.post(path, files={"file": (filename, data, media_type)}, data=form)


class TestHealthEndpoints:
    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert "status" in data
        assert "timestamp" in data
        assert set(data["checks"]) == {"database", "cache", "ai"}

    def test_metrics_endpoint(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "flashcards_generated_total" in response.text


class TestDocumentEndpoints:
    def test_word_upload_creates_deck(self, client):
        response = upload(client)
        assert response.status_code == 200
        data = response.json()
        assert data["deck_id"] >= 1
        assert data["filename"] == "notes.docx"
        assert data["source"] == "chunker"
        assert data["total_cards"] == 3
        cards = data["flashcards"]
        assert [c["id"] for c in cards] == [1, 2, 3]
        assert [c["sourceOffset"] for c in cards] == [0, 1, 2]
        assert cards[0]["headline"] == "The heart pumps blood"
        assert cards[0]["content"] == (
            "The heart pumps blood. It has four chambers. Arteries carry blood away from the heart."
        )
        assert "category" not in cards[0]

    def test_custom_chunk_size(self, client):
        response = upload(client, max_words_per_chunk="200")
        assert response.json()["total_cards"] == 1

    def test_card_count_selects_first_cards(self, client):
        data = upload(client, card_count="2").json()
        assert data["total_cards"] == 2
        assert data["available_cards"] == 3
        assert [c["id"] for c in data["flashcards"]] == [1, 2]

    def test_blank_pdf_gives_empty_deck(self, client):
        response = upload(client, data=make_blank_pdf(), media_type=PDF_TYPE, filename="blank.pdf")
        assert response.status_code == 200
        assert response.json()["flashcards"] == []

    def test_unsupported_type_rejected(self, client):
        response = upload(client, data=b"just text", media_type="text/plain", filename="notes.txt")
        assert response.status_code == 415
        assert "text/plain" in response.json()["detail"]

    def test_corrupt_document_reported(self, client):
        response = upload(client, data=b"not really a docx", filename="broken.docx")
        assert response.status_code == 422

    def test_invalid_chunk_size_rejected(self, client):
        response = upload(client, max_words_per_chunk="0")
        assert response.status_code == 422


class TestAIEndpoints:
    @patch("flashdeck.routers.documents.generate_flashcards_with_ai")
    def test_ai_upload(self, mock_generate, client):
        from flashdeck.services.llm import parse_flashcards
        mock_generate.return_value = parse_flashcards(json.dumps(AI_CARDS))

        response = upload(client, path="/documents/flashcards/ai", card_count="2")

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "ai"
        assert data["flashcards"][1]["deeperContent"] == "They have thick walls."
        text, count = mock_generate.call_args.args
        assert "The heart pumps blood." in text
        assert count == 2

    @patch("flashdeck.services.llm._get_client")
    def test_ai_failure_is_bad_gateway(self, mock_get_client, client):
        from test_llm import mock_client
        mock_get_client.return_value = mock_client("Sorry, no flashcards today.")

        response = upload(client, path="/documents/flashcards/ai")

        assert response.status_code == 502
        assert "detail" in response.json()

    def test_ai_rejects_unsupported_type(self, client):
        response = upload(client, data=b"x", media_type="image/png", filename="a.png",
                          path="/documents/flashcards/ai")
        assert response.status_code == 415


class TestDeckEndpoints:
    def test_study_flow(self, client):
        deck_id = upload(client).json()["deck_id"]

        assert client.post(f"/decks/{deck_id}/cards/1/viewed").json()["viewed"] == [1]

        bookmark = client.post(f"/decks/{deck_id}/cards/2/bookmark").json()
        assert bookmark["bookmarked"] is True
        assert bookmark["progress"]["bookmarked"] == [2]

        client.post(f"/decks/{deck_id}/cards/1/answer", data={"correct": "true"})
        progress = client.post(f"/decks/{deck_id}/cards/2/answer", data={"correct": "false"}).json()
        assert progress["answered"] == 2
        assert progress["accuracy"] == 50.0

        deck = client.get(f"/decks/{deck_id}").json()
        assert deck["progress"]["viewed"] == [1, 2]
        assert len(deck["flashcards"]) == 3

        reset = client.post(f"/decks/{deck_id}/reset").json()
        assert reset["answered"] == 0
        assert reset["bookmarked"] == [2]

    def test_missing_deck(self, client):
        assert client.get("/decks/9999").status_code == 404

    def test_unknown_card(self, client):
        deck_id = upload(client).json()["deck_id"]
        response = client.post(f"/decks/{deck_id}/cards/42/viewed")
        assert response.status_code == 404

    @patch("flashdeck.routers.decks.answer_card_question", return_value="Four chambers.")
    def test_ask_about_card(self, mock_answer, client):
        deck_id = upload(client).json()["deck_id"]

        response = client.post(f"/decks/{deck_id}/cards/1/ask", data={"question": "How many chambers?"})

        assert response.status_code == 200
        assert response.json()["answer"] == "Four chambers."
        content, question = mock_answer.call_args.args
        assert content.startswith("The heart pumps blood.")
        assert question == "How many chambers?"

    def test_ask_blank_question(self, client):
        deck_id = upload(client).json()["deck_id"]
        response = client.post(f"/decks/{deck_id}/cards/1/ask", data={"question": "   "})
        assert response.status_code == 400

    def test_deck_timestamp_is_utc(self, client):
        deck_id = upload(client).json()["deck_id"]
        created_at = client.get(f"/decks/{deck_id}").json()["created_at"]
        assert created_at.endswith("+00:00")

    def test_ask_runs_off_the_event_loop(self):
        assert not inspect.iscoroutinefunction(decks.ask_about_card)


class TestErrorLogging:
    @patch("flashdeck.main.log_api_request")
    def test_mapped_error_logged_with_its_status(self, mock_log, client):
        upload(client, data=b"just text", media_type="text/plain", filename="notes.txt")
        error_calls = [c for c in mock_log.call_args_list if c.kwargs.get("error") is not None]
        assert len(error_calls) == 1
        assert error_calls[0].kwargs["status_code"] == 415

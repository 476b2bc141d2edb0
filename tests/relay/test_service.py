import logging
from pathlib import Path

import pytest

from relay import ChatRelay, UploadedFile
from relay.clients import NO_REPLY_PLACEHOLDER
from relay.core import Turn
from relay.errors import (
    ProcessingError,
    TransportError,
    UnsupportedMediaTypeError,
    UpstreamAPIError,
    ValidationError,
)
from relay.extraction.extractor import SPREADSHEET_MIME, WORD_MIME
from tests.fakes import error_body, make_xlsx


@pytest.fixture
def relay(store, gemini_client, settings) -> ChatRelay:
    return ChatRelay(store, gemini_client, settings)


def stored_files(relay: ChatRelay):
    return list(Path(relay.upload_dir).iterdir())


@pytest.mark.asyncio
async def test_chat_records_both_turns(relay, gemini):
    reply = await relay.chat("hello")

    assert reply == "Hello from the model"
    assert [(t.role, t.message) for t in relay.history()] == [
        ("user", "hello"),
        ("assistant", "Hello from the model"),
    ]


@pytest.mark.asyncio
async def test_chat_image_only(relay, gemini):
    await relay.chat(image="aGVsbG8=", image_mime_type="image/png")

    assert gemini.last_payload["contents"][0]["parts"] == [
        {"inline_data": {"mime_type": "image/png", "data": "aGVsbG8="}}
    ]
    user_turn = relay.history()[0]
    assert user_turn.message is None
    assert user_turn.image == "aGVsbG8="


@pytest.mark.asyncio
@pytest.mark.parametrize("message, image", [(None, None), ("", ""), ("", None)])
async def test_chat_requires_message_or_image(relay, gemini, message, image):
    with pytest.raises(ValidationError):
        await relay.chat(message, image)
    assert relay.history() == ()
    assert gemini.requests == []


@pytest.mark.asyncio
async def test_chat_without_candidates_is_still_a_reply(relay, gemini):
    gemini.body = {"candidates": []}

    reply = await relay.chat("hi")

    assert reply == NO_REPLY_PLACEHOLDER
    assert [t.role for t in relay.history()] == ["user", "assistant"]


@pytest.mark.asyncio
async def test_chat_upstream_error_skips_assistant_turn(relay, gemini):
    gemini.body = error_body("quota exceeded")

    with pytest.raises(UpstreamAPIError):
        await relay.chat("hello")
    assert [t.role for t in relay.history()] == ["user"]


@pytest.mark.asyncio
async def test_upload_summarizes_and_cleans_up(relay, gemini):
    result = await relay.upload(
        UploadedFile(filename="sheet.xlsx", content_type=SPREADSHEET_MIME, data=make_xlsx([["a", "b"], ["c", "d"]]))
    )

    assert result.success is True
    assert result.message == 'File "sheet.xlsx" analyzed successfully!'
    assert result.reply == "Hello from the model"
    assert gemini.last_prompt_text().endswith("\n\na | b\nc | d")
    assert [(t.role, t.message) for t in relay.history()] == [
        ("user", "📎 File uploaded: sheet.xlsx"),
        ("assistant", "Hello from the model"),
    ]
    assert stored_files(relay) == []


@pytest.mark.asyncio
async def test_upload_without_file(relay):
    with pytest.raises(ValidationError):
        await relay.upload(None)


@pytest.mark.asyncio
async def test_unsupported_upload_never_calls_model(relay, gemini):
    with pytest.raises(UnsupportedMediaTypeError):
        await relay.upload(UploadedFile(filename="a.zip", content_type="application/zip", data=b"PK"))
    assert gemini.requests == []
    assert relay.history() == ()
    assert stored_files(relay) == []


@pytest.mark.asyncio
async def test_parser_failure_becomes_processing_error(relay, gemini):
    with pytest.raises(ProcessingError):
        await relay.upload(UploadedFile(filename="bad.docx", content_type=WORD_MIME, data=b"nope"))
    assert gemini.requests == []
    assert stored_files(relay) == []


@pytest.mark.asyncio
async def test_upload_upstream_error_leaves_transcript(relay, gemini):
    gemini.body = error_body("model overloaded", code=503)

    with pytest.raises(UpstreamAPIError) as excinfo:
        await relay.upload(UploadedFile(filename="a.txt", content_type="text/plain", data=b"hi"))
    assert excinfo.value.message == "model overloaded"
    assert relay.history() == ()


@pytest.mark.asyncio
async def test_upload_transport_failure_is_processing_error(relay, gemini):
    gemini.raw = b"not json"

    with pytest.raises(ProcessingError):
        await relay.upload(UploadedFile(filename="a.txt", content_type="text/plain", data=b"hi"))


@pytest.mark.asyncio
async def test_chat_transport_failure(relay, gemini):
    gemini.raw = b"not json"

    with pytest.raises(TransportError):
        await relay.chat("hello")


@pytest.mark.asyncio
async def test_failed_cleanup_is_logged_not_raised(relay, gemini, monkeypatch, caplog):
    monkeypatch.setattr("relay.service.remove_upload", lambda path: OSError("device busy"))

    with caplog.at_level(logging.WARNING, logger="relay.service"):
        result = await relay.upload(UploadedFile(filename="a.txt", content_type="text/plain", data=b"hi"))

    assert result.success is True
    assert "Failed to delete uploaded file" in caplog.text


@pytest.mark.asyncio
async def test_pdf_warning_is_logged(relay, gemini, caplog):
    with caplog.at_level(logging.WARNING, logger="relay.service"):
        result = await relay.upload(
            UploadedFile(filename="broken.pdf", content_type="application/pdf", data=b"%PDF-1.4 junk")
        )

    assert result.success is True
    assert "PDF parsing failed" in caplog.text
    assert stored_files(relay) == []


def test_clear(relay, store):
    store.append(Turn(role="user", message="hi"))
    relay.clear()
    assert relay.history() == ()

from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from config.settings import Settings, get_settings
from relay.clients.gemini import (
    DEFAULT_IMAGE_MIME_TYPE,
    GeminiClient,
    InlineImagePart,
    PromptPart,
    TextPart,
)
from relay.core.prompt import build_summary_prompt
from relay.core.transcript import TranscriptStore, Turn
from relay.errors import ProcessingError, RelayError, TransportError, ValidationError
from relay.extraction import Extraction, extract


logger = logging.getLogger(__name__)


class UploadedFile(BaseModel):
    filename: str
    content_type: Optional[str] = None
    data: bytes


class UploadResult(BaseModel):
    success: bool = True
    message: str
    reply: str


def stored_name(original_name: str) -> str:
    safe = Path(original_name).name or "upload"
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}-{safe}"


def save_upload(upload_dir: Path, file: UploadedFile) -> Path:
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / stored_name(file.filename)
    path.write_bytes(file.data)
    return path


def remove_upload(path: Path) -> Optional[OSError]:
    """Delete a stored upload, handing back the error instead of raising it."""
    try:
        path.unlink()
    except OSError as exc:
        return exc
    return None


def extract_stored(path: Path, content_type: Optional[str]) -> Extraction:
    return extract(content_type, path.read_bytes())


class ChatRelay:
    """Chat and upload operations on top of one transcript and one model client."""

    def __init__(
        self,
        store: TranscriptStore,
        client: GeminiClient,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings if settings is not None else get_settings()
        self.store = store
        self.client = client
        self.upload_dir = Path(settings.upload_dir)

    async def chat(
        self,
        message: Optional[str] = None,
        image: Optional[str] = None,
        image_mime_type: Optional[str] = None,
    ) -> str:
        if not message and not image:
            raise ValidationError("A message or an image is required.")

        logger.info(
            "Incoming chat: message_len=%s image=%s",
            len(message or ""),
            bool(image),
        )
        self.store.append(Turn(role="user", message=message or None, image=image or None))

        parts: List[PromptPart] = []
        if message:
            parts.append(TextPart(text=message))
        if image:
            parts.append(
                InlineImagePart(data=image, mime_type=image_mime_type or DEFAULT_IMAGE_MIME_TYPE)
            )

        try:
            reply = await self.client.complete(parts)
        except RelayError:
            raise
        except Exception as exc:
            logger.exception("Chat processing failed: %s", exc)
            raise TransportError() from exc

        self.store.append(Turn(role="assistant", message=reply))
        return reply

    async def upload(self, file: Optional[UploadedFile]) -> UploadResult:
        if file is None:
            raise ValidationError("No file was uploaded.")

        logger.info(
            "Incoming upload: name=%s content_type=%s size=%s",
            file.filename,
            file.content_type,
            len(file.data),
        )
        try:
            extraction = await self._extract(file)
            reply = await self.client.complete([TextPart(text=build_summary_prompt(extraction.text))])
        except TransportError as exc:
            raise ProcessingError() from exc
        except RelayError:
            raise
        except Exception as exc:
            logger.exception("Upload processing failed: %s", exc)
            raise ProcessingError() from exc

        self.store.append(Turn(role="user", message=f"📎 File uploaded: {file.filename}"))
        self.store.append(Turn(role="assistant", message=reply))
        return UploadResult(
            message=f'File "{file.filename}" analyzed successfully!',
            reply=reply,
        )

    async def _extract(self, file: UploadedFile) -> Extraction:
        path = await run_in_threadpool(save_upload, self.upload_dir, file)
        try:
            extraction = await run_in_threadpool(extract_stored, path, file.content_type)
        finally:
            error = remove_upload(path)
            if error is not None:
                logger.warning("Failed to delete uploaded file %s: %s", path, error)

        if extraction.warning:
            logger.warning("%s (file=%s)", extraction.warning, file.filename)
        logger.info(
            "Extracted %s chars from %s using %s",
            len(extraction.text),
            file.filename,
            extraction.strategy.value,
        )
        return extraction

    def history(self) -> Tuple[Turn, ...]:
        return self.store.snapshot()

    def clear(self) -> None:
        self.store.clear()
        logger.info("Transcript cleared")

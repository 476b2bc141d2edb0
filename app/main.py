from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import logging
from pydantic import BaseModel, ConfigDict, Field

from config.settings import Settings, get_settings
from relay.clients import GeminiClient
from relay.core import TranscriptStore
from relay.errors import RelayError, ValidationError
from relay.service import ChatRelay, UploadedFile


logging.basicConfig(
    level=get_settings().log_level,
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("gemini_relay")

TOO_LARGE_MESSAGE = "Request body too large."
INTERNAL_ERROR_MESSAGE = "Internal server error."


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = Field(None, description="User's message")
    image: Optional[str] = Field(None, description="Base64-encoded image")
    image_mime_type: Optional[str] = Field(
        None, alias="imageMimeType", description="Image mime type, image/jpeg if omitted"
    )


router = APIRouter()


def get_relay(request: Request) -> ChatRelay:
    return request.app.state.relay


@router.post("/api/chat")
async def chat(req: ChatRequest, relay: ChatRelay = Depends(get_relay)) -> Dict[str, Any]:
    reply = await relay.chat(req.message, req.image, req.image_mime_type)
    return {"reply": reply}


@router.post("/api/upload")
async def upload(
    file: Optional[UploadFile] = File(None),
    relay: ChatRelay = Depends(get_relay),
) -> Dict[str, Any]:
    uploaded = None
    if file is not None:
        uploaded = UploadedFile(
            filename=file.filename or "upload",
            content_type=file.content_type,
            data=await file.read(),
        )
    result = await relay.upload(uploaded)
    return result.model_dump()


@router.get("/api/history")
async def history(relay: ChatRelay = Depends(get_relay)) -> Dict[str, Any]:
    return {"history": [turn.model_dump(exclude_none=True) for turn in relay.history()]}


@router.delete("/api/clear")
async def clear(relay: ChatRelay = Depends(get_relay)) -> Dict[str, Any]:
    relay.clear()
    return {"success": True, "message": "Chat history cleared."}


@router.get("/health")
def health():
    return {"status": "ok"}


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RelayError)
    async def handle_relay_error(request: Request, exc: RelayError) -> JSONResponse:
        logger.warning(
            "%s %s failed (%s): %s",
            request.method,
            request.url.path,
            exc.__class__.__name__,
            exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Invalid request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": ValidationError.default_message})

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[GeminiClient] = None,
    store: Optional[TranscriptStore] = None,
) -> FastAPI:
    settings = settings if settings is not None else get_settings()
    client = client if client is not None else GeminiClient(settings)
    store = store if store is not None else TranscriptStore()
    relay = ChatRelay(store, client, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="Gemini Chat Relay", version="1.0.0", lifespan=lifespan)
    app.state.relay = relay

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        # Only the declared Content-Length is checked; chunked bodies pass through.
        length = request.headers.get("content-length")
        if length is not None and length.isdigit() and int(length) > settings.max_body_bytes:
            logger.warning("Rejected %s %s: body of %s bytes", request.method, request.url.path, length)
            return JSONResponse(status_code=413, content={"error": TOO_LARGE_MESSAGE})
        return await call_next(request)

    _register_error_handlers(app)
    app.include_router(router)

    upload_dir = Path(settings.upload_dir)
    public_dir = Path(settings.public_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    public_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")
    app.mount("/", StaticFiles(directory=str(public_dir), html=True), name="public")
    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; model calls will fail until it is configured")
    logger.info("Server listening on http://localhost:%s", settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()

"""
FastAPI application factory.

Builds every service once in the lifespan and hands them to the routes via
app.state; nothing below the API layer reads global configuration.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mortgage_chat.api import admin, chat, faqs, transcribe
from mortgage_chat.api.deps import Services
from mortgage_chat.config import Settings, get_settings
from mortgage_chat.errors import ChatServiceError
from mortgage_chat.faqs import FAQService
from mortgage_chat.llm import CompletionProvider, build_completion_provider
from mortgage_chat.orchestration.conversation_window import PersonaConfig
from mortgage_chat.orchestration.turn_orchestrator import TurnOrchestrator
from mortgage_chat.registry import UserRegistry
from mortgage_chat.storage.record_store import RecordStore
from mortgage_chat.stt.transcriber import Transcriber

logger = logging.getLogger(__name__)


def build_services(
    settings: Settings,
    provider: Optional[CompletionProvider] = None,
    transcriber: Optional[Transcriber] = None,
) -> Services:
    """Wire the service graph from settings; provider/transcriber may be injected."""
    store = RecordStore(settings.data_dir, serialize_writes=settings.serialize_writes)
    provider = provider or build_completion_provider(settings)
    persona = PersonaConfig(window_size=settings.window_size)
    transcriber = transcriber or Transcriber(
        api_key=settings.transcription_api_key,
        base_url=settings.transcription_base_url,
        poll_interval=settings.transcription_poll_interval_s,
        max_attempts=settings.transcription_max_attempts,
    )
    return Services(
        settings=settings,
        store=store,
        provider=provider,
        orchestrator=TurnOrchestrator(
            store,
            provider,
            persona,
            serialize_writes=settings.serialize_writes,
        ),
        registry=UserRegistry(store),
        faqs=FAQService(store),
        transcriber=transcriber,
    )


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[CompletionProvider] = None,
    transcriber: Optional[Transcriber] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = build_services(settings, provider=provider, transcriber=transcriber)
        app.state.services = services
        logger.info(
            f"Chat service started: provider={services.provider.name}, "
            f"model={services.provider.model}, data_dir={settings.data_dir}, "
            f"api_key_set={bool(services.provider.api_key)}"
        )
        try:
            yield
        finally:
            await services.provider.close()
            await services.transcriber.close()
            logger.info("Chat service stopped")

    app = FastAPI(title="Secure Mortgage Chat", version="1.0.0", lifespan=lifespan)

    if settings.is_development:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.frontend_url],
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["*"],
        )

    @app.exception_handler(ChatServiceError)
    async def handle_service_error(request: Request, exc: ChatServiceError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc!r}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in errors
        )
        logger.warning(f"{request.method} {request.url.path} invalid request: {message}")
        return JSONResponse(status_code=422, content={"error": message or "Invalid request"})

    app.include_router(chat.router)
    app.include_router(faqs.router)
    app.include_router(transcribe.router)
    app.include_router(admin.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def run() -> None:
    """Console entry point: serve with uvicorn using the configured host/port."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()

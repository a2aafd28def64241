from contextlib import asynccontextmanager
import os
import sys
import time
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

# Load .env before settings are read
load_dotenv()

from app.chat.api.route import chat_router
from app.chat.repository.chat_repository import ChatRepository
from app.chat.repository.memory_repository import InMemoryChatRepository
from app.chat.service.chat_service import ChatService
from app.chat.service.context_service import ContextAssembler
from app.chat.service.service import IChatRepository
from app.core.config import ConfigurationError, Settings, settings as default_settings
from app.core.logger import get_logger
from app.file.api.route import file_router
from app.file.repository.file_repository import FileRepository
from app.file.repository.memory_repository import InMemoryFileRepository
from app.file.service.file_service import FileService
from app.file.service.service import IFileRepository
from app.llm.api.route import system_router
from app.llm.service.dispatcher import ProviderDispatcher
from app.llm.service.registry import ProviderRegistry
from app.llm.service.usage_tracker import UsageTracker
from pkg.db_util.db_conn import DatabaseConnection
from pkg.db_util.types import DatabaseConfig

logger = get_logger("polyglot-chat")

MEMORY_URL = "memory://"


async def open_repositories(app_settings: Settings):
    """Resolve the conversation store from DATABASE_URL. Returns (chat_repo, file_repo, db_conn)."""
    url = (app_settings.DATABASE_URL or "").strip()
    if not url:
        raise ConfigurationError("DATABASE_URL is not set. Add it to your .env file.")

    if url == MEMORY_URL:
        logger.warning("DATABASE_URL=memory:// - chat history and files are kept in process memory only")
        return InMemoryChatRepository(), InMemoryFileRepository(), None

    db_conn = DatabaseConnection(DatabaseConfig(url=url, connect_retries=app_settings.DB_CONNECT_RETRIES), logger)
    # Register table models on Base before create_all
    from app.chat.repository.sql_schema.conversation import ChatTurnModel  # noqa: F401
    from app.file.repository.sql_schema.file import UploadedFileModel  # noqa: F401

    await db_conn.get_engine()
    await db_conn.create_tables()
    logger.info(f"✓ Connected to database at {db_conn.db_config.masked_url}")
    return ChatRepository(db_conn), FileRepository(db_conn), db_conn


def log_provider_status(registry: ProviderRegistry) -> None:
    logger.info("=== AI Provider Status ===")
    for name, status in registry.status_map().items():
        logger.info(f"{name}: {status}")
    logger.info("==========================")


def create_app(
    app_settings: Optional[Settings] = None,
    chat_repository: Optional[IChatRepository] = None,
    file_repository: Optional[IFileRepository] = None,
    dispatcher: Optional[ProviderDispatcher] = None,
) -> FastAPI:
    """Build the application. Repositories and dispatcher may be injected; otherwise they come from settings."""
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{app_settings.APP_NAME} starting up...")
        logger.info(f"Python: {sys.version.split()[0]} | env={app_settings.ENV} | cwd={os.getcwd()}")

        db_conn = None
        if chat_repository is not None and file_repository is not None:
            chat_repo, file_repo = chat_repository, file_repository
        else:
            try:
                chat_repo, file_repo, db_conn = await open_repositories(app_settings)
            except Exception as e:
                # uvicorn exits non-zero when startup fails
                logger.error(f"✗ Startup failed: {e}")
                raise

        registry = ProviderRegistry(app_settings)
        if dispatcher is not None:
            provider_dispatcher = dispatcher
        else:
            provider_dispatcher = ProviderDispatcher(registry, UsageTracker(), app_settings)
        log_provider_status(registry)

        assembler = ContextAssembler(chat_repo, file_repo)
        chat_service = ChatService(chat_repo, assembler, provider_dispatcher)
        file_service = FileService(
            file_repo,
            chat_service,
            assembler,
            provider_dispatcher,
            upload_dir=app_settings.UPLOAD_DIR,
            max_bytes=app_settings.MAX_UPLOAD_BYTES,
        )

        # Expose on app.state for dependencies
        app.state.settings = app_settings
        app.state.registry = registry
        app.state.usage = provider_dispatcher.usage
        app.state.dispatcher = provider_dispatcher
        app.state.chat_repository = chat_repo
        app.state.file_repository = file_repo
        app.state.chat_service = chat_service
        app.state.file_service = file_service
        app.state.started_at = time.monotonic()

        logger.info("✓ Startup complete - application is ready!")
        try:
            yield
        finally:
            logger.info(f"{app_settings.APP_NAME} shutting down...")
            if db_conn is not None:
                await db_conn.close_engine()

    app = FastAPI(
        title=app_settings.APP_NAME,
        description="Multi-provider LLM chat with session memory and file analysis",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Convert HTTPException to the API's error format"""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation Error on {request.url.path}: {exc.errors()}")
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error", "message": str(exc)})

    # Routers
    app.include_router(chat_router)
    app.include_router(file_router)
    app.include_router(system_router)

    @app.get("/")
    async def root():
        """Root endpoint - simple check that app is running"""
        return {
            "service": app_settings.APP_NAME,
            "version": "1.0.0",
            "status": "running",
            "health_check": "/api/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        timeout_graceful_shutdown=default_settings.SHUTDOWN_GRACE_SECONDS,
    )

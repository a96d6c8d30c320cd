import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ragdesk.api.router import api_router
from ragdesk.core.config import settings
from ragdesk.core.exceptions import RagdeskError
from ragdesk.core.logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ragdesk API",
    description="Question answering over uploaded documents",
    version="0.1.0",
)

# Set up CORS
origins = (
    [origin.strip() for origin in settings.CORS_ORIGINS.split(",")]
    if "," in settings.CORS_ORIGINS
    else [settings.CORS_ORIGINS]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.exception_handler(RagdeskError)
async def ragdesk_error_handler(request: Request, exc: RagdeskError) -> JSONResponse:
    """Translate service errors into HTTP responses."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.on_event("startup")
async def log_startup():
    logger.info(
        f"{settings.PROJECT_NAME} started: chat={settings.CHAT_MODEL}, "
        f"embeddings={settings.EMBEDDING_MODEL} ({settings.EMBEDDING_DIMENSIONS} dims)"
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ragdesk.main:app", host="0.0.0.0", port=8000, reload=True)

import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from yumrepo import __version__
from yumrepo.api.packages import router as packages_router
from yumrepo.core.dependencies import get_repository, get_repository_config
from yumrepo.exceptions import YumError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="yumrepo",
    version=__version__,
    description="Keeps a YUM repository's metadata current and answers package queries.",
)


@app.exception_handler(YumError)
async def yum_error_handler(request: Request, exc: YumError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": type(exc).__name__, "detail": exc.message},
    )


def _initial_setup() -> None:
    config = get_repository_config()
    if not config.setup_backend:
        logger.info("Backend setup disabled; waiting for POST /repository/sync")
        return
    repo = get_repository()
    try:
        repo.setup_backend(check_for_updates=config.check_for_updates)
    except YumError as e:
        # The API stays up; queries answer 503 until a later sync succeeds.
        logger.error(f"Initial backend setup for [{repo.name}] failed: {e}")


@app.on_event("startup")
async def startup_event() -> None:
    """
    Load the repository configuration and select the repository backend.
    """
    await asyncio.to_thread(_initial_setup)


@app.get("/health")
async def health() -> dict:
    """
    Lightweight health check endpoint.
    """
    return {"status": "ok"}


app.include_router(packages_router, tags=["packages"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "yumrepo.main:app",
        host="0.0.0.0",
        port=8000,
    )

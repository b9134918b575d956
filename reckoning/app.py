import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reckoning.routes import router
from reckoning.routes.deps import build_services
from reckoning.storage import InvalidGameIdError

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def create_app(data_dir: Path | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    resolved.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    app = FastAPI(title="Reckoning Events")
    app.state.services = build_services(resolved)
    app.include_router(router, prefix="/api")

    # Every game-scoped route resolves its game id through storage.
    @app.exception_handler(InvalidGameIdError)
    async def invalid_game_id(_request: Request, exc: InvalidGameIdError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    return app

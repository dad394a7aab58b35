import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, load_settings
from llm_utils import build_client
from connectMessage.routes import router as connect_router
from profileScraper.browser import PersistentProfileLauncher
from profileScraper.verification import VerificationRegistry


def default_launcher(settings: Settings) -> PersistentProfileLauncher:
    return PersistentProfileLauncher(
        data_root=settings.browser_data_root,
        navigation_timeout_ms=settings.navigation_timeout_ms,
    )


def create_app(settings: Settings | None = None, llm_client=None, launcher_factory=None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(title="LinkedIn Connect Message API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Origin", "Accept", "Authorization"],
    )

    app.state.settings = settings
    app.state.llm_client = llm_client or build_client(settings.openai_api_key)
    app.state.launcher_factory = launcher_factory or default_launcher
    app.state.verifications = VerificationRegistry()
    app.state.session_slots = asyncio.Semaphore(settings.max_concurrent_sessions)

    app.include_router(connect_router)

    @app.get("/")
    async def welcome():
        return {"message": "Welcome to the LinkedIn Connect Message API!"}

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = load_settings()
    logging.getLogger(__name__).info("Initialising service")
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)

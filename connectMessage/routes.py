import logging
import re
from typing import List

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from pydantic import BaseModel, ValidationError

from profileScraper import (
    AuthenticationError,
    Credentials,
    ProfileOrchestrator,
    SynthesisError,
    TargetReference,
)
from profileScraper.verification import ConsoleSignal
from .helper import encode_posts, generate_connect_message, used_parameters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Connect Message"])

GENERIC_ERROR = "server encountered an error, please try again later"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ──────────────────────────────────────────────
# Pydantic Models
# ──────────────────────────────────────────────

class HomeRequest(BaseModel):
    email: str
    password: str
    linkedinUrl: str


class HomeResponse(BaseModel):
    message: str
    parametersUsed: List[str]
    recentPosts: str


class VerifyRequest(BaseModel):
    email: str


# ──────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────

@router.post("/home", response_model=HomeResponse)
async def home(req: HomeRequest, request: Request, background_tasks: BackgroundTasks):
    """Log in, scrape the target profile and return a connect message."""
    state = request.app.state
    settings = state.settings

    if not _EMAIL_RE.match(req.email.strip()):
        raise HTTPException(status_code=400, detail="invalid email")
    try:
        target = TargetReference(address=req.linkedinUrl)
    except ValidationError:
        raise HTTPException(status_code=400, detail="invalid profile url")
    credentials = Credentials(identifier=req.email.strip(), secret=req.password)

    async with state.session_slots:
        if settings.verification_mode == "console":
            signal, pending = ConsoleSignal(), None
        else:
            signal = pending = state.verifications.register(credentials.identifier)

        try:
            orchestrator = await ProfileOrchestrator.open(
                credentials,
                target,
                state.launcher_factory(settings),
                signal,
                session_timeout=settings.session_timeout,
                verification_timeout=settings.verification_timeout,
                settle_delay=settings.settle_delay,
                revert_to_headless=settings.revert_to_headless,
            )
        except AuthenticationError as e:
            logger.error(f"error while logging in: {e}")
            raise HTTPException(status_code=500, detail=GENERIC_ERROR)
        finally:
            if pending is not None:
                state.verifications.release(credentials.identifier, pending)

        try:
            profile = await orchestrator.run()
        except AuthenticationError as e:
            logger.error(f"error while scraping profile: {e}")
            await orchestrator.close()
            raise HTTPException(status_code=500, detail=GENERIC_ERROR)
        except BaseException:
            await orchestrator.close()
            raise

    fatal = [e for e in orchestrator.errors if e.section.value in settings.fatal_sections]
    if fatal:
        logger.error(f"fatal extraction error: {fatal[0]}")
        await orchestrator.close()
        raise HTTPException(status_code=500, detail=GENERIC_ERROR)

    try:
        message = await generate_connect_message(profile, state.llm_client, model=settings.openai_model)
    except SynthesisError:
        await orchestrator.close()
        raise HTTPException(status_code=500, detail=GENERIC_ERROR)

    # Browser shutdown runs after the response has been sent.
    background_tasks.add_task(orchestrator.close)

    return HomeResponse(
        message=message,
        parametersUsed=used_parameters(profile),
        recentPosts=encode_posts(profile),
    )


@router.post("/verify")
async def verify(req: VerifyRequest, request: Request):
    """Tell a waiting login that the security challenge has been solved."""
    if not request.app.state.verifications.resolve(req.email.strip()):
        raise HTTPException(status_code=404, detail="No verification pending for this account")
    return {"success": True, "message": "Verification acknowledged"}

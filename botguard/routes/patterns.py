"""
Bot pattern routes.
Classification is public; pattern management is protected by a bearer token.
"""

import os
import secrets
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from botguard.security import corpus
from botguard.security.detector import get_bot_detector
from botguard.security.patterns import PatternCompileError

router = APIRouter(prefix="/patterns", tags=["patterns"])


class PatternUpdate(BaseModel):
    fragments: list[str]


def get_admin_token() -> str:
    """Get admin token from environment."""
    return os.getenv("BOTGUARD_ADMIN_TOKEN", "")


def require_admin(request: Request):
    """Check the request carries the admin bearer token."""
    token = get_admin_token()
    if not token:
        raise HTTPException(status_code=503, detail="Pattern management is disabled")

    scheme, _, supplied = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(supplied, token):
        raise HTTPException(
            status_code=401,
            detail="Invalid admin token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def compile_error_detail(error: PatternCompileError) -> dict:
    return {
        "error": "Invalid pattern",
        "patterns": [
            {"pattern": fragment, "message": message}
            for fragment, message in error.errors
        ],
    }


@router.get("/check")
async def check_user_agent(request: Request, user_agent: Optional[str] = None):
    """Classify a user agent (defaults to the caller's own)."""
    if user_agent is None:
        user_agent = request.headers.get("user-agent", "")
    # One snapshot for both answers, even if patterns change meanwhile
    snapshot = get_bot_detector().snapshot
    return {
        "user_agent": user_agent,
        "is_bot": snapshot.is_bot(user_agent),
        "matched": snapshot.matching_patterns(user_agent),
    }


@router.get("")
async def list_patterns(request: Request):
    """List all active patterns."""
    require_admin(request)
    patterns = sorted(get_bot_detector().patterns)
    return {"count": len(patterns), "patterns": patterns}


@router.post("/append")
async def append_patterns(request: Request, update: PatternUpdate):
    """Add patterns to the live detector."""
    require_admin(request)
    detector = get_bot_detector()
    try:
        detector.append(update.fragments)
    except PatternCompileError as e:
        raise HTTPException(status_code=400, detail=compile_error_detail(e))
    return {"count": len(detector.patterns)}


@router.post("/remove")
async def remove_patterns(request: Request, update: PatternUpdate):
    """Remove patterns from the live detector."""
    require_admin(request)
    detector = get_bot_detector()
    detector.remove(update.fragments)
    return {"count": len(detector.patterns)}


@router.post("/reload")
async def reload_patterns(request: Request):
    """Replace all patterns with the remote corpus, or the local default."""
    require_admin(request)
    if corpus.PATTERNS_URL:
        text = await corpus.fetch_corpus(corpus.PATTERNS_URL)
        if text is None:
            raise HTTPException(status_code=502, detail="Pattern source unavailable")
        source = corpus.PATTERNS_URL
    else:
        text = corpus.load_default_corpus()
        source = "default"

    detector = get_bot_detector()
    try:
        detector.reload(text)
    except PatternCompileError as e:
        raise HTTPException(status_code=400, detail=compile_error_detail(e))
    return {"count": len(detector.patterns), "source": source}

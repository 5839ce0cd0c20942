from fastapi import APIRouter

from botguard.security.detector import get_bot_detector

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "patterns": len(get_bot_detector().patterns)}

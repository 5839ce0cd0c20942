"""Bot Detection Middleware"""

import logging
import os
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from botguard.security.detector import BotDetector, get_bot_detector

logger = logging.getLogger(__name__)

BLOCK_BOTS = os.getenv("BOTGUARD_BLOCK_BOTS", "false").lower() in ("1", "true", "yes")
SKIP_PATHS = ("/health",)


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class BotDetectionMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        detector: Optional[BotDetector] = None,
        block_bots: bool = BLOCK_BOTS,
        skip_paths: tuple[str, ...] = SKIP_PATHS,
    ):
        super().__init__(app)
        self._detector = detector
        self.block_bots = block_bots
        self.skip_paths = skip_paths

    @property
    def detector(self) -> BotDetector:
        # Resolved per request so a replaced global detector takes effect
        return self._detector or get_bot_detector()

    def is_skipped(self, path: str) -> bool:
        return any(
            path == skip or path.startswith(skip + "/") for skip in self.skip_paths
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if self.is_skipped(path):
            return await call_next(request)

        user_agent = request.headers.get("user-agent", "")
        detected = self.detector.is_bot(user_agent)
        request.state.is_bot = detected

        if detected:
            logger.debug(
                f"Bot detected: ip={get_client_ip(request)} path={path} "
                f"user_agent={user_agent[:100]}"
            )
            if self.block_bots:
                logger.warning(
                    f"Blocked bot: ip={get_client_ip(request)} path={path} "
                    f"user_agent={user_agent[:100]}"
                )
                return JSONResponse(
                    status_code=403,
                    content={"error": "Forbidden"},
                    headers={"X-Bot-Detected": "true"},
                )

        response = await call_next(request)
        response.headers["X-Bot-Detected"] = "true" if detected else "false"
        return response

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from botguard.routes import health, patterns
from botguard.security import corpus
from botguard.security.detector import get_bot_detector
from botguard.security.middleware import BotDetectionMiddleware
from botguard.security.patterns import PatternCompileError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    detector = get_bot_detector()
    # Remote list replaces the local corpus only if it fetches and compiles
    if corpus.PATTERNS_URL:
        text = await corpus.fetch_corpus(corpus.PATTERNS_URL)
        if text is not None:
            try:
                detector.reload(text)
            except PatternCompileError:
                logger.warning("Keeping local bot patterns after invalid remote corpus")
    logger.info(f"Bot detector ready: {detector.stats()}")
    yield


app = FastAPI(
    title="botguard",
    description="User-agent based bot detection",
    lifespan=lifespan,
)

app.add_middleware(BotDetectionMiddleware)

# Include routes
app.include_router(health.router)
app.include_router(patterns.router)

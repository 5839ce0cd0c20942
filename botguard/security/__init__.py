"""Bot detection modules for botguard."""

from botguard.security.patterns import PatternSet, PatternCompileError
from botguard.security.detector import (
    BotDetector,
    get_bot_detector,
    set_bot_detector,
    is_bot,
)
from botguard.security.middleware import BotDetectionMiddleware

__all__ = [
    "PatternSet",
    "PatternCompileError",
    "BotDetector",
    "get_bot_detector",
    "set_bot_detector",
    "is_bot",
    "BotDetectionMiddleware",
]

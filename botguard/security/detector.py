"""
Bot Detector Module

Process-wide holder for the live PatternSet. Readers query whatever
snapshot is currently published; writers build a new PatternSet off to
the side and publish it with a single reference swap.

Sharing Rules:
- Queries never take a lock and never see a half-rebuilt matcher
- Mutations are serialized by a lock
- A rejected append leaves the published snapshot untouched

Usage:
    from botguard.security.detector import get_bot_detector

    detector = get_bot_detector()
    if detector.is_bot(user_agent):
        # Automated client
        pass
"""

import logging
import threading
from typing import Iterable, Optional, Union

from .corpus import load_default_corpus
from .patterns import PatternCompileError, PatternSet

logger = logging.getLogger(__name__)


class BotDetector:
    """
    Thread-safe bot classifier backed by copy-on-write PatternSet snapshots.
    """

    def __init__(self, corpus: Optional[str] = None):
        self._snapshot = PatternSet.default(corpus)
        self._write_lock = threading.Lock()

    @property
    def snapshot(self) -> PatternSet:
        """The currently published PatternSet. Treat it as read-only."""
        return self._snapshot

    @property
    def patterns(self) -> frozenset[str]:
        return self._snapshot.patterns

    def is_bot(self, user_agent: str) -> bool:
        """Returns True if the user agent matches a known bot pattern."""
        return self._snapshot.is_bot(user_agent)

    def matching_patterns(self, user_agent: str) -> list[str]:
        """Returns the patterns that matched the user agent."""
        return self._snapshot.matching_patterns(user_agent)

    def append(self, fragments: Union[str, Iterable[str]]) -> None:
        """
        Add bot patterns and publish the rebuilt matcher.

        Raises:
            PatternCompileError: If any fragment is invalid (nothing changes)
        """
        fragments = _as_list(fragments)
        with self._write_lock:
            updated = self._snapshot.copy()
            try:
                updated.append(fragments)
            except PatternCompileError as e:
                logger.warning(f"Rejected bot pattern update: {e}")
                raise
            self._snapshot = updated
        logger.info(f"Appended {len(fragments)} bot pattern(s), total={len(updated)}")

    def remove(self, fragments: Union[str, Iterable[str]]) -> None:
        """Remove bot patterns and publish the rebuilt matcher."""
        fragments = _as_list(fragments)
        with self._write_lock:
            updated = self._snapshot.copy()
            updated.remove(fragments)
            self._snapshot = updated
        logger.info(f"Removed {len(fragments)} bot pattern(s), total={len(updated)}")

    def reload(self, corpus: str) -> None:
        """
        Replace every pattern with a new corpus.

        Raises:
            PatternCompileError: If the corpus is invalid (nothing changes)
        """
        try:
            replacement = PatternSet(corpus)
        except PatternCompileError as e:
            logger.warning(f"Rejected bot pattern reload: {e}")
            raise
        with self._write_lock:
            self._snapshot = replacement
        logger.info(f"Reloaded bot patterns, total={len(replacement)}")

    def stats(self) -> dict:
        """Get statistics about the loaded patterns."""
        snapshot = self._snapshot
        return {
            "total_patterns": len(snapshot),
            "anchored_patterns": sum(1 for p in snapshot.patterns if p.startswith("^")),
        }


def _as_list(fragments: Union[str, Iterable[str]]) -> list[str]:
    if isinstance(fragments, str):
        return [fragments]
    return list(fragments)


# Global instance
_bot_detector: Optional[BotDetector] = None


def get_bot_detector() -> BotDetector:
    """Get or create the global bot detector instance."""
    global _bot_detector
    if _bot_detector is None:
        _bot_detector = BotDetector(load_default_corpus())
    return _bot_detector


def set_bot_detector(detector: Optional[BotDetector]) -> None:
    """Replace the global bot detector (None resets to lazy creation)."""
    global _bot_detector
    _bot_detector = detector


def is_bot(user_agent: str) -> bool:
    """
    Convenience function for bot detection using the global instance.

    Args:
        user_agent: The User-Agent header

    Returns:
        True if the user agent matches a known bot pattern
    """
    return get_bot_detector().is_bot(user_agent)

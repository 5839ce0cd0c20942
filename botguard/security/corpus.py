"""
Default bot pattern corpus loading.

Sources (in order of precedence):
- BOTGUARD_PATTERNS_FILE: Operator-supplied newline-delimited pattern file
- Bundled list: botguard/data/bot_patterns.txt
- BOTGUARD_PATTERNS_URL: Remote list, fetched asynchronously by the app

Setting BOTGUARD_INCLUDE_DEFAULT_PATTERNS=false disables the local corpus
entirely (the detector then starts empty).

This module only returns raw text. Compiling it is the PatternSet's job.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

BUNDLED_CORPUS_PATH = Path(__file__).parent.parent / "data" / "bot_patterns.txt"

INCLUDE_DEFAULT_PATTERNS = os.getenv(
    "BOTGUARD_INCLUDE_DEFAULT_PATTERNS", "true"
).lower() in ("1", "true", "yes")
PATTERNS_FILE = os.getenv("BOTGUARD_PATTERNS_FILE")
PATTERNS_URL = os.getenv("BOTGUARD_PATTERNS_URL")
FETCH_TIMEOUT = float(os.getenv("BOTGUARD_FETCH_TIMEOUT", "5.0"))


def read_corpus_file(path: str | Path) -> str:
    """Read a newline-delimited pattern file."""
    text = Path(path).read_text(encoding="utf-8")
    logger.info(f"Loaded bot pattern corpus from {path} ({len(text.splitlines())} lines)")
    return text


def load_default_corpus(
    include_default: Optional[bool] = None,
    patterns_file: Optional[str] = None,
) -> str:
    """
    Load the default corpus text for a new detector.

    Args:
        include_default: Override for BOTGUARD_INCLUDE_DEFAULT_PATTERNS
        patterns_file: Override for BOTGUARD_PATTERNS_FILE

    Returns:
        Corpus text, or "" when default patterns are disabled
    """
    if include_default is None:
        include_default = INCLUDE_DEFAULT_PATTERNS
    if not include_default:
        logger.info("Default bot patterns disabled")
        return ""

    path = patterns_file or PATTERNS_FILE or BUNDLED_CORPUS_PATH
    return read_corpus_file(path)


async def fetch_corpus(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = FETCH_TIMEOUT,
) -> Optional[str]:
    """
    Fetch a pattern corpus from a remote URL.

    Args:
        url: Location of a newline-delimited pattern list
        client: Optional client to reuse (a temporary one is created otherwise)
        timeout: Request timeout in seconds

    Returns:
        Corpus text, or None if the fetch failed (current patterns stay in use)
    """
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as temp_client:
                response = await temp_client.get(url)
        else:
            response = await client.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        logger.warning(f"Bot pattern fetch failed: url={url} error={e!r}")
        return None

    if response.status_code != 200:
        logger.warning(
            f"Bot pattern fetch failed: url={url} status={response.status_code}"
        )
        return None

    logger.info(f"Fetched bot pattern corpus from {url} ({len(response.text)} bytes)")
    return response.text

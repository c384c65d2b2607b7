"""HTTP retrieval helpers shared by adapters."""
import logging
import time
from typing import Optional, Tuple

import requests

from processor.errors import AdapterTransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def fetch_text_with_url(
    url: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    retries: int = 2,
    base_delay: float = 1.0,
    params: Optional[dict] = None,
    session: Optional[requests.Session] = None
) -> Tuple[str, str]:
    """
    Fetch a page with retry logic and return its text and final URL.

    Args:
        url: Page URL
        timeout: Per-request timeout in seconds
        retries: Total number of attempts
        base_delay: Initial backoff delay in seconds, doubled per attempt
        params: Optional query parameters
        session: Optional requests session to reuse connections

    Returns:
        Tuple of (response text, URL after redirects)

    Raises:
        AdapterTransportError: If all attempts fail
    """
    http = session or requests
    attempts = max(1, retries)

    for attempt in range(attempts):
        try:
            response = http.get(
                url,
                params=params,
                timeout=timeout,
                headers={'User-Agent': USER_AGENT}
            )
            response.raise_for_status()
            return response.text, response.url or url

        except requests.RequestException as e:
            if attempt < attempts - 1:
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    f"Request to {url} failed (attempt {attempt + 1}/{attempts}): {e}. "
                    f"Retrying in {delay} seconds..."
                )
                time.sleep(delay)
            else:
                raise AdapterTransportError(f"GET {url} failed: {e}") from e


def fetch_text(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS, **kwargs) -> str:
    """Fetch a page and return its text. See fetch_text_with_url."""
    text, _ = fetch_text_with_url(url, timeout=timeout, **kwargs)
    return text

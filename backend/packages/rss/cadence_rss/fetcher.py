"""
Feed fetching.

Downloads feed documents over HTTP.
"""

import httpx

DEFAULT_USER_AGENT = "Cadence/1.0"


async def fetch_feed(
    url: str,
    timeout: float = 30,
    user_agent: str = DEFAULT_USER_AGENT,
    client: httpx.AsyncClient | None = None,
) -> str:
    """
    Fetch feed content.

    Args:
        url: Feed URL.
        timeout: Request timeout in seconds.
        user_agent: User-Agent header sent to the feed host.
        client: Optional shared client; a short-lived one is used otherwise.

    Returns:
        Feed document text.

    Raises:
        ValueError: If the request fails or the host returns an error status.
    """
    headers = {"User-Agent": user_agent}

    try:
        if client is not None:
            response = await client.get(url, headers=headers, timeout=timeout)
        else:
            async with httpx.AsyncClient(
                timeout=timeout, follow_redirects=True, headers=headers
            ) as own_client:
                response = await own_client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise ValueError(f"Failed to fetch feed: {e}") from e

    return response.text

"""Upstream document retrieval over httpx."""

import logging

import httpx

from vertretungsplan.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class DocumentFetcher:
    """Downloads plan documents from the school's web server.

    The upstream host uses a self-signed certificate, so TLS verification is
    off unless ``verify_tls`` is set.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        credentials: tuple[str, str] | None = None,
        verify_tls: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            timeout: Seconds allowed for connect, read and write.
            credentials: Basic auth ``(username, password)``, if required.
            verify_tls: Verify the server certificate chain.
            transport: Custom httpx transport (used by tests).
        """
        self._timeout = timeout
        self._auth = httpx.BasicAuth(*credentials) if credentials else None
        self._verify_tls = verify_tls
        self._transport = transport

    async def fetch(self, url: str) -> bytes:
        """Retrieve one document.

        Args:
            url: Document URL.

        Returns:
            Raw response body.

        Raises:
            FetchError: On non-2xx status, timeout, DNS, TLS or connection failure.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                auth=self._auth,
                verify=self._verify_tls,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise FetchError(
                f"Upstream returned HTTP {status_code} for {url}",
                url=url,
                status_code=status_code,
            ) from e
        except httpx.TimeoutException as e:
            raise FetchError(f"Timed out after {self._timeout}s fetching {url}", url=url) from e
        except httpx.RequestError as e:
            raise FetchError(f"Failed to fetch {url}: {e!r}", url=url) from e

        logger.info(f"Fetched {url}: HTTP {response.status_code}, {len(response.content)} bytes")
        return response.content

import logging
from typing import Optional

import httpx

from heimdall_ltf.application import current_context
from heimdall_ltf.domain import HttpRequest, HttpResponse, IHttpClient

logger = logging.getLogger(__name__)


class HttpxClient(IHttpClient):
    """Synchronous HTTP client port implemented with ``httpx``.

    Transport errors propagate as ``httpx`` exceptions. Non-2xx responses are
    returned, not raised, so callers decide how to treat them.

    Attributes:
        _client: Underlying ``httpx.Client``, created lazily.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Prefix for relative request URLs.
            timeout: Total timeout per request, in seconds.
            transport: Optional transport override, e.g. ``httpx.MockTransport``.
        """
        self._base_url = base_url or ""
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    def send(self, request: HttpRequest) -> HttpResponse:
        current_context().record_callout()
        client = self._get_client()

        response = client.request(
            request.method,
            request.url,
            headers=request.headers or None,
            params=request.params or None,
            json=request.body,
        )
        logger.debug("%s %s -> %d", request.method, request.url, response.status_code)
        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.text,
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

"""HTTP client wrapper with timing and response capture."""

import logging
import time
from dataclasses import dataclass, field

import httpx

from trest.services.api_testing.body import parse_media_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConcreteRequest:
    """Fully built request, ready to be dispatched."""
    method: str
    url: str  # includes the encoded query string
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass
class HTTPResponse:
    """Captured HTTP response with timing information."""
    status_code: int
    headers: httpx.Headers
    body_bytes: bytes
    elapsed_ms: int
    error: str | None = None

    @property
    def body(self) -> str:
        try:
            return self.body_bytes.decode("utf-8")
        except UnicodeDecodeError:
            return self.body_bytes.decode("latin-1")

    @property
    def content_type(self) -> str:
        """Media type of the response without parameters."""
        return parse_media_type(self.headers.get("content-type"))


class APIHttpClient:
    """Blocking HTTP client, one attempt per request."""

    def __init__(
        self,
        timeout: float = 30.0,
        follow_redirects: bool = False,
        verify_ssl: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.verify_ssl = verify_ssl
        self.transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=self.follow_redirects,
                verify=self.verify_ssl,
                transport=self.transport,
            )
        return self._client

    def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            self._client.close()
            self._client = None

    def send(self, request: ConcreteRequest) -> HTTPResponse:
        """
        Dispatch a built request and return the response with timing.

        Transport failures are not raised; they are reported through
        HTTPResponse.error with a zero status code.
        """
        client = self._get_client()
        start_time = time.perf_counter()

        try:
            response = client.request(
                request.method.upper(),
                request.url,
                headers=request.headers,
                content=request.body or None,
            )
            elapsed_ms = int((time.perf_counter() - start_time) * 1000)

            return HTTPResponse(
                status_code=response.status_code,
                headers=response.headers,
                body_bytes=response.content,
                elapsed_ms=elapsed_ms,
            )

        except httpx.TimeoutException as e:
            return self._failed(start_time, f"Timeout: {e}")
        except httpx.ConnectError as e:
            return self._failed(start_time, f"Connection error: {e}")
        except httpx.HTTPError as e:
            return self._failed(start_time, f"Request error: {e}")
        except httpx.InvalidURL as e:
            return self._failed(start_time, f"Invalid URL: {e}")
        except UnicodeEncodeError as e:
            # httpx only accepts ASCII header values
            return self._failed(start_time, f"Request error: {e}")

    def get(self, url: str, headers: dict[str, str] | None = None) -> HTTPResponse:
        """Convenience method for GET request."""
        return self.send(ConcreteRequest(method="GET", url=url, headers=headers or {}))

    @staticmethod
    def _failed(start_time: float, error: str) -> HTTPResponse:
        logger.debug("Error when sending request: %s", error)
        return HTTPResponse(
            status_code=0,
            headers=httpx.Headers(),
            body_bytes=b"",
            elapsed_ms=int((time.perf_counter() - start_time) * 1000),
            error=error,
        )

"""
Shared aiohttp session wrapper used for the fal.ai queue and the Lsky image host.
"""

import asyncio
import json
import ssl

import aiohttp
import certifi

TIMEOUT_MESSAGE = "Connection timed out, the server took too long to respond"


class NetworkError(Exception):
    """Network error with status code and details."""

    def __init__(
        self,
        message: str,
        url: str,
        status: int = 0,
        body: str = "",
    ):
        self.message = message
        self.url = url
        self.status = status
        self.body = body
        super().__init__(message)

    def __str__(self):
        return self.message


def _transport_error(e: Exception, url: str) -> NetworkError:
    if isinstance(e, asyncio.TimeoutError):
        return NetworkError(TIMEOUT_MESSAGE, url)
    return NetworkError(str(e), url)


class AiohttpRequestManager:
    """
    Lazily created aiohttp session with a default authorization header.

    ``auth_scheme`` is the word placed before the token, "Key" for fal.ai and
    "Bearer" for Lsky.
    """

    def __init__(self, auth_scheme: str = "Bearer", timeout: float | None = None):
        self._session: aiohttp.ClientSession | None = None
        self._token: str | None = None
        self._auth_scheme = auth_scheme
        self._timeout = timeout

    async def ensure_session(self) -> aiohttp.ClientSession:
        """Lazy session creation with proper SSL context."""
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            self._session = aiohttp.ClientSession(connector=connector)
        return self._session

    def set_auth(self, token: str | None):
        """Set default token for all requests."""
        self._token = token

    def _get_headers(self, token: str | None = None) -> dict:
        headers = {}
        token = token or self._token
        if token:
            headers["Authorization"] = f"{self._auth_scheme} {token}"
        return headers

    def _client_timeout(self, timeout: float | None = None) -> aiohttp.ClientTimeout | None:
        total = timeout or self._timeout
        return aiohttp.ClientTimeout(total=total) if total else None

    async def get_status(self, url: str, token: str | None = None) -> tuple[int, dict | None]:
        """
        GET a status document without raising on HTTP status.

        Returns:
            (status, parsed JSON object or None when the body is not one)
        """
        session = await self.ensure_session()
        try:
            async with session.get(
                url, headers=self._get_headers(token), timeout=self._client_timeout()
            ) as response:
                try:
                    data = await response.json(content_type=None)
                except (json.JSONDecodeError, aiohttp.ContentTypeError):
                    data = None
                return response.status, data if isinstance(data, dict) else None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise _transport_error(e, url) from e

    async def post(self, url: str, data: dict, token: str | None = None) -> dict:
        """
        POST a JSON body and return the parsed JSON object.

        Raises:
            NetworkError: on transport failure or a status >= 400, carrying
                the status and response body.
        """
        session = await self.ensure_session()
        headers = self._get_headers(token)
        headers["Content-Type"] = "application/json"
        try:
            async with session.post(
                url, json=data, headers=headers, timeout=self._client_timeout()
            ) as response:
                return await self._read_json(response, url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise _transport_error(e, url) from e

    async def post_form(self, url: str, form: aiohttp.FormData, token: str | None = None) -> dict:
        """POST multipart form data, returning the parsed JSON response."""
        session = await self.ensure_session()
        try:
            async with session.post(
                url, data=form, headers=self._get_headers(token), timeout=self._client_timeout()
            ) as response:
                return await self._read_json(response, url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise _transport_error(e, url) from e

    async def download(self, url: str, timeout: float | None = None) -> bytes:
        """
        Download a file without authentication.

        Args:
            url: Request URL
            timeout: Optional timeout in seconds, overriding the default

        Returns:
            Downloaded bytes
        """
        session = await self.ensure_session()
        try:
            async with session.get(url, timeout=self._client_timeout(timeout)) as response:
                if response.status >= 400:
                    text = await response.text()
                    raise NetworkError(
                        f"Download failed: {response.status} {text}",
                        url,
                        status=response.status,
                        body=text,
                    )
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise _transport_error(e, url) from e

    async def _read_json(self, response: aiohttp.ClientResponse, url: str) -> dict:
        """Raise NetworkError for error statuses, otherwise parse JSON."""
        text = await response.text()
        if response.status >= 400:
            raise NetworkError(
                f"{response.status} {text}",
                url,
                status=response.status,
                body=text,
            )
        try:
            data = json.loads(text) if text else {}
        except json.JSONDecodeError:
            raise NetworkError(
                f"Invalid JSON response ({response.status}): {text[:200]}",
                url,
                status=response.status,
                body=text,
            )
        return data if isinstance(data, dict) else {"data": data}

    async def close(self):
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

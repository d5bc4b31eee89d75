"""Asynchronous HTTP communication utilities for the synthesis channels.

This module provides an aiohttp based client used to talk to the remote speech providers.
It includes error handling for common issues such as timeouts, connection errors, and invalid content types.
Responses are decoded through a content type handler table and returned together with the response headers,
since providers report request identifiers in headers rather than in the body.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, Literal, Self

import aiohttp
from aiohttp.client import ClientSession
from aiohttp.web_exceptions import HTTPError

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from aiohttp.client import ClientResponse


__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
    "HttpResult",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

CONNECT_TIMEOUT: Final[float] = 1.0


@dataclass
class HttpResult:
    """Decoded response body and the response headers.

    Attributes:
        data (Any): The decoded body (str, JSON object or raw bytes depending on the content type).
        headers (dict[str, str]): Response headers with lower-cased names.
        content_type (str): The media type of the response without parameters.
    """

    data: Any
    headers: dict[str, str] = field(default_factory=dict)
    content_type: str = ""

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)


class AsyncHttp:
    """Asynchronous HTTP client for making requests and handling responses.

    This class provides methods for performing GET and POST requests, handling different content types,
    and managing an aiohttp session.
    The session is created on first use so that the client can be constructed outside a running event loop.
    """

    def __init__(self) -> None:
        """Initialize the AsyncHttp client.

        The default handlers include:
            - "text/plain": Decodes bytes to a UTF-8 string.
            - "text/html": Decodes bytes to a UTF-8 string.
            - "application/json": Parses bytes as JSON.
        """
        logger.info("%s initializing", self.__class__.__name__)
        self.__session: ClientSession | None = None
        self.content_handlers: dict[str, Callable[[bytes], Any]] = {}

        self.add_handler("text/plain", lambda x: x.decode("utf-8"))
        self.add_handler("text/html", lambda x: x.decode("utf-8"))
        self.add_handler("application/json", lambda x: json.loads(x.decode("utf-8")))
        self.list_handlers()

    async def __aenter__(self) -> Self:
        logger.debug("%s entering context", self.__class__.__name__)
        self.initialize_session(suppress_already_log=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        logger.debug("%s exiting context", self.__class__.__name__)
        await self.close()

    def initialize_session(self, *, suppress_already_log: bool = False) -> None:
        """Initialize the aiohttp session.

        Must be called from within a running event loop.

        Args:
            suppress_already_log (bool): If True, do not log when the session is already initialized.
        """
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession(raise_for_status=True)
            logger.debug("%s session initialized", self.__class__.__name__)
        elif not suppress_already_log:
            logger.debug("%s session already initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        """Get the current aiohttp session."""
        if self.__session is None or self.__session.closed:
            msg = "Session is not initialized or has been closed"
            raise RuntimeError(msg)
        return self.__session

    @property
    def is_open(self) -> bool:
        return self.__session is not None and not self.__session.closed

    async def close(self) -> None:
        """Close the aiohttp session if it is open."""
        if self.__session and not self.__session.closed:
            await self.__session.close()
        self.__session = None
        logger.info("%s session closed", self.__class__.__name__)

    async def get(
        self,
        *,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        total_timeout: float = 10.0,
    ) -> HttpResult:
        """Perform an asynchronous HTTP GET request.

        Args:
            url (str): The URL to send the GET request to.
            params (dict[str, str] | None): Optional query parameters for the request.
            headers (dict[str, str] | None): Optional request headers.
            total_timeout (float): Total timeout for the request in seconds.
        Returns:
            HttpResult: The decoded response and its headers.
        """
        logger.debug("'url': '%s', 'params': '%s', 'timeout': '%s'", url, params, total_timeout)
        return await self._request(
            "GET",
            url=url,
            params=params,
            headers=headers,
            total_timeout=total_timeout,
        )

    async def post(
        self,
        *,
        url: str,
        params: dict[str, str] | None = None,
        json_data: Any | None = None,
        body: str | bytes | None = None,
        headers: dict[str, str] | None = None,
        total_timeout: float = 10.0,
    ) -> HttpResult:
        """Perform an asynchronous HTTP POST request.

        Either ``json_data`` (sent as a JSON document) or ``body`` (sent as is) may be given.

        Args:
            url (str): The URL to send the POST request to.
            params (dict[str, str] | None): Optional query parameters for the request.
            json_data (Any | None): Data to serialize as the JSON request body.
            body (str | bytes | None): Raw request body, e.g. an SSML document.
            headers (dict[str, str] | None): Optional request headers.
            total_timeout (float): Total timeout for the request in seconds.
        Returns:
            HttpResult: The decoded response and its headers.
        Raises:
            ValueError: If both ``json_data`` and ``body`` are given.
        """
        if json_data is not None and body is not None:
            msg = "Only one of 'json_data' and 'body' can be specified"
            raise ValueError(msg)
        logger.debug("'url': '%s', 'params': '%s', 'timeout': '%s'", url, params, total_timeout)

        kwargs: dict[str, Any] = {}
        if json_data is not None:
            kwargs["json"] = json_data
        if body is not None:
            kwargs["data"] = body.encode("utf-8") if isinstance(body, str) else body

        return await self._request(
            "POST",
            url=url,
            params=params,
            headers=headers,
            total_timeout=total_timeout,
            **kwargs,
        )

    async def decode_response(self, resp: ClientResponse) -> HttpResult:
        """Parse the response from an HTTP request.

        This method checks the 'Content-Type' header of the response and uses the appropriate handler
        to parse the response data. If no handler is found for the content type, it raises an error.

        Args:
            resp (ClientResponse): The response object from the aiohttp request.
        Returns:
            HttpResult: The parsed response data together with the response headers.
        Raises:
            AsyncCommInvalidContentTypeError: If the content type of the response is not recognized
                or no handler is registered for it.
        """
        content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip().lower()
        logger.debug("'Content-Type': '%s'", content_type)
        headers: dict[str, str] = {key.lower(): value for key, value in resp.headers.items()}

        raw: bytes = await resp.read()
        if not raw:
            logger.debug("Received empty response")
            return HttpResult(data=None, headers=headers, content_type=content_type)

        handler: Callable[[bytes], Any] | None = self.content_handlers.get(content_type)
        if handler:
            return HttpResult(data=handler(raw), headers=headers, content_type=content_type)

        msg: str = f"Unknown Content-Type '{content_type}'"
        raise AsyncCommInvalidContentTypeError(msg)

    def add_handler(self, content_type: str, handler: Callable[[bytes], Any]) -> None:
        """Add a custom handler for a specific content type.

        Args:
            content_type (str): The content type to handle (e.g., "audio/mpeg", "application/json").
            handler (Callable[[bytes], Any]): A function that takes bytes and returns the parsed data.
        """
        content_type = content_type.lower()
        if self.content_handlers.get(content_type):
            logger.warning("Handler for content type '%s' already exists, replacing it", content_type)
        self.content_handlers[content_type] = handler
        logger.debug("Added handler for content type '%s'", content_type)

    def list_handlers(self) -> None:
        """Log all registered content type handlers."""
        if not self.content_handlers:
            logger.info("No content type handlers registered")
            return
        logger.info("Handlers registered for content types '%s'", list(self.content_handlers.keys()))

    async def _request(
        self,
        method: HTTPMethod,
        *,
        url: str,
        total_timeout: float,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> HttpResult:
        """Perform an asynchronous HTTP request.

        Args:
            method (HTTPMethod): The HTTP method to use (GET, POST, etc.).
            url (str): The URL to send the request to.
            total_timeout (float): Total timeout for the request in seconds.
            params (dict[str, str] | None): Optional query parameters.
            headers (dict[str, str] | None): Optional request headers.
            **kwargs: Additional keyword arguments to pass to the aiohttp request.
        Returns:
            HttpResult: The decoded response.
        Raises:
            AsyncCommTimeoutError: If the server does not answer within the timeout.
            AsyncCommError: For connection failures and error responses.
        """
        logger.debug("[%s] url=%s timeout=%s", method, url, total_timeout)
        self.initialize_session(suppress_already_log=True)

        # Set a timeout for the request
        if total_timeout <= 0:
            # If total_timeout is 0 or negative, set no timeout
            _timeout = aiohttp.ClientTimeout(total=None)
        elif total_timeout < CONNECT_TIMEOUT:
            # A connect timeout longer than the total would never apply
            _timeout = aiohttp.ClientTimeout(total=total_timeout)
        else:
            _timeout = aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total_timeout)

        try:
            async with self.session.request(
                method=method,
                url=url,
                params=params,
                headers=headers,
                timeout=_timeout,
                **kwargs,
            ) as resp:
                resp.raise_for_status()
                return await self.decode_response(resp)

        except TimeoutError as err:
            logger.debug(err)
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except ConnectionResetError as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientConnectorError as err:
            logger.debug(err)
            msg = "The server could not be reached."
            raise AsyncCommError(msg) from err
        except (HTTPError, aiohttp.ClientResponseError) as err:
            logger.debug(err)
            msg = "Error response from the server."
            raise AsyncCommError(msg, response=err) from err


class AsyncCommError(Exception):
    """Base class for asynchronous communication errors.

    This class is used to handle errors that occur during asynchronous communication,
    such as HTTP request failures, timeouts, or connection issues.
    When created from an error response, the HTTP status is kept in ``status``.
    """

    def __init__(self, msg: str | BaseException, **kwargs: Any) -> None:
        self.msg: str = str(msg)
        self.status: int | None = None

        rsp: HTTPError | aiohttp.ClientResponseError | None = kwargs.pop("response", None)
        if isinstance(rsp, (HTTPError, aiohttp.ClientResponseError)):
            self.status = rsp.status
            self.msg = f"{self.msg}: status='{rsp.status}'"

        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """Error raised when an asynchronous communication operation times out."""


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """Error raised when the content type of a response is not recognized or no handler is registered for it."""

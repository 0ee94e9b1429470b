"""Asynchronous client for the DeckTutor webservice.

Every public coroutine maps one call of the webservice (system, account and
search modules) onto an HTTP request, returns the decoded JSON answer and
hands it to an optional callback. A successful :meth:`DeckTutorClient.login`
switches the client to signed requests, see :mod:`decktutor.auth`.
"""

import inspect
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote, urlencode

import httpx
import orjson

from decktutor.auth import AuthSession
from decktutor.config import ClientConfig, Config
from decktutor.config.config import DEFAULT_ENDPOINT
from decktutor.schemas.types import Game, LoginRequest, RegisterRequest, SerpRequest
from decktutor.utils.errors import (
    ApiError,
    NotAuthenticatedError,
    ResponseDecodeError,
    TransportError,
)
from decktutor.utils.telemetry import get_logger, record_signed_request, request_timer

Callback = Callable[..., Any]

CAPTCHA_PATH = "/sys/createCaptha"
LOGIN_PATH = "/account/login"
CONFIG_PATH = "/account/config/"
REGISTER_PATH = "/account/register"
CARD_NAME_PATH = "/search/card/name"
CARD_VERSION_PATH = "/search/card/version"
SERP_PATH = "/search/serp"


async def _deliver(callback: Callback | None, *args: Any) -> None:
    """Invoke a plain or coroutine callback."""
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class DeckTutorClient:
    """Client bound to one webservice endpoint and one active game.

    The client owns its :class:`httpx.AsyncClient` unless one is passed in,
    and should be closed with :meth:`aclose` or used as an async context
    manager.

    Example:
        >>> async with DeckTutorClient() as client:
        ...     names = await client.find_card_names("Black Lot")
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        game: Game | str = Game.MTG,
        *,
        timeout: float = 10.0,
        user_agent: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: Base URL every request path is appended to
            game: Active game, as a Game member or its code
            timeout: Request timeout in seconds for the owned HTTP client
            user_agent: Optional User-Agent header for the owned HTTP client
            http_client: Externally managed HTTP client to use instead
        """
        self.endpoint = endpoint.rstrip("/")
        self.game = game
        self.logger = get_logger("decktutor.client")

        self._auth: AuthSession | None = None
        self._owns_http = http_client is None
        if http_client is None:
            headers = {"User-Agent": user_agent} if user_agent else None
            http_client = httpx.AsyncClient(timeout=timeout, headers=headers)
        self._http = http_client

    @classmethod
    def from_config(
        cls, config: Config | ClientConfig, **kwargs: Any
    ) -> "DeckTutorClient":
        """Create a client from loaded configuration."""
        client_config = config.client if isinstance(config, Config) else config
        return cls(
            endpoint=client_config.endpoint,
            game=client_config.game,
            timeout=client_config.timeout_seconds,
            user_agent=client_config.user_agent,
            **kwargs,
        )

    async def __aenter__(self) -> "DeckTutorClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this client created it."""
        if self._owns_http:
            await self._http.aclose()

    @property
    def game(self) -> str:
        """Code of the active game, sent with card searches."""
        return self._game.value

    @game.setter
    def game(self, value: Game | str) -> None:
        self._game = value if isinstance(value, Game) else Game(value)

    @property
    def is_authenticated(self) -> bool:
        return self._auth is not None

    @property
    def auth_sequence(self) -> int | None:
        """Sequence number the next signed request will carry."""
        return self._auth.sequence if self._auth else None

    @property
    def auth_expiration(self) -> Any:
        return self._auth.expiration if self._auth else None

    def _build_url(self, method: str, path: str, data: Any) -> str:
        url = self.endpoint + path
        if method == "GET" and data:
            params = {
                key: value
                for key, value in data.items()
                if value is not None and value != ""
            }
            if params:
                url = f"{url}?{urlencode(params, quote_via=quote)}"
        return url

    async def _request(
        self,
        method: str,
        path: str,
        data: Mapping[str, Any] | Any = None,
        operation: str | None = None,
    ) -> Any:
        """Perform a request on the webservice.

        GET data becomes the query string, any other method sends it as a
        JSON body. When logged in the request is signed and the sequence
        advances by one.

        Args:
            method: HTTP method
            path: Path relative to the endpoint
            data: Query parameters or JSON body
            operation: Operation name for logs and metrics

        Returns:
            Decoded JSON response, or None for an empty body

        Raises:
            TransportError: If the request could not be delivered
            ApiError: If the webservice answers with a non-2xx status
            ResponseDecodeError: If the body is not valid JSON
        """
        operation = operation or path
        url = self._build_url(method, path, data)

        headers: dict[str, str] = {}
        content: bytes | None = None
        if method != "GET" and data is not None:
            content = orjson.dumps(data)
            headers["Content-Type"] = "application/json"

        self.logger.debug("Sending request", method=method, url=url)

        if self._auth is not None:
            self.logger.debug("Adding auth headers", sequence=self._auth.sequence)
            headers.update(self._auth.next_headers())
            record_signed_request()
        else:
            self.logger.debug("Proceeding without authentication")

        async with request_timer(operation, method, logger=self.logger) as timer:
            try:
                response = await self._http.request(
                    method, url, content=content, headers=headers
                )
            except httpx.TransportError as e:
                raise TransportError(method, url, str(e) or type(e).__name__) from e

            timer.status_code = response.status_code
            if not response.is_success:
                raise ApiError(method, url, response.status_code, response.text)

            if not response.content.strip():
                return None

            try:
                return orjson.loads(response.content)
            except orjson.JSONDecodeError as e:
                self.logger.error(
                    "Failed to parse JSON response", url=url, error=str(e)
                )
                raise ResponseDecodeError(url, response.text, str(e)) from e

    # System module

    async def create_captcha(self, callback: Callback | None = None) -> Any:
        """Create a new captcha for human validation.

        Returns:
            The captcha as described by the webservice
        """
        response = await self._request("POST", CAPTCHA_PATH, operation="create_captcha")
        await _deliver(callback, response)
        return response

    # Account module

    async def login(
        self, login: str, password: str, callback: Callback | None = None
    ) -> Any:
        """Request an authorization token, logging this client in.

        Stores the token, its secret and expiration, and resets the request
        sequence to 1. Every later request is signed until :meth:`logout`.

        Args:
            login: Account nickname
            password: Account password
            callback: Invoked with the user record

        Returns:
            The ``user`` record of the login response

        Raises:
            ResponseFormatError: If the response carries no credentials
        """
        data: LoginRequest = {"login": login, "password": password}
        response = await self._request("POST", LOGIN_PATH, data, operation="login")

        self._auth = AuthSession.from_login_response(response)
        self.logger.info("Logged in", login=login, expiration=self._auth.expiration)

        user = response.get("user")
        await _deliver(callback, user)
        return user

    async def logout(self, callback: Callback | None = None) -> None:
        """Invalidate the current login and drop the local credentials.

        Raises:
            NotAuthenticatedError: If the client is not logged in
        """
        if self._auth is None:
            raise NotAuthenticatedError("logout")

        await self._request("DELETE", LOGIN_PATH, operation="logout")
        self._auth = None
        self.logger.info("Logged out")

        await _deliver(callback)

    async def get_login(self, callback: Callback | None = None) -> Any:
        """Retrieve the nickname of the currently logged in user.

        Returns:
            The login name, or None if not logged in
        """
        response = await self._request("GET", LOGIN_PATH, operation="get_login")
        await _deliver(callback, response)
        return response

    async def load_config(self, key: str, callback: Callback | None = None) -> Any:
        """Load a configuration entry stored for the account.

        Args:
            key: Configuration key name to retrieve
            callback: Invoked with the stored value
        """
        response = await self._request(
            "GET", CONFIG_PATH + quote(key, safe=""), operation="load_config"
        )
        await _deliver(callback, response)
        return response

    async def store_config(
        self, key: str, value: Any = None, callback: Callback | None = None
    ) -> Any:
        """Store a configuration entry remotely, or delete it.

        Args:
            key: Configuration key to store the value under
            value: Any JSON serializable value; None deletes the entry
            callback: Invoked with the webservice answer
        """
        path = CONFIG_PATH + quote(key, safe="")
        if value is not None:
            response = await self._request("PUT", path, value, operation="store_config")
        else:
            response = await self._request("DELETE", path, operation="delete_config")
        await _deliver(callback, response)
        return response

    async def register(
        self,
        privacy: Any,
        user: dict[str, Any],
        person: dict[str, Any],
        address: dict[str, Any],
        prefs: dict[str, Any],
        captcha: tuple[str, str] | None = None,
        callback: Callback | None = None,
    ) -> None:
        """Register a new account.

        Args:
            privacy: Privacy policy acceptance
            user: Account credentials section
            person: Personal details section
            address: Postal address section
            prefs: User preferences section
            captcha: ``(code, answer)`` of a solved captcha
            callback: Invoked without arguments on success
        """
        data: RegisterRequest = {
            "user": user,
            "person": person,
            "address": address,
            "prefs": prefs,
            "privacy": privacy,
        }
        if captcha:
            data["captcha_code"], data["captcha_answer"] = captcha

        await self._request("POST", REGISTER_PATH, data, operation="register")
        await _deliver(callback)

    # Search module

    async def find_card_names(
        self, query: str, callback: Callback | None = None
    ) -> Any:
        """Find card names matching a search string in the active game."""
        params = {"game": self.game, "query": query}
        response = await self._request(
            "GET", CARD_NAME_PATH, params, operation="find_card_names"
        )
        await _deliver(callback, response)
        return response

    async def find_card_versions(
        self,
        name: str,
        set: str | None = None,
        offset: int | None = 0,
        limit: int | None = None,
        order: str | None = None,
        callback: Callback | None = None,
    ) -> Any:
        """Find the printed versions of a card.

        Args:
            name: Exact official name of the card
            set: Set code to limit the search to, or browse the set
            offset: Offset from which to return the results
            limit: Number of results to return
            order: Results ordering in the format ``column,dir``
            callback: Invoked with the results
        """
        params = {
            "game": self.game,
            "name": name,
            "set": set,
            "offset": offset or 0,
            "limit": limit,
            "order": order,
        }
        response = await self._request(
            "GET", CARD_VERSION_PATH, params, operation="find_card_versions"
        )
        await _deliver(callback, response)
        return response

    async def serp(
        self,
        search: dict[str, Any],
        offset: int | None = 0,
        limit: int | None = None,
        order: str | None = None,
        callback: Callback | None = None,
    ) -> Any:
        """Run a search results page query.

        Unlike the card searches the criteria travel as a JSON body, so
        unset fields are sent as null.
        """
        data: SerpRequest = {
            "search": search,
            "offset": offset or 0,
            "limit": limit,
            "order": order,
        }
        response = await self._request("POST", SERP_PATH, data, operation="serp")
        await _deliver(callback, response)
        return response

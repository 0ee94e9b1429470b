"""Unit tests for DeckTutorClient request building and signing."""

import asyncio
import json
from collections.abc import Callable

import httpx
import pytest

from decktutor.auth import SEQUENCE_HEADER, SIGNATURE_HEADER, compute_signature
from decktutor.client import DeckTutorClient
from decktutor.config import ClientConfig, Config
from decktutor.schemas.types import Game
from decktutor.utils.errors import (
    ApiError,
    NotAuthenticatedError,
    RecoveryAction,
    ResponseDecodeError,
    ResponseFormatError,
    TransportError,
)

ENDPOINT = "http://ws.test/app/v1"

LOGIN_RESPONSE = {
    "auth_token": "tok",
    "auth_token_secret": "abc",
    "auth_token_expiration": "2026-10-20T00:00:00Z",
    "user": {"login": "bob", "id": 42},
}


class Recorder:
    """Mock transport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return httpx.Response(200, json={"ok": True})

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(
    handler: Callable[[httpx.Request], httpx.Response], **kwargs
) -> DeckTutorClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DeckTutorClient(endpoint=ENDPOINT, http_client=http_client, **kwargs)


def body(request: httpx.Request):
    return json.loads(request.content)


class TestClientState:
    """Test client construction and state."""

    def test_defaults(self) -> None:
        client = DeckTutorClient(http_client=httpx.AsyncClient())

        assert client.endpoint == "http://dev.decktutor.com/ws-1.2/app/v1"
        assert client.game == "mtg"
        assert client.is_authenticated is False
        assert client.auth_sequence is None
        assert client.auth_expiration is None

    def test_game_accepts_enum_and_code(self) -> None:
        client = make_client(Recorder())

        client.game = Game.YGO
        assert client.game == "ygo"

        client.game = "wow"
        assert client.game == "wow"

    def test_unknown_game_rejected(self) -> None:
        client = make_client(Recorder())

        with pytest.raises(ValueError):
            client.game = "chess"

    def test_trailing_slash_in_endpoint(self) -> None:
        client = DeckTutorClient(
            endpoint=ENDPOINT + "/", http_client=httpx.AsyncClient()
        )
        assert client.endpoint == ENDPOINT

    def test_from_config(self) -> None:
        config = Config(client=ClientConfig(endpoint=ENDPOINT, game="wow"))

        client = DeckTutorClient.from_config(config, http_client=httpx.AsyncClient())

        assert client.endpoint == ENDPOINT
        assert client.game == "wow"

    @pytest.mark.asyncio
    async def test_owned_http_client_closed(self) -> None:
        async with DeckTutorClient(endpoint=ENDPOINT) as client:
            http_client = client._http

        assert http_client.is_closed


class TestRequestBuilding:
    """Test URL, query string and body construction."""

    @pytest.mark.asyncio
    async def test_get_without_params_has_no_query(self) -> None:
        recorder = Recorder(httpx.Response(200, json="bob"))
        client = make_client(recorder)

        result = await client.get_login()

        assert result == "bob"
        assert recorder.last.method == "GET"
        assert recorder.last.url.path == "/app/v1/account/login"
        assert recorder.last.url.query == b""

    @pytest.mark.asyncio
    async def test_get_drops_none_and_empty_params(self) -> None:
        recorder = Recorder(httpx.Response(200, json=[]))
        client = make_client(recorder)

        await client.find_card_versions("Black Lotus", set="", limit=None)

        params = dict(recorder.last.url.params)
        assert params == {"game": "mtg", "name": "Black Lotus", "offset": "0"}

    @pytest.mark.asyncio
    async def test_get_encodes_params(self) -> None:
        recorder = Recorder(httpx.Response(200, json=[]))
        client = make_client(recorder)

        await client.find_card_names("Jace, the Mind & Sculptor")

        assert recorder.last.url.params["query"] == "Jace, the Mind & Sculptor"
        assert b"Mind%20%26%20Sculptor" in recorder.last.url.query

    @pytest.mark.asyncio
    async def test_non_get_sends_json_body(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)

        await client.store_config("deck_view", {"columns": 3})

        assert recorder.last.method == "PUT"
        assert recorder.last.url.path == "/app/v1/account/config/deck_view"
        assert recorder.last.headers["Content-Type"] == "application/json"
        assert body(recorder.last) == {"columns": 3}

    @pytest.mark.asyncio
    async def test_none_data_sends_no_body(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)

        await client.create_captcha()

        assert recorder.last.method == "POST"
        assert recorder.last.content == b""
        assert "Content-Type" not in recorder.last.headers

    @pytest.mark.asyncio
    async def test_empty_response_is_none(self) -> None:
        recorder = Recorder(httpx.Response(200, content=b""))
        client = make_client(recorder)

        assert await client.get_login() is None

    @pytest.mark.asyncio
    async def test_other_2xx_is_success(self) -> None:
        recorder = Recorder(httpx.Response(204))
        client = make_client(recorder)

        assert await client.store_config("deck_view") is None


class TestSystemAndSearch:
    """Test system and search module operations."""

    @pytest.mark.asyncio
    async def test_create_captcha(self) -> None:
        recorder = Recorder(httpx.Response(200, json=["c0de", "data:image/png"]))
        client = make_client(recorder)
        received = []

        result = await client.create_captcha(callback=received.append)

        assert result == ["c0de", "data:image/png"]
        assert received == [result]
        assert recorder.last.url.path == "/app/v1/sys/createCaptha"

    @pytest.mark.asyncio
    async def test_find_card_names_uses_active_game(self) -> None:
        recorder = Recorder(httpx.Response(200, json=["Dark Magician"]))
        client = make_client(recorder, game=Game.YGO)

        result = await client.find_card_names("Dark Mag")

        assert result == ["Dark Magician"]
        assert recorder.last.url.path == "/app/v1/search/card/name"
        assert dict(recorder.last.url.params) == {"game": "ygo", "query": "Dark Mag"}

    @pytest.mark.asyncio
    async def test_find_card_versions_full_params(self) -> None:
        recorder = Recorder(httpx.Response(200, json=[]))
        client = make_client(recorder)

        await client.find_card_versions(
            "Black Lotus", set="LEA", offset=20, limit=10, order="price,asc"
        )

        assert dict(recorder.last.url.params) == {
            "game": "mtg",
            "name": "Black Lotus",
            "set": "LEA",
            "offset": "20",
            "limit": "10",
            "order": "price,asc",
        }

    @pytest.mark.asyncio
    async def test_find_card_versions_offset_defaults_to_zero(self) -> None:
        recorder = Recorder(httpx.Response(200, json=[]))
        client = make_client(recorder)

        await client.find_card_versions("Black Lotus", offset=None)

        assert recorder.last.url.params["offset"] == "0"

    @pytest.mark.asyncio
    async def test_serp_keeps_nulls_in_body(self) -> None:
        recorder = Recorder(httpx.Response(200, json={"total": 0, "results": []}))
        client = make_client(recorder)

        result = await client.serp({"name": "Lotus"}, offset=None)

        assert result == {"total": 0, "results": []}
        assert recorder.last.method == "POST"
        assert recorder.last.url.path == "/app/v1/search/serp"
        assert body(recorder.last) == {
            "search": {"name": "Lotus"},
            "offset": 0,
            "limit": None,
            "order": None,
        }


class TestAccount:
    """Test account module operations and signing."""

    @pytest.mark.asyncio
    async def test_login_stores_session(self) -> None:
        recorder = Recorder(httpx.Response(200, json=LOGIN_RESPONSE))
        client = make_client(recorder)
        received = []

        user = await client.login("bob", "hunter2", callback=received.append)

        assert user == {"login": "bob", "id": 42}
        assert received == [user]
        assert body(recorder.last) == {"login": "bob", "password": "hunter2"}
        assert SIGNATURE_HEADER not in recorder.last.headers
        assert client.is_authenticated
        assert client.auth_sequence == 1
        assert client.auth_expiration == "2026-10-20T00:00:00Z"

    @pytest.mark.asyncio
    async def test_login_without_credentials(self) -> None:
        recorder = Recorder(httpx.Response(200, json={"user": {"login": "bob"}}))
        client = make_client(recorder)

        with pytest.raises(ResponseFormatError):
            await client.login("bob", "hunter2")

        assert client.is_authenticated is False

    @pytest.mark.asyncio
    async def test_signed_requests_advance_sequence(self) -> None:
        recorder = Recorder(httpx.Response(200, json=LOGIN_RESPONSE))
        client = make_client(recorder)

        await client.login("bob", "hunter2")
        await client.get_login()
        first = recorder.last
        await client.load_config("deck_view")
        second = recorder.last

        assert first.headers["x-dt-Auth-Token"] == "tok"
        assert first.headers[SEQUENCE_HEADER] == "1"
        assert first.headers[SIGNATURE_HEADER] == "3560f4d3cdb576e61d20f9fa14062b0a"
        assert second.headers[SEQUENCE_HEADER] == "2"
        assert second.headers[SIGNATURE_HEADER] == "25ef2ef7c56e231f9156333930572420"
        assert client.auth_sequence == 3

    @pytest.mark.asyncio
    async def test_concurrent_requests_get_distinct_sequences(self) -> None:
        recorder = Recorder(httpx.Response(200, json=LOGIN_RESPONSE))
        client = make_client(recorder)
        await client.login("bob", "hunter2")

        await asyncio.gather(*(client.get_login() for _ in range(20)))

        signed = recorder.requests[1:]
        sequences = sorted(int(request.headers[SEQUENCE_HEADER]) for request in signed)
        assert sequences == list(range(1, 21))
        for request in signed:
            sequence = int(request.headers[SEQUENCE_HEADER])
            assert request.headers[SIGNATURE_HEADER] == compute_signature(
                sequence, "abc"
            )
        assert client.auth_sequence == 21

    @pytest.mark.asyncio
    async def test_relogin_resets_sequence(self) -> None:
        recorder = Recorder(
            httpx.Response(200, json=LOGIN_RESPONSE),
            httpx.Response(200, json={}),
            httpx.Response(200, json=LOGIN_RESPONSE),
        )
        client = make_client(recorder)

        await client.login("bob", "hunter2")
        await client.get_login()
        await client.login("bob", "hunter2")

        assert recorder.last.headers[SEQUENCE_HEADER] == "2"
        assert client.auth_sequence == 1

    @pytest.mark.asyncio
    async def test_failed_request_consumes_sequence(self) -> None:
        recorder = Recorder(
            httpx.Response(200, json=LOGIN_RESPONSE),
            httpx.Response(500, text="boom"),
        )
        client = make_client(recorder)

        await client.login("bob", "hunter2")
        with pytest.raises(ApiError):
            await client.get_login()

        assert client.auth_sequence == 2

    @pytest.mark.asyncio
    async def test_logout_clears_session(self) -> None:
        recorder = Recorder(httpx.Response(200, json=LOGIN_RESPONSE))
        client = make_client(recorder)
        calls = []

        await client.login("bob", "hunter2")
        await client.logout(callback=lambda: calls.append("done"))
        logout_request = recorder.last
        await client.find_card_names("Lotus")

        assert logout_request.method == "DELETE"
        assert logout_request.url.path == "/app/v1/account/login"
        assert logout_request.headers[SEQUENCE_HEADER] == "1"
        assert calls == ["done"]
        assert client.is_authenticated is False
        assert SIGNATURE_HEADER not in recorder.last.headers

    @pytest.mark.asyncio
    async def test_logout_requires_session(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)

        with pytest.raises(NotAuthenticatedError):
            await client.logout()

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_store_config_none_deletes(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)

        await client.store_config("deck_view")

        assert recorder.last.method == "DELETE"
        assert recorder.last.url.path == "/app/v1/account/config/deck_view"
        assert recorder.last.content == b""

    @pytest.mark.asyncio
    async def test_config_key_is_quoted(self) -> None:
        recorder = Recorder(httpx.Response(200, json=3))
        client = make_client(recorder)

        assert await client.load_config("my key") == 3
        assert recorder.last.url.raw_path == b"/app/v1/account/config/my%20key"

    @pytest.mark.asyncio
    async def test_register_with_captcha(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)
        calls = []

        result = await client.register(
            True,
            {"login": "bob", "password": "hunter2"},
            {"first_name": "Bob"},
            {"country": "IT"},
            {"lang": "en"},
            captcha=("c0de", "x7yz"),
            callback=lambda: calls.append(True),
        )

        assert result is None
        assert calls == [True]
        assert recorder.last.url.path == "/app/v1/account/register"
        assert body(recorder.last) == {
            "user": {"login": "bob", "password": "hunter2"},
            "person": {"first_name": "Bob"},
            "address": {"country": "IT"},
            "prefs": {"lang": "en"},
            "privacy": True,
            "captcha_code": "c0de",
            "captcha_answer": "x7yz",
        }

    @pytest.mark.asyncio
    async def test_register_without_captcha(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)

        await client.register(True, {}, {}, {}, {})

        assert "captcha_code" not in body(recorder.last)


class TestCallbacks:
    """Test callback delivery."""

    @pytest.mark.asyncio
    async def test_coroutine_callback_awaited(self) -> None:
        recorder = Recorder(httpx.Response(200, json=["Lotus Petal"]))
        client = make_client(recorder)
        received = []

        async def on_result(names):
            received.append(names)

        await client.find_card_names("Lotus", callback=on_result)

        assert received == [["Lotus Petal"]]

    @pytest.mark.asyncio
    async def test_callback_not_invoked_on_error(self) -> None:
        recorder = Recorder(httpx.Response(404, text="not found"))
        client = make_client(recorder)
        received = []

        with pytest.raises(ApiError):
            await client.find_card_names("Lotus", callback=received.append)

        assert received == []


class TestErrors:
    """Test error mapping."""

    @pytest.mark.asyncio
    async def test_server_error(self) -> None:
        recorder = Recorder(httpx.Response(503, text="maintenance"))
        client = make_client(recorder)

        with pytest.raises(ApiError) as exc_info:
            await client.get_login()

        error = exc_info.value
        assert error.status_code == 503
        assert error.method == "GET"
        assert error.body == "maintenance"
        assert error.recovery_action == RecoveryAction.RETRY_WITH_DELAY

    @pytest.mark.asyncio
    async def test_unauthorized(self) -> None:
        recorder = Recorder(httpx.Response(401))
        client = make_client(recorder)

        with pytest.raises(ApiError) as exc_info:
            await client.load_config("deck_view")

        assert exc_info.value.recovery_action == RecoveryAction.REAUTHENTICATE

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        recorder = Recorder(httpx.Response(200, content=b"<html>oops</html>"))
        client = make_client(recorder)

        with pytest.raises(ResponseDecodeError) as exc_info:
            await client.get_login()

        assert exc_info.value.body == "<html>oops</html>"

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(refuse)

        with pytest.raises(TransportError) as exc_info:
            await client.find_card_names("Lotus")

        assert "connection refused" in exc_info.value.reason
        assert exc_info.value.recovery_action == RecoveryAction.RETRY

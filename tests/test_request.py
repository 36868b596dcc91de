"""Tests for execution, caching and request chaining.

1. **ResponseCache** -- TTL policy with an injected clock.
2. **JSON path** -- supported syntax, rejected syntax, walking.
3. **DataAccessor** -- values and errors returned, not raised.
4. **RequestDefinition** -- execute pipeline, cache, logging, chaining.
"""
from __future__ import annotations

import asyncio
import json
import logging

import pytest

from conftest import define, json_response
from sling.core.config import SlingConfig
from sling.core.errors import (
    HttpError,
    InvalidJsonPathError,
    NodeError,
    RequestCancelled,
    StructuralParseError,
    TransportFailure,
)
from sling.core.interfaces import InMemoryTransport
from sling.core.types import CancellationSignal, ExecuteOptions, SlingResponse
from sling.display import MaskedReference
from sling.masking import secret
from sling.request import (
    DataAccessor,
    RequestDefinition,
    ResponseCache,
    parse_json_path,
    walk_json_path,
)
from sling.template import Template

LOGIN = """
    POST https://auth.example.com/login HTTP/1.1
    Content-Type: application/json

    {{"user": "bob", "password": "{password}"}}
    """

PROFILE = """
    GET https://api.example.com/profile HTTP/1.1
    Authorization: Bearer {token}
    """


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _ok(body: str = "{}") -> SlingResponse:
    return SlingResponse(status=200, status_text="OK", body=body)


# ---------------------------------------------------------------------------
# ResponseCache
# ---------------------------------------------------------------------------

class TestResponseCache:
    def test_none_caches_forever(self) -> None:
        clock = FakeClock()
        cache = ResponseCache(None, clock=clock)
        cache.put(_ok())
        clock.now += 10**6
        assert cache.get() is not None

    @pytest.mark.parametrize("ttl", [0, False])
    def test_disabled(self, ttl: int | bool) -> None:
        cache = ResponseCache(ttl)
        assert not cache.enabled
        assert cache.put(_ok()) is None
        assert cache.get() is None

    def test_entry_expires(self) -> None:
        clock = FakeClock()
        cache = ResponseCache(500, clock=clock)
        entry = cache.put(_ok())
        assert entry.timestamp == 100.0

        clock.now += 0.499
        assert cache.get() is entry

        clock.now += 0.1
        assert cache.get() is None
        clock.now = 100.0
        assert cache.get() is None

    def test_negative_ttl_rejected(self) -> None:
        with pytest.raises(ValueError):
            ResponseCache(-1)

    def test_clear(self) -> None:
        cache = ResponseCache()
        cache.put(_ok())
        cache.clear()
        assert cache.get() is None
        assert repr(cache) == "ResponseCache(ttl_ms=None, filled=False)"


# ---------------------------------------------------------------------------
# JSON path
# ---------------------------------------------------------------------------

class TestJsonPath:
    @pytest.mark.parametrize(
        ("path", "segments"),
        [
            ("token", ("token",)),
            ("user.id", ("user", "id")),
            ("data.users[0].id", ("data", "users", 0, "id")),
            ("$.items[2]", ("items", 2)),
            ("$items", ("items",)),
            ("[0].name", (0, "name")),
            ("matrix[1][0]", ("matrix", 1, 0)),
        ],
    )
    def test_supported(self, path: str, segments: tuple) -> None:
        assert parse_json_path(path) == segments

    @pytest.mark.parametrize(
        "path",
        ["items[*]", "$..id", "items[0:2]", "items[?(@.id)]", "a..b", "a.", "a b"],
    )
    def test_rejected(self, path: str) -> None:
        with pytest.raises(InvalidJsonPathError) as exc_info:
            parse_json_path(path)
        assert exc_info.value.path == path

    @pytest.mark.parametrize("path", ["", "$", "$."])
    def test_empty(self, path: str) -> None:
        with pytest.raises(InvalidJsonPathError, match="empty"):
            parse_json_path(path)

    def test_walk(self) -> None:
        data = {"user": {"roles": ["admin", "dev"]}}
        assert walk_json_path(data, "user.roles[1]", ("user", "roles", 1)) == "dev"

    def test_walk_missing_member(self) -> None:
        with pytest.raises(InvalidJsonPathError, match="Member 'name' not found at segment 1"):
            walk_json_path({"user": {}}, "user.name", ("user", "name"))

    def test_walk_index_out_of_range(self) -> None:
        with pytest.raises(InvalidJsonPathError, match=r"Index \[3\] not found at segment 0"):
            walk_json_path([1], "[3]", (3,))

    def test_walk_index_into_object(self) -> None:
        with pytest.raises(InvalidJsonPathError):
            walk_json_path({"0": 1}, "[0]", (0,))


# ---------------------------------------------------------------------------
# DataAccessor
# ---------------------------------------------------------------------------

class TestDataAccessor:
    @pytest.mark.asyncio
    async def test_value(self, login_transport: InMemoryTransport) -> None:
        login = define(LOGIN, login_transport, password=secret("pw"))
        assert await login.data_accessor("user.roles[1]").value() == "dev"
        assert await login.data_accessor("user").value() == {
            "id": 7,
            "roles": ["admin", "dev"],
        }

    @pytest.mark.asyncio
    async def test_array_index(self) -> None:
        transport = InMemoryTransport([json_response({"users": [{"email": "a@b.com"}]})])
        definition = define(PROFILE, transport, token="t")
        assert await definition.data_accessor("users[0].email").value() == "a@b.com"
        result = await definition.data_accessor("users[5]").value()
        assert isinstance(result, InvalidJsonPathError)
        assert transport.call_count == 1

    @pytest.mark.asyncio
    async def test_shares_definition_cache(self, login_transport: InMemoryTransport) -> None:
        login = define(LOGIN, login_transport, password=secret("pw"))
        await login.data_accessor("token").value()
        await login.data_accessor("user.id").value()
        assert login_transport.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_path(self, login_transport: InMemoryTransport) -> None:
        accessor = define(LOGIN, login_transport, password="pw").data_accessor("user.email")
        result = await accessor.value()
        assert isinstance(result, InvalidJsonPathError)
        assert await accessor.try_value() is None
        assert not await accessor.validate()

    @pytest.mark.asyncio
    async def test_invalid_path_skips_request(self, login_transport: InMemoryTransport) -> None:
        accessor = define(LOGIN, login_transport, password="pw").data_accessor("items[*]")
        assert isinstance(await accessor.value(), InvalidJsonPathError)
        assert login_transport.call_count == 0

    @pytest.mark.asyncio
    async def test_unexpected_status(self) -> None:
        transport = InMemoryTransport([json_response({"error": "no"}, 404, "Not Found")])
        accessor = define(PROFILE, transport, token="t").data_accessor("error")
        result = await accessor.value()
        assert isinstance(result, HttpError)
        assert result.status == 404
        assert result.status_text == "Not Found"
        # try_value only hides path problems.
        assert isinstance(await accessor.try_value(), HttpError)

    @pytest.mark.asyncio
    async def test_allowed_status(self) -> None:
        transport = InMemoryTransport([json_response({"error": "no"}, 404, "Not Found")])
        definition = define(PROFILE, transport, token="t")
        accessor = definition.data_accessor("error", valid_response_codes=[404])
        assert await accessor.value() == "no"
        assert accessor.valid_response_codes == frozenset({404})

    @pytest.mark.asyncio
    async def test_body_not_json(self) -> None:
        transport = InMemoryTransport([_ok("<html></html>")])
        result = await define(PROFILE, transport, token="t").data_accessor("a").value()
        assert isinstance(result, InvalidJsonPathError)
        assert result.message == "Response body is not valid JSON"

    @pytest.mark.asyncio
    async def test_transport_failure_returned(self) -> None:
        accessor = define(PROFILE, InMemoryTransport(), token="t").data_accessor("a")
        result = await accessor.value()
        assert isinstance(result, HttpError)
        assert isinstance(result.cause, TransportFailure)
        assert result.status is None

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, login_transport: InMemoryTransport) -> None:
        accessor = define(LOGIN, login_transport, password="pw").data_accessor("token")
        signal = CancellationSignal()
        signal.cancel()
        with pytest.raises(RequestCancelled):
            await accessor.value(signal=signal)

    def test_repr(self, login_transport: InMemoryTransport) -> None:
        accessor = define(LOGIN, login_transport, password="pw").data_accessor("token")
        assert isinstance(accessor, DataAccessor)
        assert repr(accessor) == "DataAccessor(path='token')"


# ---------------------------------------------------------------------------
# RequestDefinition
# ---------------------------------------------------------------------------

class TestRequestDefinition:
    def test_empty_template_rejected(self, echo_transport: InMemoryTransport) -> None:
        with pytest.raises(StructuralParseError):
            RequestDefinition(Template.of([" \n "]), transport=echo_transport)

    def test_preview_and_repr(self, echo_transport: InMemoryTransport) -> None:
        definition = define(PROFILE, echo_transport, token=secret("abc"))
        assert definition.preview.is_valid
        assert len(definition.metadata.masked_values) == 1
        assert repr(definition) == "RequestDefinition(method='GET', slots=1)"

    def test_display(self, echo_transport: InMemoryTransport) -> None:
        definition = define(PROFILE, echo_transport, token=secret("abc"))
        request = definition.display()
        assert request.headers == {"authorization": "Bearer ●●●●●"}
        assert "abc" not in request.to_text()

    def test_display_whole_value(self, echo_transport: InMemoryTransport) -> None:
        definition = define(
            "\nGET https://example.com HTTP/1.1\nAuthorization: {auth}\n",
            echo_transport,
            auth=secret("Bearer abc"),
        )
        assert definition.display().headers["authorization"] == MaskedReference(0, "●●●●●")

    @pytest.mark.asyncio
    async def test_execute_reveals_values(self, echo_transport: InMemoryTransport) -> None:
        definition = define(LOGIN, echo_transport, password=secret("pw"))
        response = await definition.execute()
        echoed = response.json()
        assert echoed["method"] == "POST"
        assert echoed["url"] == "https://auth.example.com/login"
        assert echoed["headers"] == {"content-type": "application/json"}
        assert json.loads(echoed["body"]) == {"user": "bob", "password": "pw"}

    @pytest.mark.asyncio
    async def test_get_request_body_kept_out(self, echo_transport: InMemoryTransport) -> None:
        await define(PROFILE, echo_transport, token="t").execute()
        (request,) = echo_transport.calls
        assert request.body is None
        assert not request.sends_body

    @pytest.mark.asyncio
    async def test_comments_stripped(self, echo_transport: InMemoryTransport) -> None:
        definition = define(
            """
            POST https://example.com HTTP/1.1
            Content-Type: application/json

            {{
              // internal note
              "a": 1 /* trailing */
            }}
            """,
            echo_transport,
        )
        body = (await definition.execute()).json()["body"]
        assert "note" not in body
        assert "trailing" not in body
        assert json.loads(body) == {"a": 1}

    @pytest.mark.asyncio
    async def test_duplicate_headers_joined(self, echo_transport: InMemoryTransport) -> None:
        definition = define(
            "\nGET https://example.com HTTP/1.1\nX-Tag: a\nX-Tag: {tag}\n",
            echo_transport,
            tag=secret("b"),
        )
        assert (await definition.execute()).json()["headers"] == {"x-tag": "a, b"}

    @pytest.mark.asyncio
    async def test_display_matches_sent_structure(
        self, echo_transport: InMemoryTransport
    ) -> None:
        definition = define(
            "\nGET https://example.com HTTP/1.1\nX-A: {v}\n",
            echo_transport,
            v="a\nX-Extra: yes",
        )
        displayed = definition.display().headers
        sent = (await definition.execute()).json()["headers"]
        assert displayed == sent == {"x-a": "a", "x-extra": "yes"}
        assert len(definition.preview.headers) == 2

    @pytest.mark.asyncio
    async def test_grammar_error_raised(self, echo_transport: InMemoryTransport) -> None:
        definition = define("\nget https://example.com HTTP/1.1\n", echo_transport)
        with pytest.raises(NodeError):
            await definition.execute()
        assert echo_transport.call_count == 0

    @pytest.mark.asyncio
    async def test_response_cached(self, echo_transport: InMemoryTransport) -> None:
        definition = define(PROFILE, echo_transport, token="t")
        first = await definition.execute()
        second = await definition.execute()
        assert first is second
        assert echo_transport.call_count == 1

        await definition.execute(ExecuteOptions(read_cache=False))
        assert echo_transport.call_count == 2

        definition.clear_cache()
        await definition.execute()
        assert echo_transport.call_count == 3

    @pytest.mark.asyncio
    async def test_cache_disabled_by_config(self, echo_transport: InMemoryTransport) -> None:
        definition = define(PROFILE, echo_transport, SlingConfig(cache_ttl_ms=0), token="t")
        await definition.execute()
        await definition.execute()
        assert echo_transport.call_count == 2

    @pytest.mark.asyncio
    async def test_cancelled_in_flight_not_cached(self) -> None:
        transport = InMemoryTransport([_ok()], delay=5.0)
        definition = define(PROFILE, transport, token="t")
        signal = CancellationSignal()
        task = asyncio.create_task(definition.execute(ExecuteOptions(signal=signal)))
        await asyncio.sleep(0.01)
        signal.cancel("user abort")
        with pytest.raises(RequestCancelled):
            await task
        assert definition.cache.get() is None
        assert asyncio.all_tasks() == {asyncio.current_task()}

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, echo_transport: InMemoryTransport) -> None:
        signal = CancellationSignal()
        signal.cancel()
        with pytest.raises(RequestCancelled):
            await define(PROFILE, echo_transport, token="t").execute(
                ExecuteOptions(signal=signal)
            )
        assert echo_transport.call_count == 0

    @pytest.mark.asyncio
    async def test_chained_request(
        self, login_transport: InMemoryTransport, echo_transport: InMemoryTransport
    ) -> None:
        login = define(LOGIN, login_transport, password=secret("pw"))
        profile = define(PROFILE, echo_transport, token=secret(login.data_accessor("token")))

        assert profile.display().headers == {"authorization": "Bearer ●●●●●"}
        assert login_transport.call_count == 0

        response = await profile.execute()
        assert response.json()["headers"] == {"authorization": "Bearer tok-123"}

        await profile.execute(ExecuteOptions(read_cache=False))
        assert login_transport.call_count == 1
        assert echo_transport.call_count == 2

    @pytest.mark.asyncio
    async def test_chained_failure_raised(self, echo_transport: InMemoryTransport) -> None:
        failing = InMemoryTransport([json_response({}, 500, "Internal Server Error")])
        login = define(LOGIN, failing, password="pw")
        profile = define(PROFILE, echo_transport, token=login.data_accessor("token"))
        with pytest.raises(HttpError) as exc_info:
            await profile.execute()
        assert exc_info.value.status == 500
        assert echo_transport.call_count == 0

    @pytest.mark.asyncio
    async def test_missing_chained_value_elided(
        self, login_transport: InMemoryTransport, echo_transport: InMemoryTransport
    ) -> None:
        login = define(LOGIN, login_transport, password="pw")
        profile = define(
            "\nGET https://api.example.com/profile?x={missing} HTTP/1.1\n",
            echo_transport,
            missing=login.data_accessor("user.email"),
        )
        response = await profile.execute()
        assert response.json()["url"] == "https://api.example.com/profile?x="

    @pytest.mark.asyncio
    async def test_verbose_logs_display_view(
        self, echo_transport: InMemoryTransport, caplog: pytest.LogCaptureFixture
    ) -> None:
        definition = define(
            "\nGET https://example.com/{key} HTTP/1.1\nAuthorization: {token}\n",
            echo_transport,
            key=secret("k-1"),
            token=secret("tok-9"),
        )
        with caplog.at_level(logging.INFO, logger="sling"):
            await definition.execute(ExecuteOptions(verbose=True))

        messages = [record.getMessage() for record in caplog.records]
        assert "-> GET https://example.com/●●●●● HTTP/1.1" in messages
        assert any(message.startswith("<- 200 OK") for message in messages)
        assert not any("k-1" in message or "tok-9" in message for message in messages)

    @pytest.mark.asyncio
    async def test_log_requests_config(
        self, echo_transport: InMemoryTransport, caplog: pytest.LogCaptureFixture
    ) -> None:
        definition = define(
            PROFILE, echo_transport, SlingConfig(log_requests=True), token=secret("abc")
        )
        with caplog.at_level(logging.INFO, logger="sling"):
            await definition.execute()
        assert "-> GET https://api.example.com/profile HTTP/1.1" in caplog.messages

    @pytest.mark.asyncio
    async def test_quiet_by_default(
        self, echo_transport: InMemoryTransport, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="sling"):
            await define(PROFILE, echo_transport, token="t").execute()
        assert caplog.messages == []

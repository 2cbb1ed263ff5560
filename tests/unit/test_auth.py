"""Unit tests for the OAuth2 token lifecycle manager."""

from __future__ import annotations

import asyncio
import datetime as dt
import typing as typ
from urllib.parse import parse_qs

import httpx
import pytest

from halo_importer.remote import (
    AuthenticationError,
    AuthToken,
    ProtocolError,
    RemoteRejectionError,
    TokenLifecycleManager,
    TransportError,
)
from tests.unit.conftest import TOKEN_URL, FakeClock, make_config, token_payload

if typ.TYPE_CHECKING:
    from tests.unit.conftest import HaloStub


def _manager(
    client: httpx.AsyncClient, clock: FakeClock | None = None
) -> TokenLifecycleManager:
    return TokenLifecycleManager(
        make_config(), http_client=client, clock=clock or FakeClock()
    )


class TestAuthToken:
    """Tests for the AuthToken value type."""

    def test_issued_defaults_blank_scheme(self) -> None:
        """A blank token type falls back to Bearer."""
        now = dt.datetime(2024, 1, 5, 12, 0, tzinfo=dt.UTC)

        token = AuthToken.issued("abc", "  ", 3600, now=now)

        assert token.scheme == "Bearer"
        assert token.header_value == "Bearer abc"
        assert token.expires_at == now + dt.timedelta(hours=1)

    def test_is_expired_honours_margin(self) -> None:
        """A token counts as expired once inside the safety margin."""
        now = dt.datetime(2024, 1, 5, 12, 0, tzinfo=dt.UTC)
        token = AuthToken.issued("abc", "Bearer", 120, now=now)
        margin = dt.timedelta(seconds=60)

        assert not token.is_expired(now + dt.timedelta(seconds=59), margin=margin)
        assert token.is_expired(now + dt.timedelta(seconds=60), margin=margin)

    def test_repr_hides_value(self) -> None:
        """The token value never appears in its repr."""
        now = dt.datetime(2024, 1, 5, 12, 0, tzinfo=dt.UTC)
        token = AuthToken.issued("top-secret", "Bearer", 60, now=now)

        assert "top-secret" not in repr(token)


class TestGetValidToken:
    """Tests for TokenLifecycleManager.get_valid_token."""

    @pytest.mark.asyncio
    async def test_posts_client_credentials_form(
        self, halo: HaloStub, halo_client: httpx.AsyncClient
    ) -> None:
        """The token request is a client-credentials form post."""
        halo.add("POST", TOKEN_URL, httpx.Response(200, json=token_payload()))
        manager = _manager(halo_client)

        token = await manager.get_valid_token()

        assert token.header_value == "Bearer tok-1"
        (request,) = halo.calls("POST", TOKEN_URL)
        form = parse_qs(request.content.decode("utf-8"))
        assert form == {
            "client_id": ["importer"],
            "client_secret": ["s3cret"],
            "grant_type": ["client_credentials"],
            "scope": ["all"],
        }

    @pytest.mark.asyncio
    async def test_reuses_valid_token(
        self, halo: HaloStub, halo_client: httpx.AsyncClient
    ) -> None:
        """A token outside the safety margin is returned without a fetch."""
        halo.add("POST", TOKEN_URL, httpx.Response(200, json=token_payload()))
        clock = FakeClock()
        manager = _manager(halo_client, clock)

        first = await manager.get_valid_token()
        clock.advance(3000)
        second = await manager.get_valid_token()

        assert second is first
        assert len(halo.calls("POST", TOKEN_URL)) == 1, "Expected a single fetch."

    @pytest.mark.asyncio
    async def test_refetches_inside_safety_margin(
        self, halo: HaloStub, halo_client: httpx.AsyncClient
    ) -> None:
        """A token within 60 seconds of expiry is replaced."""
        halo.add(
            "POST",
            TOKEN_URL,
            httpx.Response(200, json=token_payload("tok-1")),
            httpx.Response(200, json=token_payload("tok-2")),
        )
        clock = FakeClock()
        manager = _manager(halo_client, clock)

        await manager.get_valid_token()
        clock.advance(3541)
        token = await manager.get_valid_token()

        assert token.value == "tok-2"
        assert len(halo.calls("POST", TOKEN_URL)) == 2

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_fetch(
        self, halo: HaloStub, halo_client: httpx.AsyncClient
    ) -> None:
        """Concurrent callers on an empty manager trigger one token request."""
        halo.add("POST", TOKEN_URL, httpx.Response(200, json=token_payload()))
        manager = _manager(halo_client)

        tokens = await asyncio.gather(*(manager.get_valid_token() for _ in range(5)))

        assert {token.value for token in tokens} == {"tok-1"}
        assert len(halo.calls("POST", TOKEN_URL)) == 1, (
            "Expected concurrent callers to share one fetch."
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("elapsed", [3541, 7200])
    async def test_concurrent_callers_share_one_renewal(
        self, halo: HaloStub, halo_client: httpx.AsyncClient, elapsed: int
    ) -> None:
        """A token near or past expiry is renewed once for all waiting callers."""
        halo.add(
            "POST",
            TOKEN_URL,
            httpx.Response(200, json=token_payload("tok-1")),
            httpx.Response(200, json=token_payload("tok-2")),
            httpx.Response(200, json=token_payload("tok-3")),
        )
        clock = FakeClock()
        manager = _manager(halo_client, clock)
        await manager.get_valid_token()
        clock.advance(elapsed)

        tokens = await asyncio.gather(*(manager.get_valid_token() for _ in range(5)))

        assert {token.value for token in tokens} == {"tok-2"}
        assert len(halo.calls("POST", TOKEN_URL)) == 2, (
            "Expected one renewal shared by every caller."
        )


class TestRefresh:
    """Tests for TokenLifecycleManager.refresh."""

    @pytest.mark.asyncio
    async def test_replaces_stale_token(
        self, halo: HaloStub, halo_client: httpx.AsyncClient
    ) -> None:
        """Refreshing the held token fetches a new one."""
        halo.add(
            "POST",
            TOKEN_URL,
            httpx.Response(200, json=token_payload("tok-1")),
            httpx.Response(200, json=token_payload("tok-2")),
        )
        manager = _manager(halo_client)
        stale = await manager.get_valid_token()

        fresh = await manager.refresh(stale)

        assert fresh.value == "tok-2"

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_are_single_flight(
        self, halo: HaloStub, halo_client: httpx.AsyncClient
    ) -> None:
        """Callers refusing the same stale token share one refresh."""
        halo.add(
            "POST",
            TOKEN_URL,
            httpx.Response(200, json=token_payload("tok-1")),
            httpx.Response(200, json=token_payload("tok-2")),
            httpx.Response(200, json=token_payload("tok-3")),
        )
        manager = _manager(halo_client)
        stale = await manager.get_valid_token()

        tokens = await asyncio.gather(*(manager.refresh(stale) for _ in range(3)))

        assert {token.value for token in tokens} == {"tok-2"}
        assert len(halo.calls("POST", TOKEN_URL)) == 2


class TestTokenErrors:
    """Error mapping for the identity endpoint."""

    @pytest.mark.asyncio
    async def test_oauth_error_body(
        self, halo: HaloStub, halo_client: httpx.AsyncClient
    ) -> None:
        """An OAuth error body raises AuthenticationError with its fields."""
        halo.add(
            "POST",
            TOKEN_URL,
            httpx.Response(
                200,
                json={"error": "invalid_client", "error_description": "bad secret"},
            ),
        )

        with pytest.raises(AuthenticationError, match="invalid_client: bad secret"):
            await _manager(halo_client).get_valid_token()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 401, 403])
    async def test_credential_rejection(
        self, halo: HaloStub, halo_client: httpx.AsyncClient, status_code: int
    ) -> None:
        """Credential rejections raise AuthenticationError with the status."""
        halo.add("POST", TOKEN_URL, httpx.Response(status_code, text="denied"))

        with pytest.raises(AuthenticationError) as excinfo:
            await _manager(halo_client).get_valid_token()

        assert excinfo.value.status_code == status_code
        assert "denied" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_server_error(
        self, halo: HaloStub, halo_client: httpx.AsyncClient
    ) -> None:
        """Other error statuses raise RemoteRejectionError."""
        halo.add("POST", TOKEN_URL, httpx.Response(500, text="boom"))

        with pytest.raises(RemoteRejectionError) as excinfo:
            await _manager(halo_client).get_valid_token()

        assert excinfo.value.status_code == 500

    @pytest.mark.asyncio
    async def test_malformed_body(
        self, halo: HaloStub, halo_client: httpx.AsyncClient
    ) -> None:
        """A success body without an access token raises ProtocolError."""
        halo.add("POST", TOKEN_URL, httpx.Response(200, text="not json"))

        with pytest.raises(ProtocolError):
            await _manager(halo_client).get_valid_token()

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        """Connection failures raise TransportError."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
            with pytest.raises(TransportError, match="refused"):
                await _manager(client).get_valid_token()

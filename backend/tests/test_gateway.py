"""Tests for the backend data gateway."""

import pytest
import httpx
from pixico.core.config import Settings
from pixico.core.gateway import (
    AuthError,
    Gateway,
    GatewayConfigError,
    GatewayError,
    GatewayValidationError,
    create_admin_client,
    create_client,
)
from pixico.schemas.prompt import Prompt
from pixico.schemas.profile import Profile


@pytest.mark.unit
class TestQueryBuilder:
    """Query parameters produced by the builder."""

    def test_build_params_for_select(self):
        gateway = Gateway("https://x.supabase.co", "key", placeholder=True)
        query = (
            gateway.table("prompts")
            .select("id, title,\n  slug")
            .eq("status", "published")
            .eq("show_in_header", True)
            .eq("deleted_at", None)
            .order("view_count", desc=True)
            .order("title")
            .limit(6)
        )

        assert query.build_params() == [
            ("select", "id,title,slug"),
            ("status", "eq.published"),
            ("show_in_header", "eq.true"),
            ("deleted_at", "is.null"),
            ("order", "view_count.desc,title.asc"),
            ("limit", "6"),
        ]

    def test_range_is_inclusive(self):
        gateway = Gateway("https://x.supabase.co", "key", placeholder=True)
        params = dict(gateway.table("profiles").range(20, 39).build_params())

        assert params["offset"] == "20"
        assert params["limit"] == "20"

    def test_in_and_or_filters(self):
        gateway = Gateway("https://x.supabase.co", "key", placeholder=True)
        params = (
            gateway.table("prompts")
            .in_("id", [1, 2, 3])
            .or_("title.ilike.%cat%,slug.ilike.%cat%")
            .build_params()
        )

        assert ("id", "in.(1,2,3)") in params
        assert ("or", "(title.ilike.%cat%,slug.ilike.%cat%)") in params


@pytest.mark.unit
class TestGatewayExecution:
    """Gateway calls against the in-memory backend."""

    @pytest.mark.asyncio
    async def test_execute_validates_rows(self, backend, make_gateway, catalog):
        async with make_gateway() as gateway:
            rows = await (
                gateway.table("prompts")
                .select("id, slug, title, status, view_count")
                .eq("status", "published")
                .order("view_count", desc=True)
                .execute(model=Prompt)
            )

        assert [p.slug for p in rows] == ["neon-city", "forest-spirit", "minimal-fox"]
        # Null counters are normalised
        assert rows[-1].view_count == 0

    @pytest.mark.asyncio
    async def test_sends_key_headers(self, backend, make_gateway, catalog):
        async with make_gateway() as gateway:
            await gateway.table("categories").select("slug").execute()

        request = backend.requests[-1]
        assert request.headers["apikey"] == "anon-test-key"
        assert request.headers["Authorization"] == "Bearer anon-test-key"

    @pytest.mark.asyncio
    async def test_admin_client_uses_service_key(self, backend, make_gateway, catalog):
        async with make_gateway(elevated=True) as gateway:
            await gateway.table("categories").select("slug").execute()

        assert gateway.scope == "service"
        assert backend.requests[-1].headers["apikey"] == "service-test-key"

    @pytest.mark.asyncio
    async def test_single_returns_none_when_missing(self, make_gateway, catalog):
        async with make_gateway() as gateway:
            row = await gateway.table("prompts").eq("slug", "nope").single(model=Prompt)

        assert row is None

    @pytest.mark.asyncio
    async def test_single_rejects_several_rows(self, make_gateway, catalog):
        async with make_gateway() as gateway:
            with pytest.raises(GatewayError) as exc_info:
                await gateway.table("prompts").eq("category_id", "cat-art").single()

        assert exc_info.value.code == "multiple_rows"

    @pytest.mark.asyncio
    async def test_count_reads_content_range(self, backend, make_gateway, catalog):
        async with make_gateway() as gateway:
            total = await gateway.table("prompts").select("*").eq("status", "published").count()

        assert total == 3
        assert backend.requests[-1].method == "HEAD"
        assert backend.requests[-1].headers["Prefer"] == "count=exact"

    @pytest.mark.asyncio
    async def test_unfiltered_delete_is_refused_before_sending(self, backend, make_gateway):
        async with make_gateway() as gateway:
            with pytest.raises(GatewayError):
                await gateway.table("contact_queries").delete().execute()

        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_update_returns_representation(self, backend, make_gateway, catalog):
        async with make_gateway() as gateway:
            rows = await (
                gateway.table("prompts")
                .update({"title": "Neon Town"})
                .eq("id", 1)
                .execute(model=Prompt)
            )

        assert rows[0].title == "Neon Town"
        assert backend.requests[-1].headers["Prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_error_response_raises_gateway_error(self, backend, make_gateway):
        backend.fail("prompts")

        async with make_gateway() as gateway:
            with pytest.raises(GatewayError) as exc_info:
                await gateway.table("prompts").execute()

        assert exc_info.value.status_code == 500
        assert "unavailable" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_row_shape_mismatch(self, backend, make_gateway):
        backend.seed("profiles", {"id": "u1", "role": "superuser"})

        async with make_gateway() as gateway:
            with pytest.raises(GatewayValidationError):
                await gateway.table("profiles").execute(model=Profile)

    @pytest.mark.asyncio
    async def test_transport_failure_is_wrapped(self, test_settings):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with create_client(test_settings, transport=httpx.MockTransport(refuse)) as gateway:
            with pytest.raises(GatewayError) as exc_info:
                await gateway.table("prompts").execute()

        assert exc_info.value.message == "Backend is unreachable"


@pytest.mark.unit
class TestPlaceholderGateway:
    """Missing credentials produce a handle that never touches the network."""

    @pytest.mark.asyncio
    async def test_placeholder_raises_config_error(self):
        gateway = create_client(Settings(SUPABASE_URL=None, SUPABASE_ANON_KEY=None))

        assert gateway.placeholder is True
        with pytest.raises(GatewayConfigError):
            await gateway.table("prompts").execute()
        with pytest.raises(GatewayConfigError):
            await gateway.auth.sign_in_with_password("a@b.c", "pw")

    def test_admin_client_without_service_key_falls_back(self):
        gateway = create_admin_client(
            Settings(
                SUPABASE_URL="https://x.supabase.co",
                SUPABASE_ANON_KEY="anon",
                SUPABASE_SERVICE_ROLE_KEY=None,
            )
        )

        assert gateway.placeholder is False
        assert gateway.scope == "anon"


@pytest.mark.unit
class TestAuthClient:
    """Password sign-in and token introspection."""

    @pytest.mark.asyncio
    async def test_sign_in_success(self, backend, make_gateway):
        user_id = backend.add_user("ana@pixico.test", "pw")

        async with make_gateway() as gateway:
            session = await gateway.auth.sign_in_with_password("ana@pixico.test", "pw")
            user = await gateway.auth.get_user(session.access_token)

        assert session.user.id == user_id
        assert session.expires_at is not None
        assert user.email == "ana@pixico.test"

    @pytest.mark.asyncio
    async def test_bad_credentials_raise_auth_error(self, backend, make_gateway):
        backend.add_user("ana@pixico.test", "pw")

        async with make_gateway() as gateway:
            with pytest.raises(AuthError) as exc_info:
                await gateway.auth.sign_in_with_password("ana@pixico.test", "wrong")

        assert exc_info.value.message == "Invalid login credentials"

    @pytest.mark.asyncio
    async def test_revoked_token_is_rejected(self, backend, make_gateway):
        backend.add_user("ana@pixico.test", "pw")

        async with make_gateway() as gateway:
            session = await gateway.auth.sign_in_with_password("ana@pixico.test", "pw")
            await gateway.auth.sign_out(session.access_token)
            with pytest.raises(AuthError):
                await gateway.auth.get_user(session.access_token)

"""
Pytest configuration and fixtures for Pixico tests.
"""

import os

# Settings are read at import time; pin them before the app is imported
os.environ.update(
    {
        "SUPABASE_URL": "https://test-project.supabase.co",
        "SUPABASE_ANON_KEY": "anon-test-key",
        "SUPABASE_SERVICE_ROLE_KEY": "service-test-key",
        "SECRET_KEY": "test-session-secret",
        "COOKIE_SECURE": "false",
        "APP_URL": "https://pixico.test",
    }
)
os.environ.pop("SUPABASE_JWT_SECRET", None)
os.environ.pop("OPENROUTER_API_KEY", None)

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from fake_backend import FakeBackend
from pixico.core.config import Settings
from pixico.core.gateway import (
    create_admin_client,
    create_client,
    get_admin_gateway,
    get_gateway,
)
from pixico.api.endpoints import admin as admin_pages
from pixico.api.endpoints.support import get_completions_client, get_support_settings
from pixico.main import app

ADMIN_EMAIL = "admin@pixico.test"
ADMIN_PASSWORD = "correct-horse"


@pytest.fixture(scope="function")
def test_settings() -> Settings:
    return Settings(
        SUPABASE_URL="https://test-project.supabase.co",
        SUPABASE_ANON_KEY="anon-test-key",
        SUPABASE_SERVICE_ROLE_KEY="service-test-key",
        OPENROUTER_API_KEY="or-test-key",
        APP_URL="https://pixico.test",
        COOKIE_SECURE=False,
    )


@pytest.fixture(scope="function")
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture(scope="function")
def make_gateway(backend, test_settings):
    """Factory for gateways wired to the fake backend; callers close them."""

    def factory(elevated: bool = False):
        if elevated:
            return create_admin_client(test_settings, transport=backend.transport())
        return create_client(test_settings, transport=backend.transport())

    return factory


@pytest.fixture(autouse=True)
def reset_rate_limits():
    admin_pages.limiter.reset()
    yield


@pytest.fixture(scope="function")
def completions():
    """Stand-in for the completions client; ``reply`` sets the next answer."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock()

    def reply(content):
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
        )

    client.reply = reply
    reply("Happy to help!")
    return client


@pytest.fixture(scope="function")
def test_app(backend, test_settings, completions):
    """The application with its backend and completions client replaced."""

    async def override_get_gateway():
        async with create_client(test_settings, transport=backend.transport()) as gateway:
            yield gateway

    async def override_get_admin_gateway():
        async with create_admin_client(test_settings, transport=backend.transport()) as gateway:
            yield gateway

    app.dependency_overrides[get_gateway] = override_get_gateway
    app.dependency_overrides[get_admin_gateway] = override_get_admin_gateway
    app.dependency_overrides[get_support_settings] = lambda: test_settings
    app.dependency_overrides[get_completions_client] = lambda: completions
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(test_app) -> TestClient:
    """Create a test client without entering context manager."""
    return TestClient(test_app, raise_server_exceptions=False)


@pytest.fixture(scope="function")
def admin_user(backend) -> str:
    return backend.add_user(ADMIN_EMAIL, ADMIN_PASSWORD, role="admin", full_name="Ada Admin")


@pytest.fixture(scope="function")
def admin_client(client, admin_user) -> TestClient:
    """Client holding a live admin session cookie."""
    response = client.post(
        "/admin/login",
        data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client


@pytest.fixture(scope="function")
def catalog(backend):
    """A small published catalog with one draft of each kind."""
    art, logos, hidden = backend.seed(
        "categories",
        {"id": "cat-art", "name": "Art", "slug": "art", "sort_order": 1,
         "show_in_header": True, "show_in_footer": True, "show_in_showcase": True,
         "is_active": True, "updated_at": "2026-01-05T00:00:00+00:00"},
        {"id": "cat-logos", "name": "Logos", "slug": "logos", "sort_order": 2,
         "show_in_header": True, "show_in_footer": False, "show_in_showcase": True,
         "is_active": True, "updated_at": None},
        {"id": "cat-all", "name": "All", "slug": "all", "sort_order": 0,
         "show_in_header": False, "show_in_footer": False, "show_in_showcase": False,
         "is_active": False},
    )
    mj, dalle = backend.seed(
        "ai_models",
        {"id": "m-mj", "name": "Midjourney", "is_active": True},
        {"id": "m-dalle", "name": "DALL-E", "is_active": True},
    )
    prompts = backend.seed(
        "prompts",
        {"id": 1, "slug": "neon-city", "title": "Neon City", "prompt_code": "1234",
         "prompt_text": "A neon city at night, cinematic", "description": "Cyberpunk skyline",
         "image_url": "https://cdn.pixico.test/neon.png", "status": "published",
         "category_id": "cat-art", "model_id": "m-mj", "view_count": 500,
         "like_count": 10, "created_at": "2026-01-01T00:00:00+00:00",
         "updated_at": "2026-01-02T00:00:00+00:00"},
        {"id": 2, "slug": "forest-spirit", "title": "Forest Spirit", "prompt_code": "2345",
         "prompt_text": "A glowing forest spirit", "description": None,
         "image_url": None, "status": "published",
         "category_id": "cat-art", "model_id": "m-dalle", "view_count": 50,
         "like_count": 90, "created_at": "2026-02-01T00:00:00+00:00"},
        {"id": 3, "slug": "minimal-fox", "title": "Minimal Fox Logo", "prompt_code": "3456",
         "prompt_text": "Flat fox logo", "description": "Vector mark",
         "image_url": "https://cdn.pixico.test/fox.png", "status": "published",
         "category_id": "cat-logos", "model_id": "m-mj", "view_count": None,
         "like_count": None, "created_at": "2026-03-01T00:00:00+00:00"},
        {"id": 4, "slug": "secret-draft", "title": "Secret Neon Draft", "prompt_code": "9999",
         "prompt_text": "unreleased neon", "status": "draft",
         "category_id": "cat-art", "model_id": "m-mj", "view_count": 9999,
         "like_count": 9999, "created_at": "2026-04-01T00:00:00+00:00"},
    )
    backend.seed("tags", {"id": "t-city", "name": "city"})
    backend.seed("prompt_tags", {"prompt_id": 1, "tag_id": "t-city"})
    blogs = backend.seed(
        "blogs",
        {"id": 10, "slug": "prompting-101", "title": "Prompting 101",
         "excerpt": "Start here", "content": "How to write neon prompts",
         "status": "published", "category_id": "cat-art", "view_count": 40,
         "created_at": "2026-01-10T00:00:00+00:00",
         "updated_at": "2026-01-11T00:00:00+00:00"},
        {"id": 11, "slug": "logo-tips", "title": "Logo Tips", "excerpt": "Marks",
         "content": "Keep it simple", "status": "published", "category_id": "cat-logos",
         "view_count": 5, "created_at": "2026-02-10T00:00:00+00:00"},
        {"id": 12, "slug": "draft-post", "title": "Draft Neon Post", "excerpt": "",
         "content": "neon", "status": "draft", "category_id": "cat-art",
         "view_count": 0, "created_at": "2026-03-10T00:00:00+00:00"},
    )
    backend.seed(
        "site_pages",
        {"slug": "about", "title": "About Pixico", "meta_title": "About | Pixico",
         "meta_description": "Who we are",
         "content": {"sections": [{"title": "Mission", "text": "Share great prompts"}],
                     "faqs": [{"question": "Is it free?", "answer": "Yes"}]}},
    )
    return SimpleNamespace(
        categories=[art, logos, hidden], models=[mj, dalle], prompts=prompts, blogs=blogs
    )

"""End-to-end tests for the public HTML pages."""

import pytest


@pytest.mark.integration
class TestPublicPages:
    def test_home(self, client, catalog):
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Neon City" in response.text
        assert "Secret Neon Draft" not in response.text
        assert 'href="/category/art"' in response.text

    def test_home_without_data_shows_empty_states(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert 'data-state="empty"' in response.text
        assert 'data-state="populated"' not in response.text

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.json() == {"status": "healthy"}
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "X-Correlation-ID" in response.headers

    def test_prompt_list_tabs_filter_loaded_rows(self, backend, client, catalog):
        response = client.get("/prompts", params={"category": "Logos"})
        requests_for_filtered = len(backend.calls_to("prompts"))

        assert response.status_code == 200
        assert "Minimal Fox Logo" in response.text
        assert "Neon City" not in response.text
        assert requests_for_filtered == 1

        response = client.get("/prompts", params={"model": "DALL-E"})
        assert "Forest Spirit" in response.text
        assert "Minimal Fox Logo" not in response.text

    def test_prompt_detail(self, client, catalog):
        response = client.get("/prompt/neon-city")

        assert response.status_code == 200
        assert "A neon city at night, cinematic" in response.text
        assert "#1234" in response.text
        assert "<title>Neon City | Pixico</title>" in response.text

    def test_prompt_not_found_is_soft_404(self, client, catalog):
        response = client.get("/prompt/secret-draft")

        assert response.status_code == 200
        assert "<title>Page Not Found</title>" in response.text
        assert "Prompt Not Found" in response.text
        assert "unreleased neon" not in response.text

    def test_category_page(self, client, catalog):
        response = client.get("/category/logos")

        assert response.status_code == 200
        assert "Logos AI Prompts" in response.text
        assert "Minimal Fox Logo" in response.text

    def test_category_not_found(self, client, catalog):
        response = client.get("/category/does-not-exist")

        assert response.status_code == 200
        assert "Category Not Found" in response.text

    def test_blog_pages(self, client, catalog):
        listing = client.get("/blog")
        detail = client.get("/blog/prompting-101")
        missing = client.get("/blog/draft-post")

        assert "Prompting 101" in listing.text
        assert "Draft Neon Post" not in listing.text
        assert "How to write neon prompts" in detail.text
        assert "Blog Not Found" in missing.text

    def test_blog_category_tab(self, client, catalog):
        response = client.get("/blog", params={"category": "logos"})

        assert "Logo Tips" in response.text
        assert "Prompting 101" not in response.text

    def test_blog_text_filter(self, backend, client, catalog):
        response = client.get("/blog", params={"q": "LOGO"})

        assert "Logo Tips" in response.text
        assert "Prompting 101" not in response.text
        assert len(backend.calls_to("blogs")) == 1

    def test_blog_text_filter_matches_excerpt(self, client, catalog):
        response = client.get("/blog", params={"q": "start here"})

        assert "Prompting 101" in response.text
        assert "Logo Tips" not in response.text

    def test_blog_text_filter_combines_with_tab(self, client, catalog):
        response = client.get("/blog", params={"q": "start here", "category": "logos"})

        assert "Prompting 101" not in response.text
        assert "No articles match your search." in response.text

    def test_search(self, client, catalog):
        response = client.get("/search", params={"q": "neon"})

        assert response.status_code == 200
        assert "Neon City" in response.text
        assert "Prompting 101" in response.text
        assert "Secret Neon Draft" not in response.text

    def test_search_without_query(self, backend, client, catalog):
        response = client.get("/search")

        assert response.status_code == 200
        assert 'data-state="idle"' in response.text
        assert backend.calls_to("prompts") == []

    def test_site_page(self, client, catalog):
        response = client.get("/about")

        assert response.status_code == 200
        assert "Share great prompts" in response.text
        assert "Is it free?" in response.text

    def test_unknown_site_page(self, client, catalog):
        response = client.get("/no-such-page")

        assert response.status_code == 200
        assert "<title>Page Not Found</title>" in response.text

    def test_output_is_escaped(self, backend, client):
        backend.seed(
            "prompts",
            {"id": 5, "slug": "xss", "title": "<script>alert(1)</script>",
             "status": "published", "view_count": 1},
        )

        response = client.get("/")

        assert "<script>alert(1)</script>" not in response.text
        assert "&lt;script&gt;" in response.text


@pytest.mark.integration
class TestContactForm:
    def test_form_renders(self, client):
        response = client.get("/contact")

        assert response.status_code == 200
        assert 'action="/contact"' in response.text

    def test_valid_submission(self, backend, client):
        response = client.post(
            "/contact",
            data={"name": "Lee", "email": "lee@example.com", "subject": "Hello", "message": "Great site"},
        )

        assert response.status_code == 200
        assert "Your message has been sent" in response.text
        assert backend.tables["contact_queries"][0]["status"] == "new"

    def test_invalid_submission_makes_no_write(self, backend, client):
        response = client.post(
            "/contact", data={"name": "Lee", "email": "not-an-email", "message": ""}
        )

        assert response.status_code == 400
        assert "Email" in response.text
        assert backend.calls_to("contact_queries") == []


@pytest.mark.integration
class TestMetadataRoutes:
    def test_sitemap(self, client, catalog):
        response = client.get("/sitemap.xml")

        assert response.status_code == 200
        assert "application/xml" in response.headers["content-type"]
        assert "<loc>https://pixico.test/prompt/neon-city</loc>" in response.text
        assert "secret-draft" not in response.text

    def test_manifest(self, client):
        response = client.get("/manifest.webmanifest")

        assert response.status_code == 200
        data = response.json()
        assert data["short_name"] == "Pixico"
        assert data["theme_color"] == "#a855f7"

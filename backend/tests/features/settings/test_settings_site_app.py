"""
Tests for routes.yaml loading and the site application reload.
"""

import pytest

from sitesettings.core.exceptions import ValidationError
from sitesettings.features.settings.site_app import (
    DEFAULT_ROUTES_CONFIG,
    RoutesLoader,
    SiteApp,
    UrlService,
    validate_routes_config,
)


class TestValidateRoutesConfig:
    """Test cases for validate_routes_config."""

    def test_empty_document_gets_defaults(self):
        config = validate_routes_config(None)
        assert config["routes"] == {}
        assert config["collections"] == DEFAULT_ROUTES_CONFIG["collections"]
        assert config["taxonomies"] == DEFAULT_ROUTES_CONFIG["taxonomies"]

    def test_valid_document_is_kept(self):
        raw = {
            "routes": {"/about/": "about"},
            "collections": {"/blog/": {"permalink": "/blog/{slug}/"}},
            "taxonomies": {"tag": "/topic/{slug}/"},
        }
        assert validate_routes_config(raw) == raw

    @pytest.mark.parametrize(
        "raw",
        [
            ["not", "a", "mapping"],
            {"redirects": {}},
            {"routes": {"about": "about"}},
            {"collections": {"/blog/": {"template": "index"}}},
            {"collections": {"/blog/": {"permalink": "{slug}"}}},
            {"taxonomies": {"category": "/category/{slug}/"}},
            {"routes": ["/about/"]},
        ],
    )
    def test_invalid_documents_are_rejected(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            validate_routes_config(raw)
        assert "routes configuration is invalid" in exc_info.value.message


class TestRoutesLoader:
    """Test cases for RoutesLoader."""

    @pytest.mark.asyncio
    async def test_missing_file_falls_back_to_defaults(self, tmp_path):
        config = await RoutesLoader(tmp_path / "routes.yaml").load()
        assert config["collections"] == DEFAULT_ROUTES_CONFIG["collections"]

    @pytest.mark.asyncio
    async def test_unparseable_yaml_is_rejected(self, tmp_path):
        path = tmp_path / "routes.yaml"
        path.write_text("routes: [unclosed\n")

        with pytest.raises(ValidationError):
            await RoutesLoader(path).load()


class TestSiteApp:
    """Test cases for SiteApp and UrlService."""

    @pytest.mark.asyncio
    async def test_reload_builds_generators(self, tmp_path):
        path = tmp_path / "routes.yaml"
        path.write_text(
            "collections:\n"
            "  /blog/:\n"
            "    permalink: /blog/{slug}/\n"
            "taxonomies:\n"
            "  tag: /topic/{slug}/\n"
        )
        url_service = UrlService()
        site_app = SiteApp(RoutesLoader(path), url_service)

        await site_app.reload()

        assert set(url_service.generators) == {"collection:/blog/", "taxonomy:tag"}
        assert url_service.generators["collection:/blog/"].permalink == "/blog/{slug}/"
        assert url_service.generators["taxonomy:tag"].permalink == "/topic/{slug}/"

    @pytest.mark.asyncio
    async def test_failed_reload_keeps_previous_config(self, tmp_path):
        path = tmp_path / "routes.yaml"
        site_app = SiteApp(RoutesLoader(path), UrlService())
        await site_app.reload()
        previous = site_app.routes_config

        path.write_text("taxonomies:\n  category: /category/{slug}/\n")
        with pytest.raises(ValidationError):
            await site_app.reload()

        assert site_app.routes_config == previous

    def test_reset_generators_release_only(self):
        url_service = UrlService()
        url_service.build_generators(validate_routes_config(None))
        generator = url_service.generators["collection:/"]

        url_service.reset_generators(release_resources_only=True)

        assert url_service.generators["collection:/"] is generator

        url_service.reset_generators()
        assert url_service.generators == {}

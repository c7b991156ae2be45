"""
Site application that consumes ``routes.yaml``.

The settings API only needs two things from the site side: a way to release
the URL generators bound to the old routing configuration, and a way to
reload the site against the current file. ``UrlService`` and ``SiteApp``
below are the default implementations of those two collaborators.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import structlog
import yaml

from sitesettings.core.exceptions import ValidationError
from . import messages

logger = structlog.get_logger(__name__)

ALLOWED_SECTIONS = ("routes", "collections", "taxonomies")
ALLOWED_TAXONOMIES = ("tag", "author")

DEFAULT_ROUTES_CONFIG: Dict[str, Dict[str, Any]] = {
    "routes": {},
    "collections": {
        "/": {"permalink": "/{slug}/", "template": ["index"]},
    },
    "taxonomies": {
        "tag": "/tag/{slug}/",
        "author": "/author/{slug}/",
    },
}


class UrlServiceProtocol(Protocol):
    def reset_generators(self, release_resources_only: bool = False) -> None: ...


class SiteAppProtocol(Protocol):
    async def reload(self) -> None: ...


def _invalid(reason: str) -> ValidationError:
    return ValidationError(messages.INVALID_ROUTES_CONFIG.format(reason=reason))


def _is_route_path(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("/") and value.endswith("/")


def validate_routes_config(config: Any) -> Dict[str, Dict[str, Any]]:
    """Validate a parsed routes document and fill in missing sections."""
    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise _invalid("the file must contain a mapping")

    unknown = [section for section in config if section not in ALLOWED_SECTIONS]
    if unknown:
        raise _invalid(f"unknown section '{unknown[0]}'")

    validated: Dict[str, Dict[str, Any]] = {}
    for section in ALLOWED_SECTIONS:
        value = config.get(section)
        if value is None:
            value = {} if section == "routes" else dict(DEFAULT_ROUTES_CONFIG[section])
        if not isinstance(value, dict):
            raise _invalid(f"'{section}' must be a mapping")
        validated[section] = value

    for route in validated["routes"]:
        if not _is_route_path(route):
            raise _invalid(f"route '{route}' must start and end with '/'")

    for collection, options in validated["collections"].items():
        if not _is_route_path(collection):
            raise _invalid(f"collection '{collection}' must start and end with '/'")
        if not isinstance(options, dict) or not options.get("permalink"):
            raise _invalid(f"collection '{collection}' needs a permalink")
        if not _is_route_path(options["permalink"]):
            raise _invalid(f"permalink of collection '{collection}' must start and end with '/'")

    for taxonomy, permalink in validated["taxonomies"].items():
        if taxonomy not in ALLOWED_TAXONOMIES:
            raise _invalid(f"unknown taxonomy '{taxonomy}'")
        if not _is_route_path(permalink):
            raise _invalid(f"permalink of taxonomy '{taxonomy}' must start and end with '/'")

    return validated


class RoutesLoader:
    """Reads and validates the routes configuration file."""

    def __init__(self, routes_path: Path):
        self.routes_path = Path(routes_path)

    def _read(self) -> Any:
        try:
            text = self.routes_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("routes_file_missing_using_defaults", path=str(self.routes_path))
            return None
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise _invalid(f"could not parse YAML ({e.__class__.__name__})")

    async def load(self) -> Dict[str, Dict[str, Any]]:
        raw = await asyncio.to_thread(self._read)
        return validate_routes_config(raw)


class UrlGenerator:
    """Permalink pattern of one collection or taxonomy.

    Posts, tags and authors are bound to generators by the content layer,
    which lives outside this service, so a generator here only carries its
    pattern.
    """

    def __init__(self, identifier: str, permalink: str):
        self.identifier = identifier
        self.permalink = permalink


class UrlService:
    """Owns the URL generators created from the current routes config."""

    def __init__(self):
        self.generators: Dict[str, UrlGenerator] = {}

    def build_generators(self, config: Dict[str, Dict[str, Any]]) -> None:
        generators: Dict[str, UrlGenerator] = {}
        for collection, options in config["collections"].items():
            generators[f"collection:{collection}"] = UrlGenerator(
                collection, options["permalink"]
            )
        for taxonomy, permalink in config["taxonomies"].items():
            generators[f"taxonomy:{taxonomy}"] = UrlGenerator(taxonomy, permalink)
        self.generators = generators
        logger.info("url_generators_built", count=len(generators))

    def reset_generators(self, release_resources_only: bool = False) -> None:
        """Drop the generator set, or keep it when only resources are released.

        Resource bindings are owned by the content layer; with
        ``release_resources_only`` the generators stay in place so the next
        reload can replace them.
        """
        if not release_resources_only:
            self.generators = {}
        logger.info(
            "url_generators_reset", release_resources_only=release_resources_only
        )


class SiteApp:
    """Site application rebuilt from ``routes.yaml`` on every reload."""

    def __init__(self, loader: RoutesLoader, url_service: UrlService):
        self.loader = loader
        self.url_service = url_service
        self.routes_config: Optional[Dict[str, Dict[str, Any]]] = None

    async def reload(self) -> None:
        """Reload the routes config and recreate URL generators.

        :raises ValidationError: When the current routes file is invalid
        """
        config = await self.loader.load()
        self.url_service.build_generators(config)
        self.routes_config = config
        logger.info("site_app_reloaded", collections=list(config["collections"]))

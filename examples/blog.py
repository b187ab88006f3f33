"""Blog Example — users, articles, tags and profiles wired through one builder.

Run with:
    uvicorn examples.blog:app --reload

Routes include POST /user, GET /users, POST /user/:id/article,
GET /user/:id/profile, POST /article/:id/tag/:relation_id and GET /article/:id/tags.
"""

import logging

from geck.config import Settings, default_definition, driver_context, get_settings
from geck.core.domain_types import Record
from geck.core.routing import RouteTable
from geck.main import create_app
from geck.services.builder import RouteTableBuilder

logger = logging.getLogger(__name__)


def has_name(record: Record) -> bool:
    return bool(record.get("name"))


def has_title(record: Record) -> bool:
    return bool(record.get("title"))


def log_new_user(record: Record) -> None:
    logger.info(f"New user {record['_id']}", extra={"resource": "user"})


def build_blog(settings: Settings) -> RouteTable:
    """Route table for the blog resources."""
    builder = RouteTableBuilder(
        default_definition(settings), context=driver_context(settings),
    )
    builder.resource("user", {
        "validate": has_name,
        "after_create": log_new_user,
        "relations": {"many": ["article"], "one": ["profile"]},
    })
    builder.resource("article", {
        "validate": has_title,
        "relations": {"many_to_many": {"tag": "article_tags"}},
    })
    builder.resource("tag", {"allow_forced_ids": True})
    builder.resource("profile", {"destructive": True})
    return builder.build()


settings = get_settings()
app = create_app(build_blog(settings), settings)

"""Map raw GraphQL nodes to flat storage records.

Each record carries:
    - snake_case fields ready for CSV columns / database columns
    - fetched_at: ISO-8601 UTC timestamp of the mapping
    - content_hash: SHA-256 over the content fields, for change detection
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Callable

from core.types import EntityType

Mapper = Callable[[dict[str, Any]], dict[str, Any]]

# Fields that make up the hashed content, per entity type
POST_CONTENT_FIELDS = ("name", "tagline", "description", "url", "website", "topics")
TOPIC_CONTENT_FIELDS = ("name", "slug", "description")
COLLECTION_CONTENT_FIELDS = ("name", "tagline", "description", "url")


def content_hash(record: dict[str, Any], fields: tuple[str, ...]) -> str:
    """SHA-256 of the selected fields, serialized as canonical JSON."""
    payload = json.dumps(
        {name: record.get(name) for name in fields},
        sort_keys=True,
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _user(node: dict[str, Any]) -> dict[str, Any]:
    return node.get("user") or {}


def _total_count(node: dict[str, Any], key: str) -> int | None:
    connection = node.get(key) or {}
    return connection.get("totalCount")


def _comments(node: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten the nested comments connection of a post."""
    comments = []
    for edge in (node.get("comments") or {}).get("edges") or []:
        comment = edge.get("node")
        if not comment:
            continue
        user = _user(comment)
        comments.append(
            {
                "id": comment["id"],
                "body": comment.get("body"),
                "created_at": comment.get("createdAt"),
                "votes_count": comment.get("votesCount", 0),
                "parent_id": comment.get("parentId"),
                "url": comment.get("url"),
                "user_id": comment.get("userId") or user.get("id"),
                "user_name": user.get("name"),
                "user_username": user.get("username"),
            }
        )
    return comments


def map_post(node: dict[str, Any]) -> dict[str, Any]:
    """Map a post node to a flat record."""
    user = _user(node)
    thumbnail = node.get("thumbnail") or {}
    topic_edges = (node.get("topics") or {}).get("edges") or []

    record = {
        "id": node["id"],
        "name": node.get("name"),
        "tagline": node.get("tagline"),
        "description": node.get("description") or "",
        "url": node.get("url"),
        "website": node.get("website"),
        "votes_count": node.get("votesCount", 0),
        "comments_count": node.get("commentsCount", 0),
        "created_at": node.get("createdAt"),
        "featured_at": node.get("featuredAt"),
        "user_id": user.get("id"),
        "user_name": user.get("name"),
        "user_username": user.get("username"),
        "user_avatar_url": user.get("coverImage") or "",
        "thumbnail_url": thumbnail.get("url"),
        "gallery_images": [m["url"] for m in node.get("media") or [] if m.get("url")],
        "topics": [e["node"]["id"] for e in topic_edges if e.get("node")],
        "collections_count": _total_count(node, "collections"),
        "comments": _comments(node),
        "fetched_at": _now(),
    }
    record["content_hash"] = content_hash(record, POST_CONTENT_FIELDS)
    return record


def map_topic(node: dict[str, Any]) -> dict[str, Any]:
    """Map a topic node to a flat record."""
    record = {
        "id": node["id"],
        "name": node.get("name"),
        "slug": node.get("slug"),
        "description": node.get("description"),
        "followers_count": node.get("followersCount", 0),
        "posts_count": node.get("postsCount"),
        "image_url": node.get("image"),
        "url": node.get("url"),
        "created_at": node.get("createdAt"),
        "fetched_at": _now(),
    }
    record["content_hash"] = content_hash(record, TOPIC_CONTENT_FIELDS)
    return record


def map_collection(node: dict[str, Any]) -> dict[str, Any]:
    """Map a collection node to a flat record."""
    user = _user(node)
    record = {
        "id": node["id"],
        "name": node.get("name"),
        "tagline": node.get("tagline"),
        "description": node.get("description"),
        "url": node.get("url"),
        "followers_count": node.get("followersCount", 0),
        "featured_at": node.get("featuredAt"),
        "user_id": user.get("id"),
        "user_name": user.get("name"),
        "user_username": user.get("username"),
        "thumbnail_url": node.get("coverImage"),
        "posts_count": _total_count(node, "posts"),
        "created_at": node.get("createdAt"),
        "fetched_at": _now(),
    }
    record["content_hash"] = content_hash(record, COLLECTION_CONTENT_FIELDS)
    return record


_MAPPERS: dict[EntityType, Mapper] = {
    EntityType.POSTS: map_post,
    EntityType.TOPICS: map_topic,
    EntityType.COLLECTIONS: map_collection,
}


def mapper_for(entity: EntityType) -> Mapper:
    """Return the node mapper for an entity type."""
    return _MAPPERS[entity]

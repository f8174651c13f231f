"""Pytest configuration and shared fixtures."""

import pytest


@pytest.fixture
def sample_post_node() -> dict:
    """Sample post node as returned by the GraphQL API."""
    return {
        "id": "424242",
        "name": "Hunt Helper",
        "tagline": "Find the best launches faster",
        "description": "A tiny tool for browsing launches.",
        "url": "https://www.producthunt.com/posts/hunt-helper",
        "website": "https://hunthelper.example.com",
        "votesCount": 321,
        "commentsCount": 12,
        "createdAt": "2025-01-02T08:00:00Z",
        "featuredAt": "2025-01-02T09:00:00Z",
        "thumbnail": {"type": "image", "url": "https://ph-files.example.com/thumb.png", "videoUrl": None},
        "media": [
            {"type": "image", "url": "https://ph-files.example.com/1.png", "videoUrl": None},
            {"type": "image", "url": "https://ph-files.example.com/2.png", "videoUrl": None},
        ],
        "user": {
            "id": "u-1",
            "name": "Ada Maker",
            "username": "ada",
            "headline": "Builder",
            "coverImage": "https://ph-files.example.com/ada.png",
            "createdAt": "2020-05-01T00:00:00Z",
        },
        "topics": {
            "edges": [
                {"node": {"id": "t-1", "name": "Productivity", "slug": "productivity"}},
                {"node": {"id": "t-2", "name": "Developer Tools", "slug": "developer-tools"}},
            ]
        },
        "collections": {"totalCount": 4},
        "comments": {
            "edges": [
                {
                    "node": {
                        "id": "c-1",
                        "body": "Congrats on the launch!",
                        "createdAt": "2025-01-02T10:00:00Z",
                        "votesCount": 3,
                        "isVoted": False,
                        "parentId": None,
                        "url": "https://www.producthunt.com/posts/hunt-helper?comment=c-1",
                        "userId": "u-2",
                        "user": {"id": "u-2", "name": "Grace", "username": "grace", "headline": None, "coverImage": None},
                    }
                },
                {
                    "node": {
                        "id": "c-2",
                        "body": "Thanks!",
                        "createdAt": "2025-01-02T10:05:00Z",
                        "votesCount": 1,
                        "isVoted": False,
                        "parentId": "c-1",
                        "url": "https://www.producthunt.com/posts/hunt-helper?comment=c-2",
                        "userId": "u-1",
                        "user": {"id": "u-1", "name": "Ada Maker", "username": "ada", "headline": "Builder", "coverImage": None},
                    }
                },
            ],
            "pageInfo": {"hasNextPage": False, "endCursor": "Mg=="},
            "totalCount": 2,
        },
    }


@pytest.fixture
def sample_topic_node() -> dict:
    """Sample topic node as returned by the GraphQL API."""
    return {
        "id": "t-1",
        "name": "Productivity",
        "description": "Get more done.",
        "slug": "productivity",
        "followersCount": 1000,
        "postsCount": 250,
        "createdAt": "2016-11-01T00:00:00Z",
        "image": "https://ph-files.example.com/productivity.png",
        "url": "https://www.producthunt.com/topics/productivity",
    }


@pytest.fixture
def sample_collection_node() -> dict:
    """Sample collection node as returned by the GraphQL API."""
    return {
        "id": "c-1",
        "name": "Tools for makers",
        "tagline": "Everything you need to ship",
        "description": None,
        "url": "https://www.producthunt.com/@ada/collections/tools-for-makers",
        "followersCount": 42,
        "featuredAt": None,
        "coverImage": "https://ph-files.example.com/cover.png",
        "createdAt": "2021-03-04T00:00:00Z",
        "user": {"id": "u-1", "name": "Ada Maker", "username": "ada"},
        "posts": {"totalCount": 17},
    }

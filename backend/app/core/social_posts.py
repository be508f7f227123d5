"""Social Posts - pure fan-out result combination.

Invariants:
    - Output order is tag iteration order, then provider order within a tag
    - dedupe_by_uri keeps the FIRST occurrence of each uri
"""

from collections.abc import Iterable

from app.schemas.social import SocialPost


def hashtag_query(tag: str) -> str:
    return tag if tag.startswith("#") else f"#{tag}"


def dedupe_by_uri(batches: Iterable[list[SocialPost]]) -> list[SocialPost]:
    """Flatten per-tag batches and drop repeated uris."""
    seen: set[str] = set()
    posts: list[SocialPost] = []
    for batch in batches:
        for post in batch:
            if post.uri in seen:
                continue
            seen.add(post.uri)
            posts.append(post)
    return posts

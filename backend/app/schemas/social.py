"""Social Schemas - posts aggregated from hashtag searches."""

from pydantic import BaseModel

from app.core.domain_types import ResultSource


class SocialPost(BaseModel):
    author: str
    text: str
    uri: str
    indexed_at: str | None = None


class SocialFeed(BaseModel):
    source: ResultSource
    posts: list[SocialPost]

"""
Post record models.

PostRecord mirrors the subset of the `app.bsky.feed.post` lexicon the
pipeline reads: text, reply references, quote embeds, external links and
link facets. Everything else in the record is ignored.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from reply_labeler.models.enums import POST_COLLECTION


EMBED_RECORD = "app.bsky.embed.record"
EMBED_RECORD_WITH_MEDIA = "app.bsky.embed.recordWithMedia"
EMBED_EXTERNAL = "app.bsky.embed.external"
FACET_LINK = "app.bsky.richtext.facet#link"


class StrongRef(BaseModel):
    """com.atproto.repo.strongRef"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    uri: str = ""
    cid: Optional[str] = None


class ReplyRef(BaseModel):
    """Reply reference. `parent` may be missing in malformed records."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    parent: Optional[StrongRef] = None
    root: Optional[StrongRef] = None


class ExternalLink(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    uri: str = ""
    title: str = ""
    description: str = ""


class Embed(BaseModel):
    """
    Any post embed.

    Only the record, recordWithMedia and external variants are inspected;
    images and video embeds validate with their payload ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    type_: str = Field(default="", alias="$type")
    record: Optional[dict[str, Any]] = None
    external: Optional[ExternalLink] = None

    @model_validator(mode="after")
    def check_quoted_record(self) -> "Embed":
        if not self.record:
            return self
        target = self.record
        if self.type_ == EMBED_RECORD_WITH_MEDIA:
            target = self.record.get("record") or {}
            if not isinstance(target, dict):
                raise ValueError("recordWithMedia.record must be an object")
        if self.type_ in (EMBED_RECORD, EMBED_RECORD_WITH_MEDIA):
            if not isinstance(target.get("uri") or "", str):
                raise ValueError("quoted record uri must be a string")
        return self

    def quoted_uri(self) -> str:
        """URI of the quoted record, or "" if this embed quotes nothing."""
        if not self.record:
            return ""
        if self.type_ == EMBED_RECORD:
            return self.record.get("uri") or ""
        if self.type_ == EMBED_RECORD_WITH_MEDIA:
            inner = self.record.get("record") or {}
            return inner.get("uri") or ""
        return ""

    def external_uri(self) -> str:
        if self.type_ == EMBED_EXTERNAL and self.external is not None:
            return self.external.uri
        return ""


class Facet(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    features: list[dict[str, Any]] = Field(default_factory=list)

    def link_uris(self) -> list[str]:
        return [
            feature["uri"]
            for feature in self.features
            if feature.get("$type") == FACET_LINK and feature.get("uri")
        ]


class PostRecord(BaseModel):
    """Decoded `app.bsky.feed.post` record."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    type_: str = Field(default=POST_COLLECTION, alias="$type")
    text: str = ""
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    reply: Optional[ReplyRef] = None
    embed: Optional[Embed] = None
    facets: list[Facet] = Field(default_factory=list)


class Post(BaseModel):
    """A fetched (or streamed) post with its canonical URI and author."""

    model_config = ConfigDict(frozen=True)

    uri: str
    author_did: str
    record: PostRecord

    @property
    def text(self) -> str:
        return self.record.text

"""
Webhook event models and abstractions.
"""
from enum import Enum
from typing import BinaryIO, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)
from starlette.datastructures import Headers, QueryParams


class VcsProvider(str, Enum):
    """Supported VCS providers."""
    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET_SERVER = "bitbucket-server"
    BITBUCKET_CLOUD = "bitbucket-cloud"

    @property
    def display_name(self) -> str:
        return {
            VcsProvider.GITHUB: "GitHub",
            VcsProvider.GITLAB: "GitLab",
            VcsProvider.BITBUCKET_SERVER: "Bitbucket Server",
            VcsProvider.BITBUCKET_CLOUD: "Bitbucket Cloud",
        }[self]


class WebhookEvent(str, Enum):
    """Canonical event type of an incoming webhook."""
    PUSH = "Push"
    PR_OPENED = "PrOpened"
    PR_EDITED = "PrEdited"
    PR_MERGED = "PrMerged"
    PR_REJECTED = "PrRejected"
    TAG_PUSHED = "TagPushed"
    TAG_REMOVED = "TagRemoved"

    @property
    def is_pull_request(self) -> bool:
        return self in (
            WebhookEvent.PR_OPENED,
            WebhookEvent.PR_EDITED,
            WebhookEvent.PR_MERGED,
            WebhookEvent.PR_REJECTED,
        )

    @property
    def is_tag(self) -> bool:
        return self in (WebhookEvent.TAG_PUSHED, WebhookEvent.TAG_REMOVED)


class BranchStatus(str, Enum):
    """Lifecycle of the branch a push refers to."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class WireModel(BaseModel):
    """
    Base for the output models.

    Serialization drops every empty value (empty strings, zero numbers,
    missing and empty nested objects), so optional fields that were never
    populated stay absent on the wire.
    """

    model_config = ConfigDict(populate_by_name=True)

    @model_serializer(mode="wrap")
    def _omit_empty(self, handler: SerializerFunctionWrapHandler) -> dict:
        return {key: value for key, value in handler(self).items() if value}


class RepositoryDetails(WireModel):
    """Repository a webhook refers to."""

    name: str = Field("", description="Repository name (slug)")
    owner: str = Field("", description="Owner, namespace or project key")


class User(WireModel):
    """Identity of a user taking part in an event."""

    login: str = ""
    display_name: str = ""
    email: str = ""
    avatar_url: str = ""


class Commit(WireModel):
    """Commit referenced by a push event."""

    hash: str = ""
    message: str = ""
    url: str = ""


class PullRequestInfo(WireModel):
    """Details of the pull request behind a pull request lifecycle event."""

    id: int = 0
    title: str = ""
    compare_url: str = Field("", alias="url", description="Link to the pull request changes")
    timestamp: int = Field(0, description="Last update, Unix seconds (UTC)")
    author: User = Field(default_factory=User)
    triggered_by: User = Field(default_factory=User)
    target_repository: RepositoryDetails = Field(default_factory=RepositoryDetails)
    target_branch: str = ""
    target_hash: str = ""
    source_repository: RepositoryDetails = Field(default_factory=RepositoryDetails)
    source_branch: str = ""
    source_hash: str = ""


class TagInfo(WireModel):
    """Details of the tag behind a tag event."""

    name: str = ""
    hash: str = ""
    target_hash: str = ""
    message: str = ""
    repository: RepositoryDetails = Field(default_factory=RepositoryDetails)
    author: User = Field(default_factory=User)


class WebhookInfo(WireModel):
    """Unified webhook event across the supported VCS providers."""

    target_repository_details: RepositoryDetails = Field(default_factory=RepositoryDetails)
    target_branch: str = Field("", alias="branch")
    pull_request_id: int = 0
    source_repository_details: RepositoryDetails = Field(default_factory=RepositoryDetails)
    source_branch: str = ""
    timestamp: int = Field(0, description="Seconds from epoch (UTC)")
    event: Optional[WebhookEvent] = None
    # Push only
    commit: Commit = Field(default_factory=Commit)
    before_commit: Commit = Field(default_factory=Commit)
    branch_status: Optional[BranchStatus] = None
    triggered_by: User = Field(default_factory=User)
    committer: User = Field(default_factory=User)
    author: User = Field(default_factory=User)
    compare_url: str = ""
    pull_request: Optional[PullRequestInfo] = None
    tag: Optional[TagInfo] = None

    @model_validator(mode="after")
    def _check_event_details(self) -> "WebhookInfo":
        is_push = self.event == WebhookEvent.PUSH
        push_details = (
            self.commit != Commit()
            or self.before_commit != Commit()
            or self.branch_status is not None
            or self.compare_url
        )
        if push_details and not is_push:
            raise ValueError("commit, branch status and compare URL are only set on push events")
        if self.pull_request is not None and not (self.event and self.event.is_pull_request):
            raise ValueError("pull request details are only set on pull request events")
        if self.tag is not None and not (self.event and self.event.is_tag):
            raise ValueError("tag details are only set on tag events")
        return self

    def to_wire(self) -> dict:
        """Wire representation as a JSON-compatible dict."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "WebhookInfo":
        return cls.model_validate_json(data)


class WebhookOrigin(BaseModel):
    """Configuration of the hook a request is parsed against."""

    model_config = ConfigDict(frozen=True)

    provider: VcsProvider
    origin_url: str = Field("", description="URL of the VCS service, used to build links")
    secret: str = Field("", description="Shared secret or token; empty disables verification")


class WebhookRequest:
    """
    Transport-neutral view of one inbound webhook HTTP request.

    The body is a binary stream that is read once and closed by
    ``parse_incoming_webhook``.
    """

    def __init__(
        self,
        body: Optional[BinaryIO],
        headers: Optional[Mapping[str, str]] = None,
        query_params: Union[QueryParams, Mapping[str, str], str, None] = None,
    ):
        self.body = body
        self.headers = Headers(headers=dict(headers or {}))
        self.query_params = QueryParams(query_params or "")

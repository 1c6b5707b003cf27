"""
Bitbucket Server (Data Center) webhook payload schema.

Bitbucket Server uses camelCase keys; one document shape covers every
event key, with the event-specific parts left empty when not sent.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BitbucketServerModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BitbucketServerLink(BitbucketServerModel):
    href: str = ""


class BitbucketServerLinks(BitbucketServerModel):
    self_links: list[BitbucketServerLink] = Field(default_factory=list, alias="self")

    @property
    def first_href(self) -> str:
        return self.self_links[0].href if self.self_links else ""


class BitbucketServerProject(BitbucketServerModel):
    key: str = ""


class BitbucketServerRepository(BitbucketServerModel):
    slug: str = ""
    project: BitbucketServerProject = Field(default_factory=BitbucketServerProject)


class BitbucketServerUser(BitbucketServerModel):
    name: str = ""
    email_address: Optional[str] = None
    display_name: str = ""
    links: BitbucketServerLinks = Field(default_factory=BitbucketServerLinks)


class BitbucketServerParticipant(BitbucketServerModel):
    user: BitbucketServerUser = Field(default_factory=BitbucketServerUser)


class BitbucketServerPullRequestRef(BitbucketServerModel):
    id: str = ""
    display_id: str = ""
    latest_commit: str = ""
    repository: BitbucketServerRepository = Field(default_factory=BitbucketServerRepository)


class BitbucketServerPullRequest(BitbucketServerModel):
    id: int = 0
    title: str = ""
    # Milliseconds from epoch
    updated_date: int = 0
    from_ref: BitbucketServerPullRequestRef = Field(default_factory=BitbucketServerPullRequestRef)
    to_ref: BitbucketServerPullRequestRef = Field(default_factory=BitbucketServerPullRequestRef)
    author: BitbucketServerParticipant = Field(default_factory=BitbucketServerParticipant)
    links: BitbucketServerLinks = Field(default_factory=BitbucketServerLinks)


class BitbucketServerRef(BitbucketServerModel):
    id: str = ""
    display_id: str = ""
    # BRANCH or TAG
    type: str = ""


class BitbucketServerRefChange(BitbucketServerModel):
    ref: Optional[BitbucketServerRef] = None
    ref_id: str = ""
    from_hash: str = ""
    to_hash: str = ""
    # ADD, UPDATE or DELETE
    type: str = ""

    @property
    def ref_type(self) -> str:
        """BRANCH or TAG; inferred from the ref id when the ref object is missing."""
        if self.ref is not None and self.ref.type:
            return self.ref.type
        if self.ref_id.startswith("refs/tags/"):
            return "TAG"
        if self.ref_id.startswith("refs/heads/"):
            return "BRANCH"
        return ""


class BitbucketServerPayload(BitbucketServerModel):
    # "2006-01-02T15:04:05-0700"
    date: str = ""
    actor: BitbucketServerUser = Field(default_factory=BitbucketServerUser)
    repository: BitbucketServerRepository = Field(default_factory=BitbucketServerRepository)
    pull_request: Optional[BitbucketServerPullRequest] = None
    changes: list[BitbucketServerRefChange] = Field(default_factory=list)

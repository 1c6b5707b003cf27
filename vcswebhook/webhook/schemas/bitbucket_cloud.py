"""
Bitbucket Cloud webhook payload schema.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class BitbucketCloudLink(BaseModel):
    href: str = ""


class BitbucketCloudLinks(BaseModel):
    html: BitbucketCloudLink = Field(default_factory=BitbucketCloudLink)
    avatar: BitbucketCloudLink = Field(default_factory=BitbucketCloudLink)


class BitbucketCloudUser(BaseModel):
    nickname: str = ""
    display_name: str = ""
    links: BitbucketCloudLinks = Field(default_factory=BitbucketCloudLinks)


class BitbucketCloudCommitAuthor(BaseModel):
    # RFC 5322 address, e.g. "Barry Gibbs <bg@example.com>"
    raw: str = ""
    user: Optional[BitbucketCloudUser] = None


class BitbucketCloudCommit(BaseModel):
    hash: str = ""
    message: str = ""
    date: Optional[datetime] = None
    author: BitbucketCloudCommitAuthor = Field(default_factory=BitbucketCloudCommitAuthor)
    links: BitbucketCloudLinks = Field(default_factory=BitbucketCloudLinks)


class BitbucketCloudBranchState(BaseModel):
    name: str = ""
    target: BitbucketCloudCommit = Field(default_factory=BitbucketCloudCommit)


class BitbucketCloudChange(BaseModel):
    # new is null when the branch was deleted, old when it was created
    new: Optional[BitbucketCloudBranchState] = None
    old: Optional[BitbucketCloudBranchState] = None


class BitbucketCloudPush(BaseModel):
    changes: list[BitbucketCloudChange] = Field(default_factory=list)


class BitbucketCloudRepository(BaseModel):
    # Workspace and repository slugs joined with a '/'
    full_name: str = ""


class BitbucketCloudBranch(BaseModel):
    name: str = ""


class BitbucketCloudCommitRef(BaseModel):
    hash: str = ""


class BitbucketCloudPullRequestEndpoint(BaseModel):
    branch: BitbucketCloudBranch = Field(default_factory=BitbucketCloudBranch)
    commit: BitbucketCloudCommitRef = Field(default_factory=BitbucketCloudCommitRef)
    repository: BitbucketCloudRepository = Field(default_factory=BitbucketCloudRepository)


class BitbucketCloudPullRequest(BaseModel):
    id: int = 0
    title: str = ""
    updated_on: Optional[datetime] = None
    author: BitbucketCloudUser = Field(default_factory=BitbucketCloudUser)
    source: BitbucketCloudPullRequestEndpoint = Field(default_factory=BitbucketCloudPullRequestEndpoint)
    destination: BitbucketCloudPullRequestEndpoint = Field(default_factory=BitbucketCloudPullRequestEndpoint)
    links: BitbucketCloudLinks = Field(default_factory=BitbucketCloudLinks)


class BitbucketCloudPayload(BaseModel):
    push: Optional[BitbucketCloudPush] = None
    pullrequest: Optional[BitbucketCloudPullRequest] = None
    repository: BitbucketCloudRepository = Field(default_factory=BitbucketCloudRepository)
    actor: BitbucketCloudUser = Field(default_factory=BitbucketCloudUser)

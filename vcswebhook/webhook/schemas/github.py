"""
GitHub webhook payload schema.

Only the fields used to build a WebhookInfo are declared. GitHub sends
``null`` for many user and commit attributes, so those are optional.
"""
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field


class GitHubUser(BaseModel):
    login: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class GitHubCommitAuthor(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None


class GitHubCommit(BaseModel):
    message: Optional[str] = None
    url: Optional[str] = None
    timestamp: Optional[datetime] = None
    author: Optional[GitHubCommitAuthor] = None
    committer: Optional[GitHubCommitAuthor] = None


class GitHubRepository(BaseModel):
    name: str = ""
    full_name: str = ""
    owner: GitHubUser = Field(default_factory=GitHubUser)


class GitHubPushPayload(BaseModel):
    """Body of the ``push`` event (branches and tags)."""

    ref: str = ""
    before: str = ""
    after: str = ""
    created: bool = False
    deleted: bool = False
    head_commit: Optional[GitHubCommit] = None
    repository: GitHubRepository = Field(default_factory=GitHubRepository)
    pusher: Optional[GitHubUser] = None
    sender: Optional[GitHubUser] = None


class GitHubPullRequestBranch(BaseModel):
    ref: str = ""
    sha: str = ""
    repo: Optional[GitHubRepository] = None


class GitHubPullRequest(BaseModel):
    number: int = 0
    title: str = ""
    html_url: str = ""
    updated_at: Optional[datetime] = None
    merged: Optional[bool] = None
    user: GitHubUser = Field(default_factory=GitHubUser)
    base: GitHubPullRequestBranch = Field(default_factory=GitHubPullRequestBranch)
    head: GitHubPullRequestBranch = Field(default_factory=GitHubPullRequestBranch)


class GitHubPullRequestPayload(BaseModel):
    """Body of the ``pull_request`` event."""

    action: str = ""
    pull_request: GitHubPullRequest
    sender: Optional[GitHubUser] = None


GitHubEvent = Union[GitHubPushPayload, GitHubPullRequestPayload]

# X-GitHub-Event header value -> payload schema
EVENT_SCHEMAS: dict[str, type[GitHubEvent]] = {
    "push": GitHubPushPayload,
    "pull_request": GitHubPullRequestPayload,
}

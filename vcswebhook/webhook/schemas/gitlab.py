"""
GitLab webhook payload schema.
"""
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field


class GitLabProject(BaseModel):
    path_with_namespace: str = ""


class GitLabCommitAuthor(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class GitLabCommit(BaseModel):
    id: str = ""
    message: Optional[str] = None
    timestamp: Optional[datetime] = None
    url: Optional[str] = None
    author: GitLabCommitAuthor = Field(default_factory=GitLabCommitAuthor)


class GitLabPushPayload(BaseModel):
    """Body of the ``Push Hook`` event."""

    ref: str = ""
    before: str = ""
    after: str = ""
    user_name: Optional[str] = None
    user_username: Optional[str] = None
    user_email: Optional[str] = None
    user_avatar: Optional[str] = None
    project: GitLabProject = Field(default_factory=GitLabProject)
    commits: list[GitLabCommit] = Field(default_factory=list)


class GitLabUser(BaseModel):
    username: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class GitLabMergeRequestAttributes(BaseModel):
    iid: int = 0
    action: Optional[str] = None
    title: str = ""
    url: str = ""
    # "2021-09-09 15:40:47 UTC" on older instances, ISO 8601 on newer ones
    updated_at: str = ""
    source_branch: str = ""
    target_branch: str = ""
    source: GitLabProject = Field(default_factory=GitLabProject)
    target: GitLabProject = Field(default_factory=GitLabProject)
    last_commit: GitLabCommit = Field(default_factory=GitLabCommit)


class GitLabMergeRequestPayload(BaseModel):
    """Body of the ``Merge Request Hook`` event."""

    user: GitLabUser = Field(default_factory=GitLabUser)
    project: GitLabProject = Field(default_factory=GitLabProject)
    object_attributes: GitLabMergeRequestAttributes


GitLabEvent = Union[GitLabPushPayload, GitLabMergeRequestPayload]

# X-Gitlab-Event header value -> payload schema
EVENT_SCHEMAS: dict[str, type[GitLabEvent]] = {
    "Push Hook": GitLabPushPayload,
    "Merge Request Hook": GitLabMergeRequestPayload,
}

"""
GitLab webhook parser.
"""
from datetime import datetime
from typing import Optional

from pydantic import TypeAdapter, ValidationError
from starlette.datastructures import Headers

from ..errors import AuthenticationError, PayloadError
from ..models import (
    Commit,
    PullRequestInfo,
    User,
    VcsProvider,
    WebhookEvent,
    WebhookInfo,
    WebhookRequest,
)
from ..schemas.gitlab import (
    EVENT_SCHEMAS,
    GitLabCommit,
    GitLabMergeRequestPayload,
    GitLabPushPayload,
)
from ..utils import (
    branch_name,
    branch_status_from_hashes,
    secure_compare,
    split_full_name,
    to_unix,
    unwrap_or,
)
from .base import WebhookParser

TOKEN_HEADER = "X-Gitlab-Token"
EVENT_HEADER = "X-Gitlab-Event"

# Merge request timestamps sent by older GitLab versions, "2021-09-09 15:40:47 UTC"
LEGACY_TIME_LAYOUT = "%Y-%m-%d %H:%M:%S"
LEGACY_OFFSET_LAYOUT = "%Y-%m-%d %H:%M:%S %z"

MERGE_REQUEST_ACTIONS = {
    "open": WebhookEvent.PR_OPENED,
    "reopen": WebhookEvent.PR_OPENED,
    "update": WebhookEvent.PR_EDITED,
    "merge": WebhookEvent.PR_MERGED,
    "close": WebhookEvent.PR_REJECTED,
}

_datetime_adapter = TypeAdapter(datetime)


def parse_gitlab_time(value: str) -> int:
    """
    Parse a GitLab timestamp into Unix seconds.

    Legacy timestamps end in a numeric offset or a zone abbreviation. An
    abbreviation carries no offset of its own, so the time is read as UTC.
    """
    try:
        return to_unix(datetime.strptime(value, LEGACY_OFFSET_LAYOUT))
    except ValueError:
        pass
    moment, _, zone = value.rpartition(" ")
    if zone.isalpha():
        try:
            return to_unix(datetime.strptime(moment, LEGACY_TIME_LAYOUT))
        except ValueError:
            pass
    try:
        return to_unix(_datetime_adapter.validate_python(value))
    except ValidationError as e:
        raise PayloadError(f"error parsing GitLab timestamp {value!r}") from e


class GitLabWebhookParser(WebhookParser):
    """Parser for GitLab webhooks."""

    provider = VcsProvider.GITLAB
    event_header = EVENT_HEADER

    def __init__(self, endpoint: str = "", secret: str = ""):
        super().__init__(endpoint.rstrip("/").removesuffix("/api/v4"), secret)

    def authenticate(self, request: WebhookRequest) -> bytes:
        """Compare the X-Gitlab-Token header with the secret token."""
        body = self.read_body(request)
        token = request.headers.get(TOKEN_HEADER, "")
        if (self.secret or token) and not secure_compare(token, self.secret):
            raise AuthenticationError("token mismatch")
        return body

    def extract(self, payload: bytes, headers: Headers) -> Optional[WebhookInfo]:
        event_type = self.event_type(headers)
        schema = EVENT_SCHEMAS.get(event_type)
        if schema is None:
            return self.ignore(f"event {event_type!r}")

        event = self.decode(schema, payload)
        if isinstance(event, GitLabPushPayload):
            return self._parse_push_event(event)
        return self._parse_mr_event(event)

    def _parse_push_event(self, event: GitLabPushPayload) -> WebhookInfo:
        repository = split_full_name(event.project.path_with_namespace)
        head_commit = self._head_commit(event)
        compare_url = ""
        if self.endpoint:
            compare_url = (
                f"{self.endpoint}/{repository.owner}/{repository.name}"
                f"/-/compare/{event.before}...{event.after}"
            )
        commit_author = User(
            display_name=unwrap_or(head_commit.author.name, ""),
            email=unwrap_or(head_commit.author.email, ""),
        )
        return WebhookInfo(
            target_repository_details=repository,
            target_branch=branch_name(event.ref),
            timestamp=to_unix(head_commit.timestamp),
            event=WebhookEvent.PUSH,
            commit=Commit(
                hash=event.after,
                message=unwrap_or(head_commit.message, ""),
                url=unwrap_or(head_commit.url, ""),
            ),
            before_commit=Commit(hash=event.before),
            branch_status=branch_status_from_hashes(event.before, event.after),
            triggered_by=User(
                login=unwrap_or(event.user_username, ""),
                display_name=unwrap_or(event.user_name, ""),
                email=unwrap_or(event.user_email, ""),
                avatar_url=unwrap_or(event.user_avatar, ""),
            ),
            committer=commit_author,
            author=commit_author,
            compare_url=compare_url,
        )

    def _head_commit(self, event: GitLabPushPayload) -> GitLabCommit:
        """The pushed commit; GitLab lists commits oldest first."""
        for commit in event.commits:
            if commit.id == event.after:
                return commit
        return event.commits[-1] if event.commits else GitLabCommit()

    def _parse_mr_event(self, event: GitLabMergeRequestPayload) -> Optional[WebhookInfo]:
        attributes = event.object_attributes
        webhook_event = MERGE_REQUEST_ACTIONS.get(attributes.action or "")
        if webhook_event is None:
            return self.ignore(f"merge request action {attributes.action!r}")

        timestamp = parse_gitlab_time(attributes.updated_at)
        source = split_full_name(attributes.source.path_with_namespace)
        target = split_full_name(attributes.target.path_with_namespace)
        return WebhookInfo(
            pull_request_id=attributes.iid,
            source_repository_details=source,
            source_branch=attributes.source_branch,
            target_repository_details=target,
            target_branch=attributes.target_branch,
            timestamp=timestamp,
            event=webhook_event,
            pull_request=PullRequestInfo(
                id=attributes.iid,
                title=attributes.title,
                compare_url=attributes.url,
                timestamp=timestamp,
                author=User(
                    login=unwrap_or(event.user.username, ""),
                    display_name=unwrap_or(event.user.name, ""),
                    email=unwrap_or(event.user.email, ""),
                    avatar_url=unwrap_or(event.user.avatar_url, ""),
                ),
                triggered_by=User(
                    login=unwrap_or(event.user.username, ""),
                    email=unwrap_or(attributes.last_commit.author.email, ""),
                ),
                target_repository=target,
                target_branch=attributes.target_branch,
                source_repository=source,
                source_branch=attributes.source_branch,
                source_hash=attributes.last_commit.id,
            ),
        )

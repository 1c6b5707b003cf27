"""
Bitbucket Cloud webhook parser.
"""
from email.utils import parseaddr
from typing import Optional

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
from ..schemas.bitbucket_cloud import (
    BitbucketCloudBranchState,
    BitbucketCloudChange,
    BitbucketCloudCommit,
    BitbucketCloudPayload,
)
from ..utils import (
    NIL_HASH,
    branch_status_from_hashes,
    secure_compare,
    split_full_name,
    to_unix,
)
from .base import WebhookParser

TOKEN_QUERY_PARAM = "token"
EVENT_HEADER = "X-Event-Key"
DEFAULT_ENDPOINT = "https://bitbucket.org"

PULL_REQUEST_EVENTS = {
    "pullrequest:created": WebhookEvent.PR_OPENED,
    "pullrequest:updated": WebhookEvent.PR_EDITED,
}


class BitbucketCloudWebhookParser(WebhookParser):
    """Parser for Bitbucket Cloud webhooks."""

    provider = VcsProvider.BITBUCKET_CLOUD
    event_header = EVENT_HEADER

    def __init__(self, endpoint: str = "", secret: str = ""):
        super().__init__(endpoint or DEFAULT_ENDPOINT, secret)

    def authenticate(self, request: WebhookRequest) -> bytes:
        """Compare the ``token`` query parameter with the secret token."""
        body = self.read_body(request)
        if self.secret or TOKEN_QUERY_PARAM in request.query_params:
            token = request.query_params.get(TOKEN_QUERY_PARAM, "")
            if not secure_compare(token, self.secret):
                raise AuthenticationError("token mismatch")
        return body

    def extract(self, payload: bytes, headers: Headers) -> Optional[WebhookInfo]:
        event_type = self.event_type(headers)
        event = self.decode(BitbucketCloudPayload, payload)

        if event_type == "repo:push":
            return self._parse_push_event(event)
        if event_type in PULL_REQUEST_EVENTS:
            return self._parse_pr_event(event, PULL_REQUEST_EVENTS[event_type])
        return self.ignore(f"event {event_type!r}")

    def _parse_push_event(self, event: BitbucketCloudPayload) -> Optional[WebhookInfo]:
        # Only the first change of a push is reported
        if event.push is None or not event.push.changes:
            return self.ignore("push without changes")
        change = event.push.changes[0]

        last_commit = change.new.target if change.new else BitbucketCloudCommit()
        before_hash = self._hash(change.old)
        after_hash = self._hash(change.new)
        login = self._login(event, last_commit)
        return WebhookInfo(
            target_repository_details=split_full_name(event.repository.full_name),
            target_branch=self._branch_name(change),
            timestamp=to_unix(last_commit.date or (change.old.target.date if change.old else None)),
            event=WebhookEvent.PUSH,
            commit=Commit(
                hash=after_hash,
                message=last_commit.message,
                url=last_commit.links.html.href,
            ),
            before_commit=Commit(hash=before_hash),
            branch_status=branch_status_from_hashes(before_hash, after_hash),
            triggered_by=User(login=event.actor.nickname),
            committer=User(login=login),
            author=User(login=login, email=self._email(last_commit)),
            compare_url=self._compare_url(event, after_hash, before_hash),
        )

    def _hash(self, state: Optional[BitbucketCloudBranchState]) -> str:
        """Head of one side of a change; a missing side maps to the nil hash."""
        if state is None:
            return NIL_HASH
        return state.target.hash

    def _branch_name(self, change: BitbucketCloudChange) -> str:
        """Branch the change refers to, whether it was created, updated or deleted."""
        if change.new and change.new.name:
            return change.new.name
        return change.old.name if change.old else ""

    def _compare_url(self, event: BitbucketCloudPayload, after_hash: str, before_hash: str) -> str:
        if after_hash in ("", NIL_HASH) or before_hash in ("", NIL_HASH):
            return ""
        return (
            f"{self.endpoint}/{event.repository.full_name}"
            f"/branches/compare/{after_hash}..{before_hash}#diff"
        )

    def _email(self, commit: BitbucketCloudCommit) -> str:
        """Email of the commit author, taken from the raw ``Name <email>`` string."""
        _, address = parseaddr(commit.author.raw)
        return address if "@" in address else commit.author.raw

    def _login(self, event: BitbucketCloudPayload, commit: BitbucketCloudCommit) -> str:
        if commit.author.user and commit.author.user.nickname:
            return commit.author.user.nickname
        return event.actor.nickname

    def _parse_pr_event(self, event: BitbucketCloudPayload, webhook_event: WebhookEvent) -> WebhookInfo:
        pull_request = event.pullrequest
        if pull_request is None:
            raise PayloadError("pullrequest is missing from the Bitbucket Cloud payload")

        target = split_full_name(pull_request.destination.repository.full_name)
        source = split_full_name(pull_request.source.repository.full_name)
        timestamp = to_unix(pull_request.updated_on)
        return WebhookInfo(
            pull_request_id=pull_request.id,
            target_repository_details=target,
            target_branch=pull_request.destination.branch.name,
            source_repository_details=source,
            source_branch=pull_request.source.branch.name,
            timestamp=timestamp,
            event=webhook_event,
            pull_request=PullRequestInfo(
                id=pull_request.id,
                title=pull_request.title,
                compare_url=pull_request.links.html.href,
                timestamp=timestamp,
                author=User(
                    login=pull_request.author.nickname,
                    display_name=pull_request.author.display_name,
                    avatar_url=pull_request.author.links.avatar.href,
                ),
                triggered_by=User(login=event.actor.nickname),
                target_repository=target,
                target_branch=pull_request.destination.branch.name,
                target_hash=pull_request.destination.commit.hash,
                source_repository=source,
                source_branch=pull_request.source.branch.name,
                source_hash=pull_request.source.commit.hash,
            ),
        )

"""
Bitbucket Server webhook parser.
"""
from datetime import datetime
from typing import Optional

from starlette.datastructures import Headers

from ..errors import AuthenticationError, PayloadError
from ..models import (
    Commit,
    PullRequestInfo,
    RepositoryDetails,
    TagInfo,
    User,
    VcsProvider,
    WebhookEvent,
    WebhookInfo,
    WebhookRequest,
)
from ..schemas.bitbucket_server import (
    BitbucketServerPayload,
    BitbucketServerPullRequestRef,
    BitbucketServerRefChange,
    BitbucketServerRepository,
    BitbucketServerUser,
)
from ..utils import (
    branch_name,
    branch_status_from_hashes,
    calculate_payload_signature,
    secure_compare,
    tag_name,
    to_unix,
    unwrap_or,
)
from .base import WebhookParser

SIGNATURE_HEADER = "X-Hub-Signature"
EVENT_HEADER = "X-Event-Key"
DATE_LAYOUT = "%Y-%m-%dT%H:%M:%S%z"

PULL_REQUEST_EVENTS = {
    "pr:opened": WebhookEvent.PR_OPENED,
    "pr:from_ref_updated": WebhookEvent.PR_EDITED,
    "pr:merged": WebhookEvent.PR_MERGED,
    "pr:declined": WebhookEvent.PR_REJECTED,
    "pr:deleted": WebhookEvent.PR_REJECTED,
}


class BitbucketServerWebhookParser(WebhookParser):
    """Parser for Bitbucket Server (Data Center) webhooks."""

    provider = VcsProvider.BITBUCKET_SERVER
    event_header = EVENT_HEADER

    def authenticate(self, request: WebhookRequest) -> bytes:
        """Verify the ``sha256=<hex>`` HMAC in the X-Hub-Signature header."""
        body = self.read_body(request)
        signature = request.headers.get(SIGNATURE_HEADER, "")
        if self.secret or signature:
            expected = "sha256=" + calculate_payload_signature(body, self.secret)
            if not secure_compare(signature, expected):
                raise AuthenticationError("payload signature mismatch")
        return body

    def extract(self, payload: bytes, headers: Headers) -> Optional[WebhookInfo]:
        event_type = self.event_type(headers)
        event = self.decode(BitbucketServerPayload, payload)

        if event_type == "repo:refs_changed":
            return self._parse_changed_refs(event)
        if event_type in PULL_REQUEST_EVENTS:
            return self._parse_pr_event(event, PULL_REQUEST_EVENTS[event_type])
        return self.ignore(f"event {event_type!r}")

    def _parse_changed_refs(self, event: BitbucketServerPayload) -> Optional[WebhookInfo]:
        """A single refs_changed event lists every ref the push touched; the first usable change wins."""
        for change in event.changes:
            if change.ref_type == "BRANCH":
                return self._parse_push_event(event, change)
            if change.ref_type == "TAG":
                info = self._parse_tag_event(event, change)
                if info is not None:
                    return info
        return self.ignore("no branch or tag change")

    def _parse_push_event(self, event: BitbucketServerPayload, change: BitbucketServerRefChange) -> WebhookInfo:
        timestamp = self._parse_date(event.date)
        repository = self._repository(event.repository)
        repository_url = f"{self.endpoint}/projects/{repository.owner}/repos/{repository.name}"
        commit_url = compare_url = ""
        if self.endpoint:
            commit_url = f"{repository_url}/commits/{change.to_hash}"
            compare_url = (
                f"{repository_url}/compare/diff"
                f"?targetBranch={change.from_hash}&sourceBranch={change.to_hash}"
            )
        committer = User(
            display_name=event.actor.display_name,
            email=unwrap_or(event.actor.email_address, ""),
        )
        return WebhookInfo(
            target_repository_details=repository,
            target_branch=branch_name(change.ref_id or (change.ref.id if change.ref else "")),
            timestamp=timestamp,
            event=WebhookEvent.PUSH,
            commit=Commit(hash=change.to_hash, url=commit_url),
            before_commit=Commit(hash=change.from_hash),
            branch_status=branch_status_from_hashes(change.from_hash, change.to_hash),
            triggered_by=User(login=event.actor.name, display_name=event.actor.display_name),
            committer=committer,
            author=committer,
            compare_url=compare_url,
        )

    def _parse_tag_event(self, event: BitbucketServerPayload, change: BitbucketServerRefChange) -> Optional[WebhookInfo]:
        if change.type == "ADD":
            webhook_event, tag_hash = WebhookEvent.TAG_PUSHED, change.to_hash
        elif change.type == "DELETE":
            webhook_event, tag_hash = WebhookEvent.TAG_REMOVED, change.from_hash
        else:
            return self.ignore(f"tag change type {change.type!r}")

        name = change.ref.display_id if change.ref and change.ref.display_id else tag_name(change.ref_id)
        return WebhookInfo(
            event=webhook_event,
            tag=TagInfo(
                name=name,
                hash=tag_hash,
                repository=self._repository(event.repository),
                author=self._user(event.actor),
            ),
        )

    def _parse_pr_event(self, event: BitbucketServerPayload, webhook_event: WebhookEvent) -> WebhookInfo:
        timestamp = self._parse_date(event.date)
        pull_request = event.pull_request
        if pull_request is None:
            raise PayloadError("pullRequest is missing from the Bitbucket Server payload")

        target = self._repository(pull_request.to_ref.repository)
        source = self._repository(pull_request.from_ref.repository)
        compare_url = pull_request.links.first_href
        return WebhookInfo(
            pull_request_id=pull_request.id,
            target_repository_details=target,
            target_branch=self._ref_branch(pull_request.to_ref),
            source_repository_details=source,
            source_branch=self._ref_branch(pull_request.from_ref),
            timestamp=timestamp,
            event=webhook_event,
            pull_request=PullRequestInfo(
                id=pull_request.id,
                title=pull_request.title,
                compare_url=f"{compare_url}/diff" if compare_url else "",
                timestamp=pull_request.updated_date // 1000,
                author=self._user(pull_request.author.user),
                triggered_by=User(login=event.actor.name),
                target_repository=target,
                target_branch=self._ref_branch(pull_request.to_ref),
                target_hash=pull_request.to_ref.latest_commit,
                source_repository=source,
                source_branch=self._ref_branch(pull_request.from_ref),
                source_hash=pull_request.from_ref.latest_commit,
            ),
        )

    def _parse_date(self, value: str) -> int:
        try:
            return to_unix(datetime.strptime(value, DATE_LAYOUT))
        except ValueError as e:
            raise PayloadError(f"error parsing Bitbucket Server date {value!r}: {e}") from e

    def _ref_branch(self, ref: BitbucketServerPullRequestRef) -> str:
        return branch_name(ref.id)

    def _repository(self, repository: BitbucketServerRepository) -> RepositoryDetails:
        return RepositoryDetails(name=repository.slug, owner=repository.project.key)

    def _user(self, user: BitbucketServerUser) -> User:
        return User(
            login=user.name,
            display_name=user.display_name,
            email=unwrap_or(user.email_address, ""),
            avatar_url=user.links.first_href,
        )

"""
GitHub webhook parser.
"""
import hashlib
import hmac
import logging
from typing import Optional
from urllib.parse import parse_qs

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
from ..schemas.github import (
    EVENT_SCHEMAS,
    GitHubCommit,
    GitHubCommitAuthor,
    GitHubPullRequestPayload,
    GitHubPushPayload,
    GitHubRepository,
    GitHubUser,
)
from ..utils import (
    TAG_REF_PREFIX,
    branch_name,
    branch_status_from_hashes,
    tag_name,
    to_unix,
    unwrap_or,
)
from .base import WebhookParser

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature-256"
EVENT_HEADER = "X-GitHub-Event"
DEFAULT_ENDPOINT = "https://github.com"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class GitHubWebhookParser(WebhookParser):
    """Parser for GitHub and GitHub Enterprise webhooks."""

    provider = VcsProvider.GITHUB
    event_header = EVENT_HEADER

    def __init__(self, endpoint: str = "", secret: str = ""):
        super().__init__(self._web_endpoint(endpoint), secret)
        logger.debug(f"GitHub URL: {self.endpoint}")

    @staticmethod
    def _web_endpoint(endpoint: str) -> str:
        """Links point at the web interface, not at the REST API the origin may name."""
        if not endpoint:
            return DEFAULT_ENDPOINT
        endpoint = endpoint.rstrip("/").replace("://api.", "://", 1)
        return endpoint.removesuffix("/api/v3")

    def authenticate(self, request: WebhookRequest) -> bytes:
        """Verify the X-Hub-Signature-256 HMAC of the body."""
        signature = request.headers.get(SIGNATURE_HEADER, "")
        if self.secret and not signature:
            raise AuthenticationError(f"{SIGNATURE_HEADER} header is missing")

        body = self.read_body(request)
        if self.secret:
            self._verify_signature(body, signature)

        if request.headers.get("content-type", "").startswith(FORM_CONTENT_TYPE):
            return self._form_payload(body)
        return body

    def _verify_signature(self, body: bytes, signature: str) -> None:
        algorithm, _, digest = signature.partition("=")
        if algorithm != "sha256":
            raise AuthenticationError(
                f"error decoding signature {signature!r}: unsupported hash type {algorithm!r}"
            )
        try:
            actual = bytes.fromhex(digest)
        except ValueError as e:
            raise AuthenticationError(f"error decoding signature {signature!r}: {e}") from e

        expected = hmac.new(self.secret.encode(), body, hashlib.sha256).digest()
        if not hmac.compare_digest(actual, expected):
            raise AuthenticationError("signature mismatch: payload signature check failed")

    def _form_payload(self, body: bytes) -> bytes:
        """The JSON document of a form encoded delivery is in its ``payload`` field."""
        values = parse_qs(body.decode("utf-8", errors="replace")).get("payload")
        if not values:
            raise PayloadError("form encoded payload has no 'payload' field")
        return values[0].encode()

    def extract(self, payload: bytes, headers: Headers) -> Optional[WebhookInfo]:
        event_type = self.event_type(headers)
        schema = EVENT_SCHEMAS.get(event_type)
        if schema is None:
            return self.ignore(f"event {event_type!r}")

        event = self.decode(schema, payload)
        if isinstance(event, GitHubPushPayload):
            if event.ref.startswith(TAG_REF_PREFIX):
                return self._parse_tag_event(event)
            return self._parse_push_event(event)
        return self._parse_pr_event(event)

    def _parse_push_event(self, event: GitHubPushPayload) -> WebhookInfo:
        repository = self._repository(event.repository)
        head_commit = event.head_commit or GitHubCommit()
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
            triggered_by=self._user(event.pusher),
            committer=self._commit_author(head_commit.committer),
            author=self._commit_author(head_commit.author),
            compare_url=(
                f"{self.endpoint}/{repository.owner}/{repository.name}"
                f"/compare/{event.before}...{event.after}"
            ),
        )

    def _parse_tag_event(self, event: GitHubPushPayload) -> Optional[WebhookInfo]:
        if event.created:
            webhook_event, tag_hash = WebhookEvent.TAG_PUSHED, event.after
        elif event.deleted:
            webhook_event, tag_hash = WebhookEvent.TAG_REMOVED, event.before
        else:
            return self.ignore(f"tag {event.ref!r} moved")

        pusher = event.pusher or GitHubUser()
        return WebhookInfo(
            event=webhook_event,
            tag=TagInfo(
                name=tag_name(event.ref),
                hash=tag_hash,
                repository=self._repository(event.repository),
                author=User(
                    display_name=unwrap_or(pusher.name, ""),
                    email=unwrap_or(pusher.email, ""),
                ),
            ),
        )

    def _parse_pr_event(self, event: GitHubPullRequestPayload) -> Optional[WebhookInfo]:
        pull_request = event.pull_request
        if event.action in ("opened", "reopened"):
            webhook_event = WebhookEvent.PR_OPENED
        elif event.action in ("synchronize", "edited"):
            webhook_event = WebhookEvent.PR_EDITED
        elif event.action == "closed":
            webhook_event = WebhookEvent.PR_MERGED if pull_request.merged else WebhookEvent.PR_REJECTED
        else:
            return self.ignore(f"pull request action {event.action!r}")

        target = self._repository(pull_request.base.repo)
        source = self._repository(pull_request.head.repo)
        timestamp = to_unix(pull_request.updated_at)
        return WebhookInfo(
            pull_request_id=pull_request.number,
            target_repository_details=target,
            target_branch=pull_request.base.ref,
            source_repository_details=source,
            source_branch=pull_request.head.ref,
            timestamp=timestamp,
            event=webhook_event,
            pull_request=PullRequestInfo(
                id=pull_request.number,
                title=pull_request.title,
                compare_url=f"{pull_request.html_url}/files" if pull_request.html_url else "",
                timestamp=timestamp,
                author=self._avatar_user(pull_request.user),
                triggered_by=self._avatar_user(event.sender),
                target_repository=target,
                target_branch=pull_request.base.ref,
                target_hash=pull_request.base.sha,
                source_repository=source,
                source_branch=pull_request.head.ref,
                source_hash=pull_request.head.sha,
            ),
        )

    def _repository(self, repository: Optional[GitHubRepository]) -> RepositoryDetails:
        if repository is None:
            return RepositoryDetails()
        owner = repository.owner
        return RepositoryDetails(
            name=repository.name,
            owner=unwrap_or(owner.login, "") or unwrap_or(owner.name, ""),
        )

    def _user(self, user: Optional[GitHubUser]) -> User:
        if user is None:
            return User()
        return User(
            login=unwrap_or(user.login, ""),
            display_name=unwrap_or(user.name, ""),
            email=unwrap_or(user.email, ""),
        )

    def _avatar_user(self, user: Optional[GitHubUser]) -> User:
        if user is None:
            return User()
        return User(login=unwrap_or(user.login, ""), avatar_url=unwrap_or(user.avatar_url, ""))

    def _commit_author(self, author: Optional[GitHubCommitAuthor]) -> User:
        if author is None:
            return User()
        return User(
            login=unwrap_or(author.username, ""),
            display_name=unwrap_or(author.name, ""),
            email=unwrap_or(author.email, ""),
        )

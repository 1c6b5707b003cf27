"""
Unit tests for the Bitbucket Cloud webhook parser.
"""
import pytest
from starlette.datastructures import Headers

from vcswebhook.webhook.errors import AuthenticationError, PayloadError
from vcswebhook.webhook.models import (
    BranchStatus,
    Commit,
    PullRequestInfo,
    RepositoryDetails,
    User,
    WebhookEvent,
)
from vcswebhook.webhook.parsers import BitbucketCloudWebhookParser
from vcswebhook.webhook.utils import NIL_HASH

TOKEN = "bitbucket-cloud-token"
OLD_HASH = "8e3e3b3a7d6f52d8e2a14f3c3c2d6b1a4d2f7e90"
NEW_HASH = "4ca4e8b9bf2e2f7a2d0ee1fa8b76c5b2b3b3fe12"
REPO_PUSH = Headers({"X-Event-Key": "repo:push"})
REPOSITORY = RepositoryDetails(name="test-repo", owner="bgibbs")


@pytest.fixture
def push_payload(load_payload):
    return load_payload("bitbucket_cloud", "push")


@pytest.fixture
def pr_payload(load_payload):
    return load_payload("bitbucket_cloud", "pullrequest")


def test_authenticate_valid_token(push_payload, encode, make_request):
    body = encode(push_payload)
    request = make_request(body, query_params={"token": TOKEN})

    assert BitbucketCloudWebhookParser(secret=TOKEN).authenticate(request) == body


@pytest.mark.parametrize(
    "secret,query_params",
    [
        (TOKEN, {"token": "guess"}),
        (TOKEN, None),
        ("", {"token": TOKEN}),
    ],
)
def test_authenticate_token_mismatch(push_payload, encode, make_request, secret, query_params):
    request = make_request(encode(push_payload), query_params=query_params)

    with pytest.raises(AuthenticationError, match="token mismatch"):
        BitbucketCloudWebhookParser(secret=secret).authenticate(request)


def test_authenticate_without_secret_or_token(push_payload, encode, make_request):
    body = encode(push_payload)

    assert BitbucketCloudWebhookParser().authenticate(make_request(body)) == body


def test_push_event(push_payload, encode):
    info = BitbucketCloudWebhookParser().extract(encode(push_payload), REPO_PUSH)

    assert info.event == WebhookEvent.PUSH
    assert info.target_repository_details == REPOSITORY
    assert info.target_branch == "master"
    assert info.timestamp == 1630831665
    assert info.commit == Commit(
        hash=NEW_HASH,
        message="README.md edited online with Bitbucket",
        url=f"https://bitbucket.org/bgibbs/test-repo/commits/{NEW_HASH}",
    )
    assert info.before_commit == Commit(hash=OLD_HASH)
    assert info.branch_status == BranchStatus.UPDATED
    assert info.triggered_by == User(login="bgibbs")
    assert info.committer == User(login="bgibbs")
    assert info.author == User(login="bgibbs", email="bgibbs@example.com")
    assert info.compare_url == f"https://bitbucket.org/bgibbs/test-repo/branches/compare/{NEW_HASH}..{OLD_HASH}#diff"


def test_push_compare_url_uses_endpoint(push_payload, encode):
    parser = BitbucketCloudWebhookParser(endpoint="https://bitbucket.example.com/")

    info = parser.extract(encode(push_payload), REPO_PUSH)

    assert info.compare_url.startswith("https://bitbucket.example.com/bgibbs/test-repo/branches/compare/")


def test_push_creating_branch(push_payload, encode):
    push_payload["push"]["changes"][0]["old"] = None

    info = BitbucketCloudWebhookParser().extract(encode(push_payload), REPO_PUSH)

    assert info.branch_status == BranchStatus.CREATED
    assert info.before_commit == Commit(hash=NIL_HASH)
    assert info.compare_url == ""


def test_push_deleting_branch(push_payload, encode):
    push_payload["push"]["changes"][0]["new"] = None

    info = BitbucketCloudWebhookParser().extract(encode(push_payload), REPO_PUSH)

    assert info.branch_status == BranchStatus.DELETED
    assert info.target_branch == "master"
    assert info.timestamp == 1630756800
    assert info.commit == Commit(hash=NIL_HASH)
    assert info.compare_url == ""


def test_push_author_without_account(push_payload, encode):
    """Commits by an email without a Bitbucket account are credited to the pusher."""
    push_payload["actor"]["nickname"] = "jdoe"
    del push_payload["push"]["changes"][0]["new"]["target"]["author"]["user"]

    info = BitbucketCloudWebhookParser().extract(encode(push_payload), REPO_PUSH)

    assert info.triggered_by == User(login="jdoe")
    assert info.committer == User(login="jdoe")
    assert info.author == User(login="jdoe", email="bgibbs@example.com")


def test_push_reports_first_change_only(push_payload, encode):
    second = {
        "new": {"name": "develop", "target": {"hash": "1f2e3d4c5b6a7988a1b2c3d4e5f60718293a4b5c"}},
        "old": None,
    }
    push_payload["push"]["changes"].append(second)

    info = BitbucketCloudWebhookParser().extract(encode(push_payload), REPO_PUSH)

    assert info.target_branch == "master"


def test_push_without_changes_is_ignored(push_payload, encode):
    push_payload["push"]["changes"] = []

    assert BitbucketCloudWebhookParser().extract(encode(push_payload), REPO_PUSH) is None


@pytest.mark.parametrize(
    "event_key,expected",
    [
        ("pullrequest:created", WebhookEvent.PR_OPENED),
        ("pullrequest:updated", WebhookEvent.PR_EDITED),
    ],
)
def test_pull_request_events(pr_payload, encode, event_key, expected):
    info = BitbucketCloudWebhookParser().extract(encode(pr_payload), Headers({"X-Event-Key": event_key}))

    assert info.event == expected
    assert info.pull_request_id == 3
    assert info.target_repository_details == REPOSITORY
    assert info.target_branch == "master"
    assert info.source_repository_details == REPOSITORY
    assert info.source_branch == "feature/contributing"
    assert info.timestamp == 1630831665
    assert info.pull_request == PullRequestInfo(
        id=3,
        title="Add contributing guide",
        compare_url="https://bitbucket.org/bgibbs/test-repo/pull-requests/3",
        timestamp=1630831665,
        author=User(
            login="bgibbs",
            display_name="Barry Gibbs",
            avatar_url="https://avatar-management.example.com/bgibbs/128",
        ),
        triggered_by=User(login="jdoe"),
        target_repository=REPOSITORY,
        target_branch="master",
        target_hash="4ca4e8b9bf2e",
        source_repository=REPOSITORY,
        source_branch="feature/contributing",
        source_hash="1f2e3d4c5b6a",
    )


def test_pull_request_without_details(pr_payload, encode):
    del pr_payload["pullrequest"]

    with pytest.raises(PayloadError, match="pullrequest is missing"):
        BitbucketCloudWebhookParser().extract(encode(pr_payload), Headers({"X-Event-Key": "pullrequest:created"}))


@pytest.mark.parametrize("event_key", ["pullrequest:fulfilled", "pullrequest:rejected", "repo:fork"])
def test_unsupported_events_are_ignored(pr_payload, encode, event_key):
    assert BitbucketCloudWebhookParser().extract(encode(pr_payload), Headers({"X-Event-Key": event_key})) is None


def test_invalid_json():
    with pytest.raises(PayloadError):
        BitbucketCloudWebhookParser().extract(b"<html>", REPO_PUSH)

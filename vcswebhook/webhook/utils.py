"""
Helpers shared by the provider parsers.
"""
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Optional, TypeVar

from .models import BranchStatus, RepositoryDetails

T = TypeVar("T")

# Hash used by Git to denote a ref that does not exist on one side of a change
NIL_HASH = "0" * 40

BRANCH_REF_PREFIX = "refs/heads/"
TAG_REF_PREFIX = "refs/tags/"


def resolve_branch_status(existed_before: bool, exists_after: bool) -> BranchStatus:
    """
    Derive the branch lifecycle state of a push.

    A branch that existed on neither side cannot be produced by a push;
    that input falls through to ``UPDATED``.
    """
    if exists_after and not existed_before:
        return BranchStatus.CREATED
    if existed_before and not exists_after:
        return BranchStatus.DELETED
    return BranchStatus.UPDATED


def branch_status_from_hashes(before: str, after: str) -> BranchStatus:
    return resolve_branch_status(before != NIL_HASH, after != NIL_HASH)


def unwrap_or(value: Optional[T], default: T) -> T:
    """Return ``value`` unless it is ``None``."""
    return default if value is None else value


def branch_name(ref: str) -> str:
    return ref.removeprefix(BRANCH_REF_PREFIX)


def tag_name(ref: str) -> str:
    return ref.removeprefix(TAG_REF_PREFIX)


def split_full_name(full_name: str) -> RepositoryDetails:
    """Split ``owner/name`` (the owner may itself contain slashes)."""
    owner, _, name = full_name.rpartition("/")
    return RepositoryDetails(name=name, owner=owner)


def to_unix(moment: Optional[datetime]) -> int:
    """Convert to Unix seconds; naive datetimes are taken as UTC."""
    if moment is None:
        return 0
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def calculate_payload_signature(payload: bytes, secret: str) -> str:
    """Hex encoded HMAC-SHA256 of the payload."""
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def secure_compare(actual: str, expected: str) -> bool:
    return hmac.compare_digest(actual.encode(), expected.encode())

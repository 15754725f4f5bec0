"""
talksync error types.

Every failure surfaced to the caller is a ``TalkError`` with a string code.
Remote failures carry the numeric code reported by the service.
"""

from typing import Any, Optional

from talksync.models.types import RemoteErrorCode


class TalkError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class AuthRequired(TalkError):
    def __init__(self, message: str = "Please login first"):
        super().__init__("auth_required", message)


class RemoteCallFailure(TalkError):
    def __init__(
        self,
        reason: str,
        remote_code: Optional[int] = None,
        code: str = "remote_call_failure",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(code, reason, details)
        self.reason = reason
        self.remote_code = remote_code


class AuthInvalid(RemoteCallFailure):
    def __init__(self, reason: str = "authentication invalid", remote_code: Optional[int] = RemoteErrorCode.AUTH_INVALID):
        super().__init__(reason, remote_code, code="auth_invalid")


class SessionConflict(RemoteCallFailure):
    def __init__(self, reason: str = "user logged in on another machine", remote_code: Optional[int] = RemoteErrorCode.SESSION_CONFLICT):
        super().__init__(reason, remote_code, code="session_conflict")


class UnresolvedReference(TalkError):
    def __init__(self, sender_id: Optional[str], receiver_id: Optional[str],
                 sender_resolved: bool, receiver_resolved: bool):
        missing = []
        if not sender_resolved:
            missing.append(f"sender={sender_id}")
        if not receiver_resolved:
            missing.append(f"receiver={receiver_id}")
        super().__init__(
            "unresolved_reference",
            f"Unresolved after repair: {', '.join(missing)}",
            {"sender_id": sender_id, "receiver_id": receiver_id},
        )
        self.sender_id = sender_id
        self.receiver_id = receiver_id
        self.sender_resolved = sender_resolved
        self.receiver_resolved = receiver_resolved


class GroupStateError(TalkError):
    def __init__(self, message: str, group_id: Optional[str] = None):
        super().__init__("group_state", message, {"group_id": group_id})


class PollInProgress(TalkError):
    def __init__(self) -> None:
        super().__init__("poll_in_progress", "Another poll cycle is running on this session")


def remote_error(remote_code: Optional[int], reason: str) -> RemoteCallFailure:
    """Build the most specific error for a code reported by the service."""
    if remote_code == RemoteErrorCode.AUTH_INVALID:
        return AuthInvalid(reason, remote_code)
    if remote_code == RemoteErrorCode.SESSION_CONFLICT:
        return SessionConflict(reason, remote_code)
    return RemoteCallFailure(reason, remote_code)


def normalize_remote_error(err: RemoteCallFailure) -> RemoteCallFailure:
    """Upgrade a generic remote failure to AuthInvalid / SessionConflict."""
    if isinstance(err, (AuthInvalid, SessionConflict)):
        return err
    specific = remote_error(err.remote_code, err.reason)
    if type(specific) is RemoteCallFailure:
        return err
    specific.__cause__ = err
    return specific

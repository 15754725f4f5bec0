"""
Session state — credentials, token, certificate, revision cursor.

Every remote operation on the client is wrapped with ``requires_auth``: with
no token held it raises ``AuthRequired`` before any remote call is made.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, TypeVar

from talksync.errors import AuthRequired

if TYPE_CHECKING:
    from talksync.models.entities import Contact

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


class Session:
    def __init__(
        self,
        id: Optional[str] = None,
        password: Optional[str] = None,
        auth_token: Optional[str] = None,
        certificate: Optional[str] = None,
    ):
        if not (auth_token or (id and password)):
            raise ValueError("id and password or auth_token is needed")
        self.id = id
        self.password = password
        self.auth_token = auth_token
        self.certificate = certificate
        self.revision = 0
        self.profile: Optional[Contact] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth_token)

    @property
    def uses_token_login(self) -> bool:
        return bool(self.auth_token)

    def ensure_authenticated(self) -> None:
        if not self.is_authenticated:
            raise AuthRequired()

    def accept_credentials(self, auth_token: Optional[str], certificate: Optional[str]) -> None:
        """Keep returned token/certificate, but never overwrite ones already held."""
        if auth_token and not self.auth_token:
            self.auth_token = auth_token
        if certificate and not self.certificate:
            self.certificate = certificate

    def advance_revision(self, revision: Optional[int]) -> int:
        if revision is not None:
            self.revision = max(self.revision, revision)
        return self.revision

    def invalidate(self, reason: str) -> None:
        logger.warning("%s, please login again", reason)
        self.auth_token = None
        self.certificate = None

    def __repr__(self) -> str:
        return f"Session(id={self.id!r}, authenticated={self.is_authenticated}, revision={self.revision})"


def requires_auth(method: F) -> F:
    """Fail fast with AuthRequired when the owning client holds no token."""

    @functools.wraps(method)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        self.session.ensure_authenticated()
        return await method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]

"""
Remote gateway contract.

The client only depends on this protocol; ``HttpGateway`` is the shipped
implementation. Implementations raise ``RemoteCallFailure`` (or a subclass)
for any failed call.
"""

from pathlib import Path
from typing import Any, Optional, Protocol, Union

from talksync.models.records import (
    LoginResult,
    MessageBoxWrapUp,
    MessageBoxWrapUpList,
    Operation,
    RawContact,
    RawGroup,
    RawMessage,
    RawRoom,
)


class TalkGateway(Protocol):
    def set_token(self, token: Optional[str]) -> None: ...

    async def login(self, id: str, password: str) -> LoginResult: ...

    async def token_login(self, token: str, certificate: Optional[str]) -> LoginResult: ...

    async def get_last_operation_revision(self) -> int: ...

    async def get_profile(self) -> RawContact: ...

    async def get_all_contact_ids(self) -> list[str]: ...

    async def get_contacts(self, ids: list[str]) -> list[RawContact]: ...

    async def get_group_ids_joined(self) -> list[str]: ...

    async def get_group_ids_invited(self) -> list[str]: ...

    async def get_groups(self, ids: list[str]) -> list[RawGroup]: ...

    async def get_message_box_compact_wrap_up_list(self, start: int, count: int) -> MessageBoxWrapUpList: ...

    async def get_message_box_compact_wrap_up(self, id: str) -> MessageBoxWrapUp: ...

    async def get_room(self, id: str) -> RawRoom: ...

    async def create_group(self, name: str, ids: list[str]) -> RawGroup: ...

    async def invite_into_group(self, group_id: str, ids: list[str]) -> Any: ...

    async def accept_group_invitation(self, group_id: str) -> Any: ...

    async def leave_group(self, group_id: str) -> Any: ...

    async def create_room(self, ids: list[str]) -> RawRoom: ...

    async def invite_into_room(self, room_id: str, ids: list[str]) -> Any: ...

    async def leave_room(self, room_id: str) -> Any: ...

    async def send_message(self, message: RawMessage, seq: int = 0) -> RawMessage: ...

    async def send_chat_checked(self, consumer: str, last_message_id: str, seq: int = 0) -> Any: ...

    async def fetch_operations(self, revision: int, count: int) -> list[Operation]: ...

    async def get_recent_messages(self, message_box_id: str, count: int) -> list[RawMessage]: ...

    async def post_content(self, url: str, data: dict[str, Any], file_path: Union[str, Path]) -> dict[str, Any]: ...

    async def download(self, url: str) -> bytes: ...

    async def close(self) -> None: ...

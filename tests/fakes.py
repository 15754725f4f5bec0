"""In-memory TalkGateway used by the unit tests."""

from pathlib import Path
from typing import Any, Optional, Union

from talksync.errors import RemoteCallFailure
from talksync.models.records import (
    LoginResult,
    MessageBox,
    MessageBoxWrapUp,
    MessageBoxWrapUpList,
    Operation,
    RawContact,
    RawGroup,
    RawMessage,
    RawRoom,
)
from talksync.models.types import MIDType, OpType


def raw_contact(mid: str, name: Optional[str] = None) -> RawContact:
    return RawContact(mid=mid, display_name=name or f"name-{mid}", status_message="hi", picture_path=f"/{mid}")


def raw_group(id: str, name: Optional[str] = None, members: tuple = (), invitee: tuple = ()) -> RawGroup:
    return RawGroup(
        id=id,
        name=name or f"group-{id}",
        creator=raw_contact(members[0]) if members else None,
        members=[raw_contact(m) for m in members],
        invitee=[raw_contact(m) for m in invitee],
    )


def raw_room(mid: str, members: tuple = ()) -> RawRoom:
    return RawRoom(mid=mid, contacts=[raw_contact(m) for m in members])


def message_op(revision: int, sender: str, receiver: str, text: str = "hello",
               type: OpType = OpType.RECEIVE_MESSAGE, to_type: MIDType = MIDType.USER) -> Operation:
    return Operation(
        revision=revision,
        type=type,
        message=RawMessage.model_validate({
            "id": f"m{revision}",
            "from": sender,
            "to": receiver,
            "toType": to_type,
            "text": text,
            "createdTime": 1_500_000_000_000,
        }),
    )


class FakeGateway:
    def __init__(self) -> None:
        self.token: Optional[str] = None
        self.calls: list[tuple[str, tuple]] = []
        self.failures: dict[str, Exception] = {}
        self.login_result = LoginResult(auth_token="issued-token", certificate="issued-cert")
        self.last_revision = 100
        self.profile = raw_contact("me", "Me")
        self.contacts: dict[str, RawContact] = {}
        self.groups: dict[str, RawGroup] = {}
        self.joined_ids: list[str] = []
        self.invited_ids: list[str] = []
        self.rooms: dict[str, RawRoom] = {}
        self.boxes: list[MessageBoxWrapUp] = []
        self.report_total = False
        self.batches: list[list[Operation]] = []
        self.recent: dict[str, list[RawMessage]] = {}
        self.sent: list[RawMessage] = []
        self.uploads: list[tuple[str, dict, str]] = []
        self.downloads: dict[str, bytes] = {}
        self.closed = False

    # -- test helpers ------------------------------------------------------

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.failures:
            raise self.failures[name]

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def add_contacts(self, *mids: str) -> None:
        for mid in mids:
            self.contacts[mid] = raw_contact(mid)

    def add_room_box(self, mid: str, members: tuple = ()) -> None:
        self.rooms[mid] = raw_room(mid, members)
        self.boxes.append(MessageBoxWrapUp(message_box=MessageBox(id=mid, mid_type=MIDType.ROOM)))

    def add_user_box(self, mid: str) -> None:
        self.boxes.append(MessageBoxWrapUp(message_box=MessageBox(id=mid, mid_type=MIDType.USER)))

    # -- TalkGateway -------------------------------------------------------

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    async def login(self, id: str, password: str) -> LoginResult:
        self._record("login", id, password)
        return self.login_result

    async def token_login(self, token: str, certificate: Optional[str]) -> LoginResult:
        self._record("token_login", token, certificate)
        return self.login_result

    async def get_last_operation_revision(self) -> int:
        self._record("get_last_operation_revision")
        return self.last_revision

    async def get_profile(self) -> RawContact:
        self._record("get_profile")
        return self.profile

    async def get_all_contact_ids(self) -> list[str]:
        self._record("get_all_contact_ids")
        return list(self.contacts)

    async def get_contacts(self, ids: list[str]) -> list[RawContact]:
        self._record("get_contacts", ids)
        return [self.contacts[i] for i in ids]

    async def get_group_ids_joined(self) -> list[str]:
        self._record("get_group_ids_joined")
        return list(self.joined_ids)

    async def get_group_ids_invited(self) -> list[str]:
        self._record("get_group_ids_invited")
        return list(self.invited_ids)

    async def get_groups(self, ids: list[str]) -> list[RawGroup]:
        self._record("get_groups", ids)
        return [self.groups[i] for i in ids]

    async def get_message_box_compact_wrap_up_list(self, start: int, count: int) -> MessageBoxWrapUpList:
        self._record("get_message_box_compact_wrap_up_list", start, count)
        page = self.boxes[start - 1:start - 1 + count]
        return MessageBoxWrapUpList(
            message_box_wrap_up_list=page,
            total_size=len(self.boxes) if self.report_total else None,
        )

    async def get_message_box_compact_wrap_up(self, id: str) -> MessageBoxWrapUp:
        self._record("get_message_box_compact_wrap_up", id)
        return MessageBoxWrapUp(message_box=MessageBox(id=f"box-{id}", mid_type=MIDType.USER))

    async def get_room(self, id: str) -> RawRoom:
        self._record("get_room", id)
        return self.rooms[id]

    async def create_group(self, name: str, ids: list[str]) -> RawGroup:
        self._record("create_group", name, ids)
        group = raw_group(f"g-{name}", name, tuple(ids))
        self.groups[group.id] = group
        return group

    async def invite_into_group(self, group_id: str, ids: list[str]) -> Any:
        self._record("invite_into_group", group_id, ids)

    async def accept_group_invitation(self, group_id: str) -> Any:
        self._record("accept_group_invitation", group_id)

    async def leave_group(self, group_id: str) -> Any:
        self._record("leave_group", group_id)

    async def create_room(self, ids: list[str]) -> RawRoom:
        self._record("create_room", ids)
        room = raw_room(f"r-{len(self.rooms)}", tuple(ids))
        self.rooms[room.mid] = room
        return room

    async def invite_into_room(self, room_id: str, ids: list[str]) -> Any:
        self._record("invite_into_room", room_id, ids)

    async def leave_room(self, room_id: str) -> Any:
        self._record("leave_room", room_id)

    async def send_message(self, message: RawMessage, seq: int = 0) -> RawMessage:
        self._record("send_message", message, seq)
        self.sent.append(message)
        return message.model_copy(update={"id": f"sent-{len(self.sent)}"})

    async def send_chat_checked(self, consumer: str, last_message_id: str, seq: int = 0) -> Any:
        self._record("send_chat_checked", consumer, last_message_id, seq)

    async def fetch_operations(self, revision: int, count: int) -> list[Operation]:
        self._record("fetch_operations", revision, count)
        return self.batches.pop(0) if self.batches else []

    async def get_recent_messages(self, message_box_id: str, count: int) -> list[RawMessage]:
        self._record("get_recent_messages", message_box_id, count)
        return self.recent.get(message_box_id, [])[:count]

    async def post_content(self, url: str, data: dict[str, Any], file_path: Union[str, Path]) -> dict[str, Any]:
        self._record("post_content", url, data, file_path)
        self.uploads.append((url, data, str(file_path)))
        return {"status": "ok"}

    async def download(self, url: str) -> bytes:
        self._record("download", url)
        if url not in self.downloads:
            raise RemoteCallFailure(f"download {url}: not found")
        return self.downloads[url]

    async def close(self) -> None:
        self.closed = True

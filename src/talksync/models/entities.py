"""
Domain entities — Contact, Group, Room and Message.

Entities are immutable by convention: the client replaces an entity in the
Directory instead of mutating it. Contact, Group and Room form a closed
variant discriminated by ``kind``; code that needs to know "is this a group"
matches on ``kind`` rather than inspecting classes.

Entities keep a reference to the owning client so they can offer the
convenience calls (send a message, leave, invite ...) and so a Contact can
derive its rooms/groups from the client's Directory.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from talksync.errors import GroupStateError
from talksync.models.records import RawContact, RawGroup, RawMessage, RawRoom
from talksync.models.types import ContentType, content_type_name

if TYPE_CHECKING:
    from talksync.client import AsyncTalkClient
    from talksync.directory import Directory


class EntityKind(str, Enum):
    CONTACT = "contact"
    GROUP = "group"
    ROOM = "room"


class _Entity:
    kind: EntityKind

    __slots__ = ("_client", "id", "_message_box")

    def __init__(self, client: AsyncTalkClient, id: str):
        self._client = client
        self.id = id
        self._message_box: Optional[Any] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _Entity):
            return NotImplemented
        return self.kind is other.kind and self.id == other.id

    def __hash__(self) -> int:
        return hash((self.kind, self.id))

    async def send_message(self, text: str) -> RawMessage:
        """Send a text message to this contact/group/room."""
        return await self._client.send_message(RawMessage(to=self.id, text=text))

    async def send_sticker(
        self,
        sticker_id: str = "13",
        sticker_package_id: str = "1",
        sticker_version: str = "100",
        sticker_text: str = "[null]",
    ) -> RawMessage:
        message = RawMessage(
            to=self.id,
            text="",
            content_type=ContentType.STICKER,
            content_metadata={
                "STKID": sticker_id,
                "STKPKGID": sticker_package_id,
                "STKVER": sticker_version,
                "STKTXT": sticker_text,
            },
        )
        return await self._client.send_message(message)

    async def send_image(self, file_path: Union[str, Path], filename: str = "Line Image") -> dict[str, Any]:
        """Send an IMAGE message, then upload the file bytes as its content."""
        size = Path(file_path).stat().st_size
        sent = await self._client.send_message(
            RawMessage(to=self.id, text="", content_type=ContentType.IMAGE)
        )
        params = {"name": filename, "oid": sent.id, "size": size, "type": "image", "ver": "1.0"}
        return await self._client.post_content({"params": json.dumps(params)}, file_path)

    async def send_image_with_url(self, url: str) -> dict[str, Any]:
        """Download an image to a temporary file and send it with send_image()."""
        content = await self._client.download(url)
        fd, path = tempfile.mkstemp(suffix=".jpg")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
            return await self.send_image(path)
        finally:
            os.unlink(path)

    async def get_recent_messages(self, count: int = 1) -> list[Message]:
        if self._message_box is None:
            self._message_box = await self._client.get_message_box(self.id)
        return await self._client.get_recent_messages(self._message_box, count)


class Contact(_Entity):
    kind = EntityKind.CONTACT

    __slots__ = ("name", "icon_path", "status_message")

    def __init__(self, client: AsyncTalkClient, record: RawContact):
        super().__init__(client, record.mid)
        self.name = record.display_name
        self.status_message = record.status_message
        self.icon_path = (
            f"http://{client.config.os_url}{record.picture_path}/preview"
            if record.picture_path else None
        )

    @property
    def rooms(self) -> list[Room]:
        """Rooms in the Directory that have this contact as a member."""
        return self._client.directory.rooms_containing(self.id)

    @property
    def groups(self) -> list[Group]:
        """Groups in the Directory that have this contact as a member."""
        return self._client.directory.groups_containing(self.id)

    def __str__(self) -> str:
        return f"<Contact {self.id} {self.name}>"

    __repr__ = __str__


class Group(_Entity):
    kind = EntityKind.GROUP

    __slots__ = ("_record", "name", "is_joined", "creator", "invitee", "members")

    def __init__(self, client: AsyncTalkClient, record: RawGroup, is_joined: bool = True):
        super().__init__(client, record.id)
        self._record = record
        self.name = record.name
        self.is_joined = is_joined
        self.creator = Contact(client, record.creator) if record.creator else None
        self.invitee = tuple(Contact(client, c) for c in record.invitee)
        self.members = tuple(Contact(client, c) for c in record.members)

    def with_joined(self, is_joined: bool) -> Group:
        """Copy of this group with a different joined flag."""
        return Group(self._client, self._record, is_joined)

    def get_member_ids(self) -> list[str]:
        return [member.id for member in self.members]

    def find_member(self, id: str) -> Optional[Contact]:
        for member in self.members:
            if member.id == id:
                return member
        return None

    def contains_id(self, id: str) -> bool:
        return id in self.get_member_ids()

    async def accept_invitation(self) -> Any:
        return await self._client.accept_group_invitation(self)

    async def leave(self) -> bool:
        if not self.is_joined:
            raise GroupStateError("You are not joined to group", self.id)
        return await self._client.leave_group(self)

    def __str__(self) -> str:
        suffix = "" if self.is_joined else " (invited)"
        return f"<Group {self.name} {self.id} #{len(self.members)}{suffix}>"

    __repr__ = __str__


class Room(_Entity):
    kind = EntityKind.ROOM

    __slots__ = ("contacts",)

    def __init__(self, client: AsyncTalkClient, record: RawRoom):
        super().__init__(client, record.mid)
        self.contacts = tuple(Contact(client, c) for c in record.contacts)

    @property
    def members(self) -> tuple[Contact, ...]:
        return self.contacts

    def get_contact_ids(self) -> list[str]:
        return [contact.id for contact in self.contacts]

    def contains_id(self, id: str) -> bool:
        return id in self.get_contact_ids()

    async def leave(self) -> bool:
        return await self._client.leave_room(self)

    async def invite(self, contact: Contact) -> Any:
        if not isinstance(contact, Contact):
            raise TypeError("You should pass a Contact as parameter")
        return await self._client.invite_into_room(self, [contact])

    def __str__(self) -> str:
        return f"<Room {self.id}>"

    __repr__ = __str__


Entity = Union[Contact, Group, Room]


class Message:
    """A received or fetched message with its sender/receiver resolved.

    Resolution happens once, in ``from_record``, against whatever the
    Directory holds at that moment. No repair is attempted here.
    """

    __slots__ = (
        "id", "text", "has_content", "content_type", "content_preview",
        "content_metadata", "sender", "receiver", "sender_id", "receiver_id",
        "to_type", "created_time",
    )

    def __init__(self, record: RawMessage, sender: Optional[Entity], receiver: Optional[Entity]):
        self.id = record.id
        self.text = record.text
        self.has_content = record.has_content
        self.content_type = record.content_type
        self.content_preview = record.content_preview
        self.content_metadata = record.content_metadata
        self.sender_id = record.from_
        self.receiver_id = record.to
        self.sender = sender
        self.receiver = receiver
        self.to_type = record.to_type
        self.created_time = (
            datetime.fromtimestamp(record.created_time / 1000, tz=timezone.utc)
            if record.created_time is not None else None
        )

    @classmethod
    def from_record(cls, directory: Directory, record: RawMessage) -> Message:
        receiver = directory.resolve(record.to)
        sender = directory.resolve_sender(record.from_, receiver)
        return cls(record, sender, receiver)

    @property
    def resolved(self) -> bool:
        return self.sender is not None and self.receiver is not None

    @property
    def content_type_name(self) -> Optional[str]:
        return content_type_name(self.content_type)

    def __str__(self) -> str:
        return (
            f"Message(contentType={self.content_type_name}, "
            f"sender={self.sender}, receiver={self.receiver}, msg={self.text!r})"
        )

    __repr__ = __str__

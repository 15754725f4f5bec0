"""Entities, raw records and entity convenience calls."""

import json
from datetime import datetime, timezone

import pytest

from talksync import Contact, ContentType, GroupStateError, Group, Message, Room
from talksync.models.records import MessageBoxWrapUpList, Operation, RawMessage
from tests.fakes import raw_contact, raw_group, raw_room


def test_contact_from_record(client):
    alice = Contact(client, raw_contact("u1", "Alice"))
    assert alice.id == "u1"
    assert alice.name == "Alice"
    assert alice.status_message == "hi"
    assert alice.icon_path == "http://os.line.naver.jp/u1/preview"
    assert str(alice) == "<Contact u1 Alice>"


def test_contact_without_picture(client):
    from talksync.models.records import RawContact
    bare = Contact(client, RawContact(mid="u1"))
    assert bare.icon_path is None
    assert bare.name == ""


def test_group_from_record(client):
    group = Group(client, raw_group("g1", "team", members=("u1", "u2"), invitee=("u3",)), is_joined=False)
    assert group.creator.id == "u1"
    assert [c.id for c in group.invitee] == ["u3"]
    assert str(group) == "<Group team g1 #2 (invited)>"

    joined = group.with_joined(True)
    assert joined.is_joined
    assert not group.is_joined
    assert joined == group
    assert str(joined) == "<Group team g1 #2>"


def test_entities_compare_by_kind_and_id(client):
    assert Contact(client, raw_contact("x")) == Contact(client, raw_contact("x", "other"))
    assert Contact(client, raw_contact("x")) != Room(client, raw_room("x"))
    assert len({Room(client, raw_room("r1")), Room(client, raw_room("r1"))}) == 1


def test_raw_message_wire_aliases():
    record = RawMessage.model_validate({
        "id": "m1", "from": "u1", "to": "g1", "toType": 2,
        "contentType": 7, "contentMetadata": {"STKID": "13"}, "createdTime": 0,
    })
    assert record.from_ == "u1"
    assert record.to_type == 2
    assert record.content_metadata == {"STKID": "13"}
    dumped = record.model_dump(by_alias=True, exclude_none=True)
    assert dumped["from"] == "u1"
    assert dumped["contentType"] == 7


def test_message_box_listing_defaults():
    listing = MessageBoxWrapUpList.model_validate({})
    assert listing.message_box_wrap_up_list == []
    assert listing.total_size is None


def test_operation_without_message():
    op = Operation.model_validate({"revision": 3, "type": 0})
    assert op.message is None


def test_message_from_record_resolves_once(client):
    client.directory.replace_contacts([Contact(client, raw_contact("u1", "Alice"))])
    record = RawMessage.model_validate({
        "id": "m1", "from": "u1", "to": "u2", "text": "hey", "createdTime": 1_500_000_000_000,
        "contentType": ContentType.STICKER,
    })
    message = Message.from_record(client.directory, record)
    assert message.sender.name == "Alice"
    assert message.receiver is None
    assert not message.resolved
    assert message.content_type_name == "STICKER"
    assert message.created_time == datetime(2017, 7, 14, 2, 40, tzinfo=timezone.utc)

    # Later directory changes do not re-resolve an existing message.
    client.directory.replace_contacts([Contact(client, raw_contact("u2"))])
    assert message.receiver is None
    assert "contentType=STICKER" in str(message)


@pytest.mark.asyncio
async def test_send_text_and_sticker(client, gateway):
    alice = Contact(client, raw_contact("u1"))
    sent = await alice.send_message("hello")
    assert sent.id == "sent-1"
    assert gateway.sent[0].to == "u1"
    assert gateway.sent[0].text == "hello"

    await alice.send_sticker()
    sticker = gateway.sent[1]
    assert sticker.content_type == ContentType.STICKER
    assert sticker.content_metadata == {"STKID": "13", "STKPKGID": "1", "STKVER": "100", "STKTXT": "[null]"}


@pytest.mark.asyncio
async def test_send_image_posts_content(client, gateway, tmp_path):
    image = tmp_path / "cat.jpg"
    image.write_bytes(b"\xff\xd8\xff" * 10)
    room = Room(client, raw_room("r1"))

    result = await room.send_image(image, filename="cat")
    assert result == {"status": "ok"}
    assert gateway.sent[0].content_type == ContentType.IMAGE
    url, data, path = gateway.uploads[0]
    assert url == client.config.content_url
    assert path == str(image)
    params = json.loads(data["params"])
    assert params == {"name": "cat", "oid": "sent-1", "size": 30, "type": "image", "ver": "1.0"}


@pytest.mark.asyncio
async def test_send_image_with_url_cleans_up(client, gateway):
    gateway.downloads["http://img/1.jpg"] = b"abc"
    alice = Contact(client, raw_contact("u1"))

    await alice.send_image_with_url("http://img/1.jpg")
    _, data, path = gateway.uploads[0]
    assert json.loads(data["params"])["size"] == 3
    assert path.endswith(".jpg")
    import os
    assert not os.path.exists(path)


@pytest.mark.asyncio
async def test_recent_messages_cache_message_box(client, gateway):
    gateway.recent["box-u1"] = [RawMessage.model_validate({"id": "m1", "from": "u1", "to": "me", "text": "a"})]
    alice = Contact(client, raw_contact("u1"))

    first = await alice.get_recent_messages()
    await alice.get_recent_messages()
    assert [m.id for m in first] == ["m1"]
    assert gateway.count("get_message_box_compact_wrap_up") == 1
    assert gateway.count("get_recent_messages") == 2


@pytest.mark.asyncio
async def test_group_leave_requires_membership(client, gateway):
    invited = Group(client, raw_group("g1"), is_joined=False)
    with pytest.raises(GroupStateError):
        await invited.leave()
    assert gateway.count("leave_group") == 0


@pytest.mark.asyncio
async def test_room_invite_requires_contact(client, gateway):
    room = Room(client, raw_room("r1"))
    with pytest.raises(TypeError):
        await room.invite("u1")

    await room.invite(Contact(client, raw_contact("u1")))
    assert gateway.calls[-1] == ("invite_into_room", ("r1", ["u1"]))

"""
Enumerations shared by raw records and domain entities.

Values match the numeric tags used by the remote service.
"""

from enum import IntEnum
from typing import Optional


class OpType(IntEnum):
    END_OF_OPERATION = 0
    UPDATE_PROFILE = 1
    NOTIFIED_UPDATE_PROFILE = 2
    REGISTER_USERID = 3
    ADD_CONTACT = 4
    NOTIFIED_ADD_CONTACT = 5
    BLOCK_CONTACT = 6
    UNBLOCK_CONTACT = 7
    NOTIFIED_RECOMMEND_CONTACT = 8
    CREATE_GROUP = 9
    UPDATE_GROUP = 10
    NOTIFIED_UPDATE_GROUP = 11
    INVITE_INTO_GROUP = 12
    NOTIFIED_INVITE_INTO_GROUP = 13
    LEAVE_GROUP = 14
    NOTIFIED_LEAVE_GROUP = 15
    ACCEPT_GROUP_INVITATION = 16
    NOTIFIED_ACCEPT_GROUP_INVITATION = 17
    KICKOUT_FROM_GROUP = 18
    NOTIFIED_KICKOUT_FROM_GROUP = 19
    CREATE_ROOM = 20
    INVITE_INTO_ROOM = 21
    NOTIFIED_INVITE_INTO_ROOM = 22
    LEAVE_ROOM = 23
    NOTIFIED_LEAVE_ROOM = 24
    SEND_MESSAGE = 25
    RECEIVE_MESSAGE = 26
    SEND_MESSAGE_RECEIPT = 27
    RECEIVE_MESSAGE_RECEIPT = 28
    SEND_CONTENT_RECEIPT = 29
    RECEIVE_ANNOUNCEMENT = 30
    CANCEL_INVITATION_GROUP = 31
    NOTIFIED_CANCEL_INVITATION_GROUP = 32
    NOTIFIED_UNREGISTER_USER = 33
    REJECT_GROUP_INVITATION = 34
    NOTIFIED_REJECT_GROUP_INVITATION = 35
    UPDATE_SETTINGS = 36
    NOTIFIED_REGISTER_USER = 37
    NOTIFIED_INVITE_INTO_ROOM_DIRECT = 38
    NOTIFIED_READ_MESSAGE = 55


# Operation kinds that carry an embedded message and go through resolution
MESSAGE_OP_TYPES = frozenset({OpType.END_OF_OPERATION, OpType.SEND_MESSAGE, OpType.RECEIVE_MESSAGE})


class MIDType(IntEnum):
    USER = 0
    ROOM = 1
    GROUP = 2


class ContentType(IntEnum):
    NONE = 0
    IMAGE = 1
    VIDEO = 2
    AUDIO = 3
    HTML = 4
    PDF = 5
    CALL = 6
    STICKER = 7
    PRESENCE = 8
    GIFT = 9
    GROUPBOARD = 10
    APPLINK = 11
    LINK = 12
    CONTACT = 13
    FILE = 14
    LOCATION = 15
    POSTNOTIFICATION = 16
    RICH = 17
    CHATEVENT = 18


class RemoteErrorCode(IntEnum):
    ILLEGAL_ARGUMENT = 0
    AUTHENTICATION_FAILED = 1
    DB_FAILED = 2
    INVALID_STATE = 3
    EXCESSIVE_ACCESS = 4
    NOT_FOUND = 5
    INVALID_LENGTH = 6
    NOT_AVAILABLE_USER = 7
    AUTH_INVALID = 8
    SESSION_CONFLICT = 9
    NOT_A_MEMBER = 10


def op_type_name(value: Optional[int]) -> Optional[str]:
    """Reverse lookup of an operation tag. Unknown tags give None."""
    try:
        return OpType(value).name
    except ValueError:
        return None


def content_type_name(value: Optional[int]) -> Optional[str]:
    """Reverse lookup of a content tag. Unknown tags give None."""
    try:
        return ContentType(value).name
    except ValueError:
        return None

"""
Raw records exchanged with the remote service.

Field names follow the wire (camelCase); Python attributes are snake_case.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RawRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class LoginResult(RawRecord):
    auth_token: Optional[str] = None
    certificate: Optional[str] = None
    verifier: Optional[str] = None
    pin_code: Optional[str] = None
    type: Optional[int] = None


class RawContact(RawRecord):
    mid: str
    display_name: str = ""
    status_message: Optional[str] = None
    picture_path: Optional[str] = None


class RawGroup(RawRecord):
    id: str
    name: str = ""
    creator: Optional[RawContact] = None
    members: list[RawContact] = Field(default_factory=list)
    invitee: list[RawContact] = Field(default_factory=list)


class RawRoom(RawRecord):
    mid: str
    contacts: list[RawContact] = Field(default_factory=list)


class RawMessage(RawRecord):
    """Message payload. Outbound messages only need ``to`` and ``text``."""
    id: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    to_type: Optional[int] = None
    created_time: Optional[int] = None
    text: Optional[str] = None
    has_content: bool = False
    content_type: int = 0
    content_preview: Optional[bytes] = None
    content_metadata: Optional[dict[str, str]] = None


class Operation(RawRecord):
    revision: int
    type: int
    created_time: Optional[int] = None
    message: Optional[RawMessage] = None
    param1: Optional[str] = None
    param2: Optional[str] = None
    param3: Optional[str] = None


class MessageBox(RawRecord):
    id: str
    mid_type: Optional[int] = None
    last_seq: Optional[int] = None


class MessageBoxWrapUp(RawRecord):
    message_box: MessageBox
    name: Optional[str] = None


class MessageBoxWrapUpList(RawRecord):
    message_box_wrap_up_list: list[MessageBoxWrapUp] = Field(default_factory=list)
    total_size: Optional[int] = None

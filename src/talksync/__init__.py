"""
talksync — session manager and incremental sync engine for a chat service.

Logs in, mirrors contacts/groups/rooms locally and keeps that mirror in step
with the server's revision-numbered operation log via long-polling.
"""

from talksync.client import AsyncTalkClient, TalkClient, LoginReport
from talksync.auth import Session
from talksync.config import ClientConfig, load_config, save_config
from talksync.directory import Directory
from talksync.errors import (
    TalkError,
    AuthRequired,
    AuthInvalid,
    SessionConflict,
    UnresolvedReference,
    RemoteCallFailure,
    GroupStateError,
    PollInProgress,
)
from talksync.models.entities import Contact, Group, Room, Message, EntityKind
from talksync.models.types import OpType, MIDType, ContentType, content_type_name, op_type_name
from talksync.sync import SyncEngine, SyncEvent, SyncEventType

__version__ = "0.1.0"
__all__ = [
    "AsyncTalkClient",
    "TalkClient",
    "LoginReport",
    "Session",
    "ClientConfig",
    "load_config",
    "save_config",
    "Directory",
    "TalkError",
    "AuthRequired",
    "AuthInvalid",
    "SessionConflict",
    "UnresolvedReference",
    "RemoteCallFailure",
    "GroupStateError",
    "PollInProgress",
    "Contact",
    "Group",
    "Room",
    "Message",
    "EntityKind",
    "OpType",
    "MIDType",
    "ContentType",
    "content_type_name",
    "op_type_name",
    "SyncEngine",
    "SyncEvent",
    "SyncEventType",
]

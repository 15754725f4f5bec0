"""
AsyncTalkClient / TalkClient — main SDK clients.

The client owns the Session (auth material and revision cursor), the
Directory (local mirror of contacts, groups and rooms) and the SyncEngine.
All remote calls go through a TalkGateway.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, AsyncGenerator, Awaitable, Generator, Iterable, Optional, TypeVar, Union

from talksync.auth import Session, requires_auth
from talksync.config import ClientConfig
from talksync.directory import Directory
from talksync.errors import (
    AuthInvalid,
    AuthRequired,
    GroupStateError,
    RemoteCallFailure,
    SessionConflict,
    TalkError,
    normalize_remote_error,
)
from talksync.models.entities import Contact, Entity, Group, Message, Room
from talksync.models.records import MessageBox, RawMessage
from talksync.models.types import MIDType
from talksync.sync import SyncEngine, SyncEvent
from talksync.transport.gateway import TalkGateway
from talksync.transport.http import HttpGateway

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Upper bound on message box pages fetched by one refresh_active_rooms()
MAX_ROOM_PAGES = 200


class LoginReport:
    """Outcome of login(): the initial state plus any failed bootstrap calls."""

    __slots__ = ("revision", "profile", "errors")

    def __init__(self, revision: int, profile: Optional[Contact], errors: list[TalkError]):
        self.revision = revision
        self.profile = profile
        self.errors = errors

    @property
    def ok(self) -> bool:
        return not self.errors

    def __repr__(self) -> str:
        return f"LoginReport(revision={self.revision}, profile={self.profile}, errors={len(self.errors)})"


class AsyncTalkClient:
    """Async client (primary)."""

    def __init__(
        self,
        id: Optional[str] = None,
        password: Optional[str] = None,
        auth_token: Optional[str] = None,
        certificate: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        gateway: Optional[TalkGateway] = None,
    ):
        self.config = config or ClientConfig()
        self.session = Session(
            id=id,
            password=password,
            auth_token=auth_token or self.config.auth_token,
            certificate=certificate or self.config.certificate,
        )
        self.gateway: TalkGateway = gateway or HttpGateway(self.config, token=self.session.auth_token)
        self.directory = Directory()
        self.sync = SyncEngine(self, batch_size=self.config.batch_size)

    @property
    def revision(self) -> int:
        return self.session.revision

    @property
    def profile(self) -> Optional[Contact]:
        return self.session.profile

    @property
    def authenticated(self) -> bool:
        return self.session.is_authenticated

    async def _remote(self, call: Awaitable[T]) -> T:
        try:
            return await call
        except RemoteCallFailure as e:
            raise normalize_remote_error(e)

    def _refresh_failed(self, what: str, err: RemoteCallFailure) -> RemoteCallFailure:
        """Boundary handling shared by the refresh calls."""
        if isinstance(err, SessionConflict):
            raise err
        if isinstance(err, AuthInvalid):
            self.session.invalidate(err.reason)
            self.gateway.set_token(None)
        logger.warning("%s failed: %s", what, err)
        return err

    # -- login -------------------------------------------------------------

    async def login(self) -> LoginReport:
        """Log in, then load revision, profile, contacts, groups and rooms.

        A failed login raises. Failures of the follow-up calls are collected
        into the report; the session stays authenticated.
        """
        if self.session.uses_token_login:
            logger.info("Logging in with auth token")
            result = await self._remote(
                self.gateway.token_login(self.session.auth_token, self.session.certificate)  # type: ignore[arg-type]
            )
        else:
            logger.info("Logging in as %s", self.session.id)
            result = await self._remote(
                self.gateway.login(self.session.id, self.session.password)  # type: ignore[arg-type]
            )

        self.session.accept_credentials(result.auth_token, result.certificate)
        if not self.session.is_authenticated:
            raise AuthRequired("Login did not return an auth token")
        self.gateway.set_token(self.session.auth_token)

        results = await asyncio.gather(
            self.get_last_op_revision(),
            self.get_profile(),
            self.refresh_contacts(),
            self.refresh_groups(),
            self.refresh_active_rooms(),
            return_exceptions=True,
        )
        errors: list[TalkError] = []
        for result in results:
            if isinstance(result, SessionConflict):
                raise result
            if isinstance(result, AuthRequired) and not self.session.is_authenticated:
                # the token was cleared by a sibling call whose AuthInvalid is reported
                continue
            if isinstance(result, TalkError):
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result
        for err in errors:
            logger.warning("Login bootstrap call failed: %s", err)
        return LoginReport(self.session.revision, self.session.profile, errors)

    @requires_auth
    async def get_last_op_revision(self) -> int:
        revision = await self._remote(self.gateway.get_last_operation_revision())
        return self.session.advance_revision(revision)

    @requires_auth
    async def get_profile(self) -> Contact:
        record = await self._remote(self.gateway.get_profile())
        self.session.profile = Contact(self, record)
        self.directory.profile = self.session.profile
        return self.session.profile

    # -- directory refresh -------------------------------------------------

    @requires_auth
    async def refresh_contacts(self) -> Union[list[Contact], RemoteCallFailure]:
        """Replace the contact store with the full remote contact list."""
        try:
            ids = await self._remote(self.gateway.get_all_contact_ids())
            records = await self._remote(self.gateway.get_contacts(ids))
        except RemoteCallFailure as e:
            return self._refresh_failed("refresh_contacts", e)
        return self.directory.replace_contacts(Contact(self, record) for record in records)

    @requires_auth
    async def add_groups_with_ids(
        self, group_ids: Iterable[str], is_joined: bool = True,
    ) -> Union[list[Group], RemoteCallFailure]:
        """Fetch groups and add them to the group store without removing others."""
        return await self._add_groups(group_ids, is_joined)

    async def _add_groups(self, group_ids: Iterable[str], is_joined: bool) -> Union[list[Group], RemoteCallFailure]:
        group_ids = list(group_ids)
        if not group_ids:
            return self.directory.groups
        try:
            records = await self._remote(self.gateway.get_groups(group_ids))
        except RemoteCallFailure as e:
            return self._refresh_failed("add_groups_with_ids", e)
        return self.directory.put_groups(Group(self, record, is_joined) for record in records)

    @requires_auth
    async def refresh_groups(self) -> Union[list[Group], RemoteCallFailure]:
        """Refresh joined and invited groups; the two passes are independent."""
        results = await asyncio.gather(
            self._add_group_ids("joined", True),
            self._add_group_ids("invited", False),
        )
        for result in results:
            if isinstance(result, RemoteCallFailure):
                return result
        return self.directory.groups

    async def _add_group_ids(self, which: str, is_joined: bool) -> Union[list[Group], RemoteCallFailure]:
        fetch = self.gateway.get_group_ids_joined if is_joined else self.gateway.get_group_ids_invited
        try:
            group_ids = await self._remote(fetch())
        except RemoteCallFailure as e:
            return self._refresh_failed(f"refresh_groups ({which})", e)
        return await self._add_groups(group_ids, is_joined)

    @requires_auth
    async def refresh_active_rooms(self) -> Union[list[Room], RemoteCallFailure]:
        """Page through message boxes and add every room found.

        A page shorter than the page size is the last one. When the listing
        reports a total, paging also stops once that many boxes were seen.
        """
        page_size = self.config.room_page_size
        start = 1
        seen = 0
        rooms: list[Room] = []
        try:
            for _ in range(MAX_ROOM_PAGES):
                page = await self._remote(
                    self.gateway.get_message_box_compact_wrap_up_list(start, page_size)
                )
                boxes = page.message_box_wrap_up_list
                for box in boxes:
                    if box.message_box.mid_type == MIDType.ROOM:
                        record = await self._remote(self.gateway.get_room(box.message_box.id))
                        rooms.append(Room(self, record))
                seen += len(boxes)
                if len(boxes) < page_size:
                    break
                if page.total_size is not None and seen >= page.total_size:
                    break
                start += page_size
            else:
                logger.warning("refresh_active_rooms stopped after %d pages", MAX_ROOM_PAGES)
        except RemoteCallFailure as e:
            return self._refresh_failed("refresh_active_rooms", e)
        return self.directory.put_rooms(rooms)

    # -- lookup ------------------------------------------------------------

    def get_contact_by_id(self, id: str) -> Optional[Contact]:
        return self.directory.get_contact_by_id(id)

    def get_contact_by_name(self, name: str) -> Optional[Contact]:
        return self.directory.get_contact_by_name(name)

    def get_group_by_id(self, id: str) -> Optional[Group]:
        return self.directory.get_group_by_id(id)

    def get_group_by_name(self, name: str) -> Optional[Group]:
        return self.directory.get_group_by_name(name)

    def get_room_by_id(self, id: str) -> Optional[Room]:
        return self.directory.get_room_by_id(id)

    def get_contact_or_room_or_group_by_id(self, id: str) -> Optional[Entity]:
        return self.directory.resolve(id)

    # -- groups ------------------------------------------------------------

    @requires_auth
    async def create_group_with_ids(self, name: str, ids: Optional[Iterable[str]] = None) -> Group:
        record = await self._remote(self.gateway.create_group(name, list(ids or [])))
        group = Group(self, record)
        self.directory.put_groups([group])
        return group

    async def create_group_with_contacts(self, name: str, contacts: Iterable[Contact] = ()) -> Group:
        return await self.create_group_with_ids(name, [contact.id for contact in contacts])

    @requires_auth
    async def invite_into_group(self, group: Group, contacts: Iterable[Contact] = ()) -> Any:
        return await self._remote(
            self.gateway.invite_into_group(group.id, [contact.id for contact in contacts])
        )

    @requires_auth
    async def accept_group_invitation(self, group: Group) -> Any:
        if group.is_joined:
            raise GroupStateError("You are already in group", group.id)
        result = await self._remote(self.gateway.accept_group_invitation(group.id))
        self.directory.put_groups([group.with_joined(True)])
        return result

    @requires_auth
    async def leave_group(self, group: Group) -> bool:
        try:
            await self._remote(self.gateway.leave_group(group.id))
        except SessionConflict:
            raise
        except RemoteCallFailure as e:
            logger.warning("leave_group %s failed: %s", group.id, e)
            return False
        self.directory.remove_group(group.id)
        return True

    # -- rooms -------------------------------------------------------------

    @requires_auth
    async def create_room_with_ids(self, ids: Optional[Iterable[str]] = None) -> Room:
        record = await self._remote(self.gateway.create_room(list(ids or [])))
        room = Room(self, record)
        self.directory.put_rooms([room])
        return room

    async def create_room_with_contacts(self, contacts: Iterable[Contact] = ()) -> Room:
        return await self.create_room_with_ids([contact.id for contact in contacts])

    @requires_auth
    async def invite_into_room(self, room: Room, contacts: Iterable[Contact] = ()) -> Any:
        return await self._remote(
            self.gateway.invite_into_room(room.id, [contact.id for contact in contacts])
        )

    @requires_auth
    async def leave_room(self, room: Room) -> bool:
        """Leave a room and drop it from the Directory.

        No local membership check is made: leaving a room that is already
        gone locally still issues the remote call.
        """
        try:
            await self._remote(self.gateway.leave_room(room.id))
        except SessionConflict:
            raise
        except RemoteCallFailure as e:
            logger.warning("leave_room %s failed: %s", room.id, e)
            return False
        self.directory.remove_room(room.id)
        return True

    # -- messages ----------------------------------------------------------

    @requires_auth
    async def send_message(self, message: RawMessage, seq: int = 0) -> RawMessage:
        return await self._remote(self.gateway.send_message(message, seq))

    @requires_auth
    async def send_chat_checked(self, consumer: str, last_message_id: str, seq: int = 0) -> Any:
        return await self._remote(self.gateway.send_chat_checked(consumer, last_message_id, seq))

    @requires_auth
    async def get_message_box(self, id: str) -> MessageBox:
        wrap_up = await self._remote(self.gateway.get_message_box_compact_wrap_up(id))
        return wrap_up.message_box

    @requires_auth
    async def get_recent_messages(self, message_box: Union[MessageBox, str], count: int = 1) -> list[Message]:
        """Recent messages of a box, resolved against the Directory as it is now."""
        box_id = message_box.id if isinstance(message_box, MessageBox) else message_box
        records = await self._remote(self.gateway.get_recent_messages(box_id, count))
        return self.messages_from_records(records)

    def messages_from_records(self, records: Iterable[RawMessage]) -> list[Message]:
        return [Message.from_record(self.directory, record) for record in records]

    @requires_auth
    async def post_content(self, data: dict[str, Any], file_path: Union[str, Path]) -> dict[str, Any]:
        result = await self._remote(self.gateway.post_content(self.config.content_url, data, file_path))
        if isinstance(result, dict) and result.get("error"):
            raise RemoteCallFailure(f"postContent: {result['error']}")
        return result

    async def download(self, url: str) -> bytes:
        return await self._remote(self.gateway.download(url))

    # -- sync --------------------------------------------------------------

    async def poll(self, count: Optional[int] = None) -> SyncEvent:
        """Run one long-poll cycle."""
        return await self.sync.poll_once(count)

    async def listen(self, count: Optional[int] = None) -> AsyncGenerator[SyncEvent, None]:
        """Yield sync events until the session conflicts or the caller stops."""
        async for event in self.sync.listen(count):
            yield event

    async def close(self) -> None:
        await self.gateway.close()


class TalkClient:
    """Sync wrapper around AsyncTalkClient. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncTalkClient(**kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def session(self) -> Session:
        return self._async.session

    @property
    def directory(self) -> Directory:
        return self._async.directory

    @property
    def revision(self) -> int:
        return self._async.revision

    @property
    def profile(self) -> Optional[Contact]:
        return self._async.profile

    @property
    def authenticated(self) -> bool:
        return self._async.authenticated

    def login(self) -> LoginReport:
        return self._run(self._async.login())

    def get_last_op_revision(self) -> int:
        return self._run(self._async.get_last_op_revision())

    def get_profile(self) -> Contact:
        return self._run(self._async.get_profile())

    def refresh_contacts(self) -> Union[list[Contact], RemoteCallFailure]:
        return self._run(self._async.refresh_contacts())

    def refresh_groups(self) -> Union[list[Group], RemoteCallFailure]:
        return self._run(self._async.refresh_groups())

    def add_groups_with_ids(
        self, group_ids: Iterable[str], is_joined: bool = True,
    ) -> Union[list[Group], RemoteCallFailure]:
        return self._run(self._async.add_groups_with_ids(group_ids, is_joined))

    def refresh_active_rooms(self) -> Union[list[Room], RemoteCallFailure]:
        return self._run(self._async.refresh_active_rooms())

    def get_contact_by_id(self, id: str) -> Optional[Contact]:
        return self._async.get_contact_by_id(id)

    def get_contact_by_name(self, name: str) -> Optional[Contact]:
        return self._async.get_contact_by_name(name)

    def get_group_by_id(self, id: str) -> Optional[Group]:
        return self._async.get_group_by_id(id)

    def get_group_by_name(self, name: str) -> Optional[Group]:
        return self._async.get_group_by_name(name)

    def get_room_by_id(self, id: str) -> Optional[Room]:
        return self._async.get_room_by_id(id)

    def get_contact_or_room_or_group_by_id(self, id: str) -> Optional[Entity]:
        return self._async.get_contact_or_room_or_group_by_id(id)

    def create_group_with_ids(self, name: str, ids: Optional[Iterable[str]] = None) -> Group:
        return self._run(self._async.create_group_with_ids(name, ids))

    def create_group_with_contacts(self, name: str, contacts: Iterable[Contact] = ()) -> Group:
        return self._run(self._async.create_group_with_contacts(name, contacts))

    def invite_into_group(self, group: Group, contacts: Iterable[Contact] = ()) -> Any:
        return self._run(self._async.invite_into_group(group, contacts))

    def accept_group_invitation(self, group: Group) -> Any:
        return self._run(self._async.accept_group_invitation(group))

    def leave_group(self, group: Group) -> bool:
        return self._run(self._async.leave_group(group))

    def create_room_with_ids(self, ids: Optional[Iterable[str]] = None) -> Room:
        return self._run(self._async.create_room_with_ids(ids))

    def create_room_with_contacts(self, contacts: Iterable[Contact] = ()) -> Room:
        return self._run(self._async.create_room_with_contacts(contacts))

    def invite_into_room(self, room: Room, contacts: Iterable[Contact] = ()) -> Any:
        return self._run(self._async.invite_into_room(room, contacts))

    def leave_room(self, room: Room) -> bool:
        return self._run(self._async.leave_room(room))

    def send_message(self, message: RawMessage, seq: int = 0) -> RawMessage:
        return self._run(self._async.send_message(message, seq))

    def send_chat_checked(self, consumer: str, last_message_id: str, seq: int = 0) -> Any:
        return self._run(self._async.send_chat_checked(consumer, last_message_id, seq))

    def get_message_box(self, id: str) -> MessageBox:
        return self._run(self._async.get_message_box(id))

    def get_recent_messages(self, message_box: Union[MessageBox, str], count: int = 1) -> list[Message]:
        return self._run(self._async.get_recent_messages(message_box, count))

    def post_content(self, data: dict[str, Any], file_path: Union[str, Path]) -> dict[str, Any]:
        return self._run(self._async.post_content(data, file_path))

    def download(self, url: str) -> bytes:
        return self._run(self._async.download(url))

    def poll(self, count: Optional[int] = None) -> SyncEvent:
        return self._run(self._async.poll(count))

    def listen(self, count: Optional[int] = None) -> Generator[SyncEvent, None, None]:
        """Blocking iterator over sync events."""
        events = self._async.listen(count).__aiter__()
        try:
            while True:
                try:
                    yield self._run(events.__anext__())
                except StopAsyncIteration:
                    return
        finally:
            self._run(events.aclose())

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()

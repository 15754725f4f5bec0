"""
HTTP gateway — JSON RPC over httpx.

Each remote call is a POST of ``{"method": ..., "params": {...}}``. A reply
is either ``{"result": ...}`` or ``{"error": {"code": int, "reason": str}}``.
fetchOperations goes to the long-poll path with its own, longer timeout.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import httpx
from pydantic import TypeAdapter, ValidationError

from talksync.config import ClientConfig
from talksync.errors import RemoteCallFailure, remote_error
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

logger = logging.getLogger(__name__)

USER_AGENT = "talksync/0.1.0"


class HttpGateway:
    def __init__(self, config: Optional[ClientConfig] = None, token: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._config = config or ClientConfig()
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url.rstrip("/"),
            headers={
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
                "X-Line-Application": self._config.application,
            },
            timeout=self._config.timeout,
            transport=transport,
        )

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._token:
            headers["X-Line-Access"] = self._token
        return headers

    @staticmethod
    def _unwrap(method: str, json_data: Any) -> Any:
        """Unwrap ``{"result": ...}``; raise on ``{"error": {...}}``."""
        if isinstance(json_data, dict):
            error = json_data.get("error")
            if error:
                if isinstance(error, dict):
                    raise remote_error(error.get("code"), error.get("reason") or f"{method} failed")
                raise RemoteCallFailure(f"{method}: {error}")
            if "result" in json_data:
                return json_data["result"]
        return json_data

    async def _call(self, method: str, params: Optional[dict[str, Any]] = None, poll: bool = False) -> Any:
        path = self._config.poll_path if poll else self._config.rpc_path
        logger.debug("-> %s", method)
        timeout = self._config.poll_timeout if poll else self._config.timeout
        try:
            resp = await self._client.post(
                path,
                json={"method": method, "params": params or {}},
                headers=self._auth_headers(),
                timeout=timeout,
            )
        except httpx.HTTPError as e:
            raise RemoteCallFailure(f"{method}: {e}") from e
        try:
            body = resp.json()
        except ValueError:
            body = None
        if resp.status_code >= 400:
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                self._unwrap(method, body)
            raise RemoteCallFailure(f"HTTP {resp.status_code}: {resp.text[:200]}")
        if body is None:
            raise RemoteCallFailure(f"{method}: response is not JSON")
        return self._unwrap(method, body)

    @staticmethod
    def _parse(method: str, model: Any, data: Any) -> Any:
        try:
            return TypeAdapter(model).validate_python(data)
        except ValidationError as e:
            raise RemoteCallFailure(f"{method}: malformed response: {e}") from e

    async def login(self, id: str, password: str) -> LoginResult:
        data = await self._call("loginWithIdentityCredentialForCertificate", {
            "identifier": id, "password": password, "keepLoggedIn": True,
        })
        return self._parse("login", LoginResult, data)

    async def token_login(self, token: str, certificate: Optional[str]) -> LoginResult:
        self.set_token(token)
        data = await self._call("loginWithVerifierForCertificate", {
            "authToken": token, "certificate": certificate,
        })
        return self._parse("tokenLogin", LoginResult, data or {})

    async def get_last_operation_revision(self) -> int:
        return self._parse("getLastOpRevision", int, await self._call("getLastOpRevision"))

    async def get_profile(self) -> RawContact:
        return self._parse("getProfile", RawContact, await self._call("getProfile"))

    async def get_all_contact_ids(self) -> list[str]:
        return self._parse("getAllContactIds", list[str], await self._call("getAllContactIds"))

    async def get_contacts(self, ids: list[str]) -> list[RawContact]:
        data = await self._call("getContacts", {"ids": ids})
        return self._parse("getContacts", list[RawContact], data)

    async def get_group_ids_joined(self) -> list[str]:
        return self._parse("getGroupIdsJoined", list[str], await self._call("getGroupIdsJoined"))

    async def get_group_ids_invited(self) -> list[str]:
        return self._parse("getGroupIdsInvited", list[str], await self._call("getGroupIdsInvited"))

    async def get_groups(self, ids: list[str]) -> list[RawGroup]:
        data = await self._call("getGroups", {"groupIds": ids})
        return self._parse("getGroups", list[RawGroup], data)

    async def get_message_box_compact_wrap_up_list(self, start: int, count: int) -> MessageBoxWrapUpList:
        data = await self._call("getMessageBoxCompactWrapUpList", {"start": start, "messageBoxCount": count})
        return self._parse("getMessageBoxCompactWrapUpList", MessageBoxWrapUpList, data or {})

    async def get_message_box_compact_wrap_up(self, id: str) -> MessageBoxWrapUp:
        data = await self._call("getMessageBoxCompactWrapUp", {"mid": id})
        return self._parse("getMessageBoxCompactWrapUp", MessageBoxWrapUp, data)

    async def get_room(self, id: str) -> RawRoom:
        return self._parse("getRoom", RawRoom, await self._call("getRoom", {"roomId": id}))

    async def create_group(self, name: str, ids: list[str]) -> RawGroup:
        data = await self._call("createGroup", {"seq": 0, "name": name, "contactIds": ids})
        return self._parse("createGroup", RawGroup, data)

    async def invite_into_group(self, group_id: str, ids: list[str]) -> Any:
        return await self._call("inviteIntoGroup", {"seq": 0, "groupId": group_id, "contactIds": ids})

    async def accept_group_invitation(self, group_id: str) -> Any:
        return await self._call("acceptGroupInvitation", {"seq": 0, "groupId": group_id})

    async def leave_group(self, group_id: str) -> Any:
        return await self._call("leaveGroup", {"seq": 0, "groupId": group_id})

    async def create_room(self, ids: list[str]) -> RawRoom:
        data = await self._call("createRoom", {"reqSeq": 0, "contactIds": ids})
        return self._parse("createRoom", RawRoom, data)

    async def invite_into_room(self, room_id: str, ids: list[str]) -> Any:
        return await self._call("inviteIntoRoom", {"reqSeq": 0, "roomId": room_id, "contactIds": ids})

    async def leave_room(self, room_id: str) -> Any:
        return await self._call("leaveRoom", {"reqSeq": 0, "roomId": room_id})

    async def send_message(self, message: RawMessage, seq: int = 0) -> RawMessage:
        data = await self._call("sendMessage", {
            "seq": seq,
            "message": message.model_dump(mode="json", by_alias=True, exclude_none=True),
        })
        return self._parse("sendMessage", RawMessage, data)

    async def send_chat_checked(self, consumer: str, last_message_id: str, seq: int = 0) -> Any:
        return await self._call("sendChatChecked", {
            "seq": seq, "consumer": consumer, "lastMessageId": last_message_id,
        })

    async def fetch_operations(self, revision: int, count: int) -> list[Operation]:
        data = await self._call("fetchOperations", {"localRev": revision, "count": count}, poll=True)
        return self._parse("fetchOperations", list[Operation], data or [])

    async def get_recent_messages(self, message_box_id: str, count: int) -> list[RawMessage]:
        data = await self._call("getRecentMessages", {"messageBoxId": message_box_id, "messagesCount": count})
        return self._parse("getRecentMessages", list[RawMessage], data or [])

    async def post_content(self, url: str, data: dict[str, Any], file_path: Union[str, Path]) -> dict[str, Any]:
        """Multipart upload of a message's content to the object storage endpoint."""
        path = Path(file_path)
        headers = {"X-Line-Access": self._token} if self._token else {}
        try:
            with path.open("rb") as fh:
                resp = await self._client.post(
                    url, data=data, files={"file": (path.name, fh, "image/jpeg")}, headers=headers,
                )
        except httpx.HTTPError as e:
            raise RemoteCallFailure(f"postContent: {e}") from e
        if resp.status_code >= 400:
            raise RemoteCallFailure(f"HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError:
            return {"status": resp.status_code, "text": resp.text}

    async def download(self, url: str) -> bytes:
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as e:
            raise RemoteCallFailure(f"download {url}: {e}") from e
        if resp.status_code >= 400:
            raise RemoteCallFailure(f"HTTP {resp.status_code} downloading {url}")
        return resp.content

    async def close(self) -> None:
        await self._client.aclose()

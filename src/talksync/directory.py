"""
Directory — the local mirror of contacts, groups and rooms.

Each kind is a separate namespace keyed by id. Stores are kept in ascending
id order so iteration is deterministic. Mutations are whole-batch: a batch
either lands completely or not at all.
"""

from __future__ import annotations

from typing import Iterable, Optional

from talksync.models.entities import Contact, Entity, EntityKind, Group, Room


def _sorted_by_id(items: dict) -> dict:
    return dict(sorted(items.items()))


class Directory:
    def __init__(self) -> None:
        self._contacts: dict[str, Contact] = {}
        self._groups: dict[str, Group] = {}
        self._rooms: dict[str, Room] = {}
        # the logged-in user; never part of the contact store
        self.profile: Optional[Contact] = None

    # -- snapshots ---------------------------------------------------------

    @property
    def contacts(self) -> list[Contact]:
        return list(self._contacts.values())

    @property
    def groups(self) -> list[Group]:
        return list(self._groups.values())

    @property
    def rooms(self) -> list[Room]:
        return list(self._rooms.values())

    # -- mutation ----------------------------------------------------------

    def replace_contacts(self, contacts: Iterable[Contact]) -> list[Contact]:
        self._contacts = _sorted_by_id({c.id: c for c in contacts})
        return self.contacts

    def put_contacts(self, contacts: Iterable[Contact]) -> list[Contact]:
        merged = dict(self._contacts)
        merged.update((c.id, c) for c in contacts)
        self._contacts = _sorted_by_id(merged)
        return self.contacts

    def put_groups(self, groups: Iterable[Group]) -> list[Group]:
        merged = dict(self._groups)
        merged.update((g.id, g) for g in groups)
        self._groups = _sorted_by_id(merged)
        return self.groups

    def put_rooms(self, rooms: Iterable[Room]) -> list[Room]:
        merged = dict(self._rooms)
        merged.update((r.id, r) for r in rooms)
        self._rooms = _sorted_by_id(merged)
        return self.rooms

    def remove_group(self, id: str) -> Optional[Group]:
        return self._groups.pop(id, None)

    def remove_room(self, id: str) -> Optional[Room]:
        return self._rooms.pop(id, None)

    def clear(self) -> None:
        self._contacts = {}
        self._groups = {}
        self._rooms = {}
        self.profile = None

    # -- lookup ------------------------------------------------------------

    def get_contact_by_id(self, id: Optional[str]) -> Optional[Contact]:
        return self._contacts.get(id) if id is not None else None

    def get_contact_by_name(self, name: str) -> Optional[Contact]:
        for contact in self._contacts.values():
            if contact.name == name:
                return contact
        return None

    def get_group_by_id(self, id: Optional[str]) -> Optional[Group]:
        return self._groups.get(id) if id is not None else None

    def get_group_by_name(self, name: str) -> Optional[Group]:
        for group in self._groups.values():
            if group.name == name:
                return group
        return None

    def get_room_by_id(self, id: Optional[str]) -> Optional[Room]:
        return self._rooms.get(id) if id is not None else None

    def resolve(self, id: Optional[str]) -> Optional[Entity]:
        """Look an id up as a contact, then a room, then a group.

        The user's own id resolves to the profile contact.
        """
        return (
            self.get_contact_by_id(id)
            or self._self_contact(id)
            or self.get_room_by_id(id)
            or self.get_group_by_id(id)
        )

    def _self_contact(self, id: Optional[str]) -> Optional[Contact]:
        if self.profile is not None and id is not None and self.profile.id == id:
            return self.profile
        return None

    def resolve_sender(self, sender_id: Optional[str], receiver: Optional[Entity]) -> Optional[Entity]:
        """Resolve a sender, falling back to the receiving group's member list.

        Group members that were never cached individually can still be
        resolved when the message was addressed to their group.
        """
        sender = self.resolve(sender_id)
        if sender is None and sender_id is not None and receiver is not None and receiver.kind is EntityKind.GROUP:
            sender = receiver.find_member(sender_id)
        return sender

    # -- membership --------------------------------------------------------

    def rooms_containing(self, contact_id: str) -> list[Room]:
        return [room for room in self._rooms.values() if room.contains_id(contact_id)]

    def groups_containing(self, contact_id: str) -> list[Group]:
        return [group for group in self._groups.values() if group.contains_id(contact_id)]

    def __len__(self) -> int:
        return len(self._contacts) + len(self._groups) + len(self._rooms)

    def __repr__(self) -> str:
        return (
            f"Directory(contacts={len(self._contacts)}, groups={len(self._groups)}, "
            f"rooms={len(self._rooms)})"
        )

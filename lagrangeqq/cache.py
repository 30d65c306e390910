"""In-memory cache of friends, groups, group members and rkeys."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from enum import Enum, auto
from typing import Any

from lagrangeqq.entity import Group, GroupMember, RKeyInfo, User


class _Kind(Enum):
    SUB_CACHE = auto()
    FRIEND = auto()
    GROUP_INFO = auto()
    GROUP_MEMBER = auto()
    RKEY = auto()


class Cache:
    """Thread-safe store of contact data, grouped by kind.

    Group member lists are kept in nested caches, one per group.  A kind
    counts as empty until it has been refreshed as a whole at least once.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._stores: dict[_Kind, dict[int, Any]] = {kind: {} for kind in _Kind}
        self._refreshed: set[_Kind] = set()

    # -- internal helpers -------------------------------------------------

    def _get(self, kind: _Kind, key: int) -> Any:
        with self._lock:
            return self._stores[kind].get(key)

    def _set(self, kind: _Kind, key: int, value: Any) -> None:
        with self._lock:
            self._stores[kind][key] = value

    def _items(self, kind: _Kind) -> list[tuple[int, Any]]:
        with self._lock:
            return list(self._stores[kind].items())

    def _replace(self, kind: _Kind, new: Mapping[int, Any] | None) -> None:
        with self._lock:
            self._refreshed.add(kind)
            self._stores[kind] = dict(new or {})

    def _has_refreshed(self, kind: _Kind) -> bool:
        with self._lock:
            return kind in self._refreshed

    def _group(self, group_uin: int) -> Cache | None:
        return self._get(_Kind.SUB_CACHE, group_uin)

    # -- lookups ----------------------------------------------------------

    def get_uid(self, uin: int, *args: int) -> str:
        """Return the uid of a friend, or of a member of group ``args[0]``; "" if unknown."""
        if not args:
            friend = self._get(_Kind.FRIEND, uin)
            return friend.uid if friend is not None else ""
        group = self._group(args[0])
        if group is not None:
            member = group._get(_Kind.GROUP_MEMBER, uin)
            if member is not None:
                return member.uid
        return ""

    def get_uin(self, uid: str, *args: int) -> int:
        """Return the uin of a friend, or of a member of group ``args[0]``; 0 if unknown."""
        if not args:
            source: Cache | None = self
            kind = _Kind.FRIEND
        else:
            source = self._group(args[0])
            kind = _Kind.GROUP_MEMBER
        if source is None:
            return 0
        return next((key for key, value in source._items(kind) if value.uid == uid), 0)

    def get_friend(self, uin: int) -> User | None:
        return self._get(_Kind.FRIEND, uin)

    def get_all_friends(self) -> dict[int, User]:
        return dict(self._items(_Kind.FRIEND))

    def get_group_info(self, group_uin: int) -> Group | None:
        return self._get(_Kind.GROUP_INFO, group_uin)

    def get_all_groups_info(self) -> dict[int, Group]:
        return dict(self._items(_Kind.GROUP_INFO))

    def get_group_member(self, uin: int, group_uin: int) -> GroupMember | None:
        group = self._group(group_uin)
        if group is None:
            return None
        return group._get(_Kind.GROUP_MEMBER, uin)

    def get_group_members(self, group_uin: int) -> dict[int, GroupMember]:
        """Members of a group keyed by their uin; empty when the group is unknown."""
        group = self._group(group_uin)
        if group is None:
            return {}
        return {member.uin: member for _, member in group._items(_Kind.GROUP_MEMBER)}

    def get_rkey_info(self, rkey_type: int) -> RKeyInfo | None:
        return self._get(_Kind.RKEY, rkey_type)

    def get_all_rkey_info(self) -> dict[int, RKeyInfo]:
        return dict(self._items(_Kind.RKEY))

    # -- emptiness --------------------------------------------------------

    def friend_cache_is_empty(self) -> bool:
        return not self._has_refreshed(_Kind.FRIEND)

    def group_members_cache_is_empty(self) -> bool:
        return not self._has_refreshed(_Kind.SUB_CACHE)

    def group_member_cache_is_empty(self, group_uin: int) -> bool:
        group = self._group(group_uin)
        if group is None:
            return True
        return not group._has_refreshed(_Kind.GROUP_MEMBER)

    def group_info_cache_is_empty(self) -> bool:
        return not self._has_refreshed(_Kind.GROUP_INFO)

    def rkey_info_cache_is_empty(self) -> bool:
        return not self._has_refreshed(_Kind.RKEY)

    # -- updates ----------------------------------------------------------

    def refresh_all(
        self,
        friend_cache: Mapping[int, User] | None,
        group_cache: Mapping[int, Group] | None,
        group_member_cache: Mapping[int, Mapping[int, GroupMember]] | None,
        rkey_cache: Mapping[int, RKeyInfo] | None,
    ) -> None:
        self.refresh_all_friend(friend_cache)
        self.refresh_all_group(group_cache)
        self.refresh_all_group_members(group_member_cache)
        self.refresh_all_rkey_info(rkey_cache)

    def refresh_friend(self, friend: User) -> None:
        self._set(_Kind.FRIEND, friend.uin, friend)

    def refresh_all_friend(self, friend_cache: Mapping[int, User] | None) -> None:
        self._replace(_Kind.FRIEND, friend_cache)

    def refresh_group_member(self, group_uin: int, group_member: GroupMember) -> None:
        with self._lock:
            group = self._group(group_uin)
            if group is None:
                group = Cache()
                self._set(_Kind.SUB_CACHE, group_uin, group)
        group._set(_Kind.GROUP_MEMBER, group_member.uin, group_member)

    def refresh_group_members(
        self, group_uin: int, group_members: Mapping[int, GroupMember] | None
    ) -> None:
        group = Cache()
        group._replace(_Kind.GROUP_MEMBER, group_members)
        self._set(_Kind.SUB_CACHE, group_uin, group)

    def refresh_all_group_members(
        self, group_member_cache: Mapping[int, Mapping[int, GroupMember]] | None
    ) -> None:
        groups: dict[int, Cache] = {}
        for group_uin, members in (group_member_cache or {}).items():
            group = Cache()
            group._replace(_Kind.GROUP_MEMBER, members)
            groups[group_uin] = group
        self._replace(_Kind.SUB_CACHE, groups)

    def refresh_group(self, group: Group) -> None:
        self._set(_Kind.GROUP_INFO, group.group_uin, group)

    def refresh_all_group(self, group_cache: Mapping[int, Group] | None) -> None:
        self._replace(_Kind.GROUP_INFO, group_cache)

    def refresh_all_rkey_info(self, rkey_cache: Mapping[int, RKeyInfo] | None) -> None:
        self._replace(_Kind.RKEY, rkey_cache)
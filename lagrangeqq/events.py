"""Friend and group notification events."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from lagrangeqq.auth import SigInfo

UidResolver = Callable[..., int]
"""Callable mapping ``(uid, *group_uin)`` to a uin."""

TemplateParams = Union[Mapping[str, str], Iterable[tuple[str, str]]]

_MASK32 = 0xFFFFFFFF
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")
_TITLE_PARAM = re.compile(r"<({.*?})>")
_DEFAULT_POKE_ACTION = "戳了戳"


def _atoi_u32(text: str) -> int:
    """Parse a decimal integer leniently, yielding 0 on failure, truncated to 32 bits."""
    if not _DECIMAL.fullmatch(text):
        return 0
    value = max(_INT64_MIN, min(_INT64_MAX, int(text)))
    return value & _MASK32


def _pairs(params: TemplateParams) -> Iterable[tuple[str, str]]:
    if isinstance(params, Mapping):
        return params.items()
    return params


def _poke_content(sender: int, action: str, receiver: int, suffix: str) -> str:
    if suffix:
        return f"{sender}{action}{receiver}的{suffix}"
    return f"{sender}{action}{receiver}"


class NotifyEvent(ABC):
    """A notification with an originator and a readable description."""

    @abstractmethod
    def from_uin(self) -> int:
        """The uin the notification comes from."""

    @abstractmethod
    def content(self) -> str:
        """A human readable description."""


@dataclass
class NewFriendRequest:
    source_uin: int = 0
    source_uid: str = ""
    source_nick: str = ""
    msg: str = ""
    source: str = ""


@dataclass
class NewFriend:
    from_uin: int = 0
    from_uid: str = ""
    from_nick: str = ""
    msg: str = ""

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.from_uin = resolver(self.from_uid)


@dataclass
class FriendRecall:
    from_uin: int = 0
    from_uid: str = ""
    sequence: int = 0
    time: int = 0
    random: int = 0

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.from_uin = resolver(self.from_uid)


@dataclass
class Rename:
    sub_type: int = 0  # 0 self, 1 friend
    uin: int = 0
    uid: str = ""
    nickname: str = ""

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.uin = resolver(self.uid)


@dataclass
class FriendPokeEvent(NotifyEvent):
    sender: int = 0
    receiver: int = 0
    suffix: str = ""
    action: str = ""

    def from_uin(self) -> int:
        return self.sender

    def content(self) -> str:
        return _poke_content(self.sender, self.action, self.receiver, self.suffix)


@dataclass
class GroupEvent:
    """Common fields of group events; the user is the subject of the event."""

    group_uin: int = 0
    user_uin: int = 0
    user_uid: str = ""


@dataclass
class GroupMemberPermissionChanged(GroupEvent):
    is_admin: bool = False

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.user_uin = resolver(self.user_uid, self.group_uin)


@dataclass
class GroupNameUpdated(GroupEvent):
    new_name: str = ""

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.user_uin = resolver(self.user_uid, self.group_uin)


@dataclass
class GroupMute(GroupEvent):
    """A mute; the user is the muted member, empty for a mute of everyone."""

    operator_uid: str = ""
    operator_uin: int = 0
    duration: int = 0

    def mute_all(self) -> bool:
        return self.operator_uid == ""

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.operator_uin = resolver(self.operator_uid, self.group_uin)
        self.user_uin = resolver(self.user_uid, self.group_uin)


@dataclass
class GroupRecall(GroupEvent):
    """A recalled message; the user is its author."""

    operator_uid: str = ""
    operator_uin: int = 0
    sequence: int = 0
    time: int = 0
    random: int = 0

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.operator_uin = resolver(self.operator_uid, self.group_uin)
        self.user_uin = resolver(self.user_uid, self.group_uin)


@dataclass
class GroupMemberJoinRequest(GroupEvent):
    """A request to join; the user is the applicant."""

    target_nick: str = ""
    invitor_uid: str = ""
    invitor_uin: int = 0
    answer: str = ""
    request_seq: int = 0

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.invitor_uin = resolver(self.invitor_uid, self.group_uin)


@dataclass
class GroupMemberIncrease(GroupEvent):
    invitor_uid: str = ""
    invitor_uin: int = 0
    join_type: int = 0

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.invitor_uin = resolver(self.invitor_uid, self.group_uin)
        self.user_uin = resolver(self.user_uid, self.group_uin)


@dataclass
class GroupMemberDecrease(GroupEvent):
    operator_uid: str = ""
    operator_uin: int = 0
    exit_type: int = 0

    def is_kicked(self) -> bool:
        return self.exit_type in (131, 3)

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.operator_uin = resolver(self.operator_uid, self.group_uin)
        self.user_uin = resolver(self.user_uid, self.group_uin)


@dataclass
class GroupDigestEvent(GroupEvent):
    """An essence message change; the user is the message author."""

    message_id: int = 0
    internal_message_id: int = 0
    operation_type: int = 0  # 1 set, 2 removed
    operate_time: int = 0
    operator_uin: int = 0
    sender_nick: str = ""
    operator_nick: str = ""

    def is_set(self) -> bool:
        return self.operation_type == 1


@dataclass
class GroupPokeEvent(GroupEvent, NotifyEvent):
    receiver: int = 0
    suffix: str = ""
    action: str = ""

    def from_uin(self) -> int:
        return self.group_uin

    def content(self) -> str:
        return _poke_content(self.user_uin, self.action, self.receiver, self.suffix)


@dataclass
class GroupReactionEvent(GroupEvent):
    target_seq: int = 0
    is_add: bool = False
    is_emoji: bool = False
    code: str = ""
    count: int = 0

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.user_uin = resolver(self.user_uid, self.group_uin)


@dataclass
class MemberSpecialTitleUpdated(GroupEvent):
    new_title: str = ""


@dataclass
class GroupInvite:
    group_uin: int = 0
    group_name: str = ""
    invitor_uid: str = ""
    invitor_uin: int = 0
    invitor_nick: str = ""
    request_seq: int = 0

    def resolve_uin(self, resolver: UidResolver) -> None:
        self.invitor_uin = resolver(self.invitor_uid, self.group_uin)


@dataclass
class JSONParam:
    cmd: int = 0
    data: str = ""
    text: str = ""
    url: str = ""

    @classmethod
    def from_json(cls, raw: str) -> JSONParam:
        """Decode from JSON; raises ValueError on malformed or mistyped input."""
        try:
            obj: Any = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid JSON: {exc}") from exc
        if not isinstance(obj, dict):
            raise ValueError("JSON document is not an object")
        values: dict[str, Any] = {}
        for name, kind in (("cmd", int), ("data", str), ("text", str), ("url", str)):
            value = obj.get(name)
            if value is None:
                continue
            if not isinstance(value, kind) or isinstance(value, bool):
                raise ValueError(f"field {name!r} has the wrong type")
            values[name] = value
        return cls(**values)


def parse_poke_event(params: TemplateParams) -> FriendPokeEvent:
    """Build a poke event from gray-tip template parameters."""
    event = FriendPokeEvent(action=_DEFAULT_POKE_ACTION)
    for key, value in _pairs(params):
        if key == "uin_str1":
            event.sender = _atoi_u32(value)
        elif key == "uin_str2":
            event.receiver = _atoi_u32(value)
        elif key == "suffix_str":
            event.suffix = value
        elif key == "alt_str1":
            event.action = value
    return event


def parse_group_poke_event(params: TemplateParams, group_uin: int) -> GroupPokeEvent:
    """Build a group poke event from gray-tip template parameters."""
    poke = parse_poke_event(params)
    return GroupPokeEvent(
        group_uin=group_uin,
        user_uin=poke.sender,
        receiver=poke.receiver,
        suffix=poke.suffix,
        action=poke.action,
    )


def parse_member_special_title_updated_event(
    content: str, target_uin: int, group_uin: int
) -> MemberSpecialTitleUpdated | None:
    """Extract the new title from the second embedded JSON parameter, or None."""
    matches = _TITLE_PARAM.findall(content)
    if len(matches) != 2:
        return None
    try:
        medal = JSONParam.from_json(matches[1])
    except ValueError:
        return None
    return MemberSpecialTitleUpdated(group_uin=group_uin, user_uin=target_uin, new_title=medal.text)


def parse_self_rename_event(uin: int, nickname: str, sig: SigInfo) -> Rename:
    """Record the bot's new nickname in ``sig`` and return the rename event."""
    sig.nickname = nickname
    return Rename(uin=uin, nickname=nickname)
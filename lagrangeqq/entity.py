"""Plain data types for users, groups, files, notices and keys."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


def user_avatar(uin: int) -> str:
    """Return the avatar URL of a user."""
    return f"https://q1.qlogo.cn/g?b=qq&nk={uin}&s=640"


def group_avatar(group_uin: int) -> str:
    """Return the avatar URL of a group."""
    return f"https://p.qlogo.cn/gh/{group_uin}/{group_uin}/0/"


class EventState(IntEnum):
    NO_NEED = 0
    UNPROCESSED = 1
    PROCESSED = 2


class EventType(IntEnum):
    USER_JOIN_REQUEST = 1
    GROUP_INVITED = 2
    ASSIGNED_AS_ADMIN = 3
    KICKED = 7
    REMOVE_ADMIN = 15
    USER_INVITED = 22


class GroupRequestOperate(IntEnum):
    ALLOW = 1
    DENY = 2
    IGNORE = 3


@dataclass
class Group:
    group_uin: int = 0
    group_name: str = ""
    group_owner: int = 0
    group_create_time: int = 0
    group_memo: str = ""
    group_level: int = 0
    member_count: int = 0
    max_member: int = 0
    last_msg_seq: int = 0

    def avatar(self) -> str:
        return group_avatar(self.group_uin)


@dataclass
class UserJoinGroupRequest:
    group_name: str = ""
    group_uin: int = 0
    invitor_uin: int = 0
    invitor_uid: str = ""
    target_nick: str = ""
    target_uin: int = 0
    target_uid: str = ""
    operator_uin: int = 0
    operator_uid: str = ""
    sequence: int = 0
    checked: bool = False
    state: EventState = EventState.NO_NEED
    event_type: int = 0
    comment: str = ""
    is_filtered: bool = False


@dataclass
class GroupInvitedRequest:
    group_uin: int = 0
    group_name: str = ""
    invitor_nick: str = ""
    invitor_uin: int = 0
    invitor_uid: str = ""
    sequence: int = 0
    checked: bool = False
    state: EventState = EventState.NO_NEED
    event_type: int = 0
    is_filtered: bool = False


@dataclass
class GroupSystemMessages:
    invited_requests: list[GroupInvitedRequest] = field(default_factory=list)
    join_requests: list[UserJoinGroupRequest] = field(default_factory=list)


class ChatType(IntEnum):
    VOICE = 1
    SONG = 2


@dataclass
class AiCharacter:
    name: str = ""
    voice_id: str = ""
    voice_url: str = ""


@dataclass
class AiCharacterInfo:
    type: str = ""
    characters: list[AiCharacter] = field(default_factory=list)


@dataclass
class AiCharacterList:
    type: ChatType = ChatType.VOICE
    chats: list[AiCharacterInfo] = field(default_factory=list)


@dataclass
class GroupFileSystemInfo:
    group_uin: int = 0
    file_count: int = 0
    limit_count: int = 0
    used_space: int = 0
    total_space: int = 0


@dataclass
class GroupFile:
    group_uin: int = 0
    file_id: str = ""
    file_name: str = ""
    bus_id: int = 0
    file_size: int = 0
    upload_time: int = 0
    dead_time: int = 0
    modify_time: int = 0
    download_times: int = 0
    uploader: int = 0
    uploader_name: str = ""


@dataclass
class GroupFolder:
    group_uin: int = 0
    folder_id: str = ""
    folder_name: str = ""
    create_time: int = 0
    creator: int = 0
    creator_name: str = ""
    total_file_count: int = 0


class HonorType(IntEnum):
    TALKATIVE = 1
    PERFORMER = 2
    LEGEND = 3
    STRONG_NEWBIE = 5
    EMOTION = 6


@dataclass
class HonorMemberInfo:
    uin: int = 0
    avatar: str = ""
    name: str = ""
    desc: str = ""


@dataclass
class CurrentTalkative:
    uin: int = 0
    day_count: int = 0
    avatar: str = ""
    name: str = ""


@dataclass
class GroupHonorInfo:
    group_code: str = ""
    uin: str = ""
    type: int = 0
    talkative_list: list[HonorMemberInfo] = field(default_factory=list)
    current_talkative: CurrentTalkative = field(default_factory=CurrentTalkative)
    actor_list: list[HonorMemberInfo] = field(default_factory=list)
    legend_list: list[HonorMemberInfo] = field(default_factory=list)
    strong_newbie_list: list[HonorMemberInfo] = field(default_factory=list)
    emotion_list: list[HonorMemberInfo] = field(default_factory=list)


@dataclass
class User:
    uin: int = 0
    uid: str = ""
    nickname: str = ""
    remarks: str = ""
    personal_sign: str = ""
    avatar: str = ""
    age: int = 0
    sex: int = 0  # 1 male, 2 female, 255 hidden
    level: int = 0
    source: str = ""
    qid: str = ""
    country: str = ""
    city: str = ""
    school: str = ""
    vip_level: int = 0


class GroupMemberPermission(IntEnum):
    MEMBER = 0
    OWNER = 1
    ADMIN = 2


@dataclass
class GroupMember(User):
    permission: GroupMemberPermission = GroupMemberPermission.MEMBER
    group_level: int = 0
    member_card: str = ""
    special_title: str = ""
    join_time: int = 0
    last_msg_time: int = 0
    shut_up_time: int = 0

    def display_name(self) -> str:
        """The group card if set, otherwise the nickname."""
        return self.member_card or self.nickname


@dataclass
class NoticeImage:
    height: str = ""
    width: str = ""
    id: str = ""


@dataclass
class GroupNoticeFeed:
    notice_id: str = ""
    sender_id: int = 0
    publish_time: int = 0
    text: str = ""
    images: list[NoticeImage] = field(default_factory=list)


@dataclass
class GroupNoticeRsp:
    feeds: list[GroupNoticeFeed] = field(default_factory=list)
    inst: list[GroupNoticeFeed] = field(default_factory=list)


@dataclass
class NoticePicUpResponse:
    error_code: int = 0
    error_message: str = ""
    id: str = ""


@dataclass
class NoticeSendResp:
    notice_id: str = ""


class RKeyType(IntEnum):
    FRIEND = 10
    GROUP = 20


@dataclass
class RKeyInfo:
    rkey_type: RKeyType = RKeyType.FRIEND
    rkey: str = ""
    create_time: int = 0
    expire_time: int = 0
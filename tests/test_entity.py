from lagrangeqq.entity import (
    Group,
    GroupMember,
    GroupMemberPermission,
    GroupSystemMessages,
    RKeyInfo,
    RKeyType,
    User,
    group_avatar,
    user_avatar,
)


def test_user_avatar_url():
    assert user_avatar(10001) == "https://q1.qlogo.cn/g?b=qq&nk=10001&s=640"


def test_group_avatar_url():
    assert group_avatar(123456) == "https://p.qlogo.cn/gh/123456/123456/0/"


def test_group_avatar_method_matches_function():
    group = Group(group_uin=987654, group_name="test group")
    assert group.avatar() == group_avatar(987654)


def test_display_name_prefers_card():
    member = GroupMember(uin=1, nickname="nick", member_card="card")
    assert member.display_name() == "card"


def test_display_name_falls_back_to_nickname():
    member = GroupMember(uin=1, nickname="nick")
    assert member.display_name() == "nick"


def test_group_member_carries_user_fields():
    member = GroupMember(uin=42, uid="u_abc", nickname="n", permission=GroupMemberPermission.ADMIN)
    assert isinstance(member, User)
    assert member.uid == "u_abc"
    assert member.permission is GroupMemberPermission.ADMIN


def test_default_lists_are_independent():
    first = GroupSystemMessages()
    second = GroupSystemMessages()
    first.join_requests.append("x")
    assert second.join_requests == []


def test_rkey_info_holds_type():
    info = RKeyInfo(rkey_type=RKeyType.GROUP, rkey="rk", expire_time=5)
    assert info.rkey_type is RKeyType.GROUP
    assert info.rkey == "rk"
"""
confroom.core.i18n
~~~~~~~~~~~~~~~~~~

界面文案查找 —— 以 ``命名空间:键`` 的形式（如 ``general:Name``）取本地化标签。

未收录的语言回退到英文，未收录的键回退到冒号后的原文。
"""
from __future__ import annotations

DEFAULT_LANGUAGE: str = "en"

_CATALOG: dict[str, dict[str, str]] = {
    "en": {
        "general:Rooms": "Rooms",
        "general:Name": "Name",
        "general:Display name": "Display name",
        "general:Status": "Status",
        "general:Action": "Action",
        "general:Edit": "Edit",
        "general:Delete": "Delete",
        "general:Add": "Add",
        "submission:Conference": "Conference",
        "room:Meeting number": "Meeting number",
        "room:Passcode": "Passcode",
        "room:Invite link": "Invite link",
        "room:Started": "Started",
        "room:Ended": "Ended",
    },
    "zh": {
        "general:Rooms": "房间",
        "general:Name": "名称",
        "general:Display name": "显示名称",
        "general:Status": "状态",
        "general:Action": "操作",
        "general:Edit": "编辑",
        "general:Delete": "删除",
        "general:Add": "添加",
        "submission:Conference": "会议",
        "room:Meeting number": "会议号",
        "room:Passcode": "会议密码",
        "room:Invite link": "邀请链接",
        "room:Started": "进行中",
        "room:Ended": "已结束",
    },
}


class Translator:
    """绑定到某一语言的文案查找器。"""

    def __init__(self, language: str = DEFAULT_LANGUAGE) -> None:
        self.language = language if language in _CATALOG else DEFAULT_LANGUAGE

    def __call__(self, key: str) -> str:
        text = _CATALOG[self.language].get(key)
        if text is None:
            text = _CATALOG[DEFAULT_LANGUAGE].get(key, key.split(":", 1)[-1])
        return text


def pick_language(accept_language: str | None) -> str:
    """从 ``Accept-Language`` 请求头中挑出第一个已收录的语言。"""
    if not accept_language:
        return DEFAULT_LANGUAGE
    for part in accept_language.split(","):
        tag = part.split(";", 1)[0].strip().lower()
        primary = tag.split("-", 1)[0]
        if primary in _CATALOG:
            return primary
    return DEFAULT_LANGUAGE

"""
confroom.services.notifier
~~~~~~~~~~~~~~~~~~~~~~~~~~

提示消息能力 —— 房间增删的结果以 ``success`` / ``error`` 消息的形式交给调用方展示。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from confroom.core.logging import get_logger

logger = get_logger(__name__)

Severity = Literal["success", "error"]


class Notifier(Protocol):
    def show_message(self, severity: Severity, text: str) -> None: ...


@dataclass(frozen=True)
class Notification:
    severity: Severity
    text: str


class CollectingNotifier:
    """把消息按顺序收集起来，由 HTTP 层随响应一并返回。"""

    def __init__(self) -> None:
        self.messages: list[Notification] = []

    def show_message(self, severity: Severity, text: str) -> None:
        if severity == "error":
            logger.warning("提示消息 [%s]: %s", severity, text)
        else:
            logger.debug("提示消息 [%s]: %s", severity, text)
        self.messages.append(Notification(severity, text))

    @property
    def last(self) -> Notification | None:
        return self.messages[-1] if self.messages else None

    @property
    def has_error(self) -> bool:
        return any(m.severity == "error" for m in self.messages)

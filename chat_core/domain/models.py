"""客户端内部共享的对话数据模型。

- ChatMessage: 一条对话消息（user/assistant），进入消息列表后不可变。
- ChatReply / HistoryResult / ResetResult: SessionClient 三个后端调用的解析结果。
- ConversationState: 控制器对外暴露的状态快照。

SessionClient 负责在后端 JSON 与这些模型之间做转换，
ConversationController 与上层展示层只依赖这里的结构。
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

from chat_core.domain.exceptions import ApiError


# 消息角色，与后端 history 中的 role 字段一一对应
Role = Literal["user", "assistant"]
ROLES = ("user", "assistant")

# 控制器状态：error 与 idle 的区别仅在于携带的错误信息
Status = Literal["idle", "loading", "resetting", "error"]


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息。

    - role: 消息角色，user 或 assistant。
    - content: 纯文本内容。
    - timestamp: 毫秒级 Unix 时间戳。
    """

    role: Role
    content: str
    timestamp: int

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ChatMessage":
        """解析后端 history 中的一条记录，格式不合法时抛出 ApiError。"""

        if not isinstance(payload, dict):
            raise ApiError(code="INVALID_RESPONSE", message=f"history entry is not an object: {payload!r}")
        role = payload.get("role")
        if role not in ROLES:
            raise ApiError(code="INVALID_RESPONSE", message=f"unknown message role: {role!r}")
        ts = payload.get("timestamp")
        if isinstance(ts, bool) or not isinstance(ts, (int, float)) or not math.isfinite(ts):
            raise ApiError(code="INVALID_RESPONSE", message=f"invalid message timestamp: {ts!r}")
        return cls(role=role, content=str(payload.get("content") or ""), timestamp=int(ts))

    def to_payload(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}


@dataclass
class ChatReply:
    """POST /chat 的响应。timestamp 为服务端 ISO-8601 文本。"""

    response: str
    timestamp: str
    session_id: Optional[str] = None


@dataclass
class HistoryResult:
    """GET /session/history 的响应。"""

    history: List[ChatMessage] = field(default_factory=list)
    timestamp: Optional[str] = None
    session_id: Optional[str] = None


@dataclass
class ResetResult:
    """POST /session/reset 的响应，message 为后端确认文本。"""

    message: str
    timestamp: Optional[str] = None
    session_id: Optional[str] = None


@dataclass(frozen=True)
class ConversationState:
    """控制器状态快照。

    messages 为调用完成顺序下的消息序列；
    error 仅在 status == "error" 时非空。
    """

    messages: Tuple[ChatMessage, ...] = ()
    status: Status = "loading"
    error: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self.status in ("loading", "resetting")

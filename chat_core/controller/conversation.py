"""对话状态控制器。

持有消息列表与状态机（loading / idle / resetting / error），
通过注入的 SessionClient 调用后端，并向展示层暴露状态快照与三个动作：

- load_history: 构造时自动执行一次，拉取历史消息。
- send_message: 先乐观追加用户消息，再追加助手回复；失败时不回滚。
- reset_session: 成功后无条件清空消息列表，失败时保持不变。

所有 TransportError 都在这里被捕获并转换为 error 状态，不会抛给展示层。
控制器本身不加锁：重叠调用按完成顺序依次生效，最后完成的写入胜出；
互斥由展示层根据 input_enabled 禁用输入来保证。
"""

import asyncio
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Protocol

from chat_core.domain.exceptions import TransportError
from chat_core.domain.models import ChatMessage, ChatReply, ConversationState, HistoryResult, ResetResult, Status
from chat_core.infrastructure.logging.logger import logger


LOAD_FAILED = "Failed to load chat history. Please try again later."
SEND_FAILED = "Failed to send message. Please try again later."
RESET_FAILED = "Failed to reset chat. Please try again later."

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

StateListener = Callable[[ConversationState], None]


class ConversationClient(Protocol):
    """控制器依赖的后端客户端协议。"""

    async def send_message(self, query: str) -> ChatReply:
        ...

    async def fetch_history(self) -> HistoryResult:
        ...

    async def reset_session(self) -> ResetResult:
        ...


def _now_ms() -> int:
    return int(time.time() * 1000)


class ConversationController:
    def __init__(
        self,
        client: ConversationClient,
        clock: Optional[Callable[[], int]] = None,
        autoload: bool = True,
    ):
        """初始化控制器，初始状态为 loading。

        Args:
            client: 后端客户端实例（通常为 SessionClient）
            clock: 返回毫秒时间戳的时钟，默认使用系统时间
            autoload: 是否在构造时自动调度一次 load_history，需要运行中的事件循环
        """
        self._client = client
        self._clock = clock or _now_ms
        self._messages: List[ChatMessage] = []
        self._status: Status = "loading"
        self._error: Optional[str] = None
        self._listeners: List[StateListener] = []
        self._initial_load: Optional[asyncio.Task] = None
        if autoload:
            self._initial_load = asyncio.get_running_loop().create_task(self.load_history())

    @classmethod
    async def open(
        cls,
        client: ConversationClient,
        clock: Optional[Callable[[], int]] = None,
    ) -> "ConversationController":
        """创建控制器并等待初始历史加载完成。"""

        controller = cls(client, clock=clock)
        await controller.wait_ready()
        return controller

    async def wait_ready(self) -> None:
        if self._initial_load is not None:
            await self._initial_load

    # ---- 状态 ----

    @property
    def state(self) -> ConversationState:
        return ConversationState(messages=tuple(self._messages), status=self._status, error=self._error)

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    @property
    def status(self) -> Status:
        return self._status

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def input_enabled(self) -> bool:
        """展示层据此禁用输入与重置按钮。"""
        return self._status not in ("loading", "resetting")

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """注册状态监听器，返回取消注册的函数。"""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- 动作 ----

    async def load_history(self) -> None:
        try:
            result = await self._client.fetch_history()
        except TransportError as e:
            self._messages = []
            self._fail(LOAD_FAILED, "conversation.load_failed", e)
            return
        self._messages = list(result.history)
        self._update("idle")
        logger.info("conversation.loaded", extra={"extra": {"messages": len(self._messages)}})

    async def send_message(self, content: str) -> None:
        # 乐观追加：失败时保留该消息，不做回滚
        self._messages.append(ChatMessage(role="user", content=content, timestamp=self._clock()))
        self._update("loading")
        try:
            reply = await self._client.send_message(content)
        except TransportError as e:
            self._fail(SEND_FAILED, "conversation.send_failed", e)
            return
        self._messages.append(
            ChatMessage(role="assistant", content=reply.response, timestamp=self._parse_timestamp(reply.timestamp))
        )
        self._update("idle")

    async def reset_session(self) -> None:
        self._update("resetting")
        try:
            await self._client.reset_session()
        except TransportError as e:
            self._fail(RESET_FAILED, "conversation.reset_failed", e)
            return
        # 无条件清空，包括仍在途中的发送所追加的乐观消息
        self._messages = []
        self._update("idle")
        logger.info("conversation.reset")

    # ---- 辅助方法 ----

    def _update(self, status: Status, error: Optional[str] = None) -> None:
        self._status = status
        self._error = error
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("conversation.listener_failed")

    def _fail(self, message: str, event: str, exc: TransportError) -> None:
        logger.error(
            f"{message} ({exc.code}: {exc.message})",
            extra={"extra": {"event": event, "code": exc.code, "http_status": exc.http_status}},
        )
        self._update("error", message)

    def _parse_timestamp(self, value: str) -> int:
        """把服务端 ISO-8601 时间转换为毫秒时间戳，无法解析时退回本地时钟。"""

        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.warning("conversation.bad_timestamp", extra={"extra": {"timestamp": value}})
            return self._clock()
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return (dt - _EPOCH) // timedelta(milliseconds=1)

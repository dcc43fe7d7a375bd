"""对话后端客户端。

本模块负责：

1. 调用后端的三个接口：/chat、/session/history、/session/reset。
2. 已知会话令牌时在请求头中附带 x-session-id。
3. 从成功响应中捕获 sessionId，覆盖内存与持久化存储中的令牌（后写覆盖）。
4. 把网络错误与非 2xx 响应统一包装为 TransportError，不做重试。

客户端是显式实例，由调用方构造后注入 ConversationController，
不存在进程级单例或全局令牌。
"""

from typing import Any, Dict, Optional

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ApiError, NetworkError, StoreError
from chat_core.domain.models import ChatMessage, ChatReply, HistoryResult, ResetResult
from chat_core.domain.session import TokenStore
from chat_core.infrastructure.logging.logger import logger


DEFAULT_BASE_URL = "http://localhost:3000/api"
SESSION_HEADER = "x-session-id"


class SessionClient:
    """会话后端客户端实现。

    - session_id: 当前已知的会话令牌，未建立会话时为 None。
    - send_message / fetch_history / reset_session: 各自对应一次 HTTP 往返。
    """

    def __init__(
        self,
        store: TokenStore,
        cfg=settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = cfg
        self._store = store
        # 测试时注入 httpx.MockTransport
        self._transport = transport
        try:
            self._session_id = store.load()
        except StoreError as e:
            logger.warning(f"Failed to read session token: {e}", extra={"extra": {"code": e.code}})
            self._session_id = None

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    async def send_message(self, query: str) -> ChatReply:
        """发送一条用户消息，返回助手回复。query 的非空校验由调用方负责。"""

        data = await self._request("POST", "/chat", payload={"query": query})
        try:
            return ChatReply(
                response=str(data["response"]),
                timestamp=str(data["timestamp"]),
                session_id=data.get("sessionId") or None,
            )
        except KeyError as e:
            raise ApiError(code="INVALID_RESPONSE", message=f"missing field {e} in /chat response", cause=e) from e

    async def fetch_history(self) -> HistoryResult:
        """获取当前会话的历史消息。"""

        data = await self._request("GET", "/session/history")
        raw_history = data.get("history") or []
        if not isinstance(raw_history, list):
            raise ApiError(code="INVALID_RESPONSE", message="history is not a list")
        return HistoryResult(
            history=[ChatMessage.from_payload(item) for item in raw_history],
            timestamp=data.get("timestamp"),
            session_id=data.get("sessionId") or None,
        )

    async def reset_session(self) -> ResetResult:
        """重置当前会话，返回后端的确认信息。"""

        data = await self._request("POST", "/session/reset")
        return ResetResult(
            message=str(data.get("message") or ""),
            timestamp=data.get("timestamp"),
            session_id=data.get("sessionId") or None,
        )

    # ---- 辅助方法 ----

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Dict[str, Any]:
        base = getattr(self._settings, "api_base_url", None) or DEFAULT_BASE_URL
        headers = {"Content-Type": "application/json"}
        if self._session_id:
            headers[SESSION_HEADER] = self._session_id
        log_ctx = {"method": method, "path": path, "has_session": bool(self._session_id)}
        logger.info("session_client.request", extra={"extra": log_ctx})

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout,
                trust_env=False,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, f"{base}{path}", json=payload, headers=headers)
        except httpx.RequestError as e:
            # 连接失败、超时等
            logger.error(f"Request failed: {e!r}", extra={"extra": log_ctx})
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__, cause=e, **log_ctx) from e

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = self._error_message(resp)
            logger.error(
                f"Backend returned {resp.status_code}: {message}",
                extra={"extra": {**log_ctx, "status": resp.status_code}},
            )
            raise ApiError(
                code="API_ERROR",
                message=message,
                http_status=resp.status_code,
                cause=e,
                **log_ctx,
            ) from e

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("Backend returned a non-JSON body", extra={"extra": log_ctx})
            raise ApiError(code="INVALID_RESPONSE", message="response body is not JSON", cause=e, **log_ctx) from e
        if not isinstance(data, dict):
            raise ApiError(code="INVALID_RESPONSE", message="response body is not an object", **log_ctx)

        self._capture_session(data)
        return data

    def _capture_session(self, data: Dict[str, Any]) -> None:
        token = data.get("sessionId")
        if not token or not isinstance(token, str):
            return
        self._session_id = token
        try:
            self._store.save(token)
        except StoreError as e:
            logger.error(f"Failed to persist session token: {e}", extra={"extra": {"code": e.code}})

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        """优先取后端 {"error": "..."} 中的信息，否则退回原始文本。"""

        try:
            body = resp.json()
        except ValueError:
            return resp.text or f"HTTP {resp.status_code}"
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return resp.text or f"HTTP {resp.status_code}"

"""Chat Core 顶层包。

该包提供会话型对话客户端的核心实现，
包括配置加载、领域模型、后端会话客户端、
会话令牌持久化以及对话状态控制器。
"""

from chat_core.client.session_client import SessionClient
from chat_core.controller.conversation import ConversationController
from chat_core.infrastructure.storage.token_store import JsonTokenStore

__all__ = ["SessionClient", "ConversationController", "JsonTokenStore"]

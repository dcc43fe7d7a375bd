"""领域层模型与协议。

包含：
- models: ChatMessage、后端响应模型与 ConversationState。
- session: 会话令牌存储协议 TokenStore。
- exceptions: 业务异常类型定义。
"""

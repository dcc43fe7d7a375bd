"""后端集成层：SessionClient 负责 HTTP 往返与会话令牌的附带、捕获与持久化。"""

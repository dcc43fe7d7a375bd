from typing import Optional, Protocol


# 持久化存储中保存会话令牌的固定键名
SESSION_ID_KEY = "newsGptSessionId"


class TokenStore(Protocol):
    def load(self) -> Optional[str]:
        ...

    def save(self, token: str) -> None:
        ...

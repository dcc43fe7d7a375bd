import json
import os
from pathlib import Path
from typing import Optional
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.exceptions import StoreError
from chat_core.domain.session import SESSION_ID_KEY, TokenStore


class JsonTokenStore(TokenStore):
    """把最近一次会话令牌以 JSON 文件形式持久化，跨进程重启保留。

    文件内容形如 {"newsGptSessionId": "<token>"}，至多保存一个值。
    """

    def __init__(self, root: str | Path | None = None, key: str = SESSION_ID_KEY):
        self._root = Path(root or settings.storage_root).resolve()
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(code="STORE_INIT_ERROR", message=str(e))
        self._path = self._root / "session.json"
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[str]:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreError(code="STORE_READ_ERROR", message=str(e))
        if not isinstance(data, dict):
            return None
        value = data.get(self._key)
        return value if isinstance(value, str) and value else None

    def save(self, token: str) -> None:
        tmp_path = self._root / f"session.{uuid4().hex}.json.tmp"
        try:
            tmp_path.write_text(json.dumps({self._key: token}, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StoreError(code="STORE_WRITE_ERROR", message=str(e))


class MemoryTokenStore(TokenStore):
    """进程内令牌存储，不跨重启保留；用于测试或临时会话。"""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def load(self) -> Optional[str]:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

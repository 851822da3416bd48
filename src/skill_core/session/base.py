"""Session 儲存介面定義。

Session 只記錄被接受的模組 id 與時間戳，不記錄任何技能文件內容。
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class Session:
    """前次被接受的載入計畫。

    Attributes:
        session_id: 專案或對話識別符
        accepted_module_ids: 被接受的模組 id（依載入順序）
        timestamp: 儲存時間
    """

    session_id: str
    accepted_module_ids: tuple[str, ...]
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        """轉換為可序列化的字典。"""
        return {
            'session_id': self.session_id,
            'accepted_module_ids': list(self.accepted_module_ids),
            'timestamp': self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        """從字典反序列化。

        Args:
            data: 序列化的字典

        Returns:
            Session 實例
        """
        return cls(
            session_id=data['session_id'],
            accepted_module_ids=tuple(data['accepted_module_ids']),
            timestamp=datetime.fromisoformat(data['timestamp']),
        )


@dataclass(frozen=True)
class SessionDiff:
    """新舊計畫的差異。

    Attributes:
        added: 本次新增的模組 id
        removed: 本次移除的模組 id
    """

    added: frozenset[str]
    removed: frozenset[str]

    @property
    def is_empty(self) -> bool:
        """新舊計畫是否完全相同。"""
        return not self.added and not self.removed


def diff(old_session: Session | None, new_accepted_ids: Iterable[str]) -> SessionDiff:
    """計算前次 session 與新計畫的集合差異，僅供回報使用。

    Args:
        old_session: 前次 session，None 表示首次解析
        new_accepted_ids: 本次被接受的模組 id

    Returns:
        SessionDiff
    """
    new_ids = frozenset(new_accepted_ids)
    old_ids = frozenset(old_session.accepted_module_ids) if old_session else frozenset[str]()
    return SessionDiff(added=new_ids - old_ids, removed=old_ids - new_ids)


@runtime_checkable
class SessionStore(Protocol):
    """Session 儲存 Protocol。

    save 一律覆寫，不做合併。同一 session id 的寫入必須是全有或全無。
    """

    async def load(self, session_id: str) -> Session | None:
        """讀取 session。

        Args:
            session_id: 會話識別符

        Returns:
            Session，若無記錄則回傳 None
        """
        ...

    async def save(self, session_id: str, accepted_module_ids: Iterable[str]) -> Session:
        """儲存（覆寫）session。

        Args:
            session_id: 會話識別符
            accepted_module_ids: 被接受的模組 id

        Returns:
            已儲存的 Session
        """
        ...

    async def delete(self, session_id: str) -> None:
        """刪除 session，不存在時不做任何事。

        Args:
            session_id: 會話識別符
        """
        ...

    async def list_sessions(self) -> list[Session]:
        """列出所有 session（依 session id 排序）。"""
        ...

    async def close(self) -> None:
        """釋放底層資源。"""
        ...

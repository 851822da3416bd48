"""記憶體 Session 儲存。

用於開發與測試環境，session 存在記憶體中，程序結束即消失。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from skill_core.session.base import Session

logger = logging.getLogger(__name__)


@dataclass
class MemorySessionStore:
    """記憶體 Session 儲存。

    Session 為不可變物件，直接存放即可避免與呼叫端共用參考。
    """

    _store: dict[str, Session] = field(default_factory=lambda: {})

    async def load(self, session_id: str) -> Session | None:
        return self._store.get(session_id)

    async def save(self, session_id: str, accepted_module_ids: Iterable[str]) -> Session:
        session = Session(
            session_id=session_id,
            accepted_module_ids=tuple(accepted_module_ids),
            timestamp=datetime.now(),
        )
        self._store[session_id] = session
        logger.debug(
            '儲存 session（記憶體）',
            extra={'session_id': session_id, 'modules': len(session.accepted_module_ids)},
        )
        return session

    async def delete(self, session_id: str) -> None:
        self._store.pop(session_id, None)
        logger.debug('Session 已刪除（記憶體）', extra={'session_id': session_id})

    async def list_sessions(self) -> list[Session]:
        return [self._store[key] for key in sorted(self._store)]

    async def close(self) -> None:
        """記憶體儲存沒有需要釋放的資源。"""

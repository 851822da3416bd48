"""SQLite Session 儲存。

使用 Python 標準庫 sqlite3 持久化被接受的模組 id，零外部依賴。
程序重啟後 session 自動恢復。
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable
from datetime import datetime
from typing import cast

from skill_core.session.base import Session

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = 'skill_sessions.db'


class SQLiteSessionStore:
    """SQLite Session 儲存。

    模組 id 以 JSON 陣列存入單一欄位，寫入在交易內完成，
    同一 session id 的並行寫入以最後一筆為準，不會留下部分寫入。
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH) -> None:
        """初始化 SQLite 儲存。

        Args:
            db_path: 資料庫檔案路徑，預設為 skill_sessions.db
        """
        self._db_path = db_path
        self._conn = sqlite3.connect(db_path)
        self._create_table()
        logger.info('SQLite Session 儲存已初始化', extra={'db_path': db_path})

    def _create_table(self) -> None:
        """建立資料表（若不存在）。"""
        with self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS skill_sessions (
                    session_id TEXT PRIMARY KEY,
                    accepted_module_ids TEXT NOT NULL,
                    saved_at TEXT NOT NULL
                )
                """
            )

    @staticmethod
    def _row_to_session(row: tuple[str, str, str]) -> Session:
        # json.loads 回傳 Any，在反序列化邊界使用 cast
        module_ids = cast(list[str], json.loads(row[1]))
        return Session(
            session_id=row[0],
            accepted_module_ids=tuple(module_ids),
            timestamp=datetime.fromisoformat(row[2]),
        )

    async def load(self, session_id: str) -> Session | None:
        """讀取 session。

        Args:
            session_id: 會話識別符

        Returns:
            Session，若無記錄則回傳 None
        """
        cursor = self._conn.execute(
            'SELECT session_id, accepted_module_ids, saved_at FROM skill_sessions '
            'WHERE session_id = ?',
            (session_id,),
        )
        row = cursor.fetchone()
        if row is None:
            return None

        session = self._row_to_session(row)
        logger.debug(
            '讀取 session（SQLite）',
            extra={'session_id': session_id, 'modules': len(session.accepted_module_ids)},
        )
        return session

    async def save(self, session_id: str, accepted_module_ids: Iterable[str]) -> Session:
        """儲存 session。

        使用 UPSERT 語法：存在則覆寫，不存在則新增。交易失敗時自動 rollback。

        Args:
            session_id: 會話識別符
            accepted_module_ids: 被接受的模組 id

        Returns:
            已儲存的 Session
        """
        session = Session(
            session_id=session_id,
            accepted_module_ids=tuple(accepted_module_ids),
            timestamp=datetime.now(),
        )
        serialized = json.dumps(list(session.accepted_module_ids), ensure_ascii=False)
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO skill_sessions (session_id, accepted_module_ids, saved_at)
                VALUES (?, ?, ?)
                ON CONFLICT(session_id) DO UPDATE SET
                    accepted_module_ids = excluded.accepted_module_ids,
                    saved_at = excluded.saved_at
                """,
                (session_id, serialized, session.timestamp.isoformat()),
            )
        logger.debug(
            '儲存 session（SQLite）',
            extra={'session_id': session_id, 'modules': len(session.accepted_module_ids)},
        )
        return session

    async def delete(self, session_id: str) -> None:
        """刪除 session。

        Args:
            session_id: 會話識別符
        """
        with self._conn:
            self._conn.execute('DELETE FROM skill_sessions WHERE session_id = ?', (session_id,))
        logger.debug('Session 已刪除（SQLite）', extra={'session_id': session_id})

    async def list_sessions(self) -> list[Session]:
        """列出所有 session。

        Returns:
            Session 列表，依 session id 排序
        """
        cursor = self._conn.execute(
            'SELECT session_id, accepted_module_ids, saved_at FROM skill_sessions '
            'ORDER BY session_id'
        )
        return [self._row_to_session(row) for row in cursor.fetchall()]

    async def close(self) -> None:
        """關閉 SQLite 連線。"""
        self._conn.close()
        logger.info('SQLite Session 儲存已關閉')

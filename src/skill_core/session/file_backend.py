"""檔案 Session 儲存。

每個 session 存成目錄下的一個 JSON 檔。寫入時先寫暫存檔再以 os.replace 原子替換，
讀取端永遠只會看到完整的舊版或新版內容。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any, cast
from urllib.parse import quote, unquote

from skill_core.session.base import Session

logger = logging.getLogger(__name__)

DEFAULT_SESSION_DIR = '.skill_sessions'
_SUFFIX = '.json'
# quote() 只會產生 %XX 形式的跳脫，不可能產生此前綴
_TMP_PREFIX = '%tmp-'


class FileSessionStore:
    """JSON 檔 Session 儲存。

    session id 經 URL 編碼後作為檔名，避免路徑穿越。
    """

    def __init__(self, directory: str | Path = DEFAULT_SESSION_DIR) -> None:
        """初始化檔案儲存。

        Args:
            directory: session 檔案所在目錄，不存在時自動建立
        """
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        logger.info('檔案 Session 儲存已初始化', extra={'directory': str(self._directory)})

    def _path_for(self, session_id: str) -> Path:
        return self._directory / f'{quote(session_id, safe="")}{_SUFFIX}'

    def _write_atomic(self, target: Path, payload: str) -> None:
        """寫入暫存檔後原子替換目標檔，任何失敗都會清除暫存檔。"""
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=_TMP_PREFIX, suffix=_SUFFIX)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    async def load(self, session_id: str) -> Session | None:
        """讀取 session。

        Args:
            session_id: 會話識別符

        Returns:
            Session，若無記錄則回傳 None
        """
        path = self._path_for(session_id)
        try:
            text = path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None

        data = cast(dict[str, Any], json.loads(text))
        session = Session.from_dict(data)
        logger.debug(
            '讀取 session（檔案）',
            extra={'session_id': session_id, 'modules': len(session.accepted_module_ids)},
        )
        return session

    async def save(self, session_id: str, accepted_module_ids: Iterable[str]) -> Session:
        """儲存（覆寫）session。

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
        payload = json.dumps(session.to_dict(), ensure_ascii=False, indent=2)
        self._write_atomic(self._path_for(session_id), payload)
        logger.debug(
            '儲存 session（檔案）',
            extra={'session_id': session_id, 'modules': len(session.accepted_module_ids)},
        )
        return session

    async def delete(self, session_id: str) -> None:
        """刪除 session。

        Args:
            session_id: 會話識別符
        """
        self._path_for(session_id).unlink(missing_ok=True)
        logger.debug('Session 已刪除（檔案）', extra={'session_id': session_id})

    async def list_sessions(self) -> list[Session]:
        """列出所有 session。

        Returns:
            Session 列表，依 session id 排序
        """
        sessions: list[Session] = []
        for path in self._directory.glob(f'*{_SUFFIX}'):
            if path.name.startswith(_TMP_PREFIX):
                continue
            session = await self.load(unquote(path.name[: -len(_SUFFIX)]))
            if session is not None:
                sessions.append(session)
        sessions.sort(key=lambda s: s.session_id)
        return sessions

    async def close(self) -> None:
        """檔案儲存沒有常駐資源，僅記錄日誌。"""
        logger.info('檔案 Session 儲存已關閉', extra={'directory': str(self._directory)})

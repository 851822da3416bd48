"""Session 儲存抽象層。

提供可抽換的 Session 儲存，支援記憶體、SQLite 與 JSON 檔三種實作。
"""

from skill_core.session.base import Session, SessionDiff, SessionStore, diff
from skill_core.session.file_backend import FileSessionStore
from skill_core.session.memory_backend import MemorySessionStore
from skill_core.session.sqlite_backend import SQLiteSessionStore

__all__ = [
    'FileSessionStore',
    'MemorySessionStore',
    'SQLiteSessionStore',
    'Session',
    'SessionDiff',
    'SessionStore',
    'diff',
]

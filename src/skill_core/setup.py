"""規劃器工廠模組。

依配置建立 Session Store 與 SkillPlanner。
"""

from __future__ import annotations

import logging

from skill_core.config import PlannerConfig
from skill_core.planner import SkillPlanner
from skill_core.session.base import SessionStore
from skill_core.session.file_backend import FileSessionStore
from skill_core.session.memory_backend import MemorySessionStore
from skill_core.session.sqlite_backend import SQLiteSessionStore
from skill_core.skills.loader import build_registry_from_file
from skill_core.skills.registry import ModuleRegistry

logger = logging.getLogger(__name__)


def create_session_store(config: PlannerConfig) -> SessionStore:
    """依配置建立 Session Store。

    Args:
        config: 規劃器配置

    Returns:
        對應 session_backend 的 SessionStore 實作
    """
    if config.session_backend == 'sqlite':
        return SQLiteSessionStore(db_path=config.session_path)
    if config.session_backend == 'file':
        return FileSessionStore(directory=config.session_path)
    return MemorySessionStore()


def create_planner(
    config: PlannerConfig | None = None,
    registry: ModuleRegistry | None = None,
) -> SkillPlanner:
    """建立 SkillPlanner。

    Args:
        config: 規劃器配置，None 表示從環境變數讀取
        registry: 已建立的 Registry，None 表示從 config.modules_path 載入

    Returns:
        SkillPlanner

    Raises:
        ValueError: 未提供 Registry 且配置中沒有模組定義檔路徑
        SchemaError: 模組定義檔不合法
    """
    if config is None:
        config = PlannerConfig.from_env()

    if registry is None:
        if config.modules_path is None:
            msg = '未提供 Registry，且配置中沒有 modules_path'
            raise ValueError(msg)
        registry = build_registry_from_file(config.modules_path)

    planner = SkillPlanner(registry=registry, store=create_session_store(config), config=config)
    logger.info(
        'SkillPlanner 已建立',
        extra={
            'modules': len(registry),
            'session_backend': config.session_backend,
            'max_budget': config.max_budget,
        },
    )
    return planner

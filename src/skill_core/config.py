"""規劃器統一配置模組。

提供預算、session 延續與 session 儲存後端等設定，支援從環境變數讀取。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, cast

from dotenv import load_dotenv

# 預設值
DEFAULT_MAX_BUDGET = 3500
DEFAULT_SESSION_BACKEND = 'memory'
DEFAULT_SESSION_PATH = 'skill_sessions.db'

SessionBackendType = Literal['memory', 'sqlite', 'file']
_SESSION_BACKENDS: tuple[str, ...] = ('memory', 'sqlite', 'file')

_TRUTHY = frozenset({'1', 'true', 'yes', 'on'})


def _env_bool(name: str, default: bool) -> bool:
    """讀取布林環境變數。"""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


@dataclass
class PlannerConfig:
    """技能載入規劃器配置。

    Attributes:
        max_budget: 預設 context 預算（單位與模組 cost 相同）
        continuity: 是否預設沿用前次 session 的模組
        strict_order: 預算裁切遇到第一個放不下的模組即停止
        session_backend: session 儲存後端（memory / sqlite / file）
        session_path: sqlite 資料庫檔案或 file 後端目錄
        modules_path: 模組定義檔路徑（YAML / JSON），None 表示由呼叫端提供 Registry
    """

    max_budget: int = DEFAULT_MAX_BUDGET
    continuity: bool = False
    strict_order: bool = False
    session_backend: SessionBackendType = DEFAULT_SESSION_BACKEND
    session_path: str = DEFAULT_SESSION_PATH
    modules_path: str | None = None

    def __post_init__(self) -> None:
        if self.max_budget <= 0:
            msg = f'max_budget 必須為正整數，收到 {self.max_budget}'
            raise ValueError(msg)
        if self.session_backend not in _SESSION_BACKENDS:
            available = ', '.join(_SESSION_BACKENDS)
            msg = f"不支援的 session 後端 '{self.session_backend}'，可用：{available}"
            raise ValueError(msg)

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> PlannerConfig:
        """從環境變數（含 .env 檔）建立配置。

        讀取 SKILL_MAX_BUDGET、SKILL_CONTINUITY、SKILL_STRICT_ORDER、
        SKILL_SESSION_BACKEND、SKILL_SESSION_PATH、SKILL_MODULES_PATH，
        未設定的欄位使用預設值。

        Args:
            dotenv_path: .env 檔路徑，None 表示自動搜尋

        Returns:
            PlannerConfig

        Raises:
            ValueError: 環境變數值不合法
        """
        load_dotenv(dotenv_path)

        budget = os.environ.get('SKILL_MAX_BUDGET')
        backend = os.environ.get('SKILL_SESSION_BACKEND', DEFAULT_SESSION_BACKEND).strip().lower()
        return cls(
            max_budget=int(budget) if budget else DEFAULT_MAX_BUDGET,
            continuity=_env_bool('SKILL_CONTINUITY', False),
            strict_order=_env_bool('SKILL_STRICT_ORDER', False),
            session_backend=cast(SessionBackendType, backend),
            session_path=os.environ.get('SKILL_SESSION_PATH', DEFAULT_SESSION_PATH),
            modules_path=os.environ.get('SKILL_MODULES_PATH') or None,
        )

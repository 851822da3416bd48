"""Skill 模組基礎定義。

定義技能階層中的節點（Root / Domain / SubSkill）與規劃過程產生的資料結構。
模組內容（prose）由外部內容儲存提供，此處只描述 metadata。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ModuleKind(str, Enum):
    """模組層級。"""

    ROOT = 'root'
    DOMAIN = 'domain'
    SUB_SKILL = 'subskill'


class Invocation(str, Enum):
    """模組的載入觸發方式。

    - AUTOMATIC: 可由關鍵字比對自動載入
    - MANUAL_ONLY: 只能由使用者明確指定
    """

    AUTOMATIC = 'automatic'
    MANUAL_ONLY = 'manual_only'


class PlanReason(str, Enum):
    """模組被納入或排除的原因。"""

    EXPLICIT_REQUEST = 'explicit_request'
    KEYWORD_MATCH = 'keyword_match'
    ANCESTOR_REQUIRED = 'ancestor_required'
    BUDGET_EXCLUDED = 'budget_excluded'
    ALREADY_PERSISTED = 'already_persisted'


def normalize_phrase(text: str) -> str:
    """正規化關鍵字或片語：轉小寫、去除頭尾空白、合併連續空白。

    Args:
        text: 原始字串

    Returns:
        正規化後的字串
    """
    return ' '.join(text.lower().split())


@dataclass(frozen=True)
class Module:
    """技能階層中的一個節點。

    Attributes:
        id: 唯一識別，跨 session 穩定
        parent_id: 父模組 id，只有 Root 為 None
        kind: 模組層級
        triggers: 正規化後的觸發片語集合
        cost: 載入時佔用的 context 單位（正整數）
        invocation: 觸發方式
        priority: 同分時的排序依據，數值越大越優先
        description: 人類可讀描述，不參與任何決策
    """

    id: str
    parent_id: str | None
    kind: ModuleKind
    triggers: frozenset[str] = frozenset()
    cost: int = 1
    invocation: Invocation = Invocation.AUTOMATIC
    priority: int = 0
    description: str = ''

    @property
    def is_root(self) -> bool:
        """是否為 Root 模組。"""
        return self.kind is ModuleKind.ROOT

    @property
    def is_manual_only(self) -> bool:
        """是否只能明確指定載入。"""
        return self.invocation is Invocation.MANUAL_ONLY


@dataclass(frozen=True)
class MatchResult:
    """單一模組的關鍵字比對結果。

    Attributes:
        module_id: 模組 id
        score: 已滿足的觸發片語比例（0-1）
        matched_triggers: 已滿足的觸發片語（排序後）
    """

    module_id: str
    score: float
    matched_triggers: tuple[str, ...] = ()


@dataclass(frozen=True)
class LoadPlanEntry:
    """載入計畫中的一筆記錄。

    Attributes:
        module_id: 模組 id
        included: 是否被納入最終計畫
        reason: 納入或排除的原因
        score: 比對分數，非關鍵字比對者為 0.0
        matched_triggers: 命中的觸發片語
        detail: 給呼叫端看的補充說明
    """

    module_id: str
    included: bool
    reason: PlanReason
    score: float = 0.0
    matched_triggers: tuple[str, ...] = ()
    detail: str = ''

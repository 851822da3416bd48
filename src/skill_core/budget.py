"""預算裁切模組。

依載入計畫的順序，將模組放入 context 預算中，並記錄每個被排除模組的原因。
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from skill_core.errors import BudgetTooSmallError
from skill_core.skills.base import LoadPlanEntry, PlanReason
from skill_core.skills.registry import ModuleRegistry

logger = logging.getLogger(__name__)

# 排除說明
BUDGET_EXCLUDED_DETAIL: str = 'excluded: budget'
ANCESTOR_EXCLUDED_DETAIL: str = 'excluded: ancestor excluded'


@dataclass(frozen=True)
class ExcludedModule:
    """因預算被排除的模組。

    Attributes:
        module_id: 模組 id
        original_reason: 被排除前的納入原因
        detail: 排除說明（預算不足或祖先已被排除）
    """

    module_id: str
    original_reason: PlanReason
    detail: str


@dataclass(frozen=True)
class BudgetResult:
    """預算裁切結果。

    Attributes:
        accepted: 被接受的計畫項目（保持原本相對順序）
        total_cost: 被接受模組的總成本
        max_budget: 預算上限
        excluded: 被排除的模組與原因
        entries: 完整計畫（含被排除項目，reason 為 BUDGET_EXCLUDED）
    """

    accepted: tuple[LoadPlanEntry, ...]
    total_cost: int
    max_budget: int
    excluded: tuple[ExcludedModule, ...]
    entries: tuple[LoadPlanEntry, ...]

    @property
    def accepted_ids(self) -> list[str]:
        """被接受的模組 id（依載入順序）。"""
        return [entry.module_id for entry in self.accepted]

    @property
    def excluded_ids(self) -> set[str]:
        """被排除的模組 id。"""
        return {item.module_id for item in self.excluded}

    @property
    def remaining(self) -> int:
        """剩餘預算。"""
        return self.max_budget - self.total_cost

    @property
    def usage_percent(self) -> float:
        """預算使用百分比（0-100）。"""
        if self.max_budget <= 0:
            return 0.0
        return self.total_cost / self.max_budget * 100


def _scan_order(plan: Sequence[LoadPlanEntry]) -> list[int]:
    """掃描順序：非沿用項目依原順序在前，ALREADY_PERSISTED 項目移到最後。"""
    persisted = [i for i, entry in enumerate(plan) if entry.reason is PlanReason.ALREADY_PERSISTED]
    current = [i for i in range(len(plan)) if i not in persisted]
    return current + persisted


def fit(
    plan: Sequence[LoadPlanEntry],
    max_budget: int,
    registry: ModuleRegistry,
    strict_order: bool = False,
) -> BudgetResult:
    """將載入計畫裁切到預算內。

    Root 無條件接受；其餘項目依掃描順序，能放入就接受，放不下就排除並繼續掃描
    （後面較便宜的模組仍可能放得下）。不依成本重新排序，相關度順序優先。
    父模組未被接受的模組一併排除，確保 SubSkill 不會脫離所屬 Domain 單獨載入。

    Args:
        plan: Resolver 產生的有序計畫
        max_budget: 預算上限（context 單位）
        registry: 模組註冊表
        strict_order: 為 True 時遇到第一個放不下的項目後停止接受（結果對預算單調）

    Returns:
        BudgetResult

    Raises:
        BudgetTooSmallError: Root 本身的成本已超過預算
    """
    root = registry.root()
    if root.cost > max_budget:
        raise BudgetTooSmallError(root.cost, max_budget)

    entries = list(plan)
    if not any(entry.module_id == root.id for entry in entries):
        entries.insert(
            0,
            LoadPlanEntry(
                module_id=root.id,
                included=True,
                reason=PlanReason.ANCESTOR_REQUIRED,
                detail='root 永遠載入',
            ),
        )

    running = root.cost
    accepted_ids: set[str] = {root.id}
    exclusions: dict[int, str] = {}
    duplicates: set[int] = set()
    seen: set[str] = set()
    overflowed = False

    for index in _scan_order(entries):
        entry = entries[index]
        if entry.module_id in seen:
            duplicates.add(index)
            continue
        seen.add(entry.module_id)
        if entry.module_id == root.id:
            continue

        module = registry.require(entry.module_id)
        if overflowed or running + module.cost > max_budget:
            exclusions[index] = BUDGET_EXCLUDED_DETAIL
            overflowed = overflowed or strict_order
            continue
        if module.parent_id is not None and module.parent_id not in accepted_ids:
            exclusions[index] = ANCESTOR_EXCLUDED_DETAIL
            continue

        running += module.cost
        accepted_ids.add(module.id)

    accepted: list[LoadPlanEntry] = []
    excluded: list[ExcludedModule] = []
    annotated: list[LoadPlanEntry] = []
    for index, entry in enumerate(entries):
        if index in duplicates:
            continue
        detail = exclusions.get(index)
        if detail is None:
            kept = dataclasses.replace(entry, included=True)
            accepted.append(kept)
            annotated.append(kept)
            continue
        excluded.append(ExcludedModule(entry.module_id, entry.reason, detail))
        annotated.append(
            dataclasses.replace(
                entry,
                included=False,
                reason=PlanReason.BUDGET_EXCLUDED,
                detail=f'{detail} (原因: {entry.reason.value})',
            )
        )

    result = BudgetResult(
        accepted=tuple(accepted),
        total_cost=running,
        max_budget=max_budget,
        excluded=tuple(excluded),
        entries=tuple(annotated),
    )
    logger.info(
        '預算裁切完成',
        extra={
            'total_cost': result.total_cost,
            'max_budget': max_budget,
            'usage_percent': round(result.usage_percent, 2),
            'excluded': sorted(result.excluded_ids),
        },
    )
    return result

"""技能載入規劃器。

串接 Resolver、Budget Accountant 與 Session Store：
讀取前次 session → 解析計畫 → 預算裁切 → 儲存被接受的計畫 → 回傳含說明的報告。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from skill_core.budget import BudgetResult, ExcludedModule, fit
from skill_core.config import PlannerConfig
from skill_core.resolver import resolve, stale_module_ids
from skill_core.session.base import SessionDiff, SessionStore, diff
from skill_core.skills.base import LoadPlanEntry
from skill_core.skills.registry import ModuleRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanReport:
    """一次規劃的完整結果。

    Attributes:
        entries: 完整計畫（含被排除項目）
        accepted: 被接受的項目（依載入順序）
        total_cost: 被接受模組的總成本
        max_budget: 預算上限
        excluded: 被排除的模組與原因
        diff: 與前次 session 的差異
        stale_ids: 前次 session 中已不存在於 Registry 的模組
        session_id: 會話識別符，None 表示未使用 session
        saved: 本次計畫是否已寫入 Session Store
    """

    entries: tuple[LoadPlanEntry, ...]
    accepted: tuple[LoadPlanEntry, ...]
    total_cost: int
    max_budget: int
    excluded: tuple[ExcludedModule, ...]
    diff: SessionDiff
    stale_ids: tuple[str, ...] = ()
    session_id: str | None = None
    saved: bool = False

    @property
    def accepted_ids(self) -> list[str]:
        """被接受的模組 id（依載入順序）。"""
        return [entry.module_id for entry in self.accepted]

    def to_dict(self) -> dict[str, Any]:
        """轉換為可序列化的字典。"""
        return {
            'session_id': self.session_id,
            'saved': self.saved,
            'total_cost': self.total_cost,
            'max_budget': self.max_budget,
            'accepted': [
                {
                    'module_id': entry.module_id,
                    'reason': entry.reason.value,
                    'score': round(entry.score, 4),
                    'matched_triggers': list(entry.matched_triggers),
                    'detail': entry.detail,
                }
                for entry in self.accepted
            ],
            'excluded': [
                {
                    'module_id': item.module_id,
                    'original_reason': item.original_reason.value,
                    'detail': item.detail,
                }
                for item in self.excluded
            ],
            'diff': {
                'added': sorted(self.diff.added),
                'removed': sorted(self.diff.removed),
            },
            'stale_ids': list(self.stale_ids),
        }

    def render(self) -> str:
        """產生人類可讀的摘要。

        例如：``Loaded: root, analysis (cost 900/1000). Excluded for budget: reliability.``
        """
        lines = [
            f'Loaded: {", ".join(self.accepted_ids)} (cost {self.total_cost}/{self.max_budget}).'
        ]
        if self.excluded:
            lines.append(
                'Excluded for budget: ' + ', '.join(item.module_id for item in self.excluded) + '.'
            )
        if self.diff.added:
            lines.append('Added since last time: ' + ', '.join(sorted(self.diff.added)) + '.')
        if self.diff.removed:
            lines.append('Dropped since last time: ' + ', '.join(sorted(self.diff.removed)) + '.')
        if self.stale_ids:
            lines.append('Unknown modules in previous session: ' + ', '.join(self.stale_ids) + '.')
        return '\n'.join(lines)


@dataclass
class SkillPlanner:
    """技能載入規劃器。

    Registry 唯讀、解析與裁切為純函數，只有 Session Store 持有可變狀態。
    任何錯誤都會在寫入 session 前拋出，前次儲存的 session 保持不變。
    """

    registry: ModuleRegistry
    store: SessionStore
    config: PlannerConfig = field(default_factory=PlannerConfig)

    async def plan(
        self,
        query: Iterable[str],
        explicit_ids: Sequence[str] = (),
        session_id: str | None = None,
        max_budget: int | None = None,
        continuity: bool | None = None,
        dry_run: bool = False,
    ) -> PlanReport:
        """為一次任務決定要載入的模組。

        Args:
            query: 由呼叫端萃取的 tag / 關鍵字
            explicit_ids: 使用者明確指定的模組 id
            session_id: 會話識別符，None 表示不讀寫 session
            max_budget: 預算上限，None 表示使用配置預設值
            continuity: 是否沿用前次 session，None 表示使用配置預設值
            dry_run: 為 True 時不寫入 session

        Returns:
            PlanReport

        Raises:
            UnknownModuleError: explicit_ids 含有不存在的模組
            BudgetTooSmallError: Root 成本超過預算
        """
        budget = self.config.max_budget if max_budget is None else max_budget
        keep_previous = self.config.continuity if continuity is None else continuity
        query_items = list(query)

        previous = await self.store.load(session_id) if session_id is not None else None

        plan = resolve(
            query_items,
            explicit_ids,
            self.registry,
            previous_session=previous,
            continuity=keep_previous,
        )
        result: BudgetResult = fit(
            plan, budget, self.registry, strict_order=self.config.strict_order
        )

        saved = False
        if session_id is not None and not dry_run:
            await self.store.save(session_id, result.accepted_ids)
            saved = True

        report = PlanReport(
            entries=result.entries,
            accepted=result.accepted,
            total_cost=result.total_cost,
            max_budget=result.max_budget,
            excluded=result.excluded,
            diff=diff(previous, result.accepted_ids),
            stale_ids=tuple(stale_module_ids(previous, self.registry)),
            session_id=session_id,
            saved=saved,
        )
        logger.info(
            '載入計畫已接受',
            extra={
                'session_id': session_id,
                'accepted': report.accepted_ids,
                'total_cost': report.total_cost,
                'max_budget': report.max_budget,
                'saved': saved,
            },
        )
        return report

    async def forget(self, session_id: str) -> None:
        """刪除指定 session 的記錄。

        Args:
            session_id: 會話識別符
        """
        await self.store.delete(session_id)
        logger.info('Session 已遺忘', extra={'session_id': session_id})

    async def close(self) -> None:
        """關閉 Session Store。"""
        await self.store.close()

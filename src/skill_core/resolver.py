"""載入計畫解析模組。

合併明確指定、關鍵字比對與前次 session 的模組，補齊祖先並排出載入順序。
純函數，不修改 Registry 或 session。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from skill_core.errors import UnknownModuleError
from skill_core.matcher import match
from skill_core.session.base import Session
from skill_core.skills.base import LoadPlanEntry, Module, ModuleKind, PlanReason
from skill_core.skills.registry import ModuleRegistry

logger = logging.getLogger(__name__)


@dataclass
class _Candidate:
    """解析過程中的暫存候選。"""

    module: Module
    reason: PlanReason
    score: float = 0.0
    matched_triggers: tuple[str, ...] = ()
    detail: str = ''

    def to_entry(self) -> LoadPlanEntry:
        return LoadPlanEntry(
            module_id=self.module.id,
            included=True,
            reason=self.reason,
            score=self.score,
            matched_triggers=self.matched_triggers,
            detail=self.detail,
        )


def _domain_key(module: Module) -> str:
    """回傳模組所屬 Domain 的 id（Domain 本身回傳自己的 id）。"""
    if module.kind is ModuleKind.SUB_SKILL and module.parent_id is not None:
        return module.parent_id
    return module.id


def _sub_skill_key(candidate: _Candidate) -> tuple[float, int, str]:
    """同一 Domain 內 SubSkill 的排序鍵：分數遞減、priority 遞減、id 遞增。"""
    return (-candidate.score, -candidate.module.priority, candidate.module.id)


def _order_by_domain(candidates: Iterable[_Candidate]) -> list[_Candidate]:
    """依 Domain 首次出現的順序分組，組內 Domain 在前、SubSkill 依排序鍵排列。"""
    groups: dict[str, list[_Candidate]] = {}
    for candidate in candidates:
        groups.setdefault(_domain_key(candidate.module), []).append(candidate)

    ordered: list[_Candidate] = []
    for domain_id, members in groups.items():
        domain = [c for c in members if c.module.id == domain_id]
        sub_skills = sorted((c for c in members if c.module.id != domain_id), key=_sub_skill_key)
        ordered.extend(domain)
        ordered.extend(sub_skills)
    return ordered


def stale_module_ids(session: Session | None, registry: ModuleRegistry) -> list[str]:
    """列出前次 session 中已不存在於 Registry 的模組 id。

    Args:
        session: 前次 session
        registry: 模組註冊表

    Returns:
        失效的模組 id（依 session 內順序）
    """
    if session is None:
        return []
    return [module_id for module_id in session.accepted_module_ids if module_id not in registry]


def resolve(
    query: Iterable[str],
    explicit_ids: Sequence[str],
    registry: ModuleRegistry,
    previous_session: Session | None = None,
    continuity: bool = False,
) -> list[LoadPlanEntry]:
    """產生有序的載入計畫。

    步驟：
    1. Root 永遠在第一位
    2. 加入明確指定的模組（EXPLICIT_REQUEST）
    3. 加入關鍵字比對命中的模組（KEYWORD_MATCH）
    4. 補齊上述模組缺少的祖先（ANCESTOR_REQUIRED）
    5. 若啟用 continuity，前次 session 有但本次沒有的模組附加在最後（ALREADY_PERSISTED）
    6. 依 Domain 首次出現順序分組排序

    Args:
        query: 查詢 tag / 關鍵字
        explicit_ids: 使用者明確指定的模組 id
        registry: 模組註冊表
        previous_session: 前次接受的 session
        continuity: 是否沿用前次 session 的模組

    Returns:
        LoadPlanEntry 列表，全部 included=True，尚未經過預算裁切

    Raises:
        UnknownModuleError: explicit_ids 含有不存在的模組 id
    """
    explicit = list(dict.fromkeys(explicit_ids))
    unknown = [module_id for module_id in explicit if module_id not in registry]
    if unknown:
        raise UnknownModuleError(unknown)

    root = registry.root()
    current: dict[str, _Candidate] = {
        root.id: _Candidate(root, PlanReason.ANCESTOR_REQUIRED, detail='root 永遠載入'),
    }

    matches = match(query, registry)
    match_by_id = {result.module_id: result for result in matches}

    for module_id in explicit:
        if module_id in current:
            continue
        result = match_by_id.get(module_id)
        current[module_id] = _Candidate(
            registry.require(module_id),
            PlanReason.EXPLICIT_REQUEST,
            score=result.score if result else 0.0,
            matched_triggers=result.matched_triggers if result else (),
            detail='使用者明確指定',
        )

    for result in matches:
        if result.module_id in current:
            continue
        current[result.module_id] = _Candidate(
            registry.require(result.module_id),
            PlanReason.KEYWORD_MATCH,
            score=result.score,
            matched_triggers=result.matched_triggers,
            detail='關鍵字命中: ' + ', '.join(result.matched_triggers),
        )

    for candidate in list(current.values()):
        for ancestor in registry.ancestors(candidate.module.id):
            if ancestor.id not in current:
                current[ancestor.id] = _Candidate(
                    ancestor,
                    PlanReason.ANCESTOR_REQUIRED,
                    detail=f'{candidate.module.id} 的祖先模組',
                )

    persisted: dict[str, _Candidate] = {}
    if continuity and previous_session is not None:
        for module_id in previous_session.accepted_module_ids:
            module = registry.get(module_id)
            if module is None:
                logger.warning(
                    '前次 session 含有已不存在的模組，略過',
                    extra={'session_id': previous_session.session_id, 'module_id': module_id},
                )
                continue
            for item in [*registry.ancestors(module_id), module]:
                if item.id in current or item.id in persisted:
                    continue
                persisted[item.id] = _Candidate(
                    item,
                    PlanReason.ALREADY_PERSISTED,
                    detail=f'沿用 session {previous_session.session_id}',
                )

    body = [c for c in current.values() if c.module.id != root.id]
    ordered = [current[root.id], *_order_by_domain(body), *_order_by_domain(persisted.values())]
    plan = [candidate.to_entry() for candidate in ordered]

    logger.debug(
        '載入計畫已解析',
        extra={
            'plan': [entry.module_id for entry in plan],
            'explicit': explicit,
            'persisted': list(persisted),
        },
    )
    return plan

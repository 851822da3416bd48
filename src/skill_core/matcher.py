"""關鍵字比對模組。

將查詢 tag 與模組 trigger 比對，產生依相關度排序的候選清單。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from skill_core.skills.base import MatchResult, Module, normalize_phrase
from skill_core.skills.registry import ModuleRegistry

logger = logging.getLogger(__name__)


def tokenize_query(query: Iterable[str]) -> frozenset[str]:
    """將查詢項目正規化並拆成 token 集合。

    多字片語會拆成個別 token，空字串會被忽略。

    Args:
        query: 查詢 tag / 關鍵字

    Returns:
        token 集合
    """
    tokens: set[str] = set()
    for item in query:
        tokens.update(normalize_phrase(item).split())
    return frozenset(tokens)


def _trigger_satisfied(trigger: str, tokens: frozenset[str]) -> bool:
    """trigger 片語的每個 token 都出現在查詢中才算滿足。"""
    return all(part in tokens for part in trigger.split())


def score_module(module: Module, tokens: frozenset[str]) -> MatchResult | None:
    """計算單一模組的比對分數。

    分數為已滿足 trigger 數 / 模組 trigger 總數，偏好 trigger 全數命中的模組。

    Args:
        module: 要評分的模組
        tokens: 正規化後的查詢 token

    Returns:
        MatchResult，若沒有任何 trigger 滿足則回傳 None
    """
    if not module.triggers:
        return None

    matched = sorted(t for t in module.triggers if _trigger_satisfied(t, tokens))
    if not matched:
        return None

    return MatchResult(
        module_id=module.id,
        score=len(matched) / len(module.triggers),
        matched_triggers=tuple(matched),
    )


def match(query: Iterable[str], registry: ModuleRegistry) -> list[MatchResult]:
    """以查詢比對 Registry 中的所有模組。

    - Root 永遠以分數 1.0 出現
    - MANUAL_ONLY 模組不參與自動比對
    - 排序：分數遞減、priority 遞減、id 遞增（相同輸入必得相同順序）

    Args:
        query: 查詢 tag / 關鍵字
        registry: 模組註冊表

    Returns:
        排序後的 MatchResult 列表
    """
    tokens = tokenize_query(query)
    root = registry.root()
    results: list[MatchResult] = [MatchResult(module_id=root.id, score=1.0)]

    for module in registry:
        if module.is_root or module.is_manual_only:
            continue
        result = score_module(module, tokens)
        if result is not None:
            results.append(result)

    def sort_key(result: MatchResult) -> tuple[float, int, str]:
        module = registry.require(result.module_id)
        return (-result.score, -module.priority, module.id)

    results.sort(key=sort_key)

    logger.debug(
        '關鍵字比對完成',
        extra={'tokens': sorted(tokens), 'matches': [r.module_id for r in results]},
    )
    return results

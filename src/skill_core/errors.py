"""Skill 載入規劃器例外模組。

定義與儲存後端無關的例外類別，呼叫端只需捕捉 SkillEngineError 即可處理全部錯誤。
"""

from __future__ import annotations

from collections.abc import Iterable


class SkillEngineError(Exception):
    """規劃器基礎例外。"""


class SchemaError(SkillEngineError):
    """模組定義不合法（重複 id、父節點錯誤、循環等），於 Registry 建立時拋出。"""


class UnknownModuleError(SkillEngineError):
    """明確指定的模組 id 不存在於 Registry。

    Attributes:
        module_ids: 不存在的模組 id（依傳入順序）
    """

    def __init__(self, module_ids: Iterable[str]) -> None:
        self.module_ids: tuple[str, ...] = tuple(module_ids)
        joined = ', '.join(self.module_ids)
        super().__init__(f'未知的模組: {joined}')


class BudgetTooSmallError(SkillEngineError):
    """Root 模組本身的成本已超過預算，屬於配置錯誤。

    Attributes:
        root_cost: Root 模組成本
        max_budget: 本次呼叫的預算上限
    """

    def __init__(self, root_cost: int, max_budget: int) -> None:
        self.root_cost = root_cost
        self.max_budget = max_budget
        super().__init__(f'預算不足：Root 成本 {root_cost} 超過預算上限 {max_budget}')

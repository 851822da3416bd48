"""Module Registry 模組。

建立並驗證技能階層索引。Registry 建立後為唯讀，整個程序生命週期只建立一次。
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Iterator, Mapping

from skill_core.errors import SchemaError, UnknownModuleError
from skill_core.skills.base import Module, ModuleKind, normalize_phrase

logger = logging.getLogger(__name__)

# 各層級允許的父模組層級
_ALLOWED_PARENT_KIND: dict[ModuleKind, ModuleKind] = {
    ModuleKind.DOMAIN: ModuleKind.ROOT,
    ModuleKind.SUB_SKILL: ModuleKind.DOMAIN,
}


def _check_triggers(module: Module) -> None:
    """triggers 必須是字串集合，單一字串會被誤拆成字元。

    Raises:
        SchemaError: triggers 不是字串集合
    """
    if isinstance(module.triggers, (str, bytes)):
        raise SchemaError(
            f"模組 '{module.id}' 的 triggers 必須為字串集合，收到單一字串 {module.triggers!r}"
        )
    invalid = [t for t in module.triggers if not isinstance(t, str)]
    if invalid:
        raise SchemaError(f"模組 '{module.id}' 的 trigger 必須為字串，收到 {invalid!r}")


def _normalize_triggers(module: Module) -> Module:
    """回傳 triggers 正規化後的模組副本，空白片語會被移除。"""
    triggers = frozenset(t for t in (normalize_phrase(raw) for raw in module.triggers) if t)
    return dataclasses.replace(module, triggers=triggers)


def _check_fields(module: Module) -> None:
    """檢查單一模組的欄位型別與數值範圍。

    Raises:
        SchemaError: 欄位不合法
    """
    if not isinstance(module.kind, ModuleKind):
        raise SchemaError(f"模組 '{module.id}' 的 kind 不合法: {module.kind!r}")

    # bool 是 int 的子類別，需額外排除
    if isinstance(module.cost, bool) or not isinstance(module.cost, int) or module.cost <= 0:
        raise SchemaError(f"模組 '{module.id}' 的 cost 必須為正整數，收到 {module.cost!r}")

    if isinstance(module.priority, bool) or not isinstance(module.priority, int):
        raise SchemaError(f"模組 '{module.id}' 的 priority 必須為整數，收到 {module.priority!r}")

    if not module.triggers and not module.is_root:
        raise SchemaError(f"模組 '{module.id}' 沒有任何 trigger，只有 Root 允許為空")


def _check_cycles(modules: Mapping[str, Module]) -> None:
    """沿父節點往上走，檢查是否有節點能回到自身。

    不依賴階層深度上限，任意深度皆能正確偵測。

    Raises:
        SchemaError: 偵測到循環
    """
    acyclic: set[str] = set()
    for start in modules:
        path: list[str] = []
        visited: set[str] = set()
        current: str | None = start
        while current is not None and current not in acyclic:
            if current in visited:
                cycle = ' -> '.join([*path, current])
                raise SchemaError(f'模組階層出現循環: {cycle}')
            visited.add(current)
            path.append(current)
            current = modules[current].parent_id
        acyclic.update(visited)


def _check_parent_kind(module: Module, modules: Mapping[str, Module]) -> None:
    """檢查父子層級組合：Domain 的父為 Root，SubSkill 的父為 Domain。

    Raises:
        SchemaError: 層級組合不合法
    """
    if module.is_root:
        if module.parent_id is not None:
            raise SchemaError(f"Root 模組 '{module.id}' 不可有父模組")
        return

    if module.parent_id is None:
        raise SchemaError(f"模組 '{module.id}' 缺少父模組")

    expected = _ALLOWED_PARENT_KIND[module.kind]
    parent = modules[module.parent_id]
    if parent.kind is not expected:
        raise SchemaError(
            f"模組 '{module.id}'（{module.kind.value}）的父模組必須是 {expected.value}，"
            f"但 '{parent.id}' 是 {parent.kind.value}"
        )


class ModuleRegistry:
    """模組註冊表。

    只能透過 build() 建立，建立過程中任何驗證失敗都不會留下部分建立的 Registry。
    """

    def __init__(self, modules: dict[str, Module], root_id: str) -> None:
        self._modules = modules
        self._root_id = root_id

        children: dict[str, list[str]] = {module_id: [] for module_id in modules}
        for module in modules.values():
            if module.parent_id is not None:
                children[module.parent_id].append(module.id)
        self._children: dict[str, tuple[str, ...]] = {
            key: tuple(value) for key, value in children.items()
        }

    @classmethod
    def build(cls, modules: Iterable[Module]) -> ModuleRegistry:
        """驗證模組清單並建立 Registry。

        Args:
            modules: 靜態模組清單

        Returns:
            唯讀的 ModuleRegistry

        Raises:
            SchemaError: id 重複、Root 數量不為 1、父模組不存在、層級組合錯誤、循環等
        """
        by_id: dict[str, Module] = {}
        for module in modules:
            if not isinstance(module.id, str) or not module.id.strip():
                raise SchemaError(f'模組 id 必須為非空字串，收到 {module.id!r}')
            if module.id in by_id:
                raise SchemaError(f"模組 id '{module.id}' 重複")
            _check_triggers(module)
            by_id[module.id] = _normalize_triggers(module)

        for module in by_id.values():
            _check_fields(module)

        roots = [module.id for module in by_id.values() if module.is_root]
        if len(roots) != 1:
            raise SchemaError(f'必須恰好有一個 Root 模組，目前有 {len(roots)} 個: {roots}')

        for module in by_id.values():
            if module.parent_id is not None and module.parent_id not in by_id:
                raise SchemaError(f"模組 '{module.id}' 的父模組 '{module.parent_id}' 不存在")

        _check_cycles(by_id)

        for module in by_id.values():
            _check_parent_kind(module, by_id)

        registry = cls(by_id, roots[0])
        logger.info(
            'Module Registry 已建立',
            extra={'modules': len(by_id), 'root_id': roots[0]},
        )
        return registry

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._modules

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())

    def get(self, module_id: str) -> Module | None:
        """依 id 取得模組。

        Args:
            module_id: 模組 id

        Returns:
            Module 物件，若不存在則回傳 None
        """
        return self._modules.get(module_id)

    def require(self, module_id: str) -> Module:
        """依 id 取得模組，不存在時拋出例外。

        Args:
            module_id: 模組 id

        Returns:
            Module 物件

        Raises:
            UnknownModuleError: 模組不存在
        """
        module = self._modules.get(module_id)
        if module is None:
            raise UnknownModuleError([module_id])
        return module

    def root(self) -> Module:
        """取得 Root 模組。"""
        return self._modules[self._root_id]

    def modules(self) -> list[Module]:
        """列出所有模組（依定義順序）。"""
        return list(self._modules.values())

    def children(self, module_id: str) -> list[Module]:
        """列出直接子模組（依定義順序）。

        Raises:
            UnknownModuleError: 模組不存在
        """
        self.require(module_id)
        return [self._modules[child] for child in self._children[module_id]]

    def ancestors(self, module_id: str) -> list[Module]:
        """列出所有祖先模組，Root 在最前面，不含自身。

        Raises:
            UnknownModuleError: 模組不存在
        """
        module = self.require(module_id)
        chain: list[Module] = []
        parent_id = module.parent_id
        while parent_id is not None:
            parent = self._modules[parent_id]
            chain.append(parent)
            parent_id = parent.parent_id
        chain.reverse()
        return chain

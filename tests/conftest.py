"""全域測試設定與共用 fixture。"""

from __future__ import annotations

import pytest

from skill_core.skills import Invocation, Module, ModuleKind, ModuleRegistry


def make_root(module_id: str = 'root', cost: int = 100) -> Module:
    """建立 Root 模組。"""
    return Module(id=module_id, parent_id=None, kind=ModuleKind.ROOT, cost=cost)


def make_domain(
    module_id: str,
    triggers: set[str],
    cost: int,
    parent_id: str = 'root',
    priority: int = 0,
) -> Module:
    """建立 Domain 模組。"""
    return Module(
        id=module_id,
        parent_id=parent_id,
        kind=ModuleKind.DOMAIN,
        triggers=frozenset(triggers),
        cost=cost,
        priority=priority,
    )


def make_sub_skill(
    module_id: str,
    parent_id: str,
    triggers: set[str],
    cost: int,
    priority: int = 0,
    invocation: Invocation = Invocation.AUTOMATIC,
) -> Module:
    """建立 SubSkill 模組。"""
    return Module(
        id=module_id,
        parent_id=parent_id,
        kind=ModuleKind.SUB_SKILL,
        triggers=frozenset(triggers),
        cost=cost,
        priority=priority,
        invocation=invocation,
    )


@pytest.fixture
def scenario_registry() -> ModuleRegistry:
    """Root(100) → domain-a(wafer, vth; 300) → sub-a1(vth, extraction; 500)。"""
    return ModuleRegistry.build(
        [
            make_root(cost=100),
            make_domain('domain-a', {'wafer', 'vth'}, cost=300),
            make_sub_skill('sub-a1', 'domain-a', {'vth', 'extraction'}, cost=500),
        ]
    )


@pytest.fixture
def skill_registry() -> ModuleRegistry:
    """兩個 Domain、五個 SubSkill 的技能階層，其中一個 SubSkill 只能明確指定。"""
    return ModuleRegistry.build(
        [
            make_root(cost=400),
            make_domain('semiconductor', {'wafer', 'vth', 'device'}, cost=600),
            make_sub_skill(
                'vth-extraction',
                'semiconductor',
                {'vth', 'extraction', 'iv curve'},
                cost=800,
                priority=1,
            ),
            make_sub_skill(
                'reliability', 'semiconductor', {'reliability', 'hci', 'nbti'}, cost=900
            ),
            make_sub_skill(
                'data-ingestion', 'semiconductor', {'csv', 'ingestion', 'wafer map'}, cost=500
            ),
            make_domain('swiftui', {'swiftui', 'ios'}, cost=500),
            make_sub_skill('swiftui-layout', 'swiftui', {'layout', 'swiftui'}, cost=700),
            make_sub_skill(
                'app-store-review',
                'swiftui',
                {'app store', 'review'},
                cost=600,
                invocation=Invocation.MANUAL_ONLY,
            ),
        ]
    )

"""關鍵字比對測試模組。

涵蓋：
- Rule: 分數為模組自身 trigger 的滿足比例
- Rule: Root 永遠命中、MANUAL_ONLY 永不自動命中
- Rule: 相同輸入必得相同排序
"""

from __future__ import annotations

import allure

from skill_core.matcher import match, score_module, tokenize_query
from skill_core.skills import Module, ModuleKind, ModuleRegistry


def _registry_with_priorities() -> ModuleRegistry:
    """兩個 trigger 相同、priority 不同的 Domain。"""
    return ModuleRegistry.build(
        [
            Module(id='root', parent_id=None, kind=ModuleKind.ROOT, cost=10),
            Module(
                id='alpha',
                parent_id='root',
                kind=ModuleKind.DOMAIN,
                triggers=frozenset({'layout'}),
                cost=10,
            ),
            Module(
                id='zeta',
                parent_id='root',
                kind=ModuleKind.DOMAIN,
                triggers=frozenset({'layout'}),
                cost=10,
                priority=5,
            ),
        ]
    )


# =============================================================================
# Rule: 分數為模組自身 trigger 的滿足比例
# =============================================================================


@allure.feature('關鍵字比對')
@allure.story('分數為模組自身 trigger 的滿足比例')
class TestMatchScoring:
    """比對分數測試。"""

    @allure.title('單一 trigger 命中兩個模組')
    def test_partial_match(self, scenario_registry: ModuleRegistry) -> None:
        """Scenario: 查詢 vth，domain-a 與 sub-a1 各命中 1/2。"""
        results = match({'vth'}, scenario_registry)

        assert [(r.module_id, r.score) for r in results] == [
            ('root', 1.0),
            ('domain-a', 0.5),
            ('sub-a1', 0.5),
        ]
        assert results[1].matched_triggers == ('vth',)

    @allure.title('trigger 全數命中的模組排在前面')
    def test_full_coverage_ranks_first(self, scenario_registry: ModuleRegistry) -> None:
        """Scenario: 查詢 vth + extraction，sub-a1 全數命中。"""
        results = match({'vth', 'extraction'}, scenario_registry)

        assert [(r.module_id, r.score) for r in results] == [
            ('root', 1.0),
            ('sub-a1', 1.0),
            ('domain-a', 0.5),
        ]
        assert results[1].matched_triggers == ('extraction', 'vth')

    @allure.title('查詢字串會被正規化')
    def test_query_normalized(self, scenario_registry: ModuleRegistry) -> None:
        """查詢轉小寫並去除空白後再比對。"""
        assert match({'  VTH '}, scenario_registry) == match({'vth'}, scenario_registry)

    @allure.title('片語 trigger 需所有 token 都出現')
    def test_phrase_trigger(self, skill_registry: ModuleRegistry) -> None:
        """Scenario: 'iv curve' 需要 iv 與 curve 同時出現。"""
        module = skill_registry.require('vth-extraction')

        assert score_module(module, tokenize_query({'iv'})) is None

        split = score_module(module, tokenize_query({'iv', 'curve'}))
        phrase = score_module(module, tokenize_query({'IV Curve'}))
        assert split is not None
        assert phrase is not None
        assert split.matched_triggers == ('iv curve',)
        assert split == phrase
        assert abs(split.score - 1 / 3) < 1e-9

    @allure.title('沒有任何 trigger 命中的模組不出現')
    def test_unmatched_excluded(self, skill_registry: ModuleRegistry) -> None:
        """沒有任何 trigger 命中的模組不應出現在結果中。"""
        ids = [r.module_id for r in match({'swiftui'}, skill_registry)]

        assert ids == ['root', 'swiftui', 'swiftui-layout']
        assert 'semiconductor' not in ids


# =============================================================================
# Rule: Root 永遠命中、MANUAL_ONLY 永不自動命中
# =============================================================================


@allure.feature('關鍵字比對')
@allure.story('Root 永遠命中、MANUAL_ONLY 永不自動命中')
class TestMatchSpecialModules:
    """特殊模組比對測試。"""

    @allure.title('空查詢只回傳 Root')
    def test_empty_query(self, skill_registry: ModuleRegistry) -> None:
        """Scenario: 空查詢只回傳 Root。"""
        results = match(set(), skill_registry)

        assert [(r.module_id, r.score) for r in results] == [('root', 1.0)]

    @allure.title('MANUAL_ONLY 模組不會被關鍵字比對選中')
    def test_manual_only_never_matched(self, skill_registry: ModuleRegistry) -> None:
        """Scenario: app-store-review 的 trigger 全數命中仍不出現。"""
        ids = [r.module_id for r in match({'app', 'store', 'review'}, skill_registry)]

        assert 'app-store-review' not in ids


# =============================================================================
# Rule: 相同輸入必得相同排序
# =============================================================================


@allure.feature('關鍵字比對')
@allure.story('相同輸入必得相同排序')
class TestMatchDeterminism:
    """比對排序穩定性測試。"""

    @allure.title('重複呼叫結果相同')
    def test_repeatable(self, skill_registry: ModuleRegistry) -> None:
        """Scenario: 相同查詢呼叫兩次得到相同結果。"""
        query = {'vth', 'wafer', 'reliability', 'csv', 'ios'}

        assert match(query, skill_registry) == match(query, skill_registry)
        assert match(list(query), skill_registry) == match(sorted(query), skill_registry)

    @allure.title('同分時 priority 高者優先')
    def test_priority_breaks_ties(self) -> None:
        """Scenario: 同分時 priority 遞減排序。"""
        ids = [r.module_id for r in match({'layout'}, _registry_with_priorities())]

        assert ids.index('zeta') < ids.index('alpha')

    @allure.title('同分同 priority 時依 id 排序')
    def test_id_breaks_ties(self, skill_registry: ModuleRegistry) -> None:
        """Scenario: 同分同 priority 時依 id 遞增。"""
        results = match({'reliability', 'csv'}, skill_registry)

        assert [r.module_id for r in results] == ['root', 'data-ingestion', 'reliability']

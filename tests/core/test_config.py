"""配置系統測試模組。

涵蓋：
- Rule: 應提供合理的預設配置
- Rule: 應支援從環境變數讀取配置
- Rule: 應依配置建立 Session Store 與規劃器
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import allure
import pytest

from skill_core.config import DEFAULT_MAX_BUDGET, PlannerConfig
from skill_core.session import FileSessionStore, MemorySessionStore, SQLiteSessionStore
from skill_core.setup import create_planner, create_session_store
from skill_core.skills import ModuleRegistry

_ENV_KEYS = (
    'SKILL_MAX_BUDGET',
    'SKILL_CONTINUITY',
    'SKILL_STRICT_ORDER',
    'SKILL_SESSION_BACKEND',
    'SKILL_SESSION_PATH',
    'SKILL_MODULES_PATH',
)


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """清除相關環境變數，並回傳不含 .env 的暫存目錄。"""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return tmp_path


@allure.feature('規劃器配置')
@allure.story('應提供合理的預設配置')
class TestDefaultConfig:
    """預設配置測試。"""

    @allure.title('預設值')
    def test_defaults(self) -> None:
        """Scenario: 預設預算 3500、記憶體後端、不沿用 session。"""
        config = PlannerConfig()

        assert config.max_budget == DEFAULT_MAX_BUDGET == 3500
        assert config.continuity is False
        assert config.strict_order is False
        assert config.session_backend == 'memory'
        assert config.modules_path is None

    @allure.title('預算必須為正整數')
    def test_invalid_budget(self) -> None:
        """預算不是正整數時拋出 ValueError。"""
        with pytest.raises(ValueError, match='max_budget'):
            PlannerConfig(max_budget=0)

    @allure.title('不支援的 session 後端')
    def test_invalid_backend(self) -> None:
        """不支援的 session 後端拋出 ValueError。"""
        with pytest.raises(ValueError, match='redis'):
            PlannerConfig(session_backend='redis')  # type: ignore[arg-type]


@allure.feature('規劃器配置')
@allure.story('應支援從環境變數讀取配置')
class TestEnvConfig:
    """環境變數配置測試。"""

    @allure.title('從環境變數讀取')
    def test_from_env(self, clean_env: Path) -> None:
        """Scenario: 從環境變數讀取所有欄位。"""
        env = {
            'SKILL_MAX_BUDGET': '1200',
            'SKILL_CONTINUITY': 'true',
            'SKILL_STRICT_ORDER': '1',
            'SKILL_SESSION_BACKEND': 'SQLite',
            'SKILL_SESSION_PATH': '/tmp/skills.db',
            'SKILL_MODULES_PATH': 'modules.yaml',
        }
        with patch.dict(os.environ, env):
            config = PlannerConfig.from_env(str(clean_env / '.env'))

        assert config.max_budget == 1200
        assert config.continuity is True
        assert config.strict_order is True
        assert config.session_backend == 'sqlite'
        assert config.session_path == '/tmp/skills.db'
        assert config.modules_path == 'modules.yaml'

    @allure.title('未設定時使用預設值')
    def test_from_env_defaults(self, clean_env: Path) -> None:
        """未設定環境變數時使用預設值。"""
        config = PlannerConfig.from_env(str(clean_env / '.env'))

        assert config == PlannerConfig()

    @allure.title('從 .env 檔讀取')
    def test_from_dotenv_file(self, clean_env: Path) -> None:
        """Scenario: 從 .env 檔讀取預算。"""
        dotenv_file = clean_env / '.env'
        dotenv_file.write_text('SKILL_MAX_BUDGET=2048\n', encoding='utf-8')

        try:
            config = PlannerConfig.from_env(str(dotenv_file))
        finally:
            os.environ.pop('SKILL_MAX_BUDGET', None)

        assert config.max_budget == 2048


@allure.feature('規劃器配置')
@allure.story('應依配置建立 Session Store 與規劃器')
class TestFactories:
    """工廠函數測試。"""

    @allure.title('依後端類型建立 Session Store')
    async def test_create_session_store(self, tmp_path: Path) -> None:
        """Scenario: memory / sqlite / file 各自建立對應實作。"""
        memory = create_session_store(PlannerConfig())
        sqlite = create_session_store(
            PlannerConfig(session_backend='sqlite', session_path=str(tmp_path / 'a.db'))
        )
        files = create_session_store(
            PlannerConfig(session_backend='file', session_path=str(tmp_path / 'sessions'))
        )

        assert isinstance(memory, MemorySessionStore)
        assert isinstance(sqlite, SQLiteSessionStore)
        assert isinstance(files, FileSessionStore)
        await sqlite.close()

    @allure.title('從模組定義檔建立規劃器')
    async def test_create_planner_from_file(self, tmp_path: Path) -> None:
        """Scenario: 依 modules_path 載入 Registry 並完成一次規劃。"""
        modules_file = tmp_path / 'modules.yaml'
        modules_file.write_text(
            'modules:\n'
            '  - {id: root, kind: root, cost: 100}\n'
            '  - {id: domain-a, parent: root, kind: domain, triggers: [wafer, vth], cost: 300}\n',
            encoding='utf-8',
        )

        planner = create_planner(PlannerConfig(modules_path=str(modules_file), max_budget=500))
        report = await planner.plan({'wafer'})

        assert report.accepted_ids == ['root', 'domain-a']
        assert report.total_cost == 400

    @allure.title('使用已建立的 Registry')
    def test_create_planner_with_registry(self, scenario_registry: ModuleRegistry) -> None:
        """提供 Registry 時不需要 modules_path。"""
        planner = create_planner(PlannerConfig(), registry=scenario_registry)

        assert planner.registry is scenario_registry
        assert isinstance(planner.store, MemorySessionStore)

    @allure.title('沒有 Registry 也沒有定義檔')
    def test_create_planner_without_modules(self) -> None:
        """沒有 Registry 也沒有 modules_path 時拋出 ValueError。"""
        with pytest.raises(ValueError, match='modules_path'):
            create_planner(PlannerConfig())

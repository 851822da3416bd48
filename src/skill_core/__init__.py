"""Skill Core - 階層式技能模組的解析與預算規劃引擎。"""

__version__ = '0.1.0'

from skill_core.budget import BudgetResult, ExcludedModule, fit
from skill_core.config import PlannerConfig
from skill_core.errors import (
    BudgetTooSmallError,
    SchemaError,
    SkillEngineError,
    UnknownModuleError,
)
from skill_core.matcher import match
from skill_core.planner import PlanReport, SkillPlanner
from skill_core.resolver import resolve
from skill_core.session import (
    FileSessionStore,
    MemorySessionStore,
    Session,
    SessionDiff,
    SessionStore,
    SQLiteSessionStore,
    diff,
)
from skill_core.setup import create_planner, create_session_store
from skill_core.skills import (
    Invocation,
    LoadPlanEntry,
    MatchResult,
    Module,
    ModuleKind,
    ModuleRegistry,
    PlanReason,
)

__all__ = [
    'BudgetResult',
    'BudgetTooSmallError',
    'ExcludedModule',
    'FileSessionStore',
    'Invocation',
    'LoadPlanEntry',
    'MatchResult',
    'MemorySessionStore',
    'Module',
    'ModuleKind',
    'ModuleRegistry',
    'PlanReason',
    'PlanReport',
    'PlannerConfig',
    'SQLiteSessionStore',
    'SchemaError',
    'Session',
    'SessionDiff',
    'SessionStore',
    'SkillEngineError',
    'SkillPlanner',
    'UnknownModuleError',
    'create_planner',
    'create_session_store',
    'diff',
    'fit',
    'match',
    'resolve',
]

"""Skill 模組階層。

以 Root / Domain / SubSkill 三層描述可載入的技能文件 metadata，並提供驗證後的唯讀索引。
"""

from skill_core.skills.base import (
    Invocation,
    LoadPlanEntry,
    MatchResult,
    Module,
    ModuleKind,
    PlanReason,
    normalize_phrase,
)
from skill_core.skills.loader import (
    ModuleDefinition,
    build_registry_from_file,
    load_module_definitions,
    parse_module_definitions,
)
from skill_core.skills.registry import ModuleRegistry

__all__ = [
    'Invocation',
    'LoadPlanEntry',
    'MatchResult',
    'Module',
    'ModuleDefinition',
    'ModuleKind',
    'ModuleRegistry',
    'PlanReason',
    'build_registry_from_file',
    'load_module_definitions',
    'normalize_phrase',
    'parse_module_definitions',
]

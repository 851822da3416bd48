"""模組定義檔載入器。

從 YAML 或 JSON 設定檔讀取模組 metadata（每份技能文件一筆），轉換為 Module 清單。
只讀取 metadata，不讀取技能文件本身的內容。

檔案格式：

    modules:
      - id: root
        kind: root
        cost: 400
      - id: semiconductor-analysis
        parent: root
        kind: domain
        triggers: [wafer, vth]
        cost: 600
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from skill_core.errors import SchemaError
from skill_core.skills.base import Invocation, Module, ModuleKind
from skill_core.skills.registry import ModuleRegistry

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = frozenset({'.yaml', '.yml'})


class ModuleDefinition(BaseModel):
    """設定檔中的單筆模組記錄。

    未知欄位（例如內容儲存使用的檔案路徑）會被忽略。
    """

    model_config = ConfigDict(extra='ignore', frozen=True)

    id: str = Field(min_length=1)
    parent: str | None = None
    kind: ModuleKind
    triggers: list[str] = Field(default_factory=lambda: [])
    cost: StrictInt = Field(gt=0)
    invocation: Invocation = Invocation.AUTOMATIC
    priority: StrictInt = 0
    description: str = ''

    def to_module(self) -> Module:
        """轉換為 Module。"""
        return Module(
            id=self.id,
            parent_id=self.parent,
            kind=self.kind,
            triggers=frozenset(self.triggers),
            cost=self.cost,
            invocation=self.invocation,
            priority=self.priority,
            description=self.description,
        )


def parse_module_definitions(records: Sequence[Any]) -> list[Module]:
    """驗證已解碼的模組記錄並轉換為 Module 清單。

    Args:
        records: 模組記錄（通常是 dict）列表

    Returns:
        Module 清單，順序與輸入相同

    Raises:
        SchemaError: 任一筆記錄驗證失敗
    """
    modules: list[Module] = []
    for index, record in enumerate(records):
        try:
            definition = ModuleDefinition.model_validate(record)
        except ValidationError as e:
            raise SchemaError(f'第 {index} 筆模組定義不合法: {e}') from e
        modules.append(definition.to_module())
    return modules


def _decode(path: Path, text: str) -> Any:
    """依副檔名解碼設定檔內容。"""
    try:
        if path.suffix.lower() in _YAML_SUFFIXES:
            return yaml.safe_load(text)
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SchemaError(f'無法解析模組定義檔 {path}: {e}') from e


def load_module_definitions(path: str | Path) -> list[Module]:
    """讀取模組定義檔。

    支援 .yaml / .yml / .json。頂層可以是含 `modules` 鍵的 mapping，或直接是列表。

    Args:
        path: 定義檔路徑

    Returns:
        Module 清單

    Raises:
        SchemaError: 檔案格式或內容不合法
        OSError: 檔案無法讀取
    """
    file_path = Path(path)
    data = _decode(file_path, file_path.read_text(encoding='utf-8'))

    if isinstance(data, dict):
        data = cast(dict[str, Any], data).get('modules')
    if not isinstance(data, list):
        raise SchemaError(f'模組定義檔 {file_path} 必須包含 modules 列表')

    modules = parse_module_definitions(cast(list[Any], data))
    logger.debug(
        '模組定義檔已載入',
        extra={'path': str(file_path), 'modules': len(modules)},
    )
    return modules


def build_registry_from_file(path: str | Path) -> ModuleRegistry:
    """讀取模組定義檔並建立 Registry。

    Args:
        path: 定義檔路徑

    Returns:
        ModuleRegistry

    Raises:
        SchemaError: 定義檔或模組階層不合法
    """
    return ModuleRegistry.build(load_module_definitions(path))

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class DifficultyType(str, Enum):
    """困难类型. 值即界面和表格中使用的中文名称"""

    POVERTY_ALLEVIATED_CONTINUE_POLICY = "脱贫户(继续享受政策)"
    POVERTY_ALLEVIATED_NO_POLICY = "脱贫户(不享受政策)"
    DISABLED_WITH_CERTIFICATE = "持证残疾人"
    RURAL_MINIMUM_LIVING = "农村低保"
    URBAN_MINIMUM_LIVING = "城镇低保"
    RURAL_SPECIAL_DIFFICULTY = "城乡特困"
    ANTI_POVERTY_MONITORING_RISK_NOT_ELIMINATED = "防返贫监测对象(风险未消除)"
    ANTI_POVERTY_MONITORING_RISK_ELIMINATED = "防返贫监测对象(风险已消除)"
    ORPHANS_AND_FACTUALLY_UNSUPPORTED_CHILDREN = "孤儿及事实无人抚养儿童"
    LOW_INCOME_POPULATION = "低收入人口"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.value

    @property
    def layout(self) -> "TableLayout":
        return TABLE_LAYOUTS[self]


@dataclass(frozen=True)
class TableLayout:
    """
    各类困难人员备案表的版式 (下标均从 0 开始):
      sheets     - 需要读取的工作表
      skip_rows  - 表头占用的行数
      id_columns - 身份证号所在列; 户籍类表格同一行包含户主和各家庭成员
    """
    sheets: Tuple[int, ...]
    skip_rows: int
    id_columns: Tuple[int, ...]


TABLE_LAYOUTS: Dict[DifficultyType, TableLayout] = {
    DifficultyType.POVERTY_ALLEVIATED_CONTINUE_POLICY: TableLayout((0,), 1, (7,)),
    DifficultyType.POVERTY_ALLEVIATED_NO_POLICY: TableLayout((0,), 1, (7,)),
    DifficultyType.DISABLED_WITH_CERTIFICATE: TableLayout((0,), 1, (1,)),
    DifficultyType.RURAL_MINIMUM_LIVING: TableLayout((1,), 2, (6, 15, 17, 19, 21, 23, 25, 27, 29)),
    DifficultyType.URBAN_MINIMUM_LIVING: TableLayout((1,), 2, (6, 16, 18, 20, 22, 24)),
    DifficultyType.RURAL_SPECIAL_DIFFICULTY: TableLayout((1,), 3, (5, 26, 31, 33, 35, 37, 39, 41)),
    DifficultyType.ANTI_POVERTY_MONITORING_RISK_NOT_ELIMINATED: TableLayout((0,), 1, (11,)),
    DifficultyType.ANTI_POVERTY_MONITORING_RISK_ELIMINATED: TableLayout((0,), 1, (11,)),
    # 孤儿花名册: 第 1 张和第 3 张表分别是孤儿和事实无人抚养儿童
    DifficultyType.ORPHANS_AND_FACTUALLY_UNSUPPORTED_CHILDREN: TableLayout((0, 2), 3, (2,)),
    DifficultyType.LOW_INCOME_POPULATION: TableLayout((0,), 1, (3,)),
}


def all_categories() -> List[DifficultyType]:
    return list(DifficultyType)


def list_categories() -> List[Dict[str, str]]:
    # 下拉框选项, label 与 value 相同
    return [{"label": c.label, "value": c.value} for c in DifficultyType]


def parse_category(value: Any) -> Optional[DifficultyType]:
    """
    将输入转换为 DifficultyType.
    未知类型返回 None 而不是抛出异常, 按未知类型查找的结果为空.
    """
    if isinstance(value, DifficultyType):
        return value
    if value is None:
        return None
    text = str(value).strip()
    try:
        return DifficultyType(text)
    except ValueError:
        return None

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

from .categories import DifficultyType, parse_category

T = TypeVar("T")


def _opt_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


@dataclass(frozen=True)
class Student:
    """学生基本信息 (学生信息表中的一行)"""
    name: str
    id_number: str
    student_id: Optional[str] = None  # 全国学籍号
    class_name: Optional[str] = None
    grade: Optional[str] = None
    school: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "id_number": self.id_number,
            "student_id": self.student_id,
            "class": self.class_name,
            "grade": self.grade,
            "school": self.school,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Student":
        return cls(
            name=str(d.get("name", "") or ""),
            id_number=str(d.get("id_number", "") or ""),
            student_id=_opt_str(d.get("student_id")),
            class_name=_opt_str(d.get("class", d.get("class_name"))),
            grade=_opt_str(d.get("grade")),
            school=_opt_str(d.get("school")),
        )


@dataclass(frozen=True)
class DifficultyRecord:
    """困难人员备案表中的一个身份证号"""
    id_number: str
    difficulty_type: DifficultyType
    source: str = ""
    origin_row: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id_number": self.id_number,
            "difficulty_type": self.difficulty_type.value,
            "source": self.source,
            "origin_row": self.origin_row,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DifficultyRecord":
        dt = parse_category(d.get("difficulty_type"))
        if dt is None:
            raise ValueError(f"unknown difficulty_type: {d.get('difficulty_type')!r}")
        row = d.get("origin_row")
        return cls(
            id_number=str(d.get("id_number", "") or ""),
            difficulty_type=dt,
            source=str(d.get("source", "") or ""),
            origin_row=int(row) if row not in (None, "") else None,
        )


@dataclass(frozen=True)
class MatchResult:
    student: Student
    difficult_info: DifficultyRecord

    @property
    def id_number(self) -> str:
        return self.student.id_number

    def to_dict(self) -> Dict[str, Any]:
        return {"student": self.student.to_dict(), "difficult_info": self.difficult_info.to_dict()}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MatchResult":
        return cls(
            student=Student.from_dict(d.get("student") or {}),
            difficult_info=DifficultyRecord.from_dict(d.get("difficult_info") or {}),
        )


@dataclass(frozen=True)
class MatchStatistics:
    total_students: int = 0
    total_matches: int = 0
    # 只统计匹配结果中实际出现的类型, 不补零
    difficulty_type_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_students": self.total_students,
            "total_matches": self.total_matches,
            "difficulty_type_counts": dict(self.difficulty_type_counts),
        }


@dataclass(frozen=True)
class FileInfo:
    name: str
    path: str
    size: int
    extension: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "path": self.path, "size": self.size, "extension": self.extension}


@dataclass(frozen=True)
class CommandResult(Generic[T]):
    """
    对外接口的返回值: 成功时带 data, 失败时带 error.
    调用方使用 data 前必须先检查 success.
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "CommandResult[T]":
        return cls(True, data, None)

    @classmethod
    def fail(cls, message: str) -> "CommandResult[T]":
        return cls(False, None, message)

    def to_dict(self) -> Dict[str, Any]:
        data = self.data
        if hasattr(data, "to_dict"):
            data = data.to_dict()
        elif isinstance(data, list):
            data = [x.to_dict() if hasattr(x, "to_dict") else x for x in data]
        return {"success": self.success, "data": data, "error": self.error}


@dataclass
class SearchOutcome:
    matches: List[MatchResult] = field(default_factory=list)
    statistics: MatchStatistics = field(default_factory=MatchStatistics)
    success: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "statistics": self.statistics.to_dict(),
            "success": self.success,
            "error": self.error,
        }

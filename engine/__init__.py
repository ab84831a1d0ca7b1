"""
这个包包含:
- 困难类型及各类备案表的版式 (categories)
- 读取学生信息表和困难类型表 (ingest)
- 按身份证号匹配并统计 (matching)
- 导出 Excel (export)
- 供界面调用的接口 (commands)
"""
from .categories import DifficultyType, list_categories, parse_category
from .models import CommandResult, DifficultyRecord, FileInfo, MatchResult, MatchStatistics, SearchOutcome, Student
from .errors import (MatcherError, SpreadsheetNotFoundError, SpreadsheetReadError, SpreadsheetParseError, ExportError, ValidationError)
from .ingest import read_student_table, read_difficulty_table
from .matching import find_matches, compute_statistics, match_with_statistics
from .export import export_matches, export_to_excel_bytes
from .utils import mask_id_number, format_file_size

__all__ = [
    "DifficultyType",
    "list_categories",
    "parse_category",
    "CommandResult",
    "DifficultyRecord",
    "FileInfo",
    "MatchResult",
    "MatchStatistics",
    "SearchOutcome",
    "Student",
    "MatcherError",
    "SpreadsheetNotFoundError",
    "SpreadsheetReadError",
    "SpreadsheetParseError",
    "ExportError",
    "ValidationError",
    "read_student_table",
    "read_difficulty_table",
    "find_matches",
    "compute_statistics",
    "match_with_statistics",
    "export_matches",
    "export_to_excel_bytes",
    "mask_id_number",
    "format_file_size",
]

"""
界面调用的对外接口.

每个函数都返回 CommandResult, 不向外抛出异常:
引擎错误 (MatcherError) 转换为错误信息, 其他异常记录日志后同样转换为错误信息.
"""
from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from . import categories
from .categories import parse_category
from .errors import MatcherError, SpreadsheetNotFoundError, SpreadsheetReadError, ValidationError
from .export import export_matches
from .ingest import read_difficulty_table, read_student_table
from .matching import match_with_statistics
from .models import CommandResult, FileInfo, MatchResult, MatchStatistics, SearchOutcome
from .utils import EXCEL_EXTENSIONS, file_extension, format_bytes

logger = logging.getLogger(__name__)

# 文件头: xlsx 是 zip 包, xls 是 OLE2 复合文档
_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

MSG_NO_STUDENT_FILE = "请选择学生信息表文件"
MSG_NO_DIFFICULTY_FILE = "请选择困难类型数据表文件"
MSG_NO_CATEGORY = "请选择困难类型"
MSG_FIND_FAILED = "查找学生失败"
MSG_STATS_FAILED = "获取统计信息失败"


def _guarded(op: str, fn, *args) -> CommandResult:
    try:
        return CommandResult.ok(fn(*args))
    except MatcherError as e:
        logger.warning("%s failed: %s", op, e)
        return CommandResult.fail(str(e))
    except Exception as e:
        logger.exception("%s: unexpected error", op)
        return CommandResult.fail(f"{type(e).__name__}: {e}")


def _validate_file(path: str) -> FileInfo:
    if not str(path or "").strip():
        raise ValidationError("请选择文件")
    p = Path(path)
    if not p.exists():
        raise SpreadsheetNotFoundError(str(path))
    if not p.is_file():
        raise SpreadsheetReadError(f"不是文件: {path}")

    ext = file_extension(p.name)
    if ext not in EXCEL_EXTENSIONS:
        raise SpreadsheetReadError(f"不支持的文件格式: .{ext}" if ext else "文件没有扩展名")

    with open(p, "rb") as f:
        head = f.read(8)
    magic = _ZIP_MAGIC if ext == "xlsx" else _OLE2_MAGIC
    if not head.startswith(magic):
        raise SpreadsheetReadError(f"文件不是有效的 .{ext} 表格: {p.name}")

    size = p.stat().st_size
    logger.debug("validated %s (%s)", p.name, format_bytes(size))
    return FileInfo(name=p.name, path=str(p), size=size, extension=ext)


def validate_file(path: str) -> CommandResult[FileInfo]:
    return _guarded("validate_file", _validate_file, path)


def list_categories() -> CommandResult[List[Dict[str, str]]]:
    return CommandResult.ok(categories.list_categories())


def _search(student_path: str, difficulty_path: str, category: str) -> Tuple[List[MatchResult], MatchStatistics]:
    students = read_student_table(student_path)
    dt = parse_category(category)
    if dt is None:
        # 未知类型: 结果为空, 不读取困难类型表
        logger.info("unknown difficulty type %r, nothing to match", category)
        records = []
    else:
        records = read_difficulty_table(difficulty_path, dt)
    return match_with_statistics(students, records, category)


def find_matches(student_path: str, difficulty_path: str, category: str) -> CommandResult[List[MatchResult]]:
    return _guarded("find_matches", lambda: _search(student_path, difficulty_path, category)[0])


def get_statistics(student_path: str, difficulty_path: str, category: str) -> CommandResult[MatchStatistics]:
    return _guarded("get_statistics", lambda: _search(student_path, difficulty_path, category)[1])


def _as_match(m: Union[MatchResult, Dict[str, Any]]) -> MatchResult:
    return m if isinstance(m, MatchResult) else MatchResult.from_dict(m)


def export(
    matches: Iterable[Union[MatchResult, Dict[str, Any]]],
    output_path: str,
    statistics: Optional[MatchStatistics] = None,
) -> CommandResult[str]:
    def run() -> str:
        items = [_as_match(m) for m in matches]
        return str(export_matches(items, output_path, statistics))
    return _guarded("export", run)


def validate_search_parameters(student_path: str, difficulty_path: str, category: str) -> Tuple[bool, Optional[str]]:
    if not str(student_path or "").strip():
        return False, MSG_NO_STUDENT_FILE
    if not str(difficulty_path or "").strip():
        return False, MSG_NO_DIFFICULTY_FILE
    if not str(category or "").strip():
        return False, MSG_NO_CATEGORY
    return True, None


def execute_student_search(student_path: str, difficulty_path: str, category: str) -> SearchOutcome:
    """
    并行执行匹配和统计, 等待两者完成.

    - 匹配失败: 不返回匹配结果, 统计清零, 错误信息取自匹配
    - 统计失败: 保留匹配结果, 统计清零, 错误信息取自统计
    """
    valid, message = validate_search_parameters(student_path, difficulty_path, category)
    if not valid:
        return SearchOutcome(error=message)

    try:
        with ThreadPoolExecutor(max_workers=2) as pool:
            f_matches = pool.submit(find_matches, student_path, difficulty_path, category)
            f_stats = pool.submit(get_statistics, student_path, difficulty_path, category)
            match_result = f_matches.result()
            stats_result = f_stats.result()
    except Exception as e:
        logger.exception("student search crashed")
        return SearchOutcome(error=f"执行查找时发生错误: {e}")

    if not match_result.success:
        return SearchOutcome(error=match_result.error or MSG_FIND_FAILED)

    if not stats_result.success:
        return SearchOutcome(
            matches=match_result.data or [],
            error=stats_result.error or MSG_STATS_FAILED,
        )

    logger.info(
        "search %s: %d matches of %d students",
        category, stats_result.data.total_matches, stats_result.data.total_students,
    )
    return SearchOutcome(
        matches=match_result.data or [],
        statistics=stats_result.data or MatchStatistics(),
        success=True,
    )

from __future__ import annotations
import logging
import zipfile
from pathlib import Path
from typing import Any, List, Optional, Union

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .categories import DifficultyType, parse_category
from .errors import SpreadsheetNotFoundError, SpreadsheetParseError, SpreadsheetReadError
from .models import DifficultyRecord, Student
from .utils import cell_text, file_extension, looks_like_id_number, normalize_id_number

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# 学生信息表的列 (下标从 0 开始)
STUDENT_NAME_COL = 0     # A 学生姓名
STUDENT_ID_NUMBER_COL = 1  # B 身份证件号
STUDENT_SCHOOL_COL = 4   # E 学校名称
STUDENT_GRADE_COL = 8    # I 年级
STUDENT_CLASS_COL = 9    # J 班级
STUDENT_NO_COL = 10      # K 全国学籍号
STUDENT_MIN_CELLS = 3
# =========================

# xlsx: 逐行读取工作表, 可选展开合并单元格
# =========================
def _xlsx_sheet_rows(path: Path, sheet_index: int, expand_merged: bool) -> List[List[Any]]:
    try:
        wb = load_workbook(path, read_only=False, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise SpreadsheetReadError(str(e)) from e

    try:
        if sheet_index >= len(wb.worksheets):
            raise SpreadsheetReadError(f"Cannot find worksheet at index {sheet_index}")
        ws = wb.worksheets[sheet_index]

        merged_map = {}
        if expand_merged:
            for r in ws.merged_cells.ranges:
                min_col, min_row, max_col, max_row = r.bounds
                top_val = ws.cell(min_row, min_col).value
                for rr in range(min_row, max_row + 1):
                    for cc in range(min_col, max_col + 1):
                        merged_map[(rr, cc)] = top_val

        rows = []
        for r, values in enumerate(ws.iter_rows(values_only=True), start=1):
            row_vals = list(values)
            if merged_map:
                for c in range(1, len(row_vals) + 1):
                    v = row_vals[c - 1]
                    if (r, c) in merged_map and (v is None or str(v).strip() == ""):
                        row_vals[c - 1] = merged_map[(r, c)]
            rows.append(row_vals)
        return rows
    finally:
        wb.close()
# =========================

# xls: 旧格式通过 pandas + xlrd 读取
# =========================
def _xls_sheet_rows(path: Path, sheet_index: int) -> List[List[Any]]:
    try:
        xls = pd.ExcelFile(path, engine="xlrd")
    except Exception as e:
        # xlrd 对损坏文件抛出的异常类型不固定
        raise SpreadsheetReadError(str(e)) from e

    with xls:
        if sheet_index >= len(xls.sheet_names):
            raise SpreadsheetReadError(f"Cannot find worksheet at index {sheet_index}")
        try:
            df = xls.parse(sheet_name=sheet_index, header=None, dtype=object)
        except Exception as e:
            raise SpreadsheetReadError(f"{path.name}: sheet {sheet_index + 1}: {e}") from e

    df = df.astype(object).where(pd.notna(df), None)
    return [list(r) for r in df.itertuples(index=False, name=None)]


def _check_file(path: PathLike) -> Path:
    p = Path(path)
    if not p.exists():
        raise SpreadsheetNotFoundError(str(path))
    return p


def load_sheet_rows(path: PathLike, sheet_index: int = 0, expand_merged: bool = False) -> List[List[Any]]:
    """
    按行读取工作表, 返回单元格值矩阵.

    按扩展名选择读取方式: .xlsx 用 openpyxl, .xls 用 pandas + xlrd.
    expand_merged: 合并区域内的空单元格取该区域左上角的值
    (仅 .xlsx; xlrd 不读取格式信息时拿不到合并区域).
    """
    p = _check_file(path)
    ext = file_extension(p.name)
    if ext == "xlsx":
        return _xlsx_sheet_rows(p, sheet_index, expand_merged)
    if ext == "xls":
        return _xls_sheet_rows(p, sheet_index)
    raise SpreadsheetReadError(f"Unsupported file format: {p.name}")


def _cell(row: List[Any], idx: int) -> str:
    if idx >= len(row):
        return ""
    return cell_text(row[idx])


def _optional_cell(row: List[Any], idx: int) -> Optional[str]:
    return _cell(row, idx) or None


def read_student_table(path: PathLike) -> List[Student]:
    """
    读取学生信息表: 第一张工作表, 首行为表头.
    缺少姓名或身份证号的行跳过.
    """
    rows = load_sheet_rows(path, 0, expand_merged=True)

    students: List[Student] = []
    for row in rows[1:]:
        if len(row) < STUDENT_MIN_CELLS:
            continue
        name = _cell(row, STUDENT_NAME_COL)
        id_number = _cell(row, STUDENT_ID_NUMBER_COL)
        if not name or not id_number:
            continue
        students.append(Student(
            name=name,
            id_number=normalize_id_number(id_number),
            student_id=_optional_cell(row, STUDENT_NO_COL),
            class_name=_optional_cell(row, STUDENT_CLASS_COL),
            grade=_optional_cell(row, STUDENT_GRADE_COL),
            school=_optional_cell(row, STUDENT_SCHOOL_COL),
        ))

    logger.info("student table %s: %d students", Path(path).name, len(students))
    return students


def read_difficulty_table(path: PathLike, category: Union[DifficultyType, str]) -> List[DifficultyRecord]:
    """
    按困难类型对应的版式读取备案表.
    每个非空身份证单元格生成一条记录; 户籍类表格一行可能有多条.
    """
    dt = parse_category(category)
    if dt is None:
        raise SpreadsheetParseError(f"Unknown difficulty type: {category}")

    p = _check_file(path)
    layout = dt.layout
    records: List[DifficultyRecord] = []

    for sheet_index in layout.sheets:
        rows = load_sheet_rows(p, sheet_index)
        data_rows = rows[layout.skip_rows:]
        source = f"{p.name} / sheet {sheet_index + 1}"

        # 有数据行却没有一行覆盖到身份证列, 说明文件与所选类型不符
        non_empty = [r for r in data_rows if any(cell_text(v) for v in r)]
        min_width = min(layout.id_columns) + 1
        if non_empty and all(len(r) < min_width for r in non_empty):
            raise SpreadsheetParseError(
                f"{p.name}: sheet {sheet_index + 1} has no column {min_width} for {dt.value}"
            )

        for offset, row in enumerate(data_rows):
            for col in layout.id_columns:
                id_number = normalize_id_number(_cell(row, col))
                if not id_number:
                    continue
                records.append(DifficultyRecord(
                    id_number=id_number,
                    difficulty_type=dt,
                    source=source,
                    origin_row=layout.skip_rows + offset + 1,
                ))

    # 身份证列有内容却没有一个像身份证号, 多半是选错了文件 (例如把学生信息表当作备案表)
    if records and not any(looks_like_id_number(r.id_number) for r in records):
        raise SpreadsheetParseError(
            f"{p.name}: no identity numbers in the columns expected for {dt.value}"
        )

    logger.info("difficulty table %s (%s): %d records", p.name, dt.value, len(records))
    return records

from pathlib import Path
from typing import Dict, List, Sequence

import pytest
import xlwt
from openpyxl import Workbook

from engine.categories import DifficultyType
from engine.models import DifficultyRecord, Student

STUDENT_HEADER = ["学生姓名", "身份证件号", "性别", "民族", "学校名称", "学段", "入学年份", "班号", "年级", "班级", "全国学籍号"]


def write_xlsx(path: Path, sheets: Sequence[Sequence[Sequence]]) -> Path:
    """写出工作簿: sheets 中每个元素是一张表的所有行"""
    wb = Workbook()
    wb.remove(wb.active)
    for i, rows in enumerate(sheets):
        ws = wb.create_sheet(f"Sheet{i + 1}")
        for row in rows:
            ws.append(list(row))
    wb.save(path)
    return path


def write_xls(path: Path, sheets: Sequence[Sequence[Sequence]]) -> Path:
    """同 write_xlsx, 写出旧版 .xls; None 和空字符串不写入"""
    wb = xlwt.Workbook(encoding="utf-8")
    for i, rows in enumerate(sheets):
        ws = wb.add_sheet(f"Sheet{i + 1}")
        for r, row in enumerate(rows):
            for c, v in enumerate(row):
                if v is None or v == "":
                    continue
                ws.write(r, c, v)
    wb.save(str(path))
    return path


def student_row(name, id_number, school="第一中学", grade="七年级", class_name="1班", student_no="G001"):
    return [name, id_number, "男", "汉族", school, "初中", "2024", "01", grade, class_name, student_no]


def difficulty_sheets(category: DifficultyType, rows: List[Dict[int, str]]) -> List[List[list]]:
    """
    按类型版式生成工作表, rows 中每项是 {列号: 值}.
    数据写入 layout.sheets 中的每张表, 其余表只有一行说明.
    """
    layout = category.layout
    width = max(layout.id_columns) + 2
    header = [[f"表头{r + 1}-{c + 1}" for c in range(width)] for r in range(layout.skip_rows)]
    body = []
    for cells in rows:
        row = [""] * width
        row[0] = "户主"
        for c, v in cells.items():
            row[c] = v
        body.append(row)

    sheets: List[List[list]] = []
    for i in range(max(layout.sheets) + 1):
        sheets.append(header + body if i in layout.sheets else [["说明"]])
    return sheets


@pytest.fixture
def student_file(tmp_path):
    rows = [
        STUDENT_HEADER,
        student_row("张三", "110101201001011234"),
        student_row("李四", "110101201002022345", class_name="2班"),
        student_row("王五", "11010120100303345x", grade="八年级"),
        student_row("", "110101201004044567"),
        student_row("赵六", ""),
    ]
    return write_xlsx(tmp_path / "students.xlsx", [rows])


@pytest.fixture
def rural_file(tmp_path):
    dt = DifficultyType.RURAL_MINIMUM_LIVING
    rows = [
        {6: "110101201001011234"},
        {6: "990000199001010000", 15: "11010120100303345X"},
        {6: "990000199101010000"},
    ]
    return write_xlsx(tmp_path / "rural.xlsx", difficulty_sheets(dt, rows))


@pytest.fixture
def students():
    return [
        Student(name="A", id_number="123456789012345678"),
        Student(name="B", id_number="223456789012345678", class_name="3班"),
        Student(name="C", id_number="323456789012345678"),
    ]


@pytest.fixture
def records():
    rural = DifficultyType.RURAL_MINIMUM_LIVING
    urban = DifficultyType.URBAN_MINIMUM_LIVING
    return [
        DifficultyRecord("323456789012345678", rural),
        DifficultyRecord("999999999999999999", rural),
        DifficultyRecord("123456789012345678", rural),
        DifficultyRecord("223456789012345678", urban),
    ]

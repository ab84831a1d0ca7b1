from __future__ import annotations
import logging
from io import BytesIO
from pathlib import Path
from typing import Iterable, List, Optional, Union

import pandas as pd
from xlsxwriter.exceptions import XlsxWriterException

from .errors import ExportError
from .matching import summarize_matches
from .models import MatchResult, MatchStatistics
from .utils import mask_id_number

logger = logging.getLogger(__name__)

ID_COL = "身份证号"
RESULT_COLUMNS = ["序号", "姓名", ID_COL, "学籍号", "学校", "年级", "班级", "困难类型"]
SHEET_MATCHES = "匹配结果"
SHEET_SUMMARY = "统计"


def matches_to_dataframe(matches: Iterable[MatchResult], mask: bool = False) -> pd.DataFrame:
    rows = []
    for i, m in enumerate(matches, start=1):
        s = m.student
        rows.append({
            "序号": i,
            "姓名": s.name,
            ID_COL: mask_id_number(s.id_number) if mask else s.id_number,
            "学籍号": s.student_id or "",
            "学校": s.school or "",
            "年级": s.grade or "",
            "班级": s.class_name or "",
            "困难类型": m.difficult_info.difficulty_type.value,
        })
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def _summary_dataframe(matches: List[MatchResult], statistics: Optional[MatchStatistics]) -> pd.DataFrame:
    if statistics is None:
        counts = summarize_matches(matches)
        rows = [("匹配人数", len(matches))]
    else:
        counts = statistics.difficulty_type_counts
        rows = [("学生总数", statistics.total_students), ("匹配人数", statistics.total_matches)]
    rows += [(k, v) for k, v in counts.items()]
    return pd.DataFrame(rows, columns=["项目", "数量"])


def export_to_excel_bytes(
    matches: Iterable[MatchResult],
    statistics: Optional[MatchStatistics] = None,
) -> bytes:
    matches = list(matches)
    result_df = matches_to_dataframe(matches)
    summary_df = _summary_dataframe(matches, statistics)

    bio = BytesIO()
    with pd.ExcelWriter(bio, engine="xlsxwriter") as writer:
        result_df.to_excel(writer, index=False, sheet_name=SHEET_MATCHES)
        summary_df.to_excel(writer, index=False, sheet_name=SHEET_SUMMARY)

        wb = writer.book
        fmt_header = wb.add_format({"bold": True, "bg_color": "#F2F2F2", "border": 1, "valign": "vcenter"})
        fmt_text = wb.add_format({"border": 1, "valign": "top", "num_format": "@"})

        def format_df_sheet(sheet_name: str, df: pd.DataFrame, default_width: int = 12, max_width: int = 40):
            ws = writer.sheets.get(sheet_name)
            if ws is None:
                return
            ws.freeze_panes(1, 0)
            ws.autofilter(0, 0, max(1, len(df)), max(0, len(df.columns) - 1))
            for col, name in enumerate(df.columns):
                ws.write(0, col, name, fmt_header)
                w = max(8, min(max_width, int(len(str(name)) * 2) + 6))
                ws.set_column(col, col, max(default_width, w))

        format_df_sheet(SHEET_MATCHES, result_df)
        format_df_sheet(SHEET_SUMMARY, summary_df, default_width=28)

        # 身份证号按文本写入, 否则 Excel 会把 18 位数字截成科学计数法
        ws = writer.sheets[SHEET_MATCHES]
        j = RESULT_COLUMNS.index(ID_COL)
        ws.set_column(j, j, 24)
        for r, value in enumerate(result_df[ID_COL].tolist(), start=1):
            ws.write_string(r, j, str(value), fmt_text)

    return bio.getvalue()


def export_matches(
    matches: Iterable[MatchResult],
    destination: Union[str, Path],
    statistics: Optional[MatchStatistics] = None,
) -> Path:
    """
    写出匹配结果; 返回实际写入的路径 (没有扩展名时补 .xlsx).
    目标目录不存在或不可写时抛出 ExportError.
    """
    if not str(destination).strip():
        raise ExportError("output path is empty")
    path = Path(destination)
    if path.suffix.lower() != ".xlsx":
        path = path.with_name(path.name + ".xlsx")
    if not path.parent.is_dir():
        raise ExportError(f"directory does not exist: {path.parent}")

    matches = list(matches)
    try:
        data = export_to_excel_bytes(matches, statistics)
        path.write_bytes(data)
    except (OSError, XlsxWriterException) as e:
        raise ExportError(str(e)) from e

    logger.info("exported %d matches to %s", len(matches), path)
    return path

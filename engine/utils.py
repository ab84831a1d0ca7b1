from __future__ import annotations
import json
import math
import re
from pathlib import Path
from typing import Any, List, Sequence, Tuple, TypeVar

T = TypeVar("T")

EXCEL_EXTENSIONS = ("xlsx", "xls")

_ID_WS_RE = re.compile(r"[ \t\r\n]")
_NBSP_RE = re.compile(r"[\u00A0\u2007\u202F\u3000]")  # 不间断空格和全角空格
# 18 位 (末位可为 X) 或旧版 15 位身份证号
_ID_NUMBER_RE = re.compile(r"\d{17}[\dX]|\d{15}")


def load_json(path: Path, default: Any):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return default


def save_json(path: Path, obj: Any):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)


def cell_text(v: Any) -> str:
    """
    单元格值 -> 去掉首尾空白的字符串:
    - None / NaN -> ""
    - 整数值的浮点数去掉小数部分 (1.0 -> "1"), 避免数字格式的证件号带上 ".0"
    """
    if v is None:
        return ""
    if isinstance(v, bool):
        return str(v)
    if isinstance(v, float):
        if math.isnan(v):
            return ""
        if v.is_integer():
            return str(int(v))
    s = str(v).replace("\ufeff", "")
    s = _NBSP_RE.sub(" ", s)
    return s.strip()


def normalize_id_number(v: Any) -> str:
    # 身份证号: 去掉空格/制表符/换行, 末位 x 统一为大写
    s = cell_text(v)
    s = _ID_WS_RE.sub("", s)
    return s.upper()


def looks_like_id_number(id_number: str) -> bool:
    return bool(_ID_NUMBER_RE.fullmatch(id_number or ""))


def mask_id_number(id_number: str) -> str:
    """保留前 3 位和后 3 位, 仅用于展示; 不足 6 位时返回固定占位符"""
    s = id_number or ""
    if len(s) >= 6:
        return f"{s[:3]}****{s[-3:]}"
    return "****"


def format_file_size(size: int) -> str:
    # 1536 -> "1.5 KB"; 最多两位小数, 去掉末尾的 0
    if size <= 0:
        return "0 Bytes"
    k = 1024
    units = ["Bytes", "KB", "MB", "GB"]
    i = 0
    while size >= k ** (i + 1) and i < len(units) - 1:
        i += 1
    txt = f"{size / (k ** i):.2f}".rstrip("0").rstrip(".")
    return f"{txt} {units[i]}"


def format_bytes(size: float) -> str:
    units = ["B", "KB", "MB", "GB"]
    i = 0
    while size >= 1024 and i < len(units) - 1:
        size /= 1024
        i += 1
    return f"{size:.2f} {units[i]}"


def file_extension(name: str) -> str:
    return Path(str(name)).suffix.lower().lstrip(".")


def is_excel_file(name: str) -> bool:
    return file_extension(name) in EXCEL_EXTENSIONS


def paginate(items: Sequence[T], page: int, page_size: int) -> Tuple[List[T], int]:
    """
    返回 (当前页数据, 总页数).
    页码从 1 开始, 越界的页码取最近的有效页.
    """
    page_size = max(1, int(page_size))
    total_pages = max(1, math.ceil(len(items) / page_size))
    page = min(max(1, int(page)), total_pages)
    start = (page - 1) * page_size
    return list(items[start:start + page_size]), total_pages

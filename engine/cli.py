from __future__ import annotations
import argparse
import sys
from typing import List, Optional

from . import commands
from .categories import all_categories
from .settings import LOG_LEVELS, configure_logging
from .utils import mask_id_number


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="difficulty-matcher",
        description="按困难类型比对学生信息表与困难人员备案表",
    )
    p.add_argument("student_file", nargs="?", help="学生信息表 (.xlsx / .xls)")
    p.add_argument("difficulty_file", nargs="?", help="困难类型备案表 (.xlsx / .xls)")
    p.add_argument("category", nargs="?", help="困难类型, 例如 农村低保")
    p.add_argument("-o", "--output", help="导出匹配结果到 Excel 文件")
    p.add_argument("--categories", action="store_true", help="列出所有困难类型")
    p.add_argument("--log-level", choices=LOG_LEVELS, default=None)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.categories:
        for c in all_categories():
            print(c.value)
        return 0

    outcome = commands.execute_student_search(
        args.student_file or "", args.difficulty_file or "", args.category or ""
    )
    if not outcome.success:
        print(outcome.error, file=sys.stderr)
        return 1

    stats = outcome.statistics
    print(f"学生总数: {stats.total_students}")
    print(f"匹配人数: {stats.total_matches}")
    for label, count in stats.difficulty_type_counts.items():
        print(f"  {label}: {count}")

    for m in outcome.matches:
        s = m.student
        print("\t".join([s.name, mask_id_number(s.id_number), s.school or "", s.grade or "", s.class_name or ""]))

    if args.output:
        res = commands.export(outcome.matches, args.output, stats)
        if not res.success:
            print(res.error, file=sys.stderr)
            return 1
        print(f"已导出: {res.data}")
    return 0

from __future__ import annotations
import logging
from collections import Counter
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from .categories import DifficultyType, parse_category
from .models import DifficultyRecord, MatchResult, MatchStatistics, Student

logger = logging.getLogger(__name__)

Category = Union[DifficultyType, str]


def build_student_index(students: Iterable[Student]) -> Dict[str, Student]:
    """
    身份证号 -> 学生.
    重复的身份证号以表中最后出现的学生为准, 并记录一条警告.
    """
    index: Dict[str, Student] = {}
    duplicates = 0
    for s in students:
        if s.id_number in index:
            duplicates += 1
        index[s.id_number] = s
    if duplicates:
        logger.warning("student table has %d duplicate id numbers; last row wins", duplicates)
    return index


def _records_of(records: Iterable[DifficultyRecord], category: DifficultyType) -> List[DifficultyRecord]:
    return [r for r in records if r.difficulty_type == category]


def find_matches(
    students: Sequence[Student],
    difficulty_records: Sequence[DifficultyRecord],
    category: Category,
) -> List[MatchResult]:
    """
    按身份证号精确匹配, 只考虑所选困难类型的记录.

    结果顺序与困难类型表中记录的出现顺序一致.
    找不到学生的记录直接丢弃; 未知类型返回空列表.
    """
    dt = parse_category(category)
    if dt is None:
        return []

    filtered = _records_of(difficulty_records, dt)
    if not filtered:
        return []

    index = build_student_index(students)
    results: List[MatchResult] = []
    for rec in filtered:
        student = index.get(rec.id_number)
        if student is not None:
            results.append(MatchResult(student=student, difficult_info=rec))
    return results


def summarize_matches(matches: Iterable[MatchResult]) -> Dict[str, int]:
    counts: Counter = Counter(m.difficult_info.difficulty_type.value for m in matches)
    return dict(counts)


def compute_statistics(
    students: Sequence[Student],
    difficulty_records: Sequence[DifficultyRecord],
    category: Category,
) -> MatchStatistics:
    return match_with_statistics(students, difficulty_records, category)[1]


def match_with_statistics(
    students: Sequence[Student],
    difficulty_records: Sequence[DifficultyRecord],
    category: Category,
) -> Tuple[List[MatchResult], MatchStatistics]:
    # 一次连接同时得到匹配列表和统计
    matches = find_matches(students, difficulty_records, category)
    stats = MatchStatistics(
        total_students=len(students),
        total_matches=len(matches),
        difficulty_type_counts=summarize_matches(matches),
    )
    return matches, stats

"""对外接口: 返回 CommandResult, 不抛出异常"""
from unittest import mock

import pytest

from engine import commands
from engine.models import MatchStatistics

from .conftest import write_xlsx


class TestValidateFile:

    def test_valid_xlsx(self, student_file):
        res = commands.validate_file(str(student_file))

        assert res.success
        assert res.data.name == "students.xlsx"
        assert res.data.extension == "xlsx"
        assert res.data.size == student_file.stat().st_size

    def test_missing(self, tmp_path):
        res = commands.validate_file(str(tmp_path / "nope.xlsx"))

        assert not res.success
        assert res.data is None
        assert res.error.startswith("File not found")

    def test_empty_path(self):
        res = commands.validate_file("")

        assert not res.success
        assert res.error == "请选择文件"

    def test_directory(self, tmp_path):
        assert not commands.validate_file(str(tmp_path)).success

    def test_wrong_extension(self, tmp_path):
        p = tmp_path / "a.csv"
        p.write_text("x", encoding="utf-8")

        res = commands.validate_file(str(p))
        assert not res.success
        assert ".csv" in res.error

    def test_fake_xls(self, tmp_path):
        p = tmp_path / "fake.xls"
        p.write_bytes(b"hello world")

        assert not commands.validate_file(str(p)).success

    def test_ole2_header_accepted(self, tmp_path):
        p = tmp_path / "old.XLS"
        p.write_bytes(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 64)

        res = commands.validate_file(str(p))
        assert res.success
        assert res.data.extension == "xls"


def test_list_categories():
    res = commands.list_categories()

    assert res.success
    assert len(res.data) == 10
    assert res.data[3] == {"label": "农村低保", "value": "农村低保"}


class TestSearchCommands:

    def test_find_matches(self, student_file, rural_file):
        res = commands.find_matches(str(student_file), str(rural_file), "农村低保")

        assert res.success
        assert [m.student.name for m in res.data] == ["张三", "王五"]

    def test_get_statistics(self, student_file, rural_file):
        res = commands.get_statistics(str(student_file), str(rural_file), "农村低保")

        assert res.success
        assert res.data == MatchStatistics(3, 2, {"农村低保": 2})

    def test_unknown_category_not_error(self, student_file, tmp_path):
        # 未知类型时不读取困难类型表, 即使文件不存在
        missing = str(tmp_path / "missing.xlsx")

        matches = commands.find_matches(str(student_file), missing, "未知类型")
        stats = commands.get_statistics(str(student_file), missing, "未知类型")

        assert matches.success and matches.data == []
        assert stats.success and stats.data == MatchStatistics(3, 0, {})

    def test_unreadable_student_file(self, tmp_path, rural_file):
        bad = tmp_path / "bad.xlsx"
        bad.write_bytes(b"garbage")

        res = commands.find_matches(str(bad), str(rural_file), "农村低保")

        assert not res.success
        assert res.error.startswith("Read error")

    def test_unexpected_exception_reported(self, student_file, rural_file):
        with mock.patch("engine.commands.read_student_table", side_effect=RuntimeError("boom")):
            res = commands.get_statistics(str(student_file), str(rural_file), "农村低保")

        assert not res.success
        assert res.error == "RuntimeError: boom"

    def test_result_to_dict(self, student_file, rural_file):
        d = commands.find_matches(str(student_file), str(rural_file), "农村低保").to_dict()

        assert d["success"] is True
        assert d["error"] is None
        assert d["data"][0]["student"]["class"] == "1班"
        assert d["data"][0]["difficult_info"]["difficulty_type"] == "农村低保"


class TestExportCommand:

    def test_export_objects(self, tmp_path, student_file, rural_file):
        matches = commands.find_matches(str(student_file), str(rural_file), "农村低保").data

        res = commands.export(matches, str(tmp_path / "out.xlsx"))

        assert res.success
        assert res.data == str(tmp_path / "out.xlsx")

    def test_export_dicts(self, tmp_path, student_file, rural_file):
        matches = commands.find_matches(str(student_file), str(rural_file), "农村低保").data
        payload = [m.to_dict() for m in matches]

        res = commands.export(payload, str(tmp_path / "out"))

        assert res.success
        assert res.data.endswith("out.xlsx")

    def test_export_unwritable(self, tmp_path):
        res = commands.export([], str(tmp_path / "missing" / "out.xlsx"))

        assert not res.success
        assert res.error.startswith("Export error")

    def test_export_bad_payload(self, tmp_path):
        res = commands.export([{"student": {}, "difficult_info": {"difficulty_type": "??"}}], str(tmp_path / "o.xlsx"))

        assert not res.success


class TestValidateSearchParameters:

    @pytest.mark.parametrize("args, message", [
        (("", "d.xlsx", "农村低保"), "请选择学生信息表文件"),
        (("s.xlsx", "  ", "农村低保"), "请选择困难类型数据表文件"),
        (("s.xlsx", "d.xlsx", ""), "请选择困难类型"),
        (("", "", ""), "请选择学生信息表文件"),
    ])
    def test_missing(self, args, message):
        assert commands.validate_search_parameters(*args) == (False, message)

    def test_ok(self):
        assert commands.validate_search_parameters("s.xlsx", "d.xlsx", "农村低保") == (True, None)


class TestExecuteStudentSearch:

    def test_success(self, student_file, rural_file):
        out = commands.execute_student_search(str(student_file), str(rural_file), "农村低保")

        assert out.success
        assert out.error is None
        assert len(out.matches) == 2
        assert out.statistics.total_matches == len(out.matches)
        assert out.statistics.total_students == 3

    def test_validation_failure(self, student_file):
        out = commands.execute_student_search(str(student_file), "", "农村低保")

        assert not out.success
        assert out.error == "请选择困难类型数据表文件"

    def test_match_failure(self, tmp_path, student_file):
        out = commands.execute_student_search(str(student_file), str(tmp_path / "none.xlsx"), "农村低保")

        assert not out.success
        assert out.matches == []
        assert out.statistics == MatchStatistics()
        assert out.error.startswith("File not found")

    def test_statistics_failure_keeps_matches(self, student_file, rural_file):
        from engine.models import CommandResult

        with mock.patch("engine.commands.get_statistics", return_value=CommandResult.fail("")):
            out = commands.execute_student_search(str(student_file), str(rural_file), "农村低保")

        assert not out.success
        assert len(out.matches) == 2
        assert out.statistics == MatchStatistics()
        assert out.error == "获取统计信息失败"

    def test_match_failure_default_message(self, student_file, rural_file):
        from engine.models import CommandResult

        with mock.patch("engine.commands.find_matches", return_value=CommandResult.fail(None)):
            out = commands.execute_student_search(str(student_file), str(rural_file), "农村低保")

        assert out.error == "查找学生失败"

    def test_wrong_layout_reported(self, tmp_path, student_file):
        narrow = write_xlsx(tmp_path / "narrow.xlsx", [[["姓名"], ["甲"], ["乙"]]])

        out = commands.execute_student_search(str(student_file), str(narrow), "低收入人口")

        assert not out.success
        assert out.error.startswith("Parse error")

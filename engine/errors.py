from __future__ import annotations


class MatcherError(Exception):
    """引擎向调用方报告的所有错误的基类"""

    prefix = "Error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{self.prefix}: {detail}")


class SpreadsheetNotFoundError(MatcherError):
    prefix = "File not found"


class SpreadsheetReadError(MatcherError):
    prefix = "Read error"


class SpreadsheetParseError(MatcherError):
    prefix = "Parse error"


class ExportError(MatcherError):
    prefix = "Export error"


class ValidationError(MatcherError):
    # 校验提示直接展示给用户, 不加前缀
    def __init__(self, detail: str):
        self.detail = detail
        Exception.__init__(self, detail)

from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .utils import load_json, save_json

APP_NAME = "DifficultyMatcher"

APPDATA = os.environ.get("APPDATA")
if APPDATA:
    USER_DATA_DIR = Path(APPDATA) / APP_NAME / "data"
else:
    USER_DATA_DIR = Path.home() / ".difficulty_matcher"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "page_size": 20,
    "export_file_name": "困难学生匹配结果.xlsx",
    "log_level": "INFO",
    "mask_ids": True,
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def settings_path() -> Path:
    USER_DATA_DIR.mkdir(parents=True, exist_ok=True)
    p = USER_DATA_DIR / "settings.json"
    if not p.exists():
        save_json(p, DEFAULT_SETTINGS)
    return p


def _validated(raw: Any) -> Dict[str, Any]:
    # 非法值回落到默认值
    out = dict(DEFAULT_SETTINGS)
    if not isinstance(raw, dict):
        return out

    try:
        page_size = int(raw.get("page_size", out["page_size"]))
        if page_size > 0:
            out["page_size"] = page_size
    except (TypeError, ValueError):
        pass

    name = str(raw.get("export_file_name", "") or "").strip()
    if name:
        out["export_file_name"] = name

    level = str(raw.get("log_level", "") or "").strip().upper()
    if level in LOG_LEVELS:
        out["log_level"] = level

    if isinstance(raw.get("mask_ids"), bool):
        out["mask_ids"] = raw["mask_ids"]
    return out


def load_settings() -> Dict[str, Any]:
    return _validated(load_json(settings_path(), {}))


def save_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    merged = _validated({**load_settings(), **(settings or {})})
    save_json(settings_path(), merged)
    return merged


def configure_logging(level: Optional[str] = None) -> None:
    if level is None:
        level = load_settings()["log_level"]
    level = str(level).upper()
    if level not in LOG_LEVELS:
        level = "INFO"
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)
    logging.getLogger("engine").setLevel(getattr(logging, level))

from __future__ import annotations
import hashlib
import tempfile
from pathlib import Path

import pandas as pd
import streamlit as st

from engine import commands
from engine.export import export_to_excel_bytes, matches_to_dataframe
from engine.settings import configure_logging, load_settings
from engine.utils import format_file_size, paginate

SETTINGS = load_settings()
configure_logging(SETTINGS["log_level"])

st.set_page_config(page_title="困难学生比对", layout="wide")
st.title("学生信息与困难类型比对")
# =========================

# Helpers
# =========================
UPLOAD_DIR = Path(tempfile.gettempdir()) / "difficulty_matcher_uploads"


def _store_upload(up) -> str:
    # 上传内容写入临时目录, 之后的接口统一按文件路径读取
    if up is None:
        return ""
    data = up.getvalue()
    digest = hashlib.md5(data).hexdigest()[:12]
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    path = UPLOAD_DIR / f"{digest}_{Path(up.name).name}"
    if not path.exists():
        path.write_bytes(data)
    return str(path)


def _file_caption(path: str) -> None:
    if not path:
        return
    res = commands.validate_file(path)
    if res.success:
        info = res.data
        st.caption(f"{info.name} · {format_file_size(info.size)} · .{info.extension}")
    else:
        st.error(res.error)
# =========================

# Uploads
# =========================
c1, c2 = st.columns(2)
with c1:
    student_up = st.file_uploader("学生信息表", type=["xlsx", "xls"], accept_multiple_files=False)
    student_path = _store_upload(student_up)
    _file_caption(student_path)
with c2:
    difficulty_up = st.file_uploader("困难类型数据表", type=["xlsx", "xls"], accept_multiple_files=False)
    difficulty_path = _store_upload(difficulty_up)
    _file_caption(difficulty_path)

options_res = commands.list_categories()
options = options_res.data if options_res.success else []
labels = [""] + [o["label"] for o in options]
category = st.selectbox(
    "困难类型",
    labels,
    index=0,
    format_func=lambda x: x or "请选择困难类型",
)

for k in ["result_ready", "matches", "statistics", "error"]:
    st.session_state.setdefault(k, None)

if st.button("开始比对", type="primary"):
    valid, message = commands.validate_search_parameters(student_path, difficulty_path, category)
    if not valid:
        st.warning(message)
    else:
        with st.spinner("正在比对..."):
            outcome = commands.execute_student_search(student_path, difficulty_path, category)
        st.session_state["result_ready"] = outcome.success
        st.session_state["matches"] = outcome.matches
        st.session_state["statistics"] = outcome.statistics
        st.session_state["error"] = outcome.error

if st.session_state.get("error"):
    st.error(st.session_state["error"])

if st.session_state.get("result_ready"):
    matches = st.session_state["matches"] or []
    stats = st.session_state["statistics"]

    m1, m2 = st.columns(2)
    with m1:
        st.metric("学生总数", stats.total_students)
    with m2:
        st.metric("匹配人数", stats.total_matches)
    if stats.difficulty_type_counts:
        st.dataframe(
            pd.DataFrame(list(stats.difficulty_type_counts.items()), columns=["困难类型", "人数"]),
            width="stretch",
        )

    if not matches:
        st.info("没有找到匹配的学生。")
    else:
        st.subheader("匹配结果")
        q = st.text_input("按姓名搜索", value="")
        view = matches
        if q.strip():
            view = [m for m in matches if q.strip() in m.student.name]

        page_size = int(SETTINGS["page_size"])
        total_pages = paginate(view, 1, page_size)[1]
        page = st.number_input("页码", min_value=1, max_value=total_pages, value=1, step=1)
        page_items, total_pages = paginate(view, int(page), page_size)
        st.caption(f"共 {len(view)} 条, 第 {int(page)}/{total_pages} 页")

        df = matches_to_dataframe(page_items, mask=bool(SETTINGS["mask_ids"]))
        df["序号"] = df["序号"] + (int(page) - 1) * page_size
        st.dataframe(df, width="stretch", hide_index=True)

        st.download_button(
            "导出 Excel",
            data=export_to_excel_bytes(matches, stats),
            file_name=SETTINGS["export_file_name"],
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

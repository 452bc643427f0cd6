from __future__ import annotations

from typing import Dict, Optional

from taskboard.app.config import get_settings

DEFAULT_LANG = "en"

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "group_pending": "Pending Tasks",
        "group_done": "Completed Tasks",
        "group_all": "All Tasks",
        "group_overdue": "Overdue Tasks",
        "group_today": "Today's Tasks",
        "group_future": "Future Tasks",
        "empty_no_tasks": "No tasks yet. Create one to get started!",
        "empty_no_matches": "No tasks match your filters. Try adjusting your search or filters.",
        "task_count": "{total} total · {pending} pending · {done} completed",
    },
    "zh": {
        "group_pending": "待办任务",
        "group_done": "已完成任务",
        "group_all": "全部任务",
        "group_overdue": "已逾期任务",
        "group_today": "今日任务",
        "group_future": "未来任务",
        "empty_no_tasks": "还没有任务，创建一个开始吧！",
        "empty_no_matches": "没有符合筛选条件的任务，请调整搜索或筛选。",
        "task_count": "共 {total} 个 · 待办 {pending} 个 · 已完成 {done} 个",
    },
}


def t(key: str, lang: Optional[str] = None, **kwargs) -> str:
    lang = lang or get_settings().ui_lang or DEFAULT_LANG
    s = TRANSLATIONS.get(lang, {}).get(key)
    if s is None and lang != DEFAULT_LANG:
        s = TRANSLATIONS[DEFAULT_LANG].get(key)
    if s is None:
        s = key
    try:
        return s.format(**kwargs)
    except (KeyError, IndexError, ValueError):
        return s

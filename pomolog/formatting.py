from __future__ import annotations


def format_countdown(seconds: int) -> str:
    total = max(0, seconds)
    minutes, sec = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{sec:02d}"
    return f"{minutes:02d}:{sec:02d}"


def format_focus_time(seconds: int) -> str:
    total = max(0, int(seconds))
    if total == 0:
        return "0m"
    hours, rest = divmod(total, 3600)
    minutes = rest // 60
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


def format_session_type(session_type: str, is_long_break: bool = False) -> str:
    if session_type == "break":
        return "Long Break" if is_long_break else "Short Break"
    if session_type == "work":
        return "Focus"
    return session_type

from __future__ import annotations

from contextvars import ContextVar

# Correlates every log line of one reminder batch, including worker threads.
_run_id_var: ContextVar[str] = ContextVar("run_id", default="")

def set_run_id(rid: str) -> None:
    _run_id_var.set(rid or "")

def get_run_id() -> str:
    return _run_id_var.get() or ""

def clear_run_id() -> None:
    _run_id_var.set("")

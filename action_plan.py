"""
Action plan tracker generated from an approved KPI review

Plans are plain dicts so they can be stored as JSON. Every operation returns
a new plan instead of editing the one it was given.
"""
import logging
import re
import uuid
from datetime import datetime

from config import THRESHOLDS
from data_cleaning import local_timestamp
from kpis import AVG_TICKET
from reports import format_money, format_pct

logger = logging.getLogger(__name__)

TASK_STATUSES = ("open", "done")


def cycle_id(approved):
    """Stable id for one approval cycle: reviewed_at, then created_at"""
    approved = approved or {}
    return str(approved.get("reviewed_at") or approved.get("created_at") or "unknown")


def new_plan(approved):
    approved = approved or {}
    return {
        "cycle_id": cycle_id(approved),
        "client_id": approved.get("client_id", ""),
        "client_name": approved.get("client_name", ""),
        "created_at": local_timestamp(),
        "tasks": [],
    }


def make_task(title, notes="", tag=""):
    return {
        "id": f"t_{uuid.uuid4().hex[:12]}",
        "title": str(title or "").strip(),
        "tag": tag or "",
        "owner": "",
        "due": "",
        "status": "open",
        "notes": str(notes or ""),
        "created_at": local_timestamp(),
    }


def short_title(text):
    """Compact task title: the text before the first ':' or '>', truncated"""
    collapsed = " ".join(str(text or "").split())
    first = re.split(r"[>:]", collapsed, maxsplit=1)[0].strip()
    limit = THRESHOLDS["task_title_max_length"]
    if len(first) > limit:
        return first[:limit] + "…"
    return first or "Recommendation Task"


def _title_key(title):
    return str(title or "").strip().lower()


def _format_kpi_value(kpi, value):
    return format_money(value) if kpi == AVG_TICKET else format_pct(value)


def build_tasks(evaluations, recommendations=(), client_name=""):
    """
    Tasks for every off-track KPI plus one per recommendation, de-duplicated by title

    Args:
        evaluations: list of KpiEvaluation
        recommendations: list of recommendation strings
        client_name: shown in task notes
    """
    client_name = client_name or "Client"
    tasks = []

    for evaluation in evaluations:
        if evaluation.on_track:
            continue
        notes = "\n".join([
            f"Client: {client_name}",
            f"KPI: {evaluation.kpi}",
            f"Actual: {_format_kpi_value(evaluation.kpi, evaluation.actual)}",
            f"Target: {_format_kpi_value(evaluation.kpi, evaluation.target)}",
            "Focus: close variance and return to target.",
        ])
        tasks.append(make_task(f"Improve {evaluation.kpi}", notes, evaluation.kpi))

    for recommendation in recommendations:
        text = str(recommendation or "").strip()
        if text:
            tasks.append(make_task(short_title(text), text, "Recommendation"))

    seen = set()
    unique = []
    for task in tasks:
        key = _title_key(task["title"])
        if key in seen:
            continue
        seen.add(key)
        unique.append(task)
    return unique


def merge_tasks(plan, new_tasks):
    """Prepend tasks whose titles are not already in the plan"""
    existing = {_title_key(task["title"]) for task in plan.get("tasks", [])}
    fresh = []
    for task in new_tasks:
        key = _title_key(task["title"])
        if key not in existing:
            existing.add(key)
            fresh.append(task)
    logger.info("Merged %d new task(s) into cycle %s", len(fresh), plan.get("cycle_id"))
    return dict(plan, tasks=fresh + list(plan.get("tasks", [])))


def _replace_task(plan, task_id, **changes):
    tasks = list(plan.get("tasks", []))
    for idx, task in enumerate(tasks):
        if task["id"] == task_id:
            tasks[idx] = dict(task, **changes)
            return dict(plan, tasks=tasks)
    raise KeyError(f"No task {task_id} in cycle {plan.get('cycle_id')}")


def set_task_status(plan, task_id, status):
    if status not in TASK_STATUSES:
        raise ValueError(f"Task status must be one of {TASK_STATUSES}, got {status!r}")
    return _replace_task(plan, task_id, status=status)


def update_task(plan, task_id, owner=None, due=None, notes=None):
    """Edit owner, due date (YYYY-MM-DD) and notes; None leaves a field unchanged"""
    changes = {}
    if owner is not None:
        changes["owner"] = str(owner).strip()
    if due is not None:
        due = str(due).strip()
        if due:
            datetime.strptime(due, "%Y-%m-%d")
        changes["due"] = due
    if notes is not None:
        changes["notes"] = str(notes)
    return _replace_task(plan, task_id, **changes)


def delete_task(plan, task_id):
    tasks = [task for task in plan.get("tasks", []) if task["id"] != task_id]
    if len(tasks) == len(plan.get("tasks", [])):
        raise KeyError(f"No task {task_id} in cycle {plan.get('cycle_id')}")
    return dict(plan, tasks=tasks)


def add_manual_task(plan, title):
    if not str(title or "").strip():
        raise ValueError("Task title is required")
    return dict(plan, tasks=[make_task(title, "", "Manual")] + list(plan.get("tasks", [])))


def clear_tasks(plan):
    return dict(plan, tasks=[])


def split_tasks(plan):
    """Return (open, done) task lists"""
    tasks = plan.get("tasks", [])
    return (
        [task for task in tasks if task["status"] != "done"],
        [task for task in tasks if task["status"] == "done"],
    )

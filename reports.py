"""
KPI report assembly, store status and district rollups
"""
import logging
import math
from dataclasses import dataclass, field

from config import MONTHS_REQUIRED, THRESHOLDS
from data_cleaning import Period, PeriodTotals, normalize_periods
from data_ingestion import client_targets
from kpis import TargetSet, compare_periods, evaluate_periods, is_number, labor_pct_change
from recommendations import build_daypart_summary, recommend

logger = logging.getLogger(__name__)

MISSING = "—"


def format_money(value, digits=2):
    if not is_number(value):
        return MISSING
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.{digits}f}"


def format_pct(value, digits=1):
    if not is_number(value):
        return MISSING
    return f"{value * 100:.{digits}f}%"


def format_number(value, digits=0):
    if not is_number(value):
        return MISSING
    return f"{value:,.{digits}f}"


@dataclass(frozen=True)
class KpiContext:
    """Who a report is for and which targets apply to it"""
    client_id: str = ""
    store_id: str = ""
    targets: TargetSet = field(default_factory=TargetSet)

    @classmethod
    def for_client(cls, client_id, store_id="", overrides=None):
        """Context with explicit target overrides; defaults where none are given"""
        return cls(client_id=client_id, store_id=store_id, targets=TargetSet.from_mapping(overrides))

    @classmethod
    def from_masterlist(cls, masterlist, client_id, store_id=""):
        """Context with the targets the masterlist lists for this client"""
        return cls(client_id=client_id, store_id=store_id, targets=client_targets(masterlist, client_id))


def _as_totals(period):
    return period.totals if isinstance(period, Period) else period


def build_kpi_report(context, periods, current_rows=None):
    """
    Run comparison, target evaluation and recommendations for one store

    Args:
        context: KpiContext
        periods: Period or PeriodTotals items, oldest first
        current_rows: rows of the current period, used for daypart analysis

    Returns:
        Plain dict, safe to serialize
    """
    periods = list(periods)
    totals = [_as_totals(p) for p in periods]

    evaluations = evaluate_periods(totals, context.targets)
    daypart = build_daypart_summary(current_rows) if current_rows is not None else None

    report = {
        "client_id": context.client_id,
        "store_id": context.store_id,
        "periods": [
            dict(label=p.label if isinstance(p, Period) else f"Period {idx + 1}", **t.to_dict())
            for idx, (p, t) in enumerate(zip(periods, totals))
        ],
        "complete": len(totals) >= MONTHS_REQUIRED,
        "comparison": compare_periods(totals),
        "targets": context.targets.to_dict(),
        "evaluations": [e.to_dict() for e in evaluations],
        "recommendations": recommend(evaluations, daypart),
        "daypart": daypart,
    }

    if not report["complete"]:
        logger.info("Report for %s/%s built from %d of %d periods",
                    context.client_id, context.store_id, len(totals), MONTHS_REQUIRED)
    return report


def build_report_from_snapshot(context, snapshot, current_rows=None):
    """Build a report straight from an approved snapshot in any supported shape"""
    return build_kpi_report(context, normalize_periods(snapshot, "monthly"), current_rows)


def combine_totals(periods):
    """Sum several periods into one set of totals, None when there is nothing to sum"""
    totals = [_as_totals(p) for p in periods or []]
    if not totals:
        return None
    return sum(totals, PeriodTotals())


def store_status(baseline, latest):
    """
    Classify a store by comparing its latest approved totals with its baseline

    Improving: sales up and either Labor% down or avg ticket up
    At risk: sales not up and Labor% up
    Watch: anything else
    """
    if latest is None:
        return {"cls": "warn", "label": "Needs data", "deltas": None}
    if baseline is None:
        return {"cls": "warn", "label": "Needs baseline", "deltas": None}

    delta_ticket = None
    if latest.avg_ticket is not None and baseline.avg_ticket is not None:
        delta_ticket = latest.avg_ticket - baseline.avg_ticket

    deltas = {
        "sales": latest.sales - baseline.sales,
        "labor_pct": labor_pct_change(latest.labor_pct, baseline.labor_pct),
        "avg_ticket": delta_ticket,
    }
    if deltas["labor_pct"] is None or deltas["avg_ticket"] is None:
        return {"cls": "warn", "label": "Needs baseline", "deltas": deltas}

    sales_up = deltas["sales"] > 0
    if sales_up and (deltas["labor_pct"] < 0 or deltas["avg_ticket"] > 0):
        return {"cls": "ok", "label": "Improving", "deltas": deltas}
    if not sales_up and deltas["labor_pct"] > 0:
        return {"cls": "bad", "label": "At risk", "deltas": deltas}
    return {"cls": "warn", "label": "Watch", "deltas": deltas}


def store_summary(store, baseline_periods=None, approved_periods=None, weekly_count=0):
    """One store-table row: latest approved KPIs plus status against baseline"""
    baseline = combine_totals(baseline_periods)
    latest = combine_totals(approved_periods)
    status = store_status(baseline, latest)

    return {
        "store_id": store.get("store_id", ""),
        "store_name": store.get("store_name", ""),
        "district": store.get("district") or MISSING,
        "has_baseline": baseline is not None,
        "has_approved": latest is not None,
        "totals": latest,
        "sales": latest.sales if latest else None,
        "labor_pct": latest.labor_pct if latest else None,
        "avg_ticket": latest.avg_ticket if latest else None,
        "weekly_count": weekly_count,
        "status": status,
    }


def district_rollup(store_rows):
    """Group store rows by district, summing latest totals and counting statuses"""
    districts = {}
    for row in store_rows:
        name = row.get("district") or MISSING
        entry = districts.setdefault(name, {
            "district": name, "stores": 0, "totals": PeriodTotals(),
            "weekly": 0, "improving": 0, "at_risk": 0,
        })
        entry["stores"] += 1
        entry["weekly"] += row.get("weekly_count", 0)
        if row.get("totals") is not None:
            entry["totals"] = entry["totals"] + row["totals"]
        label = row["status"]["label"]
        if label == "Improving":
            entry["improving"] += 1
        elif label == "At risk":
            entry["at_risk"] += 1

    rollup = []
    for name in sorted(districts):
        entry = districts[name]
        needed = math.ceil(entry["stores"] * THRESHOLDS["district_improving_share"])
        if entry["at_risk"] > 0:
            status = {"cls": "bad", "label": "At risk"}
        elif entry["improving"] > 0 and entry["improving"] >= needed:
            status = {"cls": "ok", "label": "Improving"}
        else:
            status = {"cls": "warn", "label": "Watch"}

        totals = entry["totals"]
        rollup.append(dict(
            entry,
            sales=totals.sales,
            labor_pct=totals.labor_pct,
            avg_ticket=totals.avg_ticket,
            status=status,
        ))
    return rollup


def overall_totals(store_rows):
    """Totals across every store row that has approved data"""
    return combine_totals([row["totals"] for row in store_rows if row.get("totals") is not None]) or PeriodTotals()

"""
Recommendations for KPI evaluations and daypart labor efficiency
"""
import logging

import pandas as pd

from config import DAYPART_ORDER, DAYPART_WEIGHTS
from data_cleaning import assign_daypart, rows_to_frame
from kpis import AVG_TICKET, LABOR_PCT, SALES_MOM, TX_MOM

logger = logging.getLogger(__name__)

RECOMMENDATIONS = {
    SALES_MOM: {
        True: "Sales growth on track: document what is working (daypart, channel, item mix).",
        False: "Sales growth below target: tighten promo execution and upsell routines.",
    },
    TX_MOM: {
        True: "Transactions on track: keep throughput consistent and protect peak times.",
        False: "Transactions below target: focus on speed of service and guest count drivers.",
    },
    LABOR_PCT: {
        True: "Labor on track: maintain the staffing plan while controlling slow periods.",
        False: "Labor above target: audit schedules by daypart and reduce overtime.",
    },
    AVG_TICKET: {
        True: "Avg ticket on track: keep upsell coaching and tracking.",
        False: "Avg ticket below target: coach add-ons and keep suggestive selling consistent.",
    },
}

DAYPART_UNAVAILABLE_NOTE = "Daypart analysis unavailable: add Shift, Hour, or Date with time."

METRIC_COLUMNS = ["sales", "labor", "transactions", "rows"]


def recommend(evaluations, daypart_summary=None):
    """
    One fixed message per evaluation, in order, plus an optional daypart line

    Args:
        evaluations: list of KpiEvaluation
        daypart_summary: result of build_daypart_summary, if available
    """
    messages = [RECOMMENDATIONS[e.kpi][bool(e.on_track)] for e in evaluations]
    if daypart_summary is not None:
        messages.append(daypart_recommendation(daypart_summary))
    return messages


def daypart_recommendation(summary):
    """Guidance line for the worst daypart, or the unavailability note"""
    if not summary.get("available") or not summary.get("worst"):
        return summary.get("note") or DAYPART_UNAVAILABLE_NOTE

    worst = summary["worst"]
    return (
        f"{worst['name']} is the weakest daypart ({'; '.join(worst['reasons'])}): "
        f"rebalance the {worst['name']} staffing curve first."
    )


def _empty_totals():
    return {name: {"sales": 0.0, "labor": 0.0, "transactions": 0.0, "rows": 0} for name in DAYPART_ORDER}


def score_dayparts(totals):
    """
    Score each daypart with data; a higher score means worse labor efficiency

    Labor% is scored against the highest Labor% seen, Sales and Transactions
    per labor dollar are scored as the shortfall from the best daypart.
    """
    usable = [name for name in DAYPART_ORDER if totals[name]["rows"] > 0]
    if not usable:
        return pd.DataFrame()

    frame = pd.DataFrame.from_dict({name: totals[name] for name in usable}, orient="index")
    frame["labor_pct"] = (frame["labor"] / frame["sales"]).where(frame["sales"] > 0, 0.0)
    frame["sales_per_labor"] = (frame["sales"] / frame["labor"]).where(frame["labor"] > 0, 0.0)
    frame["tx_per_labor"] = (frame["transactions"] / frame["labor"]).where(frame["labor"] > 0, 0.0)

    def share_of_best(column):
        best = frame[column].max()
        if best > 0:
            return frame[column] / best
        return pd.Series(0.0, index=frame.index)

    def shortfall_from_best(column):
        best = frame[column].max()
        if best > 0:
            return 1 - frame[column] / best
        return pd.Series(0.0, index=frame.index)

    labor_score = share_of_best("labor_pct")
    spl_score = shortfall_from_best("sales_per_labor")
    tpl_score = shortfall_from_best("tx_per_labor")

    frame["score"] = (
        labor_score * DAYPART_WEIGHTS["labor_pct"]
        + spl_score * DAYPART_WEIGHTS["sales_per_labor"]
        + tpl_score * DAYPART_WEIGHTS["tx_per_labor"]
    )
    return frame


def build_daypart_summary(rows):
    """
    Partition rows into Breakfast / Lunch / Dinner / Late Night and find the worst daypart

    Returns:
        dict with keys: available, note, totals, worst
    """
    records = rows.to_dict("records") if isinstance(rows, pd.DataFrame) else list(rows)
    totals = _empty_totals()

    metrics = rows_to_frame(records)
    metrics["daypart"] = [assign_daypart(row) for row in records]
    metrics["rows"] = 1
    tagged = metrics[metrics["daypart"] != ""]

    if tagged.empty:
        logger.warning("No Shift, Hour or time-bearing Date in %d rows", len(records))
        return {"available": False, "note": DAYPART_UNAVAILABLE_NOTE, "totals": totals, "worst": None}

    grouped = tagged.groupby("daypart")[METRIC_COLUMNS].sum()
    for name, values in grouped.iterrows():
        totals[name] = {
            "sales": float(values["sales"]),
            "labor": float(values["labor"]),
            "transactions": float(values["transactions"]),
            "rows": int(values["rows"]),
        }

    scored = score_dayparts(totals)
    name = scored["score"].idxmax()
    worst = scored.loc[name]

    return {
        "available": True,
        "note": "",
        "totals": totals,
        "worst": {
            "name": name,
            "labor_pct": float(worst["labor_pct"]),
            "sales_per_labor": float(worst["sales_per_labor"]),
            "tx_per_labor": float(worst["tx_per_labor"]),
            "score": float(worst["score"]),
            "reasons": [
                f"Labor%: {worst['labor_pct'] * 100:.1f}%",
                f"Sales/Labor: {worst['sales_per_labor']:.2f}",
                f"Tx/Labor: {worst['tx_per_labor']:.2f}",
            ],
        },
    }

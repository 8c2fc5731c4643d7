"""
Data cleaning and aggregation module
"""
import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

import pandas as pd
import pytz

from config import COLUMN_ALIASES, DAYPARTS, DEFAULT_TIMEZONE, LATE_NIGHT, SHIFT_KEYWORDS
from file_upload import find_column, parse_csv_text

logger = logging.getLogger(__name__)

NUMERIC_NOISE = re.compile(r"[$,%\s]")
TIME_OF_DAY = re.compile(r"(?<!\d)(\d{1,2}):(\d{2})")

METRIC_FIELDS = ("sales", "labor", "transactions")


@dataclass(frozen=True)
class PeriodTotals:
    """Summed Sales, Labor and Transactions for one month or week"""
    sales: float = 0.0
    labor: float = 0.0
    transactions: float = 0.0

    @property
    def labor_pct(self):
        """Labor as a share of sales, None when there are no sales"""
        if not self.sales:
            return None
        return self.labor / self.sales

    @property
    def avg_ticket(self):
        """Sales per transaction, None when there are no transactions"""
        if not self.transactions:
            return None
        return self.sales / self.transactions

    def __add__(self, other):
        if not isinstance(other, PeriodTotals):
            return NotImplemented
        return PeriodTotals(
            sales=self.sales + other.sales,
            labor=self.labor + other.labor,
            transactions=self.transactions + other.transactions,
        )

    def to_dict(self):
        return {
            "sales": self.sales,
            "labor": self.labor,
            "transactions": self.transactions,
            "labor_pct": self.labor_pct,
            "avg_ticket": self.avg_ticket,
        }

    @classmethod
    def from_mapping(cls, data):
        """Build totals from an already-summed mapping (accepts tx for transactions)"""
        data = data or {}
        return cls(
            sales=to_number(data.get("sales")),
            labor=to_number(data.get("labor")),
            transactions=to_number(data.get("transactions", data.get("tx"))),
        )


@dataclass(frozen=True)
class Period:
    label: str
    totals: PeriodTotals


def to_number(value):
    """Coerce a cell to float; currency, separators and junk become 0 instead of failing"""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    else:
        cleaned = NUMERIC_NOISE.sub("", str(value if value is not None else ""))
        try:
            number = float(cleaned)
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0


def rows_to_frame(rows):
    """
    Turn parsed rows into a numeric frame with sales, labor and transactions

    Args:
        rows: list/tuple of row mappings, or a DataFrame

    Returns:
        DataFrame with one float column per metric; absent columns are 0
    """
    if isinstance(rows, pd.DataFrame):
        df = rows
    elif isinstance(rows, (list, tuple)):
        if not all(isinstance(row, Mapping) for row in rows):
            raise TypeError("rows must be mappings of column name to cell value")
        df = pd.DataFrame(list(rows))
    else:
        raise TypeError(f"Expected a list of rows or a DataFrame, got {type(rows).__name__}")

    header = list(df.columns)
    metrics = pd.DataFrame(index=df.index)
    for field in METRIC_FIELDS:
        column = find_column(header, COLUMN_ALIASES[field])
        if column is None:
            metrics[field] = 0.0
        else:
            metrics[field] = df[column].apply(to_number).astype(float)
    return metrics


def aggregate(rows):
    """Sum Sales, Labor and Transactions across all rows of one period"""
    metrics = rows_to_frame(rows)
    totals = PeriodTotals(
        sales=float(metrics["sales"].sum()),
        labor=float(metrics["labor"].sum()),
        transactions=float(metrics["transactions"].sum()),
    )
    logger.debug("Aggregated %d rows: %s", len(metrics), totals)
    return totals


def _period_from_entry(entry, singular, idx):
    default_label = f"{singular.title()} {idx + 1}"

    if isinstance(entry, (list, tuple)):
        return Period(default_label, aggregate(list(entry)))

    if not isinstance(entry, Mapping):
        return None

    label = (
        entry.get(singular)
        or entry.get("label")
        or entry.get(f"{singular}Start")
        or entry.get("start")
        or entry.get("fileName")
        or entry.get("file_name")
        or default_label
    )

    if isinstance(entry.get("rows"), (list, tuple)):
        return Period(str(label), aggregate(list(entry["rows"])))
    if isinstance(entry.get("text"), str):
        return Period(str(label), aggregate(parse_csv_text(entry["text"])["rows"]))
    return None


def _periods_from_list(entries, singular):
    periods = [_period_from_entry(entry, singular, idx) for idx, entry in enumerate(entries)]
    return [p for p in periods if p is not None]


def normalize_periods(snapshot, kind="monthly"):
    """
    Normalize a submitted or approved snapshot into periods, oldest first

    Accepted shapes, checked in order:
    - months / weeks: [{month|weekStart|label, rows}]
    - monthly / weekly: [rows, ...] or [{month|start, fileName, text}]
    - month1Rows..month3Rows, or month1..month3 holding rows or {rows}
    - monthlyTotals / weeklyTotals: {m0, m1, m2} with m0 the NEWEST period

    Returns:
        list of Period
    """
    if not isinstance(snapshot, Mapping):
        return []

    singular = "month" if kind == "monthly" else "week"

    for key in (f"{singular}s", kind):
        entries = snapshot.get(key)
        if isinstance(entries, list):
            periods = _periods_from_list(entries, singular)
            if periods:
                return periods

    numbered = []
    for idx in range(1, 4):
        entry = snapshot.get(f"{singular}{idx}Rows")
        if entry is None:
            entry = snapshot.get(f"{singular}{idx}")
        period = _period_from_entry(entry, singular, idx - 1) if entry is not None else None
        if period is not None:
            numbered.append(period)
    if numbered:
        return numbered

    totals = snapshot.get(f"{kind}Totals")
    if isinstance(totals, Mapping):
        prefix = singular[0]
        offsets = sorted(
            int(key[1:]) for key in totals
            if key.startswith(prefix) and key[1:].isdigit() and isinstance(totals[key], Mapping)
        )
        return [
            Period(f"{prefix}{offset}", PeriodTotals.from_mapping(totals[f"{prefix}{offset}"]))
            for offset in reversed(offsets)
        ]

    logger.warning("No %s periods found in snapshot with keys %s", kind, sorted(snapshot))
    return []


def normalize_shift(value):
    """Map a free-text shift label to a daypart name, or '' when unrecognized"""
    label = str(value or "").strip().lower()
    if not label:
        return ""
    for daypart, keywords in SHIFT_KEYWORDS:
        if any(keyword in label for keyword in keywords):
            return daypart
    return ""


def hour_to_daypart(hour):
    """Determine daypart from hour"""
    for daypart_name, (start, end) in DAYPARTS.items():
        if start <= hour <= end:
            return daypart_name
    return LATE_NIGHT


def _hour_from_text(value):
    match = TIME_OF_DAY.search(str(value or ""))
    if match:
        hour = int(match.group(1))
        if 0 <= hour <= 23:
            return hour
    return None


def _cell(row, field):
    column = find_column(list(row.keys()), COLUMN_ALIASES[field])
    return row.get(column) if column is not None else None


def extract_hour(row):
    """Hour of day from an explicit Hour cell, else an HH:MM time in Date or DateTime"""
    raw_hour = _cell(row, "hour")
    if raw_hour is not None and str(raw_hour).strip() != "":
        try:
            hour = float(str(raw_hour).strip())
        except ValueError:
            hour = None
        if hour is not None and math.isfinite(hour) and 0 <= hour <= 23:
            return int(hour)

    for field in ("date", "datetime"):
        hour = _hour_from_text(_cell(row, field))
        if hour is not None:
            return hour

    return None


def assign_daypart(row):
    """Daypart for a row: shift label first, then explicit hour, then parsed time"""
    daypart = normalize_shift(_cell(row, "shift"))
    if daypart:
        return daypart

    hour = extract_hour(row)
    if hour is not None:
        return hour_to_daypart(hour)

    return ""


def local_timestamp(timestamp=None, timezone=None):
    """
    ISO timestamp in the store timezone

    Naive timestamps are assumed to already be store-local; aware timestamps
    are converted. With no timestamp, the current time is used.
    """
    location_tz = pytz.timezone(timezone or DEFAULT_TIMEZONE)

    if timestamp is None:
        return datetime.now(location_tz).isoformat(timespec="seconds")

    if timestamp.tzinfo is None:
        timestamp = location_tz.localize(timestamp)
    else:
        timestamp = timestamp.astimezone(location_tz)

    return timestamp.isoformat(timespec="seconds")

"""
KPI comparison and target evaluation

Periods are always ordered oldest first. With three periods P0 < P1 < P2,
MoM compares P2 against P1 and Prev compares P2 against P0.
"""
import json
import logging
import math
from dataclasses import asdict, dataclass
from typing import Optional

from config import DEFAULT_TARGETS

logger = logging.getLogger(__name__)

SALES_MOM = "Sales MoM"
TX_MOM = "Transactions MoM"
LABOR_PCT = "Labor %"
AVG_TICKET = "Avg Ticket"

KPI_ORDER = [SALES_MOM, LABOR_PCT, TX_MOM, AVG_TICKET]

HIGHER_IS_BETTER = "higher"
LOWER_IS_BETTER = "lower"

KPI_DIRECTIONS = {
    SALES_MOM: HIGHER_IS_BETTER,
    TX_MOM: HIGHER_IS_BETTER,
    AVG_TICKET: HIGHER_IS_BETTER,
    LABOR_PCT: LOWER_IS_BETTER,
}


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def pct_change(current, previous):
    """Relative change (current - previous) / previous, None when it cannot be computed"""
    if not is_number(current) or not is_number(previous) or previous == 0:
        return None
    return (current - previous) / previous


def labor_pct_change(current, previous):
    """Absolute change between two Labor% ratios (points, not a ratio of ratios)"""
    if not is_number(current) or not is_number(previous):
        return None
    return current - previous


def compare_periods(periods):
    """
    Compute current values and MoM / Prev deltas for every KPI

    Args:
        periods: PeriodTotals ordered oldest first; only the last three are used

    Returns:
        dict keyed by sales, transactions, avg_ticket, labor_pct, each holding
        current, mom and prev (None where a period is missing)
    """
    recent = list(periods)[-3:]
    current = recent[-1] if recent else None
    last = recent[-2] if len(recent) >= 2 else None
    oldest = recent[-3] if len(recent) >= 3 else None

    if len(recent) < 3:
        logger.info("Only %d period(s) available, some deltas will be undefined", len(recent))

    comparison = {}
    for field in ("sales", "transactions", "avg_ticket", "labor_pct"):
        change = labor_pct_change if field == "labor_pct" else pct_change
        value = getattr(current, field) if current is not None else None
        comparison[field] = {
            "current": value,
            "mom": change(value, getattr(last, field)) if last is not None else None,
            "prev": change(value, getattr(oldest, field)) if oldest is not None else None,
        }
    return comparison


@dataclass(frozen=True)
class TargetSet:
    sales_mom: float = DEFAULT_TARGETS["salesMoM"]
    tx_mom: float = DEFAULT_TARGETS["txMoM"]
    labor_pct_max: float = DEFAULT_TARGETS["laborPctMax"]
    avg_ticket_min: float = DEFAULT_TARGETS["avgTicketMin"]

    FIELD_KEYS = {
        "sales_mom": "salesMoM",
        "tx_mom": "txMoM",
        "labor_pct_max": "laborPctMax",
        "avg_ticket_min": "avgTicketMin",
    }

    @classmethod
    def from_mapping(cls, override=None):
        """
        Build targets from a per-client override

        Args:
            override: dict or JSON text shaped like
                {salesMoM, txMoM, laborPctMax, avgTicketMin}; missing or
                non-numeric keys keep their defaults
        """
        if isinstance(override, (str, bytes)):
            try:
                override = json.loads(override)
            except ValueError:
                logger.warning("Ignoring unparseable target override")
                override = None
        if not isinstance(override, dict):
            return cls()

        values = {}
        for field, key in cls.FIELD_KEYS.items():
            raw = override.get(key)
            if raw is None or str(raw).strip() == "":
                continue
            number = _parse_target(raw)
            if number is None:
                logger.warning("Ignoring non-numeric target %s=%r", key, raw)
                continue
            values[field] = number
        return cls(**values)

    def threshold(self, kpi_name):
        return {
            SALES_MOM: self.sales_mom,
            TX_MOM: self.tx_mom,
            LABOR_PCT: self.labor_pct_max,
            AVG_TICKET: self.avg_ticket_min,
        }[kpi_name]

    def to_dict(self):
        return {self.FIELD_KEYS[field]: value for field, value in asdict(self).items()}


def _parse_target(raw):
    if isinstance(raw, bool):
        return None
    try:
        number = float(str(raw).strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class KpiEvaluation:
    kpi: str
    actual: Optional[float]
    target: float
    variance: Optional[float]
    on_track: bool
    direction: str

    def to_dict(self):
        return asdict(self)


def evaluate(kpi_name, actual, targets=None):
    """
    Compare one KPI's actual value against its target

    Variance is always actual - target; use on_track, not the sign of the
    variance, to decide whether the value is good. An undefined actual is
    reported as off track with no variance.
    """
    if kpi_name not in KPI_DIRECTIONS:
        raise KeyError(f"Unknown KPI: {kpi_name}")

    targets = targets or TargetSet()
    target = targets.threshold(kpi_name)
    direction = KPI_DIRECTIONS[kpi_name]

    if not is_number(actual):
        return KpiEvaluation(kpi_name, None, target, None, False, direction)

    if direction == LOWER_IS_BETTER:
        on_track = actual <= target
    else:
        on_track = actual >= target

    return KpiEvaluation(kpi_name, actual, target, actual - target, on_track, direction)


def evaluate_periods(periods, targets=None):
    """Evaluate the four KPIs for the current (last) period"""
    comparison = compare_periods(periods)
    actuals = {
        SALES_MOM: comparison["sales"]["mom"],
        LABOR_PCT: comparison["labor_pct"]["current"],
        TX_MOM: comparison["transactions"]["mom"],
        AVG_TICKET: comparison["avg_ticket"]["current"],
    }
    return [evaluate(name, actuals[name], targets) for name in KPI_ORDER]

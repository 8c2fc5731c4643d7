"""
Configuration file for the store KPI review pipeline
"""
import os

DEFAULT_TIMEZONE = os.environ.get("KPI_TIMEZONE", "America/New_York")

DB_PATH = os.environ.get("KPI_DB_PATH", "kpi_review.db")

MASTERLIST_PATH = os.environ.get("KPI_MASTERLIST", "masterlist.csv")

REQUIRED_MONTHLY_COLUMNS = ["Date", "Location", "Sales", "Labor", "Transactions"]

MASTERLIST_REQUIRED_COLUMNS = ["client_id", "client_name", "store_id", "store_name"]
MASTERLIST_OPTIONAL_COLUMNS = ["district", "region", "city", "state"]

# Export spellings seen in the wild, checked in order
COLUMN_ALIASES = {
    "sales": ["Sales", "revenue", "net_sales"],
    "labor": ["Labor", "labor_cost", "LaborCost"],
    "transactions": ["Transactions", "tx", "guest_count"],
    "shift": ["Shift", "daypart"],
    "hour": ["Hour"],
    "date": ["Date"],
    "datetime": ["DateTime", "timestamp"],
}

MONTHS_REQUIRED = 3
MAX_WEEKLY_FILES = 3

DEFAULT_TARGETS = {
    "salesMoM": 0.05,
    "txMoM": 0.04,
    "laborPctMax": 0.27,
    "avgTicketMin": 14.00,
}

# Inclusive hour ranges; anything else is Late Night
DAYPARTS = {
    "Breakfast": (5, 10),
    "Lunch": (11, 15),
    "Dinner": (16, 21),
}
LATE_NIGHT = "Late Night"
DAYPART_ORDER = ["Breakfast", "Lunch", "Dinner", LATE_NIGHT]

SHIFT_KEYWORDS = [
    ("Breakfast", ("break",)),
    ("Lunch", ("lunch", "mid")),
    ("Dinner", ("dinner", "eve")),
    (LATE_NIGHT, ("late", "night", "overnight")),
]

DAYPART_WEIGHTS = {
    "labor_pct": 0.45,
    "sales_per_labor": 0.35,
    "tx_per_labor": 0.20,
}

THRESHOLDS = {
    "district_improving_share": 0.5,
    "task_title_max_length": 48,
}

MOCK_DATA_CONFIG = {
    "days_per_month": 28,
    "daily_sales": (900, 1600),
    "labor_pct": (0.22, 0.32),
    "avg_ticket": (11.0, 17.0),
}

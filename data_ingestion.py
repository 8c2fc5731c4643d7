"""
Data ingestion module - client masterlist, period exports and mock data
"""
import logging
import os
import random
import uuid
from datetime import date, timedelta
from pathlib import Path

import pandas as pd
import requests

from config import (
    DEFAULT_TARGETS,
    MASTERLIST_OPTIONAL_COLUMNS,
    MASTERLIST_PATH,
    MASTERLIST_REQUIRED_COLUMNS,
    MAX_WEEKLY_FILES,
    MOCK_DATA_CONFIG,
    MONTHS_REQUIRED,
)
from data_cleaning import Period, aggregate, local_timestamp
from file_upload import (
    find_missing_columns,
    parse_csv_text,
    parse_uploaded_file,
    read_uploaded_file,
    uploaded_file_name,
    validate_monthly_csv,
)
from kpis import TargetSet

logger = logging.getLogger(__name__)

MOCK_DATA_DIR = "mock_data"


def fetch_masterlist_text(source=MASTERLIST_PATH, timeout=10):
    """Read the masterlist CSV from a local path or an http(s) URL"""
    if str(source).lower().startswith(("http://", "https://")):
        response = requests.get(source, timeout=timeout, headers={"Cache-Control": "no-store"})
        if response.status_code != 200:
            raise ValueError(f"Masterlist not found ({response.status_code}). Check file path: {source}")
        return response.text
    return read_uploaded_file(source)


def parse_masterlist(text):
    """
    Build the client registry from masterlist CSV text

    Returns:
        dict with keys: clients, stores_by_client, targets_by_client
    """
    parsed = parse_csv_text(text)
    if not parsed["rows"]:
        raise ValueError("Masterlist CSV is empty.")

    missing = find_missing_columns(parsed["header"], MASTERLIST_REQUIRED_COLUMNS)
    if missing:
        raise ValueError(f"Masterlist missing column: {', '.join(missing)}")

    clients = {}
    stores_by_client = {}
    targets_by_client = {}
    skipped = 0

    for row in parsed["rows"]:
        client_id = row.get("client_id", "").strip()
        client_name = row.get("client_name", "").strip()
        store_id = row.get("store_id", "").strip()
        store_name = row.get("store_name", "").strip()

        if not (client_id and client_name and store_id and store_name):
            skipped += 1
            continue

        clients[client_id] = {"id": client_id, "name": client_name}
        store = {"store_id": store_id, "store_name": store_name}
        for column in MASTERLIST_OPTIONAL_COLUMNS:
            store[column] = row.get(column, "").strip()
        stores_by_client.setdefault(client_id, []).append(store)

        overrides = {key: row[key] for key in DEFAULT_TARGETS if row.get(key, "").strip()}
        if overrides:
            targets_by_client.setdefault(client_id, {}).update(overrides)

    if skipped:
        logger.warning("Skipped %d incomplete masterlist row(s)", skipped)
    logger.info("Loaded %d client(s) from masterlist", len(clients))

    return {
        "clients": clients,
        "stores_by_client": stores_by_client,
        "targets_by_client": targets_by_client,
    }


def load_masterlist(source=MASTERLIST_PATH):
    """Fetch and parse the masterlist"""
    return parse_masterlist(fetch_masterlist_text(source))


def client_targets(masterlist, client_id):
    """Target set for a client from the masterlist, defaults when none are listed"""
    return TargetSet.from_mapping(masterlist.get("targets_by_client", {}).get(client_id))


def load_period_files(files, labels=None):
    """
    Aggregate one export per period

    Args:
        files: paths or file-like uploads, ordered oldest first
        labels: optional period labels; file names are used otherwise

    Returns:
        list of Period, oldest first
    """
    periods = []
    for idx, uploaded_file in enumerate(files):
        parsed = parse_uploaded_file(uploaded_file)
        if parsed["missing_columns"]:
            logger.warning("%s is missing columns: %s", parsed["name"], parsed["missing_columns"])
        label = labels[idx] if labels and idx < len(labels) else parsed["name"]
        periods.append(Period(label, aggregate(parsed["rows"])))
    return periods


def build_submission(client_id, store_id, monthly_files, weekly_files=(), client_name=None, role="client"):
    """
    Validate uploads and build a submission for the review queue

    Args:
        monthly_files: (month_label, file) pairs ordered oldest first
        weekly_files: optional weekly files, oldest first

    Returns:
        (ok, message, submission) - submission is None when validation fails
    """
    monthly_files = list(monthly_files)
    weekly_files = [f for f in weekly_files if f is not None]

    if len(monthly_files) != MONTHS_REQUIRED:
        return False, f"All {MONTHS_REQUIRED} monthly CSVs are required (month + file).", None
    if len(weekly_files) > MAX_WEEKLY_FILES:
        return False, f"At most {MAX_WEEKLY_FILES} weekly CSVs can be submitted.", None

    monthly = []
    for idx, (month, uploaded_file) in enumerate(monthly_files):
        if not month or uploaded_file is None:
            return False, f"All {MONTHS_REQUIRED} monthly CSVs are required (month + file).", None
        file_name = uploaded_file_name(uploaded_file)
        text = read_uploaded_file(uploaded_file)
        ok, message = validate_monthly_csv(text, file_name)
        if not ok:
            return False, f"Month {idx + 1} ({file_name}): {message}", None
        monthly.append({"month": month, "file_name": file_name, "text": text})

    weekly = [
        {"file_name": uploaded_file_name(f), "text": read_uploaded_file(f)}
        for f in weekly_files
    ]

    submission = {
        "submission_id": f"sub_{uuid.uuid4().hex[:12]}",
        "client_id": client_id,
        "client_name": client_name or client_id,
        "store_id": store_id,
        "created_at": local_timestamp(),
        "status": "pending",
        "submitted_by_role": role or "client",
        "monthly": monthly,
        "weekly": weekly,
    }
    return True, "Submitted for admin review.", submission


def generate_mock_rows(location_name, month_start, days=None, seed=None, with_shifts=True):
    """Generate realistic daily sales-and-labor rows for one month"""
    rng = random.Random(seed if seed is not None else f"{location_name}-{month_start}")
    days = days or MOCK_DATA_CONFIG["days_per_month"]
    shifts = [("Breakfast", 0.2), ("Lunch", 0.35), ("Dinner", 0.35), ("Late Night", 0.1)]

    rows = []
    for day in range(days):
        current = month_start + timedelta(days=day)
        daily_sales = rng.uniform(*MOCK_DATA_CONFIG["daily_sales"])
        daily_labor_pct = rng.uniform(*MOCK_DATA_CONFIG["labor_pct"])
        avg_ticket = rng.uniform(*MOCK_DATA_CONFIG["avg_ticket"])

        splits = shifts if with_shifts else [("", 1.0)]
        for shift, share in splits:
            sales = round(daily_sales * share, 2)
            row = {
                "Date": current.isoformat(),
                "Location": location_name,
                "Sales": sales,
                "Labor": round(sales * daily_labor_pct * rng.uniform(0.85, 1.15), 2),
                "Transactions": max(1, int(sales / avg_ticket)),
            }
            if with_shifts:
                row["Shift"] = shift
            rows.append(row)
    return rows


def save_mock_csv(rows, location_name, label, output_dir=MOCK_DATA_DIR):
    """Save mock rows as a monthly export CSV file"""
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    location_safe = location_name.replace(" ", "_")
    filepath = os.path.join(output_dir, f"{location_safe}_{label}.csv")
    pd.DataFrame(rows).to_csv(filepath, index=False)
    return filepath


def generate_mock_months(location_name, months=MONTHS_REQUIRED, end_month=None, output_dir=MOCK_DATA_DIR):
    """Write one mock export per month, oldest first; returns the file paths"""
    end_month = end_month or date.today().replace(day=1)
    starts = []
    current = end_month
    for _ in range(months):
        starts.append(current)
        current = (current - timedelta(days=1)).replace(day=1)

    paths = []
    for month_start in reversed(starts):
        rows = generate_mock_rows(location_name, month_start)
        paths.append(save_mock_csv(rows, location_name, month_start.strftime("%Y-%m"), output_dir))
    return paths

"""
File upload and parsing module for store sales-and-labor exports
Handles CSV uploads for monthly and weekly periods
"""
import csv
import logging
import os
import re
from difflib import get_close_matches

from config import REQUIRED_MONTHLY_COLUMNS

logger = logging.getLogger(__name__)

SPACE_BEFORE_QUOTE = re.compile(r'(^|,)\s+"')


def normalize_column_name(name):
    """Lowercase a header name and drop all whitespace"""
    return "".join(str(name or "").split()).lower()


def find_column(header, possible_names, fuzzy=False):
    """
    Find column by checking multiple possible names (case-insensitive)
    Falls back to fuzzy matching if exact match not found

    Args:
        header: List of column names to search
        possible_names: List of possible column names
        fuzzy: Whether to use fuzzy matching as fallback

    Returns:
        Column name if found, None otherwise
    """
    header_lower = {normalize_column_name(col): col for col in header}

    for name in possible_names:
        key = normalize_column_name(name)
        if key in header_lower:
            return header_lower[key]

    if fuzzy:
        for name in possible_names:
            matches = get_close_matches(normalize_column_name(name), list(header_lower), n=1, cutoff=0.8)
            if matches:
                return header_lower[matches[0]]

    return None


def find_missing_columns(header, required_columns=None):
    """Return the required columns absent from a parsed header, in their original spelling"""
    if required_columns is None:
        required_columns = REQUIRED_MONTHLY_COLUMNS
    present = {normalize_column_name(col) for col in header or []}
    return [col for col in required_columns if normalize_column_name(col) not in present]


def split_csv_line(line):
    """Split one CSV line on commas outside double quotes"""
    line = SPACE_BEFORE_QUOTE.sub(r'\1"', line)
    try:
        cells = next(csv.reader([line], skipinitialspace=True), [])
    except csv.Error as e:
        logger.warning("Falling back to plain comma split (%s): %r", e, line[:80])
        cells = [cell.strip().strip('"') for cell in line.split(",")]
    return [cell.strip() for cell in cells]


def parse_csv_text(text):
    """
    Parse raw delimited text into a header and a list of row mappings

    Blank lines are skipped and the first non-blank line is the header. Short
    rows are padded with empty strings and extra cells are ignored. Never
    raises: unusable input yields an empty header and no rows.

    Returns:
        dict with keys: header, rows
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8-sig", errors="replace")
    if not isinstance(text, str):
        return {"header": [], "rows": []}

    lines = [line for line in text.lstrip("\ufeff").splitlines() if line.strip()]
    if not lines:
        return {"header": [], "rows": []}

    header = split_csv_line(lines[0])
    rows = []
    for line in lines[1:]:
        cells = split_csv_line(line)
        cells = cells + [""] * (len(header) - len(cells))
        rows.append({col: cells[idx] for idx, col in enumerate(header)})

    return {"header": header, "rows": rows}


def uploaded_file_name(uploaded_file):
    """Best-effort display name for a path or file-like upload"""
    if isinstance(uploaded_file, (str, os.PathLike)):
        return os.path.basename(os.fspath(uploaded_file))
    return str(getattr(uploaded_file, "name", "") or "")


def read_uploaded_file(uploaded_file):
    """
    Read the full content of an upload as text

    Args:
        uploaded_file: Filesystem path, or a file-like object exposing
            getvalue() or read() that yields str or bytes

    Returns:
        Decoded text with any UTF-8 BOM removed
    """
    if isinstance(uploaded_file, (str, os.PathLike)):
        with open(uploaded_file, "rb") as f:
            content = f.read()
    elif hasattr(uploaded_file, "getvalue"):
        content = uploaded_file.getvalue()
    else:
        content = uploaded_file.read()

    if isinstance(content, bytes):
        content = content.decode("utf-8-sig", errors="replace")
    return content.lstrip("\ufeff")


def validate_monthly_csv(text, file_name, required_columns=None):
    """Validate that a monthly export has data rows and the required columns"""
    if not file_name.lower().endswith(".csv"):
        return False, f"{file_name} must be a .csv file"

    parsed = parse_csv_text(text)
    if not parsed["rows"]:
        return False, f"{file_name} has no data rows"

    missing = find_missing_columns(parsed["header"], required_columns)
    if missing:
        logger.warning("%s is missing columns: %s", file_name, missing)
        return False, f"Missing columns: {', '.join(missing)}"

    return True, "Data validation successful"


def parse_uploaded_file(uploaded_file):
    """
    Parse an uploaded CSV export

    Args:
        uploaded_file: Path or file-like object (see read_uploaded_file)

    Returns:
        dict with keys: name, header, rows, missing_columns
    """
    file_name = uploaded_file_name(uploaded_file)

    if not file_name.lower().endswith(".csv"):
        raise ValueError(f"Unsupported file type: {file_name}. Please upload CSV files.")

    parsed = parse_csv_text(read_uploaded_file(uploaded_file))
    logger.info("Parsed %s: %d rows", file_name, len(parsed["rows"]))

    return {
        "name": file_name,
        "header": parsed["header"],
        "rows": parsed["rows"],
        "missing_columns": find_missing_columns(parsed["header"]),
    }

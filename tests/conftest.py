import pytest

from data_cleaning import PeriodTotals

HEADER = "Date,Location,Sales,Labor,Transactions"


def make_csv(rows, header=HEADER):
    """Join a header and row tuples into CSV text"""
    lines = [header] + [",".join(str(cell) for cell in row) for row in rows]
    return "\n".join(lines) + "\n"


@pytest.fixture
def three_months():
    """Sales [1000, 1100, 1050], Transactions [100, 105, 100], Labor [270, 280, 270]"""
    return [
        PeriodTotals(sales=1000.0, labor=270.0, transactions=100.0),
        PeriodTotals(sales=1100.0, labor=280.0, transactions=105.0),
        PeriodTotals(sales=1050.0, labor=270.0, transactions=100.0),
    ]


@pytest.fixture
def month_texts():
    """Three monthly exports whose totals match the three_months fixture"""
    return [
        make_csv([("2024-01-05", "Main", 600, 150, 60), ("2024-01-20", "Main", 400, 120, 40)]),
        make_csv([("2024-02-05", "Main", 1100, 280, 105)]),
        make_csv([("2024-03-05", "Main", 1050, 270, 100)]),
    ]


@pytest.fixture
def shift_rows():
    """Breakfast and Dinner only; Dinner runs the heavier labor"""
    return [
        {"Date": "2024-03-01", "Shift": "Breakfast", "Sales": "600", "Labor": "120", "Transactions": "60"},
        {"Date": "2024-03-02", "Shift": "Breakfast", "Sales": "400", "Labor": "80", "Transactions": "40"},
        {"Date": "2024-03-01", "Shift": "Dinner", "Sales": "1000", "Labor": "400", "Transactions": "80"},
    ]

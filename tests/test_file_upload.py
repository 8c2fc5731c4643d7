import io

import pytest

from file_upload import (
    find_column,
    find_missing_columns,
    parse_csv_text,
    parse_uploaded_file,
    read_uploaded_file,
    validate_monthly_csv,
)
from tests.conftest import make_csv


def test_round_trip_plain_rows():
    rows = [
        {"Date": "2024-01-01", "Location": "Main", "Sales": "100", "Labor": "27", "Transactions": "9"},
        {"Date": "2024-01-02", "Location": "Elm", "Sales": "250.5", "Labor": "60", "Transactions": "20"},
    ]
    text = make_csv([tuple(row.values()) for row in rows])

    parsed = parse_csv_text(text)

    assert parsed["header"] == ["Date", "Location", "Sales", "Labor", "Transactions"]
    assert parsed["rows"] == rows


def test_quoted_comma_survives():
    parsed = parse_csv_text('Date,Location,Sales\n2024-01-01,"Main St, Unit 4",100\n')
    assert parsed["rows"][0]["Location"] == "Main St, Unit 4"
    assert parsed["rows"][0]["Sales"] == "100"


def test_doubled_quote_is_literal_quote():
    parsed = parse_csv_text('Note\n"Say ""hi"""\n')
    assert parsed["rows"][0]["Note"] == 'Say "hi"'


def test_blank_lines_crlf_and_whitespace():
    text = "\r\n Sales , Labor \r\n\r\n  100 ,  30 \r\n   \r\n200,40\r\n"
    parsed = parse_csv_text(text)
    assert parsed["header"] == ["Sales", "Labor"]
    assert parsed["rows"] == [{"Sales": "100", "Labor": "30"}, {"Sales": "200", "Labor": "40"}]


def test_short_rows_padded_and_extra_cells_ignored():
    parsed = parse_csv_text("A,B,C\n1\n1,2,3,4\n")
    assert parsed["rows"][0] == {"A": "1", "B": "", "C": ""}
    assert parsed["rows"][1] == {"A": "1", "B": "2", "C": "3"}


def test_bom_is_stripped_from_header():
    parsed = parse_csv_text("\ufeffSales,Labor\n1,2\n")
    assert parsed["header"][0] == "Sales"


@pytest.mark.parametrize("text", ["", "   \n\n", None, 42])
def test_unusable_input_yields_empty_result(text):
    assert parse_csv_text(text) == {"header": [], "rows": []}


def test_unbalanced_quote_does_not_raise():
    parsed = parse_csv_text('A,B\n1,"open\n3,4\n')
    assert len(parsed["rows"]) == 2
    assert parsed["rows"][0]["A"] == "1"
    assert parsed["rows"][1] == {"A": "3", "B": "4"}


def test_missing_columns_case_and_whitespace_insensitive():
    header = [" date ", "LOCATION", "Sales"]
    assert find_missing_columns(header) == ["Labor", "Transactions"]


def test_missing_columns_all_present():
    assert find_missing_columns(["Date", "Location", "Sales", "Labor", "Transactions"]) == []


def test_find_column_aliases_and_fuzzy():
    header = ["date", "net_sales", "labor_cost"]
    assert find_column(header, ["Sales", "revenue", "net_sales"]) == "net_sales"
    assert find_column(["Net Sales"], ["netsales"]) == "Net Sales"
    assert find_column(header, ["Revenue"]) is None
    assert find_column(["Labour"], ["Labor"], fuzzy=True) == "Labour"


def test_validate_monthly_csv_messages():
    good = make_csv([("2024-01-01", "Main", 100, 27, 9)])

    assert validate_monthly_csv(good, "jan.csv") == (True, "Data validation successful")
    assert validate_monthly_csv(good, "jan.xlsx") == (False, "jan.xlsx must be a .csv file")
    assert validate_monthly_csv("Date,Sales\n", "jan.csv") == (False, "jan.csv has no data rows")

    ok, message = validate_monthly_csv("Date,Sales\n2024-01-01,10\n", "jan.csv")
    assert not ok
    assert message == "Missing columns: Location, Labor, Transactions"


def test_read_uploaded_file_sources(tmp_path):
    path = tmp_path / "jan.csv"
    path.write_bytes(b"\xef\xbb\xbfSales\n1\n")

    assert read_uploaded_file(path) == "Sales\n1\n"
    assert read_uploaded_file(io.BytesIO(b"Sales\n2\n")) == "Sales\n2\n"
    assert read_uploaded_file(io.StringIO("Sales\n3\n")) == "Sales\n3\n"


def test_parse_uploaded_file_from_path(tmp_path):
    path = tmp_path / "march.csv"
    path.write_text("Date,Sales\n2024-03-01,10\n")

    parsed = parse_uploaded_file(str(path))

    assert parsed["name"] == "march.csv"
    assert parsed["rows"] == [{"Date": "2024-03-01", "Sales": "10"}]
    assert parsed["missing_columns"] == ["Location", "Labor", "Transactions"]


def test_parse_uploaded_file_rejects_other_types(tmp_path):
    path = tmp_path / "march.xlsx"
    path.write_text("anything")
    with pytest.raises(ValueError, match="Unsupported file type"):
        parse_uploaded_file(str(path))


def test_tab_before_quoted_field():
    parsed = parse_csv_text('A,B,C\n1,\t"x, y", \t"z"\n')
    assert parsed["rows"][0] == {"A": "1", "B": "x, y", "C": "z"}

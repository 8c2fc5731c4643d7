import pytest

from data_cleaning import PeriodTotals
from kpis import (
    AVG_TICKET,
    KPI_ORDER,
    LABOR_PCT,
    SALES_MOM,
    TX_MOM,
    TargetSet,
    compare_periods,
    evaluate,
    evaluate_periods,
    labor_pct_change,
    pct_change,
)


def test_pct_change_sign_convention():
    assert pct_change(110, 100) == pytest.approx(0.10)
    assert pct_change(90, 100) == pytest.approx(-0.10)


@pytest.mark.parametrize("current, previous", [
    (5, 0), (0, 0), (-3.5, 0), (None, 100), (100, None), (float("nan"), 100), (100, float("inf")),
])
def test_pct_change_undefined(current, previous):
    assert pct_change(current, previous) is None


def test_labor_pct_change_is_absolute():
    assert labor_pct_change(0.30, 0.27) == pytest.approx(0.03)
    assert labor_pct_change(None, 0.27) is None


def test_three_month_scenario(three_months):
    comparison = compare_periods(three_months)

    assert comparison["sales"]["current"] == 1050.0
    assert comparison["sales"]["mom"] == pytest.approx(-50 / 1100)
    assert comparison["sales"]["mom"] == pytest.approx(-0.04545, abs=1e-5)
    assert comparison["sales"]["prev"] == pytest.approx(0.05)
    assert comparison["transactions"]["mom"] == pytest.approx(-5 / 105)
    assert comparison["labor_pct"]["current"] == pytest.approx(0.25714, abs=1e-5)
    assert comparison["labor_pct"]["mom"] == pytest.approx(270 / 1050 - 280 / 1100)
    assert comparison["avg_ticket"]["prev"] == pytest.approx(0.05)


def test_compare_uses_last_three_periods(three_months):
    older = [PeriodTotals(sales=1.0, labor=1.0, transactions=1.0)]
    assert compare_periods(older + three_months) == compare_periods(three_months)


def test_compare_with_missing_periods(three_months):
    two = compare_periods(three_months[1:])
    assert two["sales"]["mom"] == pytest.approx(-50 / 1100)
    assert two["sales"]["prev"] is None

    one = compare_periods(three_months[2:])
    assert one["sales"]["current"] == 1050.0
    assert one["sales"]["mom"] is None

    none = compare_periods([])
    assert none["labor_pct"] == {"current": None, "mom": None, "prev": None}


def test_compare_zero_sales_period_is_undefined():
    periods = [PeriodTotals(), PeriodTotals(), PeriodTotals(sales=100.0, labor=30.0)]
    comparison = compare_periods(periods)
    assert comparison["sales"]["mom"] is None
    assert comparison["labor_pct"]["mom"] is None
    assert comparison["avg_ticket"]["current"] is None


def test_evaluate_lower_is_better():
    result = evaluate(LABOR_PCT, 0.30, TargetSet(labor_pct_max=0.27))
    assert result.on_track is False
    assert result.variance == pytest.approx(0.03)
    assert result.direction == "lower"


def test_evaluate_higher_is_better():
    result = evaluate(SALES_MOM, 0.06, TargetSet(sales_mom=0.05))
    assert result.on_track is True
    assert result.variance == pytest.approx(0.01)


def test_evaluate_boundary_is_on_track():
    assert evaluate(LABOR_PCT, 0.27).on_track is True
    assert evaluate(AVG_TICKET, 14.0).on_track is True


def test_evaluate_undefined_actual():
    result = evaluate(TX_MOM, None)
    assert result.on_track is False
    assert result.variance is None
    assert result.target == 0.04


def test_evaluate_unknown_kpi():
    with pytest.raises(KeyError):
        evaluate("Profit", 0.1)


def test_evaluate_periods_scenario(three_months):
    results = evaluate_periods(three_months)

    assert [r.kpi for r in results] == KPI_ORDER
    by_kpi = {r.kpi: r for r in results}
    assert by_kpi[SALES_MOM].on_track is False
    assert by_kpi[TX_MOM].on_track is False
    assert by_kpi[LABOR_PCT].on_track is True
    assert by_kpi[LABOR_PCT].actual == pytest.approx(270 / 1050)
    assert by_kpi[AVG_TICKET].actual == pytest.approx(10.5)
    assert by_kpi[AVG_TICKET].on_track is False


def test_target_defaults():
    assert TargetSet().to_dict() == {
        "salesMoM": 0.05,
        "txMoM": 0.04,
        "laborPctMax": 0.27,
        "avgTicketMin": 14.0,
    }


def test_target_override_from_mapping():
    targets = TargetSet.from_mapping({"laborPctMax": "0.25", "avgTicketMin": 12})
    assert targets.labor_pct_max == 0.25
    assert targets.avg_ticket_min == 12.0
    assert targets.sales_mom == 0.05


def test_target_override_from_json():
    targets = TargetSet.from_mapping('{"salesMoM": 0.08, "txMoM": ""}')
    assert targets.sales_mom == 0.08
    assert targets.tx_mom == 0.04


@pytest.mark.parametrize("override", [None, "not json", [], {"laborPctMax": "high"}, {"laborPctMax": True},
                                      {"laborPctMax": "inf"}])
def test_target_override_falls_back_to_defaults(override):
    assert TargetSet.from_mapping(override) == TargetSet()


def test_evaluation_to_dict():
    assert evaluate(SALES_MOM, 0.06).to_dict() == {
        "kpi": SALES_MOM,
        "actual": 0.06,
        "target": 0.05,
        "variance": pytest.approx(0.01),
        "on_track": True,
        "direction": "higher",
    }

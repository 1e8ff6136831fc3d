from datetime import date, datetime, timedelta
from decimal import Decimal

from notice_engine.domain.services import InterestAccrualCalculator, elapsed_days


def test_forty_days_at_eighteen_percent_rounds_to_whole_units():
    calculator = InterestAccrualCalculator()
    due = date(2024, 1, 1)

    interest = calculator.compute_interest(500000, 18, due, due + timedelta(days=40))

    assert interest == Decimal("9863")


def test_half_unit_rounds_up():
    calculator = InterestAccrualCalculator()

    # 18250 * 1 * 1 / 36500 == 0.5
    assert calculator.interest_for_days(18250, 1, 1) == Decimal("1")


def test_zero_principal_yields_zero_interest():
    calculator = InterestAccrualCalculator()

    assert calculator.compute_interest(0, 18, date(2023, 1, 1), date(2024, 1, 1)) == Decimal("0")


def test_target_on_or_before_due_date_accrues_nothing():
    calculator = InterestAccrualCalculator()
    due = date(2024, 3, 1)

    assert calculator.compute_interest(100000, 18, due, due) == Decimal("0")
    assert calculator.compute_interest(100000, 18, due, due - timedelta(days=5)) == Decimal("0")


def test_time_of_day_is_ignored():
    assert elapsed_days(datetime(2024, 1, 1, 23, 30), datetime(2024, 1, 2, 0, 15)) == 1
    assert elapsed_days(datetime(2024, 1, 1, 8, 0), date(2024, 1, 1)) == 0


def test_non_numeric_principal_is_treated_as_zero():
    calculator = InterestAccrualCalculator()

    assert calculator.interest_for_days(None, 18, 30) == Decimal("0")
    assert calculator.interest_for_days("n/a", 18, 30) == Decimal("0")


def test_identical_inputs_give_identical_results():
    calculator = InterestAccrualCalculator()
    args = (Decimal("123457"), Decimal("18"), date(2023, 4, 20), date(2024, 2, 29))

    assert calculator.compute_interest(*args) == calculator.compute_interest(*args)


def test_custom_day_basis():
    calculator = InterestAccrualCalculator(day_basis=Decimal("36000"))

    assert calculator.interest_for_days(36000, 10, 1) == Decimal("10")

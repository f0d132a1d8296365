"""Tests for transaction analytics tools."""

import pytest
from datetime import date
from decimal import Decimal

from models.transaction import TransactionType
from tools.analytics import (
    calculate_current_month_balance,
    calculate_net_income,
    calculate_total_expenses,
    calculate_total_income,
    generate_monthly_report,
    get_bank_transaction_counts,
    get_category_summary,
    get_dashboard_stats,
    get_expenses_by_category,
    get_top_counterparties,
    month_bounds,
)

DECEMBER = (date(2024, 12, 1), date(2024, 12, 31))
NOVEMBER = (date(2024, 11, 1), date(2024, 11, 30))


@pytest.fixture
def december(services, make_transaction):
    """One salary and two categorized expenses in December 2024."""
    groceries = services.categories.create("groceries")
    transport = services.categories.create("transport")
    salary = services.categories.create("salary", is_expense=False)

    services.transactions.save_all(
        [
            make_transaction(
                "3500.00",
                type=TransactionType.CREDIT,
                reference="Gehalt Dezember 2024",
                counterparty="Arbeitgeber AG",
                booking_date=date(2024, 12, 1),
                category_id=salary.id,
            ),
            make_transaction(
                "-89.95",
                reference="REWE Supermarkt",
                counterparty="REWE",
                booking_date=date(2024, 12, 15),
                category_id=groceries.id,
            ),
            make_transaction(
                "-45.80",
                reference="ARAL Tankstelle",
                counterparty="ARAL",
                booking_date=date(2024, 12, 31),
                category_id=transport.id,
            ),
        ]
    )
    return {"groceries": groceries, "transport": transport, "salary": salary}


class TestMonthBounds:
    def test_regular_month(self):
        assert month_bounds(2024, 12) == DECEMBER

    def test_leap_february(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_bounds(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))


class TestTotals:
    def test_totals(self, services, december):
        assert calculate_total_income(services, *DECEMBER) == Decimal("3500.00")
        assert calculate_total_expenses(services, *DECEMBER) == Decimal("135.75")
        assert calculate_net_income(services, *DECEMBER) == Decimal("3364.25")

    def test_empty_window_is_zero(self, services, december):
        assert calculate_total_income(services, *NOVEMBER) == Decimal("0")
        assert calculate_total_expenses(services, *NOVEMBER) == Decimal("0")
        assert calculate_net_income(services, *NOVEMBER) == Decimal("0")

    def test_negative_net_income(self, services, make_transaction):
        services.transactions.save_all(
            [
                make_transaction("100.00", type=TransactionType.CREDIT),
                make_transaction("-250.50"),
            ]
        )

        assert calculate_net_income(services, *DECEMBER) == Decimal("-150.50")

    def test_refund_debit_counts_as_neither(self, services, make_transaction):
        services.transactions.save_all(
            [make_transaction("19.99", type=TransactionType.DEBIT)]
        )

        assert calculate_total_income(services, *DECEMBER) == Decimal("0")
        assert calculate_total_expenses(services, *DECEMBER) == Decimal("0")

    def test_current_month_balance(self, services, make_transaction):
        today = date(2025, 3, 14)
        services.transactions.save_all(
            [
                make_transaction("200.00", booking_date=date(2025, 3, 1)),
                make_transaction("-50.00", booking_date=date(2025, 3, 31)),
                make_transaction("-999.00", booking_date=date(2025, 2, 28)),
            ]
        )

        assert calculate_current_month_balance(services, today) == Decimal("150.00")


class TestMonthlyReport:
    def test_scenario_december(self, services, december):
        report = generate_monthly_report(services, 2024, 12)

        assert report.month_key == "2024/12"
        assert report.transaction_count == 3
        assert report.total_income == Decimal("3500.00")
        assert report.total_expenses == Decimal("135.75")
        assert report.net_income == Decimal("3364.25")
        assert report.expenses_by_category == {
            december["groceries"]: Decimal("89.95"),
            december["transport"]: Decimal("45.80"),
        }

    def test_excludes_other_months(self, services, december):
        report = generate_monthly_report(services, 2024, 11)

        assert report.transaction_count == 0
        assert report.total_expenses == Decimal("0")
        assert report.expenses_by_category == {}

    def test_uncategorized_and_refunds_left_out_of_breakdown(
        self, services, december, make_transaction
    ):
        services.transactions.save_all(
            [
                make_transaction("-10.00", booking_date=date(2024, 12, 20)),
                make_transaction(
                    "5.00",
                    type=TransactionType.DEBIT,
                    booking_date=date(2024, 12, 20),
                    category_id=december["groceries"].id,
                ),
            ]
        )

        report = generate_monthly_report(services, 2024, 12)

        assert report.transaction_count == 5
        assert report.total_expenses == Decimal("145.75")
        assert report.expenses_by_category[december["groceries"]] == Decimal("89.95")
        assert sum(report.expenses_by_category.values()) == Decimal("135.75")

    def test_deactivated_category_still_reported(self, services, december):
        services.categories.delete(december["groceries"].id)

        report = generate_monthly_report(services, 2024, 12)

        assert {c.name for c in report.expenses_by_category} == {"groceries", "transport"}

    def test_expense_in_income_category_counted(self, services, december, make_transaction):
        """Category flags are not cross-checked against the transaction sign."""
        services.transactions.save_all(
            [
                make_transaction(
                    "-20.00",
                    booking_date=date(2024, 12, 10),
                    category_id=december["salary"].id,
                )
            ]
        )

        report = generate_monthly_report(services, 2024, 12)

        assert report.expenses_by_category[december["salary"]] == Decimal("20.00")


class TestCategorySummary:
    def test_sorted_descending(self, services, december, make_transaction):
        services.transactions.save_all(
            [
                make_transaction(
                    "-200.00",
                    booking_date=date(2024, 12, 2),
                    category_id=december["transport"].id,
                )
            ]
        )

        summaries = get_category_summary(services, *DECEMBER)

        totals = [s.total_amount for s in summaries]
        assert totals == sorted(totals, reverse=True)
        assert summaries[0].category == december["transport"]
        assert summaries[0].total_amount == Decimal("245.80")
        assert summaries[0].transaction_count == 2

    def test_count_includes_non_expenses(self, services, december, make_transaction):
        services.transactions.save_all(
            [
                make_transaction(
                    "15.00",
                    type=TransactionType.DEBIT,
                    booking_date=date(2024, 12, 3),
                    category_id=december["groceries"].id,
                )
            ]
        )

        [groceries] = [
            s for s in get_category_summary(services, *DECEMBER)
            if s.category.name == "groceries"
        ]

        assert groceries.total_amount == Decimal("89.95")
        assert groceries.transaction_count == 2

    def test_income_only_categories_omitted(self, services, december):
        names = {s.category.name for s in get_category_summary(services, *DECEMBER)}
        assert "salary" not in names

    def test_expenses_by_category_matches(self, services, december):
        expenses = get_expenses_by_category(services, *DECEMBER)
        assert expenses[december["groceries"]] == Decimal("89.95")
        assert get_expenses_by_category(services, *NOVEMBER) == {}


class TestCounterpartiesAndBanks:
    def test_top_counterparties(self, services, make_transaction):
        services.transactions.save_all(
            [make_transaction(counterparty="REWE") for _ in range(3)]
            + [make_transaction(counterparty="Aral") for _ in range(2)]
            + [make_transaction(counterparty="Netflix")]
            + [make_transaction(counterparty=None) for _ in range(5)]
            # Outside any month window, still counted
            + [make_transaction(counterparty="Netflix", booking_date=date(2019, 1, 1))]
        )

        top = get_top_counterparties(services, 2)

        assert len(top) == 2
        assert (top[0].counterparty, top[0].transaction_count) == ("REWE", 3)
        assert top[1].transaction_count == 2
        counts = [s.transaction_count for s in get_top_counterparties(services, 10)]
        assert counts == [3, 2, 2]

    def test_bank_counts(self, services, make_transaction):
        services.transactions.save_all(
            [make_transaction(bank_name="DKB"), make_transaction(bank_name="ING")]
        )
        assert get_bank_transaction_counts(services) == {"DKB": 1, "ING": 1}


class TestDashboard:
    def test_dashboard_stats(self, services, december, make_transaction):
        services.transactions.save_all(
            [make_transaction("-12.00", bank_name="DKB", booking_date=date(2024, 12, 5))]
        )

        stats = get_dashboard_stats(services, today=date(2024, 12, 24))

        assert stats.total_transactions == 4
        assert stats.uncategorized_transactions == 1
        assert stats.monthly_income == Decimal("3500.00")
        assert stats.monthly_expenses == Decimal("147.75")
        assert stats.monthly_balance == Decimal("3352.25")
        assert stats.bank_count == 2

    def test_dashboard_not_cached(self, services, make_transaction):
        today = date.today()
        assert get_dashboard_stats(services).total_transactions == 0

        services.transactions.save_all(
            [make_transaction("-1.00", booking_date=today.replace(day=1))]
        )

        stats = get_dashboard_stats(services)
        assert stats.total_transactions == 1
        assert stats.monthly_expenses == Decimal("1.00")


@pytest.fixture
def connect_calls(services, monkeypatch):
    """Record every connection the services open."""
    calls = []
    original_connect = services.db_manager.connect

    def counting_connect():
        calls.append(1)
        return original_connect()

    monkeypatch.setattr(services.db_manager, "connect", counting_connect)
    return calls


class TestSingleSnapshot:
    def test_dashboard_reads_one_snapshot(self, services, december, connect_calls, monkeypatch):
        in_transaction = []
        original_count = services.transactions.count

        def recording_count(conn=None):
            in_transaction.append(conn is not None and conn.in_transaction)
            return original_count(conn)

        monkeypatch.setattr(services.transactions, "count", recording_count)

        stats = get_dashboard_stats(services, today=date(2024, 12, 24))

        assert stats.total_transactions == 3
        assert len(connect_calls) == 1
        assert in_transaction == [True]

    @pytest.mark.parametrize(
        "report",
        [
            lambda s: generate_monthly_report(s, 2024, 12),
            lambda s: get_category_summary(s, *DECEMBER),
            lambda s: get_expenses_by_category(s, *DECEMBER),
            lambda s: calculate_net_income(s, *DECEMBER),
            lambda s: get_top_counterparties(s, 5),
        ],
    )
    def test_reports_use_one_connection(self, services, december, connect_calls, report):
        report(services)

        assert len(connect_calls) == 1

    def test_read_transaction_closed_afterwards(self, services, december, test_db):
        generate_monthly_report(services, 2024, 12)

        assert test_db.in_transaction is False


class TestTopCounterpartyLimit:
    def test_negative_limit_rejected(self, services, make_transaction):
        services.transactions.save_all(
            [make_transaction(counterparty="A"), make_transaction(counterparty="B")]
        )

        with pytest.raises(ValueError, match="limit"):
            get_top_counterparties(services, -1)

    def test_zero_limit_is_empty(self, services, make_transaction):
        services.transactions.save_all([make_transaction(counterparty="A")])

        assert get_top_counterparties(services, 0) == []

"""Tests for ledger summaries and subscription cost reporting."""

import pytest
from datetime import datetime
from decimal import Decimal

from cofinance.config import LedgerSettings
from cofinance.models.ledger import (
    Account,
    AccountStatus,
    AccountType,
    BalanceState,
    Subscription,
    SubscriptionFrequency,
    Transaction,
)
from cofinance.queries import SummaryService, format_currency
from cofinance.queries.summary import (
    account_status,
    active,
    balance_by_type,
    belongs_to_account,
    due_soon,
    group_by_next_charge_month,
    group_transactions_by_month,
    group_transactions_by_week,
    inactive,
    income_and_expenses,
    is_this_month,
    is_this_week,
    matches_search,
    monthly_approximate_cost,
    net_balance,
    overdue,
    total_balance,
    total_monthly_cost,
    total_yearly_cost,
    transactions_for_account,
    transaction_belongs_to_account,
    transaction_matches_search,
    yearly_approximate_cost,
)
from cofinance.scheduling import SubscriptionScheduler
from cofinance.services.storage import InMemoryLedgerStorage


NOW = datetime(2024, 5, 1, 12, 0)


def sub(name="Netflix", amount="12", frequency=SubscriptionFrequency.MONTHLY, **kwargs) -> Subscription:
    kwargs.setdefault("account_name", "Card")
    kwargs.setdefault("next_charge_date", datetime(2024, 5, 10))
    return Subscription(name=name, amount=Decimal(amount), frequency=frequency, **kwargs)


@pytest.fixture
def scheduler(ledger_settings) -> SubscriptionScheduler:
    return SubscriptionScheduler(settings=ledger_settings, clock=lambda: NOW)


class TestSubscriptionCosts:
    """Tests for approximate cost projections."""

    @pytest.mark.parametrize("frequency,interval,expected", [
        (SubscriptionFrequency.MONTHLY, 30, Decimal("12")),
        (SubscriptionFrequency.WEEKLY, 30, Decimal("48")),
        (SubscriptionFrequency.YEARLY, 30, Decimal("1")),
        (SubscriptionFrequency.CUSTOM, 15, Decimal("24")),
    ])
    def test_monthly_cost(self, frequency, interval, expected):
        subscription = sub(amount="12", frequency=frequency, interval_days=interval)
        assert monthly_approximate_cost(subscription) == expected

    def test_yearly_cost_is_twelve_months(self):
        assert yearly_approximate_cost(sub(amount="10")) == Decimal("120")

    def test_totals_skip_inactive(self):
        subscriptions = [
            sub(amount="10"),
            sub(amount="5", frequency=SubscriptionFrequency.WEEKLY),
            sub(amount="100", is_active=False),
        ]
        assert total_monthly_cost(subscriptions) == Decimal("30")
        assert total_yearly_cost(subscriptions) == Decimal("360")

    def test_empty_totals(self):
        assert total_monthly_cost([]) == Decimal("0")


class TestSubscriptionFilters:
    """Tests for active / due-soon / overdue filters."""

    def test_active_and_inactive(self):
        on, off = sub(name="On"), sub(name="Off", is_active=False)
        assert active([on, off]) == [on]
        assert inactive([on, off]) == [off]

    def test_due_soon_excludes_inactive_and_sorts(self, scheduler):
        later = sub(name="Later", next_charge_date=datetime(2024, 5, 7))
        sooner = sub(name="Sooner", next_charge_date=datetime(2024, 5, 2))
        paused = sub(name="Paused", next_charge_date=datetime(2024, 5, 3), is_active=False)
        far = sub(name="Far", next_charge_date=datetime(2024, 6, 1))

        result = due_soon([later, sooner, paused, far], scheduler)
        assert [s.name for s in result] == ["Sooner", "Later"]

    def test_overdue(self, scheduler):
        late = sub(name="Late", next_charge_date=datetime(2024, 4, 20))
        paused = sub(name="Paused", next_charge_date=datetime(2024, 4, 1), is_active=False)
        assert overdue([late, paused, sub()], scheduler) == [late]

    def test_charge_due_earlier_today_is_due_soon_not_overdue(self, scheduler):
        """Both filters count calendar days, so no subscription lands in both."""
        this_morning = sub(name="Morning", next_charge_date=datetime(2024, 5, 1, 9, 0))
        assert due_soon([this_morning], scheduler) == [this_morning]
        assert overdue([this_morning], scheduler) == []

    def test_group_by_next_charge_month(self):
        june = sub(name="June", next_charge_date=datetime(2024, 6, 3))
        may_a = sub(name="MayA", next_charge_date=datetime(2024, 5, 30))
        may_b = sub(name="MayB", next_charge_date=datetime(2024, 5, 1))
        january = sub(name="Jan", next_charge_date=datetime(2025, 1, 1))

        groups = group_by_next_charge_month([june, may_a, january, may_b])
        assert [key for key, _ in groups] == ["2024-05", "2024-06", "2025-01"]
        assert [s.name for s in groups[0][1]] == ["MayA", "MayB"]

    @pytest.mark.parametrize("text,expected", [
        ("netf", True),
        ("STREAM", True),
        ("card", True),
        ("family", True),
        ("gym", False),
        ("", True),
    ])
    def test_matches_search(self, text, expected):
        subscription = sub(category="Streaming", notes="Family plan")
        assert matches_search(subscription, text) is expected

    def test_belongs_to_account(self):
        subscription = sub(account_name="Card")
        assert belongs_to_account(subscription, "Card") is True
        assert belongs_to_account(subscription, "Main") is False
        assert belongs_to_account(subscription, "all") is True


class TestAccountSummaries:
    """Tests for balance and income/expense summaries."""

    def test_totals_by_type(self):
        accounts = [
            Account(name="Main", account_type=AccountType.BANK, balance=Decimal("100")),
            Account(name="Card", account_type=AccountType.CREDIT, balance=Decimal("-40")),
            Account(name="Other bank", account_type=AccountType.BANK, balance=Decimal("5")),
        ]
        assert total_balance(accounts) == Decimal("65")
        assert balance_by_type(accounts) == {
            AccountType.BANK: Decimal("105"),
            AccountType.CREDIT: Decimal("-40"),
        }

    def test_income_and_expenses_in_range(self):
        transactions = [
            Transaction(name="Salary", amount=Decimal("5000"), is_income=True,
                        account_name="Main", posted_at=datetime(2024, 5, 1)),
            Transaction(name="Rent", amount=Decimal("1200"), account_name="Main",
                        posted_at=datetime(2024, 5, 31)),
            Transaction(name="Old", amount=Decimal("99"), account_name="Main",
                        posted_at=datetime(2024, 4, 30)),
        ]
        income, expenses = income_and_expenses(
            transactions, datetime(2024, 5, 1), datetime(2024, 5, 31),
        )
        assert income == Decimal("5000")
        assert expenses == Decimal("1200")

    def test_transactions_for_account_newest_first(self):
        old = Transaction(name="Old", amount=Decimal("1"), account_name="Main",
                          posted_at=datetime(2024, 1, 1))
        new = Transaction(name="New", amount=Decimal("1"), account_name="Main",
                          posted_at=datetime(2024, 2, 1))
        other = Transaction(name="Other", amount=Decimal("1"), account_name="Card")
        assert transactions_for_account([old, other, new], "Main") == [new, old]


def tx(name="Coffee", amount="5", posted_at=datetime(2024, 5, 1), **kwargs) -> Transaction:
    kwargs.setdefault("account_name", "Main")
    return Transaction(name=name, amount=Decimal(amount), posted_at=posted_at, **kwargs)


class TestTransactionHelpers:
    """Tests for transaction search, filtering and grouping."""

    @pytest.mark.parametrize("text,expected", [
        ("cof", True),
        ("FOOD", True),
        ("main", True),
        ("oat milk", True),
        ("rent", False),
        ("", True),
    ])
    def test_matches_search(self, text, expected):
        transaction = tx(category="Food", notes="Oat milk latte")
        assert transaction_matches_search(transaction, text) is expected

    def test_search_without_notes(self):
        assert transaction_matches_search(tx(), "latte") is False

    def test_belongs_to_account_with_wildcard(self):
        transaction = tx(account_name="Card")
        assert transaction_belongs_to_account(transaction, "Card") is True
        assert transaction_belongs_to_account(transaction, "Main") is False
        assert transaction_belongs_to_account(transaction, "all") is True

    def test_is_this_month(self):
        reference = datetime(2024, 5, 15)
        assert is_this_month(tx(posted_at=datetime(2024, 5, 1)), reference) is True
        assert is_this_month(tx(posted_at=datetime(2024, 4, 30)), reference) is False
        assert is_this_month(tx(posted_at=datetime(2023, 5, 15)), reference) is False

    def test_is_this_week_runs_monday_to_sunday(self):
        """2024-05-15 is a Wednesday; its week is May 13 to May 19."""
        reference = datetime(2024, 5, 15)
        assert is_this_week(tx(posted_at=datetime(2024, 5, 13)), reference) is True
        assert is_this_week(tx(posted_at=datetime(2024, 5, 19, 23, 0)), reference) is True
        assert is_this_week(tx(posted_at=datetime(2024, 5, 12)), reference) is False

    def test_group_by_month_newest_first(self):
        april = tx(name="April", posted_at=datetime(2024, 4, 2))
        may_early = tx(name="MayEarly", posted_at=datetime(2024, 5, 1))
        may_late = tx(name="MayLate", posted_at=datetime(2024, 5, 20))
        december = tx(name="Dec", posted_at=datetime(2023, 12, 31))

        groups = group_transactions_by_month([may_early, december, april, may_late])
        assert [key for key, _ in groups] == ["2024-05", "2024-04", "2023-12"]
        assert [t.name for t in groups[0][1]] == ["MayLate", "MayEarly"]

    def test_group_by_week_newest_first(self):
        monday = tx(name="Monday", posted_at=datetime(2024, 5, 13))
        sunday = tx(name="Sunday", posted_at=datetime(2024, 5, 19))
        before = tx(name="Before", posted_at=datetime(2024, 5, 12))
        new_year = tx(name="NewYear", posted_at=datetime(2024, 1, 1))

        groups = group_transactions_by_week([before, new_year, monday, sunday])
        assert [key for key, _ in groups] == ["2024-W20", "2024-W19", "2024-W01"]
        assert [t.name for t in groups[0][1]] == ["Sunday", "Monday"]

    def test_net_balance(self):
        transactions = [
            tx(amount="1000", is_income=True),
            tx(amount="250.50"),
            tx(amount="49.50"),
        ]
        assert net_balance(transactions) == Decimal("700")
        assert net_balance([]) == Decimal("0")


class TestAccountStatus:
    """Tests for the healthy / low / negative account status."""

    @pytest.mark.parametrize("balance,expected", [
        ("1000.01", AccountStatus.HEALTHY),
        ("1000", AccountStatus.LOW),
        ("0", AccountStatus.LOW),
        ("-0.01", AccountStatus.NEGATIVE),
    ])
    def test_thresholds(self, ledger_settings, balance, expected):
        account = Account(name="Main", balance=Decimal(balance))
        assert account_status(account, ledger_settings.healthy_balance_threshold) is expected

    def test_custom_threshold(self):
        account = Account(name="Main", balance=Decimal("150"))
        assert account_status(account, Decimal("100")) is AccountStatus.HEALTHY


class TestFormatting:
    """Tests for currency display strings."""

    def test_default_format(self, ledger_settings):
        assert format_currency(Decimal("1234.5"), ledger_settings) == "USD 1,234.50"
        assert format_currency(Decimal("-15.99"), ledger_settings) == "USD -15.99"

    def test_rounds_half_up(self, ledger_settings):
        assert format_currency(Decimal("0.125"), ledger_settings) == "USD 0.13"

    def test_sign_for_income(self, ledger_settings):
        assert format_currency(Decimal("20"), ledger_settings, with_sign=True) == "USD +20.00"
        assert format_currency(Decimal("0"), ledger_settings, with_sign=True) == "USD 0.00"

    def test_currency_and_places_from_settings(self):
        settings = LedgerSettings(_env_file=None, currency_code="jpy", decimal_places=0)
        assert format_currency(Decimal("1500.6"), settings) == "JPY 1,501"


class TestSummaryService:
    """Tests for the storage-backed overviews."""

    @pytest.mark.asyncio
    async def test_account_overview(self):
        storage = InMemoryLedgerStorage(
            accounts=[
                Account(name="Main", balance=Decimal("500")),
                Account(name="Cash", account_type=AccountType.CASH, balance=Decimal("20"),
                        balance_state=BalanceState.MANUALLY_OVERRIDDEN),
            ],
            transactions=[
                Transaction(name="Salary", amount=Decimal("600"), is_income=True, account_name="Main"),
                Transaction(name="Food", amount=Decimal("100"), account_name="Main"),
            ],
        )
        overview = await SummaryService(storage).account_overview()

        assert overview.total_balance == Decimal("520")
        assert overview.account_count == 2
        assert overview.overridden_accounts == ["Cash"]
        assert overview.account_statuses == {"Main": AccountStatus.LOW, "Cash": AccountStatus.LOW}
        assert overview.net == Decimal("500")

    @pytest.mark.asyncio
    async def test_subscription_overview(self, scheduler):
        storage = InMemoryLedgerStorage(subscriptions=[
            sub(name="Soon", amount="10", next_charge_date=datetime(2024, 5, 3)),
            sub(name="Late", amount="5", next_charge_date=datetime(2024, 4, 1)),
            sub(name="Paused", amount="50", is_active=False),
        ])
        overview = await SummaryService(storage, scheduler).subscription_overview()

        assert overview.active_count == 2
        assert overview.inactive_count == 1
        assert overview.monthly_total == Decimal("15")
        assert overview.yearly_total == Decimal("180")
        assert [s.name for s in overview.due_soon] == ["Soon"]
        assert [s.name for s in overview.overdue] == ["Late"]

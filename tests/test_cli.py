"""Tests for CLI commands."""

import pytest

from wealthledger.cli.main import cli


@pytest.fixture
def run(cli_runner, temp_db, restore_root_logger):
    """Invoke the CLI against the temporary database."""

    def invoke(*args):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "--actor", "cli-user", *args])

    return invoke


@pytest.fixture
def ledger(run):
    """Entity JANE with a checking account (ID 1) and an ACME holding (ID 1)."""
    assert run("entity", "create", "Jane Doe", "--code", "JANE").exit_code == 0
    assert run(
        "account", "create", "JANE", "Everyday", "--number", "CHK-1", "--opening-balance", "1000"
    ).exit_code == 0
    assert run("holding", "create", "JANE", "acme", "--name", "Acme Corp", "--price", "100").exit_code == 0
    return run


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "position and valuation ledger" in result.output


class TestEntityCommands:
    """Tests for entity commands."""

    def test_create_and_list(self, run):
        result = run("entity", "create", "Jane Doe", "--code", "JANE", "--type", "Person")
        assert result.exit_code == 0
        assert "Created entity 'Jane Doe' (ID: 1)" in result.output

        result = run("entity", "list")
        assert result.exit_code == 0
        assert "Jane Doe" in result.output
        assert "Code: JANE" in result.output

    def test_duplicate_code(self, run):
        run("entity", "create", "Jane Doe", "--code", "JANE")
        result = run("entity", "create", "Janet", "--code", "JANE")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_deactivate(self, ledger):
        result = ledger("entity", "deactivate", "JANE", "--yes")
        assert result.exit_code == 0
        assert "3 record(s) updated" in result.output
        assert "(inactive)" in ledger("entity", "list").output

    def test_unknown_entity(self, run):
        result = run("account", "list", "--entity", "NOPE")
        assert result.exit_code == 1
        assert "Entity 'NOPE' not found" in result.output


class TestAccountCommands:
    """Tests for account commands."""

    def test_create_and_list(self, ledger):
        result = ledger("account", "list", "--entity", "JANE")
        assert result.exit_code == 0
        assert "Everyday" in result.output
        assert "1,000.00 USD" in result.output

    def test_invalid_opening_balance(self, ledger):
        result = ledger("account", "create", "JANE", "Bad", "--number", "X", "--opening-balance", "lots")
        assert result.exit_code == 1
        assert "Invalid amount" in result.output

    def test_verify(self, ledger):
        ledger("post", "JANE", "--category", "Deposit", "--amount", "250", "--account", "1", "--date", "2024-03-01")
        result = ledger("account", "verify", "1")
        assert result.exit_code == 0
        assert "1 transaction(s)" in result.output
        assert "Balance is consistent." in result.output

    def test_deactivate(self, ledger):
        assert ledger("account", "deactivate", "1").exit_code == 0
        result = ledger("post", "JANE", "--category", "Deposit", "--amount", "5", "--account", "1")
        assert result.exit_code == 1
        assert "inactive" in result.output


class TestPostingCommands:
    """Tests for post, reverse and action."""

    def test_deposit(self, ledger):
        result = ledger(
            "post", "JANE", "--category", "Deposit", "--amount", "$250.50", "--account", "1",
            "--reference", "DEP-1", "--date", "2024-03-01",
        )
        assert result.exit_code == 0
        assert "Posted transaction 1" in result.output
        assert "Account balance: 1,250.50" in result.output

    def test_duplicate_reference(self, ledger):
        args = ("post", "JANE", "--category", "Deposit", "--amount", "1", "--account", "1", "--reference", "R")
        assert ledger(*args).exit_code == 0
        result = ledger(*args)
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_negative_amount(self, ledger):
        result = ledger("post", "JANE", "--category", "Deposit", "--amount", "-5", "--account", "1")
        assert result.exit_code == 1
        assert "negative" in result.output

    def test_buy_and_sell(self, ledger):
        result = ledger(
            "post", "JANE", "--category", "Purchase", "--type", "Investment", "--amount", "1000",
            "--holding", "1", "--action", "Buy", "--quantity", "10", "--price", "100",
        )
        assert result.exit_code == 0
        assert "Holding ACME: 10.00000000 @ 100.0000" in result.output

        result = ledger(
            "post", "JANE", "--category", "Purchase", "--type", "Investment", "--amount", "750",
            "--holding", "1", "--action", "Buy", "--quantity", "5", "--price", "150",
        )
        assert "Holding ACME: 15.00000000 @ 116.6667" in result.output

        result = ledger(
            "post", "JANE", "--category", "Sale", "--type", "Investment", "--amount", "840",
            "--holding", "1", "--action", "Sell", "--quantity", "6", "--price", "140",
        )
        assert result.exit_code == 0
        assert "Holding ACME: 9.00000000 @ 116.6667" in result.output
        assert "Realized gain/loss: 139.9998" in result.output

        result = ledger("holding", "list", "--entity", "JANE")
        assert "9.00000000" in result.output

    def test_oversell(self, ledger):
        result = ledger(
            "post", "JANE", "--category", "Sale", "--amount", "100",
            "--holding", "1", "--action", "Sell", "--quantity", "1", "--price", "100",
        )
        assert result.exit_code == 1
        assert "Cannot sell" in result.output
        assert "No transactions found." in ledger("transaction", "list").output

    def test_action_requires_target(self, ledger):
        result = ledger("post", "JANE", "--category", "Purchase", "--amount", "1", "--action", "Buy")
        assert result.exit_code == 1
        assert "--action requires --holding or --item" in result.output

    def test_split_action(self, ledger):
        ledger(
            "post", "JANE", "--category", "Purchase", "--amount", "1000",
            "--holding", "1", "--action", "Buy", "--quantity", "10", "--price", "100",
        )
        result = ledger("action", "1", "Split", "--quantity", "2:1")
        assert result.exit_code == 0
        assert "Quantity: 20.00000000" in result.output
        assert "Average cost: 50.0000" in result.output

    def test_reverse(self, ledger):
        ledger("post", "JANE", "--category", "Withdrawal", "--amount", "200", "--account", "1")
        result = ledger("reverse", "1", "--date", "2024-04-01")
        assert result.exit_code == 0
        assert "Reversed transaction 1 with transaction 2" in result.output
        assert "Account balance: 1,000.00" in result.output

        again = ledger("reverse", "1")
        assert again.exit_code == 1
        assert "already been reversed" in again.output

    def test_foreign_currency_needs_rate(self, ledger):
        ledger("account", "create", "JANE", "Euro", "--number", "EUR-1", "--currency", "EUR")
        result = ledger("post", "JANE", "--category", "Deposit", "--amount", "100", "--account", "2",
                        "--date", "2024-03-01")
        assert result.exit_code == 1
        assert "No exchange rate EUR/USD" in result.output

        assert ledger("rate", "set", "EUR", "USD", "1.10", "--date", "2024-01-01").exit_code == 0
        result = ledger("post", "JANE", "--category", "Deposit", "--amount", "100", "--account", "2",
                        "--date", "2024-03-01")
        assert result.exit_code == 0


class TestTransactionCommands:
    """Tests for transaction inspection commands."""

    def test_list_show_annotate_reconcile(self, ledger):
        ledger("post", "JANE", "--category", "Fee", "--amount", "12", "--account", "1",
               "--description", "Card fee", "--date", "2024-02-01")

        listing = ledger("transaction", "list", "--entity", "JANE")
        assert "Found 1 transaction(s)" in listing.output
        assert "Card fee" in listing.output

        assert ledger("transaction", "annotate", "1", "--notes", "Waived next month").exit_code == 0
        shown = ledger("transaction", "show", "1")
        assert "Notes: Waived next month" in shown.output
        assert "Reconciliation: Unreconciled" in shown.output

        result = ledger("transaction", "reconcile", "1", "--date", "2024-02-28")
        assert "Transaction 1 is Reconciled" in result.output

    def test_show_missing(self, ledger):
        result = ledger("transaction", "show", "42")
        assert result.exit_code == 1

    def test_period_and_dates_conflict(self, ledger):
        result = ledger("transaction", "list", "--period", "this-month", "--start-date", "2024-01-01")
        assert result.exit_code == 1
        assert "--period cannot be combined" in result.output


class TestItemCommands:
    """Tests for items and loans."""

    def test_items_and_loans(self, ledger):
        assert ledger("item", "add-asset", "JANE", "Home", "--subcategory", "Real Estate",
                      "--value", "350000").exit_code == 0
        assert ledger("item", "add-loan", "JANE", "Mortgage", "--type", "Mortgage", "--principal", "250000",
                      "--outstanding", "180000", "--start-date", "2020-01-01").exit_code == 0

        listing = ledger("item", "list", "--entity", "JANE")
        assert "Home" in listing.output
        assert "Mortgage" in listing.output

        result = ledger("item", "revalue", "1", "360000", "--method", "Appraisal")
        assert "Revalued 'Home' to 360,000.00" in result.output
        result = ledger("item", "loan-balance", "1", "175000")
        assert "is now 175,000.00" in result.output


class TestNetWorthCommands:
    """Tests for net worth commands."""

    def test_compute_and_list(self, ledger):
        ledger(
            "post", "JANE", "--category", "Purchase", "--amount", "5000",
            "--holding", "1", "--action", "Buy", "--quantity", "50", "--price", "100",
        )
        ledger("item", "add-loan", "JANE", "Loan", "--principal", "2000", "--start-date", "2024-01-01")

        result = ledger("networth", "compute", "JANE", "--date", "2024-06-30")
        assert result.exit_code == 0
        assert "Total assets:" in result.output
        assert "6,000.00" in result.output
        assert "Net worth:" in result.output
        assert "4,000.00" in result.output

        # Same date again refreshes the one snapshot
        ledger("networth", "compute", "JANE", "--date", "2024-06-30")
        listing = ledger("networth", "list", "JANE")
        assert listing.output.count("2024-06-30") == 1


class TestAuditCommands:
    """Tests for audit commands."""

    def test_show_history(self, ledger):
        ledger("holding", "price", "1", "120")
        result = ledger("audit", "show", "holdings", "1")
        assert result.exit_code == 0
        assert "INSERT" in result.output
        assert "UPDATE" in result.output
        assert "by cli-user" in result.output
        assert "current_market_price: 100.0000 -> 120.0000" in result.output

    def test_no_history(self, ledger):
        result = ledger("audit", "show", "transactions", "99")
        assert "No audit records found." in result.output

import asyncio

import pytest

from bank_reconcile.errors import ConfigError, ExternalToolError
from bank_reconcile.ledger import STARTING_BALANCE, ImportRecord, LedgerSession
from bank_reconcile.models import AccountConfig, RawTransaction, Rule
from bank_reconcile.persistence import SqlLedgerClient
from tests.helpers.db import bootstrap_sqlite_db


@pytest.fixture()
def client(tmp_path) -> SqlLedgerClient:
    url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite")
    c = SqlLedgerClient(database_url=url)
    asyncio.run(c.init("budget-1"))
    return c


def test_missing_database_url_is_a_config_error():
    with pytest.raises(ConfigError, match="LEDGER_DATABASE_URL"):
        SqlLedgerClient()


def test_database_url_read_from_environment(tmp_path, monkeypatch):
    url = bootstrap_sqlite_db(tmp_path / "env.sqlite")
    monkeypatch.setenv("LEDGER_DATABASE_URL", url)
    c = SqlLedgerClient()
    asyncio.run(c.init("budget-env"))
    assert [g.name for g in asyncio.run(c.get_category_groups())] == ["Income"]


def test_init_creates_single_income_group(client):
    asyncio.run(client.init("budget-1"))
    groups = asyncio.run(client.get_category_groups())
    assert [(g.name, g.is_income) for g in groups] == [("Income", True)]


def test_create_account_adds_transfer_payee(client):
    account_id = asyncio.run(client.create_account(name="Checking", type="checking", offbudget=False))

    [account] = asyncio.run(client.get_accounts())
    [payee] = asyncio.run(client.get_payees())
    assert account.id == account_id and account.name == "Checking"
    assert payee.name == "Checking" and payee.transfer_account_id == account_id


def test_import_skips_duplicates_and_reuses_payees(client):
    account_id = asyncio.run(client.create_account(name="Checking", type="checking", offbudget=False))
    record = ImportRecord(date="2024-01-02", amount=-1000, payee_name="Migros", notes="card")

    first = asyncio.run(client.import_transactions(account_id, [record, record]))
    again = asyncio.run(
        client.import_transactions(
            account_id, [record, ImportRecord(date="2024-01-03", amount=-500, payee_name="Migros")]
        )
    )

    assert len(first) == 1
    assert len(again) == 1
    txs = asyncio.run(client.get_transactions())
    assert [(t.date, t.amount, t.imported_payee) for t in txs] == [
        ("2024-01-02", -1000, "Migros"),
        ("2024-01-03", -500, "Migros"),
    ]
    assert len({t.payee for t in txs}) == 1


def test_transfer_is_mirrored_and_deleted_together(client):
    checking = asyncio.run(client.create_account(name="Checking", type="checking", offbudget=False))
    savings = asyncio.run(client.create_account(name="Savings", type="savings", offbudget=False))
    payees = {p.name: p.id for p in asyncio.run(client.get_payees())}

    [tx_id] = asyncio.run(
        client.import_transactions(
            checking,
            [ImportRecord(date="2024-01-05", amount=-5000, payee_name="Savings", payee=payees["Savings"])],
        )
    )

    txs = {t.account: t for t in asyncio.run(client.get_transactions())}
    assert txs[checking].id == tx_id
    assert txs[savings].amount == 5000
    assert txs[savings].payee == payees["Checking"]
    assert txs[checking].transfer_id == txs[savings].id
    assert txs[savings].transfer_id == tx_id

    asyncio.run(client.delete_transaction(tx_id))
    assert asyncio.run(client.get_transactions()) == []
    # Already gone
    asyncio.run(client.delete_transaction(tx_id))


def test_update_transaction_patches_known_fields(client):
    account_id = asyncio.run(client.create_account(name="Checking", type="checking", offbudget=False))
    group_id = asyncio.run(client.create_category_group(name="Food"))
    category_id = asyncio.run(client.create_category(name="Groceries", group_id=group_id, is_income=False))
    [tx_id] = asyncio.run(
        client.import_transactions(account_id, [ImportRecord(date="2024-01-02", amount=-1000, payee_name="Migros")])
    )

    asyncio.run(client.update_transaction(tx_id, {"category": category_id, "notes": "weekly"}))

    [tx] = asyncio.run(client.get_transactions())
    assert tx.category == category_id and tx.notes == "weekly"
    with pytest.raises(ExternalToolError, match="Unsupported"):
        asyncio.run(client.update_transaction(tx_id, {"cleared": True}))
    with pytest.raises(ExternalToolError, match="Unknown transaction"):
        asyncio.run(client.update_transaction("missing", {"notes": "x"}))


def test_delete_category_group_uncategorizes_transactions(client):
    account_id = asyncio.run(client.create_account(name="Checking", type="checking", offbudget=False))
    group_id = asyncio.run(client.create_category_group(name="Food"))
    category_id = asyncio.run(client.create_category(name="Groceries", group_id=group_id, is_income=False))
    asyncio.run(
        client.import_transactions(
            account_id,
            [ImportRecord(date="2024-01-02", amount=-1000, payee_name="Migros", category=category_id)],
        )
    )

    asyncio.run(client.delete_category_group(group_id))

    assert asyncio.run(client.get_categories()) == []
    assert [g.name for g in asyncio.run(client.get_category_groups())] == ["Income"]
    assert asyncio.run(client.get_transactions())[0].category is None


def test_budgets_are_isolated(tmp_path):
    url = bootstrap_sqlite_db(tmp_path / "shared.sqlite")
    a, b = SqlLedgerClient(database_url=url), SqlLedgerClient(database_url=url)
    asyncio.run(a.init("budget-a"))
    asyncio.run(b.init("budget-b"))

    asyncio.run(a.create_account(name="Checking", type="checking", offbudget=False))

    assert asyncio.run(b.get_accounts()) == []
    assert len(asyncio.run(b.get_category_groups())) == 1


def test_session_setup_and_import_over_sql(client):
    async def _run() -> list[dict]:
        session = await LedgerSession.open(client, "budget-1")
        await session.setup_categories(
            [Rule(name=STARTING_BALANCE, group="Income"), Rule(name="Groceries", group="Food")]
        )
        await session.setup_accounts(
            [AccountConfig(name="Checking", initial_balance=100), AccountConfig(name="Savings")]
        )
        await session.import_transactions(
            {
                "Checking": [
                    RawTransaction(date="2024-01-02", payee_name="Migros", amount=-1000, category="Groceries"),
                    RawTransaction(date="2024-01-03", payee_name="Savings", amount=-2000, transfer="Savings"),
                ]
            }
        )
        return session.named_transactions()

    rows = sorted(
        (t["account"], t["date"], t["amount"], t["payee_name"], t["category"], t["transfer"])
        for t in asyncio.run(_run())
    )

    assert rows == [
        ("Checking", "2019-01-01", 10000, STARTING_BALANCE, STARTING_BALANCE, None),
        ("Checking", "2024-01-02", -1000, "Migros", "Groceries", None),
        ("Checking", "2024-01-03", -2000, "Savings", None, "Savings"),
        ("Savings", "2024-01-03", 2000, "Checking", None, "Checking"),
    ]

import json
import textwrap

import pytest
from typer.testing import CliRunner

from bank_reconcile import cli
from tests.helpers.ledger_stub import InMemoryLedgerClient

runner = CliRunner()

CONFIG = """
sync_id = "budget-1"
categories = [{"name": "Groceries", "group": "Food", "filter": lambda d, text: "MIGROS" in text}]
accounts = [{"name": "Card", "folder": "card", "parser": "Credit Suisse Credit"}]
"""


@pytest.fixture()
def config_path(tmp_path):
    path = tmp_path / "budget.py"
    path.write_text(textwrap.dedent(CONFIG), encoding="utf-8")
    (tmp_path / "card").mkdir()
    (tmp_path / "card" / "jan.csv").write_text(
        "Transaction date,Description,Amount,Category\n15.01.2024,MIGROS ZH,45.20,\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture()
def ledger(monkeypatch) -> InMemoryLedgerClient:
    client = InMemoryLedgerClient()
    acct = client.seed_account("Card")
    client.seed_category("Groceries")
    migros = client.seed_payee("MIGROS ZH")
    client.seed_transaction(acct, date="2024-01-10", amount=-2000, payee=migros)
    monkeypatch.setattr(cli, "make_client", lambda: client)
    return client


def test_import_writes_file_next_to_config(config_path):
    result = runner.invoke(cli.app, ["--config", str(config_path), "import", "out.csv"])

    assert result.exit_code == 0, result.output
    out = config_path.parent.resolve() / "out.csv"
    assert f"Wrote {out}" in result.output
    assert "MIGROS ZH" in out.read_text(encoding="utf-8")


def test_import_into_ledger(config_path, ledger):
    result = runner.invoke(cli.app, ["-c", str(config_path), "import", "ledger", "-m", "2024-01"])

    assert result.exit_code == 0, result.output
    assert "Imported 1 transactions" in result.output
    [(account_id, [record])] = ledger.mutations("import_transactions")
    assert record.payee_name == "MIGROS ZH"
    assert ledger.shut_down


def test_import_asks_for_destination(config_path, monkeypatch):
    monkeypatch.setattr(cli, "ask", lambda message, default="": "asked.json")

    result = runner.invoke(cli.app, ["-c", str(config_path), "import", "--account", "Card"])

    assert result.exit_code == 0, result.output
    [row] = json.loads((config_path.parent / "asked.json").read_text(encoding="utf-8"))
    assert row["category"] == "Groceries"


def test_import_into_ledger_without_database_url(config_path):
    result = runner.invoke(cli.app, ["-c", str(config_path), "import", "ledger"])

    assert result.exit_code == 1
    assert "Error: LEDGER_DATABASE_URL is not set" in result.output


def test_invalid_month_is_reported(config_path):
    result = runner.invoke(cli.app, ["-c", str(config_path), "import", "out.json", "-m", "2024-13"])

    assert result.exit_code == 1
    assert "Error: Invalid month filter" in result.output


def test_config_with_wrong_extension(tmp_path):
    bad = tmp_path / "budget.json"
    bad.write_text("{}", encoding="utf-8")

    result = runner.invoke(cli.app, ["-c", str(bad), "setup"])

    assert result.exit_code == 1
    assert "Error: Invalid config file" in result.output


def test_setup_rebuilds_ledger(config_path, ledger):
    result = runner.invoke(cli.app, ["-c", str(config_path), "setup"])

    assert result.exit_code == 0, result.output
    assert "Budget set up" in result.output
    assert [args[0] for args in ledger.mutations("create_account")] == ["Card"]


def test_delete_transactions(config_path, ledger):
    result = runner.invoke(cli.app, ["-c", str(config_path), "delete"])

    assert result.exit_code == 0, result.output
    assert "Deleted 1 transactions" in result.output
    assert ledger.transactions == {}


def test_categorize_by_rules_when_no_file(config_path, ledger, monkeypatch):
    monkeypatch.setattr(cli, "confirm", lambda message="Continue?": True)

    result = runner.invoke(cli.app, ["-c", str(config_path), "categorize"])

    assert result.exit_code == 0, result.output
    assert "Trying categorization using the rules from the config file" in result.output
    assert "Updated 1 transactions" in result.output


def test_categorize_from_missing_file_format(config_path, ledger, tmp_path):
    reference = tmp_path / "reference.txt"
    reference.write_text("", encoding="utf-8")

    result = runner.invoke(cli.app, ["-c", str(config_path), "categorize", str(reference)])

    assert result.exit_code == 1
    assert "Invalid file format" in result.output
    assert ledger.shut_down


def test_export_uses_default_name_in_cwd(config_path, ledger, monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "ask", lambda message, default="": default)

    result = runner.invoke(cli.app, ["-c", str(config_path), "export"])

    assert result.exit_code == 0, result.output
    [row] = json.loads((tmp_path / "cwd" / "budget.json").read_text(encoding="utf-8"))
    assert row["payee_name"] == "MIGROS ZH" and row["account"] == "Card"


def test_dotenv_supplies_database_url(config_path, tmp_path):
    (tmp_path / "cwd" / ".env").write_text(
        f"LEDGER_DATABASE_URL=sqlite+pysqlite:///{tmp_path / 'env.sqlite'}\n", encoding="utf-8"
    )

    result = runner.invoke(cli.app, ["-c", str(config_path), "delete"])

    assert result.exit_code == 0, result.output
    assert "Deleted 0 transactions" in result.output
    assert (tmp_path / "env.sqlite").exists()

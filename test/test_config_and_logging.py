import json
import logging
from pathlib import Path

from shopledger.config import load_config
from shopledger.logging_config import JsonFormatter, parse_event


def test_home_override_places_database_and_logs(tmp_path: Path):
    config = load_config({"SHOPLEDGER_HOME": str(tmp_path / "shop"), "SHOPLEDGER_LOG_LEVEL": "debug"})

    assert config.db_path == tmp_path / "shop" / "ledger.db"
    assert config.logs_dir.is_dir()
    assert config.log_level == logging.DEBUG


def test_unknown_log_level_falls_back_to_info(tmp_path: Path):
    config = load_config({"SHOPLEDGER_HOME": str(tmp_path), "SHOPLEDGER_LOG_LEVEL": "chatty"})

    assert config.log_level == logging.INFO


def test_parse_event_splits_ledger_lines():
    assert parse_event("sale_created sale_id=INV000001 amount=231.00 status=Due") == {
        "event": "sale_created",
        "fields": {"sale_id": "INV000001", "amount": "231.00", "status": "Due"},
    }
    # values may carry spaces
    assert parse_event("command_failed command=pay error=Customer not found.")["fields"] == {
        "command": "pay",
        "error": "Customer not found.",
    }
    assert parse_event("Database ready") == {}
    assert parse_event("started") == {}


def test_json_formatter_emits_event_fields():
    record = logging.LogRecord(
        "shopledger.payments", logging.INFO, __file__, 1,
        "payment_recorded payment_id=%s amount=%.2f", ("PAY000001", 90.0), None,
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["logger"] == "shopledger.payments"
    assert payload["event"] == "payment_recorded"
    assert payload["fields"] == {"payment_id": "PAY000001", "amount": "90.00"}

import json

import pytest
from typer.testing import CliRunner

from libefris.cli import app
from libefris.config import get_config
from libefris.utils import dumps

from conftest import FIXTURES_DIR

runner = CliRunner()


def _text(result) -> str:
    """Console output with rich line wrapping undone."""
    return " ".join(result.stdout.split())


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, reset_logging):
    monkeypatch.setenv("LIBEFRIS_CONFIG_FILE", str(FIXTURES_DIR / "test_config.toml"))
    monkeypatch.setenv("LIBEFRIS_SECRETS_PATH", str(FIXTURES_DIR / "secrets"))
    monkeypatch.setenv("LIBEFRIS_LOGGING_CONFIG_FILE", str(FIXTURES_DIR / "logging_py.json"))
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_interfaces():
    result = runner.invoke(app, ["interfaces"])
    assert result.exit_code == 0
    assert "Registered Interfaces" in _text(result)
    assert "T109" in _text(result)
    assert "T130" in _text(result)


def test_verbose_flag():
    result = runner.invoke(app, ["-v", "interfaces"])
    assert result.exit_code == 0


def test_validate_accepts_a_valid_invoice():
    result = runner.invoke(app, ["messages", "validate", str(FIXTURES_DIR / "t109_invoice.json"), "-i", "T109"])
    assert result.exit_code == 0
    assert "T109 request is valid." in _text(result)


def test_validate_reports_violations(tmp_path, invoice):
    invoice["summary"]["itemCount"] = "4"
    payload = tmp_path / "invoice.json"
    payload.write_text(dumps(invoice))

    result = runner.invoke(app, ["messages", "validate", str(payload), "--interface", "T109"])
    assert result.exit_code == 1
    assert "item-count" in _text(result)


def test_validate_with_dictionary(tmp_path, invoice):
    invoice["basicInformation"]["currency"] = "XYZ"
    payload = tmp_path / "invoice.json"
    payload.write_text(dumps(invoice))
    args = ["messages", "validate", str(payload), "-i", "T109"]

    assert runner.invoke(app, args).exit_code == 0
    result = runner.invoke(app, [*args, "--dictionary", str(FIXTURES_DIR / "t115_dictionary.json")])
    assert result.exit_code == 1
    assert "dictionary" in _text(result)


def test_validate_with_category_tables():
    args = ["messages", "validate", str(FIXTURES_DIR / "t109_invoice.json"), "-i", "T109"]
    result = runner.invoke(
        app,
        [
            *args,
            "--commodity-categories",
            str(FIXTURES_DIR / "t123_commodity_categories.json"),
            "--excise-duties",
            str(FIXTURES_DIR / "t125_excise_duties.json"),
        ],
    )
    assert result.exit_code == 1
    assert "dictionary" in _text(result)
    assert "601" in _text(result)


def test_validate_credit_note_with_remain_details(tmp_path, credit_note):
    credit_note["goodsDetails"][0]["qty"] = "-2"
    payload = tmp_path / "credit_note.json"
    payload.write_text(dumps(credit_note))
    args = ["messages", "validate", str(payload), "-i", "T110"]

    assert runner.invoke(app, args).exit_code == 0
    result = runner.invoke(app, [*args, "--remain-details", str(FIXTURES_DIR / "t186_remain_details.json")])
    assert result.exit_code == 1
    assert "1434" in _text(result)


def test_validate_unknown_interface():
    result = runner.invoke(app, ["messages", "validate", str(FIXTURES_DIR / "t109_invoice.json"), "-i", "T999"])
    assert result.exit_code == 1
    assert "Unknown interface" in _text(result)


def test_validate_missing_file(tmp_path):
    result = runner.invoke(app, ["messages", "validate", str(tmp_path / "missing.json"), "-i", "T109"])
    assert result.exit_code == 1
    assert "cannot read" in _text(result)


@pytest.mark.parametrize(
    "args",
    [
        ["messages", "validate", str(FIXTURES_DIR / "t109_invoice.json"), "-i", "T109"],
        ["messages", "batch", str(FIXTURES_DIR / "t130_goods.json"), "-i", "T130"],
    ],
    ids=["validate", "batch"],
)
def test_missing_configured_dictionary(tmp_path, monkeypatch, args):
    config = (FIXTURES_DIR / "test_config.toml").read_text()
    missing = tmp_path / "missing_t115.json"
    config_file = tmp_path / "config.toml"
    config_file.write_text(config.replace('system_dictionary_file = ""', f'system_dictionary_file = "{missing}"'))
    monkeypatch.setenv("LIBEFRIS_CONFIG_FILE", str(config_file))
    get_config.cache_clear()

    result = runner.invoke(app, args)
    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "Error:" in _text(result)
    assert "missing_t115.json" in "".join(result.stdout.split())


def test_encode_plain_then_decode(tmp_path):
    result = runner.invoke(app, ["messages", "encode", str(FIXTURES_DIR / "t109_invoice.json"), "-i", "T109", "--plain"])
    assert result.exit_code == 0
    envelope = json.loads(result.stdout)
    assert envelope["data"]["dataDescription"] == {"codeType": "0", "encryptCode": "2", "zipCode": "0"}
    assert envelope["globalInfo"]["interfaceCode"] == "T109"
    assert envelope["globalInfo"]["tin"] == "1000000000"

    envelope_file = tmp_path / "envelope.json"
    envelope_file.write_text(result.stdout)
    decoded = runner.invoke(app, ["messages", "decode", str(envelope_file)])
    assert decoded.exit_code == 0
    assert '"interfaceCode": "T109"' in _text(decoded)
    assert '"legalName": "Kampala Grocers Ltd"' in _text(decoded)


def test_encode_uses_configured_flags():
    result = runner.invoke(app, ["messages", "encode", str(FIXTURES_DIR / "t109_invoice.json"), "-i", "T109"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["data"]["dataDescription"]["zipCode"] == "1"


def test_decode_empty_content(tmp_path):
    envelope_file = tmp_path / "envelope.json"
    envelope_file.write_text(json.dumps({"globalInfo": {"interfaceCode": "T101"}}))
    result = runner.invoke(app, ["messages", "decode", str(envelope_file)])
    assert result.exit_code == 0
    assert "Empty content." in _text(result)


def test_decode_rejects_a_broken_envelope(tmp_path):
    envelope_file = tmp_path / "envelope.json"
    envelope_file.write_text("{broken")
    result = runner.invoke(app, ["messages", "decode", str(envelope_file)])
    assert result.exit_code == 1
    assert "Envelope is not valid JSON" in _text(result)


def test_goods_batch():
    result = runner.invoke(app, ["messages", "batch", str(FIXTURES_DIR / "t130_goods.json"), "-i", "T130"])
    assert result.exit_code == 1
    assert "T130 results" in _text(result)


def test_invoice_batch(tmp_path):
    content = (FIXTURES_DIR / "t109_invoice.json").read_text()
    items = tmp_path / "batch.json"
    items.write_text(json.dumps([{"invoiceContent": content, "invoiceSignature": "c2lnbmF0dXJl"}]))

    result = runner.invoke(app, ["messages", "batch", str(items), "-i", "T129"])
    assert result.exit_code == 0
    assert "T129 results" in _text(result)


def test_batch_needs_a_batch_interface():
    result = runner.invoke(app, ["messages", "batch", str(FIXTURES_DIR / "t130_goods.json"), "-i", "T109"])
    assert result.exit_code == 1
    assert "is not a batch interface" in _text(result)


def test_batch_needs_an_array():
    result = runner.invoke(app, ["messages", "batch", str(FIXTURES_DIR / "t109_invoice.json"), "-i", "T130"])
    assert result.exit_code == 1
    assert "must hold a JSON array" in _text(result)


def test_stock_batch():
    result = runner.invoke(app, ["messages", "batch", str(FIXTURES_DIR / "t131_stock_in.json"), "-i", "T131"])
    assert result.exit_code == 1
    assert "T131 results" in _text(result)


def test_stock_batch_header_errors(tmp_path):
    stock = json.loads((FIXTURES_DIR / "t131_stock_in.json").read_text())
    stock["goodsStockIn"]["operationType"] = "103"
    items = tmp_path / "stock.json"
    items.write_text(json.dumps(stock))

    result = runner.invoke(app, ["messages", "batch", str(items), "-i", "T131"])
    assert result.exit_code == 1
    assert "T131 request" in _text(result)
    assert "choice" in _text(result)


def test_stock_batch_needs_an_object():
    result = runner.invoke(app, ["messages", "batch", str(FIXTURES_DIR / "t130_goods.json"), "-i", "T131"])
    assert result.exit_code == 1
    assert "must hold a JSON object" in _text(result)

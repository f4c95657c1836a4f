import copy

import pytest

from libefris.collaborators import StaticDictionary
from libefris.envelope.crypto import CryptographyProvider
from libefris.envelope.models import GlobalInfo
from libefris.errors import ValidationError
from libefris.messages.batch import (
    BatchItemResult,
    batch_content,
    batch_handlers,
    process_goods_batch,
    process_invoice_batch,
    process_stock_batch,
)
from libefris.utils import dumps, loads
from libefris.validation.validator import Validator

from conftest import load_fixture


@pytest.fixture()
def provider(rsa_key) -> CryptographyProvider:
    return CryptographyProvider(private_keys={"client": rsa_key}, public_keys={"server": rsa_key.public_key()})


def _item(document, provider=None) -> dict:
    content = dumps(document)
    signature = provider.sign(content.encode("utf-8"), "client") if provider else "unsigned"
    return {"invoiceContent": content, "invoiceSignature": signature}


def _issued(invoice) -> dict:
    answer = copy.deepcopy(invoice)
    answer["basicInformation"].update(
        invoiceNo="32000000001",
        antifakeCode="12345678901234567890",
        issuedDate="21/05/2024 10:15:30",
    )
    return answer


def test_each_invoice_gets_its_own_result(invoice):
    broken = copy.deepcopy(invoice)
    del broken["basicInformation"]["operator"]
    items = [_item(invoice), _item(broken), _item(invoice)]

    results = process_invoice_batch(items)

    assert [r.index for r in results] == [0, 1, 2]
    assert [r.return_code for r in results] == ["00", "99", "00"]
    assert [r.ok for r in results] == [True, False, True]
    assert results[0].payload == {
        "invoiceContent": items[0]["invoiceContent"],
        "invoiceReturnCode": "00",
        "invoiceReturnMessage": "",
    }
    assert results[1].return_message == "basicInformation.operator:cannot be empty"
    assert results[1].payload["invoiceContent"] == items[1]["invoiceContent"]


def test_malformed_items(invoice):
    results = process_invoice_batch(
        [
            "not an object",
            {"invoiceContent": "{oops", "invoiceSignature": "x"},
            {"invoiceContent": dumps(invoice)},
        ]
    )
    assert [r.return_code for r in results] == ["99", "99", "99"]
    assert results[0].return_message == "batch item must be an object"
    assert results[0].payload["invoiceContent"] == ""
    assert results[1].return_message.startswith("invoiceContent is not valid JSON")
    assert results[2].return_message == "invoiceSignature:cannot be empty"


def test_signatures_are_checked_with_a_provider(invoice, provider):
    good = _item(invoice, provider)
    forged = dict(good, invoiceSignature=provider.sign(b"other", "client"))

    results = process_invoice_batch([good, forged], crypto=provider)

    assert [r.return_code for r in results] == ["00", "99"]
    assert results[1].return_message == "invoiceSignature does not match invoiceContent"


def test_invoices_are_checked_against_the_sender(invoice):
    results = process_invoice_batch([_item(invoice)], context={"tin": "1999999999"})
    assert results[0].return_message == "sellerDetails.tin:must be the same as globalInfo tin"


def test_handler_answer_replaces_the_content(invoice):
    seen = []

    def upload(document, context):
        seen.append(context["tin"])
        return _issued(document)

    results = process_invoice_batch([_item(invoice)], handler=upload, context={"tin": "1000000000"})

    assert seen == ["1000000000"]
    assert results[0].ok
    issued = loads(results[0].payload["invoiceContent"])
    assert issued["basicInformation"]["invoiceNo"] == "32000000001"
    assert issued["basicInformation"]["issuedDate"] == "21/05/2024 10:15:30"


def test_handler_failures_stay_with_their_item(invoice):
    calls = []

    def upload(document, context):
        calls.append(document)
        if len(calls) == 1:
            raise RuntimeError("upstream down")
        return {}

    results = process_invoice_batch([_item(invoice), _item(invoice), _item(invoice)], handler=upload)

    assert len(calls) == 3
    assert results[0].return_code == "99"
    assert results[0].return_message == "upstream down"
    assert results[1].return_message.startswith("sellerDetails:cannot be empty")
    assert results[1].payload["invoiceContent"] == dumps(invoice)


def test_goods_batch_echoes_each_item():
    goods = load_fixture("t130_goods.json")
    results = process_goods_batch(goods)

    assert [r.return_code for r in results] == ["00", "99", "00"]
    assert results[0].payload == dict(goods[0], returnCode="", returnMessage="")
    assert results[1].payload["returnCode"] == "99"
    assert results[1].payload["returnMessage"] == "goodsName:cannot be empty"
    assert results[1].payload["goodsCode"] == "ST01"


def test_goods_batch_can_report_failures_only():
    results = process_goods_batch(load_fixture("t130_goods.json"), failures_only=True)
    assert [r.index for r in results] == [1]


def test_goods_items_must_be_objects():
    results = process_goods_batch(["Sugar"])
    assert results[0].return_message == "goods item must be an object"
    assert results[0].payload == {"returnCode": "99", "returnMessage": "goods item must be an object"}


def test_batch_content_is_the_payload_array():
    results = [
        BatchItemResult(0, "00", "", {"invoiceContent": "{}", "invoiceReturnCode": "00", "invoiceReturnMessage": ""}),
        BatchItemResult(1, "99", "bad", {"invoiceContent": "", "invoiceReturnCode": "99", "invoiceReturnMessage": "bad"}),
    ]
    assert loads(batch_content(results)) == [result.payload for result in results]


def test_batch_handlers_use_the_envelope_global_info(invoice, provider):
    handlers = batch_handlers(crypto=provider)
    global_info = GlobalInfo(interface_code="T129", tin="1000000000")

    reply = loads(handlers["T129"]([_item(invoice, provider)], global_info))
    assert reply == [{"invoiceContent": dumps(invoice), "invoiceReturnCode": "00", "invoiceReturnMessage": ""}]

    reply = loads(handlers["T130"](load_fixture("t130_goods.json"), GlobalInfo(interface_code="T130")))
    assert len(reply) == 3


def test_stock_items_get_their_own_return_codes():
    stock = load_fixture("t131_stock_in.json")
    results = process_stock_batch(stock)

    assert [r.return_code for r in results] == ["00", "00", "99"]
    assert results[0].payload == dict(stock["goodsStockInItem"][0], returnCode="", returnMessage="")
    assert results[2].return_message == (
        "goodsCode:cannot be empty when commodityGoodsId is empty; quantity:must be positive"
    )


def test_stock_items_use_the_dictionary():
    validator = Validator(dictionary=StaticDictionary.from_system_dictionary(load_fixture("t115_dictionary.json")))
    results = process_stock_batch(load_fixture("t131_stock_in.json"), validator=validator, failures_only=True)

    assert [(r.index, r.return_code) for r in results] == [(1, "601"), (2, "99")]
    assert results[0].payload["returnMessage"] == "measureUnit:Invalid field value!"
    assert results[0].payload["commodityGoodsId"] == "287700992426868373"


def test_stock_decrease_header_rules():
    stock = load_fixture("t131_stock_in.json")
    stock["goodsStockIn"]["operationType"] = "102"

    with pytest.raises(ValidationError) as excinfo:
        process_stock_batch(stock)
    assert sorted((v.field_path, v.rule) for v in excinfo.value.violations) == [
        ("goodsStockIn.adjustType", "required"),
        ("goodsStockIn.stockInType", "forbidden"),
        ("goodsStockIn.supplierName", "forbidden"),
        ("goodsStockIn.supplierTin", "forbidden"),
    ]


@pytest.mark.parametrize(
    "adjust_type, field, message",
    [
        ("101,104", "goodsStockIn.remarks", "cannot be empty"),
        ("101,109", "goodsStockIn.adjustType", "must be codes 101-105 separated by commas"),
    ],
)
def test_stock_adjust_types(adjust_type, field, message):
    stock = load_fixture("t131_stock_in.json")
    stock["goodsStockIn"] = {"operationType": "102", "adjustType": adjust_type}

    with pytest.raises(ValidationError) as excinfo:
        process_stock_batch(stock)
    assert [v.field_path for v in excinfo.value.violations] == [field]
    assert excinfo.value.violations[0].message.startswith(message)


def test_stock_needs_items():
    stock = load_fixture("t131_stock_in.json")
    stock["goodsStockInItem"] = []
    with pytest.raises(ValidationError, match="goodsStockInItem:must contain at least 1 item"):
        process_stock_batch(stock)

    stock["goodsStockInItem"] = ["SU01"]
    results = process_stock_batch(stock)
    assert results[0].payload == {"returnCode": "99", "returnMessage": "stock item must be an object"}


def test_batch_handlers_answer_stock_maintenance():
    handlers = batch_handlers(failures_only=True)
    reply = loads(handlers["T131"](load_fixture("t131_stock_in.json"), GlobalInfo(interface_code="T131")))
    assert [item["returnCode"] for item in reply] == ["99"]

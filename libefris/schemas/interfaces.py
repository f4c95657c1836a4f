"""Request and response descriptors of every supported interface."""

from __future__ import annotations

from .conditions import eq
from .rules import RESPONSE_DATE, RESPONSE_DATETIME, Direction, ObjectSchema, SchemaDescriptor, choice, date, obj, array, text
from .sections import (
    CREDIT_NOTE_APPLICATION,
    GOODS_STOCK_IN_RESULT,
    GOODS_STOCK_MAINTAIN,
    GOODS_UPLOAD,
    GOODS_UPLOAD_RESULT,
    INVOICE_REMAIN_RESPONSE,
    INVOICE_RESPONSE,
    INVOICE_UPLOAD,
)

REQUEST = Direction.REQUEST
RESPONSE = Direction.RESPONSE


def _invoice_no(max_length: int) -> ObjectSchema:
    return ObjectSchema("invoiceQuery", (text("invoiceNo", max_length, required=True),))


SERVER_TIME = ObjectSchema(
    "serverTime",
    (date("currentTime", RESPONSE_DATETIME, required=True),),
)

SYMMETRIC_KEY = ObjectSchema(
    "symmetricKey",
    (
        text("passowrdDes", required=True),
        text("sign", required=True),
    ),
)

CREDIT_NOTE_REFERENCE = ObjectSchema(
    "creditNoteReference",
    (text("referenceNo", 50, required=True),),
)

_VALUE_NAME = ObjectSchema(
    "dictionaryEntry",
    (
        text("value", 3, required=True),
        text("name", 200, required=True),
        text("description", 1024),
    ),
)

_PARAMETER = ObjectSchema(
    "dictionaryParameter",
    (
        text("value", required=True),
        text("name", 200, required=True),
    ),
)

SYSTEM_DICTIONARY = ObjectSchema(
    "systemDictionary",
    (
        obj("creditNoteMaximumInvoicingDays", _PARAMETER),
        array("currencyType", _VALUE_NAME),
        obj("creditNoteValuePercentLimit", _PARAMETER),
        array("rateUnit", _VALUE_NAME),
        obj(
            "format",
            ObjectSchema(
                "format",
                (
                    text("dateFormat", 20, required=True),
                    text("timeFormat", 20, required=True),
                ),
            ),
        ),
        array(
            "sector",
            ObjectSchema(
                "sector",
                (
                    text("code", 18, required=True),
                    text("name", 100, required=True),
                    text("parentClass", 18, required=True),
                    choice("requiredFill", "0", "1", required=True),
                ),
            ),
        ),
        array("payWay", _VALUE_NAME),
        array("countryCode", _VALUE_NAME),
        array(
            "exportRateUnit",
            ObjectSchema(
                "exportRateUnit",
                (
                    text("value", 3, required=True),
                    text("name", 200, required=True),
                    text("validPeriodFrom", required=True),
                    text("periodTo", required=True),
                    choice("status", "101", "102", required=True),
                ),
            ),
        ),
        array(
            "deliveryTerms",
            ObjectSchema(
                "deliveryTerms",
                (
                    text("value", 3, required=True),
                    text("name", 200, required=True),
                ),
            ),
        ),
    ),
)

BATCH_INVOICE = ObjectSchema(
    "batchInvoice",
    (
        text("invoiceContent", required=True),
        text("invoiceSignature", required=True),
    ),
)

BATCH_INVOICE_RESULT = ObjectSchema(
    "batchInvoiceResult",
    (
        text("invoiceContent", required=True),
        text("invoiceReturnCode", required=True),
        text("invoiceReturnMessage"),
    ),
)

COMMODITY_CATEGORY_ENTRY = ObjectSchema(
    "commodityCategory",
    (
        text("commodityCategoryCode", 18, required=True),
        text("parentCode", 18, required=True),
        text("commodityCategoryName", 200, required=True),
        text("commodityCategoryLevel", required=True),
        text("rate", required=True),
        choice("isLeafNode", "101", "102", required=True),
        choice("serviceMark", "101", "102", required=True),
        choice("isZeroRate", "101", "102", required=True),
        date("zeroRateStartDate", RESPONSE_DATE),
        date("zeroRateEndDate", RESPONSE_DATE),
        choice("isExempt", "101", "102", required=True),
        date("exemptRateStartDate", RESPONSE_DATE),
        date("exemptRateEndDate", RESPONSE_DATE),
        choice("enableStatusCode", "0", "1", required=True),
        choice("exclusion", "0", "1", "2", required=True),
    ),
)

EXCISE_DUTY_DETAIL = ObjectSchema(
    "exciseDutyDetail",
    (
        text("exciseDutyId", 20, required=True),
        choice("type", "101", "102", required=True),
        text("rate", required=True),
        text("unit", 3, required=eq("type", "102"), forbidden=eq("type", "101"), dictionary="rateUnit"),
        text("currency", 10),
    ),
)

EXCISE_DUTIES = ObjectSchema(
    "exciseDuties",
    (
        array(
            "exciseDutyList",
            ObjectSchema(
                "exciseDuty",
                (
                    text("id", 20, required=True),
                    text("exciseDutyCode", 20, required=True),
                    text("goodService", 500, required=True),
                    text("parentCode", 20, required=True),
                    text("rateText", 50, required=True),
                    choice("isLeafNode", "0", "1", required=True),
                    date("effectiveDate", RESPONSE_DATE, required=True),
                    array("exciseDutyDetailsList", EXCISE_DUTY_DETAIL),
                ),
            ),
            required=True,
        ),
    ),
)

EXPORT_STATUS = ObjectSchema(
    "exportStatus",
    (
        text("invoiceNo", 20, required=True),
        choice("documentStatusCode", "101", "102", required=True),
    ),
)


DESCRIPTORS: tuple[SchemaDescriptor, ...] = (
    SchemaDescriptor("T101", REQUEST, "Get server time", None),
    SchemaDescriptor("T101", RESPONSE, "Get server time", SERVER_TIME),
    SchemaDescriptor("T104", REQUEST, "Get symmetric key and signature information", None),
    SchemaDescriptor("T104", RESPONSE, "Get symmetric key and signature information", SYMMETRIC_KEY),
    SchemaDescriptor("T108", REQUEST, "Invoice details", _invoice_no(20), encrypted=True),
    SchemaDescriptor("T108", RESPONSE, "Invoice details", INVOICE_RESPONSE, encrypted=True),
    SchemaDescriptor("T109", REQUEST, "Invoice upload", INVOICE_UPLOAD, encrypted=True),
    SchemaDescriptor("T109", RESPONSE, "Invoice upload", INVOICE_RESPONSE, encrypted=True),
    SchemaDescriptor("T110", REQUEST, "Credit note application", CREDIT_NOTE_APPLICATION, encrypted=True),
    SchemaDescriptor("T110", RESPONSE, "Credit note application", CREDIT_NOTE_REFERENCE, encrypted=True),
    SchemaDescriptor("T115", REQUEST, "System dictionary update", None),
    SchemaDescriptor("T115", RESPONSE, "System dictionary update", SYSTEM_DICTIONARY, encrypted=True),
    SchemaDescriptor("T123", REQUEST, "Query commodity category", None),
    SchemaDescriptor("T123", RESPONSE, "Query commodity category", COMMODITY_CATEGORY_ENTRY, many=True),
    SchemaDescriptor("T125", REQUEST, "Query excise duty", None),
    SchemaDescriptor("T125", RESPONSE, "Query excise duty", EXCISE_DUTIES),
    SchemaDescriptor("T129", REQUEST, "Batch invoice upload", BATCH_INVOICE, many=True, encrypted=True),
    SchemaDescriptor("T129", RESPONSE, "Batch invoice upload", BATCH_INVOICE_RESULT, many=True, encrypted=True),
    SchemaDescriptor("T130", REQUEST, "Goods upload", GOODS_UPLOAD, many=True, encrypted=True),
    SchemaDescriptor("T130", RESPONSE, "Goods upload", GOODS_UPLOAD_RESULT, many=True, encrypted=True),
    SchemaDescriptor(
        "T131", REQUEST, "Goods stock maintain", GOODS_STOCK_MAINTAIN, encrypted=True, item_array="goodsStockInItem"
    ),
    SchemaDescriptor("T131", RESPONSE, "Goods stock maintain", GOODS_STOCK_IN_RESULT, many=True, encrypted=True),
    SchemaDescriptor("T186", REQUEST, "Invoice remain details", _invoice_no(20), encrypted=True),
    SchemaDescriptor("T186", RESPONSE, "Invoice remain details", INVOICE_REMAIN_RESPONSE, encrypted=True),
    SchemaDescriptor("T187", REQUEST, "Query export FDN status", _invoice_no(50), encrypted=True),
    SchemaDescriptor("T187", RESPONSE, "Query export FDN status", EXPORT_STATUS, encrypted=True),
)

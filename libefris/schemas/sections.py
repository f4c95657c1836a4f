"""Field tables of the invoice document and its sections.

Tables follow the interface catalogue: request tables carry the full set of
conditional rules, response tables are derived from them with
:func:`relaxed` and the response date formats. Near-duplicate tables stay
separate so each ``(interfaceCode, direction)`` pair keeps its own rules.
"""

from __future__ import annotations

from .. import return_codes
from ..collaborators import COMMODITY_CATEGORY, EXCISE_DUTY
from .checks import consecutive_order_numbers, discount_pairing, item_count_matches
from .conditions import (
    ALWAYS,
    NEVER,
    IsFirst,
    IsLast,
    Sign,
    absent,
    all_of,
    eq,
    matches,
    one_of,
    present,
    same,
)
from .rules import (
    DATE_ONLY,
    REQUEST_DATETIME,
    RESPONSE_DATETIME,
    Constraint,
    FieldRule,
    ObjectSchema,
    Precision,
    SignRule,
    array,
    choice,
    date,
    number,
    obj,
    signed,
    text,
)

EMAIL_PATTERN = r"[^@\s]+@[^@\s]+\.[^@\s]+"

INDUSTRY = "$.basicInformation.invoiceIndustryCode"
INDUSTRY_CODES = ("101", "102", "104", "105", "106", "107", "108", "109", "110", "111", "112")
DATA_SOURCES = ("101", "102", "103", "104", "105", "106", "107", "108")
TAX_CATEGORIES = ("01", "02", "03", "04", "05", "06", "07", "08", "09", "10", "11")
PAYMENT_MODES = ("101", "102", "103", "104", "105", "106", "107", "108", "109", "110")
DELIVERY_TERMS = ("CFR", "CIF", "CIP", "CPT", "DAP", "DDP", "DPU", "EXW", "FAS", "FCA", "FOB")
ATTACHMENT_TYPES = ("png", "doc", "pdf", "jpg", "txt", "docx", "xlsx", "cer", "crt", "der")

DISCOUNT_LINE = eq("discountFlag", "0")
DISCOUNTED_OR_PLAIN = one_of("discountFlag", "1", "2")
EXCISE = eq("exciseFlag", "1")
PER_UNIT_EXCISE = eq("exciseRule", "2")
DEEMED = eq("deemedFlag", "1")
DEEMED_NAME = r"(?s).+ \(deemed\)"
DEEMED_DISCOUNT_NAME = r"(?s).+ \(deemed\) \(discount\)"


def email(name: str, max_length: int = 50, **kw) -> FieldRule:
    return text(
        name,
        max_length,
        constraints=(Constraint(matches(name, EMAIL_PATTERN), "must be a valid e-mail address"),),
        **kw,
    )


def tin(name: str, **kw) -> FieldRule:
    return text(name, 20, min_length=10, **kw)


def relaxed(schema: ObjectSchema, name: str | None = None, *, checks=None) -> ObjectSchema:
    """Response variant of a request table.

    Static requiredness, lengths, choices and precision are kept; conditional
    requiredness, "must be empty" rules, sign rules and constraints are
    dropped, and request timestamps switch to the response format.
    """
    update = {}
    for rule in schema.fields:
        changes: dict = {}
        if not isinstance(rule.required, bool):
            changes["required"] = False
        if rule.forbidden is not NEVER:
            changes["forbidden"] = NEVER
        if rule.signs:
            changes["signs"] = ()
        if rule.constraints:
            changes["constraints"] = ()
        if rule.same_as_original or rule.within_original:
            changes["same_as_original"] = False
            changes["within_original"] = None
        if rule.date_format == REQUEST_DATETIME:
            changes["date_format"] = RESPONSE_DATETIME
        if rule.schema is not None:
            changes["schema"] = relaxed(rule.schema)
        if changes:
            update[rule.name] = changes
    derived = schema.derive(name, update=update, checks=() if checks is None else checks)
    return ObjectSchema(derived.name, derived.fields, derived.checks, original_ref=None)


SELLER_DETAILS = ObjectSchema(
    "sellerDetails",
    (
        tin(
            "tin",
            required=True,
            constraints=(Constraint(same("tin", "@tin"), "must be the same as globalInfo tin", when=present("@tin")),),
        ),
        text("ninBrn", 100),
        text("legalName", 256, required=True),
        text("businessName", 256),
        text("address", 500),
        text("mobilePhone", 30),
        text("linePhone", 30),
        email("emailAddress", required=True),
        text("placeOfBusiness", 500),
        text("referenceNo", 50, required=eq(INDUSTRY, "104")),
        text("branchId", 18),
        choice("isCheckReferenceNo", "0", "1"),
    ),
)

BASIC_INFORMATION = ObjectSchema(
    "basicInformation",
    (
        text("invoiceNo", 20, forbidden=ALWAYS),
        text("antifakeCode", 20, forbidden=ALWAYS),
        text("deviceNo", 20, required=True),
        date("issuedDate", required=True),
        text("operator", 150, required=True),
        text("currency", 10, required=True, dictionary="currencyType.name"),
        text("oriInvoiceId", 20, required=eq("invoiceType", "4"), forbidden=eq("invoiceType", "1")),
        choice("invoiceType", "1", "4", "5", required=True),
        choice("invoiceKind", "1", "2", required=True),
        choice("dataSource", *DATA_SOURCES, required=True),
        choice("invoiceIndustryCode", *INDUSTRY_CODES),
        choice("isBatch", "0", "1"),
        number("currencyRate", None, None),
    ),
)

BUYER_DETAILS = ObjectSchema(
    "buyerDetails",
    (
        tin("buyerTin", required=one_of("buyerType", "0", "3")),
        text("buyerNinBrn", 100),
        text("buyerPassportNum", 20),
        text("buyerLegalName", 256),
        text("buyerBusinessName", 256),
        text("buyerAddress", 500),
        email("buyerEmail"),
        text("buyerMobilePhone", 30),
        text("buyerLinePhone", 30),
        text("buyerPlaceOfBusi", 500),
        choice("buyerType", "0", "1", "2", "3", required=True),
        text("buyerCitizenship", 128),
        text("buyerSector", 200),
        text("buyerReferenceNo", 50),
        choice("nonResidentFlag", "0", "1"),
        choice("deliveryTermsCode", *DELIVERY_TERMS, required=eq(INDUSTRY, "102")),
    ),
)

BUYER_EXTEND = ObjectSchema(
    "buyerExtend",
    (
        text("propertyType", 50),
        text("district", 50),
        text("municipalityCounty", 50),
        text("divisionSubcounty", 50),
        text("town", 50),
        text("cellVillage", 60),
        date("effectiveRegistrationDate", DATE_ONLY),
        choice("meterStatus", "101", "102"),
    ),
)

GOODS_DETAILS = ObjectSchema(
    "goodsDetails",
    (
        text(
            "item",
            200,
            required=True,
            constraints=(
                Constraint(matches("item", DEEMED_NAME), "must end with ' (deemed)'", when=DEEMED & DISCOUNTED_OR_PLAIN),
                Constraint(
                    matches("item", DEEMED_DISCOUNT_NAME),
                    "must end with ' (deemed) (discount)'",
                    when=DEEMED & DISCOUNT_LINE,
                ),
            ),
        ),
        text("itemCode", 50, required=True),
        number(
            "qty", 12, 8, required=DISCOUNTED_OR_PLAIN, forbidden=DISCOUNT_LINE, signs=signed(Sign.POSITIVE)
        ),
        text("unitOfMeasure", 3, required=DISCOUNTED_OR_PLAIN, dictionary="rateUnit"),
        number(
            "unitPrice", 12, 8, required=DISCOUNTED_OR_PLAIN, forbidden=DISCOUNT_LINE, signs=signed(Sign.POSITIVE)
        ),
        number(
            "total",
            12,
            4,
            required=True,
            signs=(SignRule(Sign.POSITIVE, DISCOUNTED_OR_PLAIN), SignRule(Sign.NEGATIVE, DISCOUNT_LINE)),
        ),
        number("taxRate", 1, 4, required=True, allow_deemed=True),
        number(
            "tax",
            12,
            4,
            required=True,
            signs=(SignRule(Sign.NON_NEGATIVE, DISCOUNTED_OR_PLAIN), SignRule(Sign.NON_POSITIVE, DISCOUNT_LINE)),
        ),
        number(
            "discountTotal",
            12,
            4,
            forbidden=one_of("discountFlag", "0", "2"),
            signs=signed(Sign.NEGATIVE, eq("discountFlag", "1")),
        ),
        number("discountTaxRate", None, 5),
        number("orderNumber", None, 0, required=True, signs=signed(Sign.NON_NEGATIVE)),
        choice(
            "discountFlag",
            "0",
            "1",
            "2",
            required=True,
            constraints=(
                Constraint(~DISCOUNT_LINE, "the first line cannot be a discount line (0)", when=IsFirst()),
                Constraint(~eq("discountFlag", "1"), "the last line cannot be a discounted line (1)", when=IsLast()),
            ),
        ),
        choice("deemedFlag", "1", "2", required=True),
        choice(
            "exciseFlag",
            "1",
            "2",
            required=True,
        ),
        text("categoryId", 18, required=EXCISE, dictionary=EXCISE_DUTY),
        text("categoryName", 1024, required=EXCISE),
        text("goodsCategoryId", 18, required=True, dictionary=COMMODITY_CATEGORY),
        text("goodsCategoryName", 200),
        number("exciseRate", None, None, max_length=21, required=EXCISE, forbidden=eq("exciseFlag", "2"), allow_deemed=True),
        choice(
            "exciseRule",
            "1",
            "2",
            required=EXCISE,
            constraints=(
                Constraint(
                    eq("exciseRule", "1") ^ all_of(present("pack"), present("stick"), present("exciseCurrency")),
                    "rule 1 is calculated by rate; rule 2 needs pack, stick and exciseCurrency",
                    when=EXCISE,
                ),
            ),
        ),
        number("exciseTax", 12, 4, required=EXCISE, signs=signed(Sign.POSITIVE)),
        number("pack", 12, 8, required=PER_UNIT_EXCISE, signs=signed(Sign.POSITIVE)),
        number("stick", 12, 8, required=PER_UNIT_EXCISE, signs=signed(Sign.POSITIVE)),
        text("exciseUnit", 3, dictionary="rateUnit"),
        text("exciseCurrency", 10, required=PER_UNIT_EXCISE, dictionary="currencyType.name"),
        text("exciseRateName", 100),
        choice("vatApplicableFlag", "0", "1"),
        choice("deemedExemptCode", "101", "102"),
        text("vatProjectId", 18, required=eq("deemedFlag", "1")),
        text("vatProjectName", 300, required=eq("deemedFlag", "1")),
        text("hsCode", 50),
        text("hsName", 1000),
        number("totalWeight", None, None, required=eq(INDUSTRY, "102")),
        number("pieceQty", None, None, required=eq(INDUSTRY, "102")),
        text("pieceMeasureUnit", 3, required=eq(INDUSTRY, "102"), dictionary="rateUnit"),
    ),
)

AIRLINE_GOODS_DETAILS = GOODS_DETAILS.derive(
    "airlineGoodsDetails",
    drop=(
        "vatApplicableFlag",
        "deemedExemptCode",
        "vatProjectId",
        "vatProjectName",
        "hsCode",
        "hsName",
        "totalWeight",
        "pieceQty",
        "pieceMeasureUnit",
    ),
    update={
        "itemCode": {"required": False},
        "taxRate": {"required": False},
        "tax": {"required": False},
        "discountTaxRate": {"precision": Precision(2, 12)},
        "discountFlag": {"required": False},
        "deemedFlag": {"required": False},
        "exciseFlag": {"required": False},
        "goodsCategoryId": {"required": False},
    },
)

TAX_DETAILS = ObjectSchema(
    "taxDetails",
    (
        choice("taxCategoryCode", *TAX_CATEGORIES),
        number("netAmount", 16, 4, required=True, signs=signed(Sign.NON_NEGATIVE)),
        number("taxRate", 1, 4, required=True, allow_deemed=True),
        number("taxAmount", 16, 4, required=True, signs=signed(Sign.NON_NEGATIVE)),
        number("grossAmount", 16, 4, required=True, signs=signed(Sign.NON_NEGATIVE)),
        text("exciseUnit", 3),
        text("exciseCurrency", 10),
        text("taxRateName", 100, required=absent("taxCategoryCode")),
    ),
)

SUMMARY = ObjectSchema(
    "summary",
    (
        number("netAmount", 16, 4, required=True, signs=signed(Sign.NON_NEGATIVE)),
        number("taxAmount", 16, 4, required=True, signs=signed(Sign.NON_NEGATIVE)),
        number("grossAmount", 16, 4, required=True, signs=signed(Sign.POSITIVE)),
        number("itemCount", 4, 0, required=True),
        choice("modeCode", "0", "1", required=True),
        text("remarks", 500),
        text("qrCode", 500, required=eq("modeCode", "0")),
    ),
)

PAY_WAY = ObjectSchema(
    "payWay",
    (
        choice("paymentMode", *PAYMENT_MODES, required=True),
        number("paymentAmount", 16, None, required=True, signs=signed(Sign.NON_NEGATIVE)),
        text(
            "orderNumber",
            1,
            required=True,
            constraints=(Constraint(matches("orderNumber", "[a-z]"), "must be a lowercase letter"),),
        ),
    ),
)

EXTEND = ObjectSchema(
    "extend",
    (
        text("reason", 1024),
        choice("reasonCode", "101", "102", "103"),
    ),
)

IMPORT_SERVICES_SELLER = ObjectSchema(
    "importServicesSeller",
    (
        text("importBusinessName", 500, required=eq(INDUSTRY, "104")),
        email("importEmailAddress", min_length=6),
        text("importContactNumber", 30),
        text("importAddress", 500, required=eq(INDUSTRY, "104")),
        date("importInvoiceDate", DATE_ONLY, required=True),
        text("importAttachmentName", 256),
        text("importAttachmentContent"),
    ),
)

EDC_DETAILS = ObjectSchema(
    "edcDetails",
    (
        text("tankNo", 50, required=True),
        text("pumpNo", 50, required=True),
        text("nozzleNo", 50, required=True),
        text("controllerNo", 50),
        text("acquisitionEquipmentNo", 50),
        text("levelGaugeNo", 50),
        text("mvrn", 32),
        text("updateTimes", 2),
    ),
)

AGENT_ENTITY = ObjectSchema(
    "agentEntity",
    (
        tin("tin"),
        text("legalName", 256),
        text("businessName", 256),
        text("address", 500),
    ),
)

EXIST_INVOICE = ObjectSchema(
    "existInvoiceList",
    (
        text("invoiceNo", 20),
        text("antifakeCode", 20),
        text("qrCode", 500),
    ),
)

CREDIT_NOTE_EXTEND = ObjectSchema(
    "creditNoteExtend",
    (
        number("preGrossAmount", 16, 4),
        number("preTaxAmount", 16, 4),
        number("preNetAmount", 16, 4),
    ),
)

INVOICE_CHECKS = (item_count_matches(), consecutive_order_numbers(), discount_pairing())

INVOICE_UPLOAD = ObjectSchema(
    "invoice",
    (
        obj("sellerDetails", SELLER_DETAILS, required=True),
        obj("basicInformation", BASIC_INFORMATION, required=True),
        obj("buyerDetails", BUYER_DETAILS, required=True),
        obj("buyerExtend", BUYER_EXTEND),
        array("goodsDetails", GOODS_DETAILS, required=True, min_items=1),
        array("taxDetails", TAX_DETAILS, required=True, min_items=1),
        obj("summary", SUMMARY, required=True),
        array("payWay", PAY_WAY),
        obj("extend", EXTEND),
        obj("importServicesSeller", IMPORT_SERVICES_SELLER, required=eq(INDUSTRY, "104")),
        array("airlineGoodsDetails", AIRLINE_GOODS_DETAILS),
        obj("edcDetails", EDC_DETAILS, required=eq(INDUSTRY, "110")),
        obj("agentEntity", AGENT_ENTITY, required=eq("@agentType", "2")),
    ),
    checks=INVOICE_CHECKS,
)

# Invoice documents returned by T108/T109/T186
SELLER_DETAILS_RESPONSE = relaxed(SELLER_DETAILS).derive(
    add=(
        text("passportNumber", 20),
        text("branchName", 500),
        text("branchCode", 50),
    )
)

BASIC_INFORMATION_RESPONSE = relaxed(BASIC_INFORMATION).derive(
    update={
        "invoiceNo": {"required": True},
        "antifakeCode": {"required": True},
        "oriInvoiceId": {"max_length": 32},
    },
    add=(
        text("invoiceId", 32),
        text("oriInvoiceNo", 20),
        date("oriIssuedDate", RESPONSE_DATETIME),
        number("oriGrossAmount", 16, 4),
        choice("isInvalid", "0", "1"),
        choice("isRefund", "0", "1"),
    ),
)

GOODS_DETAILS_RESPONSE = relaxed(GOODS_DETAILS).derive(
    update={"discountFlag": {"required": False}},
    add=(text("invoiceItemId", 18),),
)

GOODS_DETAILS_REMAIN = GOODS_DETAILS_RESPONSE.derive(
    add=(
        number("remainQty", 12, 8, required=True),
        number("remainAmount", 12, 4, required=True),
    )
)

INVOICE_RESPONSE = ObjectSchema(
    "invoice",
    (
        obj("sellerDetails", SELLER_DETAILS_RESPONSE, required=True),
        obj("basicInformation", BASIC_INFORMATION_RESPONSE, required=True),
        obj("buyerDetails", relaxed(BUYER_DETAILS), required=True),
        obj("buyerExtend", BUYER_EXTEND),
        array("goodsDetails", GOODS_DETAILS_RESPONSE, required=True),
        array("taxDetails", relaxed(TAX_DETAILS), required=True),
        obj("summary", relaxed(SUMMARY), required=True),
        array("payWay", relaxed(PAY_WAY)),
        obj("extend", EXTEND),
        obj("importServicesSeller", relaxed(IMPORT_SERVICES_SELLER)),
        array("airlineGoodsDetails", relaxed(AIRLINE_GOODS_DETAILS)),
        obj("edcDetails", EDC_DETAILS),
        obj("agentEntity", AGENT_ENTITY),
        obj("creditNoteExtend", CREDIT_NOTE_EXTEND),
        array("existInvoiceList", EXIST_INVOICE),
    ),
    checks=(item_count_matches(),),
)

INVOICE_REMAIN_RESPONSE = INVOICE_RESPONSE.derive(
    update={"goodsDetails": {"schema": GOODS_DETAILS_REMAIN}},
)

# Credit note application (T110)
ORIGINAL_INVOICE = "$.oriInvoiceId"

CREDIT_NOTE_GOODS = ObjectSchema(
    "goodsDetails",
    (
        text("item", 200, required=True, same_as_original=True),
        text("itemCode", 50, required=True, same_as_original=True),
        number(
            "qty",
            12,
            8,
            required=True,
            signs=signed(Sign.NEGATIVE),
            within_original="remainQty",
            within_code=return_codes.QTY_EXCEEDS_REMAINING,
        ),
        text("unitOfMeasure", 3, required=True, dictionary="rateUnit", same_as_original=True),
        number("unitPrice", 12, 8, required=True, signs=signed(Sign.POSITIVE), same_as_original=True),
        number(
            "total",
            12,
            4,
            required=True,
            signs=signed(Sign.NEGATIVE),
            within_original="remainAmount",
            within_code=return_codes.AMOUNT_EXCEEDS_REMAINING,
        ),
        number("taxRate", 1, 4, required=True, allow_deemed=True, same_as_original=True),
        number("tax", 12, 4, required=True, signs=signed(Sign.NON_POSITIVE)),
        number("orderNumber", None, 0, required=True, same_as_original=True),
        choice("deemedFlag", "1", "2", required=True, same_as_original=True),
        choice("exciseFlag", "1", "2", required=True, same_as_original=True),
        text("categoryId", 18, same_as_original=True),
        text("categoryName", 1024, same_as_original=True),
        text("goodsCategoryId", 18, required=True, same_as_original=True),
        text("goodsCategoryName", 200, same_as_original=True),
        number("exciseRate", None, None, max_length=21, allow_deemed=True, same_as_original=True),
        choice("exciseRule", "1", "2", same_as_original=True),
        number("exciseTax", 12, 4, signs=signed(Sign.NEGATIVE)),
        number("pack", 12, 8, same_as_original=True),
        number("stick", 12, 8, same_as_original=True),
        text("exciseUnit", 3, same_as_original=True),
        text("exciseCurrency", 10, same_as_original=True),
        text("exciseRateName", 100, same_as_original=True),
        choice("vatApplicableFlag", "0", "1"),
    ),
    original_ref=ORIGINAL_INVOICE,
)

CREDIT_NOTE_TAX_DETAILS = TAX_DETAILS.derive(
    update={
        "netAmount": {"signs": signed(Sign.NON_POSITIVE)},
        "taxAmount": {"signs": signed(Sign.NON_POSITIVE)},
        "grossAmount": {"signs": signed(Sign.NON_POSITIVE)},
        "taxRateName": {"required": absent("taxCategoryCode") | one_of("taxCategoryCode", "05", "10")},
    },
)

CREDIT_NOTE_SUMMARY = SUMMARY.derive(
    drop=("remarks",),
    update={
        "netAmount": {"signs": signed(Sign.NON_POSITIVE)},
        "taxAmount": {"signs": signed(Sign.NON_POSITIVE)},
        "grossAmount": {"signs": signed(Sign.NEGATIVE)},
        "itemCount": {"precision": Precision(10, 0)},
        "qrCode": {"required": False},
    },
)

CREDIT_NOTE_BASIC_INFORMATION = ObjectSchema(
    "basicInformation",
    (
        text("operator", 150, required=True),
        choice("invoiceKind", "1", "2", required=True),
        choice("invoiceIndustryCode", *INDUSTRY_CODES),
        text("branchId", 18),
        number("currencyRate", None, None),
    ),
)

ATTACHMENT = ObjectSchema(
    "attachmentList",
    (
        text("fileName", 256),
        choice("fileType", *ATTACHMENT_TYPES),
        text("fileContent"),
    ),
)

CREDIT_NOTE_APPLICATION = ObjectSchema(
    "creditNoteApplication",
    (
        text(
            "oriInvoiceId",
            32,
            constraints=(Constraint(present("oriInvoiceNo"), "oriInvoiceNo is required with oriInvoiceId"),),
        ),
        text("oriInvoiceNo", 20, required=present("oriInvoiceId")),
        choice("reasonCode", "101", "102", "103", "104", "105", required=True),
        text("reason", 1024, required=eq("reasonCode", "105")),
        date("applicationTime", required=True),
        choice("invoiceApplyCategoryCode", "101", required=True),
        text("currency", 10, required=True, dictionary="currencyType.name"),
        text("contactName", 200),
        text("contactMobileNum", 30),
        email("contactEmail"),
        choice("source", *DATA_SOURCES, required=True),
        text("remarks", 500),
        text("sellersReferenceNo", 50),
        array("goodsDetails", CREDIT_NOTE_GOODS, required=True, min_items=1),
        array("taxDetails", CREDIT_NOTE_TAX_DETAILS, required=True, min_items=1),
        obj("summary", CREDIT_NOTE_SUMMARY, required=True),
        array("payWay", PAY_WAY),
        obj(
            "buyerDetails",
            BUYER_DETAILS.derive(
                drop=("nonResidentFlag", "deliveryTermsCode"),
                update={"buyerTin": {"required": eq("buyerType", "0")}},
            ),
        ),
        obj("importServicesSeller", IMPORT_SERVICES_SELLER),
        obj("basicInformation", CREDIT_NOTE_BASIC_INFORMATION),
        array("attachmentList", ATTACHMENT),
    ),
    checks=(item_count_matches(),),
)

# Goods upload (T130)
HAS_PIECE_UNIT = eq("havePieceUnit", "101")
NO_PIECE_UNIT = eq("havePieceUnit", "102")

CUSTOMS_UOM = ObjectSchema(
    "commodityGoodsExtendEntity",
    (
        text("customsMeasureUnit", 3, required=True, dictionary="exportRateUnit"),
        number("customsUnitPrice", 12, 8, required=True),
        number("packageScaledValueCustoms", 12, 8, required=True),
        number("customsScaledValue", 12, 8, required=True),
    ),
)

GOODS_OTHER_UNIT = ObjectSchema(
    "goodsOtherUnits",
    (
        text("otherUnit", 3, required=True, dictionary="rateUnit"),
        number("otherPrice", 12, 8),
        number("otherScaled", 12, 8),
        number("packageScaled", 12, 8),
    ),
)

GOODS_UPLOAD = ObjectSchema(
    "goods",
    (
        choice("operationType", "101", "102"),
        text("goodsName", 200, required=True),
        text("goodsCode", 50, required=True),
        text("measureUnit", 3, required=True, dictionary="rateUnit"),
        number("unitPrice", 12, 8, signs=signed(Sign.NON_NEGATIVE)),
        text("currency", 3, required=True, dictionary="currencyType"),
        text("commodityCategoryId", 18, required=True, dictionary=COMMODITY_CATEGORY),
        choice("haveExciseTax", "101", "102", required=True),
        text("description", 1024),
        number("stockPrewarning", 12, 8, max_length=24, signs=signed(Sign.NON_NEGATIVE)),
        text("pieceMeasureUnit", 3, required=HAS_PIECE_UNIT, forbidden=NO_PIECE_UNIT, dictionary="rateUnit"),
        choice("havePieceUnit", "101", "102", required=True),
        number("pieceUnitPrice", 12, 8, required=HAS_PIECE_UNIT, forbidden=NO_PIECE_UNIT),
        number("packageScaledValue", 12, 8, required=HAS_PIECE_UNIT, forbidden=NO_PIECE_UNIT),
        number("pieceScaledValue", 12, 8, required=HAS_PIECE_UNIT, forbidden=NO_PIECE_UNIT),
        text(
            "exciseDutyCode",
            20,
            required=eq("haveExciseTax", "101"),
            forbidden=eq("haveExciseTax", "102"),
            dictionary=EXCISE_DUTY,
        ),
        choice(
            "haveOtherUnit",
            "101",
            "102",
            constraints=(
                Constraint(eq("haveOtherUnit", "102"), "must be 102 when havePieceUnit is 102", when=NO_PIECE_UNIT),
            ),
        ),
        choice("goodsTypeCode", "101", "102"),
        obj("commodityGoodsExtendEntity", CUSTOMS_UOM),
        array("goodsOtherUnits", GOODS_OTHER_UNIT, forbidden=eq("haveOtherUnit", "102")),
    ),
)

GOODS_UPLOAD_RESULT = relaxed(GOODS_UPLOAD, "goodsResult").derive(
    add=(
        text("returnCode", 10),
        text("returnMessage", 1024),
    )
)

# Goods stock maintain (T131)
STOCK_INCREASE = eq("operationType", "101")
STOCK_DECREASE = eq("operationType", "102")
MANUFACTURED = eq("stockInType", "103")
ADJUST_TYPES = r"10[1-5](,10[1-5])*"
ADJUST_OTHERS = r"(.*,)?104(,.*)?"

GOODS_STOCK_IN = ObjectSchema(
    "goodsStockIn",
    (
        choice("operationType", "101", "102", required=True),
        text("supplierTin", 50, forbidden=STOCK_DECREASE | MANUFACTURED),
        text("supplierName", 100, required=STOCK_INCREASE & ~MANUFACTURED, forbidden=STOCK_DECREASE | MANUFACTURED),
        text(
            "adjustType",
            20,
            required=STOCK_DECREASE,
            forbidden=STOCK_INCREASE,
            constraints=(Constraint(matches("adjustType", ADJUST_TYPES), "must be codes 101-105 separated by commas"),),
        ),
        text("remarks", 1024, required=STOCK_DECREASE & matches("adjustType", ADJUST_OTHERS)),
        date("stockInDate", DATE_ONLY),
        choice("stockInType", "101", "102", "103", "104", required=STOCK_INCREASE, forbidden=STOCK_DECREASE),
        text("productionBatchNo", 50, forbidden=~MANUFACTURED),
        date("productionDate", DATE_ONLY, forbidden=~MANUFACTURED),
        text("branchId", 18),
        text("invoiceNo", 20),
        choice("isCheckBatchNo", "0", "1"),
        choice("rollBackIfError", "0", "1"),
        choice("goodsTypeCode", "101", "102"),
    ),
)

GOODS_STOCK_IN_ITEM = ObjectSchema(
    "goodsStockInItem",
    (
        text("commodityGoodsId", 18),
        text("goodsCode", 50, required=absent("commodityGoodsId")),
        text("measureUnit", 3, dictionary="rateUnit"),
        number("quantity", 12, 8, required=True, signs=signed(Sign.POSITIVE)),
        number("unitPrice", 12, 8, required=True, signs=signed(Sign.NON_NEGATIVE)),
        text("remarks", 1024),
        text("fuelTankId", 18),
        number("lossQuantity", 12, 8, signs=signed(Sign.NON_NEGATIVE)),
        number("originalQuantity", 12, 8, signs=signed(Sign.NON_NEGATIVE)),
    ),
)

GOODS_STOCK_MAINTAIN = ObjectSchema(
    "goodsStockMaintain",
    (
        obj("goodsStockIn", GOODS_STOCK_IN, required=True),
        array("goodsStockInItem", GOODS_STOCK_IN_ITEM, required=True, min_items=1),
    ),
)

GOODS_STOCK_IN_RESULT = relaxed(GOODS_STOCK_IN_ITEM, "goodsStockInResult").derive(
    add=(
        text("returnCode", 10),
        text("returnMessage", 1024),
    )
)

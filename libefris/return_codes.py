"""Return codes carried in ``returnStateInfo.returnCode``.

The service reports every outcome as a string code; the values below are
the ones this library produces itself. Codes received from the peer are
passed through unchanged.
"""

SUCCESS = "00"
SUCCESS_MESSAGE = "SUCCESS"

UNKNOWN_ERROR = "99"
INVALID_FIELD_VALUE = "601"
QTY_EXCEEDS_REMAINING = "1434"
AMOUNT_EXCEEDS_REMAINING = "1460"

DESCRIPTIONS: dict[str, str] = {
    SUCCESS: "SUCCESS",
    UNKNOWN_ERROR: "Unknown error",
    INVALID_FIELD_VALUE: "Invalid field value!",
    # reported by the service only
    "306": "Credit notes have already been issued for this invoice",
    QTY_EXCEEDS_REMAINING: "Quantity cannot exceed the remaining quantity of the original invoice line",
    AMOUNT_EXCEEDS_REMAINING: "Amount cannot exceed the remaining amount of the original invoice line",
}


def describe(code: str) -> str:
    return DESCRIPTIONS.get(code, f"Return code {code}")

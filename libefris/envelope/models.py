"""Pydantic models of the outer envelope: ``data``, ``globalInfo`` and ``returnStateInfo``."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .. import return_codes


class WireModel(BaseModel):
    """Base for envelope parts: wire names as aliases, extra keys kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DataDescription(WireModel):
    code_type: str = Field(default="0", alias="codeType")
    encrypt_code: str = Field(default="1", alias="encryptCode")
    zip_code: str = Field(default="0", alias="zipCode")


class Data(WireModel):
    content: str = ""
    signature: str = ""
    data_description: DataDescription = Field(default_factory=DataDescription, alias="dataDescription")


class OfflineInvoiceException(WireModel):
    error_code: Optional[str] = Field(default=None, alias="errorCode")
    error_msg: Optional[str] = Field(default=None, alias="errorMsg")


class ExtendField(WireModel):
    response_date_format: Optional[str] = Field(default=None, alias="responseDateFormat")
    response_time_format: Optional[str] = Field(default=None, alias="responseTimeFormat")
    reference_no: Optional[str] = Field(default=None, alias="referenceNo")
    operator_name: Optional[str] = Field(default=None, alias="operatorName")
    item_description: Optional[str] = Field(default=None, alias="itemDescription")
    currency: Optional[str] = None
    gross_amount: Optional[str] = Field(default=None, alias="grossAmount")
    tax_amount: Optional[str] = Field(default=None, alias="taxAmount")
    offline_invoice_exception: Optional[OfflineInvoiceException] = Field(default=None, alias="offlineInvoiceException")


class GlobalInfo(WireModel):
    app_id: Optional[str] = Field(default=None, alias="appId")
    version: Optional[str] = None
    data_exchange_id: Optional[str] = Field(default=None, alias="dataExchangeId")
    interface_code: str = Field(alias="interfaceCode")
    request_code: Optional[str] = Field(default=None, alias="requestCode")
    request_time: Optional[str] = Field(default=None, alias="requestTime")
    response_code: Optional[str] = Field(default=None, alias="responseCode")
    user_name: Optional[str] = Field(default=None, alias="userName")
    device_mac: Optional[str] = Field(default=None, alias="deviceMAC")
    device_no: Optional[str] = Field(default=None, alias="deviceNo")
    tin: Optional[str] = None
    brn: Optional[str] = None
    taxpayer_id: Optional[str] = Field(default=None, alias="taxpayerID")
    longitude: Optional[str] = None
    latitude: Optional[str] = None
    agent_type: Optional[str] = Field(default=None, alias="agentType")
    extend_field: Optional[ExtendField] = Field(default=None, alias="extendField")

    def as_context(self) -> dict[str, Any]:
        """Values reachable from condition ``@name`` references."""
        return self.to_wire()


class ReturnStateInfo(WireModel):
    return_code: str = Field(default="", alias="returnCode")
    return_message: str = Field(default="", alias="returnMessage")

    @classmethod
    def success(cls) -> "ReturnStateInfo":
        return cls(return_code=return_codes.SUCCESS, return_message=return_codes.SUCCESS_MESSAGE)

    @property
    def is_success(self) -> bool:
        return self.return_code == return_codes.SUCCESS


class Envelope(WireModel):
    data: Data = Field(default_factory=Data)
    global_info: GlobalInfo = Field(alias="globalInfo")
    return_state_info: ReturnStateInfo = Field(default_factory=ReturnStateInfo, alias="returnStateInfo")

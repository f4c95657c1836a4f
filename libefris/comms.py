import uuid
from datetime import datetime

from .collaborators import StaticDictionary
from .config import AppConfig
from .envelope.codec import EncryptionConfig, EnvelopeCodec
from .envelope.crypto import CryptographyProvider
from .envelope.models import GlobalInfo
from .schemas.rules import REQUEST_DATETIME
from .utils import load_json_file
from .validation.validator import Validator

# requestCode / responseCode of taxpayer-originated messages
TAXPAYER = "TP"
TAX_AUTHORITY = "TA"


def make_crypto_provider(config: AppConfig) -> CryptographyProvider:
    return CryptographyProvider.from_config(config.crypto)


def make_codec(config: AppConfig) -> EnvelopeCodec:
    codec = EnvelopeCodec(
        make_crypto_provider(config),
        symmetric_key=config.crypto.symmetric_key_ref,
        private_key=config.crypto.private_key_ref,
        peer_key=config.crypto.peer_key_ref,
        verify_signatures=config.codec.verify_signatures,
    )

    return codec


def make_encryption(config: AppConfig) -> EncryptionConfig:
    return EncryptionConfig(
        code_type=config.codec.code_type,
        encrypt_code=config.codec.encrypt_code,
        zip_code=config.codec.zip_code,
    )


def make_dictionary(config: AppConfig) -> StaticDictionary | None:
    """The configured T115, T123 and T125 snapshots merged into one dictionary, or ``None``."""
    files = config.dictionary
    tables = []
    if files.system_dictionary_file is not None:
        tables.append(StaticDictionary.from_system_dictionary(load_json_file(files.system_dictionary_file)))
    if files.commodity_categories_file is not None:
        tables.append(StaticDictionary.from_commodity_categories(load_json_file(files.commodity_categories_file)))
    if files.excise_duties_file is not None:
        tables.append(StaticDictionary.from_excise_duties(load_json_file(files.excise_duties_file)))
    if not tables:
        return None
    return tables[0].merged(*tables[1:])


def make_validator(config: AppConfig) -> Validator:
    return Validator(dictionary=make_dictionary(config))


def make_global_info(config: AppConfig, interface_code: str) -> GlobalInfo:
    client = config.client
    return GlobalInfo(
        app_id=client.app_id,
        version=client.version,
        data_exchange_id=uuid.uuid4().hex,
        interface_code=interface_code,
        request_code=TAXPAYER,
        request_time=datetime.now().strftime(REQUEST_DATETIME),
        response_code=TAX_AUTHORITY,
        user_name=client.user_name or None,
        device_mac=client.device_mac or None,
        device_no=client.device_no,
        tin=client.tin,
        brn=client.brn or None,
        taxpayer_id=client.taxpayer_id or None,
        longitude=client.longitude or None,
        latitude=client.latitude or None,
        agent_type=client.agent_type,
    )

import pytest

from libefris.collaborators import (
    CryptoProvider,
    DictionaryService,
    OriginalDocumentLookup,
    RemainDetailsLookup,
    StaticDictionary,
)
from libefris.envelope.crypto import CryptographyProvider

from conftest import load_fixture


def test_system_dictionary_tables():
    dictionary = StaticDictionary.from_system_dictionary(load_fixture("t115_dictionary.json"))

    assert "rateUnit" in dictionary.tables()
    assert "currencyType.name" in dictionary.tables()
    assert "format" not in dictionary.tables()
    assert dictionary.is_valid_code("rateUnit", "PP")
    assert not dictionary.is_valid_code("rateUnit", "XX")
    assert dictionary.is_valid_code("currencyType", "101")
    assert dictionary.is_valid_code("currencyType.name", "USD")
    assert not dictionary.is_valid_code("currencyType.name", "EUR")
    assert dictionary.is_valid_code("sector", "100")


def test_commodity_categories_skip_disabled_codes():
    dictionary = StaticDictionary.from_commodity_categories(load_fixture("t123_commodity_categories.json"))

    assert dictionary.tables() == ["commodityCategory"]
    assert dictionary.is_valid_code("commodityCategory", "50202306")
    assert not dictionary.is_valid_code("commodityCategory", "50161800")


def test_excise_duties_are_indexed_by_code():
    dictionary = StaticDictionary.from_excise_duties(load_fixture("t125_excise_duties.json"))

    assert dictionary.tables() == ["exciseDuty"]
    assert dictionary.is_valid_code("exciseDuty", "LED190100")
    assert not dictionary.is_valid_code("exciseDuty", "000024")
    assert StaticDictionary.from_excise_duties({}).tables() == ["exciseDuty"]


def test_merged_dictionaries():
    system = StaticDictionary.from_system_dictionary(load_fixture("t115_dictionary.json"))
    categories = StaticDictionary.from_commodity_categories(load_fixture("t123_commodity_categories.json"))
    merged = system.merged(categories, StaticDictionary({"rateUnit": ["KG"]}))

    assert "commodityCategory" in merged.tables()
    assert "currencyType.name" in merged.tables()
    assert merged.is_valid_code("rateUnit", "KG")
    assert not merged.is_valid_code("rateUnit", "PP")
    assert "commodityCategory" not in system.tables()


def test_unknown_tables_are_not_enforced():
    dictionary = StaticDictionary({"rateUnit": ["101"]})
    assert dictionary.is_valid_code("exportRateUnit", "anything")
    assert not dictionary.is_valid_code("rateUnit", "102")


def test_codes_compare_as_text():
    dictionary = StaticDictionary({"payWay": [101, 102]})
    assert dictionary.is_valid_code("payWay", "101")


def test_in_memory_collaborators_satisfy_their_protocols():
    assert isinstance(StaticDictionary(), DictionaryService)
    assert isinstance(RemainDetailsLookup(), OriginalDocumentLookup)
    assert isinstance(CryptographyProvider(), CryptoProvider)


def test_remain_details_from_several_invoices():
    first = load_fixture("t186_remain_details.json")
    second = {"basicInformation": {"invoiceId": "3200000000002"}, "goodsDetails": [{"orderNumber": 0, "item": "Tea"}]}
    lookup = RemainDetailsLookup.from_remain_details(first, second)

    assert len(lookup) == 3
    assert lookup.fetch_original_line("3200000000002", "0") == {"orderNumber": 0, "item": "Tea"}


def test_category_tables_need_the_response_shape():
    with pytest.raises(ValueError, match="T123"):
        StaticDictionary.from_commodity_categories({"commodityCategoryCode": "50202306"})
    with pytest.raises(ValueError, match="T125"):
        StaticDictionary.from_excise_duties([])

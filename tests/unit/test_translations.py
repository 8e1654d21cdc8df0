"""Tests for catalog translation tables"""

from topobus.parsers.translations import (
    attr_value_localized,
    build_translations,
    lookup_translation_key,
    select_language_order,
    strip_prefix,
)
from topobus.parsers.xml_utils import parse_xml

PREFIX = "M-0083_A-1_"

CATALOG_XML = """<KNX xmlns="http://knx.org/xml/project/21">
  <ComObject Id="M-0083_A-1_O-1" Text="Switch" Name="Object 1" FunctionText="On/Off" />
  <ComObject Id="M-0083_A-1_O-2" Text="Dim" />
  <Languages>
    <Language Identifier="en-US">
      <TranslationUnit RefId="M-0083_A-1">
        <TranslationElement RefId="M-0083_A-1_O-1">
          <Translation AttributeName="Text" Text="Switching" />
          <Translation AttributeName="Name" Text="Channel object" />
        </TranslationElement>
      </TranslationUnit>
    </Language>
    <Language Identifier="fr-FR">
      <TranslationUnit RefId="M-0083_A-1">
        <TranslationElement RefId="M-0083_A-1_O-1">
          <Translation AttributeName="Text" Text="Commutation" />
          <Translation AttributeName="FunctionText" Text="  " />
        </TranslationElement>
      </TranslationUnit>
    </Language>
    <Language Identifier="de-DE">
      <TranslationUnit RefId="M-0083_A-1">
        <TranslationElement RefId="M-0083_A-1_O-1">
          <Translation AttributeName="Text" Text="Schalten" />
        </TranslationElement>
      </TranslationUnit>
    </Language>
  </Languages>
</KNX>
"""


class TestLanguageOrder:

    def test_preferred_then_fallbacks_then_rest(self):
        identifiers = ["it-IT", "de-DE", "fr-FR", "en-US", "nl-NL"]
        assert select_language_order(identifiers, "nl") == ["nl-NL", "en-US", "fr-FR", "de-DE", "it-IT"]

    def test_case_insensitive_prefix(self):
        assert select_language_order(["de-DE", "en-US"], "DE")[0] == "de-DE"

    def test_no_preference(self):
        assert select_language_order(["de-DE", "fr-FR", "en-US"]) == ["en-US", "fr-FR", "de-DE"]


class TestTranslations:

    def test_preferred_language_wins_and_falls_back(self):
        doc = parse_xml(CATALOG_XML)
        table = build_translations(doc, PREFIX, "fr")
        obj = doc.first("ComObject")

        assert attr_value_localized(obj, "Text", table, PREFIX) == "Commutation"
        # only English provides a Name translation
        assert attr_value_localized(obj, "Name", table, PREFIX) == "Channel object"

    def test_blank_translation_uses_inline_value(self):
        doc = parse_xml(CATALOG_XML)
        table = build_translations(doc, PREFIX, "fr")
        obj = doc.first("ComObject")
        assert attr_value_localized(obj, "FunctionText", table, PREFIX) == "On/Off"

    def test_default_order_prefers_english(self):
        doc = parse_xml(CATALOG_XML)
        table = build_translations(doc, PREFIX)
        assert table["O-1"]["Text"] == "Switching"

    def test_untranslated_element_uses_inline_value(self):
        doc = parse_xml(CATALOG_XML)
        table = build_translations(doc, PREFIX, "de")
        dim = list(doc.iter_elements("ComObject"))[1]
        assert attr_value_localized(dim, "Text", table, PREFIX) == "Dim"
        assert attr_value_localized(None, "Text", table, PREFIX) is None

    def test_document_without_languages(self):
        assert build_translations(parse_xml("<KNX><ComObject Id='O-1' /></KNX>")) == {}

    def test_lookup_translation_key(self):
        table = {"P-1": {"Name": "Delay"}, "P-2": {"Text": "Mode", "Name": "mode"}}
        assert lookup_translation_key("P-1", table) == "Delay"
        assert lookup_translation_key("P-2", table) == "Mode"
        assert lookup_translation_key("P-3", table) is None

    def test_strip_prefix(self):
        assert strip_prefix("M-0083_A-1_O-1", PREFIX) == "O-1"
        assert strip_prefix("O-1", PREFIX) == "O-1"

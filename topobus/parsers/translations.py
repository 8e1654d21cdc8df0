"""Translation tables for catalog documents.

Manufacturer documents carry their texts in a default language on the
element itself and in ``Languages/Language/TranslationUnit`` blocks:

    <Language Identifier="de-DE">
      <TranslationUnit RefId="M-0083_A-0012-10-ABCD">
        <TranslationElement RefId="M-0083_A-0012-10-ABCD_O-1">
          <Translation AttributeName="Text" Text="Schalten" />

``build_translations`` flattens these into ``{element key: {attribute: text}}``
for one language preference order.
"""
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from topobus.parsers.xml_utils import XmlDocument, attr_value, iter_children, iter_descendants

logger = logging.getLogger(__name__)

FALLBACK_LANGUAGES = ("en", "fr", "de")

TranslationTable = Dict[str, Dict[str, str]]


def strip_prefix(value: str, prefix: str) -> str:
    if prefix and value.startswith(prefix):
        return value[len(prefix):]
    return value


def select_language_order(identifiers: List[str], preferred_language: Optional[str] = None) -> List[str]:
    """
    Order available language identifiers by preference.

    The preferred language comes first, then en, fr and de, then every
    remaining identifier in document order. Matching is a case-insensitive
    prefix match, so ``"de"`` selects ``"de-DE"``.

    Example:
        >>> select_language_order(["de-DE", "en-US", "it-IT"], "it")
        ['it-IT', 'en-US', 'de-DE']
    """
    preferred = []
    if preferred_language:
        cleaned = preferred_language.strip().lower()
        if cleaned:
            preferred.append(cleaned)
    for fallback in FALLBACK_LANGUAGES:
        if fallback not in preferred:
            preferred.append(fallback)

    ordered = []
    for pref in preferred:
        for identifier in identifiers:
            if identifier.lower().startswith(pref) and identifier not in ordered:
                ordered.append(identifier)
    for identifier in identifiers:
        if identifier not in ordered:
            ordered.append(identifier)
    return ordered


def _collect_language(language: ET.Element, prefix: str) -> TranslationTable:
    table: TranslationTable = {}
    for unit in iter_descendants(language, ["TranslationUnit"]):
        for element in iter_children(unit, "TranslationElement"):
            ref_id = attr_value(element, "RefId")
            if ref_id is None:
                continue
            key = strip_prefix(ref_id, prefix)
            for translation in iter_children(element, "Translation"):
                attribute = attr_value(translation, "AttributeName")
                text = translation.get("Text", "")
                if attribute is None or not text.strip():
                    continue
                table.setdefault(key, {})[attribute] = text
    return table


def build_translations(doc: XmlDocument, prefix: str = "", preferred_language: Optional[str] = None) -> TranslationTable:
    """
    Build the translation table of a document.

    Args:
        doc: Parsed catalog document
        prefix: Id prefix stripped from every ``RefId`` (e.g. ``"M-0083_A-0012_"``)
        preferred_language: Language code to prefer, e.g. ``"de"``

    Returns:
        Mapping of element key to attribute translations. For each attribute
        the first language in preference order with a non-empty text wins.
    """
    languages: Dict[str, ET.Element] = {}
    for language in doc.iter_elements("Language"):
        identifier = attr_value(language, "Identifier")
        if identifier is not None and identifier not in languages:
            languages[identifier] = language

    table: TranslationTable = {}
    if not languages:
        return table

    order = select_language_order(list(languages), preferred_language)
    logger.debug(f"Translation language order: {', '.join(order)}")
    for identifier in order:
        for key, attributes in _collect_language(languages[identifier], prefix).items():
            entry = table.setdefault(key, {})
            for attribute, text in attributes.items():
                entry.setdefault(attribute, text)
    return table


def translated_attr(element: ET.Element, name: str, translations: TranslationTable, prefix: str = "") -> Optional[str]:
    """Translation of an attribute only, without the inline fallback."""
    element_id = element.get("Id", "")
    if not element_id:
        return None
    text = translations.get(strip_prefix(element_id, prefix), {}).get(name)
    if text is None:
        return None
    return text.strip() or None


def attr_value_localized(element: Optional[ET.Element], name: str, translations: TranslationTable, prefix: str = "") -> Optional[str]:
    """
    Localized attribute value.

    Consults the translation table first and falls back to the element's
    own (trimmed) attribute when there is no usable translation.
    """
    if element is None:
        return None
    return translated_attr(element, name, translations, prefix) or attr_value(element, name)


def lookup_translation_key(key: str, translations: TranslationTable) -> Optional[str]:
    """Text, else Name translation of a raw key."""
    entry = translations.get(key, {})
    for attribute in ("Text", "Name"):
        text = entry.get(attribute, "").strip()
        if text:
            return text
    return None

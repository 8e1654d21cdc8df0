"""Parameter definitions and device configuration.

Application programs define ``Parameter`` and ``ParameterType`` elements and
reference them through ``ParameterRef``. A device instance stores its chosen
values as ``ParameterInstanceRef`` elements pointing at those references.
"""
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple

from topobus.ets_helpers import short_id
from topobus.models import DeviceConfigEntry
from topobus.models.catalog import AppProgram, ParameterDef, ParameterRefDef, ParameterTypeDef
from topobus.parsers.translations import (
    TranslationTable,
    attr_value_localized,
    lookup_translation_key,
    strip_prefix,
    translated_attr,
)
from topobus.parsers.xml_utils import (
    XmlDocument,
    attr_value,
    find_child_element,
    iter_children,
    iter_descendants,
    local_name,
    parse_int,
)

logger = logging.getLogger(__name__)


def parse_parameter_definitions(doc: XmlDocument, prefix: str, translations: TranslationTable) -> Dict[str, ParameterDef]:
    parameters = {}
    for param in doc.iter_elements("Parameter"):
        param_id = attr_value(param, "Id")
        if param_id is None:
            continue
        type_ref = attr_value(param, "ParameterType")
        key = strip_prefix(param_id, prefix)
        parameters[key] = ParameterDef(
            id=key,
            name=attr_value_localized(param, "Name", translations, prefix),
            text=attr_value_localized(param, "Text", translations, prefix),
            parameter_type=strip_prefix(type_ref, prefix) if type_ref else None,
        )
    return parameters


def parse_parameter_types(doc: XmlDocument, prefix: str, translations: TranslationTable) -> Dict[str, ParameterTypeDef]:
    """
    Parse ``ParameterType`` elements.

    ``TypeRestriction`` children make an enumeration (value -> label map),
    ``TypeNumber`` children a numeric type with bit width and limits.
    """
    types = {}
    for param_type in doc.iter_elements("ParameterType"):
        type_id = attr_value(param_type, "Id")
        if type_id is None:
            continue
        key = strip_prefix(type_id, prefix)
        definition = ParameterTypeDef(
            id=key,
            name=attr_value_localized(param_type, "Name", translations, prefix),
        )

        restriction = find_child_element(param_type, "TypeRestriction")
        number = find_child_element(param_type, "TypeNumber")
        if restriction is not None:
            definition.kind = "Enum"
            definition.base = attr_value(restriction, "Base")
            definition.size_in_bit = parse_int(restriction.get("SizeInBit"))
            for entry in iter_children(restriction, "Enumeration"):
                value = attr_value(entry, "Value")
                if value is None:
                    continue
                text = attr_value_localized(entry, "Text", translations, prefix)
                if text:
                    definition.enum_values[value] = text
        elif number is not None:
            definition.kind = "Number"
            definition.size_in_bit = parse_int(number.get("SizeInBit"))
            definition.min_inclusive = parse_int(number.get("minInclusive"))
            definition.max_inclusive = parse_int(number.get("maxInclusive"))
            definition.number_type = attr_value(number, "Type")

        types[key] = definition
    return types


def parse_parameter_refs(doc: XmlDocument, prefix: str, translations: TranslationTable) -> Dict[str, ParameterRefDef]:
    refs = {}
    for param_ref in doc.iter_elements("ParameterRef"):
        ref_key = attr_value(param_ref, "Id")
        ref_id = attr_value(param_ref, "RefId")
        if ref_key is None or ref_id is None:
            continue
        key = strip_prefix(ref_key, prefix)
        refs[key] = ParameterRefDef(
            id=key,
            ref_id=strip_prefix(ref_id, prefix),
            name=attr_value_localized(param_ref, "Name", translations, prefix),
            text=attr_value_localized(param_ref, "Text", translations, prefix),
            value=attr_value(param_ref, "Value"),
            tag=attr_value(param_ref, "Tag"),
            display_order=parse_int(param_ref.get("DisplayOrder")),
        )
    return refs


def _container_label(element: ET.Element, translations: TranslationTable, prefix: str) -> Optional[str]:
    return (
        translated_attr(element, "Text", translations, prefix)
        or translated_attr(element, "Name", translations, prefix)
        or attr_value(element, "Text")
        or attr_value(element, "Name")
    )


def _resolve_param_ref_title(param_ref_id: str, translations: TranslationTable, prefix: str) -> Optional[str]:
    key = strip_prefix(param_ref_id, prefix)
    title = lookup_translation_key(key, translations)
    if title is None and "_R-" in key:
        title = lookup_translation_key(key.split("_R-", 1)[0], translations)
    return title


def _block_label(element: ET.Element, translations: TranslationTable, prefix: str) -> Optional[str]:
    label = (
        translated_attr(element, "Text", translations, prefix)
        or translated_attr(element, "Name", translations, prefix)
    )
    if label is None and element.get("ParamRefId"):
        label = _resolve_param_ref_title(element.get("ParamRefId"), translations, prefix)
    if label is None:
        label = attr_value(element, "Text") or attr_value(element, "Name")
    return label


def build_context_path(doc: XmlDocument, element: ET.Element, translations: TranslationTable, prefix: str) -> Optional[str]:
    """
    Build the UI location of a parameter, e.g. ``"Channel: A / Block: Timing"``.

    Walks the ``Channel``, ``ParameterBlock`` and ``Module`` ancestors from
    the outermost inwards.
    """
    parts = []
    for ancestor in doc.ancestors(element):
        tag = local_name(ancestor.tag)
        if tag == "Channel":
            label = _container_label(ancestor, translations, prefix)
            if label:
                parts.append(f"Channel: {label}")
        elif tag == "ParameterBlock":
            label = _block_label(ancestor, translations, prefix)
            if label:
                parts.append(f"Block: {label}")
        elif tag == "Module":
            label = _container_label(ancestor, translations, prefix)
            if label:
                parts.append(f"Module: {label}")
    if not parts:
        return None
    parts.reverse()
    return " / ".join(parts)


def parse_parameter_ref_context(doc: XmlDocument, prefix: str, translations: TranslationTable) -> Dict[str, str]:
    """Context path for every ``ParameterRefRef`` in the dynamic section."""
    contexts = {}
    for ref_ref in doc.iter_elements("ParameterRefRef"):
        ref_id = attr_value(ref_ref, "RefId")
        if ref_id is None:
            continue
        context = build_context_path(doc, ref_ref, translations, prefix)
        if context:
            contexts.setdefault(strip_prefix(ref_id, prefix), context)
    return contexts


def _strip_parameter_ref_id(app: Optional[AppProgram], ref_id: str) -> str:
    if app is not None:
        return strip_prefix(ref_id, app.prefix)
    return short_id(ref_id)


def resolve_parameter_details(app: Optional[AppProgram], ref_id: str, raw_value: str
                              ) -> Tuple[str, Optional[str], Optional[str], Optional[str]]:
    """
    Resolve a parameter instance to display details.

    Args:
        app: Application program of the device, if loaded
        ref_id: ``ParameterInstanceRef/@RefId``
        raw_value: Stored value

    Returns:
        Tuple of (name, value label, parameter type name, context path)
    """
    fallback_name = short_id(ref_id)
    name = fallback_name
    value_label = None
    parameter_type = None
    context = None

    if app is None:
        return name, value_label, parameter_type, context

    ref_key = strip_prefix(ref_id, app.prefix)
    param_ref = app.parameter_refs.get(ref_key) or app.parameter_refs.get(short_id(ref_key))

    param_id = None
    if param_ref is not None:
        param_id = param_ref.ref_id
        name = param_ref.text or param_ref.name or name

    context = app.parameter_ref_context.get(ref_key)

    param_def = (app.parameters.get(param_id) if param_id else None) or app.parameters.get(short_id(ref_key))
    if param_def is not None:
        if name == fallback_name:
            name = param_def.text or param_def.name or name
        type_ref = param_def.parameter_type
        if type_ref:
            type_def = app.parameter_types.get(type_ref)
            parameter_type = (type_def.name if type_def else None) or type_ref
            if type_def is not None and type_def.kind == "Enum":
                value_label = type_def.enum_values.get(raw_value)

    return name, value_label, parameter_type, context


def extract_device_configuration(device: ET.Element, app: Optional[AppProgram]
                                 ) -> Tuple[Dict[str, str], List[DeviceConfigEntry]]:
    """
    Collect parameter and property values of a device instance.

    Returns:
        Tuple of (name -> display value mapping, detailed entries)
    """
    configuration = {}
    entries = []

    for param_ref in iter_descendants(device, ["ParameterInstanceRef"]):
        ref_id = param_ref.get("RefId", "")
        value = param_ref.get("Value", "")
        if not ref_id or not value:
            continue

        name, value_label, parameter_type, context = resolve_parameter_details(app, ref_id, value)
        display_value = value_label if value_label is not None else value

        configuration[name] = display_value
        entries.append(DeviceConfigEntry(
            name=name,
            value=display_value,
            value_raw=value,
            value_label=value_label,
            parameter_type=parameter_type,
            context=context,
            ref_id=_strip_parameter_ref_id(app, ref_id),
            source="Parameter",
        ))

    for prop in iter_descendants(device, ["Property"]):
        prop_id = prop.get("Id", "")
        value = prop.get("Value", "")
        if not value:
            continue
        name = f"Property {prop_id}"
        configuration[name] = value
        entries.append(DeviceConfigEntry(
            name=name,
            value=value,
            ref_id=prop_id or None,
            source="Property",
        ))

    return configuration, entries

"""Communication object templates and their resolution.

A ``ComObjectInstanceRef`` of a device points at a ``ComObjectRef`` of the
application program, which in turn points at a ``ComObject`` template.
Values are taken from the reference first and from the template second;
flags fall back bit by bit.

Objects inside modules additionally get ``{{argument}}`` placeholders in
their texts substituted and their number shifted by a module dependent base
number.
"""
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from topobus.ets_helpers import parse_flag
from topobus.models.catalog import AppProgram, ComObjectDef, ComObjectRefDef, Flags
from topobus.parsers.translations import TranslationTable, attr_value_localized, strip_prefix
from topobus.parsers.xml_utils import XmlDocument, attr_value, parse_int

logger = logging.getLogger(__name__)

FLAG_ATTRIBUTES = {
    "communication": "CommunicationFlag",
    "read": "ReadFlag",
    "write": "WriteFlag",
    "transmit": "TransmitFlag",
    "update": "UpdateFlag",
    "read_on_init": "ReadOnInitFlag",
}

MODULE_INDEX_PATTERN = re.compile(r"_MI-(\d+)")


def parse_flags(element: ET.Element) -> Flags:
    return Flags(**{name: parse_flag(element.get(attribute)) for name, attribute in FLAG_ATTRIBUTES.items()})


def parse_com_objects(doc: XmlDocument, prefix: str, translations: TranslationTable) -> Dict[str, ComObjectDef]:
    com_objects = {}
    for obj in doc.iter_elements("ComObject"):
        obj_id = attr_value(obj, "Id")
        if obj_id is None:
            continue
        key = strip_prefix(obj_id, prefix)
        com_objects[key] = ComObjectDef(
            id=key,
            flags=parse_flags(obj),
            datapoint_type=attr_value(obj, "DatapointType"),
            number=parse_int(obj.get("Number")),
            object_size=attr_value(obj, "ObjectSize"),
            base_number_argument_ref=attr_value(obj, "BaseNumber"),
            description=attr_value_localized(obj, "Description", translations, prefix),
            name=attr_value_localized(obj, "Name", translations, prefix),
            text=attr_value_localized(obj, "Text", translations, prefix),
            function_text=attr_value_localized(obj, "FunctionText", translations, prefix),
        )
    return com_objects


def parse_com_object_refs(doc: XmlDocument, prefix: str, translations: TranslationTable) -> Dict[str, ComObjectRefDef]:
    com_object_refs = {}
    for obj in doc.iter_elements("ComObjectRef"):
        obj_id = attr_value(obj, "Id")
        if obj_id is None:
            continue

        channel = None
        container = doc.find_ancestor(obj, "Channel", "Module")
        if container is not None:
            channel = (
                attr_value_localized(container, "Text", translations, prefix)
                or attr_value_localized(container, "Name", translations, prefix)
            )

        ref_id = attr_value(obj, "RefId")
        key = strip_prefix(obj_id, prefix)
        com_object_refs[key] = ComObjectRefDef(
            id=key,
            ref_id=strip_prefix(ref_id, prefix) if ref_id else None,
            function_text=attr_value_localized(obj, "FunctionText", translations, prefix),
            name=attr_value_localized(obj, "Name", translations, prefix),
            text=attr_value_localized(obj, "Text", translations, prefix),
            datapoint_type=attr_value(obj, "DatapointType"),
            object_size=attr_value(obj, "ObjectSize"),
            flags=parse_flags(obj),
            channel=channel,
            number=parse_int(obj.get("Number")),
            description=attr_value_localized(obj, "Description", translations, prefix),
        )
    return com_object_refs


def com_object_key(instance_ref: str) -> str:
    """
    Map an instance reference to its ``ComObjectRef`` key.

    Module instance segments between the module definition and the object
    are dropped.

    Example:
        >>> com_object_key("MD-1_M-1_MI-2_O-3-1_R-4")
        'MD-1_O-3-1_R-4'
        >>> com_object_key("O-2_R-2")
        'O-2_R-2'
    """
    index = instance_ref.find("_O-")
    if index >= 0:
        module = instance_ref.split("_", 1)[0]
        if module:
            return f"{module}_{instance_ref[index + 1:]}"
    return instance_ref


def suffix_match(key: str, candidate: str) -> bool:
    """True if the ids are equal or one ends with ``_`` + the other."""
    if key == candidate:
        return True
    return candidate.endswith("_" + key) or key.endswith("_" + candidate)


def _lookup(mapping: Optional[Dict[str, object]], key: str):
    if not mapping:
        return None
    if key in mapping:
        return mapping[key]
    for candidate, value in mapping.items():
        if suffix_match(key, candidate):
            return value
    return None


def resolve_module_arguments(module_values: Optional[Dict[str, str]], app: Optional[AppProgram]) -> Dict[str, str]:
    """
    Translate module argument ref ids to argument names.

    Args:
        module_values: ``Argument/@RefId -> @Value`` of a module instance
        app: Application program defining the argument names

    Returns:
        Mapping of argument name to value, used for ``{{name}}`` substitution
    """
    mapped = {}
    if not module_values:
        return mapped
    arguments = app.arguments if app is not None else {}
    prefix = app.prefix if app is not None else ""
    for ref_id, value in module_values.items():
        name = arguments.get(ref_id) or arguments.get(strip_prefix(ref_id, prefix)) or _lookup(arguments, ref_id)
        mapped[name or ref_id] = value
    return mapped


def merge_module_values(module_values: Optional[Dict[str, str]], parent_values: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Module arguments plus the parent module's arguments it does not define."""
    merged = dict(parent_values or {})
    merged.update(module_values or {})
    return merged


def resolve_template(value: Optional[str], arg_values: Dict[str, str]) -> Optional[str]:
    """Substitute ``{{name}}`` tokens; blank input yields None."""
    if value is None:
        return None
    resolved = value.strip()
    if not resolved:
        return None
    for key, arg in arg_values.items():
        resolved = resolved.replace("{{" + key + "}}", arg)
    return resolved


def _first_text(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value is not None and value.strip():
            return value
    return None


def resolve_object_name(com_def: Optional[ComObjectRefDef], com_obj: Optional[ComObjectDef],
                        arg_values: Dict[str, str]) -> Optional[str]:
    """Base display name: reference FunctionText/Text/Name, then the template's."""
    base = _first_text(
        com_def.function_text if com_def else None,
        com_def.text if com_def else None,
        com_def.name if com_def else None,
        com_obj.function_text if com_obj else None,
        com_obj.text if com_obj else None,
        com_obj.name if com_obj else None,
    )
    return resolve_template(base, arg_values)


@dataclass
class ComObjectData:
    """Effective values of one communication object."""
    flags: Flags = field(default_factory=Flags)
    datapoint_type: Optional[str] = None
    object_size: Optional[str] = None
    channel: Optional[str] = None
    number: Optional[int] = None
    description: Optional[str] = None


def resolve_com_data(com_def: Optional[ComObjectRefDef], com_obj: Optional[ComObjectDef]) -> ComObjectData:
    """
    Apply reference-over-template precedence.

    The object number is the exception: the template number wins because
    module base numbers are defined relative to it.
    """
    data = ComObjectData()
    if com_def is not None:
        data.flags = com_def.flags.with_fallback(None)
        data.datapoint_type = com_def.datapoint_type
        data.object_size = com_def.object_size
        data.channel = com_def.channel
        data.description = com_def.description
    data.number = com_obj.number if com_obj is not None and com_obj.number is not None else (
        com_def.number if com_def is not None else None
    )

    if com_obj is not None:
        data.flags = data.flags.with_fallback(com_obj.flags)
        data.datapoint_type = data.datapoint_type or com_obj.datapoint_type
        data.object_size = data.object_size or com_obj.object_size
        data.description = data.description or com_obj.description
    return data


def parse_module_index(ref_id: str) -> Optional[int]:
    """Module instance index from a ``_MI-<n>`` token."""
    match = MODULE_INDEX_PATTERN.search(ref_id)
    return int(match.group(1)) if match else None


def _find_allocator_start(app: AppProgram, allocator_ref: str) -> Optional[int]:
    allocator = app.allocators.get(allocator_ref) or app.allocators.get(app.prefix + allocator_ref)
    if allocator is None:
        allocator = _lookup(app.allocators, allocator_ref)
    if allocator is None:
        return None
    return allocator.start or 0


def _lookup_module_value(key: str, module_values: Dict[str, str], base_module_values: Optional[Dict[str, str]]) -> Optional[str]:
    value = _lookup(module_values, key)
    if value is None:
        value = _lookup(base_module_values, key)
    return value


def _resolve_base_number(base_ref: str, module_values: Dict[str, str], base_module_values: Optional[Dict[str, str]],
                         app: AppProgram, com_ref_id: str, seen: Set[str]) -> Optional[int]:
    if base_ref in seen:
        logger.debug(f"Base number reference cycle at {base_ref} ({com_ref_id})")
        return None
    seen.add(base_ref)

    raw = _lookup_module_value(base_ref, module_values, base_module_values)
    raw = raw.strip() if raw else None
    if raw and raw.isdigit():
        return int(raw)

    numeric = _lookup(app.numeric_args, base_ref)
    if numeric is not None and numeric.value is not None:
        return numeric.value

    allocator_ref = (numeric.allocator_ref_id if numeric is not None else None) or raw
    if not allocator_ref:
        return None
    start = _find_allocator_start(app, allocator_ref)
    if start is None:
        return None

    argument = _lookup(app.module_arguments, base_ref)
    if argument is None or argument.allocates is None:
        return None

    index = parse_module_index(com_ref_id) or 1
    value = start + argument.allocates * max(index - 1, 0)

    if numeric is not None and numeric.base_value:
        extra = _resolve_base_number(numeric.base_value, module_values, base_module_values, app, com_ref_id, seen)
        if extra is not None:
            value += extra
    return value


def compute_object_number(base_number: Optional[int], com_obj: Optional[ComObjectDef],
                          module_values: Optional[Dict[str, str]], base_module_values: Optional[Dict[str, str]],
                          app: Optional[AppProgram], com_ref_id: str) -> Optional[int]:
    """
    Final object number of a module object.

    The template's ``BaseNumber`` argument is resolved through, in order: a
    literal number in the module arguments, a ``NumericArg`` value, and an
    allocator start plus ``allocates * (module index - 1)``. Chained
    ``BaseValue`` references are added recursively. When nothing resolves,
    the static number is kept.

    Args:
        base_number: Static number from the templates
        com_obj: Backing ``ComObject`` template
        module_values: Arguments of the object's module instance
        base_module_values: Arguments of the parent module instance
        app: Application program
        com_ref_id: ``ComObjectInstanceRef/@RefId``

    Returns:
        Adjusted number or None if there is no static number
    """
    if base_number is None:
        return None
    base_ref = com_obj.base_number_argument_ref if com_obj is not None else None
    if not base_ref or app is None or not (module_values or base_module_values):
        return base_number

    adjustment = _resolve_base_number(base_ref, module_values or {}, base_module_values, app, com_ref_id, set())
    if adjustment is None:
        return base_number
    return base_number + adjustment


def build_object_name(number: Optional[int], object_text: Optional[str], object_name_raw: Optional[str],
                      function_text: Optional[str], base_name: Optional[str], fallback: str) -> str:
    """
    Assemble the display name of a group link.

    Example:
        >>> build_object_name(3, "Switch", None, "On/Off", None, "GA")
        '[#3] [Switch] On/Off'
        >>> build_object_name(None, None, None, None, None, "Kitchen light")
        'Kitchen light'
    """
    parts: List[str] = []
    if number is not None:
        parts.append(f"[#{number}]")

    name_part = _first_text(object_text, object_name_raw)
    if name_part is not None:
        parts.append(f"[{name_part}]")

    function_part = _first_text(function_text)
    if function_part is not None:
        duplicate = name_part is not None and name_part.lower() == function_part.lower()
        if not duplicate:
            parts.append(function_part)

    if parts:
        return " ".join(parts)
    if base_name is not None and base_name.strip():
        return base_name
    return fallback

"""Application program catalog (``M-xxxx/<app id>.xml``)."""
import logging
from typing import Optional

from topobus.models.catalog import (
    AllocatorDef,
    AppProgram,
    AppProgramInfo,
    ModuleArgumentDef,
    NumericArgDef,
)
from topobus.parsers.com_objects import parse_com_object_refs, parse_com_objects
from topobus.parsers.parameters import (
    parse_parameter_definitions,
    parse_parameter_ref_context,
    parse_parameter_refs,
    parse_parameter_types,
)
from topobus.parsers.translations import attr_value_localized, build_translations, strip_prefix
from topobus.parsers.xml_utils import XmlDocument, attr_value, parse_int

logger = logging.getLogger(__name__)


def app_program_path(app_id: str) -> str:
    """``M-0083_A-0012-10-ABCD`` lives at ``M-0083/M-0083_A-0012-10-ABCD.xml``."""
    manufacturer = app_id.split("_", 1)[0]
    return f"{manufacturer}/{app_id}.xml"


def parse_app_program(doc: XmlDocument, app_id: str, preferred_language: Optional[str] = None) -> AppProgram:
    """
    Load every template definition from an application program document.

    Args:
        doc: Parsed application program document
        app_id: Application program id, used as the key prefix
        preferred_language: Language used for texts

    Returns:
        Populated AppProgram
    """
    prefix = f"{app_id}_"
    translations = build_translations(doc, prefix, preferred_language)
    program = AppProgram(id=app_id, prefix=prefix)

    for argument in doc.iter_elements("Argument"):
        argument_id = attr_value(argument, "Id")
        if argument_id is None:
            continue
        name = attr_value_localized(argument, "Name", translations, prefix)
        allocates = parse_int(argument.get("Allocates"))
        if name:
            program.arguments[strip_prefix(argument_id, prefix)] = name
        if allocates is not None or argument.get("Name") is not None:
            program.module_arguments[argument_id] = ModuleArgumentDef(
                id=argument_id,
                name=name,
                allocates=allocates,
            )

    program.com_objects = parse_com_objects(doc, prefix, translations)
    program.com_object_refs = parse_com_object_refs(doc, prefix, translations)
    program.parameter_types = parse_parameter_types(doc, prefix, translations)
    program.parameter_refs = parse_parameter_refs(doc, prefix, translations)
    program.parameter_ref_context = parse_parameter_ref_context(doc, prefix, translations)
    program.parameters = parse_parameter_definitions(doc, prefix, translations)

    for allocator in doc.iter_elements("Allocator"):
        allocator_id = attr_value(allocator, "Id")
        if allocator_id is None:
            continue
        program.allocators[allocator_id] = AllocatorDef(
            id=allocator_id,
            start=parse_int(allocator.get("Start")) or 0,
            max_inclusive=parse_int(allocator.get("maxInclusive")),
        )

    for numeric in doc.iter_elements("NumericArg"):
        ref_id = attr_value(numeric, "RefId")
        if ref_id is None:
            continue
        program.numeric_args[ref_id] = NumericArgDef(
            ref_id=ref_id,
            allocator_ref_id=attr_value(numeric, "AllocatorRefId"),
            base_value=attr_value(numeric, "BaseValue"),
            value=parse_int(numeric.get("Value")),
        )

    app_node = doc.first("ApplicationProgram")
    if app_node is not None:
        program.info = AppProgramInfo(
            name=attr_value_localized(app_node, "Name", translations, prefix),
            version=attr_value(app_node, "ApplicationVersion"),
            number=attr_value(app_node, "ApplicationNumber"),
            program_type=attr_value(app_node, "ProgramType"),
            mask_version=attr_value(app_node, "MaskVersion"),
        )

    logger.debug(
        f"Application program {app_id}: {len(program.com_objects)} com objects, "
        f"{len(program.com_object_refs)} refs, {len(program.parameters)} parameters"
    )
    return program

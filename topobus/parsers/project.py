"""Project metadata and building structure."""
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple

from topobus.models import (
    BuildingDeviceRef,
    BuildingSpace,
    ProjectAttachment,
    ProjectHistoryEntry,
    ProjectInfo,
    ProjectTag,
)
from topobus.parsers.xml_utils import XmlDocument, attr_value, find_child_element, iter_children, iter_descendants

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "TopoBus Project"

# (element tag, container tag) pairs for ETS6 and ETS5 building trees
LOCATION_LAYOUTS = (
    ("Space", "Locations"),
    ("BuildingPart", "Buildings"),
)

PROJECT_INFO_ATTRIBUTES = {
    "name": "Name",
    "project_type": "ProjectType",
    "project_number": "ProjectNumber",
    "contract_number": "ContractNumber",
    "description": "Comment",
    "completion_status": "CompletionStatus",
    "archived_version": "ArchivedVersion",
    "security_mode": "Security",
    "last_modified": "LastModified",
    "project_size": "ProjectSize",
    "group_address_style": "GroupAddressStyle",
}


def extract_project_name(doc: XmlDocument, default: str = DEFAULT_PROJECT_NAME) -> str:
    """``ProjectInformation/@Name``, or ``default`` when missing or blank."""
    return attr_value(doc.first("ProjectInformation"), "Name") or default


def extract_project_info(project_doc: XmlDocument, data_doc: Optional[XmlDocument] = None) -> Optional[ProjectInfo]:
    """
    Collect project metadata.

    ``ProjectInformation`` attributes, tags and history come from the project
    document. The installation BCU key and attached user files are looked up
    in both documents.

    Returns:
        ProjectInfo, or None if the documents carry no metadata at all
    """
    info = ProjectInfo()
    has_any = False

    node = project_doc.first("ProjectInformation")
    if node is not None:
        for field_name, attribute in PROJECT_INFO_ATTRIBUTES.items():
            value = attr_value(node, attribute)
            if value is not None:
                setattr(info, field_name, value)
                has_any = True
        info.codepage = attr_value(node, "CodePage") or attr_value(node, "Codepage")
        has_any = has_any or info.codepage is not None

        tags = find_child_element(node, "Tags")
        if tags is not None:
            for tag in iter_children(tags, "Tag"):
                text = attr_value(tag, "Text")
                if text:
                    info.tags.append(ProjectTag(text=text, color=attr_value(tag, "Color")))

        for entry in iter_descendants(node, ["HistoryEntry"]):
            history = ProjectHistoryEntry(
                date=attr_value(entry, "Date"),
                user=attr_value(entry, "User"),
                text=attr_value(entry, "Text"),
                detail=attr_value(entry, "Detail"),
            )
            if any((history.date, history.user, history.text, history.detail)):
                info.history.append(history)

        has_any = has_any or bool(info.tags) or bool(info.history)

    if info.group_address_style is None:
        info.group_address_style = attr_value(project_doc.first("Project"), "GroupAddressStyle")
        has_any = has_any or info.group_address_style is not None

    docs = [project_doc] + ([data_doc] if data_doc is not None else [])
    for doc in docs:
        if info.bcu_key is None:
            info.bcu_key = attr_value(doc.first("Installation"), "BCUKey")
        for user_file in doc.iter_elements("UserFile"):
            filename = attr_value(user_file, "Filename")
            if filename:
                info.attachments.append(ProjectAttachment(filename=filename, comment=attr_value(user_file, "Comment")))

    has_any = has_any or info.bcu_key is not None or bool(info.attachments)
    return info if has_any else None


def _parse_space(element: ET.Element, tag: str, device_index: Dict[str, Tuple[str, str]]) -> BuildingSpace:
    space = BuildingSpace(
        id=element.get("Id", ""),
        name=attr_value(element, "Name"),
        space_type=element.get("Type") or "Space",
        number=attr_value(element, "Number"),
        default_line=attr_value(element, "DefaultLine"),
        description=attr_value(element, "Description"),
        completion_status=attr_value(element, "CompletionStatus"),
    )

    for device_ref in iter_children(element, "DeviceInstanceRef"):
        ref_id = device_ref.get("RefId")
        if not ref_id:
            continue
        address, name = device_index.get(ref_id, (None, None))
        space.devices.append(BuildingDeviceRef(instance_id=ref_id, address=address, name=name))

    space.children = [_parse_space(child, tag, device_index) for child in iter_children(element, tag)]
    return space


def extract_locations(doc: XmlDocument, device_index: Dict[str, Tuple[str, str]]) -> List[BuildingSpace]:
    """
    Build the building/location trees.

    Args:
        doc: Installation document
        device_index: Device instance id -> (individual address, name)

    Returns:
        Root spaces of every ``Locations`` and ``Buildings`` container
    """
    roots = []
    for tag, container_tag in LOCATION_LAYOUTS:
        for container in doc.iter_elements(container_tag):
            for element in iter_children(container, tag):
                roots.append(_parse_space(element, tag, device_index))
    logger.debug(f"Extracted {len(roots)} location roots")
    return roots

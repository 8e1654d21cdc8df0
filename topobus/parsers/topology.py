"""Area and line metadata from the installation document."""
import logging
from typing import List, Tuple

from topobus.errors import ParseError
from topobus.ets_helpers import medium_name
from topobus.models import AreaInfo, LineInfo
from topobus.parsers.xml_utils import XmlDocument, attr_value, find_child_element, required_attribute

logger = logging.getLogger(__name__)


def extract_topology_metadata(doc: XmlDocument) -> Tuple[List[AreaInfo], List[LineInfo]]:
    """
    Extract areas and lines in document order.

    Areas need an ``Address``. Lines need an ``Address`` and an enclosing
    ``Area`` with an address; anything else is logged and skipped.

    Returns:
        Tuple of (areas, lines)
    """
    areas = []
    lines = []

    for area in doc.iter_elements("Area"):
        try:
            address = required_attribute(area, "Address")
        except ParseError as e:
            logger.warning(f"Skipping Area: {e}")
            continue
        areas.append(AreaInfo(
            address=address,
            name=attr_value(area, "Name"),
            description=attr_value(area, "Description"),
            comment=attr_value(area, "Comment"),
            completion_status=attr_value(area, "CompletionStatus"),
        ))

    for line in doc.iter_elements("Line"):
        try:
            address = required_attribute(line, "Address")
            area_address = doc.required_ancestor_address(line, "Area")
        except ParseError as e:
            logger.warning(f"Skipping Line: {e}")
            continue

        segment = find_child_element(line, "Segment")
        medium_ref = attr_value(segment, "MediumTypeRefId") or attr_value(line, "MediumTypeRefId")
        lines.append(LineInfo(
            area=area_address,
            line=address,
            name=attr_value(line, "Name"),
            description=attr_value(line, "Description"),
            comment=attr_value(line, "Comment"),
            medium_type=medium_name(medium_ref) if medium_ref else None,
            completion_status=attr_value(line, "CompletionStatus"),
        ))

    logger.debug(f"Topology: {len(areas)} areas, {len(lines)} lines")
    return areas, lines

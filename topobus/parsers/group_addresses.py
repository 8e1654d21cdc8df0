"""Group address extraction and post-resolution backfill."""
import logging
from typing import Dict, List, Tuple

from topobus.errors import ParseError
from topobus.ets_helpers import GroupAddressStyle, format_group_address, short_id
from topobus.models import DeviceInfo, GroupAddressInfo
from topobus.parsers.xml_utils import XmlDocument, attr_value, local_name, required_attribute, required_int_attribute

logger = logging.getLogger(__name__)


def extract_group_addresses(doc: XmlDocument, style: GroupAddressStyle = GroupAddressStyle.THREE_LEVEL
                            ) -> Tuple[List[GroupAddressInfo], Dict[str, GroupAddressInfo]]:
    """
    Extract group addresses in document order.

    Elements with a missing ``Id``/``Address`` or an ``Address`` that is not
    a 16-bit integer are logged and skipped.

    Args:
        doc: Installation document
        style: Rendering style for the address strings

    Returns:
        Tuple of (group addresses, lookup by short id)
    """
    group_addresses = []
    by_id = {}

    for group in doc.iter_elements("GroupAddress"):
        try:
            ga_id = required_attribute(group, "Id")
            value = required_int_attribute(group, "Address", 0, 0xFFFF)
        except ParseError as e:
            logger.warning(f"Skipping GroupAddress: {e}")
            continue

        ranges = [ancestor for ancestor in doc.ancestors(group) if local_name(ancestor.tag) == "GroupRange"]
        ranges.reverse()
        main = ranges[0] if ranges else None
        middle = ranges[1] if len(ranges) > 1 else None

        info = GroupAddressInfo(
            address=format_group_address(value, style),
            name=(group.get("Name") or "").strip(),
            main_group_name=attr_value(main, "Name"),
            main_group_description=attr_value(main, "Description"),
            main_group_comment=attr_value(main, "Comment"),
            middle_group_name=attr_value(middle, "Name"),
            middle_group_description=attr_value(middle, "Description"),
            middle_group_comment=attr_value(middle, "Comment"),
            description=attr_value(group, "Description"),
            comment=attr_value(group, "Comment"),
            datapoint_type=attr_value(group, "DatapointType"),
        )
        by_id[short_id(ga_id)] = info
        group_addresses.append(info)

    logger.debug(f"Extracted {len(group_addresses)} group addresses")
    return group_addresses, by_id


def backfill_group_addresses(group_addresses: List[GroupAddressInfo], devices: List[DeviceInfo]):
    """
    Second pass after device resolution.

    Sets ``linked_devices`` on every group address and fills a missing
    datapoint type from the first device link that declares one.
    """
    linked: Dict[str, List[str]] = {}
    link_dpt: Dict[str, str] = {}
    for device in devices:
        for link in device.group_links:
            linked.setdefault(link.group_address, []).append(device.individual_address)
            if link.datapoint_type and link.group_address not in link_dpt:
                link_dpt[link.group_address] = link.datapoint_type

    for ga in group_addresses:
        ga.linked_devices = list(linked.get(ga.address, []))
        if not ga.datapoint_type and ga.address in link_dpt:
            ga.datapoint_type = link_dpt[ga.address]
            logger.debug(f"Datapoint type of {ga.address} taken from linked device: {ga.datapoint_type}")

"""Group address graph: devices, their group objects and group addresses"""
import logging
from dataclasses import dataclass
from typing import Dict, List

from topobus.ets_helpers import flags_to_string
from topobus.generators.base_generator import GraphGenerator, set_optional
from topobus.models import DeviceInfo, GroupAddressInfo, GroupLink
from topobus.models.graph import Edge, EdgeKind, GraphModel, Node, NodeKind

logger = logging.getLogger(__name__)

GROUP_ADDRESS_PROPERTY_FIELDS = (
    ("datapoint_type", "datapoint_type"),
    ("main_group_name", "main_name"),
    ("main_group_description", "main_description"),
    ("main_group_comment", "main_comment"),
    ("middle_group_name", "middle_name"),
    ("middle_group_description", "middle_description"),
    ("middle_group_comment", "middle_comment"),
    ("description", "description"),
    ("comment", "comment"),
)


@dataclass
class GroupObjectRef:
    """A group object node taking part in a group address."""
    id: str
    is_transmitter: bool
    is_receiver: bool


def link_edges(group_address: str, objects: List[GroupObjectRef]) -> List[Edge]:
    """
    Edges between the group objects of one group address.

    With exactly one transmitter and at least one receiver the edges form a
    directed star from the transmitter. Otherwise they form an undirected
    star from the first object by id. Fewer than two objects give no edges.

    Args:
        group_address: Address string, stored on each edge
        objects: Group objects linked to the address

    Returns:
        List of edges
    """
    if len(objects) < 2:
        return []
    objects = sorted(objects, key=lambda obj: obj.id)
    transmitters = [obj for obj in objects if obj.is_transmitter]
    has_receiver = any(obj.is_receiver for obj in objects)

    if len(transmitters) == 1 and has_receiver:
        source = transmitters[0]
        direction = "directed"
    else:
        source = objects[0]
        direction = "undirected"

    edges = []
    for obj in objects:
        if obj.id == source.id:
            continue
        edges.append(Edge(
            id=f"{source.id}_to_{obj.id}",
            source=source.id,
            target=obj.id,
            kind=EdgeKind.LINKS,
            label=direction,
            properties={'direction': direction, 'group_address': group_address},
        ))
    return edges


class GroupAddressGraphGenerator(GraphGenerator):
    """Generator for the group address graph"""

    def generate(self) -> GraphModel:
        ga_links: Dict[str, List[GroupObjectRef]] = {}

        for device in self.project.devices:
            device_id = self.device_node(device).id
            for index, link in enumerate(self._sorted_links(device)):
                node = self.add_node(Node(
                    id=self.unique_id(f"{device_id}_obj_{index}"),
                    kind=NodeKind.GROUP_OBJECT,
                    label=link.object_name,
                    parent_id=device_id,
                    properties=self.group_object_properties(link),
                ))
                ga_links.setdefault(link.group_address, []).append(
                    GroupObjectRef(node.id, link.is_transmitter, link.is_receiver)
                )

        for ga in self.project.group_addresses:
            self.add_node(Node(
                id=self.unique_id("ga_" + ga.address.replace("/", "_")),
                kind=NodeKind.GROUP_ADDRESS,
                label=f"{ga.address}\n{ga.name}",
                properties=self.group_address_properties(ga),
            ))

        for group_address, objects in ga_links.items():
            self.graph.edges.extend(link_edges(group_address, objects))

        logger.info(f"Group address graph: {len(self.graph.nodes)} nodes, {len(self.graph.edges)} edges")
        return self.graph

    @staticmethod
    def _sorted_links(device: DeviceInfo) -> List[GroupLink]:
        return sorted(device.group_links, key=lambda link: (link.group_address, link.object_name))

    @staticmethod
    def group_object_properties(link: GroupLink) -> Dict[str, str]:
        properties = {
            'group_address': link.group_address,
            'object_name': link.object_name,
            'is_transmitter': str(link.is_transmitter).lower(),
            'is_receiver': str(link.is_receiver).lower(),
            'ets_sending': str(link.ets_sending).lower(),
            'ets_receiving': str(link.ets_receiving).lower(),
        }
        set_optional(properties, 'object_name_raw', link.object_name_raw)
        set_optional(properties, 'object_text', link.object_text)
        set_optional(properties, 'object_function_text', link.object_function_text)
        set_optional(properties, 'ets_sending_address', link.ets_sending_address)
        set_optional(properties, 'datapoint_type', link.datapoint_type)
        set_optional(properties, 'description', link.description)
        set_optional(properties, 'channel', link.channel)
        set_optional(properties, 'object_size', link.object_size)
        set_optional(properties, 'com_object_ref_id', link.com_object_ref_id)
        if link.number is not None:
            properties['number'] = str(link.number)
        if link.flags is not None:
            properties['flags'] = flags_to_string(link.flags)
        return properties

    @staticmethod
    def group_address_properties(ga: GroupAddressInfo) -> Dict[str, str]:
        properties = {'address': ga.address}
        if ga.name.strip():
            properties['name'] = ga.name
        for field_name, key in GROUP_ADDRESS_PROPERTY_FIELDS:
            set_optional(properties, key, getattr(ga, field_name))
        return properties

"""Topology graph: area -> line -> device containment"""
import logging
from typing import Dict

from topobus.generators.base_generator import GraphGenerator, set_optional
from topobus.ets_helpers import area_line_from_address
from topobus.models.graph import GraphModel, Node, NodeKind

logger = logging.getLogger(__name__)


class TopologyGraphGenerator(GraphGenerator):
    """Generator for the topology graph.

    Area and line nodes are created on first use by a device. Devices without
    a numeric area or line go into the unknown bucket. The graph has no
    edges; containment is expressed through ``parent_id``.
    """

    def __init__(self, project, config=None):
        super().__init__(project, config)
        self.area_info = {area.address: area for area in project.areas}
        self.line_info = {line.key: line for line in project.lines}
        self.area_nodes: Dict[str, str] = {}
        self.line_nodes: Dict[str, str] = {}

    def generate(self) -> GraphModel:
        for device in self.project.devices:
            area, line = area_line_from_address(device.individual_address)
            area_key = area or self.unknown_bucket
            line_key = line or self.unknown_bucket

            area_id = self._area_node(area_key)
            line_id = self._line_node(area_key, line_key, area_id)
            self.device_node(device, parent_id=line_id)

        logger.info(f"Topology graph: {len(self.graph.nodes)} nodes")
        return self.graph

    def _area_node(self, area_key: str) -> str:
        if area_key in self.area_nodes:
            return self.area_nodes[area_key]

        unknown = area_key == self.unknown_bucket
        properties = {'area': area_key, 'address': area_key}
        if unknown:
            properties['name'] = "Unknown"
        info = self.area_info.get(area_key)
        if info is not None:
            set_optional(properties, 'name', info.name)
            set_optional(properties, 'description', info.description)
            set_optional(properties, 'comment', info.comment)

        node = self.add_node(Node(
            id=self.unique_id(f"area_{area_key}"),
            kind=NodeKind.AREA,
            label="Area Unknown" if unknown else f"Area {area_key}",
            properties=properties,
        ))
        self.area_nodes[area_key] = node.id
        return node.id

    def _line_node(self, area_key: str, line_key: str, area_id: str) -> str:
        map_key = f"{area_key}.{line_key}"
        if map_key in self.line_nodes:
            return self.line_nodes[map_key]

        unknown = line_key == self.unknown_bucket
        properties = {'area': area_key, 'line': line_key, 'address': map_key}
        if unknown:
            properties['name'] = "Unknown"
        info = self.line_info.get(map_key)
        if info is not None:
            set_optional(properties, 'name', info.name)
            set_optional(properties, 'description', info.description)
            set_optional(properties, 'comment', info.comment)
            set_optional(properties, 'medium', info.medium_type)

        node = self.add_node(Node(
            id=self.unique_id(f"line_{area_key}_{line_key}"),
            kind=NodeKind.LINE,
            label="Line Unknown" if unknown else f"Line {area_key}.{line_key}",
            parent_id=area_id,
            properties=properties,
        ))
        self.line_nodes[map_key] = node.id
        return node.id

"""Base class for graph generators"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from topobus.config import resolve_config
from topobus.ets_helpers import area_line_from_address, coupler_kind_from_address
from topobus.models import DeviceInfo, KnxProjectData
from topobus.models.graph import GraphModel, Node, NodeKind

logger = logging.getLogger(__name__)

# DeviceInfo field -> node property name
DEVICE_PROPERTY_FIELDS = (
    ("manufacturer", "manufacturer"),
    ("product", "product"),
    ("product_reference", "product_reference"),
    ("description", "description"),
    ("comment", "comment"),
    ("serial_number", "serial_number"),
    ("app_program_name", "app_program_name"),
    ("app_program_version", "app_program_version"),
    ("app_program_number", "app_program_number"),
    ("app_program_type", "app_program_type"),
    ("app_mask_version", "app_mask_version"),
    ("medium_type", "medium"),
    ("segment_id", "segment_id"),
    ("segment_number", "segment_number"),
    ("segment_domain_address", "segment_domain_address"),
    ("segment_medium_type", "segment_medium"),
    ("ip_assignment", "ip_assignment"),
    ("ip_address", "ip_address"),
    ("ip_subnet_mask", "ip_subnet_mask"),
    ("ip_default_gateway", "ip_default_gateway"),
    ("mac_address", "mac_address"),
    ("last_modified", "last_modified"),
    ("last_download", "last_download"),
)


def set_optional(properties: Dict[str, str], key: str, value: Optional[str]):
    if value is not None:
        properties[key] = value


class GraphGenerator(ABC):
    """Base class for all graph generators"""

    def __init__(self, project: KnxProjectData, config: Optional[Dict] = None):
        """
        Initialize generator.

        Args:
            project: Resolved project model
            config: Configuration dictionary (see ``topobus.config``)
        """
        self.project = project
        self.config = resolve_config(config)
        self.unknown_bucket = self.config.get('graph', {}).get('unknown_bucket') or "unknown"
        self.graph = GraphModel()
        self._node_ids = set()
        self._device_ids: Dict[int, str] = {}

    @abstractmethod
    def generate(self) -> GraphModel:
        """
        Build the graph.

        Returns:
            GraphModel with unique node ids
        """
        pass

    def add_node(self, node: Node) -> Node:
        if node.parent_id is not None and node.parent_id not in self._node_ids:
            raise ValueError(f"Parent {node.parent_id} of node {node.id} is not in the graph")
        self._node_ids.add(node.id)
        self.graph.nodes.append(node)
        return node

    def unique_id(self, base_id: str) -> str:
        """Return ``base_id``, or ``base_id_<n>`` if it is already taken."""
        if base_id not in self._node_ids:
            return base_id
        counter = 2
        while f"{base_id}_{counter}" in self._node_ids:
            counter += 1
        logger.warning(f"Duplicate node id {base_id}, using {base_id}_{counter}")
        return f"{base_id}_{counter}"

    def device_node_id(self, device: DeviceInfo) -> str:
        """Stable, unique node id of a device within this graph."""
        key = id(device)
        if key not in self._device_ids:
            base_id = "device_" + device.individual_address.replace(".", "_")
            self._device_ids[key] = self.unique_id(base_id)
        return self._device_ids[key]

    def device_node(self, device: DeviceInfo, parent_id: Optional[str] = None) -> Node:
        return self.add_node(Node(
            id=self.device_node_id(device),
            kind=NodeKind.DEVICE,
            label=f"{device.individual_address}\n{device.name}",
            parent_id=parent_id,
            properties=self.device_properties(device),
        ))

    def device_properties(self, device: DeviceInfo) -> Dict[str, str]:
        """
        Node properties of a device.

        Args:
            device: Device to describe

        Returns:
            Address, name, area/line (or the unknown bucket), all set
            descriptive fields and the coupler classification
        """
        area, line = area_line_from_address(device.individual_address)
        properties = {
            'address': device.individual_address,
            'name': device.name,
            'area': area or self.unknown_bucket,
            'line': line or self.unknown_bucket,
        }
        for field_name, key in DEVICE_PROPERTY_FIELDS:
            set_optional(properties, key, getattr(device, field_name))
        coupler_kind = coupler_kind_from_address(device.individual_address)
        if coupler_kind:
            properties['is_coupler'] = "true"
            properties['coupler_kind'] = coupler_kind
        return properties

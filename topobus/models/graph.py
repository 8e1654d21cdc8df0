"""Graph models produced by the generators."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from topobus.models import (
    BuildingSpace,
    DeviceInfo,
    GroupAddressInfo,
    OMIT_EMPTY,
    ProjectInfo,
    SerializableModel,
)


class NodeKind(Enum):
    DEVICE = "device"
    GROUP_OBJECT = "groupobject"
    GROUP_ADDRESS = "groupaddress"
    AREA = "area"
    LINE = "line"


class EdgeKind(Enum):
    LINKS = "links"
    TRANSMITS = "transmits"
    RECEIVES = "receives"


@dataclass
class Node(SerializableModel):
    id: str
    kind: NodeKind
    label: str
    properties: Dict[str, str] = field(default_factory=dict)
    parent_id: Optional[str] = field(default=None, metadata=OMIT_EMPTY)


@dataclass
class Edge(SerializableModel):
    id: str
    source: str
    target: str
    kind: EdgeKind
    label: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    properties: Dict[str, str] = field(default_factory=dict, metadata=OMIT_EMPTY)


@dataclass
class GraphModel(SerializableModel):
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def node(self, node_id: str) -> Optional[Node]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def nodes_of_kind(self, kind: NodeKind) -> List[Node]:
        return [n for n in self.nodes if n.kind is kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': [node.to_dict() for node in self.nodes],
            'edges': [edge.to_dict() for edge in self.edges],
        }


@dataclass
class ProjectGraphs(SerializableModel):
    """Presentation aggregate returned by ``build_project_graphs``."""
    project_name: str
    topology_graph: GraphModel
    group_address_graph: GraphModel
    devices: List[DeviceInfo] = field(default_factory=list)
    group_addresses: List[GroupAddressInfo] = field(default_factory=list)
    locations: List[BuildingSpace] = field(default_factory=list)
    project_info: Optional[ProjectInfo] = field(default=None, metadata=OMIT_EMPTY)

"""Graph generators"""

from .base_generator import GraphGenerator
from .group_address_generator import GroupAddressGraphGenerator
from .topology_generator import TopologyGraphGenerator

__all__ = ['GraphGenerator', 'GroupAddressGraphGenerator', 'TopologyGraphGenerator']

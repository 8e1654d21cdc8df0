"""Orchestrator for graph derivation"""

import logging
from typing import Dict, Optional

from topobus.config import resolve_config
from topobus.generators.group_address_generator import GroupAddressGraphGenerator
from topobus.generators.topology_generator import TopologyGraphGenerator
from topobus.models import KnxProjectData
from topobus.models.graph import GraphModel, ProjectGraphs

logger = logging.getLogger(__name__)


class ProjectGraphBuilder:
    """Builds both graphs of a resolved project"""

    def __init__(self, project: KnxProjectData, config: Optional[Dict] = None):
        """
        Initialize graph builder.

        Args:
            project: Resolved project model
            config: Configuration dictionary
        """
        self.project = project
        self.config = resolve_config(config)

    def topology_graph(self) -> GraphModel:
        return TopologyGraphGenerator(self.project, self.config).generate()

    def group_address_graph(self) -> GraphModel:
        return GroupAddressGraphGenerator(self.project, self.config).generate()

    def build(self) -> ProjectGraphs:
        """
        Build the presentation aggregate.

        Returns:
            ProjectGraphs with both graphs plus devices, group addresses
            and locations of the project
        """
        logger.info(f"Building graphs for project '{self.project.project_name}'")
        return ProjectGraphs(
            project_name=self.project.project_name,
            project_info=self.project.project_info,
            topology_graph=self.topology_graph(),
            group_address_graph=self.group_address_graph(),
            devices=self.project.devices,
            group_addresses=self.project.group_addresses,
            locations=self.project.locations,
        )


def build_project_graphs(project: KnxProjectData, config: Optional[Dict] = None) -> ProjectGraphs:
    return ProjectGraphBuilder(project, config).build()


def generate_topology_graph(project: KnxProjectData, config: Optional[Dict] = None) -> GraphModel:
    return ProjectGraphBuilder(project, config).topology_graph()


def generate_group_address_graph(project: KnxProjectData, config: Optional[Dict] = None) -> GraphModel:
    return ProjectGraphBuilder(project, config).group_address_graph()

"""topobus - KNX ETS project import and graph derivation"""

__version__ = "0.1.1"

from topobus.errors import (
    ArchiveError,
    InvalidAttributeValueError,
    InvalidPasswordError,
    MissingAncestorError,
    MissingDocumentError,
    MissingRequiredAttributeError,
    ParseError,
    PasswordRequiredError,
    ProjectImportError,
    TopobusError,
)
from topobus.graph_builder import (
    ProjectGraphBuilder,
    build_project_graphs,
    generate_group_address_graph,
    generate_topology_graph,
)
from topobus.models import KnxProjectData
from topobus.models.graph import GraphModel, ProjectGraphs
from topobus.parsers.knx_parser import KNXParser, load_knxproj, load_knxproj_bytes

__all__ = [
    '__version__',
    'load_knxproj',
    'load_knxproj_bytes',
    'build_project_graphs',
    'generate_topology_graph',
    'generate_group_address_graph',
    'KNXParser',
    'ProjectGraphBuilder',
    'KnxProjectData',
    'GraphModel',
    'ProjectGraphs',
    'TopobusError',
    'ArchiveError',
    'PasswordRequiredError',
    'InvalidPasswordError',
    'MissingDocumentError',
    'ProjectImportError',
    'ParseError',
    'MissingRequiredAttributeError',
    'InvalidAttributeValueError',
    'MissingAncestorError',
]

"""KNX Project Parser Module

Extracts and resolves KNX project data from .knxproj archives.
"""
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from topobus.config import resolve_config
from topobus.errors import ProjectImportError, TopobusError
from topobus.ets_helpers import GroupAddressStyle, parse_group_address_style
from topobus.models import DeviceInfo, GroupAddressInfo, KnxProjectData
from topobus.parsers.archive import ArchiveSource, KnxArchive
from topobus.parsers.catalogs import CatalogResolver
from topobus.parsers.device import DeviceResolver
from topobus.parsers.discovery import ProjectDocuments, locate_project_documents
from topobus.parsers.group_addresses import backfill_group_addresses, extract_group_addresses
from topobus.parsers.project import extract_locations, extract_project_info, extract_project_name
from topobus.parsers.topology import extract_topology_metadata

logger = logging.getLogger(__name__)


class KNXParser:
    """Parser for KNX project files (.knxproj)"""

    def __init__(self, source: ArchiveSource, password: Optional[str] = None,
                 language: Optional[str] = None, config: Optional[Dict] = None):
        """
        Initialize KNX Parser.

        Args:
            source: Path to the .knxproj file, its bytes or a binary file object
            password: Project password for encrypted exports
            language: Preferred language code for catalog texts (e.g. "de")
            config: Configuration dictionary (see ``topobus.config``)
        """
        self.source = source
        self.password = password
        self.config = resolve_config(config)
        general = self.config.get('general', {})
        self.language = language or general.get('preferred_language')
        self.default_project_name = general.get('default_project_name') or "TopoBus Project"
        self.scan_nested = general.get('scan_nested_archives', True)
        self.group_address_style: GroupAddressStyle = parse_group_address_style(general.get('group_address_style'))
        self.catalogs: Optional[CatalogResolver] = None

    def parse(self) -> KnxProjectData:
        """
        Parse and resolve the KNX project.

        Returns:
            Fully resolved project model

        Raises:
            PasswordRequiredError: The project is encrypted and no password was given
            InvalidPasswordError: The password does not decrypt the project
            MissingDocumentError: Project or installation document not found
            ProjectImportError: Any other fatal failure, chained to its cause
        """
        logger.info(f"Parsing KNX project: {self._describe_source()}")

        try:
            with KnxArchive.open(self.source, self.password) as archive:
                docs = locate_project_documents(archive, self.scan_nested)
                try:
                    return self._parse_documents(docs, archive)
                finally:
                    if docs.archive is not archive:
                        docs.archive.close()
        except TopobusError:
            raise
        except (OSError, ET.ParseError, ValueError, KeyError, AttributeError, TypeError) as e:
            raise ProjectImportError(f"Failed to import KNX project {self._describe_source()}: {e}") from e

    def _describe_source(self) -> str:
        if isinstance(self.source, (bytes, bytearray)):
            return f"<{len(self.source)} bytes>"
        return str(getattr(self.source, 'name', self.source))

    def _parse_documents(self, docs: ProjectDocuments, outer: KnxArchive) -> KnxProjectData:
        self.catalogs = CatalogResolver([docs.archive, outer], self.language)

        project = KnxProjectData(
            project_name=extract_project_name(docs.project_doc, self.default_project_name),
            project_info=extract_project_info(docs.project_doc, docs.data_doc),
        )
        project.areas, project.lines = extract_topology_metadata(docs.data_doc)
        project.group_addresses, group_address_by_id = self._parse_group_addresses(docs)
        project.devices = self._parse_devices(docs, group_address_by_id)
        self._backfill(project.group_addresses, project.devices)
        project.locations = self._parse_locations(docs, project.devices)

        logger.info(
            f"Parsed {len(project.devices)} devices, {len(project.group_addresses)} group addresses, "
            f"{len(project.areas)} areas, {len(project.lines)} lines"
        )
        logger.debug(f"Catalog cache statistics: {self.catalogs.get_statistics()}")
        return project

    def _parse_group_addresses(self, docs: ProjectDocuments):
        """
        Parse group addresses from the installation document.

        Returns:
            Tuple of (group addresses, lookup by short id)
        """
        logger.debug("Parsing group addresses")
        return extract_group_addresses(docs.data_doc, self.group_address_style)

    def _parse_devices(self, docs: ProjectDocuments,
                       group_address_by_id: Dict[str, GroupAddressInfo]) -> List[DeviceInfo]:
        logger.debug("Parsing devices")
        resolver = DeviceResolver(
            docs.data_doc,
            self.catalogs,
            group_address_by_id,
            self.catalogs.manufacturer_names(),
        )
        return resolver.extract_devices()

    @staticmethod
    def _backfill(group_addresses: List[GroupAddressInfo], devices: List[DeviceInfo]):
        backfill_group_addresses(group_addresses, devices)

    @staticmethod
    def _parse_locations(docs: ProjectDocuments, devices: List[DeviceInfo]):
        """
        Parse building structure (buildings, floors, rooms).

        Returns:
            List of root building spaces
        """
        logger.debug("Parsing locations")
        device_index = {device.instance_id: (device.individual_address, device.name) for device in devices}
        return extract_locations(docs.data_doc, device_index)


def load_knxproj(path, password: Optional[str] = None, language: Optional[str] = None,
                 config: Optional[Dict] = None) -> KnxProjectData:
    """
    Import a .knxproj file.

    Args:
        path: Path to the .knxproj file
        password: Project password, if the project is protected
        language: Preferred language code for catalog texts
        config: Configuration dictionary

    Returns:
        Resolved project model
    """
    return KNXParser(path, password, language, config).parse()


def load_knxproj_bytes(data: bytes, password: Optional[str] = None, language: Optional[str] = None,
                       config: Optional[Dict] = None) -> KnxProjectData:
    """Import a .knxproj archive held in memory."""
    logger.info(f"Loading KNX project from bytes ({len(data)} bytes)")
    return KNXParser(bytes(data), password, language, config).parse()


__all__ = ['KNXParser', 'load_knxproj', 'load_knxproj_bytes']

"""Lazy access to manufacturer catalogs during one import.

Catalog documents are looked up in the archive that held the project
documents first and in the outer archive second, since ETS6 exports keep
``M-*`` directories next to the nested project archive.
"""
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from topobus.errors import ArchiveError
from topobus.models.catalog import AppProgram, HardwareCatalog
from topobus.parsers.app_program import app_program_path, parse_app_program
from topobus.parsers.archive import KnxArchive
from topobus.parsers.discovery import MASTER_DATA_FILE
from topobus.parsers.hardware import hardware_path, parse_hardware_catalog, parse_manufacturer_names
from topobus.parsers.xml_utils import XmlDocument, parse_xml
from topobus.utils.catalog_cache import CatalogCache

logger = logging.getLogger(__name__)


class CatalogResolver:
    """Per-import cache of hardware and application program catalogs"""

    def __init__(self, archives: List[KnxArchive], preferred_language: Optional[str] = None):
        """
        Initialize resolver.

        Args:
            archives: Archives to search, in lookup order
            preferred_language: Language used for catalog texts
        """
        self.archives = []
        for archive in archives:
            if archive is not None and all(archive is not known for known in self.archives):
                self.archives.append(archive)
        self.preferred_language = preferred_language
        self.hardware_cache: CatalogCache[HardwareCatalog] = CatalogCache("hardware", self._load_hardware)
        self.app_cache: CatalogCache[AppProgram] = CatalogCache("application program", self._load_app_program)

    def read_document(self, path: str) -> Optional[XmlDocument]:
        """
        Read and parse a catalog document.

        Returns:
            Parsed document, or None if it is missing or unreadable
        """
        for archive in self.archives:
            entry = archive.find_entry(path)
            if entry is None:
                continue
            try:
                return parse_xml(archive.read_text(entry))
            except (ArchiveError, ET.ParseError) as e:
                logger.warning(f"Unable to load {path} from {archive.name} ({e})")
                return None
        return None

    def manufacturer_names(self) -> Dict[str, str]:
        doc = self.read_document(MASTER_DATA_FILE)
        if doc is None:
            logger.warning(f"{MASTER_DATA_FILE} not found, manufacturer names unavailable")
        return parse_manufacturer_names(doc)

    def _load_hardware(self, manufacturer_id: str) -> Optional[HardwareCatalog]:
        path = hardware_path(manufacturer_id)
        doc = self.read_document(path)
        if doc is None:
            logger.warning(f"Missing hardware data for {manufacturer_id} ({path}), skipping details")
            return None
        return parse_hardware_catalog(doc, manufacturer_id, self.preferred_language)

    def _load_app_program(self, app_id: str) -> Optional[AppProgram]:
        path = app_program_path(app_id)
        doc = self.read_document(path)
        if doc is None:
            logger.warning(f"Missing app program {app_id} ({path})")
            return None
        return parse_app_program(doc, app_id, self.preferred_language)

    def hardware(self, manufacturer_id: Optional[str]) -> Optional[HardwareCatalog]:
        if not manufacturer_id or not manufacturer_id.strip():
            return None
        return self.hardware_cache.get(manufacturer_id)

    def app_program(self, hardware: Optional[HardwareCatalog], hardware2program_id: Optional[str]) -> Optional[AppProgram]:
        """Application program linked to a ``Hardware2Program`` id."""
        if hardware is None or not hardware2program_id:
            return None
        app_id = hardware.hardware2program.get(hardware2program_id)
        return self.app_cache.get(app_id)

    def get_statistics(self) -> Dict:
        return {
            'hardware': self.hardware_cache.get_statistics(),
            'app_programs': self.app_cache.get_statistics(),
        }

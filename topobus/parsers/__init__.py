"""Parsers for ETS project archives"""

from .archive import KnxArchive, derive_zip_password
from .knx_parser import KNXParser, load_knxproj, load_knxproj_bytes

__all__ = ['KNXParser', 'KnxArchive', 'derive_zip_password', 'load_knxproj', 'load_knxproj_bytes']

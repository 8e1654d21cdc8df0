"""Locate the project and installation documents inside an archive.

Two documents are needed:
- the project document (``P-xxxx/project.xml``, holds ``ProjectInformation``)
- the data document (``P-xxxx/0.xml``, holds installations, topology and
  group addresses)

Lookup order is path convention, then content sniffing, then the same two
strategies inside every nested ``.zip`` entry, recursively.
"""
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from topobus.errors import ArchiveError, MissingDocumentError, ProjectImportError, TopobusError
from topobus.parsers.archive import KnxArchive, is_password_error
from topobus.parsers.xml_utils import XmlDocument, parse_xml

logger = logging.getLogger(__name__)

MASTER_DATA_FILE = "knx_master.xml"


@dataclass
class ProjectDocuments:
    """Both located documents and the archive they were found in."""
    archive: KnxArchive
    project_path: str
    data_path: str
    project_doc: XmlDocument
    data_doc: XmlDocument
    nested: bool = False


def _base_name(name: str) -> str:
    return name.rsplit("/", 1)[-1]


def numeric_xml_index(name: str) -> Optional[int]:
    """Return N for entries named ``N.xml`` (any directory), else None."""
    file_name = _base_name(name)
    if not file_name.endswith(".xml"):
        return None
    base = file_name[:-4]
    if not base or not base.isdigit():
        return None
    return int(base)


def _is_project_dir(name: str) -> bool:
    return name.startswith("P-")


def find_project_paths(names: Iterable[str]) -> Tuple[str, str]:
    """
    Find both documents by naming convention.

    Args:
        names: Entry names in archive order

    Returns:
        Tuple of (project document path, data document path)

    Raises:
        MissingDocumentError: If either document cannot be located
    """
    names = list(names)
    project_xml = None
    data_xml = None
    data_candidate: Optional[Tuple[int, str]] = None

    def consider_candidate(name: str):
        nonlocal data_candidate
        if name.startswith("M-"):
            return
        index = numeric_xml_index(name)
        if index is not None and (data_candidate is None or index < data_candidate[0]):
            data_candidate = (index, name)

    for name in names:
        if _is_project_dir(name) and name.endswith("/project.xml"):
            project_xml = project_xml or name
        elif _is_project_dir(name) and name.endswith("/0.xml"):
            data_xml = data_xml or name
        elif data_xml is None:
            consider_candidate(name)

    if project_xml is None or data_xml is None:
        for name in names:
            if project_xml is None and name.endswith("project.xml"):
                project_xml = name
            if data_xml is None and name.endswith("0.xml") and not name.startswith("M-"):
                data_xml = name
            elif data_xml is None:
                consider_candidate(name)

    if data_xml is None and data_candidate is not None:
        data_xml = data_candidate[1]

    if project_xml is None:
        raise MissingDocumentError("Unable to locate project.xml in .knxproj")
    if data_xml is None:
        raise MissingDocumentError("Unable to locate project data in .knxproj")
    return project_xml, data_xml


def classify_document(doc: XmlDocument) -> Optional[str]:
    """Return ``"data"``, ``"project"`` or None for an unrelated document."""
    if doc.has_element("Installations", "Topology", "GroupAddresses"):
        return "data"
    if doc.has_element("ProjectInformation"):
        return "project"
    return None


def find_project_paths_by_content(archive: KnxArchive) -> Tuple[str, str]:
    """
    Find both documents by parsing every candidate XML entry.

    Password errors propagate. Any other read or parse problem skips the entry.

    Raises:
        PasswordRequiredError, InvalidPasswordError: From reading an entry
        MissingDocumentError: If either document cannot be located
    """
    project_xml = None
    data_xml = None

    for name in archive.names():
        if not name.endswith(".xml"):
            continue
        if name.endswith(MASTER_DATA_FILE) or name.startswith("M-"):
            continue

        try:
            doc = parse_xml(archive.read_text(name))
        except ArchiveError as e:
            if is_password_error(e):
                raise
            logger.warning(f"Unable to read xml {name} ({e})")
            continue
        except ET.ParseError as e:
            logger.warning(f"Skipping xml {name} ({e})")
            continue

        kind = classify_document(doc)
        if kind == "project" and project_xml is None:
            project_xml = name
        elif kind == "data" and data_xml is None:
            data_xml = name

        if project_xml is not None and data_xml is not None:
            break

    if project_xml is None:
        raise MissingDocumentError("Unable to locate project.xml in .knxproj")
    if data_xml is None:
        raise MissingDocumentError("Unable to locate project data in .knxproj")
    return project_xml, data_xml


def _parse_entry(archive: KnxArchive, path: str) -> XmlDocument:
    try:
        return parse_xml(archive.read_text(path))
    except ET.ParseError as e:
        raise ProjectImportError(f"Failed to parse {path}: {e}") from e


def read_project_docs(archive: KnxArchive) -> ProjectDocuments:
    """
    Locate and parse both documents in a single archive.

    Raises:
        PasswordRequiredError, InvalidPasswordError: From reading an entry
        MissingDocumentError: If the documents are missing
        ProjectImportError: If a located document is not well-formed XML
        ArchiveError: If a located entry cannot be read
    """
    try:
        project_path, data_path = find_project_paths(archive.names())
    except MissingDocumentError:
        project_path, data_path = find_project_paths_by_content(archive)

    logger.info(f"Project docs: project={project_path}, data={data_path}")
    project_doc = _parse_entry(archive, project_path)
    data_doc = _parse_entry(archive, data_path)
    return ProjectDocuments(archive, project_path, data_path, project_doc, data_doc)


def _nested_archive_names(archive: KnxArchive) -> List[str]:
    return [name for name in archive.names() if name.lower().endswith(".zip")]


def locate_project_documents(archive: KnxArchive, scan_nested: bool = True) -> ProjectDocuments:
    """
    Locate both documents, falling back to nested archives.

    Nested archives are searched depth first and the first one that yields
    both documents wins. Password errors always propagate since they mean
    the password itself is wrong.

    Args:
        archive: Outer project archive
        scan_nested: Whether to look inside nested ``.zip`` entries

    Returns:
        ProjectDocuments; ``archive`` is the nested archive when found there

    Raises:
        PasswordRequiredError, InvalidPasswordError: From any entry read
        MissingDocumentError: If no archive holds both documents
        ProjectImportError: If a located document is not well-formed XML
    """
    try:
        return read_project_docs(archive)
    except ArchiveError as e:
        if is_password_error(e):
            raise
        first_error = e
    except MissingDocumentError as e:
        first_error = e

    if not scan_nested:
        raise MissingDocumentError(str(first_error)) from first_error

    for name in _nested_archive_names(archive):
        logger.debug(f"Scanning nested archive {name}")
        try:
            nested = archive.open_nested(name)
        except ArchiveError as e:
            if is_password_error(e):
                raise
            logger.warning(f"Unable to open nested zip {name} ({e})")
            continue

        try:
            docs = locate_project_documents(nested, scan_nested)
        except ArchiveError as e:
            nested.close()
            if is_password_error(e):
                raise
            continue
        except MissingDocumentError:
            nested.close()
            continue
        except TopobusError:
            nested.close()
            raise

        if docs.archive is not nested:
            nested.close()
        logger.info(f"Project docs found in nested archive {name}")
        docs.nested = True
        return docs

    raise MissingDocumentError("Unable to locate project data in .knxproj") from first_error

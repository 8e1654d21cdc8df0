"""Tests for project document discovery"""

import pytest

from topobus.errors import InvalidPasswordError, MissingDocumentError, PasswordRequiredError, ProjectImportError
from topobus.parsers.archive import KnxArchive
from topobus.parsers.discovery import (
    classify_document,
    find_project_paths,
    find_project_paths_by_content,
    locate_project_documents,
    numeric_xml_index,
)
from topobus.parsers.xml_utils import parse_xml
from knxproj_factory import DATA_XML, PROJECT_PASSWORD, PROJECT_XML, build_knxproj, write_zip


class TestPathConvention:

    def test_ets_layout(self):
        names = ["knx_master.xml", "M-0083/Hardware.xml", "P-0001/project.xml", "P-0001/0.xml"]
        assert find_project_paths(names) == ("P-0001/project.xml", "P-0001/0.xml")

    def test_generic_suffixes(self):
        names = ["export/myproject.xml", "export/10.xml"]
        assert find_project_paths(names) == ("export/myproject.xml", "export/10.xml")

    def test_smallest_numeric_document(self):
        names = ["project.xml", "M-0083/1.xml", "data/7.xml", "data/3.xml", "data/12.xml"]
        assert find_project_paths(names) == ("project.xml", "data/3.xml")

    def test_missing_project_document(self):
        with pytest.raises(MissingDocumentError, match="Unable to locate project.xml in .knxproj"):
            find_project_paths(["P-0001/0.xml"])

    def test_missing_data_document(self):
        with pytest.raises(MissingDocumentError, match="Unable to locate project data in .knxproj"):
            find_project_paths(["P-0001/project.xml", "M-0083/0.xml"])

    def test_numeric_xml_index(self):
        assert numeric_xml_index("P-0001/0.xml") == 0
        assert numeric_xml_index("12.xml") == 12
        assert numeric_xml_index("project.xml") is None
        assert numeric_xml_index("12.zip") is None


class TestContentSniffing:

    def test_classify_document(self):
        assert classify_document(parse_xml(DATA_XML)) == "data"
        assert classify_document(parse_xml(PROJECT_XML)) == "project"
        assert classify_document(parse_xml("<KNX><Other /></KNX>")) is None

    def test_unconventional_names(self):
        data = write_zip({
            "knx_master.xml": "<KNX><Installations /></KNX>",
            "broken.xml": "<KNX",
            "info.xml": PROJECT_XML,
            "payload.xml": DATA_XML,
        })
        with KnxArchive(data) as archive:
            with pytest.raises(MissingDocumentError):
                find_project_paths(archive.names())
            assert find_project_paths_by_content(archive) == ("info.xml", "payload.xml")

    def test_documents_with_bom(self):
        data = write_zip({"info.xml": "\ufeff" + PROJECT_XML, "payload.xml": "\ufeff" + DATA_XML})
        with KnxArchive(data) as archive:
            docs = locate_project_documents(archive)
        assert docs.project_path == "info.xml"
        assert docs.data_path == "payload.xml"


class TestNestedArchives:

    def test_plain_nested_archive(self):
        with KnxArchive(build_knxproj(nested=True)) as archive:
            docs = locate_project_documents(archive)
            assert docs.nested is True
            assert docs.archive is not archive
            assert docs.project_path == "project.xml"
            assert docs.data_path == "0.xml"
            docs.archive.close()

    def test_nested_scan_disabled(self):
        with KnxArchive(build_knxproj(nested=True)) as archive:
            with pytest.raises(MissingDocumentError):
                locate_project_documents(archive, scan_nested=False)

    def test_password_required_propagates(self):
        with KnxArchive.open(build_knxproj(nested=True, password=PROJECT_PASSWORD)) as archive:
            with pytest.raises(PasswordRequiredError):
                locate_project_documents(archive)

    def test_invalid_password_propagates(self):
        with KnxArchive.open(build_knxproj(nested=True, password=PROJECT_PASSWORD), "nope") as archive:
            with pytest.raises(InvalidPasswordError):
                locate_project_documents(archive)

    def test_corrupt_nested_archive_is_skipped(self):
        data = write_zip({"broken.zip": b"not a zip", "P-0001.zip": write_zip({
            "project.xml": PROJECT_XML,
            "0.xml": DATA_XML,
        })})
        with KnxArchive(data) as archive:
            docs = locate_project_documents(archive)
            assert docs.archive.name == "P-0001.zip"
            docs.archive.close()

    def test_archive_nested_two_levels_deep(self):
        inner = write_zip({"project.xml": PROJECT_XML, "0.xml": DATA_XML})
        data = write_zip({"outer.zip": write_zip({"P-0001.zip": inner})})
        with KnxArchive(data) as archive:
            docs = locate_project_documents(archive)
            assert docs.nested is True
            assert docs.archive.name == "P-0001.zip"
            assert docs.data_path == "0.xml"
            docs.archive.close()

    def test_deep_scan_follows_disabled_flag(self):
        inner = write_zip({"project.xml": PROJECT_XML, "0.xml": DATA_XML})
        data = write_zip({"outer.zip": write_zip({"P-0001.zip": inner})})
        with KnxArchive(data) as archive:
            with pytest.raises(MissingDocumentError):
                locate_project_documents(archive, scan_nested=False)

    def test_malformed_document_is_not_skipped(self):
        data = write_zip({
            "P-0001/project.xml": PROJECT_XML,
            "P-0001/0.xml": "<KNX><Installations>",
            "P-0002.zip": write_zip({"project.xml": PROJECT_XML, "0.xml": DATA_XML}),
        })
        with KnxArchive(data) as archive:
            with pytest.raises(ProjectImportError, match="Failed to parse P-0001/0.xml"):
                locate_project_documents(archive)

    def test_nothing_found(self):
        with KnxArchive(write_zip({"readme.txt": "empty"})) as archive:
            with pytest.raises(MissingDocumentError):
                locate_project_documents(archive)

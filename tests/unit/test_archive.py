"""Tests for archive access and password derivation"""

import pytest

from topobus.errors import ArchiveError, InvalidPasswordError, PasswordRequiredError
from topobus.parsers.archive import KnxArchive, derive_zip_password, is_password_error
from knxproj_factory import PROJECT_PASSWORD, write_zip


class TestPasswordDerivation:

    @pytest.mark.parametrize("password,expected", [
        ("a", "+FAwP4iI7/Pu4WB3HdIHbbFmteLahPAVkjJShKeozAA="),
        ("test", "2+IIP7ErCPPKxFjJXc59GFx2+w/1VTLHjJ2duc04CYQ="),
    ])
    def test_known_answer_vectors(self, password, expected):
        assert derive_zip_password(password) == expected

    def test_deterministic(self):
        assert derive_zip_password("knx") == derive_zip_password("knx")
        assert derive_zip_password("knx") != derive_zip_password("KNX")


class TestKnxArchive:

    def test_reads_plain_entries(self):
        data = write_zip({"P-0001/0.xml": "\ufeff<KNX />", "README.txt": "hello"})
        with KnxArchive(data) as archive:
            assert archive.names() == ["P-0001/0.xml", "README.txt"]
            assert archive.read_text("P-0001/0.xml") == "<KNX />"
            assert not archive.is_encrypted("README.txt")

    def test_find_entry_falls_back_to_case_insensitive_match(self):
        with KnxArchive(write_zip({"M-0083/hardware.xml": "<KNX />"})) as archive:
            assert archive.find_entry("M-0083/hardware.xml") == "M-0083/hardware.xml"
            assert archive.find_entry("M-0083/Hardware.xml") == "M-0083/hardware.xml"
            assert archive.find_entry("M-0084/Hardware.xml") is None

    def test_missing_entry_raises_archive_error(self):
        with KnxArchive(write_zip({"a.xml": "<a />"}), name="demo.knxproj") as archive:
            with pytest.raises(ArchiveError, match="Missing file in demo.knxproj: b.xml"):
                archive.read_bytes("b.xml")

    def test_not_a_zip_raises_archive_error(self):
        with pytest.raises(ArchiveError):
            KnxArchive(b"definitely not a zip file")

    def test_encrypted_entry_without_password(self):
        data = write_zip({"0.xml": "<KNX />"}, derive_zip_password(PROJECT_PASSWORD))
        with KnxArchive(data) as archive:
            assert archive.is_encrypted("0.xml")
            with pytest.raises(PasswordRequiredError) as exc_info:
                archive.read_bytes("0.xml")
        assert exc_info.value.entry == "0.xml"
        assert str(exc_info.value) == "Encrypted KNX project: password required"

    def test_encrypted_entry_with_wrong_password(self):
        data = write_zip({"0.xml": "<KNX />"}, derive_zip_password(PROJECT_PASSWORD))
        with KnxArchive.open(data, "wrong") as archive:
            with pytest.raises(InvalidPasswordError, match="Invalid password for KNX project"):
                archive.read_bytes("0.xml")

    def test_encrypted_entry_with_project_password(self):
        data = write_zip({"0.xml": "<KNX />"}, derive_zip_password(PROJECT_PASSWORD))
        with KnxArchive.open(data, PROJECT_PASSWORD) as archive:
            assert archive.read_text("0.xml") == "<KNX />"

    def test_open_nested_shares_password(self):
        zip_password = derive_zip_password(PROJECT_PASSWORD)
        inner = write_zip({"project.xml": "<KNX />"}, zip_password)
        outer = write_zip({"P-0001.zip": inner})
        with KnxArchive.open(outer, PROJECT_PASSWORD) as archive:
            nested = archive.open_nested("P-0001.zip")
            assert nested.name == "P-0001.zip"
            assert nested.read_text("project.xml") == "<KNX />"
            nested.close()

    def test_password_errors_are_archive_errors(self):
        assert is_password_error(PasswordRequiredError())
        assert is_password_error(InvalidPasswordError())
        assert not is_password_error(ArchiveError("broken"))
        assert isinstance(PasswordRequiredError(), ArchiveError)

"""Access to ``.knxproj`` archives.

A ``.knxproj`` file is a ZIP container. Password protected ETS exports keep
the project documents in a nested ``P-xxxx.zip`` encrypted with WinZip AES,
so entries are read through ``pyzipper``, which handles both plain and
AES-encrypted members.

The ZIP password is not the password the user typed in ETS but a value
derived from it (see ``derive_zip_password``).
"""
import base64
import hashlib
import io
import logging
import os
import zlib
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

import pyzipper

from topobus.errors import ArchiveError, InvalidPasswordError, PasswordRequiredError
from topobus.parsers.xml_utils import decode_xml_bytes

logger = logging.getLogger(__name__)

ETS_PASSWORD_SALT = b"21.project.ets.knx.org"
ETS_PASSWORD_ITERATIONS = 65536
ETS_PASSWORD_LENGTH = 32

ArchiveSource = Union[bytes, bytearray, str, os.PathLike, BinaryIO]


def derive_zip_password(project_password: str) -> str:
    """
    Derive the ZIP entry password from an ETS project password.

    Args:
        project_password: Password as entered in ETS

    Returns:
        Base64 encoded PBKDF2-HMAC-SHA256 key

    Example:
        >>> derive_zip_password("a")
        '+FAwP4iI7/Pu4WB3HdIHbbFmteLahPAVkjJShKeozAA='
    """
    key = hashlib.pbkdf2_hmac(
        "sha256",
        project_password.encode("utf-16-le"),
        ETS_PASSWORD_SALT,
        ETS_PASSWORD_ITERATIONS,
        dklen=ETS_PASSWORD_LENGTH,
    )
    return base64.b64encode(key).decode("ascii")


def is_password_error(error: BaseException) -> bool:
    return isinstance(error, (PasswordRequiredError, InvalidPasswordError))


class KnxArchive:
    """Read-only view of one ZIP container (outer or nested)."""

    def __init__(self, source: ArchiveSource, zip_password: Optional[str] = None, name: str = ".knxproj"):
        """
        Open an archive.

        Args:
            source: Archive bytes, a file path or a binary file object
            zip_password: Already derived ZIP password, if any
            name: Label used in log and error messages

        Raises:
            ArchiveError: If the source is not a readable ZIP archive
        """
        self.name = name
        self.zip_password = zip_password
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(bytes(source))
        elif isinstance(source, (str, os.PathLike)):
            source = Path(source)
        try:
            self._zip = pyzipper.AESZipFile(source, 'r')
        except (pyzipper.BadZipFile, OSError) as e:
            raise ArchiveError(f"Failed to read {name} archive: {e}") from e
        self._names = [info.filename for info in self._zip.infolist() if not info.is_dir()]

    @classmethod
    def open(cls, source: ArchiveSource, password: Optional[str] = None) -> "KnxArchive":
        """Open a project archive, deriving the ZIP password from ``password``."""
        zip_password = derive_zip_password(password) if password is not None else None
        if zip_password is not None:
            logger.info("Derived zip password for encrypted project")
        return cls(source, zip_password)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        self._zip.close()

    def names(self) -> List[str]:
        """Entry names in archive order (directories excluded)."""
        return list(self._names)

    def has_entry(self, path: str) -> bool:
        return path in self._names

    def find_entry(self, path: str) -> Optional[str]:
        """Exact lookup first, then a case-insensitive one."""
        if path in self._names:
            return path
        lowered = path.lower()
        return next((name for name in self._names if name.lower() == lowered), None)

    def is_encrypted(self, path: str) -> bool:
        return bool(self._zip.getinfo(path).flag_bits & 0x1)

    def read_bytes(self, path: str) -> bytes:
        """
        Read the raw bytes of an entry, decrypting if needed.

        Raises:
            PasswordRequiredError: Entry is encrypted and no password was given
            InvalidPasswordError: The password does not decrypt the entry
            ArchiveError: Entry is missing or unreadable
        """
        logger.debug(f"Reading entry {path} (password: {'yes' if self.zip_password else 'no'})")
        try:
            info = self._zip.getinfo(path)
        except KeyError:
            raise ArchiveError(f"Missing file in {self.name}: {path}") from None

        encrypted = bool(info.flag_bits & 0x1)
        if encrypted and not self.zip_password:
            logger.warning(f"Password required for {path}")
            raise PasswordRequiredError(path)

        pwd = self.zip_password.encode("utf-8") if self.zip_password else None
        try:
            return self._zip.read(info, pwd=pwd)
        except RuntimeError as e:
            if encrypted:
                logger.warning(f"Invalid password for {path}")
                raise InvalidPasswordError(path) from e
            raise ArchiveError(f"Failed to read {path}: {e}") from e
        except (pyzipper.BadZipFile, zlib.error, ValueError, OSError) as e:
            # a wrong ZipCrypto password can pass the check byte and fail later
            if encrypted:
                logger.warning(f"Invalid password for {path}")
                raise InvalidPasswordError(path) from e
            raise ArchiveError(f"Failed to read {path}: {e}") from e

    def read_text(self, path: str) -> str:
        """Read an entry as text with any byte order mark removed."""
        return decode_xml_bytes(self.read_bytes(path))

    def open_nested(self, path: str) -> "KnxArchive":
        """
        Open a ``.zip`` entry as an archive sharing this archive's password.

        Raises:
            PasswordRequiredError, InvalidPasswordError: As for ``read_bytes``
            ArchiveError: Entry is missing or not a ZIP archive
        """
        data = self.read_bytes(path)
        return KnxArchive(data, self.zip_password, name=path)

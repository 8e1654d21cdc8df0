"""Exception types raised while importing a KNX project archive.

Archive level problems (``PasswordRequiredError``, ``InvalidPasswordError``,
``MissingDocumentError``, ``ProjectImportError``) abort the import.

The ``ParseError`` family describes a problem with a single XML element. These
are raised by the attribute helpers and caught by the extraction loops, which
log them and skip the element.
"""
from typing import Optional


class TopobusError(Exception):
    """Base class for all topobus errors"""


class ArchiveError(TopobusError):
    """Raised when the project archive cannot be opened or read"""


class PasswordRequiredError(ArchiveError):
    """Raised when an encrypted entry is read without a password"""

    def __init__(self, entry: Optional[str] = None):
        self.entry = entry
        super().__init__("Encrypted KNX project: password required")


class InvalidPasswordError(ArchiveError):
    """Raised when the supplied password does not decrypt an entry"""

    def __init__(self, entry: Optional[str] = None):
        self.entry = entry
        super().__init__("Invalid password for KNX project")


class MissingDocumentError(TopobusError):
    """Raised when the project or installation document cannot be located"""


class ProjectImportError(TopobusError):
    """Generic fatal import failure, always chained to its cause"""


class ParseError(TopobusError):
    """Structured diagnostic about a single XML element"""

    def __init__(self, element: str, context: str, message: str):
        self.element = element
        self.context = context
        super().__init__(message)


class MissingRequiredAttributeError(ParseError):

    def __init__(self, element: str, attribute: str, context: str):
        self.attribute = attribute
        super().__init__(
            element,
            context,
            f"Missing required attribute '{attribute}' on {element} ({context})",
        )


class InvalidAttributeValueError(ParseError):

    def __init__(self, element: str, attribute: str, value: str, expected: str, context: str):
        self.attribute = attribute
        self.value = value
        self.expected = expected
        super().__init__(
            element,
            context,
            f"Invalid attribute '{attribute}' on {element}: '{value}' (expected {expected}) ({context})",
        )


class MissingAncestorError(ParseError):

    def __init__(self, element: str, ancestor: str, context: str):
        self.ancestor = ancestor
        super().__init__(
            element,
            context,
            f"Missing ancestor '{ancestor}' for {element} ({context})",
        )


__all__ = [
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

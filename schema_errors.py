"""
Exception types raised while turning schema files into declarations.
"""
from typing import Optional


class ProtoDtsError(Exception):
    pass


class SchemaParseError(ProtoDtsError):
    """A schema file could not be parsed. Recoverable: the file is skipped."""

    def __init__(self, message: str, filename: Optional[str] = None, line: Optional[int] = None,
                 column: Optional[int] = None):
        self.message = message
        self.filename = filename
        self.line = line if line is not None and line >= 0 else None
        self.column = column
        super().__init__(str(self))

    def __str__(self):
        location = self.filename or "<input>"
        if self.line is not None:
            location += f":{self.line}"
            if self.column is not None:
                location += f":{self.column}"
        return f"{location}: {self.message}"


class MissingPackageError(ProtoDtsError):
    """A parsed file declares no package. Aborts the run."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Package name not found. File: {filename}")


class MissingNamespaceNodeError(ProtoDtsError):
    """The declared package has no namespace node in the file's own tree. Aborts the run."""

    def __init__(self, filename: str, package: str):
        self.filename = filename
        self.package = package
        super().__init__(f"Namespace '{package}' not found in parse tree. File: {filename}")


class TypedefParseError(ProtoDtsError):
    pass

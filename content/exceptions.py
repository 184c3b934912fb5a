class ContentError(Exception):
    """Base class for failures of the JSON content store."""


class DocumentNameError(ContentError, ValueError):
    """A document name that is not a bare filename inside the data directory."""


class DocumentReadError(ContentError):
    """The document file is missing, unreadable or not valid JSON."""


class DocumentShapeError(ContentError):
    """The document parsed, but its top-level type does not match its default."""


class DocumentWriteError(ContentError):
    """The document (or its directory) could not be written."""

"""Exception types raised by icartifact."""


class IcArtifactError(Exception):
    """Base class for all icartifact errors."""


class MalformedInputError(IcArtifactError, ValueError):
    """Input is missing required fields or is internally inconsistent.

    Raised for sensor records without planar coordinates, mixing matrices
    whose shape does not match the sensor layout, and unreadable input files.
    """


class NotFoundError(IcArtifactError, LookupError):
    """The requested target sensor is not part of the sensor layout."""

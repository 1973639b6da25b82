"""Box collection errors.

Every error raised by this package derives from BoxCollectionError so callers
can catch the whole family. Filesystem and subprocess errors are not wrapped.
"""


class BoxCollectionError(Exception):
    """Base class for box collection failures."""


class BoxAlreadyExists(BoxCollectionError):
    """Raised when adding a box that is already installed and force is off."""

    def __init__(self, name: str, provider: str, version: str):
        self.name = name
        self.provider = provider
        self.version = version
        super().__init__(
            f"The box '{name}' (v{version}) with provider '{provider}' already exists. "
            "Use force to overwrite it."
        )


class BoxProviderDoesntMatch(BoxCollectionError):
    """Raised when the unpacked box targets a provider the caller did not ask for."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"The box provider '{actual}' doesn't match the expected provider(s): {expected}")


class BoxUnpackageFailure(BoxCollectionError):
    """Raised when the unpack tool exits non-zero."""

    def __init__(self, output: str):
        self.output = output
        super().__init__(f"Failed to unpack the box file:\n\n{output}")


class InvalidVersion(BoxCollectionError):
    """Raised when a version string cannot be parsed."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Malformed version string: {version!r}")


class BoxVersionInvalid(BoxCollectionError):
    """Raised when a version constraint cannot be parsed."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"The version constraint {version!r} is invalid")


InvalidVersionConstraint = BoxVersionInvalid


class BoxMetadataFileNotFound(BoxCollectionError):
    """Raised when a box directory has no metadata.json."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"The metadata.json file for the box could not be found: {path}")


class BoxMetadataCorrupted(BoxCollectionError):
    """Raised when metadata.json is not valid JSON or lacks a provider."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"The metadata.json file for the box is corrupted: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class InvalidBoxName(BoxCollectionError):
    """Raised when a box name does not encode to a single directory name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid box name: {name!r}")


class InvalidProviderName(BoxCollectionError, ValueError):
    """Raised when a provider token is blank or contains whitespace or path separators."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Invalid provider name: {provider!r}")

"""
box_collection - a versioned on-disk collection of VM boxes.

Public API:
- BoxCollection: add, find, enumerate, clean and upgrade boxes under a root
- Box: handle to one installed box
- AddOptions: options for BoxCollection.add
- Version / Requirement / parse_requirements: version constraints
- BoxCollectionError and subclasses: failure conditions
"""

from .box import Box
from .collection import BoxCollection
from .errors import BoxAlreadyExists
from .errors import BoxCollectionError
from .errors import BoxMetadataCorrupted
from .errors import BoxMetadataFileNotFound
from .errors import BoxProviderDoesntMatch
from .errors import BoxUnpackageFailure
from .errors import BoxVersionInvalid
from .errors import InvalidBoxName
from .errors import InvalidProviderName
from .errors import InvalidVersion
from .errors import InvalidVersionConstraint
from .models import AUTO
from .models import AddOptions
from .models import BoxEntry
from .models import ProviderName
from .version import Requirement
from .version import Version
from .version import parse_requirements

__all__ = [
    "AUTO",
    "AddOptions",
    "Box",
    "BoxAlreadyExists",
    "BoxCollection",
    "BoxCollectionError",
    "BoxEntry",
    "BoxMetadataCorrupted",
    "BoxMetadataFileNotFound",
    "BoxProviderDoesntMatch",
    "BoxUnpackageFailure",
    "BoxVersionInvalid",
    "InvalidBoxName",
    "InvalidProviderName",
    "InvalidVersion",
    "InvalidVersionConstraint",
    "ProviderName",
    "Requirement",
    "Version",
    "parse_requirements",
]

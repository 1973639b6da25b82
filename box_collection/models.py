"""Value types shared across the box collection."""

import re
from dataclasses import dataclass
from typing import NamedTuple

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .errors import InvalidProviderName

# Architecture selector meaning "whatever the host runs on"
AUTO = "auto"

_PROVIDER_PATTERN = re.compile(r"^[^\s/\\]+$")


@dataclass(frozen=True, order=True)
class ProviderName:
    """A provider identifier such as "virtualbox" or "libvirt".

    Compared as a token: surrounding whitespace is stripped at parse time and
    matching is case-sensitive.
    """

    value: str

    @classmethod
    def parse(cls, raw: "str | ProviderName") -> "ProviderName":
        if isinstance(raw, ProviderName):
            return raw
        token = str(raw).strip()
        if not _PROVIDER_PATTERN.match(token):
            raise InvalidProviderName(str(raw))
        return cls(token)

    def __str__(self) -> str:
        return self.value


def parse_providers(providers) -> list[ProviderName] | None:
    """Normalise None, a single provider, or an iterable of providers."""
    if providers is None:
        return None
    if isinstance(providers, (str, ProviderName)):
        providers = [providers]
    return [ProviderName.parse(p) for p in providers]


@dataclass
class AddOptions:
    """Options for `BoxCollection.add`.

    Attributes:
        providers: Acceptable providers. When None, whatever provider the box
            declares is accepted.
        architecture: Architecture to file the box under, AUTO for the host
            architecture, or None to store it without an architecture segment.
        force: Replace an existing box with the same name/version/provider.
        metadata_url: URL written to the box-level metadata_url file.
    """

    providers: list[str] | None = None
    architecture: str | None = None
    force: bool = False
    metadata_url: str | None = None


class BoxMetadata(BaseModel):
    """Contents of a provider directory's metadata.json."""

    model_config = ConfigDict(extra="allow")

    provider: str = Field(..., description="Provider the box was built for")


class BoxEntry(NamedTuple):
    """One installed box as reported by `BoxCollection.all`."""

    name: str
    version: str
    provider: str
    architecture: str | None

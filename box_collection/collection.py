"""The box collection: every box installed under one root directory.

A collection matches a very specific folder structure:

    COLLECTION_ROOT/BOX_NAME/VERSION/[ARCHITECTURE/]PROVIDER/metadata.json

Where:

* COLLECTION_ROOT - the directory given to BoxCollection.
* BOX_NAME - the logical box name, encoded by layout.dir_name.
* VERSION - a version string (see version.Version).
* ARCHITECTURE - optional. Boxes added before architecture support have
  their provider directory directly under VERSION.
* PROVIDER - the provider the box was built for (virtualbox, libvirt, ...).
* metadata.json - at minimum a "provider" key. Its presence is the only
  thing that marks a directory as an installed box.

All public operations take one reentrant lock, so the collection behaves as
single-threaded to callers within the process.
"""

import logging
import shutil
import tempfile
import threading
from collections import deque
from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .box import Box
from .errors import BoxAlreadyExists
from .errors import BoxMetadataCorrupted
from .errors import BoxProviderDoesntMatch
from .errors import InvalidVersion
from .fs import Filesystem
from .fs import LocalFilesystem
from .layout import METADATA_FILE
from .layout import METADATA_URL_FILE
from .layout import TEMP_PREFIX
from .layout import dir_name
from .layout import host_architecture
from .layout import provider_path
from .layout import undir_name
from .migration import is_v1_box
from .migration import rehome_v1_collection
from .migration import v1_upgrade
from .models import AUTO
from .models import AddOptions
from .models import BoxEntry
from .models import ProviderName
from .models import parse_providers
from .unpack import BsdtarUnpacker
from .version import Version
from .version import is_valid_version
from .version import parse_requirements
from .version import satisfies_all

logger = logging.getLogger(__name__)

# Rewrites stored metadata URLs, e.g. to inject credentials
BoxUrlHook = Callable[[list[str]], list[str]]
Unpacker = Callable[[Path, Path], None]


class BoxCollection:
    """
    Manage the boxes installed under a collection root.

    Contract:
    - Inputs: a collection root directory, plus optional collaborators
    - Outputs: Box handles and BoxEntry listings
    - Side Effects: creates, moves and removes files under the root and in
      temporary directories (which are always removed)
    - Errors: BoxCollectionError subclasses; OSError and subprocess errors
      propagate unchanged
    """

    def __init__(
        self,
        directory: Path,
        hook: BoxUrlHook | None = None,
        temp_dir_root: Path | None = None,
        unpacker: Unpacker | None = None,
        filesystem: Filesystem | None = None,
    ):
        """Initialize the collection.

        Args:
            directory: Collection root
            hook: Called with [metadata_url] when a found box has one; must
                return a list whose first item replaces the URL
            temp_dir_root: Parent for temporary directories (system default if None)
            unpacker: Callable(archive, target) that extracts a box archive
            filesystem: Directory lister used for enumeration
        """
        self.directory = Path(directory)
        self.hook = hook
        self.temp_dir_root = Path(temp_dir_root) if temp_dir_root else None
        self.unpacker = unpacker or BsdtarUnpacker()
        self.filesystem = filesystem or LocalFilesystem()
        self._lock = threading.RLock()

    # ----- Public operations -----

    def add(self, path: Path, name: str, version: str, options: AddOptions | None = None) -> Box | None:
        """
        Add a box archive to the collection.

        Args:
            path: Box archive on disk
            name: Logical box name
            version: Version to install as
            options: Providers, architecture, force and metadata URL

        Returns:
            The installed Box, as find() would return it

        Raises:
            InvalidVersion: version is blank or malformed
            InvalidBoxName: name does not encode to one directory name
            BoxAlreadyExists: the box is installed and force is off
            BoxProviderDoesntMatch: the archive's provider isn't acceptable
            BoxUnpackageFailure: the unpack tool failed
        """
        options = options or AddOptions()
        dir_name(name)
        # A blank version would drop the version directory from the path
        if not version.strip():
            raise InvalidVersion(version)
        version = version.strip()
        Version(version)
        providers = parse_providers(options.providers)
        architecture = options.architecture
        log_provider = ", ".join(str(p) for p in providers) if providers else "any provider"

        with self._lock:
            logger.debug(f"Adding box: {name} ({log_provider} - {architecture!r}) from {path}")

            # Checking early avoids unpacking when the caller named the provider
            if providers:
                self._check_box_exists(name, version, providers, architecture, options.force)

            with self._temp_dir() as unpack_dir:
                logger.debug(f"Unpacking box into temporary directory: {unpack_dir}")
                self.unpacker(Path(path), unpack_dir)

                staged_dir = unpack_dir
                if is_v1_box(unpack_dir):
                    logger.debug("Added box is a V1 box. Upgrading in place.")
                    staged_dir = v1_upgrade(unpack_dir, self.temp_dir_root)

                with self._temp_dir(staged_dir) as final_temp_dir:
                    provider = self._install(final_temp_dir, name, version, providers, architecture, options)

            return self.find(name, [provider], version, architecture)

    def all(self) -> list[BoxEntry]:
        """
        List every installed box.

        Returns:
            BoxEntry tuples sorted by name, provider, version, then
            architecture (untagged first)
        """
        fs = self.filesystem
        results: list[BoxEntry] = []
        legacy: list[BoxEntry] = []

        with self._lock:
            logger.debug(f"Finding all boxes in: {self.directory}")
            if not fs.is_dir(self.directory):
                logger.debug(f"Collection directory does not exist: {self.directory}")
                return []

            for child in fs.entries(self.directory):
                # Files directly under the root are not boxes
                if not child.is_dir:
                    continue

                box_name = undir_name(child.name)

                for version_dir in fs.entries(child.path):
                    if not version_dir.is_dir or version_dir.is_hidden:
                        continue

                    version = version_dir.name
                    if not is_valid_version(version):
                        logger.warning(f"Invalid version '{version}' for box '{box_name}', skipping")
                        continue

                    for arch_or_provider in fs.entries(version_dir.path):
                        if not arch_or_provider.is_dir:
                            logger.debug(f"Invalid box {box_name} (v{version}) - invalid item: {arch_or_provider.path}")
                            continue

                        architecture_name = arch_or_provider.name

                        for provider in fs.entries(arch_or_provider.path):
                            if not provider.is_dir:
                                logger.debug(
                                    f"Invalid box {box_name} (v{version}, {architecture_name}) - "
                                    f"invalid item: {provider.path}"
                                )
                                continue

                            if fs.is_file(provider.path / METADATA_FILE):
                                logger.debug(f"Box: {box_name} ({provider.name} ({architecture_name}), {version})")
                                results.append(BoxEntry(box_name, version, provider.name, architecture_name))

                        # Added before architecture support, so this is a provider directory
                        if fs.is_file(arch_or_provider.path / METADATA_FILE):
                            legacy.append(BoxEntry(box_name, version, arch_or_provider.name, None))

        # An untagged box is hidden only behind a tagged twin for the host architecture
        host_arch = host_architecture()
        tagged = set(results)
        for entry in legacy:
            if entry._replace(architecture=host_arch) in tagged:
                continue
            logger.debug(f"Box: {entry.name} ({entry.provider}, {entry.version})")
            results.append(entry)

        results.sort(key=lambda e: (e.name, e.provider, Version(e.version), e.architecture or ""))
        return results

    def find(
        self,
        name: str,
        providers,
        version: str | None = "",
        architecture: str | None = AUTO,
    ) -> Box | None:
        """
        Find the newest box matching name, providers and version constraints.

        Args:
            name: Logical box name
            providers: One provider or a list, tried in order for each version
            version: Constraint list such as "~> 1.0" or ">= 1.0, < 1.5";
                empty matches any version
            architecture: AUTO for the host architecture (falling back to
                boxes stored without one), an explicit architecture, or None
                for untagged boxes only

        Returns:
            The matching Box, or None

        Raises:
            BoxVersionInvalid: version is not a valid constraint list
            InvalidBoxName: name does not encode to one directory name
        """
        providers = parse_providers(providers) or []
        requirements = parse_requirements(version)
        resolved_arch = host_architecture() if architecture == AUTO else architecture
        log_provider = ", ".join(str(p) for p in providers)
        fs = self.filesystem

        with self._lock:
            box_directory = self.directory / dir_name(name)
            if not fs.is_dir(box_directory):
                logger.info(f"Box not found: {name} ({log_provider})")
                return None

            candidates = []
            for version_dir in fs.entries(box_directory):
                if not version_dir.is_dir or version_dir.is_hidden:
                    continue
                if not is_valid_version(version_dir.name):
                    logger.debug(f"Skipping non-version directory {version_dir.path}")
                    continue
                candidates.append((Version(version_dir.name), version_dir))

            # Latest version first
            candidates.sort(key=lambda c: c[0], reverse=True)

            for candidate, version_dir in candidates:
                if not satisfies_all(candidate, requirements):
                    continue

                for provider in providers:
                    found = self._locate_provider_dir(version_dir.path, provider, resolved_arch, architecture == AUTO)
                    if found is None:
                        continue

                    provider_dir, box_arch = found
                    logger.info(f"Box found: {name} ({provider})")
                    return Box(
                        name,
                        str(provider),
                        version_dir.name,
                        provider_dir,
                        architecture=box_arch,
                        metadata_url=self._read_metadata_url(box_directory),
                    )

        logger.info(f"Box not found: {name} ({log_provider}) matching {version!r}")
        return None

    def exists(self, name: str) -> bool:
        """Check if any version of a box is installed."""
        with self._lock:
            return any(entry.name == name for entry in self.all())

    def clean(self, name: str) -> bool:
        """
        Remove a box's directory once no versions of it remain.

        Returns:
            True if the directory was removed, False if the box still has
            installed versions

        Raises:
            InvalidBoxName: name does not encode to one directory name
        """
        path = self.directory / dir_name(name)

        with self._lock:
            if self.exists(name):
                return False

            if path.exists():
                logger.debug(f"Cleaning empty box directory: {path}")
                shutil.rmtree(path)
            return True

    def upgrade_v1_1_v1_5(self) -> None:
        """
        Upgrade a pre-versioning collection to the versioned layout.

        Every box becomes version "0". The new tree is staged in a temporary
        directory and swapped in for the root only after all boxes are done.
        """
        with self._lock:
            with self._temp_dir() as staging:
                logger.info(f"Upgrading box collection in {self.directory}")
                rehome_v1_collection(self.directory, staging, self.temp_dir_root)

                shutil.rmtree(self.directory)
                shutil.move(str(staging), str(self.directory))

    # ----- Helpers -----

    def _check_box_exists(
        self,
        name: str,
        version: str,
        providers: list[ProviderName],
        architecture: str | None,
        force: bool,
    ) -> None:
        box = self.find(name, providers, version, architecture)
        if box is None:
            return

        provider_list = ", ".join(str(p) for p in providers)
        if not force:
            logger.error(f"Box already exists, can't add: {name} v{version} {provider_list}")
            raise BoxAlreadyExists(name=name, provider=provider_list, version=version)

        logger.info(f"Box already exists, but forcing so removing: {name} v{version} {provider_list}")
        box.destroy()

    def _install(
        self,
        staged_dir: Path,
        name: str,
        version: str,
        providers: list[ProviderName] | None,
        architecture: str | None,
        options: AddOptions,
    ) -> ProviderName:
        # Inspect the unpacked box before it is finalized in the collection
        box = Box(name, None, version, staged_dir)
        try:
            box_provider = ProviderName.parse(box.metadata["provider"])
        except ValueError as e:
            raise BoxMetadataCorrupted(box.metadata_path, str(e)) from e

        if providers:
            if box_provider not in providers:
                expected = ", ".join(str(p) for p in providers)
                logger.error(f"Added box provider doesnt match expected: {expected}")
                raise BoxProviderDoesntMatch(expected=expected, actual=str(box_provider))
        else:
            self._check_box_exists(name, version, [box_provider], architecture, options.force)

        arch = host_architecture() if architecture == AUTO else architecture
        provider_dir = provider_path(self.directory, name, version, str(box_provider), arch)
        logger.debug(f"Provider directory: {provider_dir}")

        if provider_dir.exists():
            logger.debug("Removing existing provider directory...")
            shutil.rmtree(provider_dir)

        provider_dir.mkdir(parents=True)
        self._move_contents(staged_dir, provider_dir)

        if options.metadata_url:
            (self.directory / dir_name(name) / METADATA_URL_FILE).write_text(options.metadata_url, encoding="utf-8")

        return box_provider

    def _move_contents(self, source: Path, destination: Path) -> None:
        """Move files one at a time, recreating directories rather than renaming them.

        Whole-directory renames are not safe across volumes on every platform.
        """
        pairs = deque([(source, destination)])
        while pairs:
            src, dst = pairs.popleft()
            for child in sorted(src.iterdir()):
                target = dst / child.name

                if child.is_dir() and not child.is_symlink():
                    target.mkdir(parents=True, exist_ok=True)
                    pairs.append((child, target))
                    continue

                logger.debug(f"Moving: {child} => {target}")
                shutil.move(str(child), str(target))

    def _locate_provider_dir(
        self,
        version_dir: Path,
        provider: ProviderName,
        architecture: str | None,
        allow_untagged: bool,
    ) -> tuple[Path, str | None] | None:
        fs = self.filesystem

        if architecture:
            tagged = version_dir / architecture / str(provider)
            if fs.is_file(tagged / METADATA_FILE):
                return tagged, architecture
            if not allow_untagged:
                return None

        untagged = version_dir / str(provider)
        if fs.is_file(untagged / METADATA_FILE):
            return untagged, None
        return None

    def _read_metadata_url(self, box_directory: Path) -> str | None:
        url_file = box_directory / METADATA_URL_FILE
        if not self.filesystem.is_file(url_file):
            return None

        metadata_url = self.filesystem.read_text(url_file)
        if metadata_url and self.hook:
            metadata_url = self.hook([metadata_url])[0]
        return metadata_url

    @contextmanager
    def _temp_dir(self, directory: Path | None = None) -> Iterator[Path]:
        """Yield a temporary directory that is removed on every exit path."""
        if directory is None:
            if self.temp_dir_root:
                self.temp_dir_root.mkdir(parents=True, exist_ok=True)
            directory = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX, dir=self.temp_dir_root))

        try:
            yield Path(directory)
        finally:
            shutil.rmtree(directory, ignore_errors=True)

    def __repr__(self) -> str:
        return f"BoxCollection({str(self.directory)!r})"

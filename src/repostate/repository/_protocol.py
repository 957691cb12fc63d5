"""Collaborator protocols for the repository tracker.

The tracker composes three collaborators it does not implement itself:
a metadata reader, an open-branch enumerator, and a notification publisher.
Each is a runtime-checkable Protocol so that the on-disk implementations
and the test fakes can be swapped freely.
"""

from typing import Protocol, runtime_checkable

from repostate.repository._models import (
    RepositoryConfig,
    RepositoryRoot,
    Snapshot,
)


@runtime_checkable
class MetadataReaderProtocol(Protocol):
    """Protocol for reading repository metadata into a Snapshot.

    Example:
        >>> def describe(reader: MetadataReaderProtocol) -> str:
        ...     snapshot = reader.read()
        ...     return f"{snapshot.current_branch}@{snapshot.current_revision}"
    """

    @property
    def root(self) -> RepositoryRoot:
        """The repository this reader reads."""
        ...

    @property
    def default_branch(self) -> str:
        """Branch name a repository without metadata starts on."""
        ...

    def read(self) -> Snapshot:
        """Read all repository facts in one pass.

        Returns:
            A new Snapshot. Absent facts produce empty or None values.

        Raises:
            MetadataUnreadableError: If the metadata directory is missing,
                malformed, or cannot be read.
        """
        ...

    def is_fresh(self) -> bool:
        """Check cheaply whether metadata is unchanged since the last read().

        Returns:
            True while no change has ever been observed, False afterwards.
        """
        ...

    def read_config(self) -> RepositoryConfig:
        """Read the repository's configured remote paths.

        Returns:
            The repository configuration.

        Raises:
            MetadataUnreadableError: If the configuration file is malformed.
        """
        ...


@runtime_checkable
class BranchEnumeratorProtocol(Protocol):
    """Protocol for the expensive open-branch query."""

    def collect_open_branches(self, root: RepositoryRoot) -> frozenset[str]:
        """Query the names of open branches.

        Args:
            root: The repository to query.

        Returns:
            Names of branches that are not closed.

        Raises:
            EnumerationFailedError: If the query fails.
        """
        ...


@runtime_checkable
class PublisherProtocol(Protocol):
    """Protocol for delivering repository-changed notifications."""

    def publish(self, topic: str, root: RepositoryRoot) -> object:
        """Deliver a notification to every subscriber of a topic.

        Args:
            topic: The topic name.
            root: Identity of the repository that changed.

        Returns:
            Implementation-defined delivery report.
        """
        ...

from pathlib import Path

import pytest

from repostate.events import MessageBus
from repostate.repository import (
    FakeBranchEnumerator,
    FakeMetadataReader,
    RepositoryTracker,
    Snapshot,
)
from repostate.session import Session


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def reader() -> FakeMetadataReader:
    """Create a fake reader returning an empty snapshot on "default"."""
    return FakeMetadataReader(snapshot=Snapshot(current_branch="default"))


@pytest.fixture
def enumerator() -> FakeBranchEnumerator:
    """Create a fake enumerator reporting the "default" branch as open."""
    return FakeBranchEnumerator(branches=frozenset({"default"}))


@pytest.fixture
def bus() -> MessageBus:
    return MessageBus()


@pytest.fixture
def session() -> Session:
    return Session(name="test")


@pytest.fixture
def tracker(
    reader: FakeMetadataReader,
    enumerator: FakeBranchEnumerator,
    bus: MessageBus,
    session: Session,
) -> RepositoryTracker:
    """Create a tracker over fakes, without a baseline."""
    return RepositoryTracker(reader, enumerator, publisher=bus, session=session)

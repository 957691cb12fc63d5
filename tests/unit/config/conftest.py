import os
from pathlib import Path

import pytest
from pytest_mock import MockerFixture


@pytest.fixture(autouse=True)
def isolated_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, mocker: MockerFixture
) -> Path:
    """Point the user config at tmp_path and clear REPOSTATE_* variables."""
    for key in list(os.environ):
        if key.startswith("REPOSTATE_"):
            monkeypatch.delenv(key)
    user_path = tmp_path / "user" / "config.toml"
    _ = mocker.patch(
        "repostate.config._load.get_user_config_path", return_value=user_path
    )
    return user_path

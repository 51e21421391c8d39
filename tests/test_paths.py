"""Tests for host path layout and repository naming."""

from __future__ import annotations

from pathlib import Path

import pytest

from ccr.errors import ValidationError
from ccr.paths import (
    copy_and_fix_endings,
    detect_repo,
    get_ccr_home,
    get_compose_path,
    get_container_name,
    get_repos_dir,
    repo_from_compose_filename,
    validate_repo_name,
)


class TestDirectories:
    """Tests for environment overrides of the base directories."""

    def test_env_overrides(self, tmp_path: Path) -> None:
        assert get_ccr_home() == tmp_path / "ccr-home"
        assert get_repos_dir() == tmp_path / "repos"

    def test_defaults_under_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CCR_HOME")
        monkeypatch.delenv("CCR_REPOS_DIR")
        assert get_ccr_home() == Path.home() / ".ccr"
        assert get_repos_dir() == Path.home() / "repos"

    def test_compose_path(self, tmp_path: Path) -> None:
        expected = tmp_path / "ccr-home" / "containers" / "docker-compose.my-app.yml"
        assert get_compose_path("my-app") == expected


class TestValidateRepoName:
    """Tests for validate_repo_name function."""

    @pytest.mark.parametrize("name", ["app", "my-app", "my_app.v2", "A1"])
    def test_valid(self, name: str) -> None:
        assert validate_repo_name(name) == name

    @pytest.mark.parametrize(
        "name", ["", None, ".", "..", "-app", "a/b", "a b", "app;rm", "$(x)"]
    )
    def test_invalid(self, name: str | None) -> None:
        with pytest.raises(ValidationError):
            validate_repo_name(name)


class TestNaming:
    """Tests for container and compose file naming."""

    def test_container_name(self) -> None:
        assert get_container_name("my-app") == "claude-my-app"

    def test_repo_from_compose_filename(self) -> None:
        assert repo_from_compose_filename("docker-compose.my-app.yml") == "my-app"
        assert repo_from_compose_filename("docker-compose.a.b.yml") == "a.b"
        assert repo_from_compose_filename("docker-compose.yml") is None
        assert repo_from_compose_filename("Dockerfile.claude") is None


class TestDetectRepo:
    """Tests for detect_repo function."""

    def test_repo_root(self, tmp_path: Path) -> None:
        repo = tmp_path / "repos" / "my-app"
        repo.mkdir(parents=True)
        assert detect_repo(repo) == "my-app"

    def test_subdirectory(self, tmp_path: Path) -> None:
        nested = tmp_path / "repos" / "my-app" / "src" / "pkg"
        nested.mkdir(parents=True)
        assert detect_repo(nested) == "my-app"

    def test_repos_dir_itself(self, tmp_path: Path) -> None:
        (tmp_path / "repos").mkdir()
        assert detect_repo(tmp_path / "repos") is None

    def test_outside_repos_dir(self, tmp_path: Path) -> None:
        assert detect_repo(tmp_path) is None


class TestCopyAndFixEndings:
    """Tests for copy_and_fix_endings function."""

    def test_converts_crlf(self, tmp_path: Path) -> None:
        src = tmp_path / "in.sh"
        src.write_bytes(b"#!/bin/bash\r\necho hi\r\n")
        dest = tmp_path / "out" / "out.sh"
        assert copy_and_fix_endings(src, dest) is True
        assert dest.read_bytes() == b"#!/bin/bash\necho hi\n"

    def test_missing_source(self, tmp_path: Path) -> None:
        assert copy_and_fix_endings(tmp_path / "nope", tmp_path / "out") is False
        assert not (tmp_path / "out").exists()

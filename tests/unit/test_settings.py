"""Unit tests for Settings and the layered YAML loader."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.config.loader import load_settings, load_yaml
from src.config.settings import Settings
from src.utils.errors import ConfigurationError

_ENV_VARS = (
    "CHUNK_SIZE_TOKENS",
    "CHUNK_OVERLAP_TOKENS",
    "PRESERVE_STRUCTURE",
    "MAX_CHUNKS_PER_FILE",
    "MAX_TEXT_LENGTH",
    "DEDUP_DB_PATH",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_yaml(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(body, encoding="utf-8")
    return path


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.chunk_size_tokens == 1000
        assert settings.chunk_overlap_tokens == 200
        assert settings.max_chunks_per_file == 50
        assert settings.max_text_length == 200_000
        assert settings.dedup_db_path == "data/dedup.db"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_SIZE_TOKENS", "800")
        monkeypatch.setenv("PRESERVE_STRUCTURE", "false")

        settings = Settings(_env_file=None)

        assert settings.chunk_size_tokens == 800
        assert settings.preserve_structure is False

    def test_overlap_must_be_below_chunk_size(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, chunk_size_tokens=200, chunk_overlap_tokens=200)

    def test_chunks_per_file_range(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, max_chunks_per_file=201)

    def test_snapshots(self) -> None:
        settings = Settings(_env_file=None, chunk_size_tokens=500, chunk_overlap_tokens=50, max_chunks_per_file=10)

        config = settings.chunking_config()
        assert (config.chunk_size_tokens, config.overlap_tokens, config.preserve_structure) == (500, 50, True)
        assert settings.safety_limits().max_chunks_per_file == 10
        assert settings.upload_limits().min_file_size == 1024


class TestLoader:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "absent.yaml", env_file=None)
        assert settings.chunk_size_tokens == 1000

    def test_yaml_values_are_applied(self, tmp_path: Path) -> None:
        path = _write_yaml(
            tmp_path,
            "chunking:\n  chunk_size_tokens: 600\n  overlap_tokens: 60\n"
            "safety:\n  max_chunks_per_file: 20\n"
            "dedup:\n  db_path: /var/lib/dedup.db\n"
            "unknown_section:\n  anything: 1\n",
        )

        settings = load_settings(path, env_file=None)

        assert settings.chunk_size_tokens == 600
        assert settings.chunk_overlap_tokens == 60
        assert settings.max_chunks_per_file == 20
        assert settings.dedup_db_path == "/var/lib/dedup.db"

    def test_environment_beats_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write_yaml(tmp_path, "chunking:\n  chunk_size_tokens: 600\n")
        monkeypatch.setenv("CHUNK_SIZE_TOKENS", "900")

        assert load_settings(path, env_file=None).chunk_size_tokens == 900

    def test_dotenv_beats_yaml(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "chunking:\n  chunk_size_tokens: 600\n")
        env_file = tmp_path / ".env"
        env_file.write_text("CHUNK_SIZE_TOKENS=700\n", encoding="utf-8")

        assert load_settings(path, env_file=env_file).chunk_size_tokens == 700

    def test_invalid_values_raise_configuration_error(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "chunking:\n  chunk_size_tokens: 200\n  overlap_tokens: 300\n")
        with pytest.raises(ConfigurationError):
            load_settings(path, env_file=None)

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "chunking: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_yaml(path)

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            load_yaml(path)

    def test_repository_config_loads(self, tmp_path: Path) -> None:
        repo_config = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
        settings = load_settings(repo_config, env_file=None)
        assert settings.chunking_config().chunk_size_tokens >= 100

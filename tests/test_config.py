"""Tests for settings models and the settings loader."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from pydantic import ValidationError

from config import Settings, SimilarityConfig, get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("APP_CONFIG_DIR", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestModels:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.env == "dev"
        assert settings.similarity.short_text_threshold == 50
        assert settings.similarity.top_terms == 50
        assert (settings.similarity.ngram_min, settings.similarity.ngram_max) == (3, 8)
        assert settings.similarity.overlap_min_length == 15
        assert settings.claims.threshold == 0.6
        assert settings.rubric.default_version == "v1.0.1"
        assert settings.repetition.min_severity == "minor"

    def test_invalid_env(self) -> None:
        with pytest.raises(ValidationError):
            Settings(env="staging")

    def test_ngram_bounds_must_be_ordered(self) -> None:
        with pytest.raises(ValidationError, match="ngram_min"):
            SimilarityConfig(ngram_min=9, ngram_max=8)

    def test_severity_thresholds_must_descend(self) -> None:
        with pytest.raises(ValidationError, match="critical >= major >= minor"):
            SimilarityConfig(major_threshold=0.8)

    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLAIMS__THRESHOLD", "0.8")
        assert Settings().claims.threshold == 0.8


class TestGetSettings:
    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_yaml_file_is_loaded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "envs").mkdir()
        (tmp_path / "envs" / "prod.yaml").write_text("similarity:\n  top_terms: 20\nrubric:\n  default_version: v1.0.0\n")
        monkeypatch.setenv("APP_ENV", "prod")
        monkeypatch.setenv("APP_CONFIG_DIR", str(tmp_path))

        settings = get_settings()
        assert settings.env == "prod"
        assert settings.similarity.top_terms == 20
        assert settings.rubric.default_version == "v1.0.0"

    def test_unknown_env_falls_back_to_dev(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_ENV", "qa")
        monkeypatch.setenv("APP_CONFIG_DIR", str(tmp_path))
        assert get_settings().env == "dev"

    def test_invalid_values_exit(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "envs").mkdir()
        (tmp_path / "envs" / "dev.yaml").write_text("claims:\n  threshold: 5\n")
        monkeypatch.setenv("APP_CONFIG_DIR", str(tmp_path))
        with pytest.raises(SystemExit):
            get_settings()

    def test_non_mapping_yaml_is_ignored(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "envs").mkdir()
        (tmp_path / "envs" / "dev.yaml").write_text("- just\n- a list\n")
        monkeypatch.setenv("APP_CONFIG_DIR", str(tmp_path))
        assert get_settings().similarity.top_terms == 50

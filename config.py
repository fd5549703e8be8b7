"""
Configuration module for the essay rubric scoring engine.

This module defines configuration models, settings, and utilities for loading
and validating application settings from environment variables, .env files, and YAML files.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Module-level Constants ---
VALID_ENVS: set[str] = {"dev", "prod"}


# --- Configuration Models ---


class AppConfig(BaseModel):
    """
    Application configuration settings.

    Attributes:
        name (str): The name of the application.
        version (str): The version of the application.
        debug (bool): Flag to enable or disable debug mode.
        log_level (str): The logging level for the application (e.g., INFO, DEBUG).
    """

    name: str = Field("Essay Rubric Scorer", description="The name of the application.")
    version: str = Field("1.0", description="The version of the application.")
    debug: bool = Field(default=False, description="Whether debug mode is enabled, typically more verbose.")
    log_level: str = Field("INFO", description="The logging level (e.g., DEBUG, INFO, WARNING).")


class SimilarityConfig(BaseModel):
    """
    Configuration for the text similarity engine.

    Attributes:
        short_text_threshold (int): Normalized character length below which word-set Jaccard is used.
        top_terms (int): Number of highest-weighted TF-IDF terms kept per document.
        ngram_min (int): Smallest word n-gram size searched for overlapping phrases.
        ngram_max (int): Largest word n-gram size searched for overlapping phrases.
        overlap_min_length (int): Default minimum character length of an overlapping phrase.
        critical_threshold (float): Similarity at or above which severity is "critical".
        major_threshold (float): Similarity at or above which severity is "major".
        minor_threshold (float): Similarity at or above which severity is "minor".
        remove_stop_words (bool): Drop English stop words before TF-IDF weighting.
    """

    short_text_threshold: int = Field(50, gt=0, description="Character cutoff for the short-text Jaccard path.")
    top_terms: int = Field(50, gt=0, description="Top TF-IDF terms kept per document.")
    ngram_min: int = Field(3, gt=0, description="Smallest word n-gram size for overlap extraction.")
    ngram_max: int = Field(8, gt=0, description="Largest word n-gram size for overlap extraction.")
    overlap_min_length: int = Field(15, ge=0, description="Default minimum overlap phrase length in characters.")
    critical_threshold: float = Field(0.7, ge=0.0, le=1.0, description="Lower bound of 'critical' severity.")
    major_threshold: float = Field(0.5, ge=0.0, le=1.0, description="Lower bound of 'major' severity.")
    minor_threshold: float = Field(0.3, ge=0.0, le=1.0, description="Lower bound of 'minor' severity.")
    remove_stop_words: bool = Field(
        default=False,
        description="If True, scikit-learn's English stop word list is removed before TF-IDF weighting.",
    )

    @model_validator(mode="after")
    def check_ordering(self) -> SimilarityConfig:
        """
        Validate that n-gram bounds and severity thresholds are ordered.

        Raises:
            ValueError: If `ngram_min > ngram_max` or thresholds are not descending.

        Returns:
            SimilarityConfig: The validated configuration.
        """
        if self.ngram_min > self.ngram_max:
            msg = f"ngram_min ({self.ngram_min}) must not exceed ngram_max ({self.ngram_max})"
            raise ValueError(msg)
        if not (self.critical_threshold >= self.major_threshold >= self.minor_threshold):
            msg = "Severity thresholds must satisfy critical >= major >= minor"
            raise ValueError(msg)
        return self


class ClaimConfig(BaseModel):
    """Configuration for claim validation."""

    threshold: float = Field(0.6, ge=0.0, le=1.0, description="Minimum confidence for a claim to count as verified.")


class RubricConfig(BaseModel):
    """Configuration for rubric selection."""

    default_version: str = Field("v1.0.1", description="Rubric version used when a caller does not select one.")


class RepetitionConfig(BaseModel):
    """Configuration for repetition detection across a student's essays."""

    min_severity: Literal["minor", "major", "critical"] = Field(
        "minor",
        description="Lowest similarity severity reported as repetition.",
    )


class ModelConfig(BaseModel):
    """
    Configuration passed to the injected model client when requesting dimension scores.

    Attributes:
        name (str): Model identifier forwarded to the client.
        temperature (float): Sampling temperature forwarded to the client.
        max_output_tokens (int): Output token ceiling forwarded to the client.
    """

    name: str = Field("default", description="Model identifier forwarded to the model client.")
    temperature: float = Field(0.0, ge=0.0, le=2.0, description="Sampling temperature.")
    max_output_tokens: int = Field(2048, gt=0, description="Maximum output tokens.")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        env (str): The environment to run in (dev, prod).
        app (AppConfig): Application configuration.
        similarity (SimilarityConfig): Similarity engine configuration.
        claims (ClaimConfig): Claim validation configuration.
        rubric (RubricConfig): Rubric selection configuration.
        repetition (RepetitionConfig): Repetition detection configuration.
        model (ModelConfig): Model client request configuration.
    """

    env: str = "dev"
    app: AppConfig = AppConfig()
    similarity: SimilarityConfig = SimilarityConfig()
    claims: ClaimConfig = ClaimConfig()
    rubric: RubricConfig = RubricConfig()
    repetition: RepetitionConfig = RepetitionConfig()
    model: ModelConfig = ModelConfig()
    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        protected_namespaces=(),
    )

    @field_validator("env")
    @classmethod
    def check_env_is_valid(cls, v: str) -> str:
        """
        Validate the env field and ensure it is a valid environment.

        Args:
            v (str): The value of the env field.

        Raises:
            ValueError: If the environment is not valid.

        Returns:
            str: The validated environment.
        """
        env_lower = v.lower()
        if env_lower not in VALID_ENVS:
            msg = f"Invalid environment '{v}'. Must be one of {VALID_ENVS}"
            raise ValueError(msg)
        return env_lower


# --- Settings Loading Function ---


def _load_env_file(effective_env: str, config_dir: Path) -> None:
    """
    Load environment-specific .env file.

    Args:
        effective_env (str): The current environment (e.g., 'dev').
        config_dir (Path): The directory containing config files.
    """
    env_file_path = config_dir / f"{effective_env}.env"
    if env_file_path.is_file():
        logging.info(f"Loading environment variables from: {env_file_path}")
        load_dotenv(dotenv_path=env_file_path, override=False)
    else:
        logging.debug(f"Environment file not found at {env_file_path}. Skipping manual .env load.")


def _load_yaml_config(effective_env: str, config_dir: Path) -> dict:
    """
    Load YAML configuration file.

    Args:
        effective_env (str): The current environment.
        config_dir (Path): The directory containing config files.

    Returns:
        dict: The loaded YAML configuration as a dictionary.
    """
    yaml_config_path = config_dir / "envs" / f"{effective_env}.yaml"
    file_config: dict = {}
    if not yaml_config_path.exists():
        logging.debug(f"YAML config file not found at {yaml_config_path}. Skipping.")
        return file_config
    try:
        with yaml_config_path.open("r") as f:
            loaded_yaml = yaml.safe_load(f)
    except yaml.YAMLError:
        logging.exception(f"Error parsing YAML file {yaml_config_path}")
        return file_config
    if isinstance(loaded_yaml, dict):
        file_config = loaded_yaml
        logging.info(f"Successfully loaded YAML config from: {yaml_config_path}")
    else:
        logging.warning(f"YAML file {yaml_config_path} did not contain a dictionary. Ignoring.")
    return file_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load settings.

    Determines the environment, loads .env and YAML files, and returns a Settings object.
    The config directory defaults to this module's directory and can be moved with `APP_CONFIG_DIR`.

    Returns:
        Settings: The initialized application settings.
    """
    effective_env = os.getenv("APP_ENV", "dev").lower()
    if effective_env not in VALID_ENVS:
        logging.warning(f"APP_ENV='{effective_env}' is not one of {VALID_ENVS}. Falling back to 'dev'.")
        effective_env = "dev"

    logging.debug(f"--- Loading settings for environment: '{effective_env}' ---")

    config_dir = Path(os.getenv("APP_CONFIG_DIR", str(Path(__file__).parent)))

    _load_env_file(effective_env, config_dir)
    file_config = _load_yaml_config(effective_env, config_dir)

    init_data = file_config.copy()
    if "env" not in init_data:
        init_data["env"] = effective_env
    elif str(init_data.get("env", "")).lower() != effective_env:
        logging.warning(
            f"YAML file specifies 'env: {init_data['env']}', "
            f"which differs from the loading environment '{effective_env}'. "
            f"The YAML value will be used for settings.env.",
        )

    try:
        settings = Settings(**init_data)
    except ValidationError as e:
        logging.exception("Error validating settings")
        msg = "Failed to load or validate application settings."
        raise SystemExit(msg) from e

    logging.debug("Settings loaded successfully.")
    return settings

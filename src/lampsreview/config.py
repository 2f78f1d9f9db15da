"""Configuration management for lampsreview."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from lampsreview.exceptions import ConfigError

CONFIG_FILE = "lamps.config.json"


class AIConfig(BaseModel):
    """AI provider configuration."""

    provider: str = "openrouter"
    model: str = "minimax/minimax-m2.1"
    api_key_env: str = ""
    max_tokens: int = Field(default=16384, ge=1, le=200_000)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    base_url: str | None = None
    custom_prompt: str | None = None
    # When False, one failed exchange ends the review
    isolate_pass_failures: bool = True

    @property
    def api_key_var(self) -> str:
        """Name of the environment variable holding the credential."""
        if self.api_key_env:
            return self.api_key_env
        env_map = {
            "openrouter": "OPENROUTER_API_KEY",
            "openai": "OPENAI_API_KEY",
            "anthropic": "ANTHROPIC_API_KEY",
        }
        return env_map.get(self.provider, "")

    @property
    def api_key(self) -> str | None:
        env_var = self.api_key_var
        return os.environ.get(env_var) if env_var else None


class ScoringWeights(BaseModel):
    """Heuristic constants for file priority scoring."""

    entry: int = 100
    config: int = 80
    api: int = 70
    per_importer: int = 10
    per_import: int = 2
    import_cap: int = 20
    per_export: int = 3
    export_cap: int = 30
    security_bonus: int = 50
    large_file_bytes: int = 50_000
    large_file_penalty: int = 20
    huge_file_bytes: int = 100_000
    huge_file_penalty: int = 30
    test_penalty: int = 40


class GraphConfig(BaseModel):
    """Dependency graph configuration."""

    # First matching category wins; anything unmatched is "other"
    category_precedence: list[str] = Field(
        default_factory=lambda: ["test", "config", "api", "entry", "component", "util"]
    )


class BudgetConfig(BaseModel):
    """Token budgets and selection limits for the review passes."""

    architecture: int = 15_000
    deep_dive: int = 40_000
    security: int = 25_000
    slice_threshold_bytes: int = 50 * 1024
    max_slice_chars: int = 20_000
    prefer_full_ratio: float = 0.8
    fill_ratio: float = 0.9
    max_entry_points: int = 5
    max_config_files: int = 5
    max_high_connectivity: int = 10
    min_importers: int = 3


class ScanConfig(BaseModel):
    """Repository collection configuration."""

    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            "node_modules",
            ".git",
            "dist",
            "build",
            ".next",
            "__pycache__",
            ".pytest_cache",
            "venv",
            ".venv",
            "env",
            ".env",
            "*.log",
            ".DS_Store",
            "Thumbs.db",
            "coverage",
            ".nyc_output",
        ]
    )
    use_gitignore: bool = True
    max_file_size_kb: int = 1024
    include_extensions: list[str] = Field(
        default_factory=lambda: [
            ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py",
            ".json", ".md", ".yaml", ".yml", ".toml", ".txt",
            ".css", ".scss", ".less", ".html", ".vue", ".svelte",
            ".example", ".sample",
        ]
    )


class ReviewConfig(BaseModel):
    """Full review configuration."""

    ai: AIConfig = Field(default_factory=AIConfig)
    scoring: ScoringWeights = Field(default_factory=ScoringWeights)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    timeout_seconds: float = 600.0
    verbose: bool = False


def load_config(root: Path, config_path: Path | None = None) -> ReviewConfig:
    """Load configuration from lamps.config.json, falling back to defaults."""
    path = config_path or (root / CONFIG_FILE)
    if not path.exists():
        return ReviewConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ReviewConfig(**data)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def save_config(root: Path, config: ReviewConfig) -> Path:
    """Save configuration to lamps.config.json."""
    path = root / CONFIG_FILE
    path.write_text(json.dumps(config.model_dump(), indent=2), encoding="utf-8")
    return path


def set_config_value(config: ReviewConfig, key: str, value: Any) -> ReviewConfig:
    """Set a nested config value using dot notation (e.g., 'ai.model')."""
    parts = key.split(".")
    data = config.model_dump()
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    return ReviewConfig(**data)

"""
Process-level settings for the practice engine.

Values come from the environment (``EARDRILL_*``) or a local ``.env`` file.
Per-session drill options live in :class:`eardrill.models.DrillConfig`.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
	model_config = SettingsConfigDict(
		env_prefix="EARDRILL_",
		env_file=".env",
		env_file_encoding="utf-8",
		case_sensitive=False,
		extra="ignore",
	)

	data_dir: Path = Field(
		default=Path.home() / ".eardrill",
		description="Directory holding the JSON practice store",
	)
	needs_practice_cap: int = Field(
		default=10,
		ge=1,
		description="Upper bound on the severity of a needs-practice pair",
	)
	stepped_away_seconds: float = Field(
		default=60.0,
		gt=0,
		description="Question times above this are dropped from the session total",
	)
	seed: Optional[int] = Field(
		default=None,
		description="Seed for the default random source",
	)


@lru_cache
def get_settings() -> EngineSettings:
	return EngineSettings()

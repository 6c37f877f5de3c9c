from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from loguru import logger
from pydantic import ValidationError

from .models import DrillConfig, ExerciseType, SavedConfig, SessionRecord
from .settings import get_settings

Rows = List[Tuple[str, int]]

CONFUSED_PAIRS = "confused_pairs"
WRONG_PAIRS = "wrong_pairs"


def needs_practice_table(exercise_type: str) -> str:
	return f"needs_practice:{exercise_type}"


class Repository(Protocol):
	def load_table(self, name: str) -> Any: ...

	def save_table(self, name: str, rows: Sequence[Tuple[str, int]]) -> None: ...

	def append_session(self, record: SessionRecord) -> None: ...

	def list_sessions(self) -> List[SessionRecord]: ...

	def load_current_config(self, exercise_type: ExerciseType) -> Optional[DrillConfig]: ...

	def save_current_config(self, config: DrillConfig) -> None: ...


def _valid_sessions(entries: Any) -> List[SessionRecord]:
	if not isinstance(entries, list):
		return []
	sessions = []
	for entry in entries:
		try:
			sessions.append(SessionRecord.model_validate(entry))
		except ValidationError as exc:
			logger.debug("Skipping invalid session entry: {}", exc.error_count())
	return sessions


def _valid_config(obj: Any) -> Optional[DrillConfig]:
	if not isinstance(obj, dict):
		return None
	try:
		return DrillConfig.model_validate(obj)
	except ValidationError:
		logger.debug("Stored configuration no longer validates, ignoring it")
		return None


class JsonFileRepository:
	"""All practice data in one JSON document on disk."""

	def __init__(self, path: Optional[Path] = None) -> None:
		if path is None:
			path = get_settings().data_dir / "data.json"
		self.path = Path(path)

	def _load_raw(self) -> Dict[str, Any]:
		p = self.path
		if not p.exists():
			return {}
		try:
			data = json.loads(p.read_text(encoding="utf-8"))
		except (OSError, ValueError) as exc:
			logger.warning("Could not read {}: {}", p, exc)
			return {}
		return data if isinstance(data, dict) else {}

	def _save_raw(self, data: Dict[str, Any]) -> None:
		self.path.parent.mkdir(parents=True, exist_ok=True)
		self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

	def _section(self, raw: Dict[str, Any], key: str, kind: type) -> Any:
		value = raw.get(key)
		if not isinstance(value, kind):
			value = kind()
			raw[key] = value
		return value

	def load_table(self, name: str) -> Any:
		tables = self._load_raw().get("tables")
		if not isinstance(tables, dict):
			return []
		return tables.get(name, [])

	def save_table(self, name: str, rows: Sequence[Tuple[str, int]]) -> None:
		raw = self._load_raw()
		self._section(raw, "tables", dict)[name] = [list(r) for r in rows]
		self._save_raw(raw)

	def append_session(self, record: SessionRecord) -> None:
		raw = self._load_raw()
		self._section(raw, "sessions", list).append(record.model_dump(mode="json"))
		self._save_raw(raw)

	def list_sessions(self) -> List[SessionRecord]:
		return _valid_sessions(self._load_raw().get("sessions"))

	def clear_sessions(self) -> None:
		raw = self._load_raw()
		raw["sessions"] = []
		self._save_raw(raw)

	def load_current_config(self, exercise_type: ExerciseType) -> Optional[DrillConfig]:
		current = self._load_raw().get("current_configs")
		if not isinstance(current, dict):
			return None
		return _valid_config(current.get(exercise_type))

	def save_current_config(self, config: DrillConfig) -> None:
		raw = self._load_raw()
		self._section(raw, "current_configs", dict)[config.exercise_type] = config.model_dump(mode="json")
		self._save_raw(raw)

	def list_named_configs(self) -> List[SavedConfig]:
		entries = self._load_raw().get("saved_configs")
		if not isinstance(entries, list):
			return []
		saved = []
		for entry in entries:
			try:
				saved.append(SavedConfig.model_validate(entry))
			except ValidationError:
				logger.debug("Skipping invalid saved configuration")
		return sorted(saved, key=lambda c: c.name.lower())

	def save_named_config(self, name: str, config: DrillConfig) -> SavedConfig:
		"""Store ``config`` under ``name``, replacing any configuration with that name."""
		saved = self.list_named_configs()
		existing = next((c for c in saved if c.name == name), None)
		entry = SavedConfig(
			id=existing.id if existing else str(uuid.uuid4()),
			name=name,
			settings=config,
			created_at=datetime.now(timezone.utc),
		)
		saved = [c for c in saved if c.name != name] + [entry]
		raw = self._load_raw()
		raw["saved_configs"] = [c.model_dump(mode="json") for c in saved]
		self._save_raw(raw)
		return entry

	def load_named_config(self, config_id: str) -> Optional[DrillConfig]:
		for saved in self.list_named_configs():
			if saved.id == config_id:
				return saved.settings
		return None

	def delete_named_config(self, config_id: str) -> None:
		saved = [c for c in self.list_named_configs() if c.id != config_id]
		raw = self._load_raw()
		raw["saved_configs"] = [c.model_dump(mode="json") for c in saved]
		self._save_raw(raw)


class MemoryRepository:
	"""Repository kept in memory; nothing survives the process."""

	def __init__(self) -> None:
		self.tables: Dict[str, Rows] = {}
		self.sessions: List[Dict[str, Any]] = []
		self.current_configs: Dict[str, DrillConfig] = {}

	def load_table(self, name: str) -> Any:
		return [list(r) for r in self.tables.get(name, [])]

	def save_table(self, name: str, rows: Sequence[Tuple[str, int]]) -> None:
		self.tables[name] = [(k, c) for k, c in rows]

	def append_session(self, record: SessionRecord) -> None:
		self.sessions.append(record.model_dump(mode="json"))

	def list_sessions(self) -> List[SessionRecord]:
		return _valid_sessions(self.sessions)

	def load_current_config(self, exercise_type: ExerciseType) -> Optional[DrillConfig]:
		return self.current_configs.get(exercise_type)

	def save_current_config(self, config: DrillConfig) -> None:
		self.current_configs[config.exercise_type] = config

import json
import logging
import os
import tempfile
import threading
from typing import Dict, List, Optional, Union

from models.schema import (EmployeeShiftOverride, ShiftPreset, ShiftPresetInput,
                           ShiftPresetUpdate)
from utils.config import DEFAULT_PRESETS, LEGACY_SHIFT_KEY, OVERRIDES_KEY, PRESETS_KEY

DEFAULT_ASSIGNMENT = "default"

LEGACY_ICONS = {"morning": "🌅", "night": "🌙", "day": "☀️"}


class LastPresetError(Exception):
    """Raised when deleting the only remaining shift preset."""


class PresetNotFoundError(Exception):
    def __init__(self, preset_id):
        super().__init__(f"Shift preset {preset_id} does not exist")
        self.preset_id = preset_id


class NoDefaultConfigured(AssertionError):
    """The preset store is empty; the mutation API never allows this."""


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """Key/value store persisted as a single JSON object on disk."""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)


class ShiftPresetStore:
    """Shift presets with exactly one default, plus per-employee overrides.

    Presets live in the persistent store; overrides live in the session store
    and are snapshots of a preset's hour fields taken at assignment time.
    Mutations hold a lock so concurrent callers see one transition at a time.
    """

    def __init__(self, store, session_store=None):
        self.store = store
        self.session_store = session_store if session_store is not None else MemoryStore()
        self._presets: List[ShiftPreset] = []
        self._overrides: Dict[str, EmployeeShiftOverride] = {}
        self._lock = threading.RLock()
        self.load()

    def load(self) -> None:
        raw = self.store.get(PRESETS_KEY)
        presets = [ShiftPreset.model_validate(p) for p in json.loads(raw)] if raw else []
        if not presets:
            # the legacy key is only consulted when no preset list exists
            legacy = self.store.get(LEGACY_SHIFT_KEY)
            if legacy:
                presets = [self._migrate_legacy(json.loads(legacy))]
            else:
                presets = [ShiftPreset.model_validate(p) for p in DEFAULT_PRESETS]
            self._persist(presets)
        self._presets = self._repair_default(presets)

        raw_overrides = self.session_store.get(OVERRIDES_KEY)
        if raw_overrides:
            self._overrides = {
                employee_id: EmployeeShiftOverride.model_validate(value)
                for employee_id, value in json.loads(raw_overrides).items()
            }
        else:
            self._overrides = {}

    def _migrate_legacy(self, legacy: dict) -> ShiftPreset:
        name = legacy.get("name") or "custom"
        preset = ShiftPreset(
            id=1,
            name=name,
            icon=LEGACY_ICONS.get(name, "🕘"),
            start_time=legacy.get("startTime", "09:00"),
            end_time=legacy.get("endTime", "19:00"),
            work_hours=float(legacy.get("workHours", 9)),
            break_hours=float(legacy.get("breakHours", 1)),
            is_next_day=bool(legacy.get("isNextDay", False)),
            is_default=True
        )
        logging.info(f"Migrated legacy shift config '{name}' into the preset list")
        return preset

    def _repair_default(self, presets: List[ShiftPreset]) -> List[ShiftPreset]:
        defaults = [p for p in presets if p.is_default]
        if len(defaults) == 1:
            return presets
        logging.warning(f"Stored presets have {len(defaults)} defaults, keeping the first")
        keep_id = defaults[0].id if defaults else presets[0].id
        repaired = [p.model_copy(update={"is_default": p.id == keep_id}) for p in presets]
        self._persist(repaired)
        return repaired

    def _persist(self, presets: List[ShiftPreset]) -> None:
        payload = [p.model_dump(by_alias=True) for p in presets]
        self.store.set(PRESETS_KEY, json.dumps(payload, ensure_ascii=False))

    def _persist_overrides(self, overrides: Dict[str, EmployeeShiftOverride]) -> None:
        payload = {k: v.model_dump(by_alias=True) for k, v in overrides.items()}
        self.session_store.set(OVERRIDES_KEY, json.dumps(payload, ensure_ascii=False))

    @property
    def presets(self) -> List[ShiftPreset]:
        return list(self._presets)

    def get(self, preset_id: int) -> ShiftPreset:
        for preset in self._presets:
            if preset.id == preset_id:
                return preset
        raise PresetNotFoundError(preset_id)

    def default(self) -> ShiftPreset:
        for preset in self._presets:
            if preset.is_default:
                return preset
        raise NoDefaultConfigured("No default shift preset configured")

    def create(self, data: ShiftPresetInput) -> ShiftPreset:
        with self._lock:
            new_id = max((p.id for p in self._presets), default=0) + 1
            preset = ShiftPreset(id=new_id, is_default=False, **data.model_dump())
            presets = self._presets + [preset]
            self._persist(presets)
            self._presets = presets
        logging.info(f"Created shift preset {new_id} '{preset.name}'")
        return preset

    def update(self, preset_id: int, changes: ShiftPresetUpdate) -> ShiftPreset:
        with self._lock:
            current = self.get(preset_id)
            fields = changes.model_dump(exclude_none=True)
            make_default = fields.pop("is_default", None)
            if make_default is False and current.is_default:
                logging.warning(f"Ignoring request to unset default on preset {preset_id}")

            updated = current.model_copy(update=fields)
            presets = []
            for preset in self._presets:
                if preset.id == preset_id:
                    preset = updated
                if make_default:
                    preset = preset.model_copy(update={"is_default": preset.id == preset_id})
                presets.append(preset)

            self._persist(presets)
            self._presets = presets
            return self.get(preset_id)

    def set_default(self, preset_id: int) -> ShiftPreset:
        return self.update(preset_id, ShiftPresetUpdate(is_default=True))

    def delete(self, preset_id: int) -> None:
        with self._lock:
            target = self.get(preset_id)
            if len(self._presets) == 1:
                logging.warning(f"Refusing to delete preset {preset_id}: it is the last one")
                raise LastPresetError("Cannot delete the last remaining shift preset")

            presets = [p for p in self._presets if p.id != preset_id]
            if target.is_default:
                presets[0] = presets[0].model_copy(update={"is_default": True})
                logging.info(f"Preset {presets[0].id} promoted to default")

            self._persist(presets)
            self._presets = presets
        logging.info(f"Deleted shift preset {preset_id}")

    @property
    def overrides(self) -> Dict[str, EmployeeShiftOverride]:
        return dict(self._overrides)

    def get_override(self, employee_id: str) -> Optional[EmployeeShiftOverride]:
        return self._overrides.get(employee_id)

    def assign(self, employee_id: str, preset_id: Union[int, str]) -> Optional[EmployeeShiftOverride]:
        if preset_id == DEFAULT_ASSIGNMENT:
            self.remove_override(employee_id)
            return None

        with self._lock:
            preset = self.get(int(preset_id))
            override = EmployeeShiftOverride(
                preset_id=preset.id,
                work_hours=preset.work_hours,
                break_hours=preset.break_hours,
                is_next_day=preset.is_next_day
            )
            overrides = dict(self._overrides)
            overrides[employee_id] = override
            self._persist_overrides(overrides)
            self._overrides = overrides
        logging.info(f"Employee {employee_id} pinned to shift preset {preset.id}")
        return override

    def remove_override(self, employee_id: str) -> None:
        with self._lock:
            if employee_id not in self._overrides:
                return
            overrides = dict(self._overrides)
            del overrides[employee_id]
            self._persist_overrides(overrides)
            self._overrides = overrides
        logging.info(f"Employee {employee_id} reset to the default shift")

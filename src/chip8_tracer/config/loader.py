import yaml
from typing import Dict, Any, Optional
from .models import EmulatorConfig, QuirkConfig

class ConfigLoader:
    def load_from_file(self, path: str) -> EmulatorConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return self._parse_config(data or {})

    def load_from_string(self, text: str) -> EmulatorConfig:
        return self._parse_config(yaml.safe_load(text) or {})

    def _parse_config(self, data: Dict[str, Any]) -> EmulatorConfig:
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}")

        # Parse Quirks
        quirks_data = data.get("quirks", {}) or {}
        quirks = QuirkConfig(
            shift_uses_vy=bool(quirks_data.get("shift_uses_vy", False)),
            load_store_increments_i=bool(quirks_data.get("load_store_increments_i", False)),
        )

        breakpoints = [self._parse_int(bp) for bp in data.get("breakpoints", []) or []]

        clock_frequency = float(data.get("clock_frequency", 500))
        if clock_frequency <= 0:
            raise ValueError(f"clock_frequency must be positive: {clock_frequency}")

        return EmulatorConfig(
            clock_frequency=clock_frequency,
            start_paused=bool(data.get("start_paused", False)),
            random_seed=self._parse_optional_int(data.get("random_seed", 222)),
            quirks=quirks,
            breakpoints=breakpoints,
            memory_window=self._parse_int(data.get("memory_window", 16)),
            program=data.get("program"),
        )

    def _parse_optional_int(self, value: Any) -> Optional[int]:
        if value is None:
            return None
        return self._parse_int(value)

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            if value.lower().startswith("0x"):
                return int(value, 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")

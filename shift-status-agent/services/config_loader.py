import copy
import yaml
from pathlib import Path

from services.time_compare import MidnightRollover

DEFAULT_CONFIG = {
    "scheduler": {
        "check_interval_minutes": 5,
    },
    "clock": {
        "timezone": "Europe/London",
    },
    "time_rules": {
        "midnight_rollover": {
            "early_morning_end_hour": 4,
            "late_evening_start_hour": 18,
        },
    },
    "store": {
        "backend": "memory",
        "timeout_seconds": 10,
        "seed_path": "",
    },
    "watch": {
        "employee_ids": [],
    },
    "slack": {
        "enabled": True,
        "notify_channel": "",
        "notify_corrections": False,
    },
    "logging": {
        "level": "INFO",
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """ベース設定にオーバーライドをマージする"""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str = "config.yaml") -> dict:
    """YAML設定ファイルをロードし、デフォルト設定とマージして返す"""
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        return _deep_merge(DEFAULT_CONFIG, user_config)
    return copy.deepcopy(DEFAULT_CONFIG)


def rollover_from_config(config: dict) -> MidnightRollover:
    """日付跨ぎ補正の境界を設定から組み立てる"""
    rules = config["time_rules"]["midnight_rollover"]
    return MidnightRollover(
        early_morning_end_hour=int(rules["early_morning_end_hour"]),
        late_evening_start_hour=int(rules["late_evening_start_hour"]),
    )

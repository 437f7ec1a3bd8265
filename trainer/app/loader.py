from __future__ import annotations
from pathlib import Path
from typing import Any, Dict
import yaml

from trainer.api.config import TrainerConfig
from trainer.api.errors import ConfigError

PROFILES_DIR = Path(__file__).resolve().parents[2] / "profiles"


def resolve_profile(name_or_path: str) -> Path:
    """A bare name looks in profiles/<name>.yaml; anything else is a path."""
    p = Path(name_or_path)
    if p.suffix in (".yaml", ".yml") or p.exists():
        return p
    return PROFILES_DIR / f"{name_or_path}.yaml"


def load_profile_dict(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Missing profile {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Bad YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def load_config(name_or_path: str = "default", **overrides: Any) -> TrainerConfig:
    path = resolve_profile(name_or_path)
    data = load_profile_dict(path)
    data.setdefault("profile", path.stem)
    cfg = TrainerConfig.from_dict(data)
    return cfg.with_overrides(**overrides) if overrides else cfg

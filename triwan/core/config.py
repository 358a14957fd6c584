import os
import yaml
from .models import MigrationConfig

CONFIG_PATH = os.environ.get("TRIWAN_CONFIG", "/etc/triwan/config.yaml")


def _path(path: str | None) -> str:
    return path or CONFIG_PATH


def ensure_dirs(path: str | None = None) -> None:
    os.makedirs(os.path.dirname(_path(path)) or ".", exist_ok=True)


def load_config(path: str | None = None) -> MigrationConfig:
    path = _path(path)
    ensure_dirs(path)
    if not os.path.exists(path):
        cfg = MigrationConfig()
        save_config(cfg, path)
        return cfg
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return MigrationConfig.model_validate(data)


def save_config(cfg: MigrationConfig, path: str | None = None) -> None:
    path = _path(path)
    ensure_dirs(path)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(cfg.model_dump(mode="json"), f, sort_keys=False)


def dump_config(cfg: MigrationConfig) -> str:
    return yaml.safe_dump(cfg.model_dump(mode="json"), sort_keys=False)


def reset_config(path: str | None = None) -> None:
    # Keep current file but reset to defaults
    save_config(MigrationConfig(), path)


def factory_defaults(path: str | None = None) -> None:
    try:
        os.remove(_path(path))
    except FileNotFoundError:
        pass

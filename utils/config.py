import os
import re
from pathlib import Path
import yaml
from dotenv import load_dotenv

from utils.logger import logger

# ${VAR} or ${VAR:-default}
_ENV_REF = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-(.*))?\}$")


def resolve_env(obj):
    if isinstance(obj, dict):
        return {k: resolve_env(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [resolve_env(v) for v in obj]
    if isinstance(obj, str):
        m = _ENV_REF.match(obj.strip())
        if m:
            varname, default = m.group(1), m.group(2)
            return os.getenv(varname) or (default if default is not None else "")
    return obj


def load_cfg(cfg_path: str | None = None):

    base_dir = Path(__file__).resolve().parents[1]

    cfg_file = Path(cfg_path) if cfg_path else (base_dir / "config.yaml")

    load_dotenv(base_dir / ".env")

    with open(cfg_file, "r", encoding="utf-8") as f:
        raw_cfg = yaml.safe_load(f) or {}

    cfg = resolve_env(raw_cfg)

    dash = cfg.get("dashboard") or {}
    if not dash.get("api_base"):
        logger.warning(f"dashboard.api_base is empty in {cfg_file}; falling back to the client default")
    if not dash.get("user_id"):
        logger.warning(f"dashboard.user_id is empty in {cfg_file}")

    return cfg

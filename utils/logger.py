from loguru import logger
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional

CONSOLE_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | {level} | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"

log_dir = Path(__file__).resolve().parents[1] / "logs"
start_time = datetime.now().strftime("%Y%m%d_%H%M%S")
log_file: Optional[Path] = None


def configure_logging(cfg: Optional[Mapping[str, Any]] = None) -> Optional[Path]:
    """
    (Re)install the stdout and rotating-file sinks.
    cfg is the `logging` section of config.yaml: console_level, file_level, dir, to_file.
    """
    global log_file
    cfg = cfg or {}

    logger.remove()
    logger.add(
        sys.stdout,
        level=str(cfg.get("console_level", "INFO")).upper(),
        enqueue=True,
        format=CONSOLE_FORMAT,
    )

    log_file = None
    if cfg.get("to_file", True):
        target_dir = Path(cfg["dir"]) if cfg.get("dir") else log_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        log_file = target_dir / f"dashboard_{start_time}.log"
        logger.add(
            log_file,
            level=str(cfg.get("file_level", "DEBUG")).upper(),
            rotation="100 MB",
            retention="90 days",
            enqueue=True,
            encoding="utf-8",
            format=FILE_FORMAT,
        )
    return log_file


configure_logging()
logger.info(f"Logger initialized. Writing logs to {log_file}")

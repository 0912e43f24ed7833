import logging
from datetime import datetime
from pathlib import Path


def setup_logging(level=logging.INFO, log_dir: str = "logs"):
    """Setup basic logging configuration"""
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[
            logging.FileHandler(
                f"{log_dir}/scoring_{datetime.now().strftime('%Y-%m-%d')}.log"
            ),
            logging.StreamHandler(),
        ],
    )
    return logging.getLogger(__name__)


def log_level_from_name(name: str | None, default=logging.INFO) -> int:
    """Resolve a level name such as 'DEBUG' to its logging constant"""
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default

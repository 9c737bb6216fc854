from dataclasses import dataclass, fields, replace
from pathlib import Path
import json
from loguru import logger

@dataclass(frozen=True)
class Settings:
    brackets       : str = "()"
    keep_constants : bool = True
    log_level      : str = "WARNING"

    def __post_init__(self):
        if len(self.brackets) % 2 == 1:
            raise ValueError("The brackets string must be an even amount of characters.")

def load_settings(path) -> Settings:
    """Read Settings from a JSON file, falling back to defaults."""
    try:
        with open(Path(path), "r", encoding="utf-8") as f:
            data = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as error:
        logger.debug("using default settings: {}", error)
        return Settings()
    if not isinstance(data, dict):
        logger.warning("settings file {} does not hold an object", path)
        return Settings()

    known = {f.name for f in fields(Settings)}
    for key in data.keys() - known:
        logger.warning("unknown setting {!r} ignored", key)
    return replace(Settings(), **{k: v for k, v in data.items() if k in known})

"""
Client configuration, persisted as JSON at ~/.talksync/config.json.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".talksync" / "config.json"

DEFAULT_BASE_URL = "https://gd2.line.naver.jp"
DEFAULT_OS_URL = "os.line.naver.jp"
DEFAULT_BATCH_SIZE = 50
ROOM_PAGE_SIZE = 50


class ClientConfig(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    rpc_path: str = "/api/v4/TalkService.do"
    poll_path: str = "/P4"
    os_url: str = DEFAULT_OS_URL
    content_url: str = f"https://{DEFAULT_OS_URL}/talk/m/upload.nhn"
    application: str = "DESKTOPWIN\t4.7.2\tWINDOWS\t5.1.2600-XP-x64"
    timeout: float = 30.0
    poll_timeout: float = 120.0
    batch_size: int = DEFAULT_BATCH_SIZE
    room_page_size: int = ROOM_PAGE_SIZE
    auth_token: Optional[str] = None
    certificate: Optional[str] = None


def load_config(path: Path = CONFIG_FILE) -> ClientConfig:
    try:
        return ClientConfig.model_validate(json.loads(path.read_text()))
    except FileNotFoundError:
        return ClientConfig()
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return ClientConfig()


def save_config(cfg: ClientConfig, path: Path = CONFIG_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(cfg.model_dump_json(indent=2))

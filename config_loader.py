import os
import threading

import toml

CONFIG_PATH = os.environ.get(
    "EPISODE_CONFIG",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "config.toml"),
)
_lock = threading.Lock()


def load_config(path=None):
    with _lock:
        return toml.load(path or CONFIG_PATH)


def get_daily_limit(cfg):
    return int(cfg.get("limits", {}).get("daily_generation_quota", 10))


def get_hashtag(cfg):
    return cfg.get("share", {}).get("hashtag", "今日のひとこと")

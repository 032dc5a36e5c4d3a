"""
Configuration from the environment, loaded with app.config.from_object(Config).
"""

import os


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _list_env(name: str) -> list[str]:
    return [v.strip() for v in os.environ.get(name, "").split(",") if v.strip()]


class Config:
    # where <key>.log, agents/ and locks/ live
    HITS_LOG_DIR = os.environ.get("HITS_LOG_DIR", "./logs")
    HITS_FINGERPRINT_WIDTH = _int_env("HITS_FINGERPRINT_WIDTH", 10)

    # every hit on every badge goes to this one topic
    HITS_TOPIC = os.environ.get("HITS_TOPIC", "hits")
    HITS_SUBSCRIBER_QUEUE = _int_env("HITS_SUBSCRIBER_QUEUE", 100)
    HITS_STREAM_HEARTBEAT = _int_env("HITS_STREAM_HEARTBEAT", 15)
    # /stream connections above this get a 503
    HITS_MAX_STREAMS = _int_env("HITS_MAX_STREAMS", 16)

    # for EventSource clients on other origins
    CORS_ALLOW_ORIGINS = _list_env("CORS_ALLOW_ORIGINS")

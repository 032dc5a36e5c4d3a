from datetime import datetime, timezone

import pytest

from hits.app import create_app
from hits.broadcast import Broadcaster
from hits.fingerprint import VisitorDescriptor
from hits.hitlog import HitLog
from hits.recorder import HitRecorder
from hits.visitors import VisitorRegistry

FIXED_NOW = datetime(2026, 10, 17, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def log_dir(tmp_path):
    d = tmp_path / "logs"
    d.mkdir()
    return d


@pytest.fixture
def hit_log(log_dir):
    return HitLog(log_dir)


@pytest.fixture
def registry(log_dir):
    return VisitorRegistry(log_dir)


@pytest.fixture
def broadcaster():
    return Broadcaster(queue_size=1000)


@pytest.fixture
def recorder(hit_log, registry, broadcaster):
    return HitRecorder(hit_log, registry, broadcaster, clock=lambda: FIXED_NOW)


@pytest.fixture
def descriptor():
    return VisitorDescriptor("TestAgent/1.0", "192.168.1.42", "EN")


@pytest.fixture
def app(log_dir):
    return create_app({
        "TESTING": True,
        "HITS_LOG_DIR": str(log_dir),
        "HITS_STREAM_HEARTBEAT": 1,
        "CORS_ALLOW_ORIGINS": ["https://example.com"],
    })


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def fixed_now():
    return FIXED_NOW

import runpy
from pathlib import Path

from hits.config import Config

ROOT = Path(__file__).resolve().parent.parent


def test_gunicorn_runs_one_threaded_worker():
    # hits are fanned out in memory, so every /stream client must share the badge worker
    conf = runpy.run_path(str(ROOT / "gunicorn.conf.py"))
    assert conf["workers"] == 1
    assert conf["worker_class"] == "gthread"
    assert conf["threads"] > Config.HITS_MAX_STREAMS


def test_wsgi_points_at_gunicorn_conf():
    assert "gunicorn.conf.py" in (ROOT / "wsgi.py").read_text()

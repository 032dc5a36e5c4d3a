# gunicorn -c gunicorn.conf.py wsgi:app
import os

from hits.config import Config

bind = os.environ.get("HITS_BIND", "0.0.0.0:8000")

# the live feed fans out in memory: one process sees every hit
workers = 1
worker_class = "gthread"

# each /stream client pins a thread; the rest serve badges
threads = Config.HITS_MAX_STREAMS + int(os.environ.get("HITS_BADGE_THREADS", "16"))

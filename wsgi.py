# gunicorn -c gunicorn.conf.py wsgi:app  (single gthread worker, see gunicorn.conf.py)
from hits.app import create_app

app = create_app()

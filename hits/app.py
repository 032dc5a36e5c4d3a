import queue

from flask import Flask, Response, abort, current_app, request

from .badge import make_badge
from .broadcast import Broadcaster
from .config import Config
from .errors import HitsError, InvalidResource
from .fingerprint import VisitorDescriptor, make_hash
from .hitlog import HitLog
from .recorder import HitRecorder
from .visitors import VisitorRegistry

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

USAGE = """hits: embeddable hit counter badges

  <img src="https://<host>/<your>/<page>.svg">

GET /stream for a live feed of every hit (text/event-stream).
"""


# -----------------------------------------------------------------------------
# Request helpers
# -----------------------------------------------------------------------------
def client_address(req) -> str:
    """
    First hop of X-Forwarded-For when behind a proxy, else the socket peer.
    """
    forwarded = req.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",")[0].strip()
    return first or (req.remote_addr or "")


def visitor_descriptor(req) -> VisitorDescriptor:
    return VisitorDescriptor.from_headers(
        req.headers.get("User-Agent"),
        client_address(req),
        req.headers.get("Accept-Language"),
    )


def pick_cors_origin(request_origin: str | None) -> str | None:
    """
    Return allowed origin if it matches our allowlist.
    """
    if not request_origin:
        return None
    for allowed in current_app.config["CORS_ALLOW_ORIGINS"]:
        if request_origin == allowed:
            return allowed
    return None


def get_recorder() -> HitRecorder:
    return current_app.extensions["hits"]["recorder"]


def get_broadcaster() -> Broadcaster:
    return current_app.extensions["hits"]["broadcaster"]


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------
def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # fail at startup rather than on every hit
    make_hash("", app.config["HITS_FINGERPRINT_WIDTH"])

    log_dir = app.config["HITS_LOG_DIR"]
    broadcaster = Broadcaster(queue_size=app.config["HITS_SUBSCRIBER_QUEUE"])
    recorder = HitRecorder(
        HitLog(log_dir),
        VisitorRegistry(log_dir),
        broadcaster,
        topic=app.config["HITS_TOPIC"],
        fingerprint_width=app.config["HITS_FINGERPRINT_WIDTH"],
    )
    app.extensions["hits"] = {"recorder": recorder, "broadcaster": broadcaster}

    @app.after_request
    def add_cors_headers(resp):
        origin = pick_cors_origin(request.headers.get("Origin"))
        if origin:
            resp.headers["Access-Control-Allow-Origin"] = origin
            resp.headers["Vary"] = "Origin"
            resp.headers["Access-Control-Allow-Credentials"] = "false"
            resp.headers["Access-Control-Allow-Methods"] = "GET,OPTIONS"
            resp.headers["Access-Control-Max-Age"] = "600"
        return resp

    @app.route("/")
    def index():
        return Response(USAGE, mimetype="text/plain")

    @app.route("/healthz")
    def healthz():
        return "ok", 200

    @app.route("/stream")
    def stream():
        """
        Server-Sent Events feed of every hit on every badge.
        """
        broadcaster = get_broadcaster()
        topic = app.config["HITS_TOPIC"]
        if broadcaster.subscriber_count(topic) >= app.config["HITS_MAX_STREAMS"]:
            abort(503)
        sub = broadcaster.subscribe(topic)
        heartbeat = app.config["HITS_STREAM_HEARTBEAT"]

        def event_stream():
            try:
                yield ": connected\n\n"
                while True:
                    try:
                        message = sub.get(timeout=heartbeat)
                    except queue.Empty:
                        yield ": heartbeat\n\n"
                        continue
                    yield f"data: {message}\n\n"
            finally:
                broadcaster.unsubscribe(sub)

        resp = Response(event_stream(), mimetype="text/event-stream")
        # closed before the first chunk: the generator never ran its finally
        resp.call_on_close(lambda: broadcaster.unsubscribe(sub))
        resp.headers["Cache-Control"] = "no-cache"
        resp.headers["X-Accel-Buffering"] = "no"
        return resp

    @app.route("/<path:badge>")
    def badge(badge):
        """
        Record a hit and serve the badge. Always serves an image, even when
        the hit could not be counted.
        """
        if not badge.endswith(".svg"):
            abort(404)
        segments = badge.split("/")
        recorder = get_recorder()
        try:
            count = recorder.record_hit(segments, visitor_descriptor(request))
        except InvalidResource as e:
            app.logger.warning("Not counting %r: %s", badge, e)
            count = None
        except HitsError:
            app.logger.exception("Could not record hit for %s", badge)
            count = recorder.fallback_count(segments)

        resp = Response(make_badge(count), mimetype="image/svg+xml")
        resp.headers.update(NO_CACHE_HEADERS)
        return resp

    return app

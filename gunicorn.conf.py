import os

# Listen address; override with BIND (e.g. a unix socket behind Nginx)
bind = os.getenv("BIND", f"0.0.0.0:{os.getenv('PORT', '3000')}")
# Socket.IO rooms live in worker memory: keep 1 worker unless SOCKETIO_MESSAGE_QUEUE is set
workers = int(os.getenv("WEB_WORKERS", "1"))
# Time to gracefully stop workers on restart/shutdown
graceful_timeout = 5
# Use Gevent WebSocket worker to support Flask-SocketIO
worker_class = "geventwebsocket.gunicorn.workers.GeventWebSocketWorker"
# WSGI app module path for Gunicorn to load
wsgi_app = "wsgi:app"

# Kill and restart workers that block beyond this many seconds
timeout = 120
# Logging level for Gunicorn (defaults to INFO, can be overridden via LOG_LEVEL env var)
loglevel = os.getenv("LOG_LEVEL", "info").lower()
# Capture stdout/stderr of workers into Gunicorn logs
capture_output = True


def worker_exit(server, worker):
    # Release live connections and pending typing timers of this worker
    try:
        from wsgi import app

        app.extensions["realtime"].shutdown()
    except Exception:
        server.log.exception("realtime shutdown failed")

# Gunicorn configuration for production
# Usage: gunicorn -c gunicorn.conf.py bookshelf.api.main:app

import multiprocessing
import os

bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8080")

# Rule of thumb: (2 * CPU cores) + 1
default_workers = multiprocessing.cpu_count() * 2 + 1
workers = int(
    os.getenv("GUNICORN_WORKERS", os.getenv("WEB_CONCURRENCY", default_workers))
)

# Uvicorn workers for async support
worker_class = "uvicorn.workers.UvicornWorker"

timeout = int(os.getenv("GUNICORN_TIMEOUT", 60))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", 30))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", 5))

# Each worker holds its own catalog, cache and (memory) analytics;
# set ANALYTICS_BACKEND=redis to share analytics across workers.
max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", 1000))
max_requests_jitter = int(os.getenv("GUNICORN_MAX_REQUESTS_JITTER", 50))

# Logging
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

access_log_format = '{"time": "%(t)s", "status": %(s)s, "method": "%(m)s", "path": "%(U)s", "query": "%(q)s", "duration_ms": %(D)s, "remote_addr": "%(h)s"}'

preload_app = True

proc_name = "bookshelf_search"


def on_starting(server):
    from bookshelf.api.main import configure_logging

    configure_logging()

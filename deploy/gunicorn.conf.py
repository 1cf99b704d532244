"""
Gunicorn configuration for the Free Module API

    gunicorn freemodule.main:app -c deploy/gunicorn.conf.py
"""
import os
import multiprocessing

# Server socket
bind = f"{os.environ.get('HOST', '0.0.0.0')}:{os.environ.get('PORT', '5000')}"
backlog = 2048

# Worker processes. Rate limit counters are per process unless
# RATE_LIMIT_STORAGE_URI names a shared backend, so fan out only then.
_rate_limit_storage = os.environ.get("RATE_LIMIT_STORAGE_URI") or "memory://"
if _rate_limit_storage.startswith("memory://"):
    _default_workers = 1
else:
    _default_workers = multiprocessing.cpu_count() * 2 + 1
workers = int(os.environ.get("WEB_CONCURRENCY", _default_workers))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
timeout = 120
keepalive = 5

# Logging (stdout/stderr; the container runtime collects them)
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

proc_name = "freemodule"

daemon = False

# Uploads are streamed through the app, keep header limits tight
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190


def when_ready(server):
    server.log.info(f"Free Module API listening on {bind} with {workers} workers")


def worker_int(worker):
    worker.log.info(f"Worker {worker.pid} interrupted")

"""Gunicorn production configuration for greengrocer.main:app."""
import multiprocessing

wsgi_app = "greengrocer.main:app"
chdir = "backend"
bind = "0.0.0.0:8000"
workers = multiprocessing.cpu_count() + 1
worker_class = "uvicorn.workers.UvicornWorker"
# CSV imports create accounts one at a time; large files take a while
timeout = 300
keepalive = 5
max_requests = 1000
max_requests_jitter = 100
preload_app = True
accesslog = "-"
errorlog = "-"
loglevel = "info"

import os

# Run with: gunicorn -c gunicorn_config.py "app:create_app()"

port = int(os.environ.get('PORT', 5000))
bind = f'0.0.0.0:{port}'

# Every write replaces a whole collection, so exactly one sync worker may run.
workers = 1
threads = 1
worker_class = 'sync'

# Application logs go to logs/application.log; gunicorn's own go to the console.
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()
accesslog = '-'
errorlog = '-'

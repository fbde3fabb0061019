from pdf_optimizer.config import load_runtime_config

_config = load_runtime_config()

# Server socket
bind = f"{_config.host}:{_config.port}"

# Worker processes
workers = 2
worker_class = "gthread"
threads = 4
# 0 disables the worker timeout, matching a disabled process timeout
timeout = int(_config.process_timeout_seconds) + 60 if _config.process_timeout_seconds else 0
keepalive = 2

# Logging
accesslog = "-"
errorlog = "-"
loglevel = _config.log_level.lower()

# Process naming
proc_name = "pdf-optimizer"

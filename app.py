"""WSGI entrypoint shim for gunicorn and local runs."""

from pdf_optimizer import create_app
from pdf_optimizer.config import load_runtime_config

config = load_runtime_config()
app = create_app(config)


if __name__ == "__main__":
    app.run(host=config.host, port=config.port, debug=False, threaded=True)

# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── autopartes/      <- Paquete Python
#       ├── main.py
#       ├── server/
#       ├── services/
#       ├── workflows/
#       └── repositories/
# ==============================================================================

from autopartes.main import app

if __name__ == '__main__':
    from autopartes import config
    app.run(host=config.FLASK_HOST, port=config.FLASK_PORT, debug=config.FLASK_DEBUG)

# ==============================================================================
# BACKEND REST (FLASK)
# ==============================================================================
# ├── auth.py         → Tokens bearer + login_required / role_required
# ├── auth_routes.py  → /api/auth
# ├── order_routes.py → /api/orders
# └── user_routes.py  → /api/users
#
# Todas las respuestas siguen el formato {success, data?, error?, count?}.
# ==============================================================================

import logging

from flask import Flask
from werkzeug.exceptions import HTTPException

from autopartes import config
from autopartes.app_container import AppContainer, get_container

logger = logging.getLogger(__name__)


def create_app(container: AppContainer = None) -> Flask:
    """
    Crea la aplicación Flask.

    Args:
        container: Contenedor de dependencias (por defecto el global)
    """
    app = Flask(__name__)
    app.config['SECRET_KEY'] = config.SECRET_KEY
    app.config['TOKEN_MAX_AGE'] = config.TOKEN_MAX_AGE
    app.config['JSON_AS_ASCII'] = False
    app.container = container or get_container(config.DATA_DIR)

    from autopartes.server.auth_routes import auth_bp
    from autopartes.server.order_routes import orders_bp
    from autopartes.server.user_routes import users_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(users_bp)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return {'success': False, 'error': e.description}, e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception('[ERROR] Error no controlado en la API')
        return {'success': False, 'error': 'Error del servidor'}, 500

    return app

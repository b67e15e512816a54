# ==============================================================================
# PUNTO DE ENTRADA DEL SERVIDOR
# ==============================================================================
# Configura logging, crea la app Flask y, en modo desarrollo, un admin demo
# si users.json está vacío.
#
# Desarrollo:   python -m autopartes.main
# Producción:   gunicorn wsgi:app
# ==============================================================================

import logging

from autopartes import config
from autopartes.app_container import get_container
from autopartes.server import create_app

logger = logging.getLogger(__name__)

DEMO_ADMIN = {
    'name': 'Administrador',
    'email': 'admin@autopartes.cl',
    'password': 'admin123',
}


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def seed_demo_admin(container) -> None:
    """Crea el admin demo solo fuera de producción y sin usuarios cargados."""
    if config.PRODUCTION_MODE or container.user_repo.get_all():
        return
    result = container.user_service.create_user(role='admin', **DEMO_ADMIN)
    if result['ok']:
        logger.info('[INFO] Admin demo creado: %s', DEMO_ADMIN['email'])


configure_logging()
app = create_app(get_container(config.DATA_DIR))
seed_demo_admin(app.container)


if __name__ == '__main__':
    app.run(host=config.FLASK_HOST, port=config.FLASK_PORT, debug=config.FLASK_DEBUG)

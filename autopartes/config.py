# ==============================================================================
# CONFIGURACIÓN - Variables de entorno
# ==============================================================================
# Toda la configuración se lee del entorno al importar el módulo.
# En producción DEBE definirse AUTOPARTES_SECRET_KEY:
#   export AUTOPARTES_SECRET_KEY="clave_larga_y_aleatoria"
# ==============================================================================

import logging
import os

logger = logging.getLogger(__name__)

BASE = os.path.dirname(os.path.abspath(__file__))

# True = sin usuarios demo, advertencias de seguridad activas
PRODUCTION_MODE = os.environ.get('AUTOPARTES_PRODUCTION', '0') == '1'

# ═══════════════════════════════════════════════════════════════════════════════
# CLIENTE HTTP
# ═══════════════════════════════════════════════════════════════════════════════
API_URL = os.environ.get('AUTOPARTES_API_URL', 'http://localhost:5000/api')
HTTP_TIMEOUT = float(os.environ.get('AUTOPARTES_HTTP_TIMEOUT', '10'))

# ═══════════════════════════════════════════════════════════════════════════════
# PERSISTENCIA
# ═══════════════════════════════════════════════════════════════════════════════
DATA_DIR = os.environ.get('AUTOPARTES_DATA_DIR', os.path.join(BASE, 'data'))

# ═══════════════════════════════════════════════════════════════════════════════
# TOKENS DE SESIÓN
# ═══════════════════════════════════════════════════════════════════════════════
_DEFAULT_SECRET = 'autopartes_dev_secret_key_change_in_production'
_SECRET_KEY = os.environ.get('AUTOPARTES_SECRET_KEY')

if PRODUCTION_MODE and not _SECRET_KEY:
    logger.warning('[ADVERTENCIA] PRODUCTION_MODE activo sin AUTOPARTES_SECRET_KEY definida')

SECRET_KEY = _SECRET_KEY or _DEFAULT_SECRET

# 30 días
TOKEN_MAX_AGE = int(os.environ.get('AUTOPARTES_TOKEN_MAX_AGE', str(30 * 24 * 3600)))

# ═══════════════════════════════════════════════════════════════════════════════
# SERVIDOR
# ═══════════════════════════════════════════════════════════════════════════════
FLASK_HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
FLASK_PORT = int(os.environ.get('FLASK_PORT', 5000))
FLASK_DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'

LOG_LEVEL = os.environ.get('AUTOPARTES_LOG_LEVEL', 'INFO')

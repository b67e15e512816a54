# ==============================================================================
# AUTENTICACIÓN DE LA API - Tokens bearer y decoradores de acceso
# ==============================================================================
# Token firmado con itsdangerous (viene con Flask) que guarda solo el id del
# usuario. Cada request protegido vuelve a leer el usuario del repositorio,
# así un cambio de rol se aplica de inmediato.
#
#   login_required      → 401 si falta el token, es inválido o expiró
#   role_required(rol)  → 403 si el usuario no tiene el rol
# ==============================================================================

import logging
from functools import wraps
from typing import Any, Dict, Optional

from flask import current_app, g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

logger = logging.getLogger(__name__)

TOKEN_SALT = 'autopartes-auth'


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)


def generate_token(user_id: str) -> str:
    """Firma un token con el id del usuario."""
    return _serializer().dumps({'id': user_id})


def verify_token(token: str) -> Optional[str]:
    """
    Verifica un token.

    Returns:
        Id del usuario, o None si el token es inválido o expiró
    """
    try:
        data = _serializer().loads(token, max_age=current_app.config['TOKEN_MAX_AGE'])
    except SignatureExpired:
        logger.info('[SEGURIDAD] Token expirado')
        return None
    except BadSignature:
        logger.warning('[SEGURIDAD] Token con firma inválida')
        return None
    return data.get('id') if isinstance(data, dict) else None


def _bearer_token() -> Optional[str]:
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


def current_user() -> Dict[str, Any]:
    """Usuario autenticado del request actual (sin contraseña)."""
    return g.current_user


def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return {'success': False, 'error': 'No está autorizado para acceder a esta ruta'}, 401

        user_id = verify_token(token)
        user = current_app.container.user_service.get_user(user_id) if user_id else None
        if not user:
            return {'success': False, 'error': 'No está autorizado para acceder a esta ruta'}, 401

        g.current_user = user
        return f(*args, **kwargs)
    return wrapper


def role_required(*roles):
    """Exige uno de los roles dados. Debe ir DESPUÉS de @login_required."""
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            user = g.get('current_user')
            if not user or user.get('role') not in roles:
                role = user.get('role') if user else None
                logger.warning('[SEGURIDAD] Rol %s sin acceso a %s', role, request.path)
                return {
                    'success': False,
                    'error': f'El rol {role} no está autorizado para acceder a esta ruta'
                }, 403
            return f(*args, **kwargs)
        return wrapper
    return deco

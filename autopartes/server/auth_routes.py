# ==============================================================================
# RUTAS DE AUTENTICACIÓN - /api/auth
# ==============================================================================

import logging

from flask import Blueprint, current_app, request

from autopartes.server.auth import current_user, generate_token, login_required

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """Inicia sesión y devuelve el token bearer junto con el usuario."""
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not email or not password:
        return {'success': False, 'error': 'Por favor ingrese email y contraseña'}, 400

    user = current_app.container.user_service.authenticate(email, password)
    if not user:
        logger.warning('[SEGURIDAD] Login fallido para %s', email)
        return {'success': False, 'error': 'Credenciales inválidas'}, 401

    return {'success': True, 'token': generate_token(user['_id']), 'data': user}


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Registra un cliente o un distribuidor.
    Un distribuidor queda pendiente hasta que un admin lo apruebe.
    """
    data = request.get_json(silent=True) or {}
    role = data.get('role') or 'client'
    if role == 'admin':
        return {'success': False, 'error': 'No se puede registrar un administrador'}, 400

    result = current_app.container.user_service.create_user(
        name=data.get('name') or '',
        email=data.get('email') or '',
        password=data.get('password') or '',
        role=role,
        distributor_info=data.get('distributorInfo'),
    )
    if not result['ok']:
        return {'success': False, 'error': result['error']}, 400

    user = result['user']
    return {'success': True, 'token': generate_token(user['_id']), 'data': user}, 201


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    return {'success': True, 'data': current_user()}

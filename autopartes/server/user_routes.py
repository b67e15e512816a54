# ==============================================================================
# RUTAS DE USUARIOS - /api/users (solo admin)
# ==============================================================================
# La aprobación de distribuidores usa la actualización genérica con claves con
# punto; el invariante de aprobación lo impone UserService.
# ==============================================================================

from flask import Blueprint, current_app, request

from autopartes.server.auth import current_user, login_required, role_required

users_bp = Blueprint('users', __name__, url_prefix='/api/users')


def _service():
    return current_app.container.user_service


@users_bp.route('', methods=['GET'])
@login_required
@role_required('admin')
def list_users():
    users = _service().get_all_users()
    return {'success': True, 'count': len(users), 'data': users}


@users_bp.route('/<user_id>', methods=['GET'])
@login_required
@role_required('admin')
def get_user(user_id):
    user = _service().get_user(user_id)
    if not user:
        return {'success': False, 'error': 'Usuario no encontrado'}, 404
    return {'success': True, 'data': user}


@users_bp.route('/<user_id>', methods=['PATCH', 'PUT'])
@login_required
@role_required('admin')
def update_user(user_id):
    """
    Actualiza un usuario.

    Body (ejemplo de aprobación):
        {"distributorInfo.isApproved": true,
         "distributorInfo.approvedAt": "2024-01-01T10:00:00Z",
         "distributorInfo.approvedBy": "A1"}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return {'success': False, 'error': 'Cuerpo inválido'}, 400

    result = _service().update_user(user_id, data, admin_user=current_user()['_id'])
    if not result['ok']:
        return {'success': False, 'error': result['error']}, result.get('status_code', 400)
    return {'success': True, 'data': result['user']}

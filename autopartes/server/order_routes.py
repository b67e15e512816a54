# ==============================================================================
# RUTAS DE ÓRDENES - /api/orders
# ==============================================================================
# Las rutas solo traducen request → OrderService → respuesta JSON.
# Los permisos por rol del cambio de estado viven en OrderService.
# ==============================================================================

from flask import Blueprint, current_app, request

from autopartes.server.auth import current_user, login_required, role_required

orders_bp = Blueprint('orders', __name__, url_prefix='/api/orders')


def _service():
    return current_app.container.order_service


def _result_response(result):
    """Convierte el dict {'ok', 'order'|'error', 'status_code'} en respuesta."""
    if not result['ok']:
        return {'success': False, 'error': result['error']}, result.get('status_code', 400)
    return {'success': True, 'data': result['order']}


@orders_bp.route('', methods=['GET'])
@login_required
@role_required('admin')
def list_orders():
    orders = _service().list_orders()
    return {'success': True, 'count': len(orders), 'data': orders}


@orders_bp.route('/myorders', methods=['GET'])
@login_required
def my_orders():
    orders = _service().list_my_orders(current_user()['_id'])
    return {'success': True, 'count': len(orders), 'data': orders}


@orders_bp.route('/distributor', methods=['GET'])
@login_required
@role_required('distributor')
def distributor_orders():
    orders = _service().list_distributor_orders(current_user()['_id'])
    return {'success': True, 'count': len(orders), 'data': orders}


@orders_bp.route('/<order_id>', methods=['GET'])
@login_required
def get_order(order_id):
    return _result_response(_service().get_order_for(order_id, current_user()))


@orders_bp.route('/<order_id>/status', methods=['PUT'])
@login_required
def update_order_status(order_id):
    """
    Cambia el estado de una orden.

    Body: {"status": "delivered", "isPaid": true?}
    """
    data = request.get_json(silent=True) or {}
    if 'status' not in data:
        return {'success': False, 'error': 'Debe indicar el nuevo estado'}, 400

    result = _service().update_status(
        order_id,
        data.get('status'),
        current_user(),
        mark_paid=data.get('isPaid') is True,
    )
    return _result_response(result)


@orders_bp.route('/<order_id>/cancel', methods=['PUT'])
@login_required
def cancel_order(order_id):
    return _result_response(_service().cancel_order(order_id, current_user()))


@orders_bp.route('/<order_id>/history', methods=['GET'])
@login_required
@role_required('admin')
def order_history(order_id):
    """Historial de cambios de la orden según la auditoría."""
    if _service().order_repo.get_by_id(order_id) is None:
        return {'success': False, 'error': 'Orden no encontrada'}, 404
    history = _service().get_history(order_id) or []
    return {'success': True, 'count': len(history), 'data': history}

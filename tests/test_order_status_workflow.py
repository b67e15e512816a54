# -*- coding: utf-8 -*-
"""
Flujo de estado de órdenes: caché, banderas de carga, errores y vistas de
detalle. El gateway HTTP es un MagicMock.
"""
import threading
from dataclasses import replace

import pytest

from conftest import order_dict
from autopartes.errors import (
    AuthorizationError,
    BackendError,
    NotFoundError,
    OperationInProgressError,
    TransientNetworkError,
    ValidationError,
)
from autopartes.models import Order, OrderStatus, Session, UserRole, order_status_badge
from autopartes.services import ORDER_STATUS_CHANGED, SESSION_EXPIRED
from autopartes.workflows import OrderStatusWorkflow, order_tracker_steps
from autopartes.workflows.order_status import (
    STEP_CANCELLED,
    STEP_COMPLETED,
    STEP_CURRENT,
    STEP_UPCOMING,
)


@pytest.fixture
def workflow(api, admin_session, order_cache, notifier, events):
    return OrderStatusWorkflow(api, admin_session, order_cache, notifier, events)


def _echo_status(order_cache):
    """Simula al backend devolviendo la orden con el nuevo estado."""
    def _update(order_id, status):
        return order_cache.get(order_id).with_status(status)
    return _update


# ═══════════════════════════════════════════════════════════════════════════════
# CAMBIO EXITOSO
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize('status', list(OrderStatus))
def test_change_status_replaces_only_status(workflow, api, order_cache, status):
    before = order_cache.get('ORD123')
    api.update_order_status.side_effect = _echo_status(order_cache)

    result = workflow.change_status('ORD123', status.value)

    assert result['ok'] is True
    after = order_cache.get('ORD123')
    assert after.status == status
    assert replace(after, status=before.status) == before
    api.update_order_status.assert_called_once_with('ORD123', status)


def test_change_status_to_delivered_shows_entregado(workflow, api, order_cache):
    api.update_order_status.return_value = Order.from_dict(order_dict('ORD123', status='delivered'))

    result = workflow.change_status('ORD123', 'delivered')

    assert result['ok'] is True
    assert order_cache.get('ORD123').status == OrderStatus.DELIVERED
    assert workflow.status_badge('ORD123').label == 'Entregado'
    assert order_status_badge('delivered').color == 'green'


def test_change_status_without_data_patches_cached_record(workflow, api, order_cache):
    api.update_order_status.return_value = None

    result = workflow.change_status('ORD123', OrderStatus.SHIPPED)

    assert result['ok'] is True
    assert order_cache.get('ORD123').status == OrderStatus.SHIPPED
    assert order_cache.get('ORD123').total_price == 26300


def test_repeating_current_status_is_allowed(workflow, api, order_cache):
    api.update_order_status.side_effect = _echo_status(order_cache)

    result = workflow.change_status('ORD123', 'pending')

    assert result['ok'] is True
    assert order_cache.get('ORD123').status == OrderStatus.PENDING


def test_success_notifies_and_publishes(workflow, api, order_cache, notifier, events):
    received = []
    events.subscribe(ORDER_STATUS_CHANGED, received.append)
    api.update_order_status.side_effect = _echo_status(order_cache)

    workflow.change_status('ORD123', 'processing')

    assert notifier.last('success').message == 'Estado actualizado a: Procesando'
    assert received == [{
        'order_id': 'ORD123', 'status': 'processing', 'previous': 'pending', 'changed_by': 'A1',
    }]
    assert not notifier.is_loading('ORD123')


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDACIÓN ANTES DE LA RED
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize('bad', ['completed', 'DELIVERED ', '', None, 'enviado'])
def test_invalid_status_is_rejected_without_network(workflow, api, order_cache, bad):
    before = order_cache.get('ORD123')

    with pytest.raises(ValidationError):
        workflow.change_status('ORD123', bad)

    api.update_order_status.assert_not_called()
    assert order_cache.get('ORD123') == before
    assert not workflow.is_loading('ORD123')


def test_non_admin_session_is_rejected(api, order_cache):
    session = Session(user_id='C1', role=UserRole.CLIENT, token='tok')
    wf = OrderStatusWorkflow(api, session, order_cache)

    with pytest.raises(ValidationError):
        wf.change_status('ORD123', 'delivered')
    api.update_order_status.assert_not_called()


def test_missing_session_is_rejected(api, order_cache):
    wf = OrderStatusWorkflow(api, None, order_cache)

    with pytest.raises(ValidationError):
        wf.change_status('ORD123', 'delivered')
    api.update_order_status.assert_not_called()


# ═══════════════════════════════════════════════════════════════════════════════
# FALLOS DEL BACKEND
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize('error', [
    AuthorizationError(status_code=403),
    TransientNetworkError(),
    BackendError('Estado no permitido', status_code=400),
])
def test_failure_leaves_cache_untouched_and_notifies(workflow, api, order_cache, notifier, error):
    before = order_cache.get('ORD123')
    api.update_order_status.side_effect = error

    result = workflow.change_status('ORD123', 'delivered')

    assert result == {'ok': False, 'error': error.message, 'error_type': error.error_type}
    assert order_cache.get('ORD123') == before
    assert notifier.last('error').message.startswith('Error al actualizar estado')
    assert not workflow.is_loading('ORD123')
    assert api.update_order_status.call_count == 1


def test_not_found_removes_row(workflow, api, order_cache, notifier):
    api.update_order_status.side_effect = NotFoundError(status_code=404)

    result = workflow.change_status('ORD123', 'delivered')

    assert result['ok'] is False
    assert result['error_type'] == 'NotFoundError'
    assert 'ORD123' not in order_cache
    assert notifier.last('error') is not None


def test_expired_session_publishes_event(workflow, api, events):
    received = []
    events.subscribe(SESSION_EXPIRED, received.append)
    api.update_order_status.side_effect = AuthorizationError(status_code=401, session_expired=True)

    result = workflow.change_status('ORD123', 'delivered')

    assert result['ok'] is False
    assert received == [{'source': 'orders'}]


# ═══════════════════════════════════════════════════════════════════════════════
# CONCURRENCIA
# ═══════════════════════════════════════════════════════════════════════════════

def test_independent_orders_do_not_block_each_other(workflow, api, order_cache):
    b_started = threading.Event()
    release_b = threading.Event()
    b_result = {}

    def _update(order_id, status):
        if order_id == 'B':
            b_started.set()
            assert release_b.wait(timeout=5)
        return order_cache.get(order_id).with_status(status)

    api.update_order_status.side_effect = _update

    worker = threading.Thread(target=lambda: b_result.update(workflow.change_status('B', 'delivered')))
    worker.start()
    assert b_started.wait(timeout=5)

    assert workflow.is_loading('B')
    a_result = workflow.change_status('A', 'shipped')

    assert a_result['ok'] is True
    assert order_cache.get('A').status == OrderStatus.SHIPPED
    assert not workflow.is_loading('A')
    assert workflow.is_loading('B')
    assert workflow.loading_ids() == ['B']

    release_b.set()
    worker.join(timeout=5)

    assert b_result['ok'] is True
    assert not workflow.is_loading('B')
    assert order_cache.get('B').status == OrderStatus.DELIVERED


def test_same_order_in_flight_is_rejected(workflow, api, order_cache):
    started = threading.Event()
    release = threading.Event()

    def _update(order_id, status):
        started.set()
        assert release.wait(timeout=5)
        return order_cache.get(order_id).with_status(status)

    api.update_order_status.side_effect = _update
    worker = threading.Thread(target=workflow.change_status, args=('ORD123', 'processing'))
    worker.start()
    assert started.wait(timeout=5)

    try:
        with pytest.raises(OperationInProgressError):
            workflow.change_status('ORD123', 'shipped')
        assert workflow.available_statuses('ORD123') == []
    finally:
        release.set()
        worker.join(timeout=5)

    assert api.update_order_status.call_count == 1
    assert order_cache.get('ORD123').status == OrderStatus.PROCESSING


# ═══════════════════════════════════════════════════════════════════════════════
# MENÚ, FILTROS Y CARGA
# ═══════════════════════════════════════════════════════════════════════════════

def test_available_statuses_excludes_current(workflow):
    statuses = workflow.available_statuses('ORD123')

    assert OrderStatus.PENDING not in statuses
    assert len(statuses) == 5
    assert workflow.can_change_status('ORD123', 'delivered')
    assert not workflow.can_change_status('ORD123', 'pending')
    assert not workflow.can_change_status('ORD123', 'bogus')
    assert workflow.available_statuses('NOPE') == []


def test_filter_orders_by_text_and_status(workflow, order_cache):
    named = Order.from_dict({
        **order_dict('XYZ9', status='pending'),
        'user': {'_id': 'C2', 'name': 'María Pérez', 'email': 'maria@test.cl'},
    })
    order_cache.upsert(named)

    assert [o.id for o in workflow.filter_orders('maría')] == ['XYZ9']
    assert [o.id for o in workflow.filter_orders('MARIA@')] == ['XYZ9']
    assert {o.id for o in workflow.filter_orders(status='pending')} == {'ORD123', 'XYZ9'}
    assert [o.id for o in workflow.filter_orders('ord1', status='pending')] == ['ORD123']
    with pytest.raises(ValidationError):
        workflow.filter_orders(status='perdido')


def test_load_orders_replaces_cache(workflow, api, order_cache):
    api.get_orders.return_value = [Order.from_dict(order_dict('NEW1'))]

    result = workflow.load_orders()

    assert result['ok'] is True
    assert [o.id for o in order_cache.all()] == ['NEW1']


def test_load_orders_failure_keeps_cache(workflow, api, order_cache, notifier):
    api.get_orders.side_effect = TransientNetworkError()

    result = workflow.load_orders()

    assert result['ok'] is False
    assert len(order_cache) == 3
    assert notifier.last('error').message.startswith('Error al cargar las órdenes')


def test_refresh_order_not_found_removes_row(workflow, api, order_cache):
    api.get_order.side_effect = NotFoundError()

    assert workflow.refresh_order('A')['ok'] is False
    assert 'A' not in order_cache


# ═══════════════════════════════════════════════════════════════════════════════
# VISTAS DE DETALLE
# ═══════════════════════════════════════════════════════════════════════════════

def test_open_detail_follows_confirmed_changes(workflow, api, order_cache):
    api.update_order_status.side_effect = _echo_status(order_cache)
    view = workflow.open_detail('ORD123')

    result = view.change_status('shipped')

    assert result['ok'] is True
    assert view.order.status == OrderStatus.SHIPPED
    assert view.badge.label == 'Enviado'
    assert not view.is_updating


def test_closed_detail_is_not_updated(workflow, api, order_cache):
    api.update_order_status.side_effect = _echo_status(order_cache)
    view = workflow.open_detail('ORD123')
    view.close()

    workflow.change_status('ORD123', 'delivered')

    assert view.order.status == OrderStatus.PENDING
    assert workflow.open_views('ORD123') == []
    assert view.refresh(order_cache.get('ORD123')) is False


def test_open_detail_unknown_order(workflow):
    with pytest.raises(NotFoundError):
        workflow.open_detail('NOPE')


# ═══════════════════════════════════════════════════════════════════════════════
# SEGUIMIENTO DEL CLIENTE
# ═══════════════════════════════════════════════════════════════════════════════

def _states(order):
    return [(step.status.value, step.state) for step in order_tracker_steps(order)]


def test_tracker_delivery_in_processing():
    order = Order.from_dict(order_dict(status='processing'))

    assert _states(order) == [
        ('pending', STEP_COMPLETED),
        ('processing', STEP_COMPLETED),
        ('shipped', STEP_CURRENT),
        ('delivered', STEP_UPCOMING),
    ]


def test_tracker_pickup_ready():
    order = Order.from_dict(order_dict(status='ready_for_pickup', shipment_method='pickup'))

    steps = order_tracker_steps(order)

    assert [s.title for s in steps] == ['Pedido Recibido', 'Procesando', 'Listo para Retiro', 'Retirado']
    assert [s.state for s in steps] == [STEP_COMPLETED, STEP_COMPLETED, STEP_COMPLETED, STEP_CURRENT]
    assert steps[0].date == '2024-03-01T12:00:00+00:00'


def test_tracker_cancelled():
    order = Order.from_dict(order_dict(status='cancelled'))

    assert _states(order) == [
        ('pending', STEP_COMPLETED),
        ('processing', STEP_CANCELLED),
        ('shipped', STEP_CANCELLED),
        ('delivered', STEP_CANCELLED),
    ]

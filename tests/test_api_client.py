# -*- coding: utf-8 -*-
"""
Gateway HTTP: encabezados, traducción de respuestas y manejo de la sesión.
La sesión de requests se reemplaza por un MagicMock.
"""
from unittest.mock import MagicMock

import pytest
import requests

from conftest import order_dict
from autopartes.api_client import ApiClient
from autopartes.errors import (
    AuthorizationError,
    BackendError,
    NotFoundError,
    TransientNetworkError,
)
from autopartes.models import OrderStatus, Session, UserRole
from autopartes.repositories import SessionRepository
from autopartes.services import ORDER_STATUS_CHANGED


def _response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError('sin cuerpo')
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def store(tmp_path):
    repo = SessionRepository(str(tmp_path))
    repo.save_session(Session(user_id='A1', role=UserRole.ADMIN, token='tok-123'))
    return repo


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def client(store, http):
    return ApiClient('http://api.test/api/', session_store=store, http=http, timeout=3)


def test_update_order_status_sends_put_with_bearer(client, http):
    http.request.return_value = _response(200, {
        'success': True, 'data': order_dict('ORD123', status='delivered'),
    })

    order = client.update_order_status('ORD123', OrderStatus.DELIVERED)

    assert order.status == OrderStatus.DELIVERED
    http.request.assert_called_once_with(
        'PUT',
        'http://api.test/api/orders/ORD123/status',
        json={'status': 'delivered'},
        headers={'Content-Type': 'application/json', 'Authorization': 'Bearer tok-123'},
        timeout=3,
    )


def test_update_order_status_without_data_returns_none(client, http):
    http.request.return_value = _response(200, {'success': True})

    assert client.update_order_status('ORD123', OrderStatus.SHIPPED) is None


def test_update_user_uses_patch_with_dotted_keys(client, http):
    http.request.return_value = _response(200, {'success': True, 'data': {
        '_id': 'D1', 'name': 'Diego', 'email': 'd1@test.cl', 'role': 'distributor',
        'distributorInfo': {'isApproved': False, 'approvedAt': None, 'approvedBy': None},
    }})
    fields = {'distributorInfo.isApproved': False}

    user = client.update_user('D1', fields)

    assert user.id == 'D1'
    assert user.distributor_info.is_approved is False
    method, url = http.request.call_args[0]
    assert (method, url) == ('PATCH', 'http://api.test/api/users/D1')
    assert http.request.call_args[1]['json'] == fields


def test_get_orders_parses_list(client, http):
    http.request.return_value = _response(200, {
        'success': True, 'count': 2, 'data': [order_dict('O1'), order_dict('O2')],
    })

    assert [o.id for o in client.get_orders()] == ['O1', 'O2']


def test_401_clears_session_and_flags_expiry(client, http, store):
    http.request.return_value = _response(401, {'success': False, 'error': 'Token inválido'})

    with pytest.raises(AuthorizationError) as exc:
        client.get_orders()

    assert exc.value.session_expired is True
    assert exc.value.status_code == 401
    assert store.load_session() is None


def test_403_keeps_session(client, http, store):
    http.request.return_value = _response(403, {'success': False, 'error': 'Sin permiso'})

    with pytest.raises(AuthorizationError) as exc:
        client.get_users()

    assert exc.value.session_expired is False
    assert exc.value.message == 'Sin permiso'
    assert store.get_token() == 'tok-123'


def test_404_is_not_found(client, http):
    http.request.return_value = _response(404, {'success': False, 'error': 'Orden no encontrada'})

    with pytest.raises(NotFoundError):
        client.get_order('NOPE')


@pytest.mark.parametrize('status_code', [500, 502, 503])
def test_server_errors_are_transient(client, http, status_code):
    http.request.return_value = _response(status_code)

    with pytest.raises(TransientNetworkError):
        client.get_orders()


@pytest.mark.parametrize('exc', [requests.exceptions.ConnectionError, requests.exceptions.Timeout])
def test_network_failures_are_transient(client, http, exc):
    http.request.side_effect = exc('boom')

    with pytest.raises(TransientNetworkError):
        client.update_order_status('ORD123', OrderStatus.SHIPPED)


def test_success_false_is_backend_error(client, http):
    http.request.return_value = _response(200, {'success': False, 'error': 'Estado inválido'})

    with pytest.raises(BackendError) as exc:
        client.update_order_status('ORD123', OrderStatus.SHIPPED)

    assert exc.value.message == 'Estado inválido'


def test_400_is_backend_error_with_message(client, http):
    http.request.return_value = _response(400, {'success': False, 'error': 'Campo no permitido: x'})

    with pytest.raises(BackendError) as exc:
        client.update_user('D1', {'x': 1})

    assert exc.value.status_code == 400


def test_login_saves_session(tmp_path, http):
    store = SessionRepository(str(tmp_path))
    api = ApiClient('http://api.test/api', session_store=store, http=http)
    http.request.return_value = _response(200, {
        'success': True, 'token': 'nuevo', 'data': {'_id': 'A1', 'role': 'admin'},
    })

    session = api.login('admin@test.cl', 'secreto123')

    assert session == Session(user_id='A1', role=UserRole.ADMIN, token='nuevo')
    assert store.load_session() == session
    assert 'Authorization' not in http.request.call_args[1]['headers']


def test_login_401_is_bad_credentials_and_keeps_session(client, http, store):
    http.request.return_value = _response(401, {'success': False, 'error': 'Credenciales inválidas'})

    with pytest.raises(AuthorizationError) as exc:
        client.login('admin@test.cl', 'mala')

    assert exc.value.session_expired is False
    assert exc.value.message == 'Credenciales inválidas'
    assert store.get_token() == 'tok-123'


def test_login_without_token_is_backend_error(client, http, store):
    http.request.return_value = _response(200, {'success': True, 'data': {'_id': 'A1', 'role': 'admin'}})

    with pytest.raises(BackendError):
        client.login('admin@test.cl', 'secreto123')

    assert store.get_token() == 'tok-123'


# ═══════════════════════════════════════════════════════════════════════════════
# SOLO success=true CUENTA COMO ÉXITO
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize('body', [
    {},
    {'success': None},
    {'success': 'true'},
    {'data': order_dict('ORD123', status='delivered')},
    [order_dict('ORD123', status='delivered')],
    None,
])
def test_unconfirmed_2xx_is_backend_error(client, http, body):
    http.request.return_value = _response(200, body)

    with pytest.raises(BackendError):
        client.update_order_status('ORD123', OrderStatus.DELIVERED)


def test_unconfirmed_2xx_leaves_cached_order_untouched(
    client, http, admin_session, order_cache, notifier, events
):
    from autopartes.workflows import OrderStatusWorkflow

    workflow = OrderStatusWorkflow(client, admin_session, order_cache, notifier, events)
    published = []
    events.subscribe(ORDER_STATUS_CHANGED, published.append)

    for body in ({}, {'success': None}, None):
        http.request.return_value = _response(200, body)

        result = workflow.change_status('ORD123', 'delivered')

        assert result['ok'] is False
        assert result['error_type'] == 'BackendError'
        assert order_cache.get('ORD123').status == OrderStatus.PENDING
        assert notifier.last().level == 'error'
        assert not workflow.is_loading('ORD123')

    assert published == []


# ═══════════════════════════════════════════════════════════════════════════════
# CAMPO data AUSENTE O MAL FORMADO
# ═══════════════════════════════════════════════════════════════════════════════

def test_get_order_without_data_is_backend_error(client, http):
    http.request.return_value = _response(200, {'success': True})

    with pytest.raises(BackendError):
        client.get_order('ORD123')


@pytest.mark.parametrize('data', [
    [order_dict('ORD123')],
    'ORD123',
    {**order_dict('ORD123'), 'status': 'perdido'},
    {**order_dict('ORD123'), 'totalPrice': 'mucho'},
    {**order_dict('ORD123'), 'items': [{'product': 'P1', 'quantity': 0, 'price': 1}]},
])
def test_malformed_order_data_is_backend_error(client, http, data):
    http.request.return_value = _response(200, {'success': True, 'data': data})

    with pytest.raises(BackendError):
        client.update_order_status('ORD123', OrderStatus.SHIPPED)
    with pytest.raises(BackendError):
        client.get_order('ORD123')


@pytest.mark.parametrize('data', [{'_id': 'O1'}, 'no es lista'])
def test_malformed_list_data_is_backend_error(client, http, data):
    http.request.return_value = _response(200, {'success': True, 'data': data})

    with pytest.raises(BackendError):
        client.get_orders()
    with pytest.raises(BackendError):
        client.get_users()


def test_malformed_user_data_is_backend_error(client, http):
    http.request.return_value = _response(200, {'success': True, 'data': {'_id': 'D1', 'role': 'jefe'}})

    with pytest.raises(BackendError):
        client.update_user('D1', {'distributorInfo.isApproved': True})


def test_refresh_order_without_data_notifies(
    client, http, admin_session, order_cache, notifier, events
):
    from autopartes.workflows import OrderStatusWorkflow

    workflow = OrderStatusWorkflow(client, admin_session, order_cache, notifier, events)
    http.request.return_value = _response(200, {'success': True})

    result = workflow.refresh_order('ORD123')

    assert result['ok'] is False
    assert notifier.last().level == 'error'
    assert order_cache.get('ORD123').status == OrderStatus.PENDING

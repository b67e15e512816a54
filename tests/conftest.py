# -*- coding: utf-8 -*-
"""
Fixtures compartidas: datos JSON en tmp_path, app Flask de prueba y un
gateway simulado para los flujos de la consola.
"""
from unittest.mock import MagicMock

import pytest
from werkzeug.security import generate_password_hash

from autopartes.api_client import ApiClient
from autopartes.app_container import AppContainer
from autopartes.models import Order, Session, User, UserRole
from autopartes.repositories import RecordCache
from autopartes.server import create_app
from autopartes.services import EventBus, NotificationService


# ═══════════════════════════════════════════════════════════════════════════════
# DATOS DE PRUEBA
# ═══════════════════════════════════════════════════════════════════════════════

PASSWORD = 'secreto123'


def _user(user_id, name, email, role, distributor_info=None):
    user = {
        '_id': user_id,
        'name': name,
        'email': email,
        'password': generate_password_hash(PASSWORD),
        'role': role,
        'phone': '',
        'createdAt': '2024-01-01T10:00:00+00:00',
    }
    if distributor_info is not None:
        user['distributorInfo'] = distributor_info
    return user


def seed_users():
    return [
        _user('A1', 'Ana Admin', 'admin@test.cl', 'admin'),
        _user('C1', 'Carlos Cliente', 'cliente@test.cl', 'client'),
        _user('D1', 'Diego Distribuidor', 'd1@test.cl', 'distributor', {
            'companyName': 'Repuestos Sur', 'companyRUT': '76.111.111-1', 'isApproved': False,
        }),
        _user('D2', 'Daniela Mayorista', 'd2@test.cl', 'distributor', {
            'companyName': 'Frenos Norte', 'companyRUT': '76.222.222-2', 'isApproved': True,
            'approvedAt': '2024-02-01T10:00:00+00:00', 'approvedBy': 'A1',
        }),
    ]


def order_dict(order_id='ORD123', status='pending', user='C1', distributor='D1',
               shipment_method='delivery'):
    return {
        '_id': order_id,
        'user': user,
        'status': status,
        'items': [
            {'product': 'P1', 'quantity': 2, 'price': 10000, 'distributor': distributor},
        ],
        'itemsPrice': 20000,
        'taxPrice': 3800,
        'shippingPrice': 2500,
        'totalPrice': 26300,
        'isPaid': False,
        'paidAt': None,
        'isDelivered': False,
        'deliveredAt': None,
        'shipmentMethod': shipment_method,
        'orderType': 'B2C',
        'createdAt': '2024-03-01T12:00:00+00:00',
    }


@pytest.fixture
def users_data():
    return seed_users()


# ═══════════════════════════════════════════════════════════════════════════════
# BACKEND
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def container(tmp_path):
    AppContainer.reset_instance()
    c = AppContainer(str(tmp_path), api_url='http://api.test/api')
    c.user_repo.save_all(seed_users())
    c.order_repo.save_all([
        order_dict('ORD123'),
        order_dict('ORD200', status='processing', shipment_method='pickup', distributor='D2'),
    ])
    yield c
    AppContainer.reset_instance()


@pytest.fixture
def app(container):
    flask_app = create_app(container)
    flask_app.config['TESTING'] = True
    return flask_app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def login(client):
    """Devuelve una función que inicia sesión y entrega el header Authorization."""
    def _login(email):
        r = client.post('/api/auth/login', json={'email': email, 'password': PASSWORD})
        assert r.status_code == 200, r.get_json()
        return {'Authorization': f"Bearer {r.get_json()['token']}"}
    return _login


# ═══════════════════════════════════════════════════════════════════════════════
# CLIENTE (FLUJOS)
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def api():
    return MagicMock(spec=ApiClient)


@pytest.fixture
def admin_session():
    return Session(user_id='A1', role=UserRole.ADMIN, token='tok')


@pytest.fixture
def notifier():
    return NotificationService()


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def order_cache():
    return RecordCache([
        Order.from_dict(order_dict('ORD123')),
        Order.from_dict(order_dict('A', status='processing')),
        Order.from_dict(order_dict('B', status='shipped')),
    ])


@pytest.fixture
def user_cache():
    return RecordCache([User.from_dict(u) for u in seed_users()])

# -*- coding: utf-8 -*-
"""
Repositorios JSON, caché en memoria, notificaciones y canal de eventos.
"""
import json
import os

from conftest import order_dict
from autopartes.models import Order, Session, UserRole
from autopartes.repositories import (
    AuditRepository,
    OrderRepository,
    RecordCache,
    SessionRepository,
    UserRepository,
)
from autopartes.services import EventBus, NotificationService


def test_order_repository_replace_and_queries(tmp_path):
    repo = OrderRepository(str(tmp_path))
    repo.save_all([
        order_dict('O1'),
        {**order_dict('O2', distributor='D2'), 'createdAt': '2024-04-01T00:00:00+00:00'},
    ])

    assert [o['_id'] for o in repo.list_recent()] == ['O2', 'O1']
    assert [o['_id'] for o in repo.list_for_distributor('D2')] == ['O2']

    assert repo.replace({**repo.get_by_id('O1'), 'status': 'shipped'}) is True
    assert repo.get_by_id('O1')['status'] == 'shipped'
    assert repo.replace({'_id': 'NOPE'}) is False
    assert not os.path.exists(repo.file_path + '.tmp')


def test_corrupt_file_reads_as_empty(tmp_path):
    repo = UserRepository(str(tmp_path))
    with open(repo.file_path, 'w', encoding='utf-8') as f:
        f.write('{no es json')

    assert repo.get_all() == []


def test_user_repository_public_view(tmp_path):
    repo = UserRepository(str(tmp_path))
    repo.append({'_id': 'U1', 'email': 'Ana@Test.cl', 'password': 'hash', 'role': 'client'})

    assert repo.get_by_email('ana@test.cl')['_id'] == 'U1'
    assert 'password' not in repo.list_public()[0]
    assert repo.count_by_role('client') == 1
    assert repo.delete('U1')['_id'] == 'U1'
    assert repo.delete('U1') is None


def test_audit_repository_trims_old_entries(tmp_path, monkeypatch):
    repo = AuditRepository(str(tmp_path))
    monkeypatch.setattr(AuditRepository, 'MAX_LOGS', 3)

    for i in range(5):
        repo.log('ORDEN', 'A1', f'evento {i}', related_id='O1')

    with open(repo.file_path, encoding='utf-8') as f:
        stored = json.load(f)
    assert [e['message'] for e in stored] == ['evento 2', 'evento 3', 'evento 4']
    assert len(repo.find_by_related('O1')) == 3


def test_session_repository(tmp_path):
    repo = SessionRepository(str(tmp_path))
    assert repo.load_session() is None

    session = Session(user_id='A1', role=UserRole.ADMIN, token='tok')
    repo.save_session(session)
    assert repo.load_session() == session

    repo.clear()
    assert repo.get_token() is None


def test_record_cache_replace_never_adds():
    cache = RecordCache([Order.from_dict(order_dict('O1'))])
    ghost = Order.from_dict(order_dict('GHOST'))

    assert cache.replace(ghost) is False
    assert 'GHOST' not in cache
    assert len(cache) == 1

    cache.upsert(ghost)
    assert cache.remove('GHOST') == ghost
    assert cache.remove('GHOST') is None


def test_notifications_loading_and_history():
    notifier = NotificationService()
    seen = []
    notifier.add_listener(seen.append)

    notifier.loading('Actualizando estado...', key='O1')
    assert notifier.is_loading('O1')
    notifier.dismiss('O1')
    notifier.error('falló', key='O1')

    assert not notifier.is_loading('O1')
    assert [n.level for n in seen] == ['loading', 'error']
    assert notifier.last().message == 'falló'
    assert notifier.last('success') is None


def test_event_bus_isolates_broken_handlers():
    bus = EventBus()
    received = []

    def broken(payload):
        raise RuntimeError('falla')

    bus.subscribe('x', broken)
    unsubscribe = bus.subscribe('x', received.append)

    bus.publish('x', {'n': 1})
    unsubscribe()
    bus.publish('x', {'n': 2})

    assert received == [{'n': 1}]

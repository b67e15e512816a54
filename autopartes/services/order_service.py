# ==============================================================================
# SERVICIO DE ÓRDENES (BACKEND)
# ==============================================================================
# Reglas de negocio de la API de órdenes. Las rutas solo orquestan
# request → service → response; los permisos por rol se deciden AQUÍ.
#
# REGLAS DE CAMBIO DE ESTADO:
# - Admin: cualquier estado desde cualquier estado (corrección manual)
# - Distribuidor con productos en la orden: solo processing, shipped,
#   ready_for_pickup
# - Otros roles: sin permiso
# ==============================================================================

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from autopartes.errors import ValidationError
from autopartes.models import OrderStatus
from autopartes.repositories.order_repository import OrderRepository
from autopartes.repositories.user_repository import UserRepository
from autopartes.services.audit_service import AuditService


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class OrderService:
    """
    Servicio para gestión de órdenes en el backend.

    Todos los métodos de mutación devuelven un dict:
    - ok: True/False
    - order: orden resultante (si ok)
    - error: mensaje (si falló)
    - status_code: código HTTP sugerido (si falló)
    """

    # Estados que un distribuidor puede asignar
    DISTRIBUTOR_STATUSES = frozenset([
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.READY_FOR_PICKUP,
    ])

    # Estados que marcan la orden como entregada (por el admin)
    DELIVERED_STATUSES = frozenset([OrderStatus.DELIVERED, OrderStatus.READY_FOR_PICKUP])

    # Estados desde los que ya no se puede cancelar
    NON_CANCELLABLE = frozenset([OrderStatus.SHIPPED, OrderStatus.DELIVERED])

    def __init__(
        self,
        order_repo: OrderRepository,
        audit_service: AuditService = None,
        user_repo: UserRepository = None
    ):
        self.order_repo = order_repo
        self.audit_service = audit_service
        self.user_repo = user_repo

    def present(self, order: Dict[str, Any]) -> Dict[str, Any]:
        """Copia de la orden con el comprador poblado ({_id, name, email})."""
        user_id = order.get('user')
        buyer = self.user_repo.get_by_id(user_id) if self.user_repo and isinstance(user_id, str) else None
        if not buyer:
            return order
        return {**order, 'user': {'_id': user_id, 'name': buyer.get('name', ''), 'email': buyer.get('email', '')}}

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_orders(self) -> List[Dict[str, Any]]:
        """Todas las órdenes (solo admin)."""
        return [self.present(o) for o in self.order_repo.list_recent()]

    def list_my_orders(self, user_id: str) -> List[Dict[str, Any]]:
        return self.order_repo.list_for_user(user_id)

    def list_distributor_orders(self, distributor_id: str) -> List[Dict[str, Any]]:
        """
        Órdenes con productos del distribuidor, reducidas a sus propias líneas
        y con el subtotal que le corresponde.
        """
        result = []
        for order in self.order_repo.list_for_distributor(distributor_id):
            items = [i for i in order.get('items', []) if i.get('distributor') == distributor_id]
            result.append({
                '_id': order.get('_id'),
                'user': order.get('user'),
                'items': items,
                'status': order.get('status'),
                'createdAt': order.get('createdAt'),
                'subtotal': round(sum(i.get('price', 0) * i.get('quantity', 0) for i in items), 2),
            })
        return result

    def _has_items_from(self, order: Dict[str, Any], distributor_id: str) -> bool:
        return any(i.get('distributor') == distributor_id for i in order.get('items', []))

    def get_order_for(self, order_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Obtiene una orden verificando que el actor pueda verla.

        Pueden verla: el comprador, un admin, o un distribuidor con
        productos en la orden.
        """
        order = self.order_repo.get_by_id(order_id)
        if not order:
            return {'ok': False, 'error': 'Orden no encontrada', 'status_code': 404}

        actor_id = actor.get('_id')
        role = actor.get('role')
        allowed = (
            order.get('user') == actor_id
            or role == 'admin'
            or (role == 'distributor' and self._has_items_from(order, actor_id))
        )
        if not allowed:
            return {'ok': False, 'error': 'No está autorizado para ver esta orden', 'status_code': 403}
        return {'ok': True, 'order': self.present(order)}

    # =========================================================================
    # CAMBIO DE ESTADO
    # =========================================================================

    def update_status(
        self,
        order_id: str,
        new_status: Any,
        actor: Dict[str, Any],
        mark_paid: bool = False
    ) -> Dict[str, Any]:
        """
        Cambia el estado de una orden.

        Repetir el estado actual es válido y deja la orden igual (salvo las
        fechas de entrega/pago que ya estuvieran puestas, que se conservan).

        Args:
            order_id: Id de la orden
            new_status: Nuevo estado (string de la API)
            actor: Usuario autenticado {_id, role}
            mark_paid: True si el admin además la marca como pagada
        """
        try:
            status = OrderStatus.parse(new_status)
        except ValidationError as e:
            return {'ok': False, 'error': e.message, 'status_code': 400}

        order = self.order_repo.get_by_id(order_id)
        if not order:
            return {'ok': False, 'error': 'Orden no encontrada', 'status_code': 404}

        role = actor.get('role')
        actor_id = actor.get('_id')
        old_status = order.get('status')

        if role == 'admin':
            order['status'] = status.value
            if mark_paid and not order.get('isPaid'):
                order['isPaid'] = True
                order['paidAt'] = _now_iso()
            if status in self.DELIVERED_STATUSES and not order.get('isDelivered'):
                order['isDelivered'] = True
                order['deliveredAt'] = _now_iso()
        elif role == 'distributor':
            if not self._has_items_from(order, actor_id):
                return {
                    'ok': False,
                    'error': 'No está autorizado para actualizar esta orden',
                    'status_code': 403
                }
            if status not in self.DISTRIBUTOR_STATUSES:
                return {
                    'ok': False,
                    'error': 'Los distribuidores solo pueden cambiar el estado a: '
                             'processing, shipped, ready_for_pickup',
                    'status_code': 400
                }
            order['status'] = status.value
            if (status == OrderStatus.READY_FOR_PICKUP
                    and order.get('shipmentMethod') == 'pickup'
                    and not order.get('isDelivered')):
                order['isDelivered'] = True
                order['deliveredAt'] = _now_iso()
        else:
            return {
                'ok': False,
                'error': 'No está autorizado para actualizar el estado de la orden',
                'status_code': 403
            }

        order['updatedAt'] = _now_iso()
        self.order_repo.replace(order)

        if self.audit_service and old_status != status.value:
            self.audit_service.log_order_status_change(actor_id, order_id, old_status, status.value)

        return {'ok': True, 'order': self.present(order)}

    def cancel_order(self, order_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Cancela una orden (comprador o admin), solo si aún no fue enviada.
        """
        order = self.order_repo.get_by_id(order_id)
        if not order:
            return {'ok': False, 'error': 'Orden no encontrada', 'status_code': 404}

        if order.get('user') != actor.get('_id') and actor.get('role') != 'admin':
            return {'ok': False, 'error': 'No está autorizado para cancelar esta orden', 'status_code': 403}

        old_status = order.get('status')
        if old_status in {s.value for s in self.NON_CANCELLABLE}:
            return {
                'ok': False,
                'error': 'No se puede cancelar una orden que ya ha sido enviada o entregada',
                'status_code': 400
            }

        order['status'] = OrderStatus.CANCELLED.value
        order['updatedAt'] = _now_iso()
        self.order_repo.replace(order)

        if self.audit_service and old_status != OrderStatus.CANCELLED.value:
            self.audit_service.log_order_cancelled(actor.get('_id'), order_id, old_status)

        return {'ok': True, 'order': self.present(order)}

    def get_history(self, order_id: str) -> Optional[List[Dict[str, Any]]]:
        """Historial de cambios de estado desde la auditoría (None sin auditoría)."""
        if not self.audit_service:
            return None
        return self.audit_service.get_logs_for(order_id)

# ==============================================================================
# FLUJO DE ESTADO DE ÓRDENES (CONSOLA ADMIN)
# ==============================================================================
# Un admin cambia el estado de una orden desde la tabla o desde el detalle:
#
#   acción → PUT /orders/{id}/status → backend confirma → caché reemplazada
#          → insignia recalculada a partir del nuevo estado
#
# REGLAS:
# - Un estado fuera del enum se rechaza ANTES de llamar a la API
# - Una orden con llamada en curso no acepta otra (el botón queda deshabilitado)
# - Órdenes distintas se actualizan en paralelo sin bloquearse entre sí
# - La caché SOLO cambia después de una respuesta exitosa; un error se
#   notifica al usuario y no toca nada
# - Cualquier estado se puede asignar desde cualquier estado (corrección manual)
# ==============================================================================

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from autopartes.api_client import ApiClient
from autopartes.errors import AuthorizationError, NotFoundError, ValidationError, WorkflowError
from autopartes.models import (
    Badge,
    Order,
    OrderStatus,
    Session,
    ShipmentMethod,
    order_status_badge,
    order_status_label,
)
from autopartes.repositories import RecordCache
from autopartes.services.events import EventBus, ORDER_STATUS_CHANGED, SESSION_EXPIRED
from autopartes.services.notification_service import NotificationService
from autopartes.workflows.in_flight import InFlightTracker

logger = logging.getLogger(__name__)


# ==============================================================================
# SEGUIMIENTO DEL PEDIDO (VISTA DEL CLIENTE)
# ==============================================================================

STEP_COMPLETED = 'completed'
STEP_CURRENT = 'current'
STEP_UPCOMING = 'upcoming'
STEP_CANCELLED = 'cancelled'

# Posición de cada estado en la línea de tiempo (despacho y retiro comparten el 3)
_STEP_ORDER = {
    OrderStatus.PENDING: 1,
    OrderStatus.PROCESSING: 2,
    OrderStatus.SHIPPED: 3,
    OrderStatus.READY_FOR_PICKUP: 3,
    OrderStatus.DELIVERED: 4,
}

_DELIVERY_STEPS = [
    (OrderStatus.PENDING, 'Pedido Recibido'),
    (OrderStatus.PROCESSING, 'Procesando'),
    (OrderStatus.SHIPPED, 'Enviado'),
    (OrderStatus.DELIVERED, 'Entregado'),
]

_PICKUP_STEPS = [
    (OrderStatus.PENDING, 'Pedido Recibido'),
    (OrderStatus.PROCESSING, 'Procesando'),
    (OrderStatus.READY_FOR_PICKUP, 'Listo para Retiro'),
    (OrderStatus.DELIVERED, 'Retirado'),
]


@dataclass(frozen=True)
class TrackerStep:
    """Paso de la línea de tiempo que ve el cliente."""
    status: OrderStatus
    title: str
    state: str
    date: Optional[str] = None


def order_tracker_steps(order: Order) -> List[TrackerStep]:
    """
    Pasos de seguimiento de una orden según su método de entrega.

    - completed: el paso ya ocurrió
    - current: el siguiente paso a ocurrir
    - upcoming: pasos posteriores
    - cancelled: orden cancelada (solo el primer paso queda completado)
    """
    steps = _PICKUP_STEPS if order.shipment_method == ShipmentMethod.PICKUP else _DELIVERY_STEPS
    current = _STEP_ORDER.get(order.status, 0)
    dates = {
        OrderStatus.PENDING: order.created_at,
        OrderStatus.PROCESSING: order.paid_at or order.created_at,
        OrderStatus.DELIVERED: order.delivered_at,
    }

    result = []
    for status, title in steps:
        if order.status == OrderStatus.CANCELLED:
            state = STEP_COMPLETED if status == OrderStatus.PENDING else STEP_CANCELLED
        else:
            position = _STEP_ORDER[status]
            if position <= current:
                state = STEP_COMPLETED
            elif position == current + 1:
                state = STEP_CURRENT
            else:
                state = STEP_UPCOMING
        date = dates.get(status)
        result.append(TrackerStep(status, title, state, date.isoformat() if date else None))
    return result


# ==============================================================================
# VISTA DE DETALLE
# ==============================================================================

class OrderDetailView:
    """
    Detalle de una orden abierto en la consola.

    Se mantiene sincronizado con la caché hasta que se cierra; una vista
    cerrada nunca vuelve a actualizarse.
    """

    def __init__(self, workflow: 'OrderStatusWorkflow', order: Order):
        self._workflow = workflow
        self.order = order
        self.closed = False

    @property
    def order_id(self) -> str:
        return self.order.id

    @property
    def badge(self) -> Badge:
        return order_status_badge(self.order.status)

    @property
    def is_updating(self) -> bool:
        return self._workflow.is_loading(self.order.id)

    def tracker_steps(self) -> List[TrackerStep]:
        return order_tracker_steps(self.order)

    def change_status(self, new_status: Any) -> Dict[str, Any]:
        return self._workflow.change_status(self.order.id, new_status)

    def refresh(self, order: Order) -> bool:
        """Reemplaza la orden mostrada. False si la vista ya estaba cerrada."""
        if self.closed:
            return False
        self.order = order
        return True

    def close(self) -> None:
        self.closed = True
        self._workflow._detach(self)


# ==============================================================================
# FLUJO
# ==============================================================================

class OrderStatusWorkflow:
    """
    Flujo de cambio de estado de órdenes para el admin.

    Args:
        api: Gateway HTTP
        session: Sesión actual (se inyecta, no se lee de un global)
        cache: Caché de órdenes de la vista abierta
        notifier: Mensajes para el usuario
        events: Canal de eventos para sincronizar otras vistas
    """

    def __init__(
        self,
        api: ApiClient,
        session: Optional[Session],
        cache: RecordCache = None,
        notifier: NotificationService = None,
        events: EventBus = None
    ):
        self.api = api
        self.session = session
        self.cache: RecordCache = cache if cache is not None else RecordCache()
        self.notifier = notifier or NotificationService()
        self.events = events or EventBus()

        self._in_flight = InFlightTracker('La orden')
        self._views_lock = threading.Lock()
        self._views: Dict[str, List[OrderDetailView]] = defaultdict(list)

    # =========================================================================
    # ESTADO DE CARGA
    # =========================================================================

    def is_loading(self, order_id: str) -> bool:
        return self._in_flight.is_loading(order_id)

    def loading_ids(self) -> List[str]:
        return self._in_flight.keys()

    def _end(self, order_id: str) -> None:
        self._in_flight.end(order_id)
        self.notifier.dismiss(order_id)

    def _require_admin(self) -> Session:
        if self.session is None or not self.session.user_id:
            raise ValidationError('No hay una sesión activa')
        if not self.session.is_admin():
            raise ValidationError('Solo un administrador puede cambiar el estado de una orden')
        return self.session

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def available_statuses(self, order_id: str) -> List[OrderStatus]:
        """
        Estados que el menú ofrece para una orden: todos menos el actual.
        Vacío si la orden no está en caché o tiene una llamada en curso.
        """
        order = self.cache.get(order_id)
        if order is None or self.is_loading(order_id):
            return []
        return [status for status in OrderStatus if status != order.status]

    def can_change_status(self, order_id: str, new_status: Any) -> bool:
        try:
            status = OrderStatus.parse(new_status)
        except ValidationError:
            return False
        return status in self.available_statuses(order_id)

    def filter_orders(self, query: str = '', status: Any = None) -> List[Order]:
        """
        Filtra las órdenes en caché.

        Args:
            query: Texto buscado en el id de la orden o en nombre/email del cliente
            status: Estado exacto, o None/'' para todos
        """
        wanted = OrderStatus.parse(status) if status else None
        needle = (query or '').strip().lower()
        result = []
        for order in self.cache.all():
            if wanted is not None and order.status != wanted:
                continue
            if needle and not (
                needle in order.id.lower()
                or needle in order.user_name.lower()
                or needle in order.user_email.lower()
            ):
                continue
            result.append(order)
        return result

    def status_badge(self, order_id: str) -> Optional[Badge]:
        order = self.cache.get(order_id)
        return order_status_badge(order.status) if order else None

    # =========================================================================
    # CARGA DESDE LA API
    # =========================================================================

    def load_orders(self) -> Dict[str, Any]:
        """GET /orders y reemplaza la caché completa."""
        self._require_admin()
        try:
            orders = self.api.get_orders()
        except WorkflowError as e:
            return self._fail('', e, 'Error al cargar las órdenes')

        self.cache.replace_all(orders)
        for order in orders:
            self._refresh_views(order)
        logger.info('[ORDEN] %s órdenes cargadas', len(orders))
        return {'ok': True, 'orders': orders}

    def refresh_order(self, order_id: str) -> Dict[str, Any]:
        """GET /orders/{id} y actualiza esa fila."""
        self._require_admin()
        try:
            order = self.api.get_order(order_id)
        except NotFoundError as e:
            self.cache.remove(order_id)
            return self._fail(order_id, e, 'La orden ya no existe')
        except WorkflowError as e:
            return self._fail(order_id, e, 'Error al cargar la orden')

        self.cache.upsert(order)
        self._refresh_views(order)
        return {'ok': True, 'order': order}

    # =========================================================================
    # CAMBIO DE ESTADO
    # =========================================================================

    def change_status(self, order_id: str, new_status: Any) -> Dict[str, Any]:
        """
        Cambia el estado de una orden.

        Args:
            order_id: Id de la orden
            new_status: OrderStatus o su valor string

        Returns:
            {'ok': True, 'order': Order} si el backend confirmó;
            {'ok': False, 'error', 'error_type'} si falló

        Raises:
            ValidationError: sesión no admin, id vacío o estado inválido
            OperationInProgressError: la orden ya tiene una llamada en curso
        """
        self._require_admin()
        if not order_id:
            raise ValidationError('Falta el id de la orden')
        status = OrderStatus.parse(new_status)

        self._in_flight.begin(order_id)
        try:
            self.notifier.loading('Actualizando estado...', key=order_id)
            updated = self.api.update_order_status(order_id, status)
        except NotFoundError as e:
            self.cache.remove(order_id)
            return self._fail(order_id, e, 'Error al actualizar estado')
        except WorkflowError as e:
            return self._fail(order_id, e, 'Error al actualizar estado')
        else:
            return self._confirm(order_id, status, updated)
        finally:
            self._end(order_id)

    def _confirm(self, order_id: str, status: OrderStatus, updated: Optional[Order]) -> Dict[str, Any]:
        previous = self.cache.get(order_id)
        if updated is not None and updated.id == order_id:
            record = updated
        elif previous is not None:
            record = previous.with_status(status)
        else:
            record = None

        if record is not None:
            # Si la fila desapareció de la vista mientras tanto, no se agrega
            self.cache.replace(record)
            self._refresh_views(record)

        label = order_status_label(status)
        logger.info('[ORDEN] %s → %s por %s', order_id, status.value, self.session.user_id)
        self.notifier.success(f'Estado actualizado a: {label}', key=order_id)
        self.events.publish(ORDER_STATUS_CHANGED, {
            'order_id': order_id,
            'status': status.value,
            'previous': previous.status.value if previous else None,
            'changed_by': self.session.user_id,
        })
        return {'ok': True, 'order': record}

    def _fail(self, key: str, error: WorkflowError, prefix: str) -> Dict[str, Any]:
        """Convierte un error de la API en notificación y resultado fallido."""
        message = f'{prefix}: {error.message}'
        logger.warning('[ORDEN] %s (%s)', message, error.error_type)
        self.notifier.error(message, key=key or None)
        if isinstance(error, AuthorizationError) and error.session_expired:
            self.events.publish(SESSION_EXPIRED, {'source': 'orders'})
        return {'ok': False, 'error': error.message, 'error_type': error.error_type}

    # =========================================================================
    # VISTAS DE DETALLE
    # =========================================================================

    def open_detail(self, order_id: str) -> OrderDetailView:
        """
        Abre el detalle de una orden en caché.

        Raises:
            NotFoundError: la orden no está en la vista actual
        """
        order = self.cache.get(order_id)
        if order is None:
            raise NotFoundError(f'Orden {order_id} no encontrada')
        view = OrderDetailView(self, order)
        with self._views_lock:
            self._views[order_id].append(view)
        return view

    def open_views(self, order_id: str) -> List[OrderDetailView]:
        with self._views_lock:
            return list(self._views.get(order_id, []))

    def _detach(self, view: OrderDetailView) -> None:
        with self._views_lock:
            views = self._views.get(view.order_id)
            if views and view in views:
                views.remove(view)
                if not views:
                    del self._views[view.order_id]

    def _refresh_views(self, order: Order) -> None:
        for view in self.open_views(order.id):
            view.refresh(order)

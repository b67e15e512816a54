# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios
# 2. Aplican reglas de negocio y validaciones
# 3. Las rutas (controllers) solo llaman a servicios
#
# ESTRUCTURA:
# ├── order_service.py        → Cambios de estado y cancelación (backend)
# ├── user_service.py         → Login, registro, aprobación (backend)
# ├── audit_service.py        → Logs de actividad (backend)
# ├── notification_service.py → Mensajes visibles para el usuario (cliente)
# └── events.py               → Canal publicación/suscripción (cliente)
#
# SEGURIDAD CRÍTICA - APROBACIÓN DE DISTRIBUIDORES:
# El invariante isApproved ⇒ approvedAt + approvedBy se valida en
# UserService.update_user(), no depende de la consola.
# ==============================================================================

from autopartes.services.audit_service import AuditService
from autopartes.services.order_service import OrderService
from autopartes.services.user_service import UserService
from autopartes.services.notification_service import Notification, NotificationService
from autopartes.services.events import (
    EventBus,
    ORDER_STATUS_CHANGED,
    DISTRIBUTOR_APPROVAL_CHANGED,
    SESSION_EXPIRED,
)

__all__ = [
    'AuditService',
    'OrderService',
    'UserService',
    'Notification',
    'NotificationService',
    'EventBus',
    'ORDER_STATUS_CHANGED',
    'DISTRIBUTOR_APPROVAL_CHANGED',
    'SESSION_EXPIRED',
]

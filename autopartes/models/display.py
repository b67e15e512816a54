# ==============================================================================
# TABLAS DE PRESENTACIÓN - Etiquetas y colores de insignias
# ==============================================================================
# Mapeos puros estado → etiqueta → color. No contienen lógica de negocio,
# pero deben coincidir exactamente con lo que muestra la consola.
# ==============================================================================

from dataclasses import dataclass
from typing import Dict

from .entities import ApprovalState, OrderStatus, UserRole


@dataclass(frozen=True)
class Badge:
    """Insignia visible: texto, color base y clases CSS."""
    label: str
    color: str

    @property
    def css_class(self) -> str:
        return f'bg-{self.color}-100 text-{self.color}-800'


ORDER_STATUS_BADGES: Dict[OrderStatus, Badge] = {
    OrderStatus.PENDING: Badge('Pendiente', 'yellow'),
    OrderStatus.PROCESSING: Badge('Procesando', 'blue'),
    OrderStatus.SHIPPED: Badge('Enviado', 'purple'),
    OrderStatus.READY_FOR_PICKUP: Badge('Listo para Retiro', 'indigo'),
    OrderStatus.DELIVERED: Badge('Entregado', 'green'),
    OrderStatus.CANCELLED: Badge('Cancelado', 'red'),
}

APPROVAL_BADGES: Dict[ApprovalState, Badge] = {
    ApprovalState.APPROVED: Badge('Aprobado', 'green'),
    ApprovalState.PENDING: Badge('Pendiente', 'yellow'),
}

ROLE_BADGES: Dict[UserRole, Badge] = {
    UserRole.ADMIN: Badge('Administrador', 'blue'),
    UserRole.CLIENT: Badge('Cliente', 'green'),
    UserRole.DISTRIBUTOR: Badge('Distribuidor', 'purple'),
}


def order_status_badge(status) -> Badge:
    """Insignia para un estado de orden (acepta el enum o su string)."""
    return ORDER_STATUS_BADGES[OrderStatus.parse(status)]


def order_status_label(status) -> str:
    return order_status_badge(status).label


def role_badge(role) -> Badge:
    return ROLE_BADGES[UserRole.parse(role)]

# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio como dataclasses y enums cerrados: un estado o rol
# desconocido se rechaza al parsear, no más adelante.
# ==============================================================================

from .entities import (
    # Enums
    OrderStatus,
    UserRole,
    ApprovalState,
    ShipmentMethod,

    # Sesión
    Session,

    # Usuarios
    User,
    DistributorInfo,

    # Órdenes
    Order,
    OrderItem,

    # Fechas
    utc_now,
    parse_datetime,
    format_datetime,
)
from .display import (
    Badge,
    ORDER_STATUS_BADGES,
    APPROVAL_BADGES,
    ROLE_BADGES,
    order_status_badge,
    order_status_label,
    role_badge,
)

__all__ = [
    'OrderStatus',
    'UserRole',
    'ApprovalState',
    'ShipmentMethod',
    'Session',
    'User',
    'DistributorInfo',
    'Order',
    'OrderItem',
    'utc_now',
    'parse_datetime',
    'format_datetime',
    'Badge',
    'ORDER_STATUS_BADGES',
    'APPROVAL_BADGES',
    'ROLE_BADGES',
    'order_status_badge',
    'order_status_label',
    'role_badge',
]

# ==============================================================================
# CAPA DE FLUJOS - Lado cliente de la consola admin
# ==============================================================================
# ├── order_status.py         → Cambio de estado de órdenes + seguimiento
# ├── distributor_approval.py → Aprobar/revocar distribuidores
# ├── in_flight.py            → Banderas de carga por id
# └── listing.py              → Paginación de tablas
#
# Los flujos hablan con el backend SOLO a través de ApiClient y reciben la
# sesión actual de forma explícita.
# ==============================================================================

from autopartes.workflows.order_status import (
    OrderStatusWorkflow,
    OrderDetailView,
    TrackerStep,
    order_tracker_steps,
)
from autopartes.workflows.distributor_approval import (
    DistributorApprovalWorkflow,
    DistributorStatus,
    PendingConfirmation,
    distributor_status,
    filter_users,
)
from autopartes.workflows.listing import Page, paginate

__all__ = [
    'OrderStatusWorkflow',
    'OrderDetailView',
    'TrackerStep',
    'order_tracker_steps',
    'DistributorApprovalWorkflow',
    'DistributorStatus',
    'PendingConfirmation',
    'distributor_status',
    'filter_users',
    'Page',
    'paginate',
]

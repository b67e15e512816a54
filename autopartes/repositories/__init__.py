# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# ├── base.py               → Clases base JSON (DictRepository, ListRepository)
# ├── order_repository.py   → orders.json (backend)
# ├── user_repository.py    → users.json (backend)
# ├── audit_repository.py   → audit.json (backend)
# ├── session_repository.py → session.json (token local del cliente)
# └── cache.py              → Caché en memoria de la vista abierta (cliente)
# ==============================================================================

from .base import BaseRepository, DictRepository, ListRepository
from .order_repository import OrderRepository
from .user_repository import UserRepository
from .audit_repository import AuditRepository
from .session_repository import SessionRepository
from .cache import RecordCache

__all__ = [
    'BaseRepository',
    'DictRepository',
    'ListRepository',
    'OrderRepository',
    'UserRepository',
    'AuditRepository',
    'SessionRepository',
    'RecordCache',
]

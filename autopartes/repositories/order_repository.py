# ==============================================================================
# REPOSITORIO DE ÓRDENES
# ==============================================================================
# Encapsula todo el acceso a orders.json
# Las órdenes se almacenan como lista de documentos en formato de la API.
# ==============================================================================

import os
from typing import Any, Dict, List

from .base import ListRepository


class OrderRepository(ListRepository):
    """
    Repositorio de órdenes.

    Formato de datos en orders.json:
    [
        {"_id": "ORD123", "user": "U1", "status": "pending", "items": [...], ...}
    ]
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'orders.json'))

    def list_recent(self) -> List[Dict[str, Any]]:
        """Todas las órdenes, más recientes primero."""
        return sorted(self.get_all(), key=lambda o: o.get('createdAt') or '', reverse=True)

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return [o for o in self.list_recent() if o.get('user') == user_id]

    def list_for_distributor(self, distributor_id: str) -> List[Dict[str, Any]]:
        """Órdenes que contienen al menos un producto del distribuidor."""
        return [
            o for o in self.list_recent()
            if any(item.get('distributor') == distributor_id for item in o.get('items', []))
        ]

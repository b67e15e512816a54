# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Encapsula todo el acceso a audit.json
# La auditoría se almacena como lista: [{log1}, {log2}, ...]
# ==============================================================================

import os
from datetime import datetime, timezone
from typing import Any, Dict, List

from .base import ListRepository


class AuditRepository(ListRepository):
    """
    Repositorio del log de auditoría.

    Formato de datos en audit.json:
    [
        {
            "type": "ORDEN",
            "user": "A1",
            "message": "Orden ORD123: pending → delivered por A1",
            "timestamp": "2024-01-01T10:00:00+00:00",
            "related_id": "ORD123",
            "details": {...}
        }
    ]
    """

    # Límite de registros para evitar archivos muy grandes
    MAX_LOGS = 10000

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'audit.json'))

    def load(self) -> List[Dict[str, Any]]:
        """Logs ordenados del más reciente al más antiguo."""
        return sorted(self.get_all(), key=lambda x: x.get('timestamp', ''), reverse=True)

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """Agrega un registro, descartando los más antiguos sobre MAX_LOGS."""
        entry = {
            'type': log_type,
            'user': user,
            'message': message,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'related_id': related_id,
            'details': details or {},
        }
        with self._file_lock:
            logs = self.get_all()
            logs.append(entry)
            if len(logs) > self.MAX_LOGS:
                logs = logs[-self.MAX_LOGS:]
            self.save_all(logs)

    def find_by_related(self, related_id: str) -> List[Dict[str, Any]]:
        return [log for log in self.load() if log.get('related_id') == related_id]

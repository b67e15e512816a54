# ==============================================================================
# CACHÉ LOCAL DE REGISTROS
# ==============================================================================
# Copia transitoria, del lado cliente, de las órdenes o usuarios de la vista
# abierta. Es el único recurso mutable compartido de los flujos:
#   - Se reemplaza completa al (re)cargar desde la API
#   - Un registro se reemplaza con UNA asignación, y solo después de que el
#     backend confirme la mutación
# ==============================================================================

import threading
from typing import Dict, Generic, Iterable, List, Optional, TypeVar

T = TypeVar('T')


class RecordCache(Generic[T]):
    """
    Caché ordenada de entidades con atributo "id", protegida por lock.
    """

    def __init__(self, records: Iterable[T] = ()):
        self._lock = threading.RLock()
        self._records: Dict[str, T] = {}
        self.replace_all(records)

    def replace_all(self, records: Iterable[T]) -> None:
        fresh = {record.id: record for record in records}
        with self._lock:
            self._records = fresh

    def get(self, record_id: str) -> Optional[T]:
        with self._lock:
            return self._records.get(record_id)

    def all(self) -> List[T]:
        with self._lock:
            return list(self._records.values())

    def replace(self, record: T) -> bool:
        """
        Reemplaza un registro existente.

        Returns:
            False si el registro ya no está en la caché (no se agrega)
        """
        with self._lock:
            if record.id not in self._records:
                return False
            self._records[record.id] = record
            return True

    def upsert(self, record: T) -> None:
        with self._lock:
            self._records[record.id] = record

    def remove(self, record_id: str) -> Optional[T]:
        with self._lock:
            return self._records.pop(record_id, None)

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

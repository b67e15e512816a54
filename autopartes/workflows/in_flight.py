# ==============================================================================
# BANDERAS DE CARGA POR REGISTRO
# ==============================================================================
# Equivalente al botón deshabilitado de la consola: mientras una llamada para
# un id está en curso, otra llamada para ese MISMO id se rechaza. Ids distintos
# no se bloquean entre sí.
# ==============================================================================

import threading
from typing import List

from autopartes.errors import OperationInProgressError


class InFlightTracker:
    """Conjunto de ids con una llamada en curso, protegido por lock."""

    def __init__(self, label: str = 'registro'):
        self._label = label
        self._lock = threading.Lock()
        self._keys: set = set()

    def begin(self, key: str) -> None:
        """
        Marca un id como ocupado.

        Raises:
            OperationInProgressError: el id ya tenía una llamada en curso
        """
        with self._lock:
            if key in self._keys:
                raise OperationInProgressError(f'{self._label} {key} ya se está actualizando')
            self._keys.add(key)

    def end(self, key: str) -> None:
        with self._lock:
            self._keys.discard(key)

    def is_loading(self, key: str) -> bool:
        with self._lock:
            return key in self._keys

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._keys)

# ==============================================================================
# CANAL DE EVENTOS - Publicación/suscripción en proceso
# ==============================================================================
# Los flujos publican aquí SOLO después de una mutación confirmada por el
# backend. Las vistas que necesitan sincronizarse (barra lateral, contadores)
# se suscriben en lugar de consultar periódicamente.
# ==============================================================================

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

# Nombres de eventos publicados por los flujos
ORDER_STATUS_CHANGED = 'order.status_changed'
DISTRIBUTOR_APPROVAL_CHANGED = 'distributor.approval_changed'
SESSION_EXPIRED = 'session.expired'

Handler = Callable[[Dict[str, Any]], None]


class EventBus:
    """Bus de eventos síncrono y seguro entre hilos."""

    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        """
        Registra un manejador.

        Returns:
            Función que cancela la suscripción
        """
        with self._lock:
            self._handlers[event].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers[event]:
                    self._handlers[event].remove(handler)

        return unsubscribe

    def publish(self, event: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            handlers = list(self._handlers[event])
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                # Un suscriptor roto no debe impedir que el resto se entere
                logger.exception('[EVENTOS] Error en suscriptor de %s', event)

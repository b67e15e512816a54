# ==============================================================================
# SERVICIO DE NOTIFICACIONES
# ==============================================================================
# Mensajes visibles para el usuario (éxito, error, carga). Ningún error de
# un flujo se descarta en silencio: siempre termina aquí.
# ==============================================================================

import threading
from dataclasses import dataclass
from typing import Callable, List, Optional


@dataclass(frozen=True)
class Notification:
    """
    Attributes:
        level: 'success', 'error' o 'loading'
        message: Texto para el usuario
        key: Id asociado (orden o usuario) si aplica
    """
    level: str
    message: str
    key: Optional[str] = None


class NotificationService:
    """Acumula notificaciones y avisa a los oyentes registrados."""

    LEVEL_SUCCESS = 'success'
    LEVEL_ERROR = 'error'
    LEVEL_LOADING = 'loading'

    def __init__(self):
        self._lock = threading.Lock()
        self.history: List[Notification] = []
        self._active_loading: dict = {}
        self._listeners: List[Callable[[Notification], None]] = []

    def add_listener(self, listener: Callable[[Notification], None]) -> None:
        self._listeners.append(listener)

    def _emit(self, notification: Notification) -> Notification:
        with self._lock:
            self.history.append(notification)
        for listener in list(self._listeners):
            listener(notification)
        return notification

    def success(self, message: str, key: str = None) -> Notification:
        return self._emit(Notification(self.LEVEL_SUCCESS, message, key))

    def error(self, message: str, key: str = None) -> Notification:
        return self._emit(Notification(self.LEVEL_ERROR, message, key))

    def loading(self, message: str, key: str) -> Notification:
        notification = self._emit(Notification(self.LEVEL_LOADING, message, key))
        with self._lock:
            self._active_loading[key] = notification
        return notification

    def dismiss(self, key: str) -> None:
        with self._lock:
            self._active_loading.pop(key, None)

    def is_loading(self, key: str) -> bool:
        with self._lock:
            return key in self._active_loading

    def last(self, level: str = None) -> Optional[Notification]:
        with self._lock:
            for notification in reversed(self.history):
                if level is None or notification.level == level:
                    return notification
        return None

# ==============================================================================
# ERRORES DEL DOMINIO
# ==============================================================================
# Taxonomía de errores de los flujos de órdenes y distribuidores.
#
#   WorkflowError
#   ├── ValidationError            → valor fuera del enum, identidad faltante
#   │   └── OperationInProgressError → ya hay una llamada en curso para ese id
#   ├── AuthorizationError         → 401/403 del backend
#   ├── NotFoundError              → el recurso ya no existe en el servidor
#   ├── TransientNetworkError      → la solicitud no pudo completarse
#   └── BackendError               → respuesta con success=false
# ==============================================================================

from typing import Optional


class WorkflowError(Exception):
    """Error base de los flujos de la consola."""

    # Mensaje que se muestra al usuario cuando no hay uno más específico
    user_message = 'Ocurrió un error inesperado'

    def __init__(self, message: str = None, status_code: Optional[int] = None):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message
        self.status_code = status_code

    @property
    def error_type(self) -> str:
        return type(self).__name__


class ValidationError(WorkflowError):
    """Se rechaza antes de cualquier llamada de red."""
    user_message = 'Datos inválidos'


class OperationInProgressError(ValidationError):
    """Ya hay una actualización en curso para el mismo registro."""
    user_message = 'Ya hay una actualización en curso'


class AuthorizationError(WorkflowError):
    """
    El backend respondió 401 o 403.

    Attributes:
        session_expired: True si fue un 401 (token inválido o expirado)
    """
    user_message = 'No tiene permisos para realizar esta acción'

    def __init__(self, message: str = None, status_code: Optional[int] = None,
                 session_expired: bool = False):
        super().__init__(message, status_code)
        self.session_expired = session_expired


class NotFoundError(WorkflowError):
    user_message = 'El registro ya no existe'


class TransientNetworkError(WorkflowError):
    user_message = 'No se pudo completar la solicitud. Intente nuevamente'


class BackendError(WorkflowError):
    user_message = 'Error desconocido'

# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Centraliza el registro de auditoría del backend.
# Formatea mensajes humanizados y categoriza eventos.
# ==============================================================================

from typing import Any, Dict, List

from autopartes.repositories.audit_repository import AuditRepository


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    La regla: toda mutación de una orden o de la aprobación de un
    distribuidor deja rastro con la identidad de quien la hizo.
    """

    # Tipos de eventos de auditoría
    TYPE_ORDEN = 'ORDEN'
    TYPE_USUARIO = 'USUARIO'
    TYPE_DISTRIBUIDOR = 'DISTRIBUIDOR'
    TYPE_SISTEMA = 'SISTEMA'

    def __init__(self, audit_repo: AuditRepository):
        self.audit_repo = audit_repo

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un evento de auditoría genérico.

        Args:
            log_type: Tipo de evento (ORDEN, USUARIO, etc.)
            user: Id del usuario que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: Id relacionado (orden, usuario)
            details: Detalles adicionales
        """
        self.audit_repo.log(log_type, user, message, related_id, details)

    # =========================================================================
    # ÓRDENES
    # =========================================================================

    def log_order_status_change(self, user: str, order_id: str, old_status: str, new_status: str) -> None:
        message = f'Orden {order_id}: {old_status} → {new_status} por {user}'
        self.log(self.TYPE_ORDEN, user, message, order_id, {'from': old_status, 'to': new_status})

    def log_order_cancelled(self, user: str, order_id: str, old_status: str) -> None:
        message = f'Orden {order_id} cancelada por {user} (estado previo: {old_status})'
        self.log(self.TYPE_ORDEN, user, message, order_id, {'from': old_status, 'to': 'cancelled'})

    # =========================================================================
    # USUARIOS Y DISTRIBUIDORES
    # =========================================================================

    def log_distributor_approval(self, admin_user: str, target_user: str, approved: bool) -> None:
        action = 'aprobado' if approved else 'revocado'
        message = f'Distribuidor {target_user} {action} por {admin_user}'
        self.log(self.TYPE_DISTRIBUIDOR, admin_user, message, target_user, {'isApproved': approved})

    def log_user_update(self, admin_user: str, target_user: str, fields: List[str]) -> None:
        message = f'Usuario {target_user} actualizado por {admin_user}: {", ".join(sorted(fields))}'
        self.log(self.TYPE_USUARIO, admin_user, message, target_user, {'fields': sorted(fields)})

    def log_user_login(self, user: str) -> None:
        self.log(self.TYPE_SISTEMA, user, f'Inicio de sesión de {user}', user)

    # =========================================================================
    # CONSULTA
    # =========================================================================

    def get_logs_for(self, related_id: str) -> List[Dict[str, Any]]:
        """Historial de eventos de una orden o usuario (más reciente primero)."""
        return self.audit_repo.find_by_related(related_id)

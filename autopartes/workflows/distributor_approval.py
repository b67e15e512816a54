# ==============================================================================
# FLUJO DE APROBACIÓN DE DISTRIBUIDORES (CONSOLA ADMIN)
# ==============================================================================
# Un distribuidor se registra con isApproved = false y no ve precios
# mayoristas hasta que un admin lo aprueba.
#
#   aprobar  → PATCH /users/{id} {isApproved: true,  approvedAt: ahora, approvedBy: admin}
#   revocar  → PATCH /users/{id} {isApproved: false, approvedAt: null,  approvedBy: null}
#
# REGLAS:
# - Solo cuentas con rol "distributor" (cualquier otro rol se rechaza sin red)
# - Aprobar exige el id del admin que actúa (auditoría)
# - Revocar exige que el distribuidor esté aprobado
# - La caché cambia SOLO después de que el backend confirme
# - Las acciones pasan por una confirmación explícita del admin
# ==============================================================================

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from autopartes.api_client import ApiClient
from autopartes.errors import AuthorizationError, NotFoundError, ValidationError, WorkflowError
from autopartes.models import (
    APPROVAL_BADGES,
    ApprovalState,
    DistributorInfo,
    Session,
    User,
    UserRole,
    format_datetime,
    utc_now,
)
from autopartes.repositories import RecordCache
from autopartes.services.events import DISTRIBUTOR_APPROVAL_CHANGED, SESSION_EXPIRED, EventBus
from autopartes.services.notification_service import NotificationService
from autopartes.workflows.in_flight import InFlightTracker
from autopartes.workflows.listing import Page, paginate

logger = logging.getLogger(__name__)

ACTION_APPROVE = 'approve'
ACTION_REVOKE = 'revoke'


# ==============================================================================
# ESTADO VISIBLE
# ==============================================================================

@dataclass(frozen=True)
class DistributorStatus:
    """Estado de aprobación tal como lo muestra la tabla de usuarios."""
    state: ApprovalState
    label: str
    color: str

    @property
    def approved(self) -> bool:
        return self.state == ApprovalState.APPROVED

    @property
    def pending(self) -> bool:
        return self.state == ApprovalState.PENDING


def distributor_status(user: User) -> Optional[DistributorStatus]:
    """
    Estado de aprobación de un usuario.

    Returns:
        None para clientes y admins; para distribuidores "approved" solo si
        isApproved es exactamente True, "pending" en cualquier otro caso
    """
    if user is None or user.role != UserRole.DISTRIBUTOR:
        return None
    info = user.distributor_info
    state = ApprovalState.APPROVED if info is not None and info.is_approved is True else ApprovalState.PENDING
    badge = APPROVAL_BADGES[state]
    return DistributorStatus(state, badge.label, badge.color)


def filter_users(
    users: List[User],
    query: str = '',
    role: Any = None,
    approval: Any = None
) -> List[User]:
    """
    Filtros de la tabla de usuarios.

    Args:
        users: Usuarios a filtrar
        query: Texto buscado en nombre, email o razón social
        role: Rol exacto, o None/'' para todos
        approval: 'approved'/'pending'; un usuario que no es distribuidor
            nunca coincide con un filtro de aprobación
    """
    wanted_role = UserRole.parse(role) if role else None
    wanted_state = ApprovalState.parse(approval) if approval else None
    needle = (query or '').strip().lower()

    result = []
    for user in users:
        if wanted_role is not None and user.role != wanted_role:
            continue
        if wanted_state is not None:
            status = distributor_status(user)
            if status is None or status.state != wanted_state:
                continue
        if needle:
            company = user.distributor_info.company_name if user.distributor_info else ''
            haystack = (user.name.lower(), user.email.lower(), (company or '').lower())
            if not any(needle in text for text in haystack):
                continue
        result.append(user)
    return result


# ==============================================================================
# CONFIRMACIÓN
# ==============================================================================

@dataclass(frozen=True)
class PendingConfirmation:
    """Acción esperando que el admin la confirme en el diálogo."""
    user: User
    action: str

    @property
    def title(self) -> str:
        return 'Aprobar Distribuidor' if self.action == ACTION_APPROVE else 'Revocar Aprobación'

    @property
    def prompt(self) -> str:
        if self.action == ACTION_APPROVE:
            return (f'¿Estás seguro de que deseas aprobar a {self.user.name} como distribuidor? '
                    'Podrá acceder a precios mayoristas.')
        return (f'¿Estás seguro de que deseas revocar la aprobación de {self.user.name}? '
                'Perderá el acceso a precios mayoristas.')


# ==============================================================================
# FLUJO
# ==============================================================================

class DistributorApprovalWorkflow:
    """
    Flujo de aprobación y revocación de distribuidores.

    Args:
        api: Gateway HTTP
        session: Sesión actual del admin
        cache: Caché de usuarios de la vista abierta
        notifier: Mensajes para el usuario
        events: Canal de eventos para sincronizar otras vistas
    """

    def __init__(
        self,
        api: ApiClient,
        session: Optional[Session],
        cache: RecordCache = None,
        notifier: NotificationService = None,
        events: EventBus = None
    ):
        self.api = api
        self.session = session
        self.cache: RecordCache = cache if cache is not None else RecordCache()
        self.notifier = notifier or NotificationService()
        self.events = events or EventBus()
        self.pending: Optional[PendingConfirmation] = None
        self._in_flight = InFlightTracker('El usuario')

    def is_loading(self, user_id: str) -> bool:
        return self._in_flight.is_loading(user_id)

    # =========================================================================
    # VALIDACIONES (antes de cualquier llamada de red)
    # =========================================================================

    def _require_distributor(self, user_id: str) -> User:
        if not user_id:
            raise ValidationError('Falta el id del usuario')
        user = self.cache.get(user_id)
        if user is None:
            raise ValidationError(f'Usuario {user_id} no está en la vista actual')
        if user.role != UserRole.DISTRIBUTOR:
            raise ValidationError('Solo las cuentas de distribuidor requieren aprobación')
        return user

    def _require_admin_session(self) -> None:
        if self.session is not None and not self.session.is_admin():
            raise ValidationError('Solo un administrador puede aprobar distribuidores')

    def _check_approve(self, user_id: str) -> User:
        user = self._require_distributor(user_id)
        if user.is_approved_distributor():
            raise ValidationError(f'El distribuidor {user.name} ya está aprobado')
        return user

    def _check_revoke(self, user_id: str) -> User:
        user = self._require_distributor(user_id)
        if not user.is_approved_distributor():
            raise ValidationError(f'El distribuidor {user.name} no está aprobado')
        return user

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def load_distributors(self) -> Dict[str, Any]:
        """GET /users y deja en caché solo a los distribuidores."""
        try:
            users = self.api.get_users()
        except WorkflowError as e:
            return self._fail('', e, 'Error al cargar usuarios')

        distributors = [u for u in users if u.is_distributor()]
        self.cache.replace_all(distributors)
        logger.info('[DISTRIBUIDOR] %s distribuidores cargados', len(distributors))
        return {'ok': True, 'users': distributors}

    def filter_users(self, query: str = '', role: Any = None, approval: Any = None) -> List[User]:
        return filter_users(self.cache.all(), query, role, approval)

    def page(self, page: int = 1, query: str = '', role: Any = None, approval: Any = None) -> Page:
        return paginate(self.filter_users(query, role, approval), page)

    # =========================================================================
    # APROBAR / REVOCAR
    # =========================================================================

    def approve(self, user_id: str, acting_admin_id: Optional[str]) -> Dict[str, Any]:
        """
        Aprueba un distribuidor.

        Args:
            user_id: Distribuidor a aprobar
            acting_admin_id: Admin que aprueba (obligatorio)

        Returns:
            {'ok': True, 'user': User} o {'ok': False, 'error', 'error_type'}

        Raises:
            ValidationError: rol distinto de distribuidor, ya aprobado o sin admin
        """
        if not acting_admin_id or not str(acting_admin_id).strip():
            raise ValidationError('Se requiere el id del administrador que aprueba')
        self._require_admin_session()
        user = self._check_approve(user_id)

        approved_at = utc_now()
        fields = {
            'distributorInfo.isApproved': True,
            'distributorInfo.approvedAt': format_datetime(approved_at),
            'distributorInfo.approvedBy': acting_admin_id,
        }
        info = user.distributor_info or DistributorInfo()
        expected = replace(user, distributor_info=replace(
            info, is_approved=True, approved_at=approved_at, approved_by=acting_admin_id
        ))
        return self._mutate(user, fields, expected, 'Distribuidor aprobado correctamente',
                            'Error al aprobar distribuidor', acting_admin_id)

    def revoke(self, user_id: str) -> Dict[str, Any]:
        """
        Revoca la aprobación de un distribuidor.

        Raises:
            ValidationError: rol distinto de distribuidor o no aprobado
        """
        self._require_admin_session()
        user = self._check_revoke(user_id)

        fields = {
            'distributorInfo.isApproved': False,
            'distributorInfo.approvedAt': None,
            'distributorInfo.approvedBy': None,
        }
        expected = replace(user, distributor_info=replace(
            user.distributor_info, is_approved=False, approved_at=None, approved_by=None
        ))
        acting = self.session.user_id if self.session else None
        return self._mutate(user, fields, expected, 'Distribuidor rechazado',
                            'Error al rechazar distribuidor', acting)

    def _mutate(
        self,
        user: User,
        fields: Dict[str, Any],
        expected: User,
        success_message: str,
        error_prefix: str,
        acting_admin_id: Optional[str]
    ) -> Dict[str, Any]:
        self._in_flight.begin(user.id)
        try:
            updated = self.api.update_user(user.id, fields)
        except NotFoundError as e:
            self.cache.remove(user.id)
            return self._fail(user.id, e, error_prefix)
        except WorkflowError as e:
            return self._fail(user.id, e, error_prefix)
        else:
            record = updated if updated is not None and updated.id == user.id else expected
            self.cache.replace(record)
            approved = record.is_approved_distributor()
            logger.info('[DISTRIBUIDOR] %s %s por %s', user.id,
                        'aprobado' if approved else 'revocado', acting_admin_id)
            self.notifier.success(success_message, key=user.id)
            self.events.publish(DISTRIBUTOR_APPROVAL_CHANGED, {
                'user_id': user.id,
                'is_approved': approved,
                'changed_by': acting_admin_id,
            })
            return {'ok': True, 'user': record}
        finally:
            self._in_flight.end(user.id)

    def _fail(self, key: str, error: WorkflowError, prefix: str) -> Dict[str, Any]:
        message = f'{prefix}: {error.message}'
        logger.warning('[DISTRIBUIDOR] %s (%s)', message, error.error_type)
        self.notifier.error(message, key=key or None)
        if isinstance(error, AuthorizationError) and error.session_expired:
            self.events.publish(SESSION_EXPIRED, {'source': 'users'})
        return {'ok': False, 'error': error.message, 'error_type': error.error_type}

    # =========================================================================
    # DIÁLOGO DE CONFIRMACIÓN
    # =========================================================================

    def request_approval(self, user_id: str) -> PendingConfirmation:
        """Valida y deja pendiente una aprobación (sin llamada de red)."""
        self.pending = PendingConfirmation(self._check_approve(user_id), ACTION_APPROVE)
        return self.pending

    def request_revocation(self, user_id: str) -> PendingConfirmation:
        self.pending = PendingConfirmation(self._check_revoke(user_id), ACTION_REVOKE)
        return self.pending

    def cancel(self) -> None:
        self.pending = None

    def confirm(self) -> Dict[str, Any]:
        """
        Ejecuta la acción pendiente con el admin de la sesión.
        La confirmación se descarta siempre, falle o no.

        Raises:
            ValidationError: no hay acción pendiente o no hay sesión de admin
        """
        pending = self.pending
        try:
            if pending is None:
                raise ValidationError('No hay ninguna acción pendiente de confirmar')
            if pending.action == ACTION_APPROVE:
                acting = self.session.user_id if self.session else None
                return self.approve(pending.user.id, acting)
            return self.revoke(pending.user.id)
        finally:
            self.pending = None

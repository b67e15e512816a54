# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto único para obtener repositorios, servicios y flujos:
#
#   BACKEND  → repositorios JSON + OrderService / UserService / AuditService
#   CLIENTE  → sesión local + ApiClient + cachés + flujos de la consola
#
# Todo se crea de forma perezosa la primera vez que se pide. Los flujos se
# descartan al iniciar sesión (login) y cuando el canal avisa SESSION_EXPIRED,
# así la siguiente vez se construyen con la sesión vigente.
# ==============================================================================

import os
from typing import Optional

from autopartes import config
from autopartes.api_client import ApiClient
from autopartes.models import Session

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia
# ═══════════════════════════════════════════════════════════════════════════════
from autopartes.repositories import (
    AuditRepository,
    OrderRepository,
    RecordCache,
    SessionRepository,
    UserRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS Y FLUJOS
# ═══════════════════════════════════════════════════════════════════════════════
from autopartes.services import (
    AuditService,
    EventBus,
    NotificationService,
    OrderService,
    UserService,
    SESSION_EXPIRED,
)
from autopartes.workflows import DistributorApprovalWorkflow, OrderStatusWorkflow


class AppContainer:
    """
    Contenedor de dependencias de la aplicación (singleton).

    Uso:
        container = AppContainer(base_path='/ruta/a/datos')
        container.order_service.update_status(...)
        container.order_workflow.change_status('ORD123', 'delivered')
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None, api_url: str = None):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, base_path: str = None, api_url: str = None):
        """
        Args:
            base_path: Directorio de los JSON (por defecto config.DATA_DIR)
            api_url: URL base de la API para el cliente (por defecto config.API_URL)
        """
        if self._initialized:
            return

        self._base_path = base_path or config.DATA_DIR
        os.makedirs(self._base_path, exist_ok=True)
        self._api_url = api_url or config.API_URL

        self.reset()
        self._initialized = True

    @property
    def base_path(self) -> str:
        return self._base_path

    # =========================================================================
    # REPOSITORIOS (BACKEND)
    # =========================================================================

    @property
    def order_repo(self) -> OrderRepository:
        if self._order_repo is None:
            self._order_repo = OrderRepository(self._base_path)
        return self._order_repo

    @property
    def user_repo(self) -> UserRepository:
        if self._user_repo is None:
            self._user_repo = UserRepository(self._base_path)
        return self._user_repo

    @property
    def audit_repo(self) -> AuditRepository:
        if self._audit_repo is None:
            self._audit_repo = AuditRepository(self._base_path)
        return self._audit_repo

    # =========================================================================
    # SERVICIOS (BACKEND)
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        if self._audit_service is None:
            self._audit_service = AuditService(self.audit_repo)
        return self._audit_service

    @property
    def order_service(self) -> OrderService:
        if self._order_service is None:
            self._order_service = OrderService(self.order_repo, self.audit_service, self.user_repo)
        return self._order_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(self.user_repo, self.audit_service)
        return self._user_service

    # =========================================================================
    # CLIENTE DE LA CONSOLA
    # =========================================================================

    @property
    def session_repo(self) -> SessionRepository:
        """Almacén local del token (session.json)."""
        if self._session_repo is None:
            self._session_repo = SessionRepository(self._base_path)
        return self._session_repo

    @property
    def session(self) -> Optional[Session]:
        return self.session_repo.load_session()

    @property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            self._api_client = ApiClient(self._api_url, session_store=self.session_repo)
        return self._api_client

    @property
    def notifications(self) -> NotificationService:
        if self._notifications is None:
            self._notifications = NotificationService()
        return self._notifications

    @property
    def events(self) -> EventBus:
        if self._events is None:
            self._events = EventBus()
            self._events.subscribe(SESSION_EXPIRED, self._on_session_expired)
        return self._events

    def _on_session_expired(self, payload) -> None:
        self.reset_client()

    def login(self, email: str, password: str) -> Session:
        """
        Inicia sesión en la API y descarta los flujos construidos con la sesión anterior.

        Raises:
            AuthorizationError: Credenciales incorrectas
        """
        session = self.api_client.login(email, password)
        self.reset_client()
        return session

    @property
    def order_workflow(self) -> OrderStatusWorkflow:
        """Flujo de estado de órdenes con la sesión guardada al crearlo."""
        if self._order_workflow is None:
            self._order_workflow = OrderStatusWorkflow(
                self.api_client,
                self.session,
                cache=RecordCache(),
                notifier=self.notifications,
                events=self.events,
            )
        return self._order_workflow

    @property
    def distributor_workflow(self) -> DistributorApprovalWorkflow:
        if self._distributor_workflow is None:
            self._distributor_workflow = DistributorApprovalWorkflow(
                self.api_client,
                self.session,
                cache=RecordCache(),
                notifier=self.notifications,
                events=self.events,
            )
        return self._distributor_workflow

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset_client(self) -> None:
        """Descarta los flujos para que la próxima vez tomen la sesión actual."""
        self._order_workflow = None
        self._distributor_workflow = None

    def reset(self) -> None:
        """Reinicia todas las instancias (útil para tests o recargar datos)."""
        self._order_repo = None
        self._user_repo = None
        self._audit_repo = None
        self._session_repo = None

        self._audit_service = None
        self._order_service = None
        self._user_service = None

        self._api_client = None
        self._notifications = None
        self._events = None
        self._order_workflow = None
        self._distributor_workflow = None

    @classmethod
    def get_instance(cls, base_path: str = None) -> 'AppContainer':
        if cls._instance is None:
            return cls(base_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


def get_container(base_path: str = None) -> AppContainer:
    """Contenedor de dependencias global."""
    return AppContainer.get_instance(base_path)

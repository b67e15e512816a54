# -*- coding: utf-8 -*-
"""
================================================================================
Gateway HTTP hacia la API REST
================================================================================
Todas las llamadas de los flujos pasan por aquí. Cada solicitud lleva el token
bearer guardado en la sesión local y cada respuesta se traduce a entidades o
a un error de la taxonomía de `autopartes.errors`:

    401            → AuthorizationError(session_expired=True) + sesión local borrada
                     (en login un 401 son credenciales incorrectas)
    403            → AuthorizationError
    404            → NotFoundError
    5xx / sin red  → TransientNetworkError
    success!=true  → BackendError con el mensaje del backend
    cuerpo o data  → BackendError (JSON que no es objeto, registro mal formado)

No hay reintentos automáticos: el usuario decide si repite la acción.
================================================================================
"""

import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import requests

from autopartes import config
from autopartes.errors import (
    AuthorizationError,
    BackendError,
    NotFoundError,
    TransientNetworkError,
    ValidationError,
)
from autopartes.models import Order, OrderStatus, Session, User, UserRole
from autopartes.repositories import SessionRepository

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ApiClient:
    """
    Cliente de la API de la tienda.

    Args:
        base_url: URL base de la API (ej: http://localhost:5000/api)
        session_store: Almacén local del token (opcional)
        http: Sesión de requests a reutilizar (se crea una si no se pasa)
        timeout: Segundos de espera por solicitud
    """

    def __init__(
        self,
        base_url: str = None,
        session_store: SessionRepository = None,
        http: requests.Session = None,
        timeout: float = None
    ):
        self.base_url = (base_url or config.API_URL).rstrip('/')
        self.session_store = session_store
        self.http = http or requests.Session()
        self.timeout = timeout or config.HTTP_TIMEOUT

    # =========================================================================
    # NÚCLEO DE SOLICITUDES
    # =========================================================================

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        token = self.session_store.get_token() if self.session_store else None
        if token:
            headers['Authorization'] = f'Bearer {token}'
        return headers

    def _request(self, method: str, path: str, payload: Dict[str, Any] = None,
                 expire_on_401: bool = True) -> Dict[str, Any]:
        """
        Ejecuta una solicitud y devuelve el cuerpo JSON si fue exitosa.

        Solo se considera exitosa una respuesta 2xx cuyo cuerpo sea un objeto
        JSON con success=true.

        Args:
            expire_on_401: Si un 401 significa token vencido (borra la sesión)

        Raises:
            AuthorizationError, NotFoundError, TransientNetworkError, BackendError
        """
        url = f'{self.base_url}{path}'
        logger.debug('[API] %s %s', method, url)
        try:
            response = self.http.request(
                method, url, json=payload, headers=self._headers(), timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error('[API] %s %s falló sin respuesta: %s', method, url, e)
            raise TransientNetworkError()

        try:
            body = response.json()
        except ValueError:
            body = None
        error_text = body.get('error') if isinstance(body, dict) else None
        status_code = response.status_code

        if status_code == 401:
            if not expire_on_401:
                raise AuthorizationError(error_text, status_code=401)
            logger.warning('[SEGURIDAD] 401 en %s %s: sesión expirada', method, url)
            if self.session_store:
                self.session_store.clear()
            raise AuthorizationError(
                'Sesión expirada. Por favor inicia sesión nuevamente.',
                status_code=401,
                session_expired=True,
            )
        if status_code == 403:
            raise AuthorizationError(error_text, status_code=403)
        if status_code == 404:
            raise NotFoundError(error_text, status_code=404)
        if status_code >= 500:
            logger.error('[API] %s %s respondió %s: %s', method, url, status_code, error_text)
            raise TransientNetworkError(status_code=status_code)
        if status_code >= 400:
            raise BackendError(error_text, status_code=status_code)
        if not isinstance(body, dict):
            logger.error('[API] %s %s respondió %s sin un objeto JSON', method, url, status_code)
            raise BackendError('Respuesta inválida del servidor', status_code=status_code)
        if body.get('success') is not True:
            raise BackendError(error_text, status_code=status_code)
        return body

    @staticmethod
    def _parse(factory: Callable[[Dict[str, Any]], T], data: Any, required: bool = True) -> Optional[T]:
        """
        Convierte el campo `data` de una respuesta en una entidad.

        Args:
            factory: Order.from_dict o User.from_dict
            data: Valor recibido
            required: Si False, un `data` ausente devuelve None

        Raises:
            BackendError: Si falta `data` siendo obligatorio o no tiene el formato esperado
        """
        if data is None and not required:
            return None
        if not isinstance(data, dict):
            raise BackendError('Respuesta inválida del servidor')
        try:
            return factory(data)
        except (KeyError, TypeError, AttributeError, ValueError, ValidationError) as e:
            logger.error('[API] Registro con formato inválido: %s', e)
            raise BackendError('Respuesta inválida del servidor')

    def _parse_list(self, factory: Callable[[Dict[str, Any]], T], data: Any) -> List[T]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise BackendError('Respuesta inválida del servidor')
        return [self._parse(factory, item) for item in data]

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def login(self, email: str, password: str) -> Session:
        """
        Inicia sesión y guarda el token en el almacén local.

        Un 401 aquí son credenciales incorrectas: la sesión guardada no se toca.

        Returns:
            Sesión con id, rol y token del usuario
        """
        body = self._request(
            'POST', '/auth/login', {'email': email, 'password': password}, expire_on_401=False
        )
        user = body.get('data')
        token = body.get('token')
        if not isinstance(user, dict) or not user.get('_id') or not token:
            raise BackendError('Respuesta inválida del servidor')
        try:
            role = UserRole.parse(user.get('role', 'client'))
        except ValidationError:
            raise BackendError('Respuesta inválida del servidor')
        session = Session(user_id=user['_id'], role=role, token=token)
        if self.session_store:
            self.session_store.save_session(session)
        return session

    # =========================================================================
    # ÓRDENES
    # =========================================================================

    def get_orders(self) -> List[Order]:
        body = self._request('GET', '/orders')
        return self._parse_list(Order.from_dict, body.get('data'))

    def get_order(self, order_id: str) -> Order:
        body = self._request('GET', f'/orders/{order_id}')
        return self._parse(Order.from_dict, body.get('data'))

    def update_order_status(self, order_id: str, status: OrderStatus) -> Optional[Order]:
        """
        PUT /orders/{id}/status

        Returns:
            Orden actualizada si el backend la devolvió, None si no
        """
        body = self._request('PUT', f'/orders/{order_id}/status', {'status': status.value})
        return self._parse(Order.from_dict, body.get('data'), required=False)

    # =========================================================================
    # USUARIOS
    # =========================================================================

    def get_users(self) -> List[User]:
        body = self._request('GET', '/users')
        return self._parse_list(User.from_dict, body.get('data'))

    def get_user(self, user_id: str) -> User:
        body = self._request('GET', f'/users/{user_id}')
        return self._parse(User.from_dict, body.get('data'))

    def update_user(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        """
        PATCH /users/{id} con claves con punto (ej: "distributorInfo.isApproved").

        Returns:
            Usuario actualizado si el backend lo devolvió, None si no
        """
        body = self._request('PATCH', f'/users/{user_id}', fields)
        return self._parse(User.from_dict, body.get('data'), required=False)

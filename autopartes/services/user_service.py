# ==============================================================================
# SERVICIO DE USUARIOS (BACKEND)
# ==============================================================================
# Centraliza la lógica de negocio de usuarios: autenticación, registro y la
# actualización genérica que la consola reutiliza para aprobar o revocar
# distribuidores.
#
# REGLA CRÍTICA - APROBACIÓN DE DISTRIBUIDORES:
# - Solo una cuenta con rol "distributor" puede tener bandera de aprobación
# - isApproved = true  ⇒ approvedAt y approvedBy presentes
# - isApproved = false ⇒ approvedAt y approvedBy se BORRAN (nunca quedan viejos)
# Estas validaciones se hacen AQUÍ, no en las rutas.
# ==============================================================================

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from autopartes.errors import ValidationError
from autopartes.models import UserRole, parse_datetime
from autopartes.repositories.user_repository import UserRepository
from autopartes.services.audit_service import AuditService


class UserService:
    """
    Servicio para gestión de usuarios en el backend.

    Responsabilidades:
    - Autenticación (email + contraseña hasheada)
    - Registro de clientes y distribuidores
    - Actualización por admin con claves con punto
    - Invariante de aprobación de distribuidores
    """

    # Campos de primer nivel que un admin puede modificar
    UPDATABLE_FIELDS = frozenset(['name', 'email', 'role', 'phone', 'address', 'distributorInfo'])

    # Campos que nunca se aceptan por la ruta de actualización
    PROTECTED_FIELDS = frozenset(['password', '_id', 'createdAt'])

    APPROVAL_FIELDS = frozenset(['isApproved', 'approvedAt', 'approvedBy'])

    def __init__(self, user_repo: UserRepository, audit_service: AuditService = None):
        self.user_repo = user_repo
        self.audit_service = audit_service

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def authenticate(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Autentica un usuario.

        Returns:
            Usuario sin contraseña si es válido, None si no
        """
        user = self.user_repo.get_by_email(email)
        if not user or not password:
            return None
        if not check_password_hash(user.get('password', ''), password):
            return None

        if self.audit_service:
            self.audit_service.log_user_login(user['_id'])
        return self.user_repo.public_view(user)

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.user_repo.public_view(self.user_repo.get_by_id(user_id))

    def get_all_users(self) -> List[Dict[str, Any]]:
        return self.user_repo.list_public()

    # =========================================================================
    # REGISTRO
    # =========================================================================

    def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: str = 'client',
        distributor_info: Dict[str, Any] = None,
        user_id: str = None
    ) -> Dict[str, Any]:
        """
        Registra un usuario. Un distribuidor siempre nace sin aprobar.

        Returns:
            Dict con resultado {'ok': bool, 'user' o 'error'}
        """
        if not name or not name.strip():
            return {'ok': False, 'error': 'Por favor ingrese un nombre'}
        if not email or '@' not in email:
            return {'ok': False, 'error': 'Por favor ingrese un email válido'}
        if not password or len(password) < 6:
            return {'ok': False, 'error': 'La contraseña debe tener al menos 6 caracteres'}
        if self.user_repo.get_by_email(email):
            return {'ok': False, 'error': 'El email ya está registrado'}

        try:
            role_enum = UserRole.parse(role)
        except ValidationError as e:
            return {'ok': False, 'error': e.message}

        user = {
            '_id': user_id or uuid.uuid4().hex,
            'name': name.strip(),
            'email': email.strip().lower(),
            'password': generate_password_hash(password),
            'role': role_enum.value,
            'phone': '',
            'createdAt': datetime.now(timezone.utc).isoformat(),
        }

        if role_enum == UserRole.DISTRIBUTOR:
            info = distributor_info or {}
            if not info.get('companyName') or not info.get('companyRUT'):
                return {'ok': False, 'error': 'Los distribuidores requieren razón social y RUT'}
            user['distributorInfo'] = {
                'companyName': info['companyName'],
                'companyRUT': info['companyRUT'],
                'businessLicense': info.get('businessLicense'),
                'isApproved': False,
                'approvedAt': None,
                'approvedBy': None,
            }

        self.user_repo.append(user)
        return {'ok': True, 'user': self.user_repo.public_view(user)}

    # =========================================================================
    # ACTUALIZACIÓN (ADMIN)
    # =========================================================================

    def _apply_fields(self, user: Dict[str, Any], fields: Dict[str, Any]) -> List[str]:
        """
        Aplica claves simples o con punto sobre una copia del usuario.

        Returns:
            Lista de claves aplicadas
        """
        applied = []
        for key, value in fields.items():
            path = key.split('.')
            top = path[0]
            if top in self.PROTECTED_FIELDS:
                continue
            if top not in self.UPDATABLE_FIELDS:
                raise ValidationError(f'Campo no permitido: {key}')
            target = user
            for part in path[:-1]:
                if not isinstance(target.get(part), dict):
                    target[part] = {}
                target = target[part]
            if len(path) == 1 and isinstance(value, dict) and isinstance(target.get(top), dict):
                target[top] = {**target[top], **value}
            else:
                target[path[-1]] = value
            applied.append(key)
        return applied

    def _touches_approval(self, fields: Dict[str, Any]) -> bool:
        for key, value in fields.items():
            path = key.split('.')
            if path[0] != 'distributorInfo':
                continue
            if len(path) > 1 and path[1] in self.APPROVAL_FIELDS:
                return True
            if len(path) == 1 and isinstance(value, dict) and self.APPROVAL_FIELDS & set(value):
                return True
        return False

    def _normalize_approval(self, user: Dict[str, Any]) -> None:
        """
        Impone el invariante de aprobación sobre el usuario ya modificado.

        Raises:
            ValidationError: si se aprueba sin admin válido
        """
        info = user.get('distributorInfo')
        if not isinstance(info, dict):
            return

        if info.get('isApproved') is True:
            approved_by = info.get('approvedBy')
            if not approved_by:
                raise ValidationError('La aprobación requiere el id del admin que aprueba')
            admin = self.user_repo.get_by_id(approved_by)
            if not admin or admin.get('role') != UserRole.ADMIN.value:
                raise ValidationError('approvedBy debe referenciar a un administrador')
            approved_at = parse_datetime(info.get('approvedAt'))
            if approved_at is None:
                approved_at = datetime.now(timezone.utc)
            info['approvedAt'] = approved_at.isoformat()
        else:
            info['isApproved'] = False
            info['approvedAt'] = None
            info['approvedBy'] = None

    def update_user(
        self,
        user_id: str,
        fields: Dict[str, Any],
        admin_user: str = None
    ) -> Dict[str, Any]:
        """
        Actualiza un usuario con claves simples o con punto.

        La contraseña nunca se cambia por esta vía.

        Args:
            user_id: Usuario a modificar
            fields: Cambios, ej: {"distributorInfo.isApproved": True, ...}
            admin_user: Id del admin que hace el cambio (auditoría)

        Returns:
            Dict {'ok': bool, 'user' o 'error', 'status_code'}
        """
        current = self.user_repo.get_by_id(user_id)
        if not current:
            return {'ok': False, 'error': 'Usuario no encontrado', 'status_code': 404}
        if not isinstance(fields, dict):
            return {'ok': False, 'error': 'Cuerpo inválido', 'status_code': 400}

        user = copy.deepcopy(current)
        was_approved = (current.get('distributorInfo') or {}).get('isApproved') is True

        try:
            applied = self._apply_fields(user, fields)
            user['role'] = UserRole.parse(user.get('role', 'client')).value

            if self._touches_approval(fields) and user['role'] != UserRole.DISTRIBUTOR.value:
                raise ValidationError('Solo los distribuidores tienen aprobación')

            if user['role'] == UserRole.DISTRIBUTOR.value:
                user.setdefault('distributorInfo', {})
                self._normalize_approval(user)
        except ValidationError as e:
            return {'ok': False, 'error': e.message, 'status_code': 400}

        self.user_repo.replace(user)

        is_approved = (user.get('distributorInfo') or {}).get('isApproved') is True
        if self.audit_service and admin_user:
            if self._touches_approval(fields) and was_approved != is_approved:
                self.audit_service.log_distributor_approval(admin_user, user_id, is_approved)
            elif applied:
                self.audit_service.log_user_update(admin_user, user_id, applied)

        return {'ok': True, 'user': self.user_repo.public_view(user)}

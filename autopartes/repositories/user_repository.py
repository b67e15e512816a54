# ==============================================================================
# REPOSITORIO DE USUARIOS
# ==============================================================================
# Encapsula todo el acceso a users.json
# La contraseña se guarda hasheada en el campo "password" y nunca sale de
# esta capa: public_view() la elimina.
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from .base import ListRepository


class UserRepository(ListRepository):
    """
    Repositorio de usuarios.

    Formato de datos en users.json:
    [
        {"_id": "U1", "name": "...", "email": "...", "password": "scrypt:...",
         "role": "distributor", "distributorInfo": {...}}
    ]
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'users.json'))

    @staticmethod
    def public_view(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Copia del usuario sin el hash de contraseña."""
        if user is None:
            return None
        return {k: v for k, v in user.items() if k != 'password'}

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        email = (email or '').strip().lower()
        for user in self.get_all():
            if (user.get('email') or '').lower() == email:
                return user
        return None

    def list_public(self) -> List[Dict[str, Any]]:
        return [self.public_view(u) for u in self.get_all()]

    def count_by_role(self, role: str) -> int:
        return sum(1 for u in self.get_all() if u.get('role') == role)

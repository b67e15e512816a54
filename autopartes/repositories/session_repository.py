# ==============================================================================
# REPOSITORIO DE SESIÓN LOCAL
# ==============================================================================
# Almacén local del token bearer y la identidad de la sesión actual
# (equivalente al localStorage de la consola web).
# ==============================================================================

import os
from typing import Optional

from autopartes.models import Session
from .base import DictRepository


class SessionRepository(DictRepository):
    """
    Formato de datos en session.json:
    {"userId": "A1", "role": "admin", "token": "..."}
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'session.json'))

    def get_token(self) -> Optional[str]:
        return self.get_all().get('token')

    def load_session(self) -> Optional[Session]:
        """Sesión guardada, o None si no hay token."""
        data = self.get_all()
        if not data.get('token'):
            return None
        return Session.from_dict(data)

    def save_session(self, session: Session) -> None:
        self.save_all(session.to_dict())

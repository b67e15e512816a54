# ==============================================================================
# REPOSITORIO BASE - Funcionalidad común para acceso a archivos JSON
# ==============================================================================

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """
    Clase base abstracta para todos los repositorios JSON.

    Lectura/escritura de un archivo con escritura atómica (archivo temporal +
    os.replace) y un lock global contra escrituras concurrentes.
    """

    # Lock global para evitar escrituras concurrentes a archivos
    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        """
        Args:
            file_path: Ruta absoluta al archivo JSON de datos
        """
        self.file_path = file_path
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Crea el archivo con datos vacíos si no existe."""
        if not os.path.exists(self.file_path):
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """Estructura vacía (dict, list, etc.) según el repositorio."""

    def _read_raw(self) -> Any:
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except FileNotFoundError:
                return self._empty_data()
            except json.JSONDecodeError:
                logger.warning('[ADVERTENCIA] %s corrupto, iniciando vacío', self.file_path)
                return self._empty_data()

    def _write_raw(self, data: Any) -> None:
        with self._file_lock:
            # Escribir a archivo temporal primero para atomicidad
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise


class DictRepository(BaseRepository):
    """
    Repositorio para datos almacenados como diccionario.

    Ejemplo: session.json -> {"token": "...", "userId": "..."}
    """

    def _empty_data(self) -> Dict:
        return {}

    def get_all(self) -> Dict[str, Any]:
        data = self._read_raw()
        return data if isinstance(data, dict) else {}

    def save_all(self, data: Dict[str, Any]) -> None:
        self._write_raw(data)

    def clear(self) -> None:
        self._write_raw({})


class ListRepository(BaseRepository):
    """
    Repositorio para colecciones de documentos identificados por "_id".

    Ejemplo: orders.json -> [{"_id": "ORD1", ...}, {...}]
    """

    id_field = '_id'

    def _empty_data(self) -> List:
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        data = self._read_raw()
        return data if isinstance(data, list) else []

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        self._write_raw(data)

    def append(self, record: Dict[str, Any]) -> None:
        with self._file_lock:
            data = self.get_all()
            data.append(record)
            self._write_raw(data)

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        """
        Obtiene un documento por su id.

        Returns:
            Documento o None si no existe
        """
        return self.find_by(self.id_field, record_id)

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        for record in self.get_all():
            if record.get(field) == value:
                return record
        return None

    def filter(self, predicate: Callable[[Dict[str, Any]], bool]) -> List[Dict[str, Any]]:
        return [r for r in self.get_all() if predicate(r)]

    def replace(self, record: Dict[str, Any]) -> bool:
        """
        Reemplaza el documento con el mismo id.

        Returns:
            True si existía y se reemplazó
        """
        with self._file_lock:
            data = self.get_all()
            for index, current in enumerate(data):
                if current.get(self.id_field) == record.get(self.id_field):
                    data[index] = record
                    self._write_raw(data)
                    return True
            return False

    def delete(self, record_id: str) -> Optional[Dict[str, Any]]:
        """
        Elimina un documento.

        Returns:
            Documento eliminado o None si no existía
        """
        with self._file_lock:
            data = self.get_all()
            for index, current in enumerate(data):
                if current.get(self.id_field) == record_id:
                    removed = data.pop(index)
                    self._write_raw(data)
                    return removed
            return None

# ==============================================================================
# PAGINACIÓN DE LISTADOS
# ==============================================================================
# Las tablas de la consola (órdenes y usuarios) muestran 10 filas por página.
# ==============================================================================

import math
from dataclasses import dataclass
from typing import Generic, List, Sequence, TypeVar

T = TypeVar('T')

PER_PAGE = 10


@dataclass
class Page(Generic[T]):
    """
    Una página de resultados.

    Attributes:
        items: Filas de la página
        page: Número de página (desde 1)
        per_page: Filas por página
        total_pages: Total de páginas (mínimo 1)
        total_items: Total de filas antes de paginar
    """
    items: List[T]
    page: int
    per_page: int
    total_pages: int
    total_items: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def first_index(self) -> int:
        """Posición (desde 1) de la primera fila mostrada; 0 sin filas."""
        if not self.items:
            return 0
        return (self.page - 1) * self.per_page + 1

    @property
    def last_index(self) -> int:
        return min(self.page * self.per_page, self.total_items)


def paginate(items: Sequence[T], page: int = 1, per_page: int = PER_PAGE) -> Page[T]:
    """
    Corta una lista en páginas. Una página fuera de rango se ajusta al borde.

    Args:
        items: Lista ya filtrada
        page: Página pedida (desde 1)
        per_page: Filas por página
    """
    if per_page < 1:
        raise ValueError('per_page debe ser positivo')
    total_pages = max(1, math.ceil(len(items) / per_page))
    page = min(max(1, page), total_pages)
    start = (page - 1) * per_page
    return Page(
        items=list(items[start:start + per_page]),
        page=page,
        per_page=per_page,
        total_pages=total_pages,
        total_items=len(items),
    )

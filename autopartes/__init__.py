# ==============================================================================
# AUTOPARTES - Consola de administración de la tienda de repuestos
# ==============================================================================
# Flujos de estado de órdenes y aprobación de distribuidores, más el backend
# REST que los respalda.
#
# ESTRUCTURA:
# ├── models/        → Entidades del dominio (dataclasses + enums)
# ├── repositories/  → Persistencia JSON y cachés locales
# ├── services/      → Reglas de negocio del backend
# ├── workflows/     → Flujos del lado cliente (consola admin)
# ├── server/        → API REST (Flask)
# └── api_client.py  → Gateway HTTP hacia la API
# ==============================================================================

__version__ = '1.0.0'

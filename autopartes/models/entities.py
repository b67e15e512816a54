# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# El formato de intercambio con la API es camelCase con "_id" como
# identificador; from_dict/to_dict traducen entre ambos mundos.
# ==============================================================================

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from autopartes.errors import ValidationError


# ==============================================================================
# UTILIDADES DE FECHAS
# ==============================================================================

def utc_now() -> datetime:
    """Fecha y hora actual en UTC (con zona horaria)."""
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Convierte un valor ISO-8601 a datetime.

    Acepta el sufijo "Z" de JavaScript. Fechas sin zona se asumen UTC.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f'Fecha inválida: {value!r}')
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """Serializa un datetime a ISO-8601 (None se mantiene)."""
    if value is None:
        return None
    return value.isoformat()


def _ref_id(value: Any) -> Optional[str]:
    """Obtiene el id de una referencia que puede venir poblada ({_id, ...})."""
    if value is None:
        return None
    if isinstance(value, dict):
        ref = value.get('_id') or value.get('id')
        return str(ref) if ref is not None else None
    return str(value)


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class _ParseableEnum(str, Enum):
    """Enum de strings que rechaza valores desconocidos con ValidationError."""

    @classmethod
    def parse(cls, value: Any):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except (ValueError, AttributeError):
            valid = ', '.join(m.value for m in cls)
            raise ValidationError(f'Valor inválido para {cls.__name__}: {value!r} (válidos: {valid})')


class OrderStatus(_ParseableEnum):
    """Estados posibles de una orden."""
    PENDING = 'pending'                    # Estado inicial al crear la orden
    PROCESSING = 'processing'
    SHIPPED = 'shipped'
    READY_FOR_PICKUP = 'ready_for_pickup'
    DELIVERED = 'delivered'                # Terminal
    CANCELLED = 'cancelled'                # Terminal

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class UserRole(_ParseableEnum):
    """Roles de usuario disponibles en el sistema."""
    CLIENT = 'client'            # Comprador B2C
    DISTRIBUTOR = 'distributor'  # Mayorista B2B, requiere aprobación
    ADMIN = 'admin'


class ApprovalState(_ParseableEnum):
    """Estado de aprobación de una cuenta de distribuidor."""
    PENDING = 'pending'
    APPROVED = 'approved'


class ShipmentMethod(_ParseableEnum):
    """Métodos de entrega de una orden."""
    DELIVERY = 'delivery'  # Despacho a domicilio
    PICKUP = 'pickup'      # Retiro en tienda


# ==============================================================================
# SESIÓN
# ==============================================================================

@dataclass(frozen=True)
class Session:
    """
    Sesión actual de la consola.

    Se inyecta explícitamente en los flujos en vez de leerse de un estado
    global, así la identidad del admin que actúa siempre es verificable.

    Attributes:
        user_id: Id del usuario autenticado
        role: Rol del usuario autenticado
        token: Token bearer para la API
    """
    user_id: Optional[str]
    role: UserRole
    token: Optional[str] = None

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {
            'userId': self.user_id,
            'role': self.role.value,
            'token': self.token,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Session':
        return cls(
            user_id=data.get('userId'),
            role=UserRole.parse(data.get('role', 'client')),
            token=data.get('token'),
        )


# ==============================================================================
# ENTIDADES DE USUARIO
# ==============================================================================

@dataclass
class DistributorInfo:
    """
    Datos de empresa y bandera de aprobación de un distribuidor.

    Attributes:
        company_name: Razón social
        company_rut: RUT de la empresa
        business_license: Patente comercial (opcional)
        is_approved: Bandera de aprobación (por defecto False)
        approved_at: Fecha de aprobación
        approved_by: Id del admin que aprobó
    """
    company_name: str = ''
    company_rut: str = ''
    business_license: Optional[str] = None
    is_approved: bool = False
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None

    @property
    def approval_state(self) -> ApprovalState:
        return ApprovalState.APPROVED if self.is_approved else ApprovalState.PENDING

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'companyName': self.company_name,
            'companyRUT': self.company_rut,
            'isApproved': self.is_approved,
            'approvedAt': format_datetime(self.approved_at),
            'approvedBy': self.approved_by,
        }
        if self.business_license is not None:
            d['businessLicense'] = self.business_license
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DistributorInfo':
        """Crea instancia desde diccionario. isApproved ausente equivale a False."""
        return cls(
            company_name=data.get('companyName', ''),
            company_rut=data.get('companyRUT', ''),
            business_license=data.get('businessLicense'),
            is_approved=data.get('isApproved') is True,
            approved_at=parse_datetime(data.get('approvedAt')),
            approved_by=_ref_id(data.get('approvedBy')),
        )


@dataclass
class User:
    """
    Usuario del sistema (cliente, distribuidor o admin).

    Attributes:
        id: Identificador opaco
        name: Nombre
        email: Correo
        role: Rol, fijado al registrarse (solo un admin lo cambia)
        distributor_info: Presente solo para distribuidores
        phone: Teléfono de contacto
        created_at: Fecha de registro
    """
    id: str
    name: str = ''
    email: str = ''
    role: UserRole = UserRole.CLIENT
    distributor_info: Optional[DistributorInfo] = None
    phone: str = ''
    created_at: Optional[datetime] = None

    def is_distributor(self) -> bool:
        return self.role == UserRole.DISTRIBUTOR

    def is_approved_distributor(self) -> bool:
        return (
            self.is_distributor()
            and self.distributor_info is not None
            and self.distributor_info.is_approved is True
        )

    def can_access_wholesale_prices(self) -> bool:
        """Solo un distribuidor aprobado ve precios mayoristas."""
        return self.is_approved_distributor()

    def cart_type(self) -> str:
        """Tipo de carrito automático: B2B para distribuidores, B2C para el resto."""
        return 'B2B' if self.is_distributor() else 'B2C'

    def to_dict(self) -> Dict[str, Any]:
        d = {
            '_id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role.value,
            'phone': self.phone,
            'createdAt': format_datetime(self.created_at),
        }
        if self.distributor_info is not None:
            d['distributorInfo'] = self.distributor_info.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        info = data.get('distributorInfo')
        return cls(
            id=str(data.get('_id', '')),
            name=data.get('name', ''),
            email=data.get('email', ''),
            role=UserRole.parse(data.get('role', 'client')),
            distributor_info=DistributorInfo.from_dict(info) if isinstance(info, dict) else None,
            phone=data.get('phone') or '',
            created_at=parse_datetime(data.get('createdAt')),
        )


# ==============================================================================
# ENTIDADES DE ÓRDENES
# ==============================================================================

@dataclass
class OrderItem:
    """
    Línea de una orden.

    Attributes:
        product: Id del producto
        quantity: Cantidad (entero positivo)
        price: Precio unitario (no negativo)
        distributor: Id del distribuidor dueño del producto
        product_name: Nombre del producto si la API lo pobló
    """
    product: str
    quantity: int
    price: float
    distributor: Optional[str] = None
    product_name: str = ''

    def __post_init__(self):
        if self.quantity < 1:
            raise ValidationError('La cantidad mínima es 1')
        if self.price < 0:
            raise ValidationError('El precio no puede ser negativo')

    @property
    def line_total(self) -> float:
        return round(self.quantity * self.price, 2)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'product': self.product,
            'quantity': self.quantity,
            'price': self.price,
            'distributor': self.distributor,
        }
        if self.product_name:
            d['product'] = {'_id': self.product, 'name': self.product_name}
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrderItem':
        product = data.get('product')
        name = product.get('name', '') if isinstance(product, dict) else ''
        return cls(
            product=_ref_id(product) or '',
            quantity=int(data.get('quantity', 0)),
            price=float(data.get('price', 0.0)),
            distributor=_ref_id(data.get('distributor')),
            product_name=name,
        )


@dataclass
class Order:
    """
    Orden de compra.

    Creada en el checkout con estado "pending"; solo la modifica un admin
    (cambio de estado) o el backend (pagos/entregas). Nunca se elimina.

    Attributes:
        id: Identificador opaco
        user: Id del comprador
        status: Estado actual
        items: Líneas de la orden
        items_price/tax_price/shipping_price/total_price: Montos
        is_paid/paid_at: Pago
        is_delivered/delivered_at: Entrega
        shipment_method: Despacho o retiro en tienda
        order_type: B2C o B2B
        user_name/user_email: Datos del comprador si la API los pobló
    """
    id: str
    user: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    items: List[OrderItem] = field(default_factory=list)
    items_price: float = 0.0
    tax_price: float = 0.0
    shipping_price: float = 0.0
    total_price: float = 0.0
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    is_delivered: bool = False
    delivered_at: Optional[datetime] = None
    shipment_method: ShipmentMethod = ShipmentMethod.DELIVERY
    order_type: str = 'B2C'
    created_at: Optional[datetime] = None
    user_name: str = ''
    user_email: str = ''

    def with_status(self, status: OrderStatus) -> 'Order':
        """Copia de la orden con solo el estado cambiado."""
        return replace(self, status=OrderStatus.parse(status))

    def total_matches(self) -> bool:
        """
        Verifica total = items + impuesto + envío.
        El cliente no lo impone, el backend es responsable.
        """
        expected = round(self.items_price + self.tax_price + self.shipping_price, 2)
        return abs(expected - round(self.total_price, 2)) < 0.005

    def has_items_from(self, distributor_id: str) -> bool:
        return any(item.distributor == distributor_id for item in self.items)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario en formato de la API."""
        user: Any = self.user
        if self.user_name or self.user_email:
            user = {'_id': self.user, 'name': self.user_name, 'email': self.user_email}
        return {
            '_id': self.id,
            'user': user,
            'status': self.status.value,
            'items': [item.to_dict() for item in self.items],
            'itemsPrice': self.items_price,
            'taxPrice': self.tax_price,
            'shippingPrice': self.shipping_price,
            'totalPrice': self.total_price,
            'isPaid': self.is_paid,
            'paidAt': format_datetime(self.paid_at),
            'isDelivered': self.is_delivered,
            'deliveredAt': format_datetime(self.delivered_at),
            'shipmentMethod': self.shipment_method.value,
            'orderType': self.order_type,
            'createdAt': format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Order':
        """Crea instancia desde diccionario (respuesta de la API)."""
        user = data.get('user')
        user_name = user_email = ''
        if isinstance(user, dict):
            user_name = user.get('name', '')
            user_email = user.get('email', '')
        return cls(
            id=str(data.get('_id', '')),
            user=_ref_id(user),
            status=OrderStatus.parse(data.get('status', 'pending')),
            items=[OrderItem.from_dict(i) for i in data.get('items', [])],
            items_price=float(data.get('itemsPrice', 0.0) or 0.0),
            tax_price=float(data.get('taxPrice', 0.0) or 0.0),
            shipping_price=float(data.get('shippingPrice', 0.0) or 0.0),
            total_price=float(data.get('totalPrice', 0.0) or 0.0),
            is_paid=bool(data.get('isPaid', False)),
            paid_at=parse_datetime(data.get('paidAt')),
            is_delivered=bool(data.get('isDelivered', False)),
            delivered_at=parse_datetime(data.get('deliveredAt')),
            shipment_method=ShipmentMethod.parse(data.get('shipmentMethod') or 'delivery'),
            order_type=data.get('orderType', 'B2C'),
            created_at=parse_datetime(data.get('createdAt')),
            user_name=user_name,
            user_email=user_email,
        )

"""
Domain models for the case-intake wizard, companies, billing and settings.

These mirror the JSON documents exchanged with the eFile Legal backend. Wire
payloads use camelCase keys; the dataclasses use snake_case and provide
``from_api``/``to_api`` helpers at the boundary.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any


def now_utc() -> datetime:
    """Timezone-aware UTC now for default timestamps (avoid datetime.utcnow deprecation)."""
    return datetime.now(timezone.utc)


def parse_api_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as sent by the backend (``Z`` suffix allowed)."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        text = str(value).replace('Z', '+00:00')
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class UserRole(Enum):
    """Roles known to the backend."""
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    ATTORNEY = "attorney"
    PARALEGAL = "paralegal"
    CLIENT = "client"


class FoiaStatus(Enum):
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    SUBMITTED = "submitted"
    RECEIVED = "received"


class DocumentStatus(Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"


class FormStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class CompanyStatus(Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING = "Pending"


class CompanyType(Enum):
    LAW_FIRM = "Law Firm"
    IMMIGRATION_SERVICE = "Immigration Service"
    OTHER = "Other"


class SubscriptionStatus(Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class BillingCycle(Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RoleType(Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ATTORNEY = "ATTORNEY"
    PARALEGAL = "PARALEGAL"
    CLIENT = "CLIENT"


class PermissionModule(Enum):
    CASES = "CASES"
    DOCUMENTS = "DOCUMENTS"
    USERS = "USERS"
    SETTINGS = "SETTINGS"
    REPORTS = "REPORTS"
    BILLING = "BILLING"
    CALENDAR = "CALENDAR"
    COMMUNICATIONS = "COMMUNICATIONS"
    ANALYTICS = "ANALYTICS"


class PermissionAction(Enum):
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ASSIGN = "ASSIGN"
    SHARE = "SHARE"
    EXPORT = "EXPORT"


@dataclass
class SessionUser:
    """Authenticated user as returned by the backend login call.

    Lives in the Flask session; the bearer token travels with it so every
    request can build its own API client.
    """
    id: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    role: str = UserRole.CLIENT.value
    token: Optional[str] = None

    # Flask-Login compatibility
    is_authenticated = True
    is_active = True
    is_anonymous = False

    def get_id(self) -> str:
        return self.id

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.email

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_attorney(self) -> bool:
        return self.role == UserRole.ATTORNEY.value

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'SessionUser':
        return cls(
            id=str(payload.get('_id') or payload.get('id') or ''),
            email=payload.get('email') or '',
            first_name=payload.get('firstName') or '',
            last_name=payload.get('lastName') or '',
            role=(payload.get('role') or UserRole.CLIENT.value).lower(),
            token=payload.get('token'),
        )

    def to_session(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'role': self.role,
            'token': self.token,
        }


@dataclass
class ImmigrationForm:
    """A USCIS form offered for selection in the wizard."""
    id: str
    name: str
    description: str = ""
    category: str = ""
    is_required: bool = False
    form_number: str = ""
    filing_fee: Optional[float] = None
    processing_time: str = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any], category_name: str = "") -> 'ImmigrationForm':
        fee = payload.get('filingFee')
        try:
            fee = float(fee) if fee not in (None, '') else None
        except (TypeError, ValueError):
            fee = None
        return cls(
            id=str(payload.get('_id') or payload.get('id') or ''),
            name=payload.get('name') or payload.get('formName') or '',
            description=payload.get('description') or '',
            category=category_name or payload.get('category') or '',
            is_required=bool(payload.get('isRequired', False)),
            form_number=payload.get('formNumber') or '',
            filing_fee=fee,
            processing_time=payload.get('processingTime') or '',
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'is_required': self.is_required,
            'form_number': self.form_number,
            'filing_fee': self.filing_fee,
            'processing_time': self.processing_time,
        }


@dataclass
class Address:
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    @classmethod
    def from_api(cls, payload: Optional[Dict[str, Any]]) -> 'Address':
        payload = payload or {}
        return cls(
            street=payload.get('street') or '',
            city=payload.get('city') or '',
            state=payload.get('state') or '',
            zip_code=payload.get('zipCode') or '',
            country=payload.get('country') or '',
        )

    def to_api(self) -> Dict[str, str]:
        return {
            'street': self.street,
            'city': self.city,
            'state': self.state,
            'zipCode': self.zip_code,
            'country': self.country,
        }


@dataclass
class Client:
    id: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    date_of_birth: str = ""
    nationality: str = ""
    address: Address = field(default_factory=Address)

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Client':
        first = payload.get('firstName') or ''
        last = payload.get('lastName') or ''
        if not (first or last) and payload.get('name'):
            first, _, last = str(payload['name']).partition(' ')
        return cls(
            id=str(payload.get('_id') or payload.get('id') or ''),
            first_name=first,
            last_name=last,
            email=payload.get('email') or '',
            phone=payload.get('phone') or '',
            date_of_birth=payload.get('dateOfBirth') or '',
            nationality=payload.get('nationality') or '',
            address=Address.from_api(payload.get('address')),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            'firstName': self.first_name,
            'lastName': self.last_name,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'dateOfBirth': self.date_of_birth,
            'nationality': self.nationality,
            'address': self.address.to_api(),
        }


@dataclass
class Company:
    """A law firm or immigration service tenant."""
    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    address: Address = field(default_factory=Address)
    website: str = ""
    status: str = CompanyStatus.PENDING.value
    type: str = CompanyType.OTHER.value
    license_number: str = ""
    tax_id: str = ""
    user_count: int = 0
    user_limit: int = 0
    attorneys: List[Dict[str, Any]] = field(default_factory=list)
    paralegals: List[Dict[str, Any]] = field(default_factory=list)
    clients: List[Dict[str, Any]] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Company':
        users = payload.get('users') or {}
        return cls(
            id=str(payload.get('_id') or payload.get('id') or ''),
            name=payload.get('name') or '',
            email=payload.get('email') or '',
            phone=payload.get('phone') or '',
            address=Address.from_api(payload.get('address')),
            website=payload.get('website') or '',
            status=payload.get('status') or CompanyStatus.PENDING.value,
            type=payload.get('type') or CompanyType.OTHER.value,
            license_number=payload.get('licenseNumber') or '',
            tax_id=payload.get('taxId') or '',
            user_count=int(payload.get('userCount') or 0),
            user_limit=int(payload.get('userLimit') or 0),
            attorneys=list(users.get('attorneys') or []),
            paralegals=list(users.get('paralegals') or []),
            clients=list(users.get('clients') or []),
            created_at=parse_api_datetime(payload.get('createdAt')),
            updated_at=parse_api_datetime(payload.get('updatedAt')),
        )


@dataclass
class SubscriptionPlan:
    id: str
    name: str = ""
    display_name: str = ""
    description: str = ""
    monthly_price: float = 0.0
    yearly_price: float = 0.0
    features: List[str] = field(default_factory=list)
    limits: Dict[str, Any] = field(default_factory=dict)
    is_active: bool = True

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'SubscriptionPlan':
        price = payload.get('price') or {}
        return cls(
            id=str(payload.get('_id') or payload.get('id') or ''),
            name=payload.get('name') or '',
            display_name=payload.get('displayName') or (payload.get('name') or '').title(),
            description=payload.get('description') or '',
            monthly_price=float(price.get('monthly') or 0),
            yearly_price=float(price.get('yearly') or 0),
            features=list(payload.get('features') or []),
            limits=dict(payload.get('limits') or {}),
            is_active=bool(payload.get('isActive', True)),
        )


@dataclass
class Subscription:
    company_id: str
    plan_id: str = ""
    plan_name: str = ""
    status: str = SubscriptionStatus.ACTIVE.value
    billing_cycle: str = BillingCycle.MONTHLY.value
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    auto_renew: bool = False
    payment_method: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE.value

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Subscription':
        plan = payload.get('planId')
        plan_name = ''
        if isinstance(plan, dict):
            plan_name = plan.get('displayName') or plan.get('name') or ''
            plan = plan.get('_id') or plan.get('id') or ''
        return cls(
            company_id=str(payload.get('companyId') or ''),
            plan_id=str(plan or ''),
            plan_name=plan_name,
            status=payload.get('status') or SubscriptionStatus.ACTIVE.value,
            billing_cycle=payload.get('billingCycle') or BillingCycle.MONTHLY.value,
            start_date=parse_api_datetime(payload.get('startDate')),
            end_date=parse_api_datetime(payload.get('endDate')),
            auto_renew=bool(payload.get('autoRenew', False)),
            payment_method=dict(payload.get('paymentMethod') or {}),
        )


@dataclass
class Permission:
    module: str
    actions: List[str] = field(default_factory=list)

    def to_api(self) -> Dict[str, Any]:
        return {'module': self.module, 'actions': list(self.actions)}


@dataclass
class Role:
    id: str
    name: str = ""
    type: str = RoleType.CLIENT.value
    description: str = ""
    permissions: List[Permission] = field(default_factory=list)
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def can(self, module: str, action: str) -> bool:
        return any(p.module == module and action in p.actions for p in self.permissions)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Role':
        permissions = [
            Permission(module=p.get('module') or '', actions=list(p.get('actions') or []))
            for p in payload.get('permissions') or []
            if isinstance(p, dict)
        ]
        return cls(
            id=str(payload.get('_id') or payload.get('id') or ''),
            name=payload.get('name') or '',
            type=payload.get('type') or RoleType.CLIENT.value,
            description=payload.get('description') or '',
            permissions=permissions,
            is_default=bool(payload.get('isDefault', False)),
            created_at=parse_api_datetime(payload.get('createdAt')),
            updated_at=parse_api_datetime(payload.get('updatedAt')),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.type,
            'description': self.description,
            'permissions': [p.to_api() for p in self.permissions],
            'isDefault': self.is_default,
        }

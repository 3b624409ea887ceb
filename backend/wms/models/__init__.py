from .identity import User
from .tenancy import (
    Warehouse,
    Membership,
    Invitation,
    INVITATION_PENDING,
    INVITATION_ACCEPTED,
    INVITATION_DECLINED,
    INVITATION_STATUSES,
)
from .inventory import (
    Store,
    Product,
    STORE_TYPES,
    ALERT_THRESHOLD_FIELDS,
    DEFAULT_ALERT_THRESHOLDS,
)

__all__ = [
    'User',
    'Warehouse', 'Membership', 'Invitation',
    'INVITATION_PENDING', 'INVITATION_ACCEPTED', 'INVITATION_DECLINED', 'INVITATION_STATUSES',
    'Store', 'Product',
    'STORE_TYPES', 'ALERT_THRESHOLD_FIELDS', 'DEFAULT_ALERT_THRESHOLDS',
]

from .auth import User, SessionToken
from .security import SecurityEvent
from .customers import Customer, CUSTOMER_STATUSES
from .team import TeamMember
from .medications import Medication, MEDICATION_FORMS
from .packs import PackCheck, PackCheckItem, ScanOut, PACK_TYPES, PACK_CHECK_STATUSES, SCAN_OUT_STATUSES

__all__ = [
    'User', 'SessionToken', 'SecurityEvent',
    'Customer', 'TeamMember', 'Medication',
    'PackCheck', 'PackCheckItem', 'ScanOut',
    'CUSTOMER_STATUSES', 'MEDICATION_FORMS',
    'PACK_TYPES', 'PACK_CHECK_STATUSES', 'SCAN_OUT_STATUSES',
]

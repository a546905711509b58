from .user import User, UserRole, OVERSEER_ROLE
from .document import Document, DocumentStatus, DocumentPriority, ACTIVE_STATUSES
from .approval import ApprovalStep, ApprovalStatus
from .signature import DocumentSignature, SignerSnapshot

__all__ = [
    'User', 'UserRole', 'OVERSEER_ROLE',
    'Document', 'DocumentStatus', 'DocumentPriority', 'ACTIVE_STATUSES',
    'ApprovalStep', 'ApprovalStatus',
    'DocumentSignature', 'SignerSnapshot',
]

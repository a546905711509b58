from .document_service import DocumentService
from .signature_service import SignatureService

__all__ = ['DocumentService', 'SignatureService']

from .document_schemas import SubmitDocumentRequest, DocumentResponse, SignatureResponse, SignatureListResponse

__all__ = ['SubmitDocumentRequest', 'DocumentResponse', 'SignatureResponse', 'SignatureListResponse']

import base64
import binascii
import hashlib
import logging
import re
import secrets
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from modules.approvals.exceptions import InvalidSignatureFormat, PersistenceFailure, SignerNotFound
from modules.documents.models.document import Document
from modules.documents.models.signature import DocumentSignature, SignerSnapshot
from modules.documents.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(
    r"^data:image/(?P<fmt>png|jpeg|jpg|gif|webp|svg\+xml);base64,(?P<payload>[A-Za-z0-9+/=\s]+)$"
)
SALT_BYTES = 16


def validate_signature_image(image: Optional[str]) -> None:
    """Accept None or a base64 ``data:image/...`` URI, raise otherwise."""
    if image is None:
        return
    match = DATA_URI_PATTERN.match(image) if isinstance(image, str) else None
    if not match:
        raise InvalidSignatureFormat()
    try:
        decoded = base64.b64decode("".join(match.group("payload").split()), validate=True)
    except (binascii.Error, ValueError):
        raise InvalidSignatureFormat()
    if not decoded:
        raise InvalidSignatureFormat()


def compute_signature_hash(document_id: int, signer_id: int, signed_at: datetime, salt: str) -> str:
    millis = int(signed_at.timestamp() * 1000)
    data = f"{document_id}-{signer_id}-{millis}-{salt}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class SignatureService:
    """Creates the signature record for an approved step.

    Works inside the caller's transaction and never commits: if anything
    raises, the caller's rollback removes the signature together with the
    step update that triggered it.
    """

    def __init__(self, session: Session):
        self.session = session
        self.users = UserRepository(session)

    def sign(
        self,
        document_id: int,
        signer_id: int,
        approval_level: int,
        signature_image: Optional[str] = None,
    ) -> DocumentSignature:
        signer = self.users.get(signer_id)
        if signer is None:
            raise SignerNotFound(f"Approver not found for user_id: {signer_id}")

        validate_signature_image(signature_image)

        document = self.session.get(Document, document_id)
        if document is None:
            raise PersistenceFailure(f"Document {document_id} vanished while signing")

        signed_at = datetime.utcnow()
        signature_hash = compute_signature_hash(document_id, signer_id, signed_at, secrets.token_hex(SALT_BYTES))

        signature = DocumentSignature(
            document_id=document_id,
            signer_id=signer_id,
            approval_level=approval_level,
            signer=SignerSnapshot(
                name=signer.full_name,
                role=signer.role.value,
                department=signer.department,
                subject=signer.subject,
            ),
            signature_hash=signature_hash,
            signature_image=signature_image,
            signed_at=signed_at,
        )
        self.session.add(signature)

        stamp = signed_at.strftime("%Y-%m-%d %H:%M:%S")
        document.append_remark(
            f"[SIGNED by {signer.full_name} ({signer.role.value}) on {stamp} | Hash: {signature_hash[:16]}...]"
        )
        self.session.flush()

        logger.info(
            "Signature %s... created for document %s level %s by %s (image: %s)",
            signature_hash[:16], document_id, approval_level, signer.full_name, bool(signature_image),
        )
        return signature

    def list_for_document(self, document_id: int) -> List[DocumentSignature]:
        return (
            self.session
            .query(DocumentSignature)
            .filter(DocumentSignature.document_id == document_id)
            .order_by(DocumentSignature.approval_level)
            .all()
        )

# create_tables.py
import logging

from database import engine, Base
# Import every model so it registers with Base
from modules.documents.models import User, Document, ApprovalStep, DocumentSignature
from modules.notifications.models.notification import Notification
from modules.audit.models.audit_log import AuditLog

logger = logging.getLogger(__name__)

def create_tables(bind=None):
    """Create every table that does not exist yet"""
    logger.info("Tables to create: %s", list(Base.metadata.tables.keys()))
    Base.metadata.create_all(bind=bind or engine)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_tables()

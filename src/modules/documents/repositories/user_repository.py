from typing import Optional
from sqlalchemy.orm import Session

from modules.documents.models.user import User, UserRole, OVERSEER_ROLE

class UserRepository:
    def __init__(self, db_session: Session):
        self.db = db_session

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def find_overseer(self) -> Optional[User]:
        """The active principal, if any."""
        return (
            self.db
            .query(User)
            .filter(User.role == OVERSEER_ROLE, User.is_active.is_(True))
            .order_by(User.id)
            .first()
        )

    def find_head_teacher(self, department: Optional[str]) -> Optional[User]:
        if not department:
            return None
        return (
            self.db
            .query(User)
            .filter(
                User.role == UserRole.HEAD_TEACHER,
                User.department == department,
                User.is_active.is_(True),
            )
            .order_by(User.id)
            .first()
        )

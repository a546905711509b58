from modules.documents.models.user import UserRole

ROLE_PERMISSIONS = {
    UserRole.TEACHER: ["submit"],
    UserRole.STAFF: ["submit"],
    UserRole.HEAD_TEACHER: ["submit", "review"],
    UserRole.PRINCIPAL: ["submit", "review"],
    UserRole.ADMIN: ["manage", "audit"],
}

def can_perform_action(user_role: UserRole, action: str) -> bool:
    return action in ROLE_PERMISSIONS.get(user_role, [])

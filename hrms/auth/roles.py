# hrms/auth/roles.py
from hrms.models.shared.enums import UserRole

ADMIN_ROLES = (UserRole.SUPER_ADMIN, UserRole.HR_ADMIN)
APPROVER_ROLES = (UserRole.SUPER_ADMIN, UserRole.HR_ADMIN, UserRole.MANAGER)

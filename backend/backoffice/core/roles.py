# backend/backoffice/core/roles.py

import enum


class Role(str, enum.Enum):
    SUPER_ADMIN = "super_admin"  # global override, never a team role
    OWNER = "owner"              # team creator / ultimate team authority
    ADMIN = "admin"              # runs the team, no delete / billing
    MEMBER = "member"            # day-to-day work on subaccounts
    VIEWER = "viewer"            # read-only


# Team memberships may only carry these; super_admin lives on the user profile.
TEAM_ROLES = frozenset({Role.OWNER, Role.ADMIN, Role.MEMBER, Role.VIEWER})

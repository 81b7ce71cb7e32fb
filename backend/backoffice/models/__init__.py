# Import models here so Base.metadata sees every table.
from backoffice.models.user import User  # noqa: F401
from backoffice.models.team import Team  # noqa: F401
from backoffice.models.team_member import TeamMember  # noqa: F401

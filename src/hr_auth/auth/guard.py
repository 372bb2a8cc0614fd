from __future__ import annotations

from enum import Enum
from typing import Iterable

from hr_auth.auth.models import Principal, Role


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


def authorize(
    principal: Principal | None,
    required_roles: Iterable[Role] = (),
    resource_company_id: int | None = None,
) -> Decision:
    """
    Role and tenant gate for a single request.

    An empty role set admits any authenticated principal. When the request
    touches tenant data, resource_company_id must be passed and must match
    the principal's company exactly.
    """
    if principal is None:
        return Decision.DENY

    roles = frozenset(required_roles)
    if roles and principal.role not in roles:
        return Decision.DENY

    if resource_company_id is not None and resource_company_id != principal.company_id:
        return Decision.DENY

    return Decision.ALLOW

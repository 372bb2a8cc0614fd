from __future__ import annotations

import pytest

from hr_auth.auth.guard import Decision, authorize
from hr_auth.auth.models import Principal, Role

ADMIN = Principal(user_id="u-1", email="a@x.com", role=Role.ADMIN, company_id=1)
EMPLOYEE = Principal(user_id="u-2", email="e@x.com", role=Role.EMPLOYEE, company_id=1)


def test_missing_principal_is_denied() -> None:
    assert authorize(None) is Decision.DENY
    assert authorize(None, [Role.ADMIN], 1) is Decision.DENY


def test_empty_role_set_admits_any_authenticated_principal() -> None:
    assert authorize(EMPLOYEE) is Decision.ALLOW


@pytest.mark.parametrize(
    "principal, roles, expected",
    [
        (ADMIN, [Role.ADMIN], Decision.ALLOW),
        (ADMIN, [Role.ADMIN, Role.HR_MANAGER], Decision.ALLOW),
        (EMPLOYEE, [Role.ADMIN, Role.HR_MANAGER], Decision.DENY),
        (EMPLOYEE, [Role.EMPLOYEE], Decision.ALLOW),
    ],
)
def test_role_membership(principal, roles, expected) -> None:
    assert authorize(principal, roles) is expected


def test_tenant_must_match_exactly() -> None:
    assert authorize(ADMIN, [Role.ADMIN], 1) is Decision.ALLOW
    assert authorize(ADMIN, [Role.ADMIN], 2) is Decision.DENY
    assert authorize(ADMIN, (), 2) is Decision.DENY


def test_role_is_checked_before_tenant() -> None:
    assert authorize(EMPLOYEE, [Role.ADMIN], 1) is Decision.DENY

from app.core.enums import CLOSED_STATUSES, ComplaintStatus as S
from app.services.workflow import (
    ADMIN_ACTIONABLE,
    ALLOWED_TRANSITIONS,
    DEPARTMENT_REJECTABLE,
    RESOLVABLE,
    sources_for,
)


def test_every_status_has_an_entry():
    assert set(ALLOWED_TRANSITIONS) == set(S)


def test_rejected_is_final():
    assert ALLOWED_TRANSITIONS[S.rejected] == []
    assert S.rejected not in sources_for(S.in_progress)


def test_admin_actionable_statuses():
    assert ADMIN_ACTIONABLE == [S.pending, S.phone_verified]


def test_department_may_reject_until_closed():
    assert DEPARTMENT_REJECTABLE == [S.pending, S.phone_verified, S.in_progress]


def test_only_in_progress_resolves():
    assert RESOLVABLE == [S.in_progress]


def test_closed_statuses_never_reopen():
    for status in CLOSED_STATUSES:
        assert S.in_progress not in ALLOWED_TRANSITIONS[status]
        assert S.pending not in ALLOWED_TRANSITIONS[status]

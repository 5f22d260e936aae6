import pytest

from biteclub.app.deps.context import get_acting_context
from biteclub.app.domain import ActingContext, Forbidden, Role, system_context


def test_student_may_act_for_themself_only():
    ctx = ActingContext(actor_id="s1", role=Role.STUDENT)
    ctx.require_student("s1")
    with pytest.raises(Forbidden):
        ctx.require_student("s2")
    with pytest.raises(Forbidden):
        ctx.require_restaurant("s1")


def test_admin_acting_on_behalf_is_scoped_to_subject():
    ctx = ActingContext(actor_id="a1", role=Role.ADMIN, on_behalf_of="s1")
    assert ctx.subject_id == "s1"
    ctx.require_student("s1")
    with pytest.raises(Forbidden):
        ctx.require_student("s2")
    assert ctx.describe() == "a1->s1"


def test_admin_without_subject_may_act_for_anyone():
    ctx = system_context()
    ctx.require_student("s9")
    ctx.require_restaurant("r9")
    ctx.require_admin()
    assert ctx.describe() == "system"


def test_restaurant_cannot_use_admin_operations():
    ctx = ActingContext(actor_id="r1", role=Role.RESTAURANT)
    ctx.require_restaurant("r1")
    with pytest.raises(Forbidden) as exc:
        ctx.require_admin()
    assert exc.value.code == "ADMIN_ONLY"


def test_headers_build_context():
    ctx = get_acting_context("a1", "ADMIN", "s1")
    assert ctx == ActingContext(actor_id="a1", role=Role.ADMIN, on_behalf_of="s1")


@pytest.mark.parametrize(
    "headers, code",
    [
        ((None, "student", None), "MISSING_ACTOR"),
        (("s1", None, None), "MISSING_ACTOR"),
        (("s1", "chef", None), "UNKNOWN_ROLE"),
        (("s1", "student", "s2"), "IMPERSONATION_DENIED"),
    ],
)
def test_bad_headers_are_forbidden(headers, code):
    with pytest.raises(Forbidden) as exc:
        get_acting_context(*headers)
    assert exc.value.code == code

"""
Tests for action plan bucketing per principal role.
"""
import itertools
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from fieldforce.constants import Role
from fieldforce.action_plans import (
    ActionPlan,
    ActionPlanBucket,
    ActionPlanCategorizer,
    ApprovalStatus,
    Principal,
)

DELEGATE = Principal(id="del-1", role=Role.DELEGATE, supervisor_id="sup-1")
SUPERVISOR = Principal(id="sup-1", role=Role.SUPERVISOR, supervisor_id="sd-1")
SALES_DIRECTOR = Principal(id="sd-1", role=Role.SALES_DIRECTOR)


def make_plan(created_by, creator_role, **kwargs):
    return ActionPlan(
        id=kwargs.pop('id', f"ap-{created_by}"),
        created_by=created_by,
        creator_role=creator_role,
        **{k: frozenset(v) if k.startswith('targeted_') else v for k, v in kwargs.items()}
    )


@pytest.fixture
def categorizer():
    return ActionPlanCategorizer()


class TestDecisionTable:
    """One test per row of the bucketing rules."""

    def test_own_plan_for_every_role(self, categorizer):
        """Own plans go to 'own' before any role rule."""
        for me in (DELEGATE, SUPERVISOR, SALES_DIRECTOR):
            plan = make_plan(me.id, me.role, targeted_delegates={me.id}, targeted_supervisors={me.id})
            assert categorizer.bucket_for(plan, me) is ActionPlanBucket.OWN

    def test_delegate_targeted_by_supervisor(self, categorizer):
        plan = make_plan("sup-1", Role.SUPERVISOR, targeted_delegates={"del-1"})
        assert categorizer.bucket_for(plan, DELEGATE) is ActionPlanBucket.SUPERVISOR_INVOLVING_ME

    def test_delegate_targeted_by_sales_director(self, categorizer):
        plan = make_plan("sd-1", Role.SALES_DIRECTOR, targeted_delegates={"del-1"})
        assert categorizer.bucket_for(plan, DELEGATE) is ActionPlanBucket.SALES_DIRECTOR_INVOLVING_ME

    def test_delegate_not_targeted_is_dropped(self, categorizer):
        """Delegates only see plans that name them."""
        plan = make_plan("sup-1", Role.SUPERVISOR, targeted_delegates={"del-2"})
        assert categorizer.bucket_for(plan, DELEGATE) is None

    def test_delegate_never_sees_peer_plans(self, categorizer):
        """Another delegate's plan is dropped even when it targets me."""
        plan = make_plan("del-2", Role.DELEGATE, targeted_delegates={"del-1"})
        assert categorizer.bucket_for(plan, DELEGATE) is None

    def test_supervisor_pending_delegate_plan(self, categorizer):
        plan = make_plan("del-1", Role.DELEGATE)
        assert categorizer.bucket_for(plan, SUPERVISOR) is ActionPlanBucket.NEEDING_MY_APPROVAL

    def test_supervisor_sales_director_plan_targeting_me(self, categorizer):
        plan = make_plan("sd-1", Role.SALES_DIRECTOR, targeted_supervisors={"sup-1"})
        assert categorizer.bucket_for(plan, SUPERVISOR) is ActionPlanBucket.INVOLVING_ME

    @pytest.mark.parametrize("status", [ApprovalStatus.APPROVED, ApprovalStatus.REJECTED])
    def test_supervisor_decided_delegate_plan(self, categorizer, status):
        """Once decided, a delegate plan falls through to 'delegate'."""
        plan = make_plan("del-1", Role.DELEGATE, supervisor_status=status)
        assert categorizer.bucket_for(plan, SUPERVISOR) is ActionPlanBucket.DELEGATE

    def test_supervisor_sales_director_plan_not_targeting_me(self, categorizer):
        plan = make_plan("sd-1", Role.SALES_DIRECTOR, targeted_supervisors={"sup-9"})
        assert categorizer.bucket_for(plan, SUPERVISOR) is ActionPlanBucket.SALES_DIRECTOR

    def test_supervisor_ignores_peer_supervisor_plan(self, categorizer):
        plan = make_plan("sup-2", Role.SUPERVISOR)
        assert categorizer.bucket_for(plan, SUPERVISOR) is None

    @pytest.mark.parametrize("creator_role", [Role.SUPERVISOR, Role.DELEGATE])
    def test_sales_director_pending(self, categorizer, creator_role):
        plan = make_plan("x-1", creator_role)
        assert categorizer.bucket_for(plan, SALES_DIRECTOR) is ActionPlanBucket.NEEDING_MY_APPROVAL

    def test_sales_director_decided_supervisor_plan(self, categorizer):
        plan = make_plan("sup-1", Role.SUPERVISOR, sales_director_status=ApprovalStatus.APPROVED)
        assert categorizer.bucket_for(plan, SALES_DIRECTOR) is ActionPlanBucket.SUPERVISOR

    def test_sales_director_decided_delegate_plan(self, categorizer):
        plan = make_plan("del-1", Role.DELEGATE, sales_director_status=ApprovalStatus.REJECTED)
        assert categorizer.bucket_for(plan, SALES_DIRECTOR) is ActionPlanBucket.DELEGATE

    def test_sales_director_ignores_other_director(self, categorizer):
        plan = make_plan("sd-2", Role.SALES_DIRECTOR, targeted_sales_directors={"sd-1"})
        assert categorizer.bucket_for(plan, SALES_DIRECTOR) is None

    def test_unknown_creator_role_is_dropped(self, categorizer):
        """Plans whose creator has no known role match no role rule."""
        plan = make_plan("ghost", None)
        for me in (DELEGATE, SUPERVISOR, SALES_DIRECTOR):
            assert categorizer.bucket_for(plan, me) is None

    def test_supervisor_status_does_not_affect_sales_director(self, categorizer):
        """The supervisor's decision leaves the director's pending queue alone."""
        plan = make_plan("del-1", Role.DELEGATE, supervisor_status=ApprovalStatus.APPROVED)
        assert categorizer.bucket_for(plan, SALES_DIRECTOR) is ActionPlanBucket.NEEDING_MY_APPROVAL


class TestCategorize:
    """Bucket dictionaries over many plans."""

    def test_every_bucket_present(self, categorizer):
        """Empty input still returns every bucket."""
        buckets = categorizer.categorize([], DELEGATE)
        assert set(buckets) == set(ActionPlanBucket)
        assert all(plans == [] for plans in buckets.values())

    def test_plan_lands_in_at_most_one_bucket(self, categorizer):
        """Exhaustive combinations never put a plan in two buckets."""
        ids = ["del-1", "sup-1", "sd-1", "other"]
        roles = [Role.DELEGATE, Role.SUPERVISOR, Role.SALES_DIRECTOR, None]
        statuses = list(ApprovalStatus)

        plans = []
        for n, (creator, role, sup, sd, targeted) in enumerate(itertools.product(
                ids, roles, statuses, statuses, [set(), {"del-1", "sup-1", "sd-1"}])):
            plans.append(make_plan(
                creator, role, id=f"ap-{n}",
                supervisor_status=sup, sales_director_status=sd,
                targeted_delegates=targeted, targeted_supervisors=targeted,
                targeted_sales_directors=targeted,
            ))

        for me in (DELEGATE, SUPERVISOR, SALES_DIRECTOR):
            buckets = categorizer.categorize(plans, me)
            placed = [plan.id for bucket in buckets.values() for plan in bucket]
            assert len(placed) == len(set(placed))

    def test_input_order_is_kept(self, categorizer):
        """Plans keep their order inside a bucket."""
        plans = [make_plan("del-1", Role.DELEGATE, id=f"ap-{i}") for i in range(3)]
        buckets = categorizer.categorize(plans, SUPERVISOR)
        assert [p.id for p in buckets[ActionPlanBucket.NEEDING_MY_APPROVAL]] == ["ap-0", "ap-1", "ap-2"]

    def test_supervisor_mix(self, categorizer):
        """A realistic supervisor inbox."""
        plans = [
            make_plan("sup-1", Role.SUPERVISOR, id="mine"),
            make_plan("del-1", Role.DELEGATE, id="pending"),
            make_plan("del-2", Role.DELEGATE, id="approved", supervisor_status=ApprovalStatus.APPROVED),
            make_plan("sd-1", Role.SALES_DIRECTOR, id="targeted", targeted_supervisors={"sup-1"}),
            make_plan("sd-1", Role.SALES_DIRECTOR, id="general"),
        ]
        buckets = categorizer.categorize(plans, SUPERVISOR)

        assert [p.id for p in buckets[ActionPlanBucket.OWN]] == ["mine"]
        assert [p.id for p in buckets[ActionPlanBucket.NEEDING_MY_APPROVAL]] == ["pending"]
        assert [p.id for p in buckets[ActionPlanBucket.DELEGATE]] == ["approved"]
        assert [p.id for p in buckets[ActionPlanBucket.INVOLVING_ME]] == ["targeted"]
        assert [p.id for p in buckets[ActionPlanBucket.SALES_DIRECTOR]] == ["general"]


class TestVisibility:
    """Unfiltered viewers and per-role tabs."""

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.MARKETING_MANAGER])
    def test_full_access_roles_are_unfiltered(self, categorizer, role):
        assert categorizer.is_unfiltered_viewer(Principal(id="x", role=role))

    @pytest.mark.parametrize("me", [DELEGATE, SUPERVISOR, SALES_DIRECTOR])
    def test_hierarchy_roles_are_bucketed(self, categorizer, me):
        assert not categorizer.is_unfiltered_viewer(me)

    def test_visible_buckets(self, categorizer):
        """Delegates see no approval queue."""
        assert ActionPlanBucket.NEEDING_MY_APPROVAL not in categorizer.visible_buckets(DELEGATE)
        assert categorizer.visible_buckets(SUPERVISOR)[:2] == [
            ActionPlanBucket.OWN, ActionPlanBucket.NEEDING_MY_APPROVAL
        ]

    def test_principal_create_parses_role(self):
        """Principals built from session data get a Role."""
        principal = Principal.create(42, "sales_director")
        assert principal.id == "42"
        assert principal.role is Role.SALES_DIRECTOR

"""
Tests for the property visibility and authorization rules.
Pure functions, exercised on unsaved property instances.
"""

import uuid
import pytest
from decimal import Decimal

from listings_api.models.user import UserRole
from listings_api.models.property import Property, PropertyType
from listings_api.policies import (
    ANONYMOUS,
    Authenticated,
    actor_from_user,
    can_create,
    can_delete,
    can_force_delete,
    can_list_any,
    can_restore,
    can_update,
    can_view,
    can_view_statistics,
    sees_only_published,
)

OWNER_ID = uuid.uuid4()

ADMIN = Authenticated(id=uuid.uuid4(), role=UserRole.ADMIN)
OWNER = Authenticated(id=OWNER_ID, role=UserRole.AGENT)
OTHER_AGENT = Authenticated(id=uuid.uuid4(), role=UserRole.AGENT)
GUEST = Authenticated(id=uuid.uuid4(), role=UserRole.GUEST)


def make_property(is_published: bool) -> Property:
    return Property(
        id=uuid.uuid4(),
        owner_id=OWNER_ID,
        type=PropertyType.APPARTEMENT,
        rooms=3,
        surface=Decimal("90"),
        price=Decimal("9000000"),
        city="Alger",
        title="Appartement 3 pièces - 90m² à Alger",
        is_published=is_published,
    )


class TestViewPolicy:
    """Visibility of published and unpublished listings."""

    @pytest.mark.parametrize("actor", [ANONYMOUS, GUEST, OTHER_AGENT, OWNER, ADMIN])
    def test_published_visible_to_everyone(self, actor):
        assert can_view(actor, make_property(is_published=True))

    @pytest.mark.parametrize("actor", [ANONYMOUS, GUEST, OTHER_AGENT])
    def test_unpublished_hidden_from_outsiders(self, actor):
        assert not can_view(actor, make_property(is_published=False))

    @pytest.mark.parametrize("actor", [OWNER, ADMIN])
    def test_unpublished_visible_to_owner_and_admin(self, actor):
        assert can_view(actor, make_property(is_published=False))


class TestMutationPolicy:
    """Create, update and delete rules."""

    def test_create_requires_managing_role(self):
        assert can_create(ADMIN)
        assert can_create(OWNER)
        assert not can_create(GUEST)
        assert not can_create(ANONYMOUS)

    @pytest.mark.parametrize("is_published", [True, False])
    def test_other_agent_cannot_update_or_delete(self, is_published):
        property_obj = make_property(is_published)
        assert not can_update(OTHER_AGENT, property_obj)
        assert not can_delete(OTHER_AGENT, property_obj)

    @pytest.mark.parametrize("is_published", [True, False])
    def test_admin_can_always_update(self, is_published):
        assert can_update(ADMIN, make_property(is_published))
        assert can_delete(ADMIN, make_property(is_published))

    @pytest.mark.parametrize("is_published", [True, False])
    def test_owner_can_update_and_delete(self, is_published):
        property_obj = make_property(is_published)
        assert can_update(OWNER, property_obj)
        assert can_delete(OWNER, property_obj)

    def test_guest_and_anonymous_cannot_update(self):
        property_obj = make_property(True)
        assert not can_update(GUEST, property_obj)
        assert not can_update(ANONYMOUS, property_obj)


class TestAdminOnlyPolicy:
    """Restore and force delete have no owner exception."""

    def test_owner_cannot_restore_or_force_delete(self):
        property_obj = make_property(False)
        assert not can_restore(OWNER, property_obj)
        assert not can_force_delete(OWNER, property_obj)

    def test_admin_can_restore_and_force_delete(self):
        property_obj = make_property(False)
        assert can_restore(ADMIN, property_obj)
        assert can_force_delete(ADMIN, property_obj)


class TestListingPolicy:

    @pytest.mark.parametrize("actor", [ANONYMOUS, GUEST, OTHER_AGENT, ADMIN])
    def test_listing_never_blocked(self, actor):
        assert can_list_any(actor)

    def test_published_only_for_anonymous_and_guest(self):
        assert sees_only_published(ANONYMOUS)
        assert sees_only_published(GUEST)
        assert not sees_only_published(OWNER)
        assert not sees_only_published(ADMIN)

    def test_statistics_for_managing_roles(self):
        assert can_view_statistics(ADMIN)
        assert can_view_statistics(OWNER)
        assert not can_view_statistics(GUEST)
        assert not can_view_statistics(ANONYMOUS)

    def test_actor_from_missing_user_is_anonymous(self):
        assert actor_from_user(None) == ANONYMOUS

"""
Tests for repository classes.
Covers live-row filtering, atomic flips and the primary image statements.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import update

from listings_api.models.user import User, UserRole
from listings_api.models.property import Property, PropertyType, PropertyStatus
from listings_api.models.image import PropertyImage
from listings_api.repositories.user import UserRepository
from listings_api.repositories.property import PropertyRepository, PropertySearchFilters
from listings_api.repositories.image import ImageRepository
from tests.conftest import UserFactory, PropertyFactory, TEST_PASSWORD


def image_records(count: int, prefix: str = "photo"):
    return [
        {
            "filename": f"{prefix}{index}.png",
            "file_path": f"properties/test/{prefix}{index}.png",
            "file_size": 1024,
            "mime_type": "image/png",
        }
        for index in range(1, count + 1)
    ]


async def set_created_at(repository, model, value: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
    """Give every row of a model the same creation time."""
    await repository.db.execute(
        update(model).values(created_at=value).execution_options(synchronize_session=False)
    )
    await repository.db.commit()


class TestUserRepository:
    """Test UserRepository functionality."""

    @pytest.mark.asyncio
    async def test_create_user_defaults_to_guest(self, user_repository: UserRepository):
        user = await user_repository.create_user({
            "email": "New.Person@Example.com",
            "password": TEST_PASSWORD,
            "full_name": "New Person"
        })

        assert user.role == UserRole.GUEST
        assert user.email == "new.person@example.com"
        assert user.hashed_password != TEST_PASSWORD
        assert user.verify_password(TEST_PASSWORD)

    @pytest.mark.asyncio
    async def test_create_user_duplicate_email(self, user_repository: UserRepository, test_agent: User):
        with pytest.raises(ValueError, match="already exists"):
            await UserFactory.create_user(user_repository, email=test_agent.email)

    @pytest.mark.asyncio
    async def test_create_user_short_password(self, user_repository: UserRepository):
        with pytest.raises(ValueError, match="at least 8 characters"):
            await UserFactory.create_user(user_repository, password="short")

    @pytest.mark.asyncio
    async def test_authenticate_user(self, user_repository: UserRepository, test_agent: User):
        assert (await user_repository.authenticate_user(test_agent.email, TEST_PASSWORD)).id == test_agent.id
        assert await user_repository.authenticate_user(test_agent.email, "wrongpassword") is None

    @pytest.mark.asyncio
    async def test_authenticate_inactive_user(self, user_repository: UserRepository, test_inactive_user: User):
        assert await user_repository.authenticate_user(test_inactive_user.email, TEST_PASSWORD) is None


class TestPropertyRepository:
    """Test PropertyRepository functionality."""

    @pytest.mark.asyncio
    async def test_create_loads_owner_and_images(self, property_repository: PropertyRepository, test_agent: User):
        property_obj = await PropertyFactory.create_property(property_repository, test_agent.id)

        assert property_obj.owner.id == test_agent.id
        assert property_obj.images == []
        assert property_obj.status == PropertyStatus.DISPONIBLE
        assert property_obj.deleted_at is None

    @pytest.mark.asyncio
    async def test_soft_deleted_hidden_from_live_queries(
        self, property_repository: PropertyRepository, published_property: Property
    ):
        assert await property_repository.soft_delete(published_property.id)

        assert await property_repository.get_live(published_property.id) is None
        trashed = await property_repository.get_including_trashed(published_property.id)
        assert trashed is not None
        assert trashed.deleted_at is not None

        properties, total = await property_repository.search_properties(PropertySearchFilters())
        assert total == 0
        assert properties == []

    @pytest.mark.asyncio
    async def test_soft_delete_twice(self, property_repository: PropertyRepository, published_property: Property):
        assert await property_repository.soft_delete(published_property.id)
        assert not await property_repository.soft_delete(published_property.id)

    @pytest.mark.asyncio
    async def test_restore(self, property_repository: PropertyRepository, published_property: Property):
        await property_repository.soft_delete(published_property.id)

        restored = await property_repository.restore(published_property.id)

        assert restored is not None
        assert restored.deleted_at is None

    @pytest.mark.asyncio
    async def test_restore_live_property_is_noop(
        self, property_repository: PropertyRepository, published_property: Property
    ):
        restored = await property_repository.restore(published_property.id)

        assert restored.id == published_property.id
        assert restored.deleted_at is None

    @pytest.mark.asyncio
    async def test_toggle_publish_twice_restores_state(
        self, property_repository: PropertyRepository, draft_property: Property
    ):
        first = await property_repository.toggle_publish(draft_property.id)
        assert first.is_published is True

        second = await property_repository.toggle_publish(draft_property.id)
        assert second.is_published is False

    @pytest.mark.asyncio
    async def test_toggle_publish_ignores_deleted(
        self, property_repository: PropertyRepository, draft_property: Property
    ):
        await property_repository.soft_delete(draft_property.id)
        assert await property_repository.toggle_publish(draft_property.id) is None

    @pytest.mark.asyncio
    async def test_update_live_clears_nullable_column(
        self, property_repository: PropertyRepository, published_property: Property
    ):
        updated = await property_repository.update_live(published_property.id, {"district": None})

        assert updated.district is None

    @pytest.mark.asyncio
    async def test_search_filters(self, property_repository: PropertyRepository, test_agent: User):
        await PropertyFactory.create_property(
            property_repository, test_agent.id, city="Alger", price=Decimal("100"), description="sea view"
        )
        await PropertyFactory.create_property(
            property_repository, test_agent.id, city="Oran", price=Decimal("200"),
            property_type=PropertyType.VILLA, status=PropertyStatus.VENDU
        )
        await PropertyFactory.create_property(
            property_repository, test_agent.id, city="Alger", price=Decimal("300"), is_published=False
        )

        _, total = await property_repository.search_properties(PropertySearchFilters(city="alg"))
        assert total == 2

        _, total = await property_repository.search_properties(
            PropertySearchFilters(city="alg", only_published=True)
        )
        assert total == 1

        _, total = await property_repository.search_properties(
            PropertySearchFilters(min_price=Decimal("100"), max_price=Decimal("200"))
        )
        assert total == 2

        found, total = await property_repository.search_properties(
            PropertySearchFilters(property_type=PropertyType.VILLA, status=PropertyStatus.VENDU)
        )
        assert total == 1
        assert found[0].city == "Oran"

        found, total = await property_repository.search_properties(PropertySearchFilters(search_text="SEA"))
        assert total == 1
        assert found[0].description == "sea view"

    @pytest.mark.asyncio
    async def test_search_pagination(self, property_repository: PropertyRepository, test_agent: User):
        for _ in range(5):
            await PropertyFactory.create_property(property_repository, test_agent.id)

        page_one, total = await property_repository.search_properties(PropertySearchFilters(), skip=0, limit=2)
        page_three, _ = await property_repository.search_properties(PropertySearchFilters(), skip=4, limit=2)

        assert total == 5
        assert len(page_one) == 2
        assert len(page_three) == 1
        assert page_three[0].id not in {p.id for p in page_one}

    @pytest.mark.asyncio
    async def test_same_timestamp_keeps_insertion_order(
        self, property_repository: PropertyRepository, test_agent: User
    ):
        cities = [f"City{index:02d}" for index in range(12)]
        for city in cities:
            await PropertyFactory.create_property(property_repository, test_agent.id, city=city)
        await set_created_at(property_repository, Property)

        properties, _ = await property_repository.search_properties(PropertySearchFilters(), skip=0, limit=20)

        assert [p.city for p in properties] == cities
        positions = [p.position for p in properties]
        assert positions == sorted(set(positions))

    @pytest.mark.asyncio
    async def test_city_and_search_match_wildcards_literally(
        self, property_repository: PropertyRepository, test_agent: User
    ):
        await PropertyFactory.create_property(property_repository, test_agent.id, city="Alger")
        underscored = await PropertyFactory.create_property(property_repository, test_agent.id, city="Bab_Ezzouar")

        by_city, city_total = await property_repository.search_properties(PropertySearchFilters(city="_"))
        _, percent_total = await property_repository.search_properties(PropertySearchFilters(search_text="%"))

        assert city_total == 1
        assert by_city[0].id == underscored.id
        assert percent_total == 0

    @pytest.mark.asyncio
    async def test_force_delete_returns_file_paths(
        self,
        property_repository: PropertyRepository,
        image_repository: ImageRepository,
        published_property: Property
    ):
        await image_repository.add_batch(published_property.id, image_records(2))

        file_paths = await property_repository.force_delete(published_property.id)

        assert sorted(file_paths) == ["properties/test/photo1.png", "properties/test/photo2.png"]
        assert await property_repository.get_including_trashed(published_property.id) is None
        assert await image_repository.count_by_property_id(published_property.id) == 0

    @pytest.mark.asyncio
    async def test_statistics_scoped_to_owner(
        self, property_repository: PropertyRepository, test_agent: User, other_agent: User
    ):
        await PropertyFactory.create_property(property_repository, test_agent.id, is_published=True)
        await PropertyFactory.create_property(property_repository, test_agent.id, is_published=False)
        await PropertyFactory.create_property(
            property_repository, other_agent.id, property_type=PropertyType.TERRAIN, rooms=None
        )

        all_stats = await property_repository.get_property_statistics()
        own_stats = await property_repository.get_property_statistics(test_agent.id)

        assert all_stats["total_properties"] == 3
        assert all_stats["properties_by_type"]["terrain"] == 1
        assert own_stats["total_properties"] == 2
        assert own_stats["published_properties"] == 1
        assert own_stats["unpublished_properties"] == 1
        assert own_stats["properties_by_status"] == {"disponible": 2, "vendu": 0, "location": 0}


class TestImageRepository:
    """Test ImageRepository primary flag handling."""

    @pytest.mark.asyncio
    async def test_first_batch_first_image_primary(
        self, image_repository: ImageRepository, published_property: Property
    ):
        images = await image_repository.add_batch(published_property.id, image_records(3))

        assert [image.is_primary for image in images] == [True, False, False]
        assert await image_repository.count_primary(published_property.id) == 1

    @pytest.mark.asyncio
    async def test_second_batch_adds_no_primary(
        self, image_repository: ImageRepository, published_property: Property
    ):
        await image_repository.add_batch(published_property.id, image_records(1, "first"))
        second = await image_repository.add_batch(published_property.id, image_records(2, "second"))

        assert not any(image.is_primary for image in second)
        assert await image_repository.count_primary(published_property.id) == 1

    @pytest.mark.asyncio
    async def test_add_batch_to_deleted_property(
        self,
        image_repository: ImageRepository,
        property_repository: PropertyRepository,
        published_property: Property
    ):
        await property_repository.soft_delete(published_property.id)

        assert await image_repository.add_batch(published_property.id, image_records(1)) is None

    @pytest.mark.asyncio
    async def test_set_primary_swaps_in_one_statement(
        self, image_repository: ImageRepository, published_property: Property
    ):
        images = await image_repository.add_batch(published_property.id, image_records(3))
        third = next(image for image in images if image.filename == "photo3.png")

        assert await image_repository.set_primary(published_property.id, third.id)

        refreshed = await image_repository.get_by_property_id(published_property.id)
        primaries = [image.filename for image in refreshed if image.is_primary]
        assert primaries == ["photo3.png"]
        assert refreshed[0].filename == "photo3.png"

    @pytest.mark.asyncio
    async def test_same_timestamp_keeps_upload_order(
        self, image_repository: ImageRepository, published_property: Property
    ):
        await image_repository.add_batch(published_property.id, image_records(1, "first"))
        second = await image_repository.add_batch(published_property.id, image_records(3, "second"))
        await set_created_at(image_repository, PropertyImage)
        await image_repository.set_primary(published_property.id, second[1].id)

        images = await image_repository.get_by_property_id(published_property.id)

        assert [image.filename for image in images] == ["second2.png", "first1.png", "second1.png", "second3.png"]
        assert [image.position for image in second] == [2, 3, 4]

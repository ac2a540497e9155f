"""Tests for entity registries and status lookup."""

from analysis.entities import Entity, EntityRegistry
from conftest import make_event

ACTORS = [
    {"id": 1, "name": "Caster", "type": "Astrologian"},
    {"id": 2, "name": "Tank", "type": "Paladin", "pets": [20]},
    {"id": 10, "name": "Boss", "type": "NPC", "hostile": True},
]


class TestEntityRegistry:
    def test_from_actors_filters_hostility(self):
        enemies = EntityRegistry.from_actors(ACTORS, hostile=True)
        friends = EntityRegistry.from_actors(ACTORS, hostile=False)

        assert [entity.id for entity in enemies] == [10]
        assert sorted(entity.id for entity in friends) == [1, 2]
        assert len(EntityRegistry.from_actors(ACTORS)) == 3

    def test_get_entity(self):
        registry = EntityRegistry.from_actors(ACTORS)

        tank = registry.get_entity(2)
        assert tank.name == "Tank"
        assert tank.type == "Paladin"
        assert tank.pets == [20]
        assert registry.get_entity(99) is None
        assert 10 in registry

    def test_status_events_build_windows(self):
        registry = EntityRegistry.from_actors(ACTORS)
        for event in [
            make_event("applybuff", 1000, target_id=2, ability_id=500),
            make_event("removebuff", 5000, target_id=2, ability_id=500),
            make_event("damage", 5500, target_id=2, ability_id=600),
        ]:
            registry.preprocess_event(event)

        (status,) = registry.get_entity(2).get_statuses()
        assert (status.start, status.end) == (1000, 5000)
        assert status.ability_id == 500
        assert status.source_id == 1

    def test_events_on_unknown_targets_are_ignored(self):
        registry = EntityRegistry.from_actors(ACTORS)
        registry.preprocess_event(make_event("applybuff", 0, target_id=99))
        assert all(not entity.get_statuses() for entity in registry)


class TestEntityStatuses:
    def make_entity(self):
        entity = Entity(2, "Tank")
        entity.apply_status(500, "Shield", 1, 1000)
        entity.remove_status(500, "Shield", 1, 3000)
        entity.apply_status(501, "Regen", 3, 2000)
        entity.apply_status(502, "Haste", 1, 8000)
        return entity

    def test_window_filter(self):
        entity = self.make_entity()

        statuses = entity.get_statuses(None, 5000, 1000, 1000)
        assert [status.ability_id for status in statuses] == [501]

        statuses = entity.get_statuses(None, 2500, 1000, 1000)
        assert [status.ability_id for status in statuses] == [500, 501]

    def test_source_filter(self):
        entity = self.make_entity()
        statuses = entity.get_statuses(None, 2500, 1000, 1000, 1)
        assert [status.ability_id for status in statuses] == [500]

    def test_ability_filter(self):
        entity = self.make_entity()
        assert [s.ability_id for s in entity.get_statuses(502)] == [502]
        assert [s.ability_id for s in entity.get_statuses({500, 502})] == [500, 502]

    def test_refresh_without_apply_starts_at_zero(self):
        entity = Entity(2)
        entity.refresh_status(500, "Shield", 1, 4000)
        entity.refresh_status(500, "Shield", 1, 6000)

        (status,) = entity.get_statuses()
        assert (status.start, status.end) == (0, None)

    def test_remove_without_apply_is_starting_aura(self):
        entity = Entity(2)
        entity.remove_status(500, "Shield", 1, 4000)

        (status,) = entity.get_statuses()
        assert (status.start, status.end) == (0, 4000)

    def test_reapply_while_active_keeps_window(self):
        entity = Entity(2)
        entity.apply_status(500, "Shield", 1, 1000)
        entity.apply_status(500, "Shield", 1, 2000)

        (status,) = entity.get_statuses()
        assert status.start == 1000

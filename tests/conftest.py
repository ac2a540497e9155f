import pytest

from analysis.entities import Entity, EntityRegistry


def make_event(
    type,
    timestamp,
    target_id=10,
    source_id=1,
    ability_id=100,
    target_instance=None,
    **extra,
):
    event = {
        "type": type,
        "timestamp": timestamp,
        "sourceID": source_id,
        "targetID": target_id,
        "abilityGameID": ability_id,
        "ability": f"Ability {ability_id}",
    }
    if target_instance is not None:
        event["targetInstance"] = target_instance
    if ability_id is None:
        del event["abilityGameID"]
        del event["ability"]
    event.update(extra)
    return event


@pytest.fixture
def enemies():
    return EntityRegistry(
        [
            Entity(10, "Training Dummy A", is_hostile=True),
            Entity(11, "Training Dummy B", is_hostile=True),
            Entity(12, "Training Dummy C", is_hostile=True),
        ]
    )

from typing import Dict, Iterable, List, Optional

from analysis.base import BasePreprocessor, Window


class StatusWindow(Window):
    def __init__(self, ability_id, ability, source_id, start, end=None):
        super().__init__(start, end)
        self.ability_id = ability_id
        self.ability = ability
        self.source_id = source_id

    def to_dict(self):
        return {
            "ability": self.ability,
            "abilityGameID": self.ability_id,
            "sourceID": self.source_id,
            "start": self.start,
            "end": self.end,
        }


class Entity:
    def __init__(self, id, name=None, type=None, is_hostile=False, pets=None):
        self.id = id
        self.name = name
        self.type = type
        self.is_hostile = is_hostile
        self.pets = pets or []
        self._statuses: List[StatusWindow] = []
        self._active: Dict[tuple, StatusWindow] = {}

    def apply_status(self, ability_id, ability, source_id, timestamp):
        key = (ability_id, source_id)
        if key in self._active:
            return
        window = StatusWindow(ability_id, ability, source_id, timestamp)
        self._active[key] = window
        self._statuses.append(window)

    def refresh_status(self, ability_id, ability, source_id, timestamp):
        # A refresh without an apply means the status was up before the log started
        if (ability_id, source_id) not in self._active:
            has_window = any(
                s.ability_id == ability_id and s.source_id == source_id
                for s in self._statuses
            )
            if not has_window:
                self.apply_status(ability_id, ability, source_id, 0)

    def remove_status(self, ability_id, ability, source_id, timestamp):
        window = self._active.pop((ability_id, source_id), None)
        if window:
            window.end = timestamp
        elif not any(
            s.ability_id == ability_id and s.source_id == source_id
            for s in self._statuses
        ):
            # assume it was a starting aura
            self._statuses.append(
                StatusWindow(ability_id, ability, source_id, 0, timestamp)
            )

    def get_statuses(
        self,
        ability_filter=None,
        timestamp=None,
        window_before=0,
        window_after=0,
        source_id=None,
    ) -> List[StatusWindow]:
        """
        Statuses on this entity overlapping
        [timestamp - window_before, timestamp + window_after].

        ability_filter can be a single ability id or a collection of them,
        source_id limits the result to statuses applied by that source.
        """
        if ability_filter is not None and not isinstance(
            ability_filter, (list, tuple, set, frozenset)
        ):
            ability_filter = {ability_filter}

        statuses = []
        for status in self._statuses:
            if ability_filter is not None and status.ability_id not in ability_filter:
                continue
            if source_id is not None and status.source_id != source_id:
                continue
            if timestamp is not None and not status.overlaps(
                timestamp - window_before, timestamp + window_after
            ):
                continue
            statuses.append(status)

        return sorted(statuses, key=lambda s: s.start)

    def __repr__(self):
        return f"Entity(id={self.id}, name={self.name!r})"


class EntityRegistry(BasePreprocessor):
    APPLY_EVENTS = ("applybuff", "applydebuff")
    REFRESH_EVENTS = ("refreshbuff", "refreshdebuff")
    REMOVE_EVENTS = ("removebuff", "removedebuff")

    def __init__(self, entities: Iterable[Entity] = ()):
        self._entities = {entity.id: entity for entity in entities}

    @classmethod
    def from_actors(cls, actors, hostile: Optional[bool] = None):
        """
        Build a registry from the fight's actor list. With hostile set,
        only actors with a matching "hostile" flag are kept
        """
        entities = []
        for actor in actors:
            is_hostile = bool(actor.get("hostile", False))
            if hostile is not None and is_hostile != hostile:
                continue
            entities.append(
                Entity(
                    actor["id"],
                    name=actor.get("name"),
                    type=actor.get("type"),
                    is_hostile=is_hostile,
                    pets=actor.get("pets"),
                )
            )
        return cls(entities)

    def get_entity(self, entity_id) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def __contains__(self, entity_id):
        return entity_id in self._entities

    def __iter__(self):
        return iter(self._entities.values())

    def __len__(self):
        return len(self._entities)

    def preprocess_event(self, event):
        event_type = event.get("type")
        if event_type not in (
            self.APPLY_EVENTS + self.REFRESH_EVENTS + self.REMOVE_EVENTS
        ):
            return

        entity = self.get_entity(event.get("targetID"))
        if entity is None:
            return

        args = (
            event.get("abilityGameID"),
            event.get("ability"),
            event.get("sourceID"),
            event["timestamp"],
        )
        if event_type in self.APPLY_EVENTS:
            entity.apply_status(*args)
        elif event_type in self.REFRESH_EVENTS:
            entity.refresh_status(*args)
        else:
            entity.remove_status(*args)

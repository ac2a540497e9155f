from typing import List, Optional


class InvalidFight(Exception):
    pass


class Source:
    def __init__(self, id, name=None, pets=None):
        self.id = id
        self.name = name
        self.pets = pets or []


class Fight:
    def __init__(
        self,
        events: List[dict],
        actors: List[dict],
        source_id: Optional[int] = None,
        encounter_name: Optional[str] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ):
        self._check_order(events)
        self.events = events
        self.actors = actors
        self.encounter_name = encounter_name
        self.start_time = (
            start_time if start_time is not None else self._first_timestamp(events)
        )
        self.end_time = (
            end_time if end_time is not None else self._last_timestamp(events)
        )
        self.source = self._get_source(source_id)

    @staticmethod
    def _check_order(events):
        last_timestamp = None
        for i, event in enumerate(events):
            if "timestamp" not in event or "type" not in event:
                raise InvalidFight(f"Event {i} is missing a type or timestamp")
            if last_timestamp is not None and event["timestamp"] < last_timestamp:
                raise InvalidFight(
                    f"Event {i} at {event['timestamp']} is out of order"
                )
            last_timestamp = event["timestamp"]

    @staticmethod
    def _first_timestamp(events):
        return events[0]["timestamp"] if events else 0

    @staticmethod
    def _last_timestamp(events):
        return events[-1]["timestamp"] if events else 0

    def _get_source(self, source_id):
        if source_id is None:
            return None
        for actor in self.actors:
            if actor["id"] == source_id:
                return Source(source_id, actor.get("name"), actor.get("pets"))
        raise InvalidFight(f"Source {source_id} is not an actor in this fight")

    @property
    def duration(self):
        return self.end_time - self.start_time

import logging
from collections import defaultdict
from typing import Dict, List, NamedTuple, Optional


# Internal type of the grouped-pulse events inserted by the normalizer.
# They are turned into public "aoe<type>" events by AoENormalizer.fabricate
AOE_PULSE_EVENT = "_aoe_pulse"

SUPPORTED_EVENTS = (
    "damage",
    "heal",
    "refreshbuff",
    "applybuff",
)

STATUS_EVENTS = ("refreshbuff", "applybuff")


class TrackerKey(NamedTuple):
    source_id: int
    ability_id: int


class PulseTracker:
    def __init__(self):
        self.events: Dict[str, List[dict]] = {}
        self.insert_after = 0

    @property
    def has_events(self):
        return any(self.events.values())

    @property
    def timestamp(self):
        """Timestamp of the very first event of the pulse"""
        first_hits = [group[0]["timestamp"] for group in self.events.values() if group]
        return min(first_hits) if first_hits else None

    @property
    def last_hit_timestamp(self):
        # compare all event groups for the absolute last hit
        last_hits = [group[-1]["timestamp"] for group in self.events.values() if group]
        return max(last_hits) if last_hits else None

    def add(self, event, index):
        self.events.setdefault(event["type"], []).append(event)
        self.insert_after = index

    def reset(self):
        self.events = {}


class AoENormalizer:
    """
    Groups hits of the same (source, ability) into pulses.

    Sequential events with more than the threshold (in ms) between them are
    considered separate pulses. Status events have a longer gap between
    consecutive applications than damage and heals from the same cast.
    """

    DEFAULT_AOE_THRESHOLD = 20
    STATUS_AOE_THRESHOLD = 200

    def __init__(self, enemies=None, default_threshold=None, status_threshold=None):
        self._enemies = enemies
        if default_threshold is not None:
            self.DEFAULT_AOE_THRESHOLD = default_threshold
        if status_threshold is not None:
            self.STATUS_AOE_THRESHOLD = status_threshold

    def threshold(self, event_type):
        if event_type in STATUS_EVENTS:
            return self.STATUS_AOE_THRESHOLD
        return self.DEFAULT_AOE_THRESHOLD

    def normalize(self, events):
        trackers: Dict[TrackerKey, PulseTracker] = {}
        pulses = []

        def get_tracker(event):
            ability_id = event.get("abilityGameID")
            if ability_id is None:
                return PulseTracker()

            key = TrackerKey(event.get("sourceID"), ability_id)
            if key not in trackers:
                trackers[key] = PulseTracker()
            return trackers[key]

        def flush(key, tracker):
            pulses.append(self._make_pulse(key, tracker))
            tracker.reset()

        for i, event in enumerate(events):
            if event.get("type") not in SUPPORTED_EVENTS:
                continue

            tracker = get_tracker(event)
            last_hit_timestamp = tracker.last_hit_timestamp

            if (
                last_hit_timestamp is not None
                and event["timestamp"] - last_hit_timestamp
                > self.threshold(event["type"])
            ):
                flush(TrackerKey(event.get("sourceID"), event["abilityGameID"]), tracker)

            tracker.add(event, i)

        for key, tracker in trackers.items():
            if tracker.has_events:
                flush(key, tracker)

        logging.debug(f"Grouped {len(events)} events into {len(pulses)} pulses")
        return self._merge(events, pulses)

    @staticmethod
    def _make_pulse(key: TrackerKey, tracker: PulseTracker):
        return {
            "type": AOE_PULSE_EVENT,
            "timestamp": tracker.timestamp,
            "sourceID": key.source_id,
            "abilityGameID": key.ability_id,
            "events": {
                event_type: list(group)
                for event_type, group in tracker.events.items()
            },
            "insert_after": tracker.insert_after,
        }

    @staticmethod
    def _merge(events, pulses):
        pulses_by_index = defaultdict(list)
        for pulse in sorted(pulses, key=lambda p: p["insert_after"]):
            pulses_by_index[pulse["insert_after"]].append(pulse)

        merged = []
        for i, event in enumerate(events):
            merged.append(event)
            merged.extend(pulses_by_index.get(i, ()))
        return merged

    def is_valid_hit(self, event):
        # Targets we can't resolve to an enemy are not valid targets
        if self._enemies is None:
            return True
        return self._enemies.get_entity(event.get("targetID")) is not None

    def fabricate(self, pulse):
        fabricated = []

        for event_type, events in pulse["events"].items():
            if not events:
                continue

            hits = events
            if event_type == "damage":
                hits = [event for event in events if self.is_valid_hit(event)]
                if len(hits) != len(events):
                    logging.debug(
                        f"Dropped {len(events) - len(hits)} hits on unknown targets "
                        f"for ability {pulse['abilityGameID']}"
                    )

            hits_by_target = {}
            for hit in hits:
                key = (hit.get("targetID"), hit.get("targetInstance"))
                if key in hits_by_target:
                    hits_by_target[key]["times"] += 1
                else:
                    hits_by_target[key] = {
                        "id": hit.get("targetID"),
                        "instance": hit.get("targetInstance"),
                        "times": 1,
                    }

            first = events[0]
            fabricated.append(
                {
                    "type": "aoe" + event_type,
                    "timestamp": pulse["timestamp"],
                    "ability": first.get("ability"),
                    "abilityGameID": first.get("abilityGameID"),
                    "sourceID": first.get("sourceID"),
                    "hits": list(hits_by_target.values()),
                }
            )

        return fabricated


def is_pulse(event: Optional[dict]):
    return event is not None and event.get("type") == AOE_PULSE_EVENT

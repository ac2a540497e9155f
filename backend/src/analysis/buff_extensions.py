import logging

from analysis.base import BaseAnalyzer
from analysis.entities import EntityRegistry


class BuffExtensionAnalyzer(BaseAnalyzer):
    """
    Tracks abilities that extend the statuses already on allies.

    Single-target extensions snapshot the statuses on their target at cast
    time. Chain extensions refresh statuses on many allies one after the
    other, so every refreshbuff from the caster is collected until one
    arrives later than the cast lead time plus one pulse per target
    already collected.
    """

    PULSE_THRESHOLD = 200
    # the first refresh on self can lag the cast by over a second
    CHAIN_LEAD_TIME = 1500
    STATUS_WINDOW = 1000

    class Use:
        def __init__(self, event):
            self.event = event
            self.targets = []

        @property
        def timestamp(self):
            return self.event["timestamp"]

        def has_target(self, target_id):
            return any(target["id"] == target_id for target in self.targets)

    def __init__(
        self,
        combatants: EntityRegistry,
        single_target_ability_ids=(),
        chain_ability_ids=(),
        ignore_status_ids=(),
        source_id=None,
    ):
        self._combatants = combatants
        self._source_id = source_id
        self._single_target_ability_ids = set(single_target_ability_ids)
        self._chain_ability_ids = set(chain_ability_ids)
        self._ignore_status_ids = set(ignore_status_ids)
        self._uses = []
        self._chain = None
        self._completed = False

    def _snapshot_target(self, event):
        target = self._combatants.get_entity(event.get("targetID"))
        # TODO: pets are tracked under their owner, resolve them through Entity.pets
        if target is None:
            return None

        statuses = target.get_statuses(
            None,
            event["timestamp"],
            self.STATUS_WINDOW,
            self.STATUS_WINDOW,
            event.get("sourceID"),
        )
        return {
            "id": target.id,
            "name": target.name,
            "job": target.type,
            "buffs": [
                status
                for status in statuses
                if status.ability_id not in self._ignore_status_ids
            ],
        }

    def _end_chain(self):
        if self._chain:
            self._uses.append(self._chain)
            self._chain = None

    def _on_cast(self, event):
        if self._source_id is not None and event.get("sourceID") != self._source_id:
            return

        ability_id = event.get("abilityGameID")

        if ability_id in self._single_target_ability_ids:
            use = self.Use(event)
            target = self._snapshot_target(event)
            if target is None:
                return
            use.targets.append(target)
            self._uses.append(use)

        if ability_id in self._chain_ability_ids:
            self._end_chain()
            self._chain = self.Use(event)

    def _on_refresh(self, event):
        if not self._chain:
            return

        if event.get("sourceID") != self._chain.event.get("sourceID"):
            return

        cutoff = (
            self._chain.timestamp
            + self.CHAIN_LEAD_TIME
            + self.PULSE_THRESHOLD * len(self._chain.targets)
        )
        if event["timestamp"] > cutoff:
            self._end_chain()
            return

        if self._chain.has_target(event.get("targetID")):
            return

        target = self._snapshot_target(event)
        if target is not None:
            self._chain.targets.append(target)

    def add_event(self, event):
        if event["type"] == "cast":
            self._on_cast(event)
        elif event["type"] == "refreshbuff":
            self._on_refresh(event)

    def complete(self):
        if self._completed:
            return
        # clean up trailing chains
        self._end_chain()
        self._uses.sort(key=lambda use: use.timestamp)
        for use in self._uses:
            for target in use.targets:
                target["buffs"].sort(key=lambda status: status.ability_id)
        self._completed = True
        logging.debug(f"Tracked {len(self._uses)} buff extension uses")

    @property
    def uses(self):
        self.complete()
        return self._uses

    def report(self):
        return {
            "buff_extensions": [
                {
                    "timestamp": use.timestamp,
                    "ability": use.event.get("ability"),
                    "abilityGameID": use.event.get("abilityGameID"),
                    "num_targets": len(use.targets),
                    "targets": [
                        {
                            "id": target["id"],
                            "name": target["name"],
                            "job": target["job"],
                            "buffs": [status.to_dict() for status in target["buffs"]],
                        }
                        for target in use.targets
                    ],
                }
                for use in self.uses
            ]
        }

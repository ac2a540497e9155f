import functools
from collections import defaultdict
from typing import List, Optional

from pydantic import BaseModel, Field

from analysis.base import BaseAnalyzer
from analysis.buff_extensions import BuffExtensionAnalyzer
from analysis.checklist import TARGET, Checklist, Requirement, TieredRule
from analysis.entities import EntityRegistry
from report import Fight


class AoEAbility(BaseModel):
    ability_id: int
    name: Optional[str] = None
    min_targets: int = 3
    event_type: str = "aoedamage"


class BuffExtensionSettings(BaseModel):
    single_target_ability_ids: List[int] = Field(default_factory=list)
    chain_ability_ids: List[int] = Field(default_factory=list)
    ignore_status_ids: List[int] = Field(default_factory=list)

    @property
    def enabled(self):
        return bool(self.single_target_ability_ids or self.chain_ability_ids)


class AoEUsageAnalyzer(BaseAnalyzer):
    """Counts how many distinct targets each pulse of an AoE ability hit"""

    def __init__(self, abilities: List[AoEAbility]):
        self._abilities = {ability.ability_id: ability for ability in abilities}
        self._pulses = defaultdict(list)

    def add_event(self, event):
        ability = self._abilities.get(event.get("abilityGameID"))
        if ability is None or event["type"] != ability.event_type:
            return

        num_targets = len(event["hits"])
        event["num_targets"] = num_targets
        event["bad_aoe"] = num_targets < ability.min_targets
        self._pulses[ability.ability_id].append(
            {
                "timestamp": event["timestamp"],
                "num_targets": num_targets,
                "num_hits": sum(hit["times"] for hit in event["hits"]),
            }
        )

    def num_good_pulses(self, ability_id):
        min_targets = self._abilities[ability_id].min_targets
        return len(
            [p for p in self._pulses[ability_id] if p["num_targets"] >= min_targets]
        )

    def ability_score(self, ability_id):
        pulses = self._pulses[ability_id]
        if not pulses:
            return 1
        return self.num_good_pulses(ability_id) / len(pulses)

    def ability_percent(self, ability_id):
        return self.ability_score(ability_id) * 100

    def score(self):
        if not self._abilities:
            return 1
        return sum(self.ability_score(a) for a in self._abilities) / len(
            self._abilities
        )

    @property
    def abilities(self):
        return list(self._abilities.values())

    def report(self):
        usages = []
        for ability in self._abilities.values():
            pulses = self._pulses[ability.ability_id]
            targets = [p["num_targets"] for p in pulses]
            usages.append(
                {
                    "abilityGameID": ability.ability_id,
                    "name": ability.name,
                    "min_targets": ability.min_targets,
                    "num_pulses": len(pulses),
                    "num_good_pulses": self.num_good_pulses(ability.ability_id),
                    "average_targets": sum(targets) / len(targets) if targets else 0,
                    "pulses": pulses,
                }
            )
        return {"aoe_usage": usages}


class CoreAnalysisConfig:
    AOE_TIERS = {
        90: TARGET.SUCCESS,
        60: TARGET.WARN,
    }

    def __init__(
        self,
        aoe_abilities: Optional[List[AoEAbility]] = None,
        buff_extensions: Optional[BuffExtensionSettings] = None,
    ):
        self.aoe_abilities = aoe_abilities or []
        self.buff_extensions = buff_extensions or BuffExtensionSettings()

    def get_analyzers(self, fight: Fight, combatants: EntityRegistry):
        analyzers = []
        if self.aoe_abilities:
            analyzers.append(AoEUsageAnalyzer(self.aoe_abilities))
        if self.buff_extensions.enabled:
            analyzers.append(
                BuffExtensionAnalyzer(
                    combatants,
                    self.buff_extensions.single_target_ability_ids,
                    self.buff_extensions.chain_ability_ids,
                    self.buff_extensions.ignore_status_ids,
                    source_id=fight.source.id if fight.source else None,
                )
            )
        return analyzers

    def get_checklist(self, analyzers):
        checklist = Checklist()

        for analyzer in analyzers:
            if isinstance(analyzer, AoEUsageAnalyzer):
                checklist.add_rule(
                    TieredRule(
                        name="Hit multiple targets with your AoE abilities",
                        description=(
                            "AoE abilities lose value when they hit fewer targets "
                            "than a single-target ability would cover."
                        ),
                        tiers=self.AOE_TIERS,
                        requirements=[
                            Requirement(
                                ability.name or str(ability.ability_id),
                                functools.partial(
                                    analyzer.ability_percent, ability.ability_id
                                ),
                            )
                            for ability in analyzer.abilities
                        ],
                    )
                )

        return checklist

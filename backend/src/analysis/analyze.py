import logging
from typing import Optional

from analysis.aoe import AoENormalizer, is_pulse
from analysis.core_analysis import CoreAnalysisConfig
from analysis.entities import EntityRegistry
from report import Fight


class Analyzer:
    def __init__(self, fight: Fight, config: Optional[CoreAnalysisConfig] = None):
        self._fight = fight
        self._analysis_config = config or CoreAnalysisConfig()
        self._enemies = EntityRegistry.from_actors(fight.actors, hostile=True)
        self._combatants = EntityRegistry.from_actors(fight.actors, hostile=False)
        self._normalizer = AoENormalizer(self._enemies)
        self._analyzers = []
        self._aoe_events = []

    def _preprocess_events(self):
        for event in self._fight.events:
            self._enemies.preprocess_event(event)
            self._combatants.preprocess_event(event)

    def _involves_source(self, event):
        source = self._fight.source
        if source is None:
            return True

        ids = {source.id, *source.pets}
        return event.get("sourceID") in ids or event.get("targetID") in ids

    def _dispatch(self, event):
        # Pulses are never seen by analyzers, only the events fabricated from them
        if is_pulse(event):
            for fabricated in self._normalizer.fabricate(event):
                self._aoe_events.append(fabricated)
                self._dispatch(fabricated)
            return

        if not self._involves_source(event):
            return

        for analyzer in self._analyzers:
            analyzer.add_event(event)

    def analyze(self):
        self._preprocess_events()
        events = self._normalizer.normalize(self._fight.events)

        self._analyzers = self._analysis_config.get_analyzers(
            self._fight, self._combatants
        )
        for event in events:
            self._dispatch(event)

        checklist = self._analysis_config.get_checklist(self._analyzers)

        analysis = {}
        for analyzer in self._analyzers + [checklist]:
            analysis.update(**analyzer.report())

        logging.info(
            f"Analyzed {len(self._fight.events)} events, "
            f"fabricated {len(self._aoe_events)} AoE events"
        )

        source = self._fight.source
        return {
            "fight_metadata": {
                "source": source.name if source else None,
                "encounter": self._fight.encounter_name,
                "start_time": self._fight.start_time,
                "end_time": self._fight.end_time,
                "duration": self._fight.duration,
            },
            "analysis": analysis,
            "aoe_events": self._aoe_events,
        }


def analyze(fight: Fight, config: Optional[CoreAnalysisConfig] = None):
    analyzer = Analyzer(fight, config)
    return analyzer.analyze()

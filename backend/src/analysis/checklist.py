from statistics import mean
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from analysis.base import BaseAnalyzer


class TARGET:
    SUCCESS = 2
    WARN = 1
    FAIL = None


TIER_NAMES = {
    TARGET.SUCCESS: "success",
    TARGET.WARN: "warn",
    TARGET.FAIL: "fail",
}


def match_closest_lower(table, value):
    """Value of the greatest threshold in table that does not exceed value"""
    thresholds = [threshold for threshold in table if threshold <= value]
    if not thresholds:
        return None
    return table[max(thresholds)]


class Requirement:
    def __init__(self, name, percent=0):
        self.name = name
        self._percent = percent

    @classmethod
    def from_analyzer(cls, name, analyzer: BaseAnalyzer):
        return cls(name, lambda: analyzer.score() * 100)

    @property
    def percent(self):
        percent = self._percent() if callable(self._percent) else self._percent
        return max(0, min(100, percent))

    def report(self):
        return {
            "name": self.name,
            "percent": self.percent,
        }


class RuleConfig(BaseModel):
    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    name: str = ""
    description: Optional[str] = None
    requirements: List[Any] = Field(default_factory=list)
    target: float = 95
    tiers: Dict[Any, Any] = Field(default_factory=dict)
    matcher: Callable = match_closest_lower


class Rule:
    def __init__(self, config: Optional[RuleConfig] = None, **options):
        if config is None:
            config = RuleConfig(**options)
        elif options:
            config = type(config)(**{**dict(config), **options})

        for key in type(config).model_fields:
            setattr(self, key, getattr(config, key))
        for key, value in (config.model_extra or {}).items():
            setattr(self, key, value)

    @property
    def percent(self):
        percents = [requirement.percent for requirement in self.requirements]
        return mean(percents) if percents else 0

    @property
    def tier(self):
        return match_closest_lower({self.target: TARGET.SUCCESS}, self.percent)

    def report(self):
        tier = self.tier
        return {
            "name": self.name,
            "description": self.description,
            "percent": self.percent,
            "tier": tier,
            "tier_name": TIER_NAMES.get(tier),
            "requirements": [requirement.report() for requirement in self.requirements],
        }


class TieredRule(Rule):
    @property
    def tier(self):
        return self.matcher(self.tiers, self.percent)


class Checklist(BaseAnalyzer):
    def __init__(self, rules: Optional[List[Rule]] = None):
        self._rules = list(rules or [])

    def add_rule(self, rule: Rule):
        self._rules.append(rule)

    @property
    def rules(self):
        return self._rules

    def score(self):
        if not self._rules:
            return 1
        return mean(rule.percent for rule in self._rules) / 100

    def report(self):
        return {
            "checklist": {
                "rules": [rule.report() for rule in self._rules],
                "total_score": self.score(),
            }
        }

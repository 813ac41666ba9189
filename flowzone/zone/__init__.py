"""Flow Zone classification policy and suggestions."""

from flowzone.zone.classifier import (
    ParameterSuggestion,
    Verdict,
    ZoneDecision,
    classify,
    generate_suggestions,
    suggest_parameter,
)
from flowzone.zone.params import HardDirection, ParamSpec
from flowzone.zone.policy import GENRE_PRESETS, PolicyMode, ZonePolicyConfig

__all__ = [
    "GENRE_PRESETS",
    "HardDirection",
    "ParamSpec",
    "ParameterSuggestion",
    "PolicyMode",
    "Verdict",
    "ZoneDecision",
    "ZonePolicyConfig",
    "classify",
    "generate_suggestions",
    "suggest_parameter",
]

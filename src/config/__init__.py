"""Configuration module -- exports Settings, load_config and the search policy."""

from src.config.loader import load_config
from src.config.search_policy import (
    DEFAULT_DENY_LIST,
    DEFAULT_QUERY_WEIGHTS,
    DEFAULT_SCORING_POLICY,
    DenyList,
    QueryWeights,
    ScoringPolicy,
    policy_from_config,
)
from src.config.settings import Settings

__all__ = [
    "DEFAULT_DENY_LIST",
    "DEFAULT_QUERY_WEIGHTS",
    "DEFAULT_SCORING_POLICY",
    "DenyList",
    "QueryWeights",
    "ScoringPolicy",
    "Settings",
    "load_config",
    "policy_from_config",
]

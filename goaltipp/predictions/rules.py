"""Resolution and configuration of scoring rule point values."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from django.db import transaction
from django.db.models import Q

from .exceptions import InvalidScoringRule
from .models import ScoringRule

logger = logging.getLogger(__name__)

RULE_TYPES = tuple(ScoringRule.RuleType.values)


def _coerce_points(value: Any) -> int:
    """Return ``value`` as a non-negative int, or 0 when it is unusable."""

    if isinstance(value, bool):
        return 0
    try:
        points = int(value)
    except (TypeError, ValueError):
        return 0
    return points if points > 0 else 0


@dataclass(frozen=True)
class RuleSet:
    """Effective point value for every rule type.

    Lookups of unknown or unset rule types yield 0.
    """

    values: Mapping[str, int] = field(default_factory=dict)
    tournament_id: Optional[int] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], tournament_id: Optional[int] = None) -> 'RuleSet':
        return cls(
            values={rule_type: _coerce_points(points) for rule_type, points in values.items()},
            tournament_id=tournament_id,
        )

    def get(self, rule_type: str) -> int:
        return _coerce_points(self.values.get(rule_type, 0))

    def __getitem__(self, rule_type: str) -> int:
        return self.get(rule_type)

    def as_dict(self) -> Dict[str, int]:
        return {rule_type: self.get(rule_type) for rule_type in RULE_TYPES}


def resolve_rule_set(tournament_id: Optional[int] = None) -> RuleSet:
    """Load the effective rule set for ``tournament_id`` from the database.

    Global rows are applied first and tournament rows override them. The
    result is never cached so saved configuration is picked up by the next
    scoring run.
    """

    scope = Q(tournament__isnull=True)
    if tournament_id is not None:
        scope |= Q(tournament_id=tournament_id)

    global_values: Dict[str, int] = {}
    tournament_values: Dict[str, int] = {}
    for rule_type, points, rule_tournament_id in ScoringRule.objects.filter(scope).values_list(
        'rule_type', 'points', 'tournament_id'
    ):
        target = global_values if rule_tournament_id is None else tournament_values
        target[rule_type] = _coerce_points(points)

    values = {**global_values, **tournament_values}
    return RuleSet(values=values, tournament_id=tournament_id)


def resolve(rule_type: str, tournament_id: Optional[int] = None) -> int:
    """Return the points for a single ``rule_type`` (0 when unconfigured)."""

    return resolve_rule_set(tournament_id).get(rule_type)


def list_scoring_rules(tournament=None) -> list[dict[str, Any]]:
    """Describe every rule type with its effective value and origin."""

    tournament_id = tournament.pk if tournament is not None else None
    overridden = set()
    if tournament_id is not None:
        overridden = set(
            ScoringRule.objects.filter(tournament_id=tournament_id).values_list('rule_type', flat=True)
        )
    rule_set = resolve_rule_set(tournament_id)
    labels = dict(ScoringRule.RuleType.choices)
    return [
        {
            'rule_type': rule_type,
            'label': labels[rule_type],
            'points': rule_set.get(rule_type),
            'scope': 'tournament' if rule_type in overridden else 'global',
        }
        for rule_type in RULE_TYPES
    ]


def update_scoring_rules(values: Mapping[str, Any], tournament=None) -> RuleSet:
    """Save a full or partial rule set, globally or for ``tournament``.

    Raises :class:`InvalidScoringRule` for unknown rule types or values that
    are not non-negative integers. Nothing is written when any entry is
    invalid.
    """

    if not isinstance(values, Mapping):
        raise InvalidScoringRule('Scoring rules must be an object of rule_type: points.')

    cleaned: Dict[str, int] = {}
    for rule_type, points in values.items():
        if rule_type not in RULE_TYPES:
            raise InvalidScoringRule(f"Unknown rule type '{rule_type}'.")
        if isinstance(points, bool):
            raise InvalidScoringRule(f"Points for '{rule_type}' must be an integer.")
        try:
            number = int(points)
        except (TypeError, ValueError):
            raise InvalidScoringRule(f"Points for '{rule_type}' must be an integer.") from None
        if number < 0 or (isinstance(points, float) and not points.is_integer()):
            raise InvalidScoringRule(f"Points for '{rule_type}' must be a non-negative integer.")
        cleaned[rule_type] = number

    with transaction.atomic():
        for rule_type, points in cleaned.items():
            ScoringRule.objects.update_or_create(
                rule_type=rule_type,
                tournament=tournament,
                defaults={'points': points},
            )

    logger.info(
        "Saved %d scoring rules (%s)",
        len(cleaned),
        f"tournament={tournament.pk}" if tournament is not None else 'global',
    )
    return resolve_rule_set(tournament.pk if tournament is not None else None)

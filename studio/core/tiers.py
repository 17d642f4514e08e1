"""Subscription tier catalog.

The catalog is built once at import time and never mutated. Components get it
through :func:`get_tier_catalog` so tests can swap in a custom catalog via
``app.dependency_overrides``.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

from studio.core.config import settings

UNLIMITED: Final[int] = -1

STARTER: Final[str] = "STARTER"
PROFESSIONAL: Final[str] = "PROFESSIONAL"
ENTERPRISE: Final[str] = "ENTERPRISE"

FEATURE_KEYS: Final[tuple[str, ...]] = (
    "studentManagement",
    "sessionScheduling",
    "basicAttendance",
    "paymentTracking",
    "stripePayments",
    "smsNotifications",
    "emailNotifications",
    "pushNotifications",
    "advancedReports",
    "multiLocation",
    "customBranding",
    "apiAccess",
    "prioritySupport",
    "studentProgress",
    "eventManagement",
    "marketingTools",
)

MAX_STUDENTS: Final[str] = "maxStudents"
MAX_TRAINERS: Final[str] = "maxTrainers"
MAX_SESSIONS_PER_MONTH: Final[str] = "maxSessionsPerMonth"
MAX_PAYMENTS_PER_MONTH: Final[str] = "maxPaymentsPerMonth"

LIMITATION_KEYS: Final[tuple[str, ...]] = (
    MAX_STUDENTS,
    MAX_TRAINERS,
    MAX_SESSIONS_PER_MONTH,
    MAX_PAYMENTS_PER_MONTH,
)


@dataclass(frozen=True, slots=True)
class TierDefinition:
    name: str
    features: frozenset[str]
    limits: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        # Callers may hand in plain dicts/sets; freeze them.
        object.__setattr__(self, "features", frozenset(self.features))
        object.__setattr__(self, "limits", MappingProxyType(dict(self.limits)))

    def has_feature(self, feature_key: str) -> bool:
        return feature_key in self.features

    def limit_for(self, limit_key: str) -> int:
        return self.limits.get(limit_key, 0)

    def is_unlimited(self, limit_key: str) -> bool:
        return self.limit_for(limit_key) == UNLIMITED

    def feature_map(self) -> dict[str, bool]:
        return {key: key in self.features for key in FEATURE_KEYS}


class TierCatalog:
    """Ordered, read-only table of tier name -> :class:`TierDefinition`."""

    __slots__ = ("_tiers", "_order", "default_tier")

    def __init__(self, definitions: Iterable[TierDefinition], *, default_tier: str = STARTER) -> None:
        ordered = tuple(definitions)
        tiers = {definition.name: definition for definition in ordered}
        if len(tiers) != len(ordered):
            raise ValueError("Tier names must be unique")
        if default_tier not in tiers:
            raise ValueError(f"Default tier {default_tier!r} is not defined in the catalog")

        self._tiers: Mapping[str, TierDefinition] = MappingProxyType(tiers)
        self._order: tuple[str, ...] = tuple(definition.name for definition in ordered)
        self.default_tier = default_tier

    def definition_for(self, tier_name: str | None) -> TierDefinition | None:
        if tier_name is None:
            return None
        return self._tiers.get(tier_name)

    def default_definition(self) -> TierDefinition:
        return self._tiers[self.default_tier]

    def tier_names(self) -> tuple[str, ...]:
        return self._order

    def rank(self, tier_name: str) -> int:
        return self._order.index(tier_name)

    def tiers_above(self, tier_name: str) -> tuple[TierDefinition, ...]:
        if tier_name not in self._tiers:
            return ()
        return tuple(self._tiers[name] for name in self._order[self.rank(tier_name) + 1 :])

    def __contains__(self, tier_name: object) -> bool:
        return tier_name in self._tiers

    def __len__(self) -> int:
        return len(self._order)


_STARTER_FEATURES = frozenset(
    {
        "studentManagement",
        "sessionScheduling",
        "basicAttendance",
        "emailNotifications",
        "pushNotifications",
    }
)

_PROFESSIONAL_FEATURES = _STARTER_FEATURES | {
    "paymentTracking",
    "stripePayments",
    "smsNotifications",
    "advancedReports",
}


def build_tier_catalog(default_tier: str = STARTER) -> TierCatalog:
    return TierCatalog(
        (
            TierDefinition(
                name=STARTER,
                features=_STARTER_FEATURES,
                limits={
                    MAX_STUDENTS: 25,
                    MAX_TRAINERS: 2,
                    MAX_SESSIONS_PER_MONTH: 100,
                    MAX_PAYMENTS_PER_MONTH: 50,
                },
            ),
            TierDefinition(
                name=PROFESSIONAL,
                features=_PROFESSIONAL_FEATURES,
                limits={
                    MAX_STUDENTS: 100,
                    MAX_TRAINERS: UNLIMITED,
                    MAX_SESSIONS_PER_MONTH: 500,
                    MAX_PAYMENTS_PER_MONTH: 200,
                },
            ),
            TierDefinition(
                name=ENTERPRISE,
                features=frozenset(FEATURE_KEYS),
                limits={key: UNLIMITED for key in LIMITATION_KEYS},
            ),
        ),
        default_tier=default_tier,
    )


tier_catalog = build_tier_catalog(settings.default_license_tier)


def get_tier_catalog() -> TierCatalog:
    return tier_catalog

"""Bundle and role catalogs."""

from __future__ import annotations

from .models import AllRules, Bundle, BundleId, RuleSlugs

_STARTER_RULES = (
    "web-standards",
    "component-structure",
    "a11y-standards",
    "form-patterns",
    "async-effect-patterns",
)

_ADVANCED_RULES = (
    *_STARTER_RULES,
    "buddy",
    "buddy-guard",
    "ideation-engine",
    "context-warm",
    "styling-rules",
)

BUNDLES: dict[BundleId, Bundle] = {
    BundleId.STARTER: Bundle(
        id=BundleId.STARTER,
        name="Starter (SDE1/SDE2)",
        autonomy="L1-L2",
        rules=RuleSlugs(slugs=_STARTER_RULES),
        description="Basic code quality and accessibility enforcement",
        features=("Code quality rules", "Accessibility checks", "Form patterns"),
    ),
    BundleId.ADVANCED: Bundle(
        id=BundleId.ADVANCED,
        name="Advanced IC (SDE3/Senior)",
        autonomy="L2-L3",
        rules=RuleSlugs(slugs=_ADVANCED_RULES),
        description="Full Buddy capabilities with intelligent assistance",
        features=(
            "All Starter features",
            "Daily planning",
            "Ideation engine",
            "Context pre-fetch",
        ),
    ),
    BundleId.TECHLEAD: Bundle(
        id=BundleId.TECHLEAD,
        name="Tech Lead (Staff/Principal)",
        autonomy="L3-L4",
        rules=AllRules(),
        description="Complete Buddy OS with role-based permissions",
        features=(
            "All Advanced features",
            "Role permissions",
            "Stale branch intel",
            "Full autonomy",
        ),
    ),
    BundleId.ENTERPRISE: Bundle(
        id=BundleId.ENTERPRISE,
        name="Enterprise",
        autonomy="Configurable",
        rules=AllRules(),
        description="Full system with audit logging and compliance",
        features=(
            "All Tech Lead features",
            "Audit logging",
            "Team visibility",
            "Compliance",
        ),
    ),
}

# Unknown bundle tokens resolve here instead of failing.
DEFAULT_BUNDLE = BundleId.TECHLEAD

ROLES: dict[str, str] = {
    "SDE1": "SDE1 (Junior)",
    "SDE2": "SDE2 (Mid-level)",
    "SDE3": "SDE3 (Senior)",
    "Senior_SDE": "Senior SDE (Lead IC)",
    "Staff_Engineer": "Staff Engineer",
    "Engineering_Manager": "Engineering Manager",
    "Product_Owner": "Product Owner",
}

ROLE_ALIASES: dict[str, str] = {
    "sde1": "SDE1",
    "sde2": "SDE2",
    "sde3": "SDE3",
    "senior": "Senior_SDE",
    "staff": "Staff_Engineer",
    "manager": "Engineering_Manager",
    "product": "Product_Owner",
}

DEFAULT_ROLE = "Staff_Engineer"


def _ordinal(token: str | int, count: int) -> int | None:
    """Return a zero-based index for a 1-based ordinal token, if it is one."""
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        number = token
    elif token.strip().isdigit():
        number = int(token.strip())
    else:
        return None
    if 1 <= number <= count:
        return number - 1
    return None


def resolve_bundle(token: str | int | BundleId | None) -> Bundle:
    """Resolve a bundle id or 1-based ordinal into a Bundle.

    Unrecognized input resolves to the Tech Lead bundle.
    """
    if isinstance(token, BundleId):
        return BUNDLES[token]
    if token is None:
        return BUNDLES[DEFAULT_BUNDLE]

    ids = list(BUNDLES)
    index = _ordinal(token, len(ids))
    if index is not None:
        return BUNDLES[ids[index]]

    try:
        return BUNDLES[BundleId(str(token).strip().lower())]
    except ValueError:
        return BUNDLES[DEFAULT_BUNDLE]


def selects(bundle: Bundle, slug: str) -> bool:
    """Check whether a capability slug belongs to the bundle."""
    if isinstance(bundle.rules, AllRules):
        return True
    return slug in bundle.rules.slugs


def resolve_role(token: str | int | None) -> str:
    """Resolve a role alias, canonical id or 1-based ordinal.

    Unrecognized input resolves to Staff_Engineer.
    """
    if token is None:
        return DEFAULT_ROLE

    ids = list(ROLES)
    index = _ordinal(token, len(ids))
    if index is not None:
        return ids[index]

    key = str(token).strip().lower()
    if key in ROLE_ALIASES:
        return ROLE_ALIASES[key]
    for role_id in ids:
        if role_id.lower() == key:
            return role_id
    return DEFAULT_ROLE

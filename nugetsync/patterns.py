"""Matching of a package's current version against a rule's "from" selector.

Selectors are tried as a fixed, ordered set of variants; the first variant
that claims a selector decides the match:

1. ``*``           matches every version
2. ranges          anything containing ``[``, ``(`` or ``,``, e.g. ``[1.0,2.0)``
3. wildcards       a numeric prefix followed by ``*``, e.g. ``1.2.*``
4. exact versions  compared as versions, or as case-insensitive text when
                   either side does not parse

A selector that fails to parse never matches; it is not an error.
"""

from collections.abc import Callable, Iterable

from .errors import InvalidVersion
from .models import UpgradeNote
from .versioning import NuGetVersion, VersionRange, try_parse

RANGE_MARKERS = ("[", "(", ",")


def _is_universal(selector: str) -> bool:
    return selector == "*"


def _match_universal(selector: str, current: str) -> bool:
    return True


def _is_range(selector: str) -> bool:
    return any(marker in selector for marker in RANGE_MARKERS)


def _match_range(selector: str, current: str) -> bool:
    version = try_parse(current)
    if version is None:
        return False
    try:
        version_range = VersionRange.parse(selector)
    except InvalidVersion:
        return False
    return version_range.satisfies(version)


def _is_wildcard(selector: str) -> bool:
    return "*" in selector


def wildcard_bounds(selector: str) -> tuple[NuGetVersion, NuGetVersion] | None:
    """Compute the half-open interval a wildcard selector covers.

    ``1.2.*`` covers ``[1.2.0, 1.3.0)`` and ``1.*`` covers ``[1.0.0, 2.0.0)``.

    Returns:
        (lower, upper) bounds, or None when the selector has no numeric prefix
        or a non-numeric segment before the ``*``
    """
    prefix: list[int] = []
    for part in (p for p in selector.split(".") if p):
        if part == "*":
            break
        if not (part.isascii() and part.isdigit()):
            return None
        prefix.append(int(part))

    if not prefix:
        return None

    lower = prefix + [0] * (3 - len(prefix))
    upper = prefix[:-1] + [prefix[-1] + 1]
    upper += [0] * (3 - len(upper))

    lower_version = try_parse(".".join(str(n) for n in lower))
    upper_version = try_parse(".".join(str(n) for n in upper))
    if lower_version is None or upper_version is None:
        return None
    return lower_version, upper_version


def _match_wildcard(selector: str, current: str) -> bool:
    bounds = wildcard_bounds(selector)
    version = try_parse(current)
    if bounds is None or version is None:
        return False
    lower, upper = bounds
    return lower <= version < upper


def _is_exact(selector: str) -> bool:
    return True


def _match_exact(selector: str, current: str) -> bool:
    expected = try_parse(selector)
    version = try_parse(current)
    if expected is not None and version is not None:
        return expected == version
    return selector.lower() == current.lower()


SELECTOR_VARIANTS: tuple[tuple[str, Callable[[str], bool], Callable[[str, str], bool]], ...] = (
    ("universal", _is_universal, _match_universal),
    ("range", _is_range, _match_range),
    ("wildcard", _is_wildcard, _match_wildcard),
    ("exact", _is_exact, _match_exact),
)


def selector_kind(selector: str) -> str | None:
    """Name of the variant that handles ``selector``, or None for blanks."""
    if selector is None or not selector.strip():
        return None
    stripped = selector.strip()
    for name, claims, _ in SELECTOR_VARIANTS:
        if claims(stripped):
            return name
    return None


def matches(from_selector: str | None, current_version: str) -> bool:
    """Check whether ``current_version`` is covered by ``from_selector``."""
    if from_selector is None or not from_selector.strip():
        return False
    selector = from_selector.strip()
    for _, claims, match in SELECTOR_VARIANTS:
        if claims(selector):
            return match(selector, current_version)
    return False


def select_comment(upgrades: Iterable[UpgradeNote], current_version: str | None) -> str:
    """Return the notes of the first upgrade entry whose selector matches.

    Args:
        upgrades: Rule notes in authoring order
        current_version: The package's resolved version

    Returns:
        The matching notes, or an empty string when there is no resolved
        version or no entry matches
    """
    if current_version is None or not current_version.strip():
        return ""

    for upgrade in upgrades:
        if matches(upgrade.from_selector, current_version):
            return upgrade.notes or ""
    return ""

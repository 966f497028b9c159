"""NuGet version parsing, comparison and target policy evaluation."""

import re
from dataclasses import dataclass
from functools import total_ordering

from .errors import InvalidVersion
from .models import TargetPolicy

_LABEL = r"[0-9A-Za-z-]+"
VERSION_PATTERN = re.compile(
    r"^([0-9]+)(?:\.([0-9]+))?(?:\.([0-9]+))?(?:\.([0-9]+))?"
    rf"(?:-({_LABEL}(?:\.{_LABEL})*))?"
    rf"(?:\+({_LABEL}(?:\.{_LABEL})*))?$"
)


@total_ordering
@dataclass(frozen=True, eq=False)
class NuGetVersion:
    """A NuGet (SemVer 2.0 compatible) version.

    Up to four numeric release segments are accepted; missing segments are
    treated as zero, so ``1.0`` and ``1.0.0.0`` are equal. Build metadata is
    kept for display but ignored by comparisons.
    """

    release: tuple[int, int, int, int]
    prerelease: tuple[str, ...] = ()
    metadata: str | None = None
    original: str = ""

    @classmethod
    def parse(cls, text: str) -> "NuGetVersion":
        """Parse a version string.

        Args:
            text: Version like '1.2.3', '1.0.0-beta.2' or '4.0.0.1+sha.abc'

        Returns:
            Parsed NuGetVersion

        Raises:
            InvalidVersion: If the string is not a valid NuGet version
        """
        if text is None:
            raise InvalidVersion("Invalid version: None")
        stripped = str(text).strip()
        match = VERSION_PATTERN.match(stripped)
        if not match:
            raise InvalidVersion(f"Invalid version: {text!r}")

        release = tuple(int(part) if part is not None else 0 for part in match.group(1, 2, 3, 4))
        prerelease = tuple(match.group(5).split(".")) if match.group(5) else ()
        return cls(
            release=release,
            prerelease=prerelease,
            metadata=match.group(6),
            original=stripped,
        )

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def _key(self) -> tuple:
        labels = tuple(
            (0, int(label), "") if label.isdigit() else (1, 0, label.lower())
            for label in self.prerelease
        )
        # A release sorts above any of its pre-releases.
        return (self.release, 0 if self.prerelease else 1, labels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self.original:
            return self.original
        version = ".".join(str(part) for part in self.release[:3])
        if self.release[3]:
            version += f".{self.release[3]}"
        if self.prerelease:
            version += "-" + ".".join(self.prerelease)
        if self.metadata:
            version += f"+{self.metadata}"
        return version


def parse_version(text: "str | NuGetVersion") -> NuGetVersion:
    """Parse ``text`` unless it already is a NuGetVersion."""
    if isinstance(text, NuGetVersion):
        return text
    return NuGetVersion.parse(text)


def try_parse(text: str | None) -> NuGetVersion | None:
    """Parse a version, returning None instead of raising."""
    if text is None or not str(text).strip():
        return None
    try:
        return NuGetVersion.parse(text)
    except InvalidVersion:
        return None


def compare(a: "str | NuGetVersion", b: "str | NuGetVersion") -> int:
    """Compare two versions.

    Returns:
        -1, 0 or 1 as ``a`` is lower than, equal to or higher than ``b``

    Raises:
        InvalidVersion: If either side does not parse
    """
    left = parse_version(a)
    right = parse_version(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def needs_action(current: str, target: str, policy: "str | TargetPolicy | None") -> bool:
    """Decide whether ``current`` violates ``policy`` relative to ``target``.

    Args:
        current: The version currently resolved for the package
        target: The rule's target version
        policy: Policy name; unknown or missing means exact_or_higher

    Returns:
        True when the package must be changed to satisfy the policy

    Raises:
        InvalidVersion: If either version does not parse
    """
    current_version = try_parse(current)
    target_version = try_parse(target)
    if current_version is None or target_version is None:
        raise InvalidVersion(f"Invalid version comparison: {current} vs {target}.")

    normalized = TargetPolicy.coerce(policy)
    if normalized is TargetPolicy.HIGHER:
        return current_version <= target_version
    if normalized is TargetPolicy.EXACT:
        return current_version != target_version
    if normalized is TargetPolicy.EXACT_OR_LOWER:
        return current_version > target_version
    if normalized is TargetPolicy.LOWER:
        return current_version >= target_version
    if normalized is TargetPolicy.NONE:
        return False
    return current_version < target_version


@dataclass(frozen=True)
class VersionRange:
    """An interval of versions in NuGet notation, e.g. ``[1.0,2.0)``.

    A bare version ``1.0`` means "1.0 or higher"; ``[1.0]`` is an exact match.
    A missing bound is unbounded.
    """

    min_version: NuGetVersion | None = None
    max_version: NuGetVersion | None = None
    include_min: bool = True
    include_max: bool = False

    @classmethod
    def parse(cls, text: str) -> "VersionRange":
        """Parse range notation.

        Raises:
            InvalidVersion: If the range or one of its bounds is malformed
        """
        stripped = (text or "").strip()
        if not stripped:
            raise InvalidVersion(f"Invalid version range: {text!r}")

        if stripped[0] not in "[(":
            if "," in stripped or stripped[-1] in "])":
                raise InvalidVersion(f"Invalid version range: {text!r}")
            return cls(min_version=NuGetVersion.parse(stripped), include_min=True)

        if stripped[-1] not in "])" or len(stripped) < 3:
            raise InvalidVersion(f"Invalid version range: {text!r}")

        include_min = stripped[0] == "["
        include_max = stripped[-1] == "]"
        inner = stripped[1:-1]

        if "," not in inner:
            if not (include_min and include_max):
                raise InvalidVersion(f"Invalid version range: {text!r}")
            exact = NuGetVersion.parse(inner)
            return cls(min_version=exact, max_version=exact, include_min=True, include_max=True)

        parts = inner.split(",")
        if len(parts) != 2:
            raise InvalidVersion(f"Invalid version range: {text!r}")
        lower_text, upper_text = (part.strip() for part in parts)
        if not lower_text and not upper_text:
            raise InvalidVersion(f"Invalid version range: {text!r}")

        lower = NuGetVersion.parse(lower_text) if lower_text else None
        upper = NuGetVersion.parse(upper_text) if upper_text else None
        if lower is not None and upper is not None:
            if lower > upper or (lower == upper and not (include_min and include_max)):
                raise InvalidVersion(f"Invalid version range: {text!r}")

        return cls(
            min_version=lower,
            max_version=upper,
            include_min=include_min,
            include_max=include_max,
        )

    def satisfies(self, version: "str | NuGetVersion") -> bool:
        candidate = parse_version(version)
        if self.min_version is not None:
            if candidate < self.min_version:
                return False
            if candidate == self.min_version and not self.include_min:
                return False
        if self.max_version is not None:
            if candidate > self.max_version:
                return False
            if candidate == self.max_version and not self.include_max:
                return False
        return True

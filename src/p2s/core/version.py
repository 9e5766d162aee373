"""Prometheus version parsing and flag dialect lookup."""

import bisect
import re
from dataclasses import dataclass

from packaging.version import InvalidVersion, Version

from p2s.pacts.types import ConfigurationError, InvalidSpecError

LEGACY = "legacy"
TSDB_V1 = "tsdb-v1"
TSDB_V2 = "tsdb-v2"

# (lower bound, dialect), sorted by lower bound; add new boundaries here
_DIALECTS = (
    (Version("1.0.0"), LEGACY),
    (Version("2.0.0"), TSDB_V1),
    (Version("2.7.0"), TSDB_V2),
)
_BOUNDS = [bound for bound, _ in _DIALECTS]

WAL_COMPRESSION_MIN_VERSION = Version("2.11.0")

# "-rc.2" / "-beta.1" style suffixes; packaging only knows PEP 440 spellings
_PRERELEASE_RE = re.compile(r'-(alpha|beta|rc)\.?(\d*)$')


@dataclass(frozen=True)
class ResolvedVersion:
    """Outcome of version resolution for one compile call."""
    raw: str
    version: Version
    dialect: str
    wal_compression: bool


def _parse(raw: str) -> Version | None:
    """Parse a semver-ish string tolerantly (leading v, missing minor/patch)."""
    text = raw.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    text = _PRERELEASE_RE.sub(lambda m: m.group(1) + (m.group(2) or "0"), text)
    if not text:
        return None
    try:
        return Version(text)
    except InvalidVersion:
        return None


def parse_version(raw: str | None, default: str,
                  warnings: list[str] | None = None) -> Version:
    """Parse *raw*, falling back to *default* when it is empty or unparseable."""
    if raw:
        parsed = _parse(raw)
        if parsed is not None:
            return parsed
        if warnings is not None:
            warnings.append(f"version '{raw}' could not be parsed — using default {default}")
    if not default:
        raise ConfigurationError("default Prometheus version is not configured")
    parsed = _parse(default)
    if parsed is None:
        raise ConfigurationError(f"default Prometheus version '{default}' is not a valid version")
    return parsed


def flag_dialect(version: Version) -> str:
    """Return the command-line flag dialect spoken by *version*."""
    idx = bisect.bisect_right(_BOUNDS, version) - 1
    if idx < 0:
        raise InvalidSpecError(f"unsupported Prometheus major version {version.major}")
    return _DIALECTS[idx][1]


def supports_wal_compression(version: Version) -> bool:
    return version >= WAL_COMPRESSION_MIN_VERSION


def resolve_version(raw: str | None, default: str,
                    warnings: list[str] | None = None) -> ResolvedVersion:
    """Classify the requested Prometheus version for the argument assembler."""
    version = parse_version(raw, default, warnings)
    return ResolvedVersion(
        raw=raw or default,
        version=version,
        dialect=flag_dialect(version),
        wal_compression=supports_wal_compression(version),
    )

from __future__ import annotations
import logging, os, posixpath, yaml
from typing import Any, Dict, List, Optional, Tuple

from .models import MarkerDefinition, ScanConfig, Thresholds

logger = logging.getLogger(__name__)

STRUCTURED_MARKER = "DIR.TAG:"

DEFAULT_MARKERS = ["#debt:", "#improve:", "#refactor:", "#fixme:", "#todo:", STRUCTURED_MARKER]

DEFAULT_CONFIG = {
    "markers": [{"marker": m, "weight": 1.0} for m in DEFAULT_MARKERS],
    "include_patterns": ["**/*.{js,ts,jsx,tsx,css,scss,html,md,py,java,go,rs,c,h,cpp,hpp,cs,rb,php,sh}"],
    "exclude_patterns": [],
    "report_dir": "debt-reports",
    "thresholds": {"high": 50, "medium": 20},
    "trend_window": 5,
    "respect_gitignore": False,
    "include_default_markers": True,
}

# Most specific first; the first one that parses wins.
CONFIG_CANDIDATES = [
    os.path.join(".github", "debt-management", "config", "debt-config.yml"),
    os.path.join(".github", "debt-config.yml"),
    "debt-config.yml",
    ".debtscan.yml",
]

IMPLICIT_EXCLUDES = ["**/node_modules/**", "**/dist/**", "**/build/**", "**/.git/**"]


def report_dir_pattern(report_dir: str, root_dir: Optional[str] = None) -> Optional[str]:
    """The exclude for report_dir, or None when it lies outside the scanned root."""
    if os.path.isabs(report_dir):
        if root_dir is None:
            return None
        report_dir = os.path.relpath(report_dir, os.path.abspath(root_dir))
    rel = posixpath.normpath(report_dir.replace(os.sep, "/")).strip("/")
    if rel in ("", ".") or rel == ".." or rel.startswith("../"):
        return None
    return f"**/{rel}/**"


def implicit_excludes(report_dir: str, root_dir: Optional[str] = None) -> List[str]:
    pattern = report_dir_pattern(report_dir, root_dir)
    return IMPLICIT_EXCLUDES + ([pattern] if pattern else [])


def _read_candidate(path: str) -> Optional[Dict[str, Any]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Error loading config from %s: %s", path, e)
        return None
    if data is None:
        data = {}
    if not isinstance(data, dict):
        logger.error("Error loading config from %s: top level is not a mapping", path)
        return None
    return data


def _parse_markers(raw: Any) -> Optional[List[MarkerDefinition]]:
    if not isinstance(raw, list):
        return None
    markers: List[MarkerDefinition] = []
    for item in raw:
        if isinstance(item, str):
            token, weight = item, 1.0
        elif isinstance(item, dict) and isinstance(item.get("marker"), str):
            token = item["marker"]
            weight = item.get("weight", 1.0)
            if not isinstance(weight, (int, float)) or isinstance(weight, bool):
                logger.warning("Ignoring non-numeric weight %r for marker %s", weight, token)
                weight = 1.0
        else:
            logger.warning("Ignoring malformed marker entry %r", item)
            continue
        if token:
            markers.append(MarkerDefinition(token, float(weight)))
    return markers


def _dedupe(markers: List[MarkerDefinition]) -> Tuple[MarkerDefinition, ...]:
    seen = set()
    out = []
    for m in markers:
        if m.token in seen:
            continue
        seen.add(m.token)
        out.append(m)
    return tuple(out)


def _string_list(raw: Any, key: str) -> Optional[List[str]]:
    if raw is None:
        return None
    if isinstance(raw, list) and all(isinstance(p, str) for p in raw):
        return list(raw)
    logger.warning("Ignoring invalid %s value %r", key, raw)
    return None


def _pick(user: Dict[str, Any], key: str, kind: type) -> Any:
    default = DEFAULT_CONFIG[key]
    if key not in user:
        return default
    value = user[key]
    if isinstance(value, kind) and not (kind is int and isinstance(value, bool)):
        return value
    logger.warning("Ignoring invalid %s value %r", key, value)
    return default


def build_config(user: Dict[str, Any], source: Optional[str] = None, root_dir: Optional[str] = None) -> ScanConfig:
    """Turn a raw mapping (a parsed config file, or {}) into a ScanConfig."""
    defaults = [MarkerDefinition(m["marker"], m["weight"]) for m in DEFAULT_CONFIG["markers"]]
    configured = _parse_markers(user.get("markers"))
    if user.get("markers") is not None and configured is None:
        logger.warning("Ignoring invalid markers value %r", user.get("markers"))
    if configured:
        if _pick(user, "include_default_markers", bool):
            markers = _dedupe(configured + defaults)
        else:
            markers = _dedupe(configured)
    else:
        markers = _dedupe(defaults)

    include = _string_list(user.get("include_patterns"), "include_patterns") or list(DEFAULT_CONFIG["include_patterns"])

    report_dir = _pick(user, "report_dir", str) or DEFAULT_CONFIG["report_dir"]
    exclude = _string_list(user.get("exclude_patterns"), "exclude_patterns") or []
    for pat in implicit_excludes(report_dir, root_dir):
        if pat not in exclude:
            exclude.append(pat)

    raw_th = _pick(user, "thresholds", dict)
    th_defaults = DEFAULT_CONFIG["thresholds"]
    th = {}
    for k in ("high", "medium"):
        v = raw_th.get(k, th_defaults[k])
        if not isinstance(v, int) or isinstance(v, bool):
            logger.warning("Ignoring invalid threshold %s=%r", k, v)
            v = th_defaults[k]
        th[k] = v

    window = _pick(user, "trend_window", int)
    if window < 1:
        logger.warning("Ignoring invalid trend_window %r", window)
        window = DEFAULT_CONFIG["trend_window"]

    return ScanConfig(
        markers=markers,
        include_patterns=tuple(include),
        exclude_patterns=tuple(exclude),
        report_dir=report_dir,
        thresholds=Thresholds(**th),
        trend_window=window,
        respect_gitignore=_pick(user, "respect_gitignore", bool),
        source=source,
    )


def load_config(root_dir: str) -> ScanConfig:
    for rel in CONFIG_CANDIDATES:
        path = os.path.join(root_dir, rel)
        if not os.path.isfile(path):
            continue
        user = _read_candidate(path)
        if user is None:
            continue
        logger.info("Loaded debt configuration from %s", path)
        return build_config(user, source=path, root_dir=root_dir)
    logger.info("No debt configuration found, using defaults")
    return build_config({}, root_dir=root_dir)

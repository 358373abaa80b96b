from __future__ import annotations
import dataclasses, json, logging, os, re
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence
from pathspec import PathSpec

logger = logging.getLogger(__name__)

BRACE_RE = re.compile(r"\{([^{}]*)\}")


def find_repo_root(start: str) -> str:
    start = os.path.abspath(start)
    p = start
    while p and p != os.path.dirname(p):
        if os.path.exists(os.path.join(p, ".git")):
            return p
        p = os.path.dirname(p)
    return start


def load_gitignore(repo_root: str) -> PathSpec:
    path = os.path.join(repo_root, ".gitignore")
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return PathSpec.from_lines("gitwildmatch", f)
    return PathSpec.from_lines("gitwildmatch", [])


def expand_braces(pattern: str) -> List[str]:
    """``**/*.{js,ts}`` -> ``['**/*.js', '**/*.ts']``. Nested groups expand left to right."""
    m = BRACE_RE.search(pattern)
    if not m:
        return [pattern]
    head, tail = pattern[: m.start()], pattern[m.end():]
    out: List[str] = []
    for alt in m.group(1).split(","):
        out.extend(expand_braces(head + alt + tail))
    return out


def compile_spec(patterns: Iterable[str]) -> PathSpec:
    lines: List[str] = []
    for pat in patterns:
        lines.extend(expand_braces(pat))
    return PathSpec.from_lines("gitwildmatch", lines)


def _to_posix(rel: str) -> str:
    return rel.replace(os.sep, "/")


def iter_files(root_dir: str, include: PathSpec, excludes: Sequence[PathSpec]) -> Iterable[str]:
    """Yield absolute paths under root_dir matching include.

    Directories matched by any exclude spec are pruned from the walk, so
    their contents are never listed.
    """
    root_dir = os.path.abspath(root_dir)
    for root, dirnames, files in os.walk(root_dir):
        rel_root = os.path.relpath(root, root_dir)
        rel_root = "" if rel_root == "." else _to_posix(rel_root) + "/"
        kept = []
        for d in sorted(dirnames):
            probe = rel_root + d + "/"
            if any(spec.match_file(probe) for spec in excludes):
                logger.debug("Pruning excluded directory %s", probe)
                continue
            kept.append(d)
        dirnames[:] = kept
        for name in sorted(files):
            rel = rel_root + name
            if any(spec.match_file(rel) for spec in excludes):
                continue
            if include.match_file(rel):
                yield os.path.join(root, name)


def resolve_pattern(root_dir: str, pattern: str, excludes: Sequence[PathSpec]) -> List[str]:
    return list(iter_files(root_dir, compile_spec([pattern]), excludes))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(ts: datetime) -> str:
    """ISO-8601 in UTC with microseconds and a trailing Z."""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def file_timestamp(ts: datetime) -> str:
    # colons are not safe on every filesystem
    return iso_timestamp(ts).replace(":", "-")


def parse_timestamp(text: str) -> Optional[datetime]:
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _default(o: Any) -> Any:
    if dataclasses.is_dataclass(o) and not isinstance(o, type):
        return dataclasses.asdict(o)
    return str(o)


def write_json(result: Any, path: str) -> str:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, default=_default)
    return path

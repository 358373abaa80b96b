from __future__ import annotations
import logging, os, re
from typing import Dict, List

from .models import ValidationResult
from .utils import compile_spec, iter_files

logger = logging.getLogger(__name__)

PARSE_ERROR = "DVB002"
UNRELATED_FILES = "DVB006"

RELATED_FILES_RE = re.compile(r"^##\s+Related Files\s*$(.*?)(?=^##\s|\Z)", re.M | re.S)


def related_files(content: str):
    """Return the listed paths of the Related Files section, or None if there is no section.

    Entries containing ``[`` or ``]`` are unfilled template placeholders and are dropped.
    """
    m = RELATED_FILES_RE.search(content)
    if not m:
        return None
    paths = []
    for line in m.group(1).splitlines():
        line = line.strip()
        if not line.startswith("-"):
            continue
        entry = line[1:].strip()
        if not entry or "[" in entry or "]" in entry:
            continue
        paths.append(entry)
    return paths


def _within(path: str, directory: str) -> bool:
    try:
        return os.path.commonpath([path, directory]) == directory
    except ValueError:
        # different drives
        return False


def validate_debt_document(doc_path: str) -> ValidationResult:
    doc_path = os.path.abspath(doc_path)
    try:
        with open(doc_path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error validating %s: %s", doc_path, e)
        return ValidationResult(False, f"Parsing error: {e}", PARSE_ERROR)

    paths = related_files(content)
    if paths is None:
        logger.warning('No "## Related Files" section found in %s', doc_path)
        return ValidationResult(True, "No related files section found, but this is not a validation error")
    if not paths:
        return ValidationResult(True, "Only template placeholders listed, nothing to validate")

    doc_dir = os.path.realpath(os.path.dirname(doc_path))
    invalid: List[str] = []
    for rel in paths:
        target = rel if os.path.isabs(rel) else os.path.join(doc_dir, rel)
        target = os.path.realpath(target)
        if not os.path.exists(target):
            invalid.append(f"File not found: {rel}")
        elif not _within(target, doc_dir):
            invalid.append(f"File outside directory scope: {rel}")

    if invalid:
        logger.error("[%s] Validation failed for %s: %s", UNRELATED_FILES, doc_path, ", ".join(invalid))
        return ValidationResult(False, f"Referenced files not valid: {', '.join(invalid)}", UNRELATED_FILES)
    logger.info("Validation successful for %s", doc_path)
    return ValidationResult(True, "All files are valid")


def validate_debt_documents(root_dir: str, pattern: str = "**/*Dev_Debt.md") -> Dict[str, ValidationResult]:
    excludes = [compile_spec(["**/node_modules/**", "**/.git/**"])]
    return {path: validate_debt_document(path) for path in iter_files(root_dir, compile_spec([pattern]), excludes)}

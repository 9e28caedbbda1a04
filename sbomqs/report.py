"""Machine-readable report builders for scoring runs."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Tuple

from . import __version__
from ._scoring import Scores
from .models import Document

# Bumped whenever a check's semantics change
SCORING_ENGINE_VERSION = "7"

ScoredFile = Tuple[str, Document, Scores]


def file_entry(path: str, doc: Document, scores: Scores) -> Dict[str, Any]:
    """Summarise one scored SBOM."""
    return {
        "file_name": path,
        "spec": doc.spec.spec_type.value,
        "spec_version": doc.spec.version,
        "file_format": doc.spec.file_format.value,
        "avg_score": round(scores.avg_score, 2),
        "num_components": len(doc.components),
        "scores": [result.to_dict() for result in scores.results],
    }


def build_json_report(files: Iterable[ScoredFile]) -> Dict[str, Any]:
    """
    Build the JSON report for a scoring run.

    Args:
        files: (path, document, scores) for every scored SBOM

    Returns:
        Report dict with a run id, UTC timestamp, creation info and one
        entry per file
    """
    entries: List[Dict[str, Any]] = [file_entry(path, doc, scores) for path, doc, scores in files]
    return {
        "run_id": str(uuid.uuid4()),
        "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "creation_info": {
            "name": "sbomqs",
            "version": __version__,
            "scoring_engine_version": SCORING_ENGINE_VERSION,
        },
        "files": entries,
    }


def basic_line(path: str, scores: Scores) -> str:
    """One line per SBOM: average score, a tab, the path."""
    return f"{scores.avg_score:0.1f}\t{path}"

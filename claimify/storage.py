"""JSON checkpointing for documents, stage artifacts and reports.

Artifacts are written atomically (temp file in the target directory, then
rename) so a crashed run never leaves a partially-written, mis-aligned file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Sequence

import structlog
from pydantic import BaseModel

from claimify.models.documents import Document
from claimify.models.slots import Artifact
from claimify.pipeline.alignment import StructuralError, build_artifact, dump_artifact, parse_documents

logger = structlog.get_logger(__name__)


def load_json(path: str | Path) -> Any:
    """Read a JSON file.

    Raises:
        StructuralError: If the file is missing or is not valid JSON.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise StructuralError(f"File not found: {path}") from e
    except json.JSONDecodeError as e:
        raise StructuralError(f"{path} is not valid JSON: {e}") from e


def save_json(path: str | Path, data: Any, pretty: bool = True) -> Path:
    """Write ``data`` as JSON, replacing ``path`` atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2 if pretty else None, ensure_ascii=False, default=str)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug("json_saved", path=str(path))
    return path


def load_documents(path: str | Path) -> list[Document]:
    """Load the document input array."""
    documents = parse_documents(load_json(path))
    logger.info(
        "documents_loaded",
        path=str(path),
        documents=len(documents),
        sentences=sum(doc.sentence_count for doc in documents),
    )
    return documents


def load_artifact(
    path: str | Path,
    record_type: type[BaseModel],
    documents: Sequence[Document] | None = None,
) -> Artifact:
    """Load a stage artifact, validating every record against ``record_type``."""
    artifact = build_artifact(load_json(path), record_type, documents, stage=Path(path).name)
    logger.info("artifact_loaded", path=str(path), documents=len(artifact))
    return artifact


def save_artifact(path: str | Path, artifact: Artifact) -> Path:
    """Write a stage artifact (pruned slots as ``null``)."""
    return save_json(path, dump_artifact(artifact))

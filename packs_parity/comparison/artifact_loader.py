"""
Artifact Loader - Read cache artifacts and normalize them for comparison

Responsibilities:
- Treat a missing artifact as "no unresolved references"
- Parse and schema-check existing artifacts
- Sort references canonically so diffs ignore production order
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
from jsonschema.exceptions import best_match

from packs_parity.comparison.exceptions import ArtifactReadError, MalformedArtifactError
from packs_parity.domain.reference import NormalizedArtifact, Reference

logger = logging.getLogger(__name__)

ARTIFACT_SCHEMA_PATH = Path(__file__).resolve().parents[1] / "config" / "artifact.schema.json"
REFERENCES_KEY = "unresolved_references"


def load_artifact_schema(schema_path: Path = ARTIFACT_SCHEMA_PATH) -> Dict[str, Any]:
    """
    Load the artifact JSON schema.

    Raises:
        FileNotFoundError: If the schema file is missing
        ValueError: If the schema file is not valid JSON
    """
    try:
        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {schema_path}: {e}") from e

    jsonschema.Draft7Validator.check_schema(schema)
    logger.debug(f"Loaded artifact schema from {schema_path}")
    return schema


class ArtifactLoader:
    """
    Load one artifact into its NormalizedArtifact form.

    Safe to share between worker threads: the validator is built once and
    holds no per-call state.
    """

    def __init__(self, schema: Optional[Dict[str, Any]] = None):
        if schema is None:
            schema = load_artifact_schema()
        self.validator = jsonschema.Draft7Validator(schema)

    def load(self, artifact_path: Path) -> NormalizedArtifact:
        """
        Load and normalize an artifact.

        Args:
            artifact_path: Artifact location on disk

        Returns:
            NormalizedArtifact; empty references when the file does not exist

        Raises:
            MalformedArtifactError: Unparsable JSON or wrong record shape
            ArtifactReadError: File exists but cannot be read
        """
        artifact_path = Path(artifact_path)

        if not artifact_path.exists():
            return NormalizedArtifact.empty(artifact_path)

        try:
            raw_text = artifact_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ArtifactReadError(
                f"Could not read artifact {artifact_path}: {e}", artifact_path
            ) from e

        try:
            document = json.loads(raw_text)
        except json.JSONDecodeError as e:
            raise MalformedArtifactError(
                f"Invalid JSON in artifact {artifact_path}: {e}", artifact_path
            ) from e

        error = best_match(self.validator.iter_errors(document))
        if error is not None:
            location = "/".join(str(part) for part in error.absolute_path) or "<root>"
            raise MalformedArtifactError(
                f"Artifact {artifact_path} failed schema validation at {location}: "
                f"{error.message}",
                artifact_path,
            )

        references = [Reference.from_dict(raw) for raw in document[REFERENCES_KEY]]

        # sorted() is stable: equal keys keep their original relative order
        return NormalizedArtifact(
            source_path=artifact_path,
            references=tuple(sorted(references, key=Reference.sort_key)),
            exists=True,
        )

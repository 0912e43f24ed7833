"""
Local Storage - Load Layer

File-backed farm document store and scored-farm exports.
"""

import json
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import polars as pl

from ..coreutils.errors import PersistError, PopulationFetchError
from ..transformation.documents import read_identity, score_fields_document
from ..transformation.models import FarmIdentity, ScoreSet
import logging

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("parquet", "json")


class FarmDocumentStore:
    """
    Farm collection kept in a JSON file (a list of farm documents).

    Every fetch reads the file again, so each pass sees the latest
    ingestion. Score writes are buffered per farm identity and merged into
    the current file contents by flush(); only the score fields change.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._pending: Dict[Tuple, Tuple[FarmIdentity, Dict[str, float]]] = {}

    def _read_documents(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            raise PopulationFetchError(f"Farm store not found: {self.path}")

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PopulationFetchError(
                f"Could not read farm store {self.path}: {e}"
            ) from e

        if isinstance(data, dict) and isinstance(data.get("farms"), list):
            data = data["farms"]
        if not isinstance(data, list):
            raise PopulationFetchError(
                f"Farm store {self.path} must hold a list of farm documents"
            )
        return [doc for doc in data if isinstance(doc, dict)]

    def fetch_population(self) -> List[Dict[str, Any]]:
        """
        Snapshot of every farm document, read from disk

        Raises:
            PopulationFetchError: If the store cannot be read
        """
        documents = self._read_documents()
        logger.info(f"Loaded {len(documents)} farm documents from {self.path}")
        return documents

    def persist_score(self, identity: FarmIdentity, scores: ScoreSet) -> None:
        """
        Queue the score fields of one farm for the next flush()

        Raises:
            PersistError: If the store file does not exist
        """
        if not self.path.exists():
            raise PersistError(f"Farm store not found: {self.path}", identity=identity)
        self._pending[identity.as_key()] = (identity, score_fields_document(scores))

    def flush(self) -> Optional[str]:
        """
        Merge queued score updates into the store file

        The file is read again first, so documents and fields written by
        ingestion since the last fetch are kept. A farm appearing more than
        once is updated at its first position; unknown farms are appended.

        Returns:
            Optional[str]: Path written, or None when nothing was queued

        Raises:
            PersistError: If the file cannot be read or written
        """
        if not self._pending:
            return None

        try:
            documents = self._read_documents()
        except PopulationFetchError as e:
            raise PersistError(str(e)) from e

        positions: Dict[Tuple, int] = {}
        for position, document in enumerate(documents):
            try:
                positions.setdefault(read_identity(document).as_key(), position)
            except ValueError:
                continue

        appended = 0
        for key, (identity, fields) in self._pending.items():
            position = positions.get(key)
            if position is not None:
                documents[position].update(fields)
                continue
            documents.append(
                {
                    "id": identity.id,
                    "chef": identity.chef,
                    "chain": identity.chain,
                    "protocol": identity.protocol,
                    "asset": {"address": identity.asset_address},
                    **fields,
                }
            )
            appended += 1

        self._write_documents(documents)
        logger.info(
            f"💾 Saved scores for {len(self._pending)} farms to {self.path} "
            f"({appended} new documents)"
        )
        self._pending.clear()
        return str(self.path)

    def _write_documents(self, documents: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(documents, f, indent=2, default=str)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistError(f"Could not write farm store {self.path}: {e}") from e


def save_scored_farms(df: pl.DataFrame, output_dir: str = "output") -> Dict[str, str]:
    """
    Export a pass's scored farms as dated Parquet and JSON files

    Returns:
        Dict: Format -> path written
    """
    today = date.today().strftime("%Y-%m-%d")
    export_dir = Path(output_dir)
    export_dir.mkdir(parents=True, exist_ok=True)

    paths = {}
    for fmt in EXPORT_FORMATS:
        filepath = export_dir / f"scored_farms_{today}.{fmt}"
        if fmt == "parquet":
            df.write_parquet(filepath)
        else:
            df.write_json(filepath)
        paths[fmt] = str(filepath)

    logger.info(f"Exported {df.height} scored farms to {export_dir}")
    return paths

"""
FAISS store for policy clauses.

Vectors live in `<name>.faiss`; clause metadata (id, text, coverage type,
policy type) lives beside it in `<name>.json`, in insertion order, so row i of
the index is entry i of the metadata list.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import faiss
import numpy as np

from claimcheck.collaborators import BaseClauseRetriever, BaseEmbedder
from claimcheck.schemas import PolicyClause, PolicyType

logger = logging.getLogger(__name__)

DEFAULT_INDEX_NAME = "policy_clauses"


class FaissClauseIndex(BaseClauseRetriever):
    def __init__(self, dim: int, top_k: int = 5):
        self.dim = dim
        self.top_k = top_k
        # Embeddings are L2-normalised, so inner product == cosine similarity.
        self.index = faiss.IndexFlatIP(dim)
        self.metadata: List[Dict] = []

    def add(self, vectors: Sequence[Sequence[float]], metadatas: Sequence[Dict]) -> None:
        if len(vectors) != len(metadatas):
            raise ValueError(f"Got {len(vectors)} vectors but {len(metadatas)} metadata entries")
        if not vectors:
            return
        matrix = np.asarray(vectors, dtype="float32")
        if matrix.ndim != 2 or matrix.shape[1] != self.dim:
            raise ValueError(f"Expected vectors of dimension {self.dim}, got shape {matrix.shape}")
        self.index.add(matrix)
        self.metadata.extend(dict(m) for m in metadatas)

    def search(self, vector: Sequence[float], k: int) -> List[Tuple[float, Dict]]:
        if self.index.ntotal == 0 or k <= 0:
            return []
        query = np.asarray([vector], dtype="float32")
        scores, ids = self.index.search(query, min(k, self.index.ntotal))
        return [
            (float(score), self.metadata[idx])
            for score, idx in zip(scores[0], ids[0])
            if idx >= 0
        ]

    def retrieve(self, vector: Sequence[float], policy_type: PolicyType) -> List[PolicyClause]:
        # Flat index: search everything, then keep the best hits for this policy type.
        wanted = policy_type.value.lower()
        clauses: List[PolicyClause] = []
        for score, meta in self.search(vector, self.index.ntotal):
            if str(meta.get("policy_type", "")).lower() != wanted:
                continue
            clauses.append(PolicyClause(
                clause_id=meta["clause_id"],
                coverage_type=meta.get("coverage_type", ""),
                text=meta["text"],
                relevance_score=score,
            ))
            if len(clauses) >= self.top_k:
                break
        logger.info("Retrieved %d clause(s) for policy type %s", len(clauses), policy_type.value)
        return clauses

    def save(self, path: str, name: str = DEFAULT_INDEX_NAME) -> None:
        directory = Path(path)
        directory.mkdir(parents=True, exist_ok=True)
        faiss.write_index(self.index, str(directory / f"{name}.faiss"))
        with open(directory / f"{name}.json", "w", encoding="utf-8") as fh:
            json.dump(self.metadata, fh, indent=2, ensure_ascii=False)
        logger.info("Saved %d clause vector(s) to %s", self.index.ntotal, directory)

    @classmethod
    def load(cls, path: str, name: str = DEFAULT_INDEX_NAME, top_k: int = 5) -> "FaissClauseIndex":
        directory = Path(path)
        index = faiss.read_index(str(directory / f"{name}.faiss"))
        with open(directory / f"{name}.json", "r", encoding="utf-8") as fh:
            metadata = json.load(fh)
        if len(metadata) != index.ntotal:
            raise ValueError(
                f"Index {name} holds {index.ntotal} vectors but {len(metadata)} metadata entries"
            )
        store = cls(index.d, top_k=top_k)
        store.index = index
        store.metadata = metadata
        return store


def ingest_clauses(
    clauses_path: str,
    embedder: BaseEmbedder,
    top_k: int = 5,
    output_dir: Optional[str] = None,
) -> FaissClauseIndex:
    """
    Build an index from a JSON list of clauses.

    Each entry needs clauseId, text, coverageType and policyType
    (snake_case keys are accepted too).
    """
    with open(clauses_path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)

    metadatas = []
    for entry in raw:
        metadatas.append({
            "clause_id": entry.get("clauseId") or entry["clause_id"],
            "text": entry["text"],
            "coverage_type": entry.get("coverageType") or entry.get("coverage_type", ""),
            "policy_type": entry.get("policyType") or entry.get("policy_type", ""),
        })

    if not metadatas:
        raise ValueError(f"No clauses found in {clauses_path}")

    vectors = embedder.embed([m["text"] for m in metadatas])
    store = FaissClauseIndex(len(vectors[0]), top_k=top_k)
    store.add(vectors, metadatas)
    logger.info("Ingested %d clause(s) from %s", len(metadatas), clauses_path)

    if output_dir:
        store.save(output_dir)
    return store

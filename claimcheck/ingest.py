"""
Build the policy clause index from a JSON file of clauses.

    python -m claimcheck.ingest --clauses data/policy_clauses.json --output ./vectorstore
"""

import argparse
import logging
import os
import sys

from claimcheck.config import get_settings

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Ingest policy clauses into the FAISS index")
    parser.add_argument("--clauses", required=True, help="Path to a JSON list of policy clauses")
    parser.add_argument("--output", default=settings.POLICY_INDEX_DIR, help="Index output directory")
    parser.add_argument("--model", default=settings.SENT_TRANSFORMER_MODEL, help="Sentence-transformers model")
    args = parser.parse_args(argv)

    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

    from claimcheck.adapters.embedder import SentenceTransformerEmbedder
    from claimcheck.adapters.vectorstore import ingest_clauses

    try:
        store = ingest_clauses(
            args.clauses,
            SentenceTransformerEmbedder(args.model),
            top_k=settings.RETRIEVAL_TOP_K,
            output_dir=args.output,
        )
    except (OSError, ValueError, KeyError) as exc:
        logger.error("Ingestion failed: %s", exc)
        return 1

    logger.info("Index ready: %d clause(s) in %s", store.index.ntotal, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())

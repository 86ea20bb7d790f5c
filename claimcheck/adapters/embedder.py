# adapters/embedder.py
from typing import List, Optional

from claimcheck.collaborators import BaseEmbedder
from claimcheck.config import get_settings


class SentenceTransformerEmbedder(BaseEmbedder):
    def __init__(self, model_name: Optional[str] = None):
        from sentence_transformers import SentenceTransformer

        self.model_name = model_name or get_settings().SENT_TRANSFORMER_MODEL
        self.model = SentenceTransformer(self.model_name)

    def embed(self, texts: List[str]) -> List[List[float]]:
        return self.model.encode(
            texts,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=True,
        ).tolist()


def get_embedder() -> SentenceTransformerEmbedder:
    return SentenceTransformerEmbedder()

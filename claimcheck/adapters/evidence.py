"""
Evidence document ID → plain text.

Documents are files in the evidence directory; the ID is the file name.
PDFs go through pdfplumber, everything else is decoded as UTF-8.
"""

import logging
from pathlib import Path
from typing import Optional

from claimcheck.collaborators import BaseEvidenceExtractor
from claimcheck.config import get_settings

logger = logging.getLogger(__name__)


class FileEvidenceExtractor(BaseEvidenceExtractor):
    def __init__(self, evidence_dir: Optional[str] = None) -> None:
        self.evidence_dir = Path(evidence_dir or get_settings().EVIDENCE_DIR).resolve()

    def _resolve(self, document_id: str) -> Path:
        path = (self.evidence_dir / document_id).resolve()
        if self.evidence_dir not in path.parents:
            raise ValueError(f"Document id {document_id!r} escapes the evidence directory")
        if not path.is_file():
            raise FileNotFoundError(f"Evidence document not found: {document_id}")
        return path

    @staticmethod
    def _pdf_text(path: Path) -> str:
        import pdfplumber

        with pdfplumber.open(path) as pdf:
            return "\n".join(page.extract_text() or "" for page in pdf.pages)

    def extract(self, document_id: str) -> str:
        path = self._resolve(document_id)
        if path.suffix.lower() == ".pdf":
            text = self._pdf_text(path)
        else:
            text = path.read_text(encoding="utf-8")
        if not text.strip():
            raise ValueError(f"Evidence document {document_id} contains no extractable text")
        logger.debug("Extracted %d chars from evidence document %s", len(text), document_id)
        return text

import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from textnorm import clean_text

logger = logging.getLogger(__name__)


@dataclass
class DocChunk:
    doc_id: str
    text: str
    score: float = 0.0


def tokenize(text: str) -> List[str]:
    return clean_text(text).split()


class RAGIndex:
    """Keyword retriever over a small folder of policy documents.

    Scores are raw term-overlap counts: every document token that also
    occurs in the query adds one. No semantic ranking.
    """

    def __init__(self, documents: Optional[Iterable[Tuple[str, str]]] = None):
        self.texts: List[Tuple[str, str]] = []  # (doc_id, text)
        self._tokens: List[List[str]] = []
        for doc_id, text in documents or []:
            self.add(doc_id, text)

    def __len__(self) -> int:
        return len(self.texts)

    def add(self, doc_id: str, text: str) -> None:
        self.texts.append((doc_id, text))
        self._tokens.append(tokenize(text))

    def build_from_folder(self, docs_path: str = "./docs") -> None:
        for fn in sorted(os.listdir(docs_path)):
            if not fn.lower().endswith((".txt", ".md")):
                continue
            with open(os.path.join(docs_path, fn), "r", encoding="utf-8") as f:
                self.add(fn, f.read())

        if not self.texts:
            raise RuntimeError(f"No .txt/.md documents found in {docs_path}")
        logger.info("loaded %d documents from %s", len(self.texts), docs_path)

    def retrieve(self, query: str, top_k: int = 5) -> List[DocChunk]:
        q = set(tokenize(query))
        scored = []
        for (doc_id, text), words in zip(self.texts, self._tokens):
            score = sum(1 for w in words if w in q)
            scored.append(DocChunk(doc_id=doc_id, text=text, score=float(score)))

        # sort is stable, so ties keep corpus order
        scored.sort(key=lambda d: d.score, reverse=True)
        return [d for d in scored[:top_k] if d.score > 0]

    def fallback(self, top_k: int = 5) -> List[DocChunk]:
        return [DocChunk(doc_id=doc_id, text=text) for doc_id, text in self.texts[:top_k]]

    def get(self, doc_id: str) -> Optional[DocChunk]:
        for did, text in self.texts:
            if did == doc_id:
                return DocChunk(doc_id=did, text=text)
        return None

    def list_documents(self, preview_len: int = 220) -> List[Dict[str, object]]:
        out = []
        for doc_id, text in self.texts:
            out.append({
                "id": doc_id,
                "title": os.path.splitext(doc_id)[0],
                "preview": " ".join(text.split())[:preview_len],
                "bytes": len(text.encode("utf-8")),
            })
        return out

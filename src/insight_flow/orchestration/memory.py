"""
Context store em memória para a orquestração.

O `ContextStore` guarda trechos de texto (chunks) com metadados e
responde buscas por similaridade de cosseno sobre vetores numpy.

Pipeline de indexação:
    texto → RecursiveCharacterTextSplitter (LangChain) → embeddings → matriz normalizada

Decisões arquiteturais:
    - O split usa o `RecursiveCharacterTextSplitter` do LangChain com os
      separadores "\\n\\n", "\\n", " ", "" sem manter o separador nos chunks
    - O embedder padrão é um bag-of-words com hashing (determinístico,
      sem dependência externa); qualquer objeto com `embed(texts)`
      retornando uma matriz (n, d) pode substituí-lo
    - Vetores são normalizados na indexação; a busca é um produto interno

Invariantes:
    - `len(store)` é o número de chunks indexados
    - Resultados de busca são ordenados do mais ao menos similar

Limites explícitos:
    - Não persiste em disco
    - Não deduplica chunks
"""

from __future__ import annotations

import hashlib
import re
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import numpy as np
from langchain_text_splitters import RecursiveCharacterTextSplitter

from insight_flow.core.config.defaults import resolve_config


SEPARATORS: Tuple[str, ...] = ("\n\n", "\n", " ", "")

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


class Embedder(Protocol):
    def embed(self, texts: Sequence[str]) -> np.ndarray:
        ...


class HashingEmbedder:
    """Bag-of-words com hashing de tokens em `dim` posições."""

    def __init__(self, dim: int = 512):
        if dim <= 0:
            raise ValueError("dim must be positive")
        self.dim = dim

    def _index(self, token: str) -> int:
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big") % self.dim

    def embed(self, texts: Sequence[str]) -> np.ndarray:
        out = np.zeros((len(texts), self.dim), dtype=np.float64)
        for row, text in enumerate(texts):
            for token in _TOKEN_RE.findall(text.lower()):
                out[row, self._index(token)] += 1.0
        return out


# ---------------------------------------------------------------------------
# Split
# ---------------------------------------------------------------------------

def _splitter(chunk_size: int, chunk_overlap: int, separators: Sequence[str] = SEPARATORS) -> RecursiveCharacterTextSplitter:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise ValueError(f"chunk_overlap ({chunk_overlap}) must be in [0, chunk_size ({chunk_size}))")
    return RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        separators=list(separators),
        keep_separator=False,
    )


def split_text(
    text: str,
    *,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
    separators: Sequence[str] = SEPARATORS,
) -> List[str]:
    """
    Divide `text` em chunks de até `chunk_size` caracteres.

    Raises:
        ValueError: Se `chunk_overlap >= chunk_size`.
    """
    return _splitter(chunk_size, chunk_overlap, separators).split_text(text)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

def _normalize(vectors: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return vectors / norms


class ContextStore:
    """Vector store em memória com busca por similaridade de cosseno."""

    def __init__(
        self,
        *,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        search_k: int = 3,
        embedder: Optional[Embedder] = None,
    ):
        self._splitter = _splitter(chunk_size, chunk_overlap)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.search_k = search_k
        self.embedder: Embedder = embedder or HashingEmbedder()
        self._texts: List[str] = []
        self._metadata: List[Dict[str, Any]] = []
        self._vectors: Optional[np.ndarray] = None

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, *, embedder: Optional[Embedder] = None) -> "ContextStore":
        mem = resolve_config(config)["memory"]
        return cls(
            chunk_size=int(mem["chunk_size"]),
            chunk_overlap=int(mem["chunk_overlap"]),
            search_k=int(mem["search_k"]),
            embedder=embedder,
        )

    def __len__(self) -> int:
        return len(self._texts)

    def add(self, text: str, metadata: Optional[Dict[str, Any]] = None) -> int:
        """Indexa `text` e retorna o número de chunks adicionados."""
        chunks = self._splitter.split_text(text)
        if not chunks:
            return 0
        vectors = _normalize(np.asarray(self.embedder.embed(chunks), dtype=np.float64))
        self._vectors = vectors if self._vectors is None else np.vstack([self._vectors, vectors])
        self._texts.extend(chunks)
        self._metadata.extend(dict(metadata or {}) for _ in chunks)
        return len(chunks)

    def search_documents(self, query: str, k: Optional[int] = None) -> List[Tuple[str, Dict[str, Any], float]]:
        k = self.search_k if k is None else k
        if self._vectors is None or k <= 0:
            return []
        q = _normalize(np.asarray(self.embedder.embed([query]), dtype=np.float64))[0]
        scores = self._vectors @ q
        # ordenação estável: empates preservam a ordem de inserção
        order = np.argsort(-scores, kind="stable")[:k]
        return [(self._texts[i], dict(self._metadata[i]), float(scores[i])) for i in order]

    def search(self, query: str, k: Optional[int] = None) -> List[str]:
        return [text for text, _, _ in self.search_documents(query, k)]

    def relevant_context(self, query: str, k: Optional[int] = None) -> str:
        return "\n\n".join(self.search(query, k))

"""Public interface definitions for the ingestion engine's seams.

Format extractors and every external collaborator are accessed exclusively
through the abstract base classes defined in this package.  Concrete
adapters implement these interfaces and are injected at runtime.

CONCRETE IMPLEMENTATION MAP:
    Interface                  →  Concrete implementations
    ─────────────────────────────────────────────────────────────────────
    IDocumentExtractor         →  PDFExtractor, TXTExtractor, DOCXExtractor,
                                  DOCExtractor, FB2Extractor, EPUBExtractor
                                  (src/services/ingestion/extractors/)
    IDedupStore                →  SQLiteDedupStore, MemoryDedupStore
                                  (src/providers/dedup/)
    IEmbeddingProvider         →  supplied by the embedding service
    IVectorStoreProvider       →  supplied by the vector database

Re-exports
----------
IDocumentExtractor
    Signature check + text extraction contract.
IDedupStore
    Content-hash "find by hash" / register contract.
IEmbeddingProvider
    Text-embedding generation contract.
IVectorStoreProvider
    Vector record storage contract.
"""

from src.interfaces.dedup_store import IDedupStore
from src.interfaces.document_extractor import IDocumentExtractor
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IDedupStore",
    "IDocumentExtractor",
    "IEmbeddingProvider",
    "IVectorStoreProvider",
]

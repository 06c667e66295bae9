"""Abstract base class for text-embedding service providers.

Defines the contract the indexing hand-off uses to turn chunk text into
vectors.  Concrete adapters (OpenAI, a local model, a test fake) live
outside the ingestion core and are injected at runtime.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the chunk indexer.

    Embeddings are handed to
    :class:`~src.interfaces.vector_store_provider.IVectorStoreProvider` for
    storage.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  The caller already limits
            batch size and paces successive calls.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.  Each
            inner list has length equal to :meth:`get_dimension`.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        This value must remain constant for the lifetime of the provider
        instance and must match the dimension configured in the vector store.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

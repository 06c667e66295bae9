"""Format-specific text extractors.

Each module holds one :class:`~src.interfaces.document_extractor.IDocumentExtractor`
implementation.  ``DEFAULT_EXTRACTORS`` lists them in registry resolution order.
"""

from src.services.ingestion.extractors.doc_extractor import DOCExtractor
from src.services.ingestion.extractors.docx_extractor import DOCXExtractor
from src.services.ingestion.extractors.epub_extractor import EPUBExtractor
from src.services.ingestion.extractors.fb2_extractor import FB2Extractor
from src.services.ingestion.extractors.pdf_extractor import PDFExtractor
from src.services.ingestion.extractors.txt_extractor import TXTExtractor

DEFAULT_EXTRACTORS = (
    PDFExtractor,
    TXTExtractor,
    FB2Extractor,
    EPUBExtractor,
    DOCXExtractor,
    DOCExtractor,
)

__all__ = [
    "DEFAULT_EXTRACTORS",
    "DOCExtractor",
    "DOCXExtractor",
    "EPUBExtractor",
    "FB2Extractor",
    "PDFExtractor",
    "TXTExtractor",
]

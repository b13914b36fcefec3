"""Best-effort structural extractors over component source text."""

from .base import BestEffortExtractor, Extraction, ExtractionError
from .contracts import ContractExtractor, DataContract
from .metadata import MetadataExtractor

__all__ = [
    "BestEffortExtractor",
    "ContractExtractor",
    "DataContract",
    "Extraction",
    "ExtractionError",
    "MetadataExtractor",
]

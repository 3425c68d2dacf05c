# Knowledge State Engine
from .registry import StoryRegistry
from .ledger import KnowledgeLedger
from .resolver import TemporalResolver, latest_per_item, partition
from .scanners import ContentScanner, SubstringScanner, WordBoundaryScanner, get_scanner
from .validator import ReferenceValidator, check_reference
from .service import KnowledgeService

__all__ = [
    "StoryRegistry",
    "KnowledgeLedger",
    "TemporalResolver",
    "latest_per_item",
    "partition",
    "ContentScanner",
    "SubstringScanner",
    "WordBoundaryScanner",
    "get_scanner",
    "ReferenceValidator",
    "check_reference",
    "KnowledgeService",
]

"""chaindetect - Restaurant chain detection and materialization."""

from chaindetect.clustering import ChainClusterer, ClusterStats
from chaindetect.confidence import score_confidence
from chaindetect.config import ChainConfig, load_config
from chaindetect.errors import ChainDetectionError, NotFoundError, StorageError, ValidationError
from chaindetect.normalize import normalize_name
from chaindetect.service import ChainDetectionService
from chaindetect.similarity import similarity_ratio
from chaindetect.store import ChainStore, InMemoryChainStore
from chaindetect.types import CandidateCluster, Chain, ChainSummary, DetectionResult, Restaurant

__all__ = [
    "CandidateCluster",
    "Chain",
    "ChainClusterer",
    "ChainConfig",
    "ChainDetectionError",
    "ChainDetectionService",
    "ChainStore",
    "ChainSummary",
    "ClusterStats",
    "DetectionResult",
    "InMemoryChainStore",
    "NotFoundError",
    "Restaurant",
    "StorageError",
    "ValidationError",
    "load_config",
    "normalize_name",
    "score_confidence",
    "similarity_ratio",
]

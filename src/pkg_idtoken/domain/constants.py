from enum import Enum


DEFAULT_ACCEPTED_ALGORITHMS: frozenset[str] = frozenset({"RS256"})

SEGMENT_DELIMITER = "."
DISCOVERY_PATH = "/.well-known/openid-configuration"


class Serialization(Enum):
    COMPACT = "compact"
    JSON = "json"

from .errors import CorruptedLog, HitsError, InvalidResource, StorageUnavailable
from .fingerprint import Fingerprint, VisitorDescriptor, make_hash
from .hitlog import HitLog, HitRecord, resource_key
from .broadcast import GLOBAL_TOPIC, Broadcaster, Subscription
from .recorder import HitRecorder
from .visitors import VisitorRegistry

__version__ = "1.0.0"

__all__ = [
    "Broadcaster", "CorruptedLog", "Fingerprint", "GLOBAL_TOPIC", "HitLog",
    "HitRecord", "HitRecorder", "HitsError", "InvalidResource",
    "StorageUnavailable", "Subscription", "VisitorDescriptor",
    "VisitorRegistry", "make_hash", "resource_key",
]

"""
crossscan — Error Types
"""


class CrossscanError(Exception):
    """Base class for crossscan errors"""


class InvalidFinding(CrossscanError):
    """A raw record cannot be normalized; recovered by exclusion"""

    def __init__(self, reason: str, scanner_id: str = ""):
        super().__init__(reason)
        self.reason = reason
        self.scanner_id = scanner_id


class AmbiguousComparator(CrossscanError):
    """Two group members compare equal under the canonical order"""


class ConfigError(CrossscanError):
    """Invalid or unreadable configuration"""

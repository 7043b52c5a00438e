"""Exception types for GentleCare."""


class GentleCareError(Exception):
    pass


class ConfigError(GentleCareError):
    """Raised when gentlecare.yaml or CLI overrides are invalid."""


class LedgerError(GentleCareError):
    """The privacy ledger's signing key is missing, unreadable or not Ed25519."""

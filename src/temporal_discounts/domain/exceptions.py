"""
Custom exceptions
"""


class DiscountEngineError(Exception):
    """Base exception"""
    pass


class RuleConfigurationError(DiscountEngineError):
    """Malformed discount rule configuration"""
    pass

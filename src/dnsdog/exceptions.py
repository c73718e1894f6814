"""Exceptions raised by dnsdog."""


class DNSDogError(Exception):
    """Base class for dnsdog errors"""


class CaptureError(DNSDogError):
    """The packet source failed; watching cannot continue"""


class DecodeError(DNSDogError):
    """A payload could not be decoded as a DNS message"""


class ConfigError(DNSDogError):
    """Invalid or unreadable configuration"""

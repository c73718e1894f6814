"""
dnsdog utilities

- colors: Terminal color output utilities
- logger: Logging system
- network: Interface lookup and address parsing
"""

from .colors import (
    Colors,
    colorize,
    print_header,
    print_info,
    print_error
)

from .logger import (
    setup_logger,
    get_logger
)

from .network import (
    get_iface,
    validate_cidr,
    validate_port,
    parse_address
)

__all__ = [
    # Color utilities
    'Colors',
    'colorize',
    'print_header',
    'print_info',
    'print_error',

    # Logger utilities
    'setup_logger',
    'get_logger',

    # Network utilities
    'get_iface',
    'validate_cidr',
    'validate_port',
    'parse_address'
]

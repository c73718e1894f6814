"""
Network utility functions for dnsdog
"""
import ipaddress
import socket
from typing import Optional, Tuple

import psutil

from ..exceptions import ConfigError
from .logger import get_logger

logger = get_logger(__name__)


def get_iface(cidr: str) -> Optional[str]:
    """
        Get Interface Name by CIDR
    """
    try:
        network = ipaddress.ip_network(cidr, strict=False)
    except ValueError as e:
        logger.error(f"Invalid CIDR format '{cidr}': {e}")
        return None

    for interface_name, addresses in psutil.net_if_addrs().items():
        for addr in addresses:
            if addr.family != socket.AF_INET or not addr.netmask:
                continue
            try:
                interface_ip = ipaddress.ip_address(addr.address)
                interface_network = ipaddress.ip_network(f"{addr.address}/{addr.netmask}", strict=False)
            except ValueError as e:
                logger.debug(f"Error processing interface {interface_name}: {e}")
                continue
            if interface_ip in network or network.overlaps(interface_network):
                logger.info(f"Found interface {interface_name} for CIDR {cidr}")
                return interface_name

    logger.warning(f"No interface found for CIDR {cidr}")
    return None


def validate_cidr(cidr: str) -> bool:
    """
    Validate CIDR format
    """
    try:
        if '/' not in cidr:
            return False
        ipaddress.ip_network(cidr, strict=False)
        return True
    except ValueError:
        return False


def validate_port(port: int) -> bool:
    return 1 <= port <= 65535


def parse_address(address: str, default_port: int) -> Tuple[str, int]:
    """Split "host:port" (or "[v6]:port", or a bare host) into its parts."""
    address = address.strip()
    if not address:
        raise ConfigError("empty address")

    if address.startswith('['):
        host, sep, rest = address[1:].partition(']')
        if not sep:
            raise ConfigError(f"unterminated IPv6 address: {address}")
        port_str = rest[1:] if rest.startswith(':') else ""
    elif address.count(':') == 1:
        host, port_str = address.split(':')
    else:
        host, port_str = address, ""

    if not port_str:
        return host, default_port
    try:
        port = int(port_str)
    except ValueError:
        raise ConfigError(f"invalid port in address: {address}") from None
    if not validate_port(port):
        raise ConfigError(f"port out of range in address: {address}")
    return host, port

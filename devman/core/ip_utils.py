"""
IP address utilities.
"""
from ipaddress import ip_address


def is_valid_ip(ip: str) -> bool:
    """Check if string is a valid IPv4 or IPv6 address."""
    try:
        ip_address(ip.strip())
        return True
    except ValueError:
        return False

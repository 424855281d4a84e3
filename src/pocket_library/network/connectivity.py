"""Point-in-time network reachability check.

Looks only at the local interface table (no packets leave the machine), so
it always answers promptly. An interface counts when it is up, is not
loopback, carries an IPv4 or global IPv6 address, and its name looks like
WiFi, cellular or wired Ethernet. Anything unexpected reads as offline.
"""

import logging
import socket
import sys
from enum import Enum

import psutil

logger = logging.getLogger(__name__)


class NetworkType(str, Enum):
    WIFI = "wifi"
    CELLULAR = "cellular"
    WIRED = "wired"
    NONE = "none"


_LABELS = {
    NetworkType.WIFI: "WiFi",
    NetworkType.CELLULAR: "Mobile Data",
    NetworkType.WIRED: "Ethernet",
    NetworkType.NONE: "No Connection",
}

# Interface naming heuristics, checked in this order. Prefixes match the
# start of Linux/macOS/Android names; words match anywhere (Windows names).
_NAME_HINTS = (
    (NetworkType.WIFI, ("wlan", "wlp", "wlx", "airport"),
     ("wi-fi", "wifi", "wireless")),
    (NetworkType.CELLULAR, ("wwan", "rmnet", "pdp_ip", "ccmni", "ppp"),
     ("cellular", "mobile broadband")),
    (NetworkType.WIRED, ("eth", "en"),
     ("ethernet", "local area connection")),
)


def classify_interface(name: str, platform: str = sys.platform) -> NetworkType:
    """Guess the transport of an interface from its name."""
    lowered = name.lower()
    if lowered == "lo" or lowered.startswith("loopback"):
        return NetworkType.NONE
    # macOS names Wi-Fi and Ethernet alike; en0 is the built-in Wi-Fi on
    # laptops, other enN ports are Ethernet or adapters
    if platform == "darwin" and lowered == "en0":
        return NetworkType.WIFI
    for net_type, prefixes, words in _NAME_HINTS:
        if lowered.startswith(prefixes) or any(w in lowered for w in words):
            return net_type
    return NetworkType.NONE


def _has_usable_address(addresses) -> bool:
    for addr in addresses:
        if addr.family == socket.AF_INET and not addr.address.startswith("127."):
            return True
        if addr.family == socket.AF_INET6:
            host = addr.address.split("%", 1)[0].lower()
            if host != "::1" and not host.startswith("fe80"):
                return True
    return False


class ConnectivityProbe:
    """Synchronous online/offline check. Never raises."""

    def connection_type(self) -> NetworkType:
        """The first usable transport found, or NONE."""
        try:
            stats = psutil.net_if_stats()
            addrs = psutil.net_if_addrs()
        except Exception as e:
            logger.debug(f"Could not read interface table: {e}")
            return NetworkType.NONE

        found = NetworkType.NONE
        for iface, st in stats.items():
            if not st.isup:
                continue
            net_type = classify_interface(iface)
            if net_type is NetworkType.NONE:
                continue
            if not _has_usable_address(addrs.get(iface, ())):
                continue
            # Prefer WiFi/wired over a cellular link that is also up
            if net_type is not NetworkType.CELLULAR:
                return net_type
            found = net_type
        return found

    def is_online(self) -> bool:
        return self.connection_type() is not NetworkType.NONE

    def connection_label(self) -> str:
        """Human-readable connection type for status displays."""
        return _LABELS[self.connection_type()]

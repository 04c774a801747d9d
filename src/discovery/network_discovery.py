"""
Network discovery helpers: address ranges and bounded concurrent host probing
"""

import socket
import asyncio
import ipaddress
import time
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

Probe = Callable[[str], Awaitable[Optional[Any]]]

def is_valid_network_mask(network_mask: str) -> bool:
    """Check IPv4 CIDR notation, e.g. 192.168.1.0/24"""
    if not network_mask or network_mask.count('/') != 1:
        return False
    address, prefix = network_mask.split('/')
    if not prefix.isdigit() or not 0 <= int(prefix) <= 32:
        return False
    octets = address.split('.')
    if len(octets) != 4:
        return False
    return all(octet.isdigit() and 0 <= int(octet) <= 255 for octet in octets)

def parse_network_mask(network_mask: str) -> ipaddress.IPv4Network:
    """Validate a CIDR network mask and return the network it names"""
    if not is_valid_network_mask(network_mask):
        raise ValueError(
            f"Invalid network mask format: {network_mask}. Expected CIDR notation (e.g., 192.168.1.0/24)"
        )
    return ipaddress.IPv4Network(network_mask.strip(), strict=False)

def network_hosts(network: ipaddress.IPv4Network) -> Iterator[str]:
    """Usable host addresses of a network, generated lazily"""
    for ip in network.hosts():
        yield str(ip)

def detect_local_network() -> Optional[str]:
    """Detect the local /24 network (e.g. '192.168.1.0/24'), None when unknown"""
    try:
        # No packet is sent, connect() only selects the outbound interface
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            local_ip = s.getsockname()[0]
        network = ipaddress.IPv4Network(f"{local_ip}/24", strict=False)
        logger.debug(f"Detected local network: {network}")
        return str(network)
    except OSError as e:
        logger.warning(f"Could not determine local network: {e}")
        return None

def is_allowed_lan_address(ip_address: str) -> bool:
    """True for private IPv4 LAN addresses (10/8, 172.16/12, 192.168/16)"""
    try:
        ip = ipaddress.ip_address(ip_address)
    except ValueError:
        return False
    if ip.version != 4 or ip.is_loopback:
        return False
    return any(ip in ipaddress.IPv4Network(net) for net in ('10.0.0.0/8', '172.16.0.0/12', '192.168.0.0/16'))

async def scan_hosts(hosts: Iterable[str], probe: Probe, max_concurrency: int = 32,
                     timeout: Optional[float] = None) -> List[Any]:
    """
    Probe hosts with a fixed pool of max_concurrency workers pulling from one
    shared iterator, so hosts may be a lazy generator of any size.
    Probes that raise or return None are dropped. When timeout expires the
    workers are cancelled and the results gathered so far are returned.
    Results come back in host order.
    """
    pending_hosts = enumerate(hosts)
    results: Dict[int, Any] = {}
    probed = 0
    start_time = time.time()

    async def scan_worker():
        nonlocal probed
        for index, ip in pending_hosts:
            probed += 1
            try:
                found = await probe(ip)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.debug(f"Probe failed for {ip}: {e}")
                continue
            if found is not None:
                results[index] = found

    workers = [asyncio.create_task(scan_worker()) for _ in range(max(1, max_concurrency))]

    try:
        _, pending = await asyncio.wait(workers, timeout=timeout)
    except asyncio.CancelledError:
        for worker in workers:
            worker.cancel()
        raise

    if pending:
        logger.warning(f"Scan timed out after {timeout}s with {probed} hosts probed")
        for worker in pending:
            worker.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    duration = time.time() - start_time
    logger.info(f"Scanned {probed} hosts in {duration:.1f}s, {len(results)} responded")
    return [results[index] for index in sorted(results)]

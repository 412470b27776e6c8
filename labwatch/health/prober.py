"""TCP prober — one bounded connect attempt per service.

A service is healthy iff a TCP connection to ``host:port`` establishes
within the timeout. Targets that don't parse as an IP address and port
count as unhealthy; probing never aborts on a single bad entry.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import time
from collections.abc import Iterable

from .models import ProbeResult, Service

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 2.0  # seconds per connect attempt


def parse_target(service: Service) -> tuple[str, int] | None:
    """Return a connectable (ip, port) pair, or None if the target is malformed."""
    try:
        ip = ipaddress.ip_address(service.host.strip())
    except ValueError:
        return None
    raw_port = service.port.strip()
    # ASCII decimal digits only
    if not (raw_port.isascii() and raw_port.isdigit()):
        return None
    port = int(raw_port)
    if not 0 <= port <= 65535:
        return None
    return str(ip), port


def probe_service(service: Service, timeout: float = PROBE_TIMEOUT) -> bool:
    """Raw TCP connectivity check for a single service."""
    target = parse_target(service)
    if target is None:
        logger.debug("Malformed target for %s: %r", service.name, service.address)
        return False

    t0 = time.perf_counter()
    try:
        sock = socket.create_connection(target, timeout=timeout)
        sock.close()
    except OSError as e:
        logger.debug(
            "TCP connect to %s failed after %.0fms: %s: %s",
            service.address, (time.perf_counter() - t0) * 1000, type(e).__name__, e,
        )
        return False
    return True


def probe(services: Iterable[Service], timeout: float = PROBE_TIMEOUT) -> list[ProbeResult]:
    """Probe each service sequentially, preserving input order."""
    results = []
    for service in services:
        healthy = probe_service(service, timeout)
        if not healthy:
            logger.warning("%s (%s) is DOWN", service.name, service.address)
        results.append(ProbeResult(service=service, healthy=healthy))

    if results and aggregate(results):
        logger.info("All systems normal")
    return results


def aggregate(results: Iterable[ProbeResult]) -> bool:
    """Overall verdict — every service up. An empty list is healthy."""
    return all(r.healthy for r in results)

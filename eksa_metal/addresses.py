from __future__ import annotations

import ipaddress
from dataclasses import dataclass

from .constants import (
    ADMIN_IP_OFFSET,
    FIRST_WORKER_OFFSET,
    MIN_IP_BLOCK_QUANTITY,
    POOL_VIP_TOP_OFFSET,
    TINK_VIP_TOP_OFFSET,
)
from .errors import ClusterValidationError


@dataclass(frozen=True)
class AddressSet:
    admin_ip: str
    pool_vip: str
    tink_vip: str
    worker_ips: tuple[str, ...]

    @property
    def worker_ips_csv(self) -> str:
        return ",".join(self.worker_ips)

    def all(self) -> list[str]:
        return [self.admin_ip, self.pool_vip, self.tink_vip, *self.worker_ips]


def validate_capacity(quantity: int, worker_count: int) -> None:
    """
    Reject a block layout where the worker range would reach the VIPs.

    Workers grow upwards from just after the admin address; the two VIPs sit
    at the top of the block. The last worker offset must stay below tinkVIP.
    """
    if quantity < MIN_IP_BLOCK_QUANTITY or quantity & (quantity - 1):
        raise ClusterValidationError(
            f"IP block quantity must be a power of two >= {MIN_IP_BLOCK_QUANTITY}. Got: {quantity}"
        )
    if worker_count < 0:
        raise ClusterValidationError(f"Worker count must be >= 0. Got: {worker_count}")

    last_free = quantity - TINK_VIP_TOP_OFFSET
    if FIRST_WORKER_OFFSET + worker_count > last_free:
        raise ClusterValidationError(
            f"{worker_count} workers do not fit in a block of {quantity} addresses "
            f"(at most {last_free - FIRST_WORKER_OFFSET})"
        )


def host(network: ipaddress.IPv4Network | ipaddress.IPv6Network, offset: int) -> str:
    """The address `offset` hosts above the network address."""
    if not 0 <= offset < network.num_addresses:
        raise ClusterValidationError(f"Host offset {offset} is outside {network}")
    return str(network[offset])


def partition(
    cidr: str,
    quantity: int,
    *,
    control_plane_count: int,
    data_plane_count: int,
) -> AddressSet:
    """
    Carve the fixed-purpose addresses out of one reserved block.

    Layout (host offsets):
      - 2            admin node
      - 3 .. 3+W-1   workers, control plane first then data plane
      - Q-3          tink VIP
      - Q-2          load-balancer pool VIP
    """
    worker_count = control_plane_count + data_plane_count
    validate_capacity(quantity, worker_count)

    network = ipaddress.ip_network(cidr, strict=False)
    if network.num_addresses != quantity:
        raise ClusterValidationError(
            f"Block {cidr} holds {network.num_addresses} addresses, expected {quantity}"
        )

    return AddressSet(
        admin_ip=host(network, ADMIN_IP_OFFSET),
        pool_vip=host(network, quantity - POOL_VIP_TOP_OFFSET),
        tink_vip=host(network, quantity - TINK_VIP_TOP_OFFSET),
        worker_ips=tuple(host(network, FIRST_WORKER_OFFSET + i) for i in range(worker_count)),
    )

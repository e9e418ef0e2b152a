from dataclasses import dataclass

import pulumi

from ..addresses import AddressSet
from ..asyncvalue import AsyncValue
from ..config.models import ClusterSpec
from ..constants import (
    IPXE_URL_TEMPLATE,
    TAG_TINK_WORKER,
    WORKER_NETWORK_TYPE,
    WORKER_OPERATING_SYSTEM,
    WORKER_PORT,
)
from ..graph import ResourceGraph
from ..providers.equinix import attach_to_vlan, create_device


@dataclass(frozen=True)
class DeviceNode:
    role: str
    index: int
    hostname: str
    device_type: str
    tags: tuple[pulumi.Input[str], ...]
    ipxe_url: AsyncValue[str] | None = None
    custom_data: AsyncValue[str] | None = None


def ipxe_url(addresses: AsyncValue[AddressSet]) -> AsyncValue[str]:
    """Boot URL served by the admin node. Shared by every worker in every pool."""
    return addresses.map(
        lambda a: IPXE_URL_TEMPLATE.format(admin_ip=a.admin_ip),
        label="admin.ipxe_url",
    )


def provision_pool(
    graph: ResourceGraph,
    *,
    spec: ClusterSpec,
    role: str,
    count: int,
    device_type: str,
    vlan_vnid: AsyncValue[int],
    boot_url: AsyncValue[str],
    cluster_tag: AsyncValue[str],
) -> list[DeviceNode]:
    """
    Provision `count` identical workers named "{role}-{i}" for i in 1..count.

    Per worker:
      - device, booting over iPXE from boot_url
      - network type switched to layer2-individual
      - eth0 attached to the cluster VLAN once the switch has completed

    Workers do not depend on each other; only on the VLAN and the boot URL.
    """
    tags: tuple[pulumi.Input[str], ...] = (role, TAG_TINK_WORKER, cluster_tag.output)
    nodes: list[DeviceNode] = []

    for i in range(1, count + 1):
        hostname = f"{role}-{i}"
        create_device(
            graph,
            hostname,
            spec=spec,
            plan=device_type,
            operating_system=WORKER_OPERATING_SYSTEM,
            tags=list(tags),
            inputs=[cluster_tag],
            ipxe_url=boot_url,
        )
        attach_to_vlan(
            graph,
            hostname,
            vlan_vnid=vlan_vnid,
            network_type=WORKER_NETWORK_TYPE,
            port_name=WORKER_PORT,
        )
        nodes.append(
            DeviceNode(
                role=role,
                index=i,
                hostname=hostname,
                device_type=device_type,
                tags=tags,
                ipxe_url=boot_url,
            )
        )

    return nodes

import ipaddress

import pulumi
import pulumi_equinix as equinix

from ..asyncvalue import AsyncValue
from ..config.models import ClusterSpec, ProviderSettings, ReservedBlock
from ..constants import IP_BLOCK_TYPE
from ..errors import ClusterValidationError, ProviderError
from ..graph import ResourceGraph

VLAN = "vlan"
RESERVED_IP_BLOCK = "reserved-ip-block"
GATEWAY = "gateway"


def create_equinix_provider(settings: ProviderSettings) -> equinix.Provider:
    if not settings.auth_token:
        raise ClusterValidationError("Missing env var: METAL_AUTH_TOKEN")

    return equinix.Provider(
        "equinix",
        auth_token=settings.auth_token,
        max_retries=settings.max_retries,
    )


def create_vlan(graph: ResourceGraph, spec: ClusterSpec) -> AsyncValue[int]:
    """Create the cluster VLAN. Returns its VXLAN id, which ports attach to."""
    vlan = graph.add(
        VLAN,
        lambda opts: equinix.metal.Vlan(
            VLAN,
            metro=spec.metro,
            project_id=spec.project_id,
            description=f"Managed by Pulumi (eksa-metal). Cluster={spec.cluster_name}.",
            opts=opts,
        ),
    )
    return graph.value(VLAN, vlan.vxlan, attr="vxlan")


def reserve_ip_block(
    graph: ResourceGraph,
    spec: ClusterSpec,
    *,
    cluster_tag: AsyncValue[str],
) -> AsyncValue[ReservedBlock]:
    """
    Reserve the public block every cluster address is carved from and bind it
    to the VLAN through a gateway.
    """
    block = graph.add(
        RESERVED_IP_BLOCK,
        lambda opts: equinix.metal.ReservedIpBlock(
            RESERVED_IP_BLOCK,
            project_id=spec.project_id,
            metro=spec.metro,
            type=IP_BLOCK_TYPE,
            quantity=spec.ip_block_quantity,
            tags=[cluster_tag.output],
            opts=opts,
        ),
        inputs=[cluster_tag],
    )

    vlan_id = graph.value(VLAN, graph.resource(VLAN).id, attr="id")
    block_id = graph.value(RESERVED_IP_BLOCK, block.id, attr="id")
    graph.add(
        GATEWAY,
        lambda opts: equinix.metal.Gateway(
            GATEWAY,
            project_id=spec.project_id,
            vlan_id=vlan_id.output,
            ip_reservation_id=block_id.output,
            opts=opts,
        ),
        inputs=[vlan_id, block_id],
        depends_on=[VLAN, RESERVED_IP_BLOCK],
    )

    fields = AsyncValue.join_all(
        graph.value(RESERVED_IP_BLOCK, block.cidr_notation, attr="cidr_notation"),
        graph.value(RESERVED_IP_BLOCK, block.quantity, attr="quantity"),
        graph.value(RESERVED_IP_BLOCK, block.netmask, attr="netmask"),
        graph.value(RESERVED_IP_BLOCK, block.gateway, attr="gateway"),
    )
    return fields.map(
        lambda xs: to_reserved_block(*xs, expected_quantity=spec.ip_block_quantity),
        label=f"{RESERVED_IP_BLOCK}.resolved",
    )


def to_reserved_block(
    cidr: str,
    quantity: int,
    netmask: str,
    gateway: str,
    *,
    expected_quantity: int,
) -> ReservedBlock:
    try:
        network = ipaddress.ip_network(cidr, strict=False)
    except ValueError as e:
        raise ProviderError(RESERVED_IP_BLOCK, f"unusable CIDR {cidr!r}: {e}") from e

    quantity = int(quantity)
    if quantity != expected_quantity or network.num_addresses != quantity:
        raise ProviderError(
            RESERVED_IP_BLOCK,
            f"requested {expected_quantity} addresses, got {cidr} ({quantity} reported)",
        )

    return ReservedBlock(cidr=cidr, quantity=quantity, netmask=netmask, gateway=gateway)


def create_device(
    graph: ResourceGraph,
    name: str,
    *,
    spec: ClusterSpec,
    plan: str,
    operating_system: str,
    tags: list[pulumi.Input[str]],
    inputs: list[AsyncValue] | None = None,
    ipxe_url: AsyncValue[str] | None = None,
    user_data: AsyncValue[str] | None = None,
    custom_data: AsyncValue[str] | None = None,
) -> equinix.metal.Device:
    """
    Request one bare-metal device.

    Workers boot over iPXE from the admin node; the admin boots a stock OS and
    gets its cloud-init user data plus the cluster payload as custom data.
    """
    inputs = list(inputs or [])
    inputs += [v for v in (ipxe_url, user_data, custom_data) if v is not None]

    return graph.add(
        name,
        lambda opts: equinix.metal.Device(
            name,
            hostname=name,
            plan=plan,
            metro=spec.metro,
            project_id=spec.project_id,
            operating_system=operating_system,
            billing_cycle=spec.billing_cycle,
            ipxe_script_url=ipxe_url.output if ipxe_url else None,
            always_pxe=True if ipxe_url else None,
            user_data=user_data.output if user_data else None,
            custom_data=custom_data.output if custom_data else None,
            tags=tags,
            opts=opts,
        ),
        inputs=inputs,
    )


def attach_to_vlan(
    graph: ResourceGraph,
    device_name: str,
    *,
    vlan_vnid: AsyncValue[int],
    network_type: str,
    port_name: str,
) -> equinix.metal.PortVlanAttachment:
    """
    Switch a device's network mode, then attach one of its ports to the VLAN.

    The attachment takes its device id from the network-type resource and
    depends on it, so it is only requested once the mode switch has completed.
    """
    device_id = graph.value(device_name, graph.resource(device_name).id, attr="id")
    network_type_name = f"{device_name}-network-type"
    mode = graph.add(
        network_type_name,
        lambda opts: equinix.metal.DeviceNetworkType(
            network_type_name,
            device_id=device_id.output,
            type=network_type,
            opts=opts,
        ),
        inputs=[device_id],
    )

    switched_device_id = graph.value(network_type_name, mode.device_id, attr="device_id")
    attachment_name = f"{device_name}-vlan-attachment"
    return graph.add(
        attachment_name,
        lambda opts: equinix.metal.PortVlanAttachment(
            attachment_name,
            device_id=switched_device_id.output,
            port_name=port_name,
            vlan_vnid=vlan_vnid.output,
            opts=opts,
        ),
        inputs=[switched_device_id, vlan_vnid],
        depends_on=[network_type_name],
    )

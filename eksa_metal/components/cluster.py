from dataclasses import dataclass
from typing import Optional

import pulumi

from ..addresses import AddressSet, partition
from ..asyncvalue import AsyncValue
from ..config.models import ClusterSpec, ReservedBlock
from ..constants import (
    ADMIN_NETWORK_TYPE,
    ADMIN_PORT,
    COMPONENT_TYPE,
    ROLE_ADMIN,
    ROLE_CONTROL_PLANE,
    ROLE_DATA_PLANE,
    TAG_TINK_PROVISIONER,
)
from ..graph import ResourceGraph
from ..providers.equinix import attach_to_vlan, create_device, create_vlan, reserve_ip_block
from ..providers.identity import create_credentials
from .bootstrap import assemble_admin_payload, render_admin_user_data
from .pool import DeviceNode, ipxe_url, provision_pool


@dataclass(frozen=True)
class ClusterOutputs:
    admin_ip: pulumi.Output[str]
    private_ssh_key: pulumi.Output[str]


def partition_block(spec: ClusterSpec, block: AsyncValue[ReservedBlock]) -> AsyncValue[AddressSet]:
    """The one AddressSet every consumer reads from."""
    return block.map(
        lambda b: partition(
            b.cidr,
            b.quantity,
            control_plane_count=spec.control_plane_count,
            data_plane_count=spec.data_plane_count,
        ),
        label="addresses",
    )


class Cluster(pulumi.ComponentResource):
    """
    EKS Anywhere bare-metal cluster on Equinix Metal.

    Build order:
      1) credentials: API key, cluster tag, keypair (+ project SSH key)
      2) network: VLAN, reserved IP block, gateway binding the two
      3) addresses carved out of the block once its CIDR is known
      4) control-plane and data-plane pools (iPXE from the admin node)
      5) admin node carrying the cluster payload, attached to the VLAN

    Only adminIp and privateSshKey are exposed; everything else stays in
    self.graph.
    """

    admin_ip: pulumi.Output[str]
    private_ssh_key: pulumi.Output[str]

    def __init__(
        self,
        name: str,
        spec: ClusterSpec,
        *,
        provider: Optional[pulumi.ProviderResource] = None,
        opts: Optional[pulumi.ResourceOptions] = None,
    ) -> None:
        # nothing is registered for an invalid request
        spec.validate()
        if provider is not None:
            opts = pulumi.ResourceOptions.merge(opts, pulumi.ResourceOptions(providers=[provider]))
        super().__init__(COMPONENT_TYPE, name, None, opts)

        self.spec = spec
        self.graph = ResourceGraph(self)
        graph = self.graph

        # 1) credentials
        credentials = create_credentials(graph, spec)

        # 2) network
        vlan_vnid = create_vlan(graph, spec)
        block = reserve_ip_block(graph, spec, cluster_tag=credentials.cluster_tag)

        # 3) addresses
        addresses = partition_block(spec, block)
        self.addresses = addresses
        boot_url = ipxe_url(addresses)

        # 4) worker pools
        self.control_plane: list[DeviceNode] = provision_pool(
            graph,
            spec=spec,
            role=ROLE_CONTROL_PLANE,
            count=spec.control_plane_count,
            device_type=spec.control_plane_device_type,
            vlan_vnid=vlan_vnid,
            boot_url=boot_url,
            cluster_tag=credentials.cluster_tag,
        )
        self.data_plane: list[DeviceNode] = provision_pool(
            graph,
            spec=spec,
            role=ROLE_DATA_PLANE,
            count=spec.data_plane_count,
            device_type=spec.data_plane_device_type,
            vlan_vnid=vlan_vnid,
            boot_url=boot_url,
            cluster_tag=credentials.cluster_tag,
        )

        # 5) admin
        payload = assemble_admin_payload(
            spec=spec,
            credentials=credentials,
            block=block,
            addresses=addresses,
        )
        self.admin = self._provision_admin(payload, vlan_vnid)
        self.admin_payload = payload

        self.admin_ip = addresses.map(lambda a: a.admin_ip, label="outputs.admin_ip").output
        self.private_ssh_key = pulumi.Output.secret(credentials.private_key.output)

        pulumi.log.info(
            f"{name}: {len(graph)} resources planned for "
            f"{spec.control_plane_count} control-plane + {spec.data_plane_count} data-plane workers",
            resource=self,
        )

        self.register_outputs({
            "adminIp": self.admin_ip,
            "privateSshKey": self.private_ssh_key,
        })

    @property
    def cluster_outputs(self) -> ClusterOutputs:
        return ClusterOutputs(admin_ip=self.admin_ip, private_ssh_key=self.private_ssh_key)

    @property
    def workers(self) -> list[DeviceNode]:
        return [*self.control_plane, *self.data_plane]

    def _provision_admin(self, payload: AsyncValue[str], vlan_vnid: AsyncValue[int]) -> DeviceNode:
        spec = self.spec
        tags = (TAG_TINK_PROVISIONER,)

        create_device(
            self.graph,
            ROLE_ADMIN,
            spec=spec,
            plan=spec.admin_plan,
            operating_system=spec.admin_operating_system,
            tags=list(tags),
            user_data=render_admin_user_data(self.graph),
            custom_data=payload,
        )
        attach_to_vlan(
            self.graph,
            ROLE_ADMIN,
            vlan_vnid=vlan_vnid,
            network_type=ADMIN_NETWORK_TYPE,
            port_name=ADMIN_PORT,
        )

        return DeviceNode(
            role=ROLE_ADMIN,
            index=0,
            hostname=ROLE_ADMIN,
            device_type=spec.admin_plan,
            tags=tags,
            custom_data=payload,
        )

import json
import os
from typing import Any

import pulumi
import pulumi_cloudinit as cloudinit

from ..addresses import AddressSet
from ..asyncvalue import AsyncValue
from ..config.models import ClusterSpec, ReservedBlock
from ..graph import ResourceGraph
from ..providers.identity import Credentials

ADMIN_USER_DATA = "admin-user-data"

CLOUD_CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "cloud-config")

# (file, MIME type) in the order cloud-init runs them
ADMIN_USER_DATA_PARTS = [
    ("admin-step-1.yaml", "text/cloud-config"),
    ("admin-step-2.sh", "text/x-shellscript"),
    ("admin-step-3.sh", "text/x-shellscript"),
]

# Field order of the admin custom data document
ADMIN_PAYLOAD_FIELDS = (
    "apiKey",
    "clusterName",
    "clusterTag",
    "projectID",
    "cidr",
    "netmask",
    "gateway",
    "adminIP",
    "poolVIP",
    "tinkVIP",
    "workerIPs",
    "publicSshKey",
    "privateSshKey",
    "controlPlaneCount",
    "dataPlaneCount",
)


def _read_part(filename: str) -> str:
    path = os.path.join(CLOUD_CONFIG_DIR, filename)
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def render_admin_user_data(graph: ResourceGraph) -> AsyncValue[str]:
    """Multi-part cloud-init document that turns the admin node into the provisioner."""
    parts = [
        cloudinit.ConfigPartArgs(content_type=content_type, content=_read_part(filename))
        for filename, content_type in ADMIN_USER_DATA_PARTS
    ]
    config = graph.add(
        ADMIN_USER_DATA,
        lambda opts: cloudinit.Config(
            ADMIN_USER_DATA,
            gzip=False,
            base64_encode=False,
            parts=parts,
            opts=opts,
        ),
    )
    return graph.value(ADMIN_USER_DATA, config.rendered, attr="rendered")


def serialize_payload(values: tuple[Any, ...]) -> str:
    if len(values) != len(ADMIN_PAYLOAD_FIELDS):
        raise ValueError(f"expected {len(ADMIN_PAYLOAD_FIELDS)} payload values, got {len(values)}")
    return json.dumps(dict(zip(ADMIN_PAYLOAD_FIELDS, values)))


def assemble_admin_payload(
    *,
    spec: ClusterSpec,
    credentials: Credentials,
    block: AsyncValue[ReservedBlock],
    addresses: AsyncValue[AddressSet],
) -> AsyncValue[str]:
    """
    Everything the admin node needs to drive the rest of the install, as one
    JSON document delivered through the device's custom data.

    The document carries the API token and the private key, so the result is
    a secret.
    """
    joined = AsyncValue.join_all(
        credentials.api_token,
        AsyncValue.of(spec.cluster_name, label="spec.cluster_name"),
        credentials.cluster_tag,
        AsyncValue.of(spec.project_id, label="spec.project_id"),
        block.map(lambda b: b.cidr, label="block.cidr"),
        block.map(lambda b: b.netmask, label="block.netmask"),
        block.map(lambda b: b.gateway, label="block.gateway"),
        addresses.map(lambda a: a.admin_ip, label="addresses.admin_ip"),
        addresses.map(lambda a: a.pool_vip, label="addresses.pool_vip"),
        addresses.map(lambda a: a.tink_vip, label="addresses.tink_vip"),
        addresses.map(lambda a: a.worker_ips_csv, label="addresses.worker_ips"),
        credentials.public_key,
        credentials.private_key,
        AsyncValue.of(spec.control_plane_count, label="spec.control_plane_count"),
        AsyncValue.of(spec.data_plane_count, label="spec.data_plane_count"),
        label="admin.payload_fields",
    )
    payload = joined.map(serialize_payload, label="admin.custom_data")
    return AsyncValue(pulumi.Output.secret(payload.output), label=payload.label, sources=payload.sources)

from dataclasses import dataclass

import pulumi
import pulumi_equinix as equinix
import pulumi_random as random
import pulumi_tls as tls

from ..asyncvalue import AsyncValue
from ..config.models import ClusterSpec
from ..constants import (
    CLUSTER_TAG_LENGTH,
    SSH_KEY_ALGORITHM,
    SSH_KEY_RSA_BITS,
    SSH_KEY_SUFFIX_LENGTH,
)
from ..graph import ResourceGraph

API_KEY = "api-key"
CLUSTER_TAG = "cluster-unique-tag"
PRIVATE_KEY = "private-key"
SSH_KEY_SUFFIX = "ssh-key-suffix"
SSH_KEY = "ssh-key"


@dataclass(frozen=True)
class Credentials:
    api_token: AsyncValue[str]
    cluster_tag: AsyncValue[str]
    public_key: AsyncValue[str]
    private_key: AsyncValue[str]


def _random_string(graph: ResourceGraph, name: str, length: int) -> AsyncValue[str]:
    rs = graph.add(
        name,
        lambda opts: random.RandomString(
            name,
            length=length,
            special=False,
            upper=False,
            opts=opts,
        ),
    )
    return graph.value(name, rs.result, attr="result")


def create_credentials(graph: ResourceGraph, spec: ClusterSpec) -> Credentials:
    """
    Identity resources for the cluster. None of them depend on each other
    or on the network, except the project SSH key which needs the keypair.
    """
    api_key = graph.add(
        API_KEY,
        lambda opts: equinix.metal.ProjectApiKey(
            API_KEY,
            project_id=spec.project_id,
            read_only=spec.api_key_read_only,
            description=f"{'Read-only' if spec.api_key_read_only else 'Read-write'} "
            f"API key for EKS-A cluster {spec.cluster_name}",
            opts=opts,
        ),
    )

    cluster_tag = _random_string(graph, CLUSTER_TAG, CLUSTER_TAG_LENGTH)

    private_key = graph.add(
        PRIVATE_KEY,
        lambda opts: tls.PrivateKey(
            PRIVATE_KEY,
            algorithm=SSH_KEY_ALGORITHM,
            rsa_bits=SSH_KEY_RSA_BITS,
            opts=opts,
        ),
    )
    public_key = graph.value(PRIVATE_KEY, private_key.public_key_openssh, attr="public_key_openssh")

    suffix = _random_string(graph, SSH_KEY_SUFFIX, SSH_KEY_SUFFIX_LENGTH)
    key_name = suffix.map(lambda s: f"{spec.cluster_name}-{s}", label="ssh-key.name")
    graph.add(
        SSH_KEY,
        lambda opts: equinix.metal.SshKey(
            SSH_KEY,
            name=key_name.output,
            public_key=public_key.output,
            opts=opts,
        ),
        inputs=[key_name, public_key],
    )

    return Credentials(
        api_token=graph.value(API_KEY, pulumi.Output.secret(api_key.token), attr="token"),
        cluster_tag=cluster_tag,
        public_key=public_key,
        private_key=graph.value(
            PRIVATE_KEY,
            pulumi.Output.secret(private_key.private_key_openssh),
            attr="private_key_openssh",
        ),
    )

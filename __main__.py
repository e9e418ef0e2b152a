import pulumi

from eksa_metal.config.load import load_config
from eksa_metal.providers.equinix import create_equinix_provider
from eksa_metal.components.cluster import Cluster

# 1) load config
cfg = load_config()

# 2) create equinix provider
equinix_provider = create_equinix_provider(cfg.provider)

# 3) build the cluster
cluster = Cluster(
    "cluster",
    cfg.spec,
    provider=equinix_provider,
)

# 4) export outputs
pulumi.export("clusterName", cfg.spec.cluster_name)
pulumi.export("metro", cfg.spec.metro)
pulumi.export("adminIp", cluster.admin_ip)
pulumi.export("privateSshKey", cluster.private_ssh_key)

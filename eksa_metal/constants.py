# eksa_metal/constants.py

# Pulumi type token for the cluster component
COMPONENT_TYPE = "eksa:metal:Cluster"

# Reserved block layout (host offsets counted from the network address)
ADMIN_IP_OFFSET = 2
FIRST_WORKER_OFFSET = ADMIN_IP_OFFSET + 1
POOL_VIP_TOP_OFFSET = 2  # quantity - 2
TINK_VIP_TOP_OFFSET = 3  # quantity - 3
DEFAULT_IP_BLOCK_QUANTITY = 16
MIN_IP_BLOCK_QUANTITY = 8
IP_BLOCK_TYPE = "public_ipv4"

# Roles
ROLE_CONTROL_PLANE = "control-plane"
ROLE_DATA_PLANE = "data-plane"
ROLE_ADMIN = "admin"

# Device tags
TAG_TINK_WORKER = "tink-worker"
TAG_TINK_PROVISIONER = "tink-provisioner"

# Device defaults
DEFAULT_DEVICE_TYPE = "c3.small.x86"
BILLING_CYCLE = "hourly"
WORKER_OPERATING_SYSTEM = "custom_ipxe"
ADMIN_OPERATING_SYSTEM = "ubuntu_20_04"
IPXE_URL_TEMPLATE = "http://{admin_ip}/ipxe/"

# Network attachment
WORKER_NETWORK_TYPE = "layer2-individual"
WORKER_PORT = "eth0"
ADMIN_NETWORK_TYPE = "hybrid"
ADMIN_PORT = "bond0"

# Credentials
CLUSTER_TAG_LENGTH = 12
SSH_KEY_SUFFIX_LENGTH = 3
SSH_KEY_ALGORITHM = "RSA"
SSH_KEY_RSA_BITS = 4096

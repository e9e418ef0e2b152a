import os

import pulumi

from .models import ClusterConfig, ClusterSpec, ProviderSettings
from ..constants import DEFAULT_DEVICE_TYPE, DEFAULT_IP_BLOCK_QUANTITY
from ..errors import ClusterValidationError


def _get_int(c: pulumi.Config, key: str, default: int) -> int:
    raw = c.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ClusterValidationError(f"Config key {key} must be an integer. Got: {raw!r}") from None


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ClusterValidationError(f"{name} must be an integer. Got: {raw!r}") from None
    if value < 0:
        raise ClusterValidationError(f"{name} must be >= 0. Got: {value}")
    return value


def _get_bool(c: pulumi.Config, key: str, default: bool) -> bool:
    v = (c.get(key) or "").strip().lower()
    if not v:
        return default
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    raise ClusterValidationError(f"Config key {key} must be a boolean-like string (true/false). Got: {v!r}")


def load_config() -> ClusterConfig:
    """
    Reads stack config from Pulumi.<stack>.yaml.

    Required keys:
      - projectId
      - metro

    Optional keys:
      - clusterName (defaults to the stack name)
      - controlPlaneCount / controlPlaneDeviceType
      - dataPlaneCount / dataPlaneDeviceType
      - adminDeviceType (defaults to controlPlaneDeviceType)
      - ipBlockQuantity (defaults to 16)
      - apiKeyReadOnly (defaults to true)

    The Equinix Metal token is read from METAL_AUTH_TOKEN, never from stack config.
    """
    c = pulumi.Config()
    stack = pulumi.get_stack()

    spec = ClusterSpec(
        cluster_name=c.get("clusterName") or stack,
        project_id=c.require("projectId"),
        metro=c.require("metro"),
        control_plane_count=_get_int(c, "controlPlaneCount", 1),
        control_plane_device_type=c.get("controlPlaneDeviceType") or DEFAULT_DEVICE_TYPE,
        data_plane_count=_get_int(c, "dataPlaneCount", 0),
        data_plane_device_type=c.get("dataPlaneDeviceType") or DEFAULT_DEVICE_TYPE,
        admin_device_type=c.get("adminDeviceType"),
        ip_block_quantity=_get_int(c, "ipBlockQuantity", DEFAULT_IP_BLOCK_QUANTITY),
        api_key_read_only=_get_bool(c, "apiKeyReadOnly", True),
    )

    provider = ProviderSettings(
        auth_token=os.environ.get("METAL_AUTH_TOKEN"),
        max_retries=_env_int("METAL_MAX_RETRIES"),
    )

    pulumi.log.info(
        f"cluster {spec.cluster_name}: {spec.control_plane_count} control-plane, "
        f"{spec.data_plane_count} data-plane in {spec.metro}, {spec.ip_block_quantity}-address block"
    )

    return ClusterConfig(stack=stack, spec=spec, provider=provider)

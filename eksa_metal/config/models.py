from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..addresses import validate_capacity
from ..constants import (
    ADMIN_OPERATING_SYSTEM,
    BILLING_CYCLE,
    DEFAULT_DEVICE_TYPE,
    DEFAULT_IP_BLOCK_QUANTITY,
)
from ..errors import ClusterValidationError


WorkerRole = Literal["control-plane", "data-plane"]


@dataclass(frozen=True)
class ClusterSpec:
    """
    What to build. Immutable once accepted.

    Notes:
      - counts and ip_block_quantity are checked together: the workers must
        fit between the admin address and the two VIPs at the top of the block
      - admin_device_type falls back to control_plane_device_type
    """
    cluster_name: str
    project_id: str
    metro: str

    control_plane_count: int = 1
    control_plane_device_type: str = DEFAULT_DEVICE_TYPE

    data_plane_count: int = 0
    data_plane_device_type: str = DEFAULT_DEVICE_TYPE

    ip_block_quantity: int = DEFAULT_IP_BLOCK_QUANTITY
    admin_device_type: str | None = None
    admin_operating_system: str = ADMIN_OPERATING_SYSTEM
    billing_cycle: str = BILLING_CYCLE
    api_key_read_only: bool = True

    def __post_init__(self) -> None:
        self.validate()

    @property
    def worker_count(self) -> int:
        return self.control_plane_count + self.data_plane_count

    @property
    def admin_plan(self) -> str:
        return self.admin_device_type or self.control_plane_device_type

    def validate(self) -> None:
        for key in ("cluster_name", "project_id", "metro"):
            if not getattr(self, key):
                raise ClusterValidationError(f"Missing required cluster setting: {key}")

        for key in ("control_plane_count", "data_plane_count", "ip_block_quantity"):
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ClusterValidationError(f"{key} must be an integer >= 0. Got: {value!r}")

        validate_capacity(self.ip_block_quantity, self.worker_count)


@dataclass(frozen=True)
class ReservedBlock:
    """Resolved view of the provider's reserved IP block."""
    cidr: str
    quantity: int
    netmask: str
    gateway: str


@dataclass(frozen=True)
class ProviderSettings:
    auth_token: str | None
    max_retries: int | None = None


@dataclass(frozen=True)
class ClusterConfig:
    """In-memory config for the Pulumi program."""
    stack: str
    spec: ClusterSpec
    provider: ProviderSettings

import ipaddress

import pytest

from eksa_metal.addresses import partition, validate_capacity
from eksa_metal.errors import ClusterValidationError


def test_empty_pool_layout():
    a = partition("10.0.0.0/28", 16, control_plane_count=0, data_plane_count=0)

    assert a.admin_ip == "10.0.0.2"
    assert a.pool_vip == "10.0.0.14"
    assert a.tink_vip == "10.0.0.13"
    assert a.worker_ips == ()
    assert a.worker_ips_csv == ""


def test_workers_follow_admin_control_plane_first():
    a = partition("147.75.10.32/28", 16, control_plane_count=2, data_plane_count=1)

    assert a.worker_ips == ("147.75.10.35", "147.75.10.36", "147.75.10.37")
    assert a.worker_ips_csv == "147.75.10.35,147.75.10.36,147.75.10.37"
    for ip in a.worker_ips:
        assert ip not in (a.admin_ip, a.pool_vip, a.tink_vip)


@pytest.mark.parametrize(
    "cidr,quantity,workers",
    [
        ("10.0.0.0/29", 8, 2),
        ("10.0.0.0/28", 16, 10),
        ("192.168.4.0/27", 32, 26),
        ("10.20.0.0/26", 64, 5),
    ],
)
def test_addresses_distinct_and_inside_block(cidr, quantity, workers):
    cp = workers // 2
    a = partition(cidr, quantity, control_plane_count=cp, data_plane_count=workers - cp)
    network = ipaddress.ip_network(cidr)

    assert len(a.worker_ips) == workers
    assert len(set(a.all())) == len(a.all())
    assert all(ipaddress.ip_address(ip) in network for ip in a.all())


def test_partition_is_deterministic():
    first = partition("10.0.0.0/28", 16, control_plane_count=3, data_plane_count=2)
    for _ in range(5):
        assert partition("10.0.0.0/28", 16, control_plane_count=3, data_plane_count=2) == first


def test_cidr_host_bits_are_ignored():
    a = partition("10.0.0.7/28", 16, control_plane_count=1, data_plane_count=0)
    assert a.admin_ip == "10.0.0.2"


def test_largest_pool_that_fits():
    a = partition("10.0.0.0/28", 16, control_plane_count=5, data_plane_count=5)
    assert a.worker_ips[-1] == "10.0.0.12"
    assert a.tink_vip == "10.0.0.13"


@pytest.mark.parametrize("workers", [11, 12, 40])
def test_worker_range_reaching_vips_is_rejected(workers):
    with pytest.raises(ClusterValidationError):
        partition("10.0.0.0/28", 16, control_plane_count=workers, data_plane_count=0)


@pytest.mark.parametrize("quantity", [0, 4, 12, 24])
def test_quantity_must_be_power_of_two_at_least_eight(quantity):
    with pytest.raises(ClusterValidationError):
        validate_capacity(quantity, 0)


def test_negative_worker_count_is_rejected():
    with pytest.raises(ClusterValidationError):
        validate_capacity(16, -1)


def test_block_size_must_match_quantity():
    with pytest.raises(ClusterValidationError):
        partition("10.0.0.0/29", 16, control_plane_count=1, data_plane_count=0)

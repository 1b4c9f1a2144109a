from __future__ import annotations

import copy
from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"

_SERVICE = {
    "is_storage": False,
    "sanitized_name": "app-z1a2b3c4",
    "namespace": "z99-staging",
    "environment_id": "z99",
    "min_instances": 1,
    "max_instances": 1,
    "is_registry_secret": True,
    "registry_secret": "app-z1a2b3c4-registry",
    "image_name_with_tag": "registry.local/app:1.4.2",
    "environment_variables": [{"key": "DATABASE_URL"}, {"key": "REDIS_URL"}],
    "ports": [
        {"port": 8080, "publicly_accessible": True},
        {"port": 9090, "publicly_accessible": False},
    ],
    "readiness_probe": {
        "type": "TCP",
        "path": "/",
        "initial_delay_seconds": 15,
        "period_seconds": 10,
    },
    "cpu_limit": "500m",
    "cpu_request": "250m",
    "ram_limit_in_mib": 512,
    "ram_request_in_mib": 256,
}


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def service() -> dict:
    """A fresh application descriptor for each test."""
    return copy.deepcopy(_SERVICE)


@pytest.fixture
def vpc() -> dict:
    return {
        "region": "eu-west-3",
        "vpc_cidr_block": "10.0.0.0/16",
        "cluster_name": "qa-cluster",
        "enable_nat_gateway": True,
        "private_subnets": [
            {"name": "private_a", "cidr": "10.0.1.0/24", "zone": "eu-west-3a"},
            {"name": "private_b", "cidr": "10.0.2.0/24", "zone": "eu-west-3b"},
        ],
    }

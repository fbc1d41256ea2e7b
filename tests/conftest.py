"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest
import yaml

from mesh_validator.config import GlobalConfig, set_config
from mesh_validator.kubernetes.istio_object import MTLSDetails
from mesh_validator.models.context import ValidationContext

from tests import data


@pytest.fixture(autouse=True)
def reset_global_config():
    """Keep the configuration singleton from leaking between tests."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def bookinfo_context() -> ValidationContext:
    """
    A small bookinfo mesh: reviews v1/v2 behind a Service, a DestinationRule
    with one stale subset and a VirtualService routing to both live subsets.
    """
    return ValidationContext(
        namespace="bookinfo",
        namespaces=["bookinfo", "istio-system"],
        destination_rules=[
            data.destination_rule(
                "bookinfo", "reviews", "reviews",
                subsets=[
                    data.subset("v1", {"version": "v1"}),
                    data.subset("v2", {"version": "v2"}),
                    data.subset("v3", {"version": "v3"}),
                ],
            ),
        ],
        virtual_services=[
            data.virtual_service(
                "reviews", ["reviews"],
                http=data.http_routes(data.route("reviews", "v1", 50), data.route("reviews", "v2", 50)),
            ),
        ],
        services=[data.service("reviews")],
        workloads=[
            data.workload("reviews-v1", {"app": "reviews", "version": "v1"}),
            data.workload("reviews-v2", {"app": "reviews", "version": "v2"}),
        ],
        mtls_details=MTLSDetails(),
    )


def write_manifests(path: Path, *documents) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump_all(list(documents)), encoding="utf-8")
    return path


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """A configuration snapshot directory with one broken DestinationRule."""
    root = tmp_path / "istio_config"
    write_manifests(
        root / "services" / "bookinfo" / "reviews.yaml",
        data.manifest("Service", "reviews", labels={"app": "reviews"}, spec={"selector": {"app": "reviews"}}),
    )
    write_manifests(
        root / "workloads" / "bookinfo" / "reviews.yaml",
        data.manifest("Deployment", "reviews-v1", spec={
            "template": {"metadata": {"labels": {"app": "reviews", "version": "v1"}}}
        }),
    )
    write_manifests(
        root / "destinationrules" / "bookinfo" / "rules.yaml",
        data.manifest("DestinationRule", "reviews", spec={
            "host": "reviews",
            "subsets": [{"name": "v1", "labels": {"version": "v1"}}],
        }),
        data.manifest("DestinationRule", "ghost", spec={"host": "ghost"}),
    )
    write_manifests(
        root / "virtualservices" / "bookinfo" / "reviews.yaml",
        data.manifest("VirtualService", "reviews", spec={
            "hosts": ["reviews"],
            "http": [{"route": [{"destination": {"host": "reviews", "subset": "v1"}}]}],
        }),
    )
    return root


@pytest.fixture
def config(config_dir: Path) -> GlobalConfig:
    return GlobalConfig(config_dir=str(config_dir))

"""
Tests for configuration object access helpers.
"""

from mesh_validator.kubernetes.istio_object import (
    IstioObject,
    MTLSDetails,
    RegistryStatus,
    Service,
    Workload,
    lookup
)

from tests import data

# ── Field lookup ─────────────────────────────────────────────────────


class TestLookup:
    def test_nested_path(self):
        tree = {"trafficPolicy": {"tls": {"mode": "ISTIO_MUTUAL"}}}
        assert lookup(tree, "trafficPolicy/tls/mode") == "ISTIO_MUTUAL"

    def test_indexed_path(self):
        tree = {"http": [{"route": [{"weight": 10}, {"weight": 90}]}]}
        assert lookup(tree, "http[0]/route[1]/weight") == 90

    def test_missing_or_mistyped_fields_return_none(self):
        tree = {"http": "not-a-list", "host": 42}
        assert lookup(tree, "http[0]/route") is None
        assert lookup(tree, "tcp[3]") is None
        assert lookup(tree, "host/name") is None


class TestIstioObject:
    def test_from_dict(self):
        obj = IstioObject.from_dict(data.manifest(
            "DestinationRule", "reviews", "bookinfo", spec={"host": "reviews"}, labels={"team": "a"}
        ))
        assert (obj.kind, obj.name, obj.namespace) == ("DestinationRule", "reviews", "bookinfo")
        assert obj.get_str("host") == "reviews"
        assert obj.labels == {"team": "a"}
        assert str(obj) == "DestinationRule/bookinfo/reviews"

    def test_from_dict_requires_kind_and_name(self):
        assert IstioObject.from_dict({"metadata": {"name": "x"}}) is None
        assert IstioObject.from_dict({"kind": "VirtualService", "metadata": {}}) is None
        assert IstioObject.from_dict("nope") is None

    def test_typed_getters_never_raise(self):
        obj = IstioObject(kind="VirtualService", name="vs", namespace="ns", spec={"hosts": "reviews", "http": {}})
        assert obj.get_strings("hosts") == ["reviews"]
        assert obj.get_list("http") is None
        assert obj.get_dict("hosts") is None
        assert obj.get_strings("gateways") == []


# ── Supporting records ───────────────────────────────────────────────


class TestSupportingRecords:
    def test_service_selector(self):
        svc = Service.from_dict(data.manifest("Service", "reviews", "bookinfo", spec={"selector": {"app": "reviews"}}))
        assert svc.selector == {"app": "reviews"}

    def test_workload_prefers_template_labels(self):
        wl = Workload.from_dict(data.manifest(
            "Deployment", "reviews-v1", "bookinfo",
            spec={"template": {"metadata": {"labels": {"app": "reviews", "version": "v1"}}}},
            labels={"owner": "team-a"},
        ))
        assert wl.labels == {"app": "reviews", "version": "v1"}
        assert wl.type == "Deployment"

    def test_pod_uses_metadata_labels(self):
        wl = Workload.from_dict(data.manifest("Pod", "reviews-v1", "bookinfo", labels={"app": "reviews"}))
        assert wl.labels == {"app": "reviews"}

    def test_registry_status(self):
        assert RegistryStatus.from_dict("reviews.bookinfo.svc.cluster.local").hostname == \
            "reviews.bookinfo.svc.cluster.local"
        assert RegistryStatus.from_dict({"hostname": "a.b"}).hostname == "a.b"
        assert RegistryStatus.from_dict({"other": 1}) is None

    def test_mtls_details_splits_mesh_policies(self):
        mesh = data.peer_authentication("istio-system")
        scoped = data.peer_authentication("istio-system", "gw", selector={"app": "gateway"})
        local = data.peer_authentication("bookinfo")
        details = MTLSDetails.from_peer_authentications([mesh, scoped, local])
        assert details.mesh_peer_authentications == [mesh]
        assert details.peer_authentications == [scoped, local]
        assert details.namespace_peer_authentications("bookinfo") == [local]

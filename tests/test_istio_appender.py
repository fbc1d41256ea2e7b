"""
Tests for Istio badging of traffic graph nodes.
"""

import pytest

from mesh_validator.graph.istio_appender import IstioAppender
from mesh_validator.models.context import ValidationContext

from tests import data


@pytest.fixture
def context() -> ValidationContext:
    return ValidationContext(
        namespaces=["bookinfo", "istio-system"],
        destination_rules=[
            data.destination_rule("bookinfo", "reviews", "reviews",
                                  trafficPolicy={"connectionPool": {"tcp": {"maxConnections": 1}}}),
            data.destination_rule("bookinfo", "ratings", "ratings", subsets=[
                data.subset("v1", {"version": "v1"}, trafficPolicy={"outlierDetection": {"consecutiveErrors": 1}}),
            ]),
        ],
        virtual_services=[
            data.virtual_service("reviews", ["reviews"], http=[{
                "match": [{"uri": {"prefix": "/"}}],
                "timeout": "1s",
                "route": [data.route("reviews", "v1", 50), data.route("reviews", "v2", 50)],
            }]),
            data.virtual_service("details", ["details"],
                                 http=[{"fault": {"abort": {"httpStatus": 500}}, "route": [data.route("details")]}],
                                 tcp=[{"route": [data.route("details", "v1", 50), data.route("details", "v2", 50)]}]),
        ],
        gateways=[data.gateway("istio-system", "bookinfo-gateway", {"istio": "ingressgateway"},
                               ["bookinfo.example.com"])],
        services=[data.service("productpage"), data.service("details")],
        workloads=[data.workload("istio-ingressgateway", {
            "app": "istio-ingressgateway",
            "istio": "ingressgateway",
            "operator.istio.io/component": "IngressGateways",
        }, namespace="istio-system")],
    )


def node(node_type: str, namespace: str = "bookinfo", **fields):
    return {"nodeType": node_type, "namespace": namespace, "metadata": {}, **fields}


class TestCircuitBreakers:
    def test_service_node(self, context):
        nodes = {"svc": node("service", service="reviews")}
        IstioAppender(context).append_graph(nodes)
        assert nodes["svc"]["metadata"]["hasCB"] is True

    def test_versioned_app_node_uses_subset(self, context):
        v1 = node("app", app="ratings", version="v1",
                  metadata={"destServices": [{"namespace": "bookinfo", "name": "ratings"}]})
        v2 = node("app", app="ratings", version="v2",
                  metadata={"destServices": [{"namespace": "bookinfo", "name": "ratings"}]})
        IstioAppender(context).append_graph([v1, v2])

        assert v1["metadata"]["hasCB"] is True
        assert "hasCB" not in v2["metadata"]

    def test_unversioned_app_node_counts_any_subset(self, context):
        app = node("app", app="ratings", metadata={"destServices": [{"namespace": "bookinfo", "name": "ratings"}]})
        IstioAppender(context).append_graph([app])
        assert app["metadata"]["hasCB"] is True

    def test_only_requested_namespaces(self, context):
        svc = node("service", service="reviews")
        IstioAppender(context).append_graph([svc], namespaces=["istio-system"])
        assert "hasCB" not in svc["metadata"]


class TestVirtualServices:
    def test_routing_flags(self, context):
        svc = node("service", service="reviews")
        IstioAppender(context).append_graph([svc])

        metadata = svc["metadata"]
        assert metadata["hasVS"] == {"reviews": ["reviews"]}
        assert metadata["hasRequestRouting"] is True
        assert metadata["hasRequestTimeout"] is True
        assert metadata["hasTrafficShifting"] is True
        assert "hasFaultInjection" not in metadata

    def test_fault_injection_and_tcp_shifting(self, context):
        svc = node("service", service="details")
        IstioAppender(context).append_graph([svc])

        metadata = svc["metadata"]
        assert metadata["hasFaultInjection"] is True
        assert metadata["hasTCPTrafficShifting"] is True
        assert "hasTrafficShifting" not in metadata

    def test_service_without_virtual_service(self, context):
        svc = node("service", service="productpage")
        IstioAppender(context).append_graph([svc])
        assert "hasVS" not in svc["metadata"]


class TestLabelsAndGateways:
    def test_service_node_gets_app_label(self, context):
        svc = node("service", service="productpage")
        entry = node("service", service="details", metadata={"isServiceEntry": "MESH_EXTERNAL"})
        IstioAppender(context).append_graph([svc, entry])

        assert svc["app"] == "productpage"
        assert "app" not in entry

    def test_ingress_gateway(self, context):
        ingress = node("app", namespace="istio-system", app="istio-ingressgateway")
        other = node("workload", namespace="istio-system", app="istiod")
        IstioAppender(context).append_graph([ingress, other])

        assert ingress["metadata"]["isIngressGateway"] == {"bookinfo-gateway": ["bookinfo.example.com"]}
        assert "isIngressGateway" not in other["metadata"]

    def test_empty_graph(self, context):
        assert IstioAppender(context).append_graph({}) == {}

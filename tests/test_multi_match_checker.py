"""
Tests for overlapping DestinationRule detection.
"""

from mesh_validator.checkers.destinationrules.multi_match_checker import MultiMatchChecker
from mesh_validator.models.data_models import IstioValidationKey, Severity

from tests import data


def dr_key(name: str, namespace: str = "bookinfo") -> IstioValidationKey:
    return IstioValidationKey("destinationrule", namespace, name)


class TestMultiMatchChecker:
    def test_distinct_hosts(self):
        vals = MultiMatchChecker([
            data.destination_rule("bookinfo", "reviews", "reviews"),
            data.destination_rule("bookinfo", "ratings", "ratings"),
        ], namespaces=["bookinfo"]).check()
        assert vals == {}

    def test_same_host_produces_bidirectional_references(self):
        vals = MultiMatchChecker([
            data.destination_rule("bookinfo", "reviews-1", "reviews"),
            data.destination_rule("bookinfo", "reviews-2", "reviews.bookinfo.svc.cluster.local"),
        ], namespaces=["bookinfo"]).check()

        assert set(vals) == {dr_key("reviews-1"), dr_key("reviews-2")}
        first, second = vals[dr_key("reviews-1")], vals[dr_key("reviews-2")]
        assert first.valid and second.valid
        assert first.checks[0].message == "destinationrules.multimatch"
        assert first.checks[0].severity == Severity.WARNING
        assert first.checks[0].path == "spec/host"
        assert first.references == [dr_key("reviews-2")]
        assert second.references == [dr_key("reviews-1")]

    def test_wildcard_covers_host(self):
        vals = MultiMatchChecker([
            data.destination_rule("bookinfo", "all", "*.bookinfo.svc.cluster.local"),
            data.destination_rule("bookinfo", "reviews", "reviews"),
        ], namespaces=["bookinfo"]).check()
        assert set(vals) == {dr_key("all"), dr_key("reviews")}

    def test_disjoint_subsets_do_not_collide(self):
        vals = MultiMatchChecker([
            data.destination_rule("bookinfo", "reviews-v1", "reviews", subsets=[data.subset("v1", {"version": "v1"})]),
            data.destination_rule("bookinfo", "reviews-v2", "reviews", subsets=[data.subset("v2", {"version": "v2"})]),
        ], namespaces=["bookinfo"]).check()
        assert vals == {}

    def test_shared_subset_collides(self):
        vals = MultiMatchChecker([
            data.destination_rule("bookinfo", "reviews-a", "reviews", subsets=[data.subset("v1", {"version": "v1"})]),
            data.destination_rule("bookinfo", "reviews-b", "reviews", subsets=[
                data.subset("v1", {"version": "v1"}), data.subset("v2", {"version": "v2"}),
            ]),
        ], namespaces=["bookinfo"]).check()
        assert set(vals) == {dr_key("reviews-a"), dr_key("reviews-b")}

    def test_rule_without_subsets_collides_with_subsets(self):
        vals = MultiMatchChecker([
            data.destination_rule("bookinfo", "reviews", "reviews"),
            data.destination_rule("bookinfo", "reviews-v1", "reviews", subsets=[data.subset("v1", {"version": "v1"})]),
        ], namespaces=["bookinfo"]).check()
        assert len(vals) == 2

    def test_non_overlapping_exports(self):
        vals = MultiMatchChecker([
            data.destination_rule("bookinfo", "reviews-a", "reviews.bookinfo.svc.cluster.local", exportTo=["."]),
            data.destination_rule("eshop", "reviews-b", "reviews.bookinfo.svc.cluster.local", exportTo=["."]),
        ], namespaces=["bookinfo", "eshop"]).check()
        assert vals == {}

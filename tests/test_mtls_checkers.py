"""
Tests for the mesh-wide and namespace-wide mTLS checkers.
"""

import pytest

from mesh_validator.checkers.destinationrules.meshwide_mtls_checker import MeshWideMTLSChecker
from mesh_validator.checkers.destinationrules.namespacewide_mtls_checker import NamespaceWideMTLSChecker
from mesh_validator.kubernetes.istio_object import MTLSDetails
from mesh_validator.models.data_models import Severity

from tests import data


def mesh_policy(mode: str = "STRICT"):
    return data.peer_authentication("istio-system", mode=mode)


# ── Mesh-wide ────────────────────────────────────────────────────────


class TestMeshWideMTLSChecker:
    @pytest.mark.parametrize("host", ["*.local", "*", " *", "*.local "])
    def test_missing_mesh_policy(self, host):
        dr = data.mtls_destination_rule("istio-system", "dr-mtls", host)
        checks, valid = MeshWideMTLSChecker(dr, MTLSDetails()).check()

        assert not valid
        assert len(checks) == 1
        assert checks[0].message == "destinationrules.mtls.meshpolicymissing"
        assert checks[0].severity == Severity.ERROR
        assert checks[0].path == "spec/trafficPolicy/tls/mode"

    @pytest.mark.parametrize("mode", ["STRICT", "PERMISSIVE"])
    def test_any_mesh_policy_satisfies(self, mode):
        dr = data.mtls_destination_rule("istio-system", "dr-mtls", "*.local")
        details = MTLSDetails(mesh_peer_authentications=[mesh_policy(mode)])
        assert MeshWideMTLSChecker(dr, details).check() == ([], True)

    def test_namespace_wide_host_is_ignored(self):
        dr = data.mtls_destination_rule("istio-system", "dr-mtls", "*.istio-system.svc.cluster.local")
        assert MeshWideMTLSChecker(dr, MTLSDetails()).check() == ([], True)

    def test_blank_host_is_ignored(self):
        dr = data.mtls_destination_rule("istio-system", "dr-mtls", "  ")
        assert MeshWideMTLSChecker(dr, MTLSDetails()).check() == ([], True)

    def test_dr_without_mtls(self):
        dr = data.destination_rule("istio-system", "dr-mtls", "*.local")
        assert MeshWideMTLSChecker(dr, MTLSDetails()).check() == ([], True)

    def test_simple_tls_mode(self):
        dr = data.mtls_destination_rule("istio-system", "dr-mtls", "*.local", mode="SIMPLE")
        assert MeshWideMTLSChecker(dr, MTLSDetails()).check() == ([], True)


# ── Namespace-wide ───────────────────────────────────────────────────


class TestNamespaceWideMTLSChecker:
    def test_missing_policy(self):
        dr = data.mtls_destination_rule("bookinfo", "dr-mtls", "*.bookinfo.svc.cluster.local")
        checks, valid = NamespaceWideMTLSChecker(dr, MTLSDetails()).check()

        assert not valid
        assert [c.message for c in checks] == ["destinationrules.mtls.nspolicymissing"]
        assert checks[0].path == "spec/trafficPolicy/tls/mode"

    def test_namespace_policy_satisfies(self):
        dr = data.mtls_destination_rule("bookinfo", "dr-mtls", "*.bookinfo.svc.cluster.local")
        details = MTLSDetails(peer_authentications=[data.peer_authentication("bookinfo")])
        assert NamespaceWideMTLSChecker(dr, details).check() == ([], True)

    def test_policy_in_other_namespace_does_not_count(self):
        dr = data.mtls_destination_rule("bookinfo", "dr-mtls", "*.bookinfo.svc.cluster.local")
        details = MTLSDetails(peer_authentications=[data.peer_authentication("eshop")])
        _, valid = NamespaceWideMTLSChecker(dr, details).check()
        assert not valid

    def test_mesh_policy_satisfies(self):
        dr = data.mtls_destination_rule("istio-system", "dr-mtls", "*.istio-system.svc.cluster.local")
        details = MTLSDetails(mesh_peer_authentications=[mesh_policy("PERMISSIVE")])
        assert NamespaceWideMTLSChecker(dr, details).check() == ([], True)

    def test_mesh_wide_host_is_ignored(self):
        dr = data.mtls_destination_rule("istio-system", "dr-mtls", "*.local")
        assert NamespaceWideMTLSChecker(dr, MTLSDetails()).check() == ([], True)

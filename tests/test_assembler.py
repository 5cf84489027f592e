"""
Tests for the configuration assembler — derived defaults, tunables,
TLS sections, certificate mounts.
"""

import pytest

from src.core.models.resolved import INTERNAL, CertificateEntry, Listener, ListenerKind
from src.core.services.chart.assembler import (
    approved_tunables,
    build_broker_config,
    build_cluster_config,
    certificate_mounts,
    certificates_in_use,
    default_topic_replications,
    tls_entry,
)
from src.core.services.chart.engine import parse_values
from src.core.services.chart.version_gate import (
    FEATURE_SUPPORTED,
    TUNABLE_PREFIX,
    Version,
    evaluate,
)


def _gate(tag: str = "v24.1.1", tunables: tuple = ()):
    return evaluate(Version.parse(tag), {FEATURE_SUPPORTED, *(TUNABLE_PREFIX + t for t in tunables)})


CERTS = {
    "default": CertificateEntry(name="default", ca_enabled=True),
    "byo": CertificateEntry(name="byo", secret_ref="my-secret"),
}


class TestDefaultTopicReplications:
    @pytest.mark.parametrize("replicas,expected", [(1, None), (2, None), (3, 3), (10, 3)])
    def test_size_dependent(self, replicas: int, expected):
        assert default_topic_replications({}, replicas) == expected

    def test_explicit_value_not_overridden(self):
        assert default_topic_replications({"default_topic_replications": 25}, 10) is None


class TestBuildClusterConfig:
    def test_single_replica_omits_key(self):
        values = parse_values({"statefulset": {"replicas": 1}})
        assert "default_topic_replications" not in build_cluster_config(values, _gate())

    def test_ten_replicas_injects_three(self):
        values = parse_values({"statefulset": {"replicas": 10}})
        assert build_cluster_config(values, _gate())["default_topic_replications"] == 3

    @pytest.mark.parametrize("replicas", [1, 3, 10])
    def test_explicit_preserved(self, replicas: int):
        values = parse_values({
            "statefulset": {"replicas": replicas},
            "config": {"cluster": {"default_topic_replications": 25}},
        })
        assert build_cluster_config(values, _gate())["default_topic_replications"] == 25

    def test_tunables_copied_verbatim(self):
        values = parse_values({"config": {"tunable": {
            "log_segment_size_min": 100,
            "log_segment_size_max": 99999,
            "kafka_batch_max_bytes": 7777,
        }}})
        gate = _gate(tunables=("log_segment_size_min", "log_segment_size_max", "kafka_batch_max_bytes"))
        cluster = build_cluster_config(values, gate)
        assert cluster["log_segment_size_min"] == 100
        assert cluster["log_segment_size_max"] == 99999
        assert cluster["kafka_batch_max_bytes"] == 7777

    def test_unavailable_tunables_dropped(self):
        values = parse_values({"config": {"tunable": {"kafka_batch_max_bytes": 7777, "other": 1}}})
        cluster = build_cluster_config(values, _gate("v22.2.0", ("kafka_batch_max_bytes", "other")))
        assert "kafka_batch_max_bytes" not in cluster
        assert cluster["other"] == 1

    def test_tunable_overrides_cluster_key(self):
        values = parse_values({"config": {"cluster": {"x": 1}, "tunable": {"x": 2}}})
        assert build_cluster_config(values, _gate(tunables=("x",)))["x"] == 2

    def test_license_and_rack_awareness(self):
        values = parse_values({
            "enterprise": {"license": "ATOTALLYVALIDLICENSE"},
            "rackAwareness": {"enabled": True, "nodeAnnotation": "topology-label"},
        })
        cluster = build_cluster_config(values, _gate())
        assert cluster["license"] == "ATOTALLYVALIDLICENSE"
        assert cluster["enable_rack_awareness"] is True

    def test_keys_sorted(self):
        values = parse_values({"config": {"cluster": {"z": 1, "a": 2}}})
        keys = list(build_cluster_config(values, _gate()))
        assert keys == sorted(keys)


class TestTlsEntry:
    def test_with_truststore(self):
        lst = Listener(ListenerKind.KAFKA, INTERNAL, 9093, tls_enabled=True, cert="default")
        assert tls_entry(lst, CERTS, "/etc/tls/certs/default/ca.crt") == {
            "name": "internal",
            "enabled": True,
            "cert_file": "/etc/tls/certs/default/tls.crt",
            "key_file": "/etc/tls/certs/default/tls.key",
            "require_client_auth": False,
            "truststore_file": "/etc/tls/certs/default/ca.crt",
        }

    def test_without_truststore(self):
        lst = Listener(ListenerKind.KAFKA, "public", 9094, tls_enabled=True, cert="byo")
        assert "truststore_file" not in tls_entry(lst, CERTS, None)


class TestBuildBrokerConfig:
    listeners = {
        (ListenerKind.KAFKA, "zeta"): Listener(ListenerKind.KAFKA, "zeta", 3, tls_enabled=False),
        (ListenerKind.KAFKA, "alpha"): Listener(ListenerKind.KAFKA, "alpha", 2, tls_enabled=True, cert="byo"),
        (ListenerKind.KAFKA, INTERNAL): Listener(ListenerKind.KAFKA, INTERNAL, 1, tls_enabled=True, cert="default"),
        (ListenerKind.RPC, INTERNAL): Listener(ListenerKind.RPC, INTERNAL, 33145, tls_enabled=True, cert="default"),
    }
    paths = {("kafka", INTERNAL): "/a/ca.crt", ("rpc", INTERNAL): "/a/ca.crt"}

    def test_order_internal_then_sorted(self):
        config = build_broker_config(self.listeners, CERTS, self.paths)
        assert [e["name"] for e in config["redpanda"]["kafka_api"]] == [INTERNAL, "alpha", "zeta"]

    def test_tls_only_for_tls_listeners(self):
        config = build_broker_config(self.listeners, CERTS, self.paths)
        tls = config["redpanda"]["kafka_api_tls"]
        assert [e["name"] for e in tls] == [INTERNAL, "alpha"]
        assert tls[0]["truststore_file"] == "/a/ca.crt"
        assert "truststore_file" not in tls[1]

    def test_rpc_single_object(self):
        config = build_broker_config(self.listeners, CERTS, self.paths)
        assert config["redpanda"]["rpc_server"] == {"address": "0.0.0.0", "port": 33145}
        assert "name" not in config["redpanda"]["rpc_server_tls"]
        assert config["redpanda"]["rpc_server_tls"]["truststore_file"] == "/a/ca.crt"

    def test_absent_kinds_have_no_section(self):
        config = build_broker_config(self.listeners, CERTS, self.paths)
        assert "pandaproxy" not in config
        assert "schema_registry" not in config
        assert "admin" not in config["redpanda"]


class TestCertificateMounts:
    def test_in_use_order_and_dedup(self):
        listeners = {
            (ListenerKind.KAFKA, INTERNAL): Listener(ListenerKind.KAFKA, INTERNAL, 1, tls_enabled=True, cert="default"),
            (ListenerKind.ADMIN, "x"): Listener(ListenerKind.ADMIN, "x", 2, tls_enabled=True, cert="byo"),
            (ListenerKind.ADMIN, INTERNAL): Listener(ListenerKind.ADMIN, INTERNAL, 3, tls_enabled=True, cert="default"),
            (ListenerKind.HTTP, INTERNAL): Listener(ListenerKind.HTTP, INTERNAL, 4, tls_enabled=False),
        }
        assert certificates_in_use(listeners) == ["default", "byo"]

    def test_secret_names(self):
        mounts = certificate_mounts(["default", "byo"], CERTS, "redpanda")
        assert [(m.volume_name, m.source_name, m.mount_path) for m in mounts] == [
            ("redpanda-default-cert", "redpanda-default-cert", "/etc/tls/certs/default"),
            ("redpanda-byo-cert", "my-secret", "/etc/tls/certs/byo"),
        ]
        assert all(m.key is None for m in mounts)

    def test_colliding_names_suffixed(self):
        certs = {
            "my.cert": CertificateEntry(name="my.cert"),
            "my-cert": CertificateEntry(name="my-cert"),
        }
        mounts = certificate_mounts(["my.cert", "my-cert"], certs, "redpanda")
        assert [m.volume_name for m in mounts] == ["redpanda-my-cert-cert", "redpanda-my-cert-cert-2"]
        assert [m.mount_path for m in mounts] == ["/etc/tls/certs/my.cert", "/etc/tls/certs/my-cert"]

    def test_truststore_names_avoided(self):
        taken = {"truststore-configmap-x-cert"}
        certs = {"configmap-x": CertificateEntry(name="configmap-x")}
        mounts = certificate_mounts(["configmap-x"], certs, "truststore", taken)
        assert mounts[0].volume_name == "truststore-configmap-x-cert-2"


class TestApprovedTunables:
    def test_gated_dropped(self):
        values = parse_values({"config": {"tunable": {"kafka_batch_max_bytes": 7777, "other": 1}}})
        gate = _gate("v22.2.0", ("kafka_batch_max_bytes", "other"))
        assert approved_tunables(values, gate) == {"other": 1}

    def test_values_copied(self):
        values = parse_values({"config": {"tunable": {"seeds": [1, 2]}}})
        approved = approved_tunables(values, _gate(tunables=("seeds",)))
        assert approved["seeds"] == [1, 2]
        assert approved["seeds"] is not values.config.tunable["seeds"]

"""
Chart defaults — the values.yaml the chart ships with (the parts the
engine reads).

Kept as plain data and validated through the same pydantic schema as user
input, so defaults and overrides are merged field by field with one code
path.
"""

from __future__ import annotations

from src.core.models.values import PartialValues

DEFAULT_FULLNAME = "redpanda"
DEFAULT_REPOSITORY = "docker.redpanda.com/redpandadata/redpanda"
DEFAULT_TAG = "v24.1.1"
DEFAULT_REPLICAS = 3

# default_topic_replications is injected at this replica count and above
TOPIC_REPLICATION_THRESHOLD = 3
DEFAULT_TOPIC_REPLICATIONS = 3

LISTEN_ADDRESS = "0.0.0.0"


def _external(port: int, advertised: int) -> dict:
    return {
        "default": {
            "port": port,
            "advertisedPorts": [advertised],
            "tls": {"cert": "external"},
        },
    }


CHART_VALUES: dict = {
    "image": {"repository": DEFAULT_REPOSITORY, "tag": DEFAULT_TAG},
    "statefulset": {"replicas": DEFAULT_REPLICAS},
    "tls": {
        "enabled": True,
        "certs": {
            "default": {"caEnabled": True},
            "external": {"caEnabled": True},
        },
    },
    "listeners": {
        "admin": {
            "port": 9644,
            "tls": {"cert": "default", "requireClientAuth": False},
            "external": _external(9645, 31644),
        },
        "kafka": {
            "port": 9093,
            "tls": {"cert": "default", "requireClientAuth": False},
            "external": _external(9094, 31092),
        },
        "http": {
            "enabled": True,
            "port": 8082,
            "tls": {"cert": "default", "requireClientAuth": False},
            "external": _external(8083, 30082),
        },
        "schemaRegistry": {
            "enabled": True,
            "port": 8081,
            "tls": {"cert": "default", "requireClientAuth": False},
            "external": _external(8084, 30081),
        },
        "rpc": {
            "port": 33145,
            "tls": {"cert": "default", "requireClientAuth": False},
        },
    },
    "rackAwareness": {
        "enabled": False,
        "nodeAnnotation": "topology.kubernetes.io/zone",
    },
}

CHART_DEFAULTS: PartialValues = PartialValues.model_validate(CHART_VALUES)

"""
Manifest projection — ResolvedConfiguration → Kubernetes objects.

A mechanical projection, no decisions are made here:

    ConfigMap     <fullname>          redpanda.yaml + bootstrap.yaml
    Certificate   <fullname>-<cert>-cert   one per issued certificate
    StatefulSet   <fullname>          only image, replicas, volumes, volumeMounts

Output is deterministic: same resolved model, same bytes.
"""

from __future__ import annotations

from typing import Any

import yaml

from src.core.models.resolved import ResolvedConfiguration, VolumeMountSpec, thaw


def _dump(data: Any) -> str:
    return yaml.dump(data, default_flow_style=False, sort_keys=False)


def build_volume(mount: VolumeMountSpec) -> tuple[dict, dict]:
    """Convert a mount spec to (pod_volume_def, volume_mount)."""
    items = [{"key": mount.key, "path": mount.sub_path}] if mount.key else None

    if mount.source_kind == "secret":
        source: dict = {"secretName": mount.source_name}
        if items:
            source["items"] = items
        pod_vol = {"name": mount.volume_name, "secret": source}
    else:
        source = {"name": mount.source_name}
        if items:
            source["items"] = items
        pod_vol = {"name": mount.volume_name, "configMap": source}

    vm: dict = {"name": mount.volume_name, "mountPath": mount.mount_path, "readOnly": True}
    if mount.sub_path:
        vm["subPath"] = mount.sub_path
    return pod_vol, vm


def workload_volumes(resolved: ResolvedConfiguration) -> tuple[list[dict], list[dict]]:
    """Pod volumes and container mounts; one of each per declared mount."""
    volumes: list[dict] = []
    mounts: list[dict] = []
    for spec in resolved.mounts:
        pod_vol, vm = build_volume(spec)
        volumes.append(pod_vol)
        mounts.append(vm)
    return volumes, mounts


def broker_config(resolved: ResolvedConfiguration) -> dict:
    """A mutable copy of the redpanda.yaml content."""
    return thaw(resolved.broker_config)


def config_map(resolved: ResolvedConfiguration) -> dict:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": resolved.fullname},
        "data": {
            "bootstrap.yaml": _dump(thaw(resolved.cluster_config)),
            "redpanda.yaml": _dump(broker_config(resolved)),
        },
    }


def certificate(resolved: ResolvedConfiguration, name: str) -> dict:
    secret = f"{resolved.fullname}-{name}-cert"
    return {
        "apiVersion": "cert-manager.io/v1",
        "kind": "Certificate",
        "metadata": {"name": secret},
        "spec": {
            "secretName": secret,
            "issuerRef": {
                "name": f"{resolved.fullname}-{name}-root-issuer",
                "kind": "Issuer",
                "group": "cert-manager.io",
            },
        },
    }


def statefulset(resolved: ResolvedConfiguration) -> dict:
    volumes, mounts = workload_volumes(resolved)
    container: dict = {"name": "redpanda", "image": resolved.image}
    pod_spec: dict = {"containers": [container]}
    if mounts:
        container["volumeMounts"] = mounts
    if volumes:
        pod_spec["volumes"] = volumes
    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": {"name": resolved.fullname},
        "spec": {
            "replicas": resolved.replicas,
            "template": {"spec": pod_spec},
        },
    }


def render_manifests(resolved: ResolvedConfiguration) -> list[dict]:
    manifests = [config_map(resolved)]
    manifests.extend(certificate(resolved, name) for name in resolved.issued_certificates)
    manifests.append(statefulset(resolved))
    return manifests


def render_yaml(resolved: ResolvedConfiguration) -> str:
    """All manifests as one multi-document YAML stream."""
    return yaml.dump_all(
        render_manifests(resolved),
        default_flow_style=False,
        sort_keys=False,
        explicit_start=True,
    )

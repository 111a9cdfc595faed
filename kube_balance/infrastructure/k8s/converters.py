#kube_balance\infrastructure\k8s\converters.py
"""Conversion from kubernetes client objects to domain models."""

from typing import List, Optional

from kube_balance.core.models import (
    ContainerResources,
    DisruptionBudget,
    LabelSelector,
    LabelSelectorRequirement,
    Node,
    Owner,
    OwnerKind,
    OwnerReference,
    Pod,
    PodPhase,
)


def owner_references_from_api(refs) -> List[OwnerReference]:
    return [
        OwnerReference(
            kind=ref.kind,
            name=ref.name,
            controller=bool(ref.controller),
            api_version=ref.api_version or "",
            uid=ref.uid,
        )
        for ref in refs or []
    ]


def _string_map(values) -> Optional[dict]:
    if values is None:
        return None
    return {k: str(v) for k, v in values.items()}


def node_from_api(node) -> Node:
    meta = node.metadata
    return Node(
        name=meta.name,
        annotations=dict(meta.annotations or {}),
        labels=dict(meta.labels or {}),
        uid=meta.uid,
    )


def pod_from_api(pod) -> Pod:
    meta = pod.metadata
    spec = pod.spec
    containers = []
    for container in (spec.containers if spec else None) or []:
        resources = container.resources
        containers.append(
            ContainerResources(
                name=container.name,
                requests=_string_map(resources.requests) if resources else None,
                limits=_string_map(resources.limits) if resources else None,
            )
        )

    return Pod(
        name=meta.name,
        namespace=meta.namespace,
        node_name=spec.node_name if spec else None,
        phase=PodPhase.from_value(pod.status.phase if pod.status else None),
        containers=containers,
        labels=dict(meta.labels or {}),
        owner_references=owner_references_from_api(meta.owner_references),
        uid=meta.uid,
    )


def owner_from_api(kind: OwnerKind, obj) -> Owner:
    meta = obj.metadata
    return Owner(
        kind=kind,
        name=meta.name,
        namespace=meta.namespace,
        annotations=dict(meta.annotations or {}),
        owner_references=owner_references_from_api(meta.owner_references),
        uid=meta.uid,
        resource_version=meta.resource_version,
    )


def selector_from_api(selector) -> Optional[LabelSelector]:
    if selector is None:
        return None
    return LabelSelector(
        match_labels=dict(selector.match_labels or {}),
        match_expressions=tuple(
            LabelSelectorRequirement(
                key=expr.key,
                operator=expr.operator,
                values=tuple(expr.values or ()),
            )
            for expr in selector.match_expressions or []
        ),
    )


def budget_from_api(pdb) -> DisruptionBudget:
    status = pdb.status
    return DisruptionBudget(
        name=pdb.metadata.name,
        namespace=pdb.metadata.namespace,
        selector=selector_from_api(pdb.spec.selector if pdb.spec else None),
        disruptions_allowed=(status.disruptions_allowed or 0) if status else 0,
    )

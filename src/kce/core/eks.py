"""Quick-add of an AWS EKS cluster authenticated by ``aws eks get-token``."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from kce.core.codec.values import any_to_string
from kce.core.entity import Document, Entity
from kce.core.exceptions import PreconditionError
from kce.core.naming import unique_name

logger = logging.getLogger(__name__)

EXEC_API_VERSION = "client.authentication.k8s.io/v1beta1"
ARN_CLUSTER_MARKER = "cluster/"
DEFAULT_CLUSTER_NAME = "eks-cluster"


@dataclass(frozen=True)
class EksEntities:
    context: Entity
    cluster: Entity
    user: Entity


def cluster_name_from_arn(arn: str) -> Optional[str]:
    """``arn:aws:eks:<region>:<acct>:cluster/<name>`` → ``<name>``."""
    _, marker, rest = arn.partition(ARN_CLUSTER_MARKER)
    if not marker:
        return None
    name = rest.strip()
    return name or None


def build_exec_config(region: str, cluster_name: str, aws_profile: str = "") -> Dict[str, Any]:
    config: Dict[str, Any] = {
        "apiVersion": EXEC_API_VERSION,
        "command": "aws",
        "args": [
            "--region", region,
            "eks", "get-token",
            "--cluster-name", cluster_name,
            "--output", "json",
        ],
        "interactiveMode": "IfAvailable",
        "provideClusterInfo": False,
    }
    if aws_profile:
        config["env"] = [{"name": "AWS_PROFILE", "value": aws_profile}]
    return config


def _require(value: str, label: str) -> str:
    clean = value.strip()
    if not clean:
        raise PreconditionError(f"{label} is required", context={"field": label})
    return clean


def add_aws_eks_context(
    document: Document,
    *,
    cluster_arn: str,
    endpoint: str,
    region: str,
    context_name: str = "",
    certificate_authority_data: str = "",
    aws_profile: str = "",
) -> EksEntities:
    """Append a cluster, an exec-plugin user and a context binding them.

    The cluster and user are named after the ARN, the context after
    ``context_name`` or the cluster short name; all three are made unique.

    Raises:
        PreconditionError: ARN, endpoint or region is blank.
    """
    arn = _require(cluster_arn, "Cluster ARN")
    server = _require(endpoint, "API server endpoint")
    clean_region = _require(region, "AWS region")
    ca_data = certificate_authority_data.strip()
    profile = aws_profile.strip()

    short_name = cluster_name_from_arn(arn) or DEFAULT_CLUSTER_NAME
    context_base = context_name.strip() or short_name

    cluster_fields = [("server", server)]
    if ca_data:
        cluster_fields.append(("certificate-authority-data", ca_data))
    cluster = Entity.create(unique_name(arn, document.clusters), cluster_fields)
    user = Entity.create(
        unique_name(arn, document.users),
        [("exec", any_to_string(build_exec_config(clean_region, short_name, profile)))],
    )
    context = Entity.create(
        unique_name(context_base, document.contexts),
        [("cluster", cluster.name), ("user", user.name)],
    )

    document.clusters.append(cluster)
    document.users.append(user)
    document.contexts.append(context)
    if not document.current_context:
        document.current_context = context.name

    logger.info("Added EKS context %r for %s", context.name, arn)
    return EksEntities(context=context, cluster=cluster, user=user)


__all__ = [
    "EksEntities",
    "cluster_name_from_arn",
    "build_exec_config",
    "add_aws_eks_context",
]

"""Pydantic schemas for decoding WorkloadProfile custom resources."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kube_balance.core.errors import MalformedProfileError
from kube_balance.core.models import WorkloadProfile


PROFILE_GROUP = "kube-balance.io"
PROFILE_VERSION = "v1alpha1"
PROFILE_PLURAL = "workloadprofiles"
PROFILE_KIND = "WorkloadProfile"


# ============================================
# Custom Resource Schemas
# ============================================

class ObjectMetaSchema(BaseModel):
    """Subset of ObjectMeta the cache needs."""

    name: str = Field(min_length=1)
    resource_version: Optional[str] = Field(default=None, alias="resourceVersion")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WorkloadProfileSpecSchema(BaseModel):
    cpu_requests: Optional[str] = Field(default=None, alias="cpuRequests")
    memory_requests: Optional[str] = Field(default=None, alias="memoryRequests")
    eviction_priority: int = Field(alias="evictionPriority")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WorkloadProfileResource(BaseModel):
    """kube-balance.io/v1alpha1 WorkloadProfile (cluster scoped)."""

    api_version: Optional[str] = Field(default=None, alias="apiVersion")
    kind: Optional[str] = None
    metadata: ObjectMetaSchema
    spec: WorkloadProfileSpecSchema

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_profile(self) -> WorkloadProfile:
        return WorkloadProfile(
            name=self.metadata.name,
            eviction_priority=self.spec.eviction_priority,
            cpu_requests=self.spec.cpu_requests,
            memory_requests=self.spec.memory_requests,
            resource_version=self.metadata.resource_version,
        )


def decode_profile(payload: Any) -> WorkloadProfile:
    """
    Decode a WorkloadProfile from a watch/list payload.

    Raises:
        MalformedProfileError: payload is not a decodable WorkloadProfile
    """
    if isinstance(payload, WorkloadProfile):
        return payload

    if not isinstance(payload, dict):
        raise MalformedProfileError(
            f"expected a mapping, got {type(payload).__name__}"
        )

    kind = payload.get("kind")
    if kind is not None and kind != PROFILE_KIND:
        raise MalformedProfileError(f"unexpected kind {kind!r}")

    try:
        return WorkloadProfileResource.model_validate(payload).to_profile()
    except ValidationError as e:
        raise MalformedProfileError(str(e)) from e


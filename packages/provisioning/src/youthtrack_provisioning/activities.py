"""Provisioning activities — Temporal activity functions for member management.

These run on the provisioning worker (PROVISIONING_QUEUE), for admin tooling
that enrolls members in bulk or reissues codes outside a request cycle:

  enroll_member        — create identity + linked profile, return the new code
  reissue_access_code  — new code on the profile, identity password moved along

Both use the process-wide identity client (service-role key required) and a
profile store over the shared engine. Authorisation is the caller's concern:
only trusted workflows dispatch to this queue.
"""

from temporalio import activity
from youthtrack_identity_access.client import get_client
from youthtrack_profile_access.store import ProfileStore
from youthtrack_shared.profile_models import (
    EnrollMemberRequest,
    EnrollMemberResult,
    ReissueAccessCodeRequest,
    ReissueAccessCodeResult,
)

from youthtrack_provisioning import service


@activity.defn
async def enroll_member(request: EnrollMemberRequest) -> EnrollMemberResult:
    activity.logger.info(f"Enrolling {request.full_name} as {request.role.value}")
    return await service.enroll(request, get_client(), ProfileStore())


@activity.defn
async def reissue_access_code(request: ReissueAccessCodeRequest) -> ReissueAccessCodeResult:
    activity.logger.info(f"Reissuing access code for profile {request.profile_id}")
    return await service.reissue_access_code(request.profile_id, get_client(), ProfileStore())

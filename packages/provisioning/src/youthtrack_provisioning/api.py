"""HTTP endpoint for member enrollment, called by the admin dashboard.

POST /create-user
    Authorization: Bearer <admin's access token>
    Body: EnrollMemberRequest fields
    200 {"success": true, "access_code": ..., "user": {...}, "message": ...}
    401/403 {"success": false, "error": ...} when the caller isn't an Admin
    400 {"success": false, "error": ...} when enrollment itself fails

GET /health

The caller is authorised before the body is validated, so an anonymous
request never learns anything about the payload format.

Run with ``python -m youthtrack_provisioning.api`` (uvicorn, PORT default 8000).
"""

from __future__ import annotations

import logging
import os
from typing import Any

import uvicorn
from fastapi import APIRouter, Body, Depends, FastAPI, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from youthtrack_identity_access.client import IdentityClient, get_client
from youthtrack_profile_access.store import ProfileStore
from youthtrack_shared.profile_models import EnrollMemberRequest

from youthtrack_provisioning.service import AdminAccessError, authorize_admin, enroll

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def get_identity() -> IdentityClient:
    return get_client()


def get_profiles() -> ProfileStore:
    return ProfileStore()


def get_jwt_secret() -> str:
    secret = os.environ.get("SUPABASE_JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "SUPABASE_JWT_SECRET environment variable is not set. "
            "Copy it from the Supabase dashboard (Settings → API → JWT Secret)."
        )
    return secret


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.post("/create-user")
async def create_user(
    payload: dict[str, Any] = Body(...),
    authorization: str | None = Header(default=None),
    identity: IdentityClient = Depends(get_identity),
    profiles: ProfileStore = Depends(get_profiles),
    jwt_secret: str = Depends(get_jwt_secret),
) -> Any:
    try:
        admin = await authorize_admin(authorization, profiles, jwt_secret)
    except AdminAccessError as e:
        return _error(e.status_code, e.message)

    try:
        request = EnrollMemberRequest.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        return _error(400, f"Invalid member details: {fields}")

    logger.info(f"Admin {admin.id} enrolling a new {request.role.value}")
    result = await enroll(request, identity, profiles)
    if not result.success:
        return _error(400, result.error or result.message)

    return {
        "success": True,
        "access_code": result.access_code,
        "user": result.user.model_dump(mode="json") if result.user else None,
        "message": result.message,
    }


def create_app() -> FastAPI:
    app = FastAPI(title="YouthTrack Provisioning", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS", "GET"],
        allow_headers=CORS_ALLOW_HEADERS,
    )
    app.include_router(router)
    return app


app = create_app()


def serve() -> None:
    logging.basicConfig(level=logging.INFO)
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    serve()

from fastapi import APIRouter
from onboarding.api import version_prefix
from onboarding.common.routes import home_router
from onboarding.otp.routes import otp_router
from onboarding.users.routes import user_router


public_routers = APIRouter()

public_routers.include_router(home_router, tags=["health"])
public_routers.include_router(otp_router, prefix=version_prefix, tags=["otp"])
public_routers.include_router(user_router, prefix=version_prefix, tags=["users"])

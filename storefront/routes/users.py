from fastapi import APIRouter, Depends
from storefront.dependencies.permissions import capabilities_for
from storefront.models.user import User
from storefront.utils.token import get_current_user

router = APIRouter()


# -------- USER PROFILE --------

@router.get("/me")
def get_my_profile(current_user: User = Depends(get_current_user)):
    return {
        "id": current_user.id,
        "email": current_user.email,
        "username": current_user.username,
        "first_name": current_user.first_name,
        "last_name": current_user.last_name,
        "role": current_user.role,
        "capabilities": sorted(c.value for c in capabilities_for(current_user.role)),
        "created_at": current_user.created_at
    }

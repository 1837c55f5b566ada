from fastapi import APIRouter, Depends

from app.deps.auth import get_current_user
from app.models.user import User
from app.schemas.users import UserProgressResponse
from app.services.gamification.levels import calculate_level, get_level_progress


router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me/progress", response_model=UserProgressResponse)
def read_my_progress(current_user: User = Depends(get_current_user)) -> UserProgressResponse:
    info = calculate_level(current_user.xp)
    return UserProgressResponse(
        user_id=current_user.id,
        xp=current_user.xp,
        level=info.level,
        rank=info.rank,
        current_level_min=info.current_level_min,
        next_level_min=info.next_level_min,
        progress=round(get_level_progress(current_user.xp), 2),
    )

from fastapi import APIRouter, Depends

from deps.services import get_score_store
from schemas.players import LoginRequest, LoginResponse
from store import ScoreStore, ScoreStoreError

router = APIRouter(prefix="/players", tags=["players"])


@router.post("/login", response_model=LoginResponse)
def login(req: LoginRequest, store: ScoreStore = Depends(get_score_store)):
    username = req.username.strip()
    if not username:
        return {"ok": False, "username": "", "error": "Username required."}
    try:
        ready = store.ensure_player(username)
    except ScoreStoreError as e:
        return {"ok": False, "username": username, "error": f"store_error: {e}"}
    return {"ok": ready, "username": username}

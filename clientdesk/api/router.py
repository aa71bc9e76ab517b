from fastapi import APIRouter, Depends
from clientdesk.api import auth, clients
from clientdesk.core.deps import general_rate_limit, sanitize_request

# Every API route passes the general limiter and the sanitizer before anything else.
router = APIRouter(dependencies=[Depends(general_rate_limit), Depends(sanitize_request)])
router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(clients.router, prefix="/client", tags=["Clients"])

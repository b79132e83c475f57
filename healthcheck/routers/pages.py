from fastapi import APIRouter, Depends, Request

from healthcheck.dependencies import get_auth_context
from healthcheck.models.user import AuthContext
from healthcheck.templating import render

pages_router = APIRouter(tags=["pages"])


@pages_router.get("/")
async def home(request: Request):
    return render(request, "home.html")


@pages_router.get("/index")
async def dashboard(request: Request, auth: AuthContext = Depends(get_auth_context)):
    return render(request, "index.html", {"user_name": auth.user_name})

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.routers import admin_programs as admin_programs_router
from app.routers import admin_questions as admin_questions_router
from app.routers import programs as programs_router
from app.routers import users as users_router

app = FastAPI(title=settings.app_name)

origins = [o.strip() for o in (settings.cors_allowed_origins or "").split(",") if o.strip()]
if not origins:
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


@app.get("/")
def root():
    return {"status": "ok"}


app.include_router(users_router.router)
app.include_router(programs_router.router)
app.include_router(admin_questions_router.router)
app.include_router(admin_programs_router.router)

register_exception_handlers(app)

import logging

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse

from cafe_admin import config
from cafe_admin.db import Base, engine
from cafe_admin.utils.log import setup_logging

# 1) Импортируем все модели, чтобы SQLAlchemy знал про классы и связи
import cafe_admin.models  # noqa: F401

from sqlalchemy.orm import configure_mappers
configure_mappers()

setup_logging(config.LOG_LEVEL, config.LOG_FORMAT)
logger = logging.getLogger(__name__)

# 2) Таблицы принадлежат бэкенду; создаём их только локально
if config.CREATE_TABLES:
    Base.metadata.create_all(bind=engine)
    logger.info("Tabelas locais criadas em %s", engine.url)


# ==== Middleware ====
class AdminAuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # проверяем только /admin
        if request.url.path.startswith("/admin"):
            if not request.session.get("is_admin"):
                return RedirectResponse("/login", status_code=303)
        return await call_next(request)


# ==== FastAPI app ====
app = FastAPI(title=config.APP_NAME)

app.add_middleware(AdminAuthMiddleware)

# Сессии (флаг входа, flash-сообщения); добавлена последней, выполняется первой
app.add_middleware(SessionMiddleware, secret_key=config.SECRET_KEY)


# ==== Routers ====
from cafe_admin.routers import auth as auth_router
from cafe_admin.routers import admin_dashboard
from cafe_admin.routers import admin_products as admin_products_router
from cafe_admin.routers import admin_categories as admin_categories_router
from cafe_admin.routers import admin_orders
app.include_router(auth_router.router)
app.include_router(admin_dashboard.router)
app.include_router(admin_products_router.router)
app.include_router(admin_categories_router.router)
app.include_router(admin_orders.router)

# ==== Static ====
app.mount("/static", StaticFiles(directory=str(config.STATIC_DIR)), name="static")


@app.get("/")
def root():
    return RedirectResponse("/admin/dashboard", status_code=303)

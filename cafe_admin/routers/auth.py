import logging
import secrets
import time

from fastapi import APIRouter, Request, Form
from fastapi.responses import RedirectResponse

from cafe_admin import config
from cafe_admin.templating import templates

logger = logging.getLogger(__name__)
router = APIRouter(tags=["auth"])

# 🔹 Rate limit config
MAX_ATTEMPTS = config.MAX_LOGIN_ATTEMPTS     # максимум попыток
BLOCK_TIME = config.LOGIN_BLOCK_SECONDS      # блокировка в секундах
login_attempts = {}       # { "ip": {"count": int, "last": timestamp} }


def check_rate_limit(ip: str) -> bool:
    """Проверка лимита по IP"""
    now = time.time()
    data = login_attempts.get(ip)

    if not data:
        return True

    # если ещё идёт блокировка
    if data["count"] >= MAX_ATTEMPTS and now - data["last"] < BLOCK_TIME:
        return False

    return True


def add_attempt(ip: str):
    """Запись неудачной попытки входа"""
    now = time.time()
    # чистим истёкшие записи других IP
    for other in [k for k, v in login_attempts.items() if k != ip and now - v["last"] > BLOCK_TIME]:
        del login_attempts[other]

    attempts = login_attempts.get(ip)
    if not attempts or now - attempts["last"] > BLOCK_TIME:
        # сбрасываем после блокировки
        login_attempts[ip] = {"count": 1, "last": now}
    else:
        attempts["count"] += 1
        attempts["last"] = now


def reset_attempts(ip: str):
    """Сброс после успешного логина"""
    login_attempts.pop(ip, None)


def password_matches(password: str) -> bool:
    return secrets.compare_digest(password.encode("utf-8"), config.ADMIN_PASSWORD.encode("utf-8"))


# форма логина
@router.get("/login")
def login_page(request: Request):
    if request.session.get("is_admin"):
        return RedirectResponse("/admin/dashboard", status_code=303)
    return templates.TemplateResponse(request, "auth/login.html", {})


# обработка логина
@router.post("/login")
def login(request: Request, password: str = Form("")):
    client_ip = request.client.host if request.client else "unknown"

    if not check_rate_limit(client_ip):
        logger.warning("Login bloqueado para %s", client_ip)
        return templates.TemplateResponse(
            request,
            "auth/login.html",
            {"error": "Muitas tentativas. Aguarde 1 minuto."},
            status_code=429,
        )

    if not password_matches(password):
        add_attempt(client_ip)  # фиксируем неудачную попытку
        return templates.TemplateResponse(
            request,
            "auth/login.html",
            {"error": "Senha incorreta. Por favor, tente novamente."},
            status_code=401,
        )

    reset_attempts(client_ip)
    request.session["is_admin"] = True
    logger.info("Login do operador a partir de %s", client_ip)
    return RedirectResponse("/admin/dashboard", status_code=303)


# выход
@router.get("/logout")
def logout(request: Request):
    request.session.clear()
    return RedirectResponse("/login", status_code=303)

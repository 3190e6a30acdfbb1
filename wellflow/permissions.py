from functools import wraps
from flask import redirect, request, flash, url_for
from flask_login import current_user


ROLES = ["Administrador", "Gerente de Estoque", "Operador de Campo", "Visitante"]
SETORES = ["Engenharia", "Manutenção", "Compras"]


ROLE_PERMS = {

    "Administrador": [
        "ver_estoque",
        "registrar_transacao",
        "gerenciar_materiais",
        "gerenciar_cadastros",
        "gerenciar_compras",
        "gerenciar_alertas",
        "ver_relatorios",
        "usar_ia",
        "gerenciar_usuarios",
    ],

    "Gerente de Estoque": [
        "ver_estoque",
        "registrar_transacao",
        "gerenciar_materiais",
        "gerenciar_cadastros",
        "gerenciar_compras",
        "gerenciar_alertas",
        "ver_relatorios",
        "usar_ia",
    ],

    "Operador de Campo": [
        "ver_estoque",
        "registrar_transacao",
        "usar_ia",
    ],

    "Visitante": [
        "ver_estoque",
    ],
}


def has_perm(user, perm_name: str) -> bool:
    if not user or not user.is_authenticated:
        return False
    return perm_name in ROLE_PERMS.get(user.role, [])


def _negar():
    flash("Você não tem permissão para acessar esta página.", "danger")
    return redirect(request.referrer or url_for("estoque.dashboard"))


# -------------------------------
# Verificação por papel (role)
# -------------------------------
def roles_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                return redirect(url_for("auth.login"))

            if current_user.role not in roles:
                return _negar()

            return fn(*args, **kwargs)
        return wrapper
    return decorator


# -------------------------------
# Verificação por permissão
# -------------------------------
def perm_required(perm_name: str):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                return redirect(url_for("auth.login"))

            if not has_perm(current_user, perm_name):
                return _negar()

            return fn(*args, **kwargs)
        return wrapper
    return decorator

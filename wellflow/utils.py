from datetime import datetime

from flask import send_file, flash
from flask_login import current_user
from pydantic import ValidationError

from wellflow.schemas import mensagem_validacao


def parse_date(s: str | None):
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_datetime(s: str | None):
    """Aceita 'YYYY-MM-DD' ou 'YYYY-MM-DDTHH:MM' (input datetime-local)."""
    if not s:
        return None
    for fmt in ("%Y-%m-%dT%H:%M", "%Y-%m-%d"):
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def form_dict(form, *campos) -> dict:
    return {c: form.get(c) for c in campos}


def flash_erro(e: Exception):
    if isinstance(e, ValidationError):
        flash(mensagem_validacao(e), "danger")
    else:
        flash(str(e), "danger")


def gerado_por() -> str:
    if current_user.is_authenticated:
        return current_user.nome or current_user.email
    return "-"


def download(bio, filename: str, mimetype: str):
    return send_file(bio, as_attachment=True, download_name=filename, mimetype=mimetype)

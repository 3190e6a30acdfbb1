from flask import Blueprint

cadastros_bp = Blueprint("cadastros", __name__)

from . import routes  # noqa: E402,F401

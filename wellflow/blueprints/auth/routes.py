import logging

from flask import render_template, request, redirect, url_for, flash
from flask_login import login_user, logout_user, current_user, login_required
from pydantic import ValidationError

from wellflow.models import User
from wellflow.schemas import UsuarioIn
from wellflow.services import ServiceError, transaction
from wellflow.services.cadastros import criar_usuario, trocar_senha as _trocar_senha
from wellflow.utils import flash_erro
from . import auth_bp

log = logging.getLogger("wellflow.auth")


def _destino_seguro(nxt):
    if nxt and nxt.startswith("/") and not nxt.startswith("//"):
        return nxt
    return url_for("estoque.dashboard")


@auth_bp.get("/login")
def login():
    if current_user.is_authenticated:
        return redirect(url_for("estoque.dashboard"))
    return render_template("auth/login.html")


@auth_bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    senha = (request.form.get("senha") or "").strip()

    u = User.query.filter_by(email=email, ativo=True).first()
    if not u or not u.check_password(senha):
        log.warning("Falha de login para %s", email)
        flash("E-mail ou senha inválidos.", "danger")
        return redirect(url_for("auth.login"))

    login_user(u)
    log.info("Login: %s", u.email)
    return redirect(_destino_seguro(request.args.get("next")))


@auth_bp.get("/logout")
def logout():
    logout_user()
    flash("Você saiu do sistema.", "info")
    return redirect(url_for("auth.login"))


@auth_bp.route("/cadastro", methods=["GET", "POST"])
def cadastro():
    if request.method == "POST":
        senha = request.form.get("senha") or ""
        if senha != (request.form.get("confirmar") or ""):
            flash("As senhas não coincidem.", "warning")
            return redirect(url_for("auth.cadastro"))
        if len(senha) < 6:
            flash("A senha deve ter pelo menos 6 caracteres.", "warning")
            return redirect(url_for("auth.cadastro"))

        try:
            # quem se cadastra sozinho entra como visitante, sem setor
            dados = UsuarioIn(
                nome=request.form.get("nome"),
                email=request.form.get("email"),
                role="Visitante",
                setor="N/A",
            )
            with transaction():
                u = criar_usuario(dados, senha)
        except (ValidationError, ServiceError) as e:
            flash_erro(e)
            return redirect(url_for("auth.cadastro"))

        login_user(u)
        flash("Conta criada com sucesso.", "success")
        return redirect(url_for("estoque.dashboard"))

    return render_template("auth/cadastro.html")


@auth_bp.route("/trocar-senha", methods=["GET", "POST"])
@login_required
def trocar_senha():
    if request.method == "POST":
        try:
            with transaction():
                _trocar_senha(
                    current_user,
                    request.form.get("senha_atual"),
                    request.form.get("nova_senha"),
                    request.form.get("confirmar"),
                )
        except ServiceError as e:
            flash(str(e), "danger")
            return redirect(url_for("auth.trocar_senha"))

        flash("Senha alterada com sucesso.", "success")
        return redirect(url_for("estoque.dashboard"))

    return render_template("auth/trocar_senha.html")


@auth_bp.route("/perfil", methods=["GET", "POST"])
@login_required
def perfil():
    if request.method == "POST":
        nome = (request.form.get("nome") or "").strip()
        if not nome:
            flash("Informe o nome.", "warning")
            return redirect(url_for("auth.perfil"))

        with transaction():
            current_user.nome = nome
        flash("Perfil atualizado.", "success")
        return redirect(url_for("auth.perfil"))

    return render_template("auth/perfil.html")

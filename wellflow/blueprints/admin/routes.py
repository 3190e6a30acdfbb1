from flask import render_template, request, redirect, url_for, flash, abort
from flask_login import login_required, current_user
from pydantic import ValidationError

from wellflow.extensions import db
from wellflow.models import User, AlertaMaterial
from wellflow.permissions import roles_required, perm_required, ROLES, SETORES
from wellflow.schemas import UsuarioIn
from wellflow.services import ServiceError, transaction
from wellflow.services import cadastros as svc
from wellflow.services.estoque import materiais_ativos
from wellflow.utils import form_dict, flash_erro
from . import admin_bp


# LISTA DE USUÁRIOS
@admin_bp.get("/usuarios")
@login_required
@roles_required("Administrador")
def usuarios_lista():
    usuarios = User.query.order_by(User.nome.asc()).all()
    return render_template("admin/usuarios.html", usuarios=usuarios)


# NOVO USUÁRIO
@admin_bp.route("/usuarios/novo", methods=["GET", "POST"])
@login_required
@roles_required("Administrador")
def usuario_novo():
    if request.method == "POST":
        try:
            dados = UsuarioIn(**form_dict(request.form, "nome", "email", "role", "setor"))
            with transaction():
                svc.criar_usuario(dados, request.form.get("senha"))
        except (ValidationError, ServiceError) as e:
            flash_erro(e)
            return redirect(url_for("admin.usuario_novo"))

        flash("Usuário criado.", "success")
        return redirect(url_for("admin.usuarios_lista"))

    return render_template("admin/usuario_form.html", usuario=None, roles=ROLES, setores=SETORES)


# EDITAR USUÁRIO
@admin_bp.route("/usuarios/<int:user_id>/editar", methods=["GET", "POST"])
@login_required
@roles_required("Administrador")
def usuario_editar(user_id):
    u = db.session.get(User, user_id) or abort(404)

    if request.method == "POST":
        try:
            dados = UsuarioIn(**form_dict(request.form, "nome", "email", "role", "setor"))
            with transaction():
                svc.atualizar_usuario(u.id, dados)
        except (ValidationError, ServiceError) as e:
            flash_erro(e)
            return redirect(url_for("admin.usuario_editar", user_id=u.id))

        flash("Usuário atualizado.", "success")
        return redirect(url_for("admin.usuarios_lista"))

    return render_template("admin/usuario_form.html", usuario=u, roles=ROLES, setores=SETORES)


# RESETAR SENHA
@admin_bp.post("/usuarios/<int:user_id>/reset_senha")
@login_required
@roles_required("Administrador")
def usuario_reset_senha(user_id):
    u = db.session.get(User, user_id) or abort(404)
    nova = (request.form.get("nova_senha") or "").strip() or "123456"
    with transaction():
        u.set_password(nova)

    flash(f"Senha de {u.email} redefinida.", "warning")
    return redirect(url_for("admin.usuarios_lista"))


# ATIVAR / INATIVAR
@admin_bp.post("/usuarios/<int:user_id>/ativar")
@login_required
@roles_required("Administrador")
def usuario_ativar(user_id):
    return _definir_ativo(user_id, True)


@admin_bp.post("/usuarios/<int:user_id>/inativar")
@login_required
@roles_required("Administrador")
def usuario_inativar(user_id):
    return _definir_ativo(user_id, False)


def _definir_ativo(user_id, ativo):
    try:
        with transaction():
            u = svc.definir_ativo(user_id, ativo, current_user.id)
    except ServiceError as e:
        flash(str(e), "danger")
    else:
        flash(f"Usuário {u.email} {'ativado' if ativo else 'inativado'}.", "success")
    return redirect(url_for("admin.usuarios_lista"))


# EXCLUIR
@admin_bp.post("/usuarios/<int:user_id>/excluir")
@login_required
@roles_required("Administrador")
def usuario_excluir(user_id):
    try:
        with transaction():
            svc.excluir_usuario(user_id, current_user.id)
    except ServiceError as e:
        flash(str(e), "danger")
    else:
        flash("Usuário excluído.", "success")
    return redirect(url_for("admin.usuarios_lista"))


# ALERTAS DE ESTOQUE BAIXO
@admin_bp.get("/alertas")
@login_required
@perm_required("gerenciar_alertas")
def alertas():
    por_material = {}
    for a in AlertaMaterial.query.all():
        por_material.setdefault(a.material_id, []).append(a.setor)

    return render_template(
        "admin/alertas.html",
        materiais=materiais_ativos(),
        setores_por_material=por_material,
        setores=SETORES,
        emails=svc.emails_por_setor(),
    )


@admin_bp.post("/alertas/<int:material_id>")
@login_required
@perm_required("gerenciar_alertas")
def alerta_atualizar(material_id):
    try:
        with transaction():
            svc.atualizar_alerta(material_id, request.form.getlist("setores"))
    except ServiceError as e:
        flash(str(e), "danger")
    else:
        flash("Configuração de alerta salva.", "success")
    return redirect(url_for("admin.alertas"))


@admin_bp.post("/alertas/emails")
@login_required
@perm_required("gerenciar_alertas")
def alerta_email_adicionar():
    try:
        with transaction():
            svc.adicionar_email_setor(request.form.get("setor"), request.form.get("email"))
    except ServiceError as e:
        flash(str(e), "danger")
    else:
        flash("E-mail adicionado.", "success")
    return redirect(url_for("admin.alertas"))


@admin_bp.post("/alertas/emails/remover")
@login_required
@perm_required("gerenciar_alertas")
def alerta_email_remover():
    try:
        with transaction():
            svc.remover_email_setor(request.form.get("setor"), request.form.get("email"))
    except ServiceError as e:
        flash(str(e), "danger")
    else:
        flash("E-mail removido.", "success")
    return redirect(url_for("admin.alertas"))

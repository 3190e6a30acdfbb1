from flask import render_template, request, redirect, url_for, flash, abort
from flask_login import login_required
from pydantic import ValidationError

from wellflow.extensions import db
from wellflow.models import Fornecedor, CentroCusto
from wellflow.permissions import perm_required
from wellflow.schemas import FornecedorIn, CentroCustoIn
from wellflow.services import ServiceError, transaction
from wellflow.services import cadastros as svc
from wellflow.services.importacao import ler_csv, parse_fornecedores, COLUNAS_FORNECEDORES
from wellflow.utils import form_dict, flash_erro

from . import cadastros_bp


CAMPOS_FORNECEDOR = ("nome", "cnpj", "contato", "telefone", "email", "endereco", "cidade", "estado", "site")


# ------------------------- fornecedores -------------------------
@cadastros_bp.get("/fornecedores")
@login_required
def fornecedores_lista():
    q = request.args.get("q", "").strip()
    query = Fornecedor.query
    if q:
        query = query.filter(db.or_(Fornecedor.nome.ilike(f"%{q}%"), Fornecedor.cnpj.ilike(f"%{q}%")))
    fornecedores = query.order_by(Fornecedor.nome.asc()).all()
    return render_template("cadastros/fornecedores.html", fornecedores=fornecedores, q=q)


@cadastros_bp.route("/fornecedores/novo", methods=["GET", "POST"])
@login_required
@perm_required("gerenciar_cadastros")
def fornecedor_novo():
    if request.method == "POST":
        try:
            dados = FornecedorIn(**form_dict(request.form, *CAMPOS_FORNECEDOR))
            with transaction():
                f = svc.criar_fornecedor(dados)
        except (ValidationError, ServiceError) as e:
            flash_erro(e)
            return redirect(url_for("cadastros.fornecedor_novo"))

        flash(f"Fornecedor {f.nome} cadastrado.", "success")
        return redirect(url_for("cadastros.fornecedores_lista"))

    return render_template("cadastros/fornecedor_form.html", fornecedor=None)


@cadastros_bp.route("/fornecedores/<int:fornecedor_id>/editar", methods=["GET", "POST"])
@login_required
@perm_required("gerenciar_cadastros")
def fornecedor_editar(fornecedor_id):
    f = db.session.get(Fornecedor, fornecedor_id) or abort(404)

    if request.method == "POST":
        try:
            dados = FornecedorIn(**form_dict(request.form, *CAMPOS_FORNECEDOR))
            with transaction():
                svc.atualizar_fornecedor(f.id, dados)
        except (ValidationError, ServiceError) as e:
            flash_erro(e)
            return redirect(url_for("cadastros.fornecedor_editar", fornecedor_id=f.id))

        flash("Fornecedor atualizado.", "success")
        return redirect(url_for("cadastros.fornecedores_lista"))

    return render_template("cadastros/fornecedor_form.html", fornecedor=f)


@cadastros_bp.post("/fornecedores/<int:fornecedor_id>/excluir")
@login_required
@perm_required("gerenciar_cadastros")
def fornecedor_excluir(fornecedor_id):
    try:
        with transaction():
            svc.excluir_fornecedor(fornecedor_id)
    except ServiceError as e:
        flash(str(e), "danger")
    else:
        flash("Fornecedor excluído.", "success")
    return redirect(url_for("cadastros.fornecedores_lista"))


@cadastros_bp.post("/fornecedores/importar")
@login_required
@perm_required("gerenciar_cadastros")
def fornecedores_importar():
    arquivo = request.files.get("arquivo")
    if not arquivo or not arquivo.filename:
        flash("Selecione um arquivo CSV.", "warning")
        return redirect(url_for("cadastros.fornecedores_lista"))

    try:
        linhas, invalidas = parse_fornecedores(ler_csv(arquivo, COLUNAS_FORNECEDORES))
        with transaction():
            adicionados, ignorados = svc.importar_fornecedores(linhas)
    except ServiceError as e:
        flash(str(e), "danger")
        return redirect(url_for("cadastros.fornecedores_lista"))

    if adicionados:
        flash(f"{adicionados} fornecedores foram importados com sucesso.", "success")
    if ignorados:
        flash(f"{ignorados} fornecedores foram ignorados pois já existiam (nome ou CNPJ).", "info")
    if invalidas:
        flash(f"{invalidas} linhas inválidas foram descartadas.", "warning")
    return redirect(url_for("cadastros.fornecedores_lista"))


# ------------------------- centros de custo -------------------------
@cadastros_bp.get("/centros-custo")
@login_required
def centros_custo_lista():
    centros = CentroCusto.query.order_by(CentroCusto.nome.asc()).all()
    return render_template("cadastros/centros_custo.html", centros=centros)


@cadastros_bp.post("/centros-custo/novo")
@login_required
@perm_required("gerenciar_cadastros")
def centro_custo_novo():
    try:
        dados = CentroCustoIn(**form_dict(request.form, "nome", "descricao"))
        with transaction():
            svc.criar_centro_custo(dados)
    except (ValidationError, ServiceError) as e:
        flash_erro(e)
    else:
        flash("Centro de custo cadastrado.", "success")
    return redirect(url_for("cadastros.centros_custo_lista"))


@cadastros_bp.route("/centros-custo/<int:cc_id>/editar", methods=["GET", "POST"])
@login_required
@perm_required("gerenciar_cadastros")
def centro_custo_editar(cc_id):
    cc = db.session.get(CentroCusto, cc_id) or abort(404)

    if request.method == "POST":
        try:
            dados = CentroCustoIn(**form_dict(request.form, "nome", "descricao"))
            with transaction():
                svc.atualizar_centro_custo(cc.id, dados)
        except (ValidationError, ServiceError) as e:
            flash_erro(e)
            return redirect(url_for("cadastros.centro_custo_editar", cc_id=cc.id))

        flash("Centro de custo atualizado.", "success")
        return redirect(url_for("cadastros.centros_custo_lista"))

    return render_template("cadastros/centro_custo_form.html", centro=cc)


@cadastros_bp.post("/centros-custo/<int:cc_id>/excluir")
@login_required
@perm_required("gerenciar_cadastros")
def centro_custo_excluir(cc_id):
    try:
        with transaction():
            svc.excluir_centro_custo(cc_id)
    except ServiceError as e:
        flash(str(e), "danger")
    else:
        flash("Centro de custo excluído.", "success")
    return redirect(url_for("cadastros.centros_custo_lista"))

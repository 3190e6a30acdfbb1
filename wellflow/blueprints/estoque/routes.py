from flask import render_template, request, redirect, url_for, flash, abort
from flask_login import login_required, current_user
from pydantic import ValidationError

from wellflow.extensions import db
from wellflow.models import Material, Transacao, CentroCusto, Fornecedor
from wellflow.permissions import perm_required
from wellflow.schemas import MaterialIn, TransacaoIn, DadosLancamento, ItemSaida, ItemEntrada
from wellflow.services import ServiceError, transaction
from wellflow.services import estoque as svc
from wellflow.services.importacao import (
    ler_csv, parse_materiais, parse_retiradas, COLUNAS_MATERIAIS, COLUNAS_RETIRADAS,
)
from wellflow.utils import form_dict, flash_erro, parse_datetime

from . import estoque_bp


CAMPOS_MATERIAL = ("nome", "unidade", "categoria", "estoque_minimo", "fornecedor")
CAMPOS_COMUNS = ("responsavel", "numero_os", "centro_custo", "local_estoque", "fornecedor", "nota_fiscal")


# ------------------------- helpers -------------------------
def _flash_alertas(alertas):
    for a in alertas:
        flash(
            f"Alerta de Estoque Baixo: {a.material.nome}. "
            f"Notificação (simulada) enviada para: {', '.join(a.setores)}",
            "warning",
        )


def _dados_lancamento(form) -> DadosLancamento:
    dados = form_dict(form, *CAMPOS_COMUNS)
    dados["data"] = parse_datetime(form.get("data"))
    if not dados.get("responsavel"):
        dados["responsavel"] = current_user.nome
    return DadosLancamento(**dados)


def _material_ou_404(material_id) -> Material:
    m = db.session.get(Material, material_id)
    if m is None or not m.ativo:
        abort(404)
    return m


# ------------------------- dashboard -------------------------
@estoque_bp.get("/dashboard")
@login_required
def dashboard():
    total_materiais = Material.query.filter_by(ativo=True).count()

    # abaixo do mínimo
    materiais_criticos = (
        Material.query
        .filter(Material.ativo.is_(True), Material.saldo_atual < Material.estoque_minimo)
        .count()
    )

    return render_template(
        "estoque/dashboard.html",
        total_materiais=total_materiais,
        materiais_criticos=materiais_criticos,
        total_centros=CentroCusto.query.count(),
        recentes=svc.transacoes_recentes(5),
    )


# ------------------------- materiais -------------------------
@estoque_bp.get("/materiais")
@login_required
def materiais_lista():
    q = request.args.get("q", "").strip()

    query = Material.query.filter_by(ativo=True)
    if q:
        query = query.filter(
            db.or_(Material.nome.ilike(f"%{q}%"), Material.codigo.ilike(f"%{q}%"))
        )
    materiais = query.order_by(Material.nome.asc()).all()

    return render_template(
        "estoque/materiais.html",
        materiais=materiais,
        q=q,
        categorias=svc.categorias(),
        fornecedores=Fornecedor.query.order_by(Fornecedor.nome).all(),
    )


@estoque_bp.post("/materiais/novo")
@login_required
@perm_required("gerenciar_materiais")
def material_novo():
    try:
        dados = MaterialIn(**form_dict(request.form, *CAMPOS_MATERIAL))
        with transaction():
            m, reativado = svc.criar_material(dados)
    except (ValidationError, ServiceError) as e:
        flash_erro(e)
        return redirect(url_for("estoque.materiais_lista"))

    if reativado:
        flash(f'O material "{m.nome}" foi reativado com o código existente ({m.codigo}).', "info")
    else:
        flash(f'Material "{m.nome}" cadastrado ({m.codigo}).', "success")
    return redirect(url_for("estoque.materiais_lista"))


@estoque_bp.get("/materiais/<int:material_id>")
@login_required
def material_detalhe(material_id):
    m = _material_ou_404(material_id)
    transacoes = (
        Transacao.query.filter_by(material_id=m.id)
        .order_by(Transacao.data.desc(), Transacao.id.desc())
        .limit(50)
        .all()
    )
    return render_template(
        "estoque/material_detalhe.html",
        material=m,
        saldos=svc.saldo_por_local(m.id),
        transacoes=transacoes,
    )


@estoque_bp.route("/materiais/<int:material_id>/editar", methods=["GET", "POST"])
@login_required
@perm_required("gerenciar_materiais")
def material_editar(material_id):
    m = _material_ou_404(material_id)

    if request.method == "POST":
        try:
            dados = MaterialIn(**form_dict(request.form, *CAMPOS_MATERIAL))
            with transaction():
                svc.atualizar_material(m.id, dados)
        except (ValidationError, ServiceError) as e:
            flash_erro(e)
            return redirect(url_for("estoque.material_editar", material_id=m.id))

        flash("Material atualizado.", "success")
        return redirect(url_for("estoque.materiais_lista"))

    return render_template(
        "estoque/material_form.html",
        material=m,
        categorias=svc.categorias(),
        fornecedores=Fornecedor.query.order_by(Fornecedor.nome).all(),
    )


@estoque_bp.post("/materiais/<int:material_id>/excluir")
@login_required
@perm_required("gerenciar_materiais")
def material_excluir(material_id):
    try:
        with transaction():
            svc.excluir_material(material_id)
    except ServiceError as e:
        flash(str(e), "danger")
        return redirect(url_for("estoque.materiais_lista"))

    flash("Material excluído.", "success")
    return redirect(url_for("estoque.materiais_lista"))


@estoque_bp.post("/materiais/excluir")
@login_required
@perm_required("gerenciar_materiais")
def materiais_excluir():
    ids = [i for i in request.form.getlist("ids") if i.isdigit()]
    with transaction():
        n = svc.excluir_materiais(ids)
    flash(f"{n} materiais excluídos.", "success" if n else "info")
    return redirect(url_for("estoque.materiais_lista"))


@estoque_bp.post("/materiais/importar")
@login_required
@perm_required("gerenciar_materiais")
def materiais_importar():
    arquivo = request.files.get("arquivo")
    if not arquivo or not arquivo.filename:
        flash("Selecione um arquivo CSV.", "warning")
        return redirect(url_for("estoque.materiais_lista"))

    try:
        linhas, invalidas = parse_materiais(ler_csv(arquivo, COLUNAS_MATERIAIS))
        with transaction():
            adicionados, ignorados = svc.importar_materiais(linhas)
    except ServiceError as e:
        flash(str(e), "danger")
        return redirect(url_for("estoque.materiais_lista"))

    if adicionados:
        flash(f"{adicionados} materiais foram importados com sucesso.", "success")
    if ignorados:
        flash(f"{ignorados} materiais foram ignorados pois já existiam.", "info")
    if invalidas:
        flash(f"{invalidas} linhas inválidas foram descartadas.", "warning")
    return redirect(url_for("estoque.materiais_lista"))


@estoque_bp.post("/categorias")
@login_required
@perm_required("gerenciar_materiais")
def categoria_nova():
    try:
        with transaction():
            svc.adicionar_categoria(request.form.get("nome"))
    except ServiceError as e:
        flash(str(e), "danger")
    else:
        flash("Categoria adicionada.", "success")
    return redirect(url_for("estoque.materiais_lista"))


# ------------------------- transações -------------------------
@estoque_bp.get("/transacoes")
@login_required
def transacoes_lista():
    tipo = request.args.get("tipo", "").strip()
    q = request.args.get("q", "").strip()

    query = Transacao.query
    if tipo in svc.TIPOS:
        query = query.filter(Transacao.tipo == tipo)
    if q:
        query = query.filter(Transacao.material_nome.ilike(f"%{q}%"))
    transacoes = query.order_by(Transacao.data.desc(), Transacao.id.desc()).limit(500).all()

    return render_template(
        "estoque/transacoes.html",
        transacoes=transacoes,
        tipo=tipo,
        q=q,
        materiais=svc.materiais_ativos(),
        categorias=svc.categorias(),
        centros=CentroCusto.query.order_by(CentroCusto.nome).all(),
        fornecedores=Fornecedor.query.order_by(Fornecedor.nome).all(),
    )


@estoque_bp.post("/transacoes/nova")
@login_required
@perm_required("registrar_transacao")
def transacao_nova():
    tipo = request.form.get("tipo", "")
    dados = form_dict(
        request.form,
        "material_id", "material_nome", "unidade", "categoria", "quantidade", "preco_unitario",
        "nota_fiscal", "nome_na_nota", "valor_frete", *CAMPOS_COMUNS,
    )
    dados["data"] = parse_datetime(request.form.get("data"))
    if not dados.get("responsavel"):
        dados["responsavel"] = current_user.nome

    try:
        with transaction():
            t, alerta = svc.registrar_transacao(tipo, TransacaoIn(**dados))
    except (ValidationError, ServiceError) as e:
        flash_erro(e)
        return redirect(url_for("estoque.transacoes_lista"))

    flash(f"{'Entrada' if t.tipo == 'entrada' else 'Saída'} de {t.material_nome} registrada.", "success")
    _flash_alertas([alerta] if alerta else [])
    return redirect(url_for("estoque.transacoes_lista"))


@estoque_bp.post("/transacoes/saidas")
@login_required
@perm_required("registrar_transacao")
def saidas_multiplas():
    ids = request.form.getlist("material_id")
    qtds = request.form.getlist("quantidade")

    try:
        comum = _dados_lancamento(request.form)
        itens = [ItemSaida(material_id=mid, quantidade=qtd) for mid, qtd in zip(ids, qtds) if mid and qtd]
        if not itens:
            raise ServiceError("Nenhum item informado.")
        with transaction():
            transacoes, mensagens, alertas = svc.registrar_saidas_multiplas(itens, comum)
    except (ValidationError, ServiceError) as e:
        flash_erro(e)
        return redirect(url_for("estoque.transacoes_lista"))

    for msg in mensagens:
        flash(msg, "danger")
    if transacoes:
        flash(f"{len(transacoes)} retiradas foram salvas com sucesso.", "success")
    _flash_alertas(alertas)
    return redirect(url_for("estoque.transacoes_lista"))


@estoque_bp.post("/transacoes/entradas")
@login_required
@perm_required("registrar_transacao")
def entradas_multiplas():
    f = request.form
    linhas = zip(
        f.getlist("material_id"), f.getlist("material_nome"), f.getlist("nome_na_nota"),
        f.getlist("quantidade"), f.getlist("preco_unitario"), f.getlist("unidade"), f.getlist("categoria"),
    )

    try:
        comum = _dados_lancamento(f)
        itens = []
        for mid, nome, nome_nota, qtd, preco, unidade, categoria in linhas:
            if not (mid or nome) or not qtd:
                continue
            if mid and not nome:
                nome = getattr(db.session.get(Material, int(mid)), "nome", mid)
            itens.append(ItemEntrada(
                material_id=mid or None,
                material_nome=nome,
                nome_na_nota=nome_nota,
                novo=not mid,
                quantidade=qtd,
                preco_unitario=preco,
                unidade=unidade,
                categoria=categoria,
            ))
        with transaction():
            transacoes, novos = svc.registrar_entradas_multiplas(itens, comum)
    except (ValidationError, ServiceError, ValueError) as e:
        flash_erro(e)
        return redirect(url_for("estoque.transacoes_lista"))

    msg = f"{len(transacoes)} itens foram adicionados ao estoque."
    if novos:
        msg += f" {novos} novos materiais foram criados."
    flash(msg, "success")
    return redirect(url_for("estoque.transacoes_lista"))


@estoque_bp.post("/transacoes/importar-retiradas")
@login_required
@perm_required("registrar_transacao")
def retiradas_importar():
    arquivo = request.files.get("arquivo")
    if not arquivo or not arquivo.filename:
        flash("Selecione um arquivo CSV.", "warning")
        return redirect(url_for("estoque.transacoes_lista"))

    try:
        comum = _dados_lancamento(request.form)
        itens, invalidas = parse_retiradas(ler_csv(arquivo, COLUNAS_RETIRADAS))
        if invalidas:
            flash(f"{invalidas} linhas inválidas (material inexistente ou quantidade <= 0) foram ignoradas.", "warning")
        if not itens:
            raise ServiceError("Nenhuma retirada válida encontrada no arquivo.")
        with transaction():
            transacoes, mensagens, alertas = svc.registrar_saidas_multiplas(itens, comum)
    except (ValidationError, ServiceError) as e:
        flash_erro(e)
        return redirect(url_for("estoque.transacoes_lista"))

    for msg in mensagens:
        flash(msg, "danger")
    if transacoes:
        flash(f"{len(transacoes)} retiradas foram salvas com sucesso.", "success")
    _flash_alertas(alertas)
    return redirect(url_for("estoque.transacoes_lista"))

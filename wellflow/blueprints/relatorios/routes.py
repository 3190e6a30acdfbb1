from flask import render_template, request, redirect, url_for, flash, abort
from flask_login import login_required
from pydantic import ValidationError

from wellflow.exportacao import pdf_tabela, pdf_texto, xlsx_tabela, csv_tabela, fmt_num, nome_arquivo, XLSX_MIMETYPE
from wellflow.ia import ErroIA
from wellflow.ia.fluxos import prever_consumo, montar_previsao_in
from wellflow.models import Material
from wellflow.permissions import perm_required
from wellflow.services import analise
from wellflow.services.estoque import materiais_ativos
from wellflow.utils import parse_date, download, gerado_por, flash_erro

from . import relatorios_bp

HORIZONTES = ["próxima semana", "próximo mês", "próximo trimestre", "próximos 6 meses"]

COLUNAS_MATERIAIS = [
    "Nome", "Código", "Categoria", "Unidade", "Estoque Atual", "Estoque Mínimo", "Fornecedor Padrão",
]


# =========================
# Helpers
# =========================
def _periodo_args():
    return analise.periodo(parse_date(request.args.get("de")), parse_date(request.args.get("ate")))


def _linhas_materiais():
    return [
        [m.nome, m.codigo, m.categoria, m.unidade, m.saldo_atual, m.estoque_minimo, m.fornecedor or ""]
        for m in materiais_ativos()
    ]


# =========================
# Index
# =========================
@relatorios_bp.get("/")
@login_required
@perm_required("ver_relatorios")
def relatorios_index():
    de, ate = analise.periodo()
    return render_template("relatorios/index.html", de=de, ate=ate)


# =========================
# 1) MATERIAIS
# =========================
@relatorios_bp.get("/materiais.<formato>")
@login_required
@perm_required("ver_relatorios")
def relatorio_materiais(formato):
    rows = _linhas_materiais()

    if formato == "xlsx":
        bio = xlsx_tabela("Materiais", COLUNAS_MATERIAIS, rows)
        return download(bio, nome_arquivo("relatorio_materiais", "xlsx"), XLSX_MIMETYPE)

    if formato == "csv":
        return download(csv_tabela(COLUNAS_MATERIAIS, rows), nome_arquivo("relatorio_materiais", "csv"), "text/csv")

    if formato == "pdf":
        rows = [[*r[:4], fmt_num(r[4]), fmt_num(r[5]), r[6]] for r in rows]
        bio = pdf_tabela("Relatório de Materiais", COLUNAS_MATERIAIS, rows, gerado_por(),
                         larguras=[4, 2, 2, 1, 1.4, 1.4, 3])
        return download(bio, nome_arquivo("relatorio_materiais", "pdf"), "application/pdf")

    abort(404)


# =========================
# 2) TRANSAÇÕES (PDF)
# =========================
@relatorios_bp.get("/transacoes.pdf")
@login_required
@perm_required("ver_relatorios")
def relatorio_transacoes_pdf():
    de, ate = _periodo_args()
    transacoes = analise.transacoes_periodo(de, ate)

    if not transacoes:
        flash("Nenhuma transação encontrada no período selecionado.", "warning")
        return redirect(url_for("relatorios.relatorios_index"))

    headers = ["Data", "Material", "Tipo", "Qtd", "Responsável", "Doc/OS", "Centro de Custo"]
    rows = [
        [
            t.data.strftime("%d/%m/%Y"),
            t.material_nome,
            "Entrada" if t.tipo == "entrada" else "Saída",
            fmt_num(t.quantidade),
            t.responsavel,
            t.documento,
            t.centro_custo or "-",
        ]
        for t in transacoes
    ]
    subtitulo = f"Período: {de.strftime('%d/%m/%Y')} a {ate.strftime('%d/%m/%Y')}"
    bio = pdf_tabela("Relatório de Transações", headers, rows, gerado_por(), subtitulo=subtitulo,
                     larguras=[1.6, 4, 1.2, 1, 2.2, 1.8, 2.2])
    return download(bio, nome_arquivo("relatorio_transacoes", "pdf"), "application/pdf")


# =========================
# 3) ANÁLISE
# =========================
@relatorios_bp.get("/analise")
@login_required
@perm_required("ver_relatorios")
def analise_index():
    de, ate = _periodo_args()
    return render_template(
        "relatorios/analise.html",
        de=de,
        ate=ate,
        tendencia=analise.tendencia_transacoes(de, ate),
        giro=analise.giro_estoque(de, ate),
        materiais=materiais_ativos(),
        horizontes=HORIZONTES,
        previsao=None,
        horizonte=None,
    )


@relatorios_bp.get("/analise.pdf")
@login_required
@perm_required("ver_relatorios")
def analise_pdf():
    de, ate = _periodo_args()
    tendencia = [d for d in analise.tendencia_transacoes(de, ate) if d["entrada"] or d["saida"]]
    giro = analise.giro_estoque(de, ate)

    blocos = [
        ("Entradas e saídas por dia", [
            f"{d['data'].strftime('%d/%m/%Y')}  Entradas: {fmt_num(d['entrada'])}  Saídas: {fmt_num(d['saida'])}"
            for d in tendencia
        ] or ["Sem movimentações no período."]),
        ("Giro de estoque", [
            f"{g['material'].nome} ({g['material'].codigo}): {fmt_num(g['giro'])}" for g in giro
        ] or ["Nenhum material cadastrado."]),
    ]
    subtitulo = f"Período: {de.strftime('%d/%m/%Y')} a {ate.strftime('%d/%m/%Y')}"
    bio = pdf_texto("Relatório de Análise - Entradas e Saídas", blocos, gerado_por(), subtitulo=subtitulo)
    return download(bio, nome_arquivo("relatorio_analise", "pdf"), "application/pdf")


@relatorios_bp.post("/analise/previsao")
@login_required
@perm_required("ver_relatorios")
def analise_previsao():
    ids = [int(i) for i in request.form.getlist("material_ids") if i.isdigit()]
    horizonte = (request.form.get("horizonte") or "").strip()
    materiais = Material.query.filter(Material.id.in_(ids), Material.ativo.is_(True)).all() if ids else []

    if not materiais:
        flash("Selecione pelo menos um material.", "warning")
        return redirect(url_for("relatorios.analise_index"))

    try:
        entrada = montar_previsao_in(
            materiais, {m.id: analise.historico_material(m.id) for m in materiais}, horizonte,
        )
        previsao = prever_consumo(entrada)
    except (ValidationError, ErroIA) as e:
        flash_erro(e)
        return redirect(url_for("relatorios.analise_index"))

    if request.form.get("formato") == "pdf":
        blocos = [
            (p.nome_material, [
                f"Consumo previsto: {p.consumo_previsto:g}",
                f"Nível de confiança: {p.nivel_confianca * 100:.0f}%",
                p.explicacao,
            ])
            for p in previsao.previsoes
        ]
        bio = pdf_texto("Relatório de Análise Preditiva", blocos, gerado_por(),
                        subtitulo=f"Período de Previsão: {horizonte}")
        return download(bio, nome_arquivo("analise_preditiva", "pdf"), "application/pdf")

    de, ate = analise.periodo()
    return render_template(
        "relatorios/analise.html",
        de=de,
        ate=ate,
        tendencia=analise.tendencia_transacoes(de, ate),
        giro=analise.giro_estoque(de, ate),
        materiais=materiais_ativos(),
        horizontes=HORIZONTES,
        previsao=previsao,
        horizonte=horizonte,
    )

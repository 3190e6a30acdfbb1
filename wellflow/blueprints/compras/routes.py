from flask import render_template, request, redirect, url_for, flash
from flask_login import login_required

from wellflow.exportacao import XLSX_MIMETYPE
from wellflow.models import Fornecedor
from wellflow.permissions import perm_required
from wellflow.services import ServiceError
from wellflow.services import compras as svc
from wellflow.utils import download, gerado_por

from . import compras_bp


@compras_bp.get("/")
@login_required
@perm_required("gerenciar_compras")
def compras_index():
    return render_template(
        "compras/index.html",
        sugestoes=svc.sugestoes_compra(),
        fornecedores=Fornecedor.query.order_by(Fornecedor.nome.asc()).all(),
    )


@compras_bp.post("/pedido")
@login_required
@perm_required("gerenciar_compras")
def pedido():
    formato = request.form.get("formato", "pdf")
    itens = list(zip(request.form.getlist("material_id"), request.form.getlist("quantidade")))

    try:
        fornecedor, pedido = svc.montar_pedido(request.form.get("fornecedor_id"), itens)
    except (ServiceError, ValueError) as e:
        flash(str(e), "danger")
        return redirect(url_for("compras.compras_index"))

    if formato == "xlsx":
        return download(svc.pedido_xlsx(fornecedor, pedido), svc.nome_arquivo_pedido(fornecedor, "xlsx"), XLSX_MIMETYPE)

    return download(
        svc.pedido_pdf(fornecedor, pedido, gerado_por()),
        svc.nome_arquivo_pedido(fornecedor, "pdf"),
        "application/pdf",
    )

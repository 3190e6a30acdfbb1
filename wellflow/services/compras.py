import logging
import re
from collections import namedtuple
from decimal import Decimal

from wellflow.extensions import db
from wellflow.models import Material, Fornecedor
from wellflow.exportacao import pdf_tabela, xlsx_tabela, fmt_num, nome_arquivo
from wellflow.services import _ensure, _to_decimal
from wellflow.services.cadastros import fornecedor_por_nome

log = logging.getLogger("wellflow.compras")

ItemPedido = namedtuple("ItemPedido", "material quantidade")
Sugestao = namedtuple("Sugestao", "material quantidade fornecedor")


def materiais_estoque_baixo():
    return (
        Material.query
        .filter(Material.ativo.is_(True), Material.saldo_atual <= Material.estoque_minimo)
        .order_by(Material.nome.asc())
        .all()
    )


def quantidade_sugerida(m: Material) -> Decimal:
    """Repor até o dobro do mínimo, pelo menos 1."""
    sugerida = _to_decimal(m.estoque_minimo) * 2 - _to_decimal(m.saldo_atual)
    return max(Decimal("1"), sugerida)


def sugestoes_compra():
    return [
        Sugestao(m, quantidade_sugerida(m), fornecedor_por_nome(m.fornecedor))
        for m in materiais_estoque_baixo()
    ]


def montar_pedido(fornecedor_id, itens):
    """``itens``: pares ``(material_id, quantidade)``. Quantidades <= 0 são ignoradas."""
    f = db.session.get(Fornecedor, int(fornecedor_id)) if fornecedor_id else None
    _ensure(f is not None, "Selecione um fornecedor.")

    pedido = []
    for material_id, qtd in itens:
        qtd = _to_decimal(qtd)
        if qtd <= 0:
            continue
        m = db.session.get(Material, int(material_id))
        _ensure(m is not None and m.ativo, f"Material com ID {material_id} não encontrado.")
        pedido.append(ItemPedido(m, qtd))

    _ensure(len(pedido) > 0, "Adicione pelo menos um material ao pedido.")
    log.info("Pedido de orçamento montado para %s com %d itens", f.nome, len(pedido))
    return f, pedido


def nome_arquivo_pedido(fornecedor: Fornecedor, ext: str) -> str:
    nome = re.sub(r"\s+", "_", fornecedor.nome.strip())
    return nome_arquivo(f"pedido_orcamento_{nome}", ext)


def pedido_pdf(fornecedor: Fornecedor, pedido, gerado_por: str):
    headers = ["Material", "Código", "Unidade", "Qtd. Pedido"]
    rows = [[i.material.nome, i.material.codigo, i.material.unidade, fmt_num(i.quantidade)] for i in pedido]
    subtitulo = " | ".join(p for p in [fornecedor.cnpj and f"CNPJ: {fornecedor.cnpj}",
                                       fornecedor.email, fornecedor.telefone] if p) or None
    return pdf_tabela(f"Pedido de Orçamento - {fornecedor.nome}", headers, rows, gerado_por,
                      subtitulo=subtitulo, larguras=[5, 2, 1.5, 1.5])


def pedido_xlsx(fornecedor: Fornecedor, pedido):
    headers = ["Fornecedor", "Material", "Código", "Unidade", "Quantidade Pedida"]
    rows = [[fornecedor.nome, i.material.nome, i.material.codigo, i.material.unidade, i.quantidade] for i in pedido]
    return xlsx_tabela(fornecedor.nome[:31], headers, rows)

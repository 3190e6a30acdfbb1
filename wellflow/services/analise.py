"""
Indicadores calculados sobre as transações de um período.
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP

from wellflow.models import Transacao
from wellflow.services import _to_decimal
from wellflow.services.estoque import materiais_ativos

DIAS_PADRAO = 30


def periodo(de: date | None = None, ate: date | None = None):
    """Sem datas informadas, usa os últimos 30 dias (hoje incluso)."""
    ate = ate or date.today()
    de = de or (ate - timedelta(days=DIAS_PADRAO - 1))
    if de > ate:
        de, ate = ate, de
    return de, ate


def transacoes_periodo(de: date, ate: date, material_id: int | None = None):
    q = Transacao.query.filter(
        Transacao.data >= datetime.combine(de, time.min),
        Transacao.data <= datetime.combine(ate, time.max),
    )
    if material_id:
        q = q.filter(Transacao.material_id == material_id)
    return q.order_by(Transacao.data.asc(), Transacao.id.asc()).all()


def tendencia_transacoes(de: date, ate: date):
    """Total de entradas e saídas por dia, incluindo dias sem movimento."""
    dias = {}
    d = de
    while d <= ate:
        dias[d] = {"data": d, "entrada": Decimal("0"), "saida": Decimal("0")}
        d += timedelta(days=1)

    for t in transacoes_periodo(de, ate):
        dia = dias.get(t.data.date())
        if dia is not None:
            dia[t.tipo] += _to_decimal(t.quantidade)

    return list(dias.values())


def giro_estoque(de: date, ate: date):
    """Giro = saídas do período / estoque médio (início e fim do período)."""
    por_material = {}
    for t in transacoes_periodo(de, ate):
        por_material.setdefault(t.material_id, []).append(t)

    resultado = []
    for m in materiais_ativos():
        txs = por_material.get(m.id, [])
        saidas = sum((_to_decimal(t.quantidade) for t in txs if t.tipo == "saida"), Decimal("0"))
        liquido = sum(
            (_to_decimal(t.quantidade) if t.tipo == "entrada" else -_to_decimal(t.quantidade) for t in txs),
            Decimal("0"),
        )
        atual = _to_decimal(m.saldo_atual)
        inicial = atual - liquido
        medio = (inicial + atual) / 2

        giro = (saidas / medio).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) if medio > 0 else Decimal("0")
        resultado.append({"material": m, "saidas": saidas, "estoque_medio": medio, "giro": giro})

    return resultado


def historico_material(material_id: int):
    txs = Transacao.query.filter_by(material_id=material_id).order_by(Transacao.data.asc()).all()
    return [
        {"date": t.data.strftime("%Y-%m-%d"), "quantity": float(t.quantidade), "type": t.tipo}
        for t in txs
    ]

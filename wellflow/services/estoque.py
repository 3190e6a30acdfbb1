"""
Regras de movimentação de estoque.

O saldo do material só é alterado aqui: cada entrada soma, cada saída
subtrai (nunca abaixo de zero). As funções não fazem commit; quem chama
envolve a operação em ``transaction()``.
"""
import logging
from collections import namedtuple
from datetime import datetime
from decimal import Decimal

from wellflow.extensions import db
from wellflow.models import Material, Categoria, Transacao, AlertaMaterial, SetorEmail
from wellflow.schemas import MaterialIn
from wellflow.services import ServiceError, _ensure, _to_decimal, _upper

log = logging.getLogger("wellflow.estoque")
alerta_log = logging.getLogger("wellflow.alertas")

TIPOS = ("entrada", "saida")
SEM_LOCAL = "Não especificado"

Alerta = namedtuple("Alerta", "material setores emails")


# ------------------------- helpers -------------------------
def _codigo(material_id: int) -> str:
    return f"PRD{material_id:08d}"


def _material_por_nome(nome_upper: str, ativo: bool):
    return Material.query.filter_by(nome=nome_upper, ativo=ativo).first()


def _material_ativo(material_id) -> Material:
    m = db.session.get(Material, material_id) if material_id else None
    _ensure(m is not None and m.ativo, f"Material com ID {material_id} não encontrado.")
    return m


def materiais_ativos():
    return Material.query.filter_by(ativo=True).order_by(Material.nome.asc()).all()


def categorias():
    return [c.nome for c in Categoria.query.order_by(Categoria.nome.asc()).all()]


def adicionar_categoria(nome: str):
    nome = (nome or "").strip()
    _ensure(len(nome) > 0, "Nome da categoria obrigatório.")
    if not Categoria.query.filter_by(nome=nome).first():
        db.session.add(Categoria(nome=nome))
        db.session.flush()
        log.info("Categoria criada: %s", nome)


# ------------------------- materiais -------------------------
def criar_material(dados: MaterialIn):
    """Cadastra um material ou reativa um excluído com o mesmo nome.

    Retorna ``(material, reativado)``.
    """
    nome = dados.nome.upper()
    _ensure(
        _material_por_nome(nome, ativo=True) is None,
        f'Um material com o nome "{dados.nome}" já existe.',
    )

    m = _material_por_nome(nome, ativo=False)
    reativado = m is not None
    if m is None:
        m = Material(saldo_atual=Decimal("0"))
        db.session.add(m)

    m.nome = nome
    m.unidade = dados.unidade
    m.categoria = dados.categoria
    m.estoque_minimo = dados.estoque_minimo
    m.fornecedor = _upper(dados.fornecedor)
    m.ativo = True
    db.session.flush()

    if not m.codigo:
        m.codigo = _codigo(m.id)
    adicionar_categoria(m.categoria)

    log.info("Material %s %s (%s)", "reativado" if reativado else "criado", m.nome, m.codigo)
    return m, reativado


def atualizar_material(material_id: int, dados: MaterialIn) -> Material:
    m = _material_ativo(material_id)
    nome = dados.nome.upper()

    outro = Material.query.filter(
        Material.nome == nome, Material.ativo.is_(True), Material.id != m.id
    ).first()
    _ensure(outro is None, f'Outro material já existe com o nome "{dados.nome}".')

    m.nome = nome
    m.unidade = dados.unidade
    m.categoria = dados.categoria
    m.estoque_minimo = dados.estoque_minimo
    m.fornecedor = _upper(dados.fornecedor)
    adicionar_categoria(m.categoria)

    log.info("Material atualizado: %s", m.codigo)
    return m


def excluir_material(material_id: int):
    m = _material_ativo(material_id)
    m.ativo = False
    log.info("Material excluído: %s", m.codigo)


def excluir_materiais(material_ids) -> int:
    ids = [int(i) for i in material_ids]
    if not ids:
        return 0
    materiais = Material.query.filter(Material.id.in_(ids), Material.ativo.is_(True)).all()
    for m in materiais:
        m.ativo = False
    log.info("%d materiais excluídos", len(materiais))
    return len(materiais)


def importar_materiais(linhas):
    """Importa uma lista de ``MaterialIn``; ativos repetidos são ignorados."""
    adicionados = 0
    for dados in linhas:
        if _material_por_nome(dados.nome.upper(), ativo=True):
            continue
        criar_material(dados)
        adicionados += 1

    ignorados = len(linhas) - adicionados
    log.info("Importação de materiais: %d adicionados, %d ignorados", adicionados, ignorados)
    return adicionados, ignorados


# ------------------------- alertas -------------------------
def verificar_alerta_estoque(material: Material):
    """Envia (simulado) o aviso de estoque baixo para os setores configurados."""
    saldo = _to_decimal(material.saldo_atual)
    minimo = _to_decimal(material.estoque_minimo)
    if saldo >= minimo:
        return None

    setores = [
        a.setor for a in
        AlertaMaterial.query.filter_by(material_id=material.id).order_by(AlertaMaterial.setor).all()
    ]
    if not setores:
        return None

    emails = []
    for se in SetorEmail.query.filter(SetorEmail.setor.in_(setores)).order_by(SetorEmail.id).all():
        if se.email not in emails:
            emails.append(se.email)
    if not emails:
        return None

    alerta_log.info(
        "E-mail simulado | Para: %s | Assunto: Alerta de Estoque Baixo - %s | "
        "O material \"%s\" (ID: %s) está com estoque baixo. Estoque Atual: %s, Estoque Mínimo: %s",
        ", ".join(emails), material.nome, material.nome, material.codigo, saldo, minimo,
    )
    return Alerta(material, setores, emails)


# ------------------------- transações -------------------------
def registrar_transacao(tipo: str, dados):
    """Registra uma entrada ou saída e ajusta o saldo do material.

    Uma entrada sem material, mas com nome, unidade e categoria, cadastra o
    material antes. Retorna ``(transacao, alerta)``; ``alerta`` é ``None``
    quando nenhum aviso foi disparado.
    """
    _ensure(tipo in TIPOS, "Tipo de transação inválido.")

    if tipo == "entrada" and not dados.material_id and dados.material_nome and dados.unidade and dados.categoria:
        m, _ = criar_material(MaterialIn(
            nome=dados.material_nome,
            unidade=dados.unidade,
            categoria=dados.categoria,
            estoque_minimo=0,
            fornecedor=dados.fornecedor,
        ))
    else:
        _ensure(dados.material_id is not None, "Material não especificado.")
        m = _material_ativo(dados.material_id)

    qtd = _to_decimal(dados.quantidade)
    saldo = _to_decimal(m.saldo_atual)

    if tipo == "entrada":
        m.saldo_atual = saldo + qtd
        if dados.preco_unitario is not None:
            m.ultimo_preco_pago = dados.preco_unitario
    else:
        if saldo < qtd:
            raise ServiceError(f'Estoque Insuficiente: não há estoque suficiente de "{m.nome}" para esta saída.')
        m.saldo_atual = saldo - qtd

    t = Transacao(
        tipo=tipo,
        data=dados.data or datetime.now(),
        material=m,
        material_nome=m.nome,
        quantidade=qtd,
        preco_unitario=dados.preco_unitario,
        fornecedor=_upper(dados.fornecedor),
        nota_fiscal=dados.nota_fiscal,
        nome_na_nota=dados.nome_na_nota,
        numero_os=dados.numero_os,
        responsavel=dados.responsavel,
        centro_custo=dados.centro_custo,
        local_estoque=_upper(dados.local_estoque),
        valor_frete=dados.valor_frete,
    )
    db.session.add(t)
    db.session.flush()
    log.info("Transação %s registrada: %s %s (saldo %s)", tipo, m.codigo, qtd, m.saldo_atual)

    alerta = verificar_alerta_estoque(m) if tipo == "saida" else None
    return t, alerta


def registrar_saidas_multiplas(itens, comum):
    """Registra várias saídas com os mesmos dados de lançamento.

    Itens com material inexistente ou sem saldo são pulados e reportados.
    Retorna ``(transacoes, mensagens, alertas)``.
    """
    transacoes, mensagens, alertar = [], [], []
    data = comum.data or datetime.now()

    for item in itens:
        m = db.session.get(Material, item.material_id)
        if m is None or not m.ativo:
            mensagens.append(f"Material com ID {item.material_id} não encontrado.")
            continue

        qtd = _to_decimal(item.quantidade)
        saldo = _to_decimal(m.saldo_atual)
        if saldo < qtd:
            mensagens.append(f'Estoque Insuficiente: não há estoque suficiente de "{m.nome}" para esta saída.')
            continue

        m.saldo_atual = saldo - qtd
        t = Transacao(
            tipo="saida",
            data=data,
            material=m,
            material_nome=m.nome,
            quantidade=qtd,
            responsavel=comum.responsavel,
            numero_os=comum.numero_os,
            centro_custo=comum.centro_custo,
            local_estoque=_upper(comum.local_estoque),
        )
        db.session.add(t)
        transacoes.append(t)
        if m not in alertar:
            alertar.append(m)

    alertas = []
    if transacoes:
        db.session.flush()
        for m in alertar:
            a = verificar_alerta_estoque(m)
            if a:
                alertas.append(a)

    log.info("Saídas em lote: %d registradas, %d recusadas", len(transacoes), len(mensagens))
    return transacoes, mensagens, alertas


def registrar_entradas_multiplas(itens, comum):
    """Registra a entrada de vários itens de uma mesma nota.

    Tudo ou nada: se algum material novo já existir, nenhuma entrada é
    gravada. Retorna ``(transacoes, novos_materiais)``.
    """
    _ensure(len(itens) > 0, "Nenhum item informado.")

    # 1ª passada: validação
    nomes_novos = set()
    for item in itens:
        if item.novo:
            nome = item.material_nome.upper()
            _ensure(
                nome not in nomes_novos and _material_por_nome(nome, ativo=True) is None,
                f'Um novo material com o nome "{item.material_nome}" não pode ser criado pois ele já existe.',
            )
            nomes_novos.add(nome)
        else:
            _material_ativo(item.material_id)

    # 2ª passada: cadastro e lançamento
    data = comum.data or datetime.now()
    transacoes, novos = [], 0
    for item in itens:
        if item.novo:
            m, _ = criar_material(MaterialIn(
                nome=item.material_nome,
                unidade=item.unidade or "un",
                categoria=item.categoria or "GERAL",
                estoque_minimo=0,
                fornecedor=comum.fornecedor,
            ))
            novos += 1
        else:
            m = _material_ativo(item.material_id)

        qtd = _to_decimal(item.quantidade)
        m.saldo_atual = _to_decimal(m.saldo_atual) + qtd
        if item.preco_unitario is not None:
            m.ultimo_preco_pago = item.preco_unitario

        t = Transacao(
            tipo="entrada",
            data=data,
            material=m,
            material_nome=m.nome,
            nome_na_nota=item.nome_na_nota or m.nome,
            quantidade=qtd,
            preco_unitario=item.preco_unitario,
            responsavel=comum.responsavel,
            fornecedor=_upper(comum.fornecedor),
            nota_fiscal=comum.nota_fiscal,
            centro_custo=comum.centro_custo,
            local_estoque=_upper(comum.local_estoque),
        )
        db.session.add(t)
        transacoes.append(t)

    db.session.flush()
    log.info("Entrada em lote: %d itens, %d materiais novos", len(transacoes), novos)
    return transacoes, novos


def saldo_por_local(material_id: int) -> dict:
    """Saldo do material em cada local de estoque (apenas locais com saldo)."""
    saldos = {}
    for t in Transacao.query.filter_by(material_id=material_id).order_by(Transacao.data.asc()).all():
        local = t.local_estoque or SEM_LOCAL
        qtd = _to_decimal(t.quantidade)
        saldos[local] = saldos.get(local, Decimal("0")) + (qtd if t.tipo == "entrada" else -qtd)

    return {local: total for local, total in saldos.items() if total > 0}


def transacoes_recentes(limite: int = 5):
    return Transacao.query.order_by(Transacao.data.desc(), Transacao.id.desc()).limit(limite).all()

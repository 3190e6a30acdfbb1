from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from wellflow.extensions import db
from wellflow.models import Material, Transacao, Categoria, AlertaMaterial, SetorEmail
from wellflow.schemas import MaterialIn, TransacaoIn, DadosLancamento, ItemSaida, ItemEntrada
from wellflow.services import ServiceError, transaction
from wellflow.services import estoque as svc


def _material(nome="Parafuso sextavado", unidade="un", categoria="Fixação", minimo=0, fornecedor=None):
    with transaction():
        m, _ = svc.criar_material(MaterialIn(
            nome=nome, unidade=unidade, categoria=categoria, estoque_minimo=minimo, fornecedor=fornecedor,
        ))
    return m


def _entrada(m, qtd, **extra):
    with transaction():
        t, _ = svc.registrar_transacao("entrada", TransacaoIn(
            material_id=m.id, quantidade=qtd, responsavel="Ana", **extra,
        ))
    return t


def test_criar_material_normaliza_nome_e_gera_codigo(ctx):
    m = _material(nome="válvula esfera 1/2", fornecedor="hidro sul")

    assert m.nome == "VÁLVULA ESFERA 1/2"
    assert m.fornecedor == "HIDRO SUL"
    assert m.codigo == f"PRD{m.id:08d}"
    assert m.saldo_atual == 0
    assert Categoria.query.filter_by(nome="Fixação").count() == 1


def test_criar_material_duplicado_ativo_falha(ctx):
    _material(nome="Luva PVC")
    with pytest.raises(ServiceError, match="já existe"):
        with transaction():
            svc.criar_material(MaterialIn(nome="luva pvc", unidade="un"))


def test_material_excluido_e_reativado_com_mesmo_codigo(ctx):
    m = _material(nome="Fita veda rosca")
    codigo = m.codigo
    with transaction():
        svc.excluir_material(m.id)
    assert db.session.get(Material, m.id).ativo is False

    with transaction():
        m2, reativado = svc.criar_material(MaterialIn(nome="FITA VEDA ROSCA", unidade="rl", categoria="Hidráulica"))

    assert reativado is True
    assert m2.id == m.id
    assert m2.codigo == codigo
    assert m2.unidade == "rl"
    assert Material.query.count() == 1


def test_atualizar_material_rejeita_nome_de_outro(ctx):
    _material(nome="Cabo PP 2x2,5")
    m = _material(nome="Cabo PP 3x2,5")
    with pytest.raises(ServiceError, match="Outro material"):
        svc.atualizar_material(m.id, MaterialIn(nome="cabo pp 2x2,5", unidade="m"))


def test_excluir_varios_materiais(ctx):
    a = _material(nome="A")
    b = _material(nome="B")
    _material(nome="C")
    with transaction():
        n = svc.excluir_materiais([a.id, b.id])
    assert n == 2
    assert [m.nome for m in svc.materiais_ativos()] == ["C"]


def test_importar_materiais_ignora_repetidos(ctx):
    _material(nome="Graxa")
    linhas = [
        MaterialIn(nome="graxa", unidade="kg"),
        MaterialIn(nome="Óleo 15W40", unidade="l", categoria="Lubrificantes"),
        MaterialIn(nome="óleo 15w40", unidade="l"),
    ]
    with transaction():
        adicionados, ignorados = svc.importar_materiais(linhas)
    assert (adicionados, ignorados) == (1, 2)
    assert "Lubrificantes" in svc.categorias()


def test_entrada_soma_e_saida_subtrai(ctx):
    m = _material()
    _entrada(m, "10", preco_unitario="2,50", local_estoque="galpão a")

    with transaction():
        t, alerta = svc.registrar_transacao("saida", TransacaoIn(
            material_id=m.id, quantidade=3, responsavel="Bruno", numero_os="OS-77",
        ))

    m = db.session.get(Material, m.id)
    assert m.saldo_atual == Decimal("7")
    assert m.ultimo_preco_pago == Decimal("2.50")
    assert t.tipo == "saida"
    assert t.material_nome == m.nome
    assert alerta is None
    assert Transacao.query.count() == 2


def test_saida_sem_saldo_falha_e_nao_grava(ctx):
    m = _material()
    _entrada(m, 2)

    with pytest.raises(ServiceError, match="Estoque Insuficiente"):
        with transaction():
            svc.registrar_transacao("saida", TransacaoIn(material_id=m.id, quantidade=5, responsavel="Ana"))

    assert db.session.get(Material, m.id).saldo_atual == Decimal("2")
    assert Transacao.query.count() == 1


def test_transacao_sem_material_falha(ctx):
    with pytest.raises(ServiceError, match="Material não especificado"):
        svc.registrar_transacao("saida", TransacaoIn(quantidade=1, responsavel="Ana"))
    with pytest.raises(ServiceError, match="não encontrado"):
        svc.registrar_transacao("saida", TransacaoIn(material_id=999, quantidade=1, responsavel="Ana"))


def test_entrada_cadastra_material_novo(ctx):
    with transaction():
        t, _ = svc.registrar_transacao("entrada", TransacaoIn(
            material_nome="Abraçadeira nylon", unidade="pc", categoria="Elétrica",
            quantidade=100, responsavel="Ana", fornecedor="Eletro Norte",
        ))

    m = t.material
    assert m.nome == "ABRAÇADEIRA NYLON"
    assert m.fornecedor == "ELETRO NORTE"
    assert m.estoque_minimo == 0
    assert m.saldo_atual == Decimal("100")


def test_entrada_de_material_novo_duplicado_falha(ctx):
    _material(nome="Abraçadeira nylon")
    with pytest.raises(ServiceError, match="já existe"):
        with transaction():
            svc.registrar_transacao("entrada", TransacaoIn(
                material_nome="abraçadeira nylon", unidade="pc", categoria="Elétrica",
                quantidade=1, responsavel="Ana",
            ))
    assert Transacao.query.count() == 0


def test_saidas_multiplas_pula_itens_invalidos(ctx):
    a = _material(nome="A")
    b = _material(nome="B")
    _entrada(a, 5)
    _entrada(b, 1)

    comum = DadosLancamento(responsavel="Carlos", local_estoque="poço 12", centro_custo="Sonda 3")
    itens = [
        ItemSaida(material_id=a.id, quantidade=2),
        ItemSaida(material_id=b.id, quantidade=4),
        ItemSaida(material_id=9999, quantidade=1),
    ]
    with transaction():
        transacoes, mensagens, _ = svc.registrar_saidas_multiplas(itens, comum)

    assert len(transacoes) == 1
    assert len(mensagens) == 2
    assert transacoes[0].local_estoque == "POÇO 12"
    assert db.session.get(Material, a.id).saldo_atual == Decimal("3")
    assert db.session.get(Material, b.id).saldo_atual == Decimal("1")


def test_entradas_multiplas_cria_materiais_novos(ctx):
    existente = _material(nome="Existente")
    comum = DadosLancamento(responsavel="Ana", fornecedor="casa do poço", nota_fiscal="4521",
                            data=datetime(2024, 5, 2, 10, 0))
    itens = [
        ItemEntrada(material_id=existente.id, material_nome="Existente", quantidade=3, preco_unitario="10"),
        ItemEntrada(material_nome="Novo item", nome_na_nota="NOVO ITEM 3/4 AÇO", novo=True, quantidade=2),
    ]
    with transaction():
        transacoes, novos = svc.registrar_entradas_multiplas(itens, comum)

    assert novos == 1
    novo = Material.query.filter_by(nome="NOVO ITEM").one()
    assert novo.categoria == "GERAL"
    assert novo.unidade == "un"
    assert novo.fornecedor == "CASA DO POÇO"
    assert novo.saldo_atual == Decimal("2")
    assert db.session.get(Material, existente.id).saldo_atual == Decimal("3")
    assert transacoes[0].nome_na_nota == "EXISTENTE"
    assert transacoes[1].nome_na_nota == "NOVO ITEM 3/4 AÇO"
    assert all(t.fornecedor == "CASA DO POÇO" and t.nota_fiscal == "4521" for t in transacoes)


def test_entradas_multiplas_tudo_ou_nada(ctx):
    a = _material(nome="A")
    _material(nome="Duplicado")
    itens = [
        ItemEntrada(material_id=a.id, material_nome="A", quantidade=3),
        ItemEntrada(material_nome="duplicado", novo=True, quantidade=1),
    ]
    with pytest.raises(ServiceError, match="não pode ser criado"):
        with transaction():
            svc.registrar_entradas_multiplas(itens, DadosLancamento(responsavel="Ana"))

    assert db.session.get(Material, a.id).saldo_atual == Decimal("0")
    assert Transacao.query.count() == 0


def test_saldo_por_local(ctx):
    m = _material()
    _entrada(m, 10, local_estoque="Galpão A")
    _entrada(m, 4)
    _entrada(m, 2, local_estoque="base norte")
    with transaction():
        svc.registrar_transacao("saida", TransacaoIn(
            material_id=m.id, quantidade=2, responsavel="Ana", local_estoque="BASE NORTE",
        ))
        svc.registrar_transacao("saida", TransacaoIn(
            material_id=m.id, quantidade=3, responsavel="Ana", local_estoque="galpão a",
        ))

    assert svc.saldo_por_local(m.id) == {"GALPÃO A": Decimal("7"), "Não especificado": Decimal("4")}


def test_alerta_de_estoque_baixo(ctx):
    m = _material(minimo=5)
    _entrada(m, 6)
    with transaction():
        db.session.add(AlertaMaterial(material_id=m.id, setor="Compras"))
        db.session.add(AlertaMaterial(material_id=m.id, setor="Manutenção"))
        db.session.add(SetorEmail(setor="Compras", email="compras@empresa.com"))
        db.session.add(SetorEmail(setor="Manutenção", email="compras@empresa.com"))
        db.session.add(SetorEmail(setor="Manutenção", email="manut@empresa.com"))

    with transaction():
        _, alerta = svc.registrar_transacao("saida", TransacaoIn(material_id=m.id, quantidade=2, responsavel="Ana"))

    assert alerta is not None
    assert alerta.setores == ["Compras", "Manutenção"]
    assert alerta.emails == ["compras@empresa.com", "manut@empresa.com"]


def test_sem_alerta_quando_setor_nao_configurado(ctx):
    m = _material(minimo=5)
    _entrada(m, 1)
    with transaction():
        _, alerta = svc.registrar_transacao("saida", TransacaoIn(material_id=m.id, quantidade=1, responsavel="Ana"))
    assert alerta is None


def test_saidas_multiplas_sem_nenhum_item_valido(ctx):
    a = _material(nome="A", minimo=5)
    _entrada(a, 1)
    with transaction():
        db.session.add(AlertaMaterial(material_id=a.id, setor="Compras"))
        db.session.add(SetorEmail(setor="Compras", email="compras@empresa.com"))

    itens = [ItemSaida(material_id=a.id, quantidade=3), ItemSaida(material_id=9999, quantidade=1)]
    with transaction():
        transacoes, mensagens, alertas = svc.registrar_saidas_multiplas(itens, DadosLancamento(responsavel="Ana"))

    assert transacoes == []
    assert alertas == []
    assert len(mensagens) == 2
    assert "Estoque Insuficiente" in mensagens[0]
    assert "9999" in mensagens[1]
    assert Transacao.query.count() == 1
    assert db.session.get(Material, a.id).saldo_atual == Decimal("1")


def test_saidas_multiplas_retorna_alertas(ctx):
    a = _material(nome="A", minimo=5)
    b = _material(nome="B", minimo=1)
    _entrada(a, 6)
    _entrada(b, 10)
    with transaction():
        db.session.add(AlertaMaterial(material_id=a.id, setor="Compras"))
        db.session.add(AlertaMaterial(material_id=b.id, setor="Compras"))
        db.session.add(SetorEmail(setor="Compras", email="compras@empresa.com"))

    itens = [
        ItemSaida(material_id=a.id, quantidade=1),
        ItemSaida(material_id=a.id, quantidade=2),
        ItemSaida(material_id=b.id, quantidade=2),
    ]
    with transaction():
        transacoes, mensagens, alertas = svc.registrar_saidas_multiplas(itens, DadosLancamento(responsavel="Ana"))

    assert len(transacoes) == 3
    assert mensagens == []
    assert [al.material.id for al in alertas] == [a.id]
    assert alertas[0].setores == ["Compras"]
    assert alertas[0].emails == ["compras@empresa.com"]
    assert db.session.get(Material, a.id).saldo_atual == Decimal("3")


def test_sem_alerta_quando_saldo_igual_ao_minimo(ctx):
    m = _material(minimo=5)
    _entrada(m, 7)
    with transaction():
        db.session.add(AlertaMaterial(material_id=m.id, setor="Compras"))
        db.session.add(SetorEmail(setor="Compras", email="compras@empresa.com"))

    with transaction():
        _, alerta = svc.registrar_transacao("saida", TransacaoIn(material_id=m.id, quantidade=2, responsavel="Ana"))

    assert db.session.get(Material, m.id).saldo_atual == Decimal("5")
    assert alerta is None


@pytest.mark.parametrize("valor", ["0,004", "1,255", "NaN", "Infinity", "99999999999"])
def test_quantidade_fora_de_numeric_12_2(valor):
    with pytest.raises(ValidationError):
        TransacaoIn(material_id=1, quantidade=valor, responsavel="Ana")
    with pytest.raises(ValidationError):
        ItemSaida(material_id=1, quantidade=valor)
    with pytest.raises(ValidationError):
        ItemEntrada(material_nome="X", quantidade=valor)


def test_preco_e_minimo_com_duas_casas():
    assert TransacaoIn(quantidade="1.500", preco_unitario=Decimal("2.50"), responsavel="Ana").quantidade == Decimal("1.5")
    with pytest.raises(ValidationError):
        TransacaoIn(quantidade=1, preco_unitario="0,125", responsavel="Ana")
    with pytest.raises(ValidationError):
        MaterialIn(nome="X", unidade="un", estoque_minimo="2,333")

import pytest
from pydantic import ValidationError

from wellflow.extensions import db
from wellflow.models import Fornecedor, User, SetorEmail, AlertaMaterial
from wellflow.schemas import FornecedorIn, UsuarioIn, MaterialIn, CentroCustoIn
from wellflow.services import ServiceError, transaction
from wellflow.services import cadastros as svc
from wellflow.services.estoque import criar_material


def test_fornecedor_nome_em_maiusculas(ctx):
    with transaction():
        f = svc.criar_fornecedor(FornecedorIn(nome="Casa do Poço", estado="rs", email="vendas@casadopoco.com"))
    assert f.nome == "CASA DO POÇO"
    assert f.estado == "RS"
    assert svc.fornecedor_por_nome("casa do poço").id == f.id


def test_fornecedor_email_invalido():
    with pytest.raises(ValidationError):
        FornecedorIn(nome="X", email="sem-arroba")


def test_importar_fornecedores_pula_nome_ou_cnpj_repetido(ctx):
    with transaction():
        svc.criar_fornecedor(FornecedorIn(nome="Hidro Sul", cnpj="12.345.678/0001-90"))

    linhas = [
        FornecedorIn(nome="hidro sul"),
        FornecedorIn(nome="Outro Nome", cnpj="12345678000190"),
        FornecedorIn(nome="Eletro Norte", cnpj="98.765.432/0001-10"),
        FornecedorIn(nome="ELETRO NORTE"),
    ]
    with transaction():
        adicionados, ignorados = svc.importar_fornecedores(linhas)

    assert (adicionados, ignorados) == (1, 3)
    assert sorted(f.nome for f in Fornecedor.query.all()) == ["ELETRO NORTE", "HIDRO SUL"]


def test_excluir_fornecedor_inexistente(ctx):
    with pytest.raises(ServiceError, match="não encontrado"):
        svc.excluir_fornecedor(42)


def test_centro_custo_crud(ctx):
    with transaction():
        cc = svc.criar_centro_custo(CentroCustoIn(nome="Sonda 3", descricao="  "))
    assert cc.descricao is None

    with transaction():
        svc.atualizar_centro_custo(cc.id, CentroCustoIn(nome="Sonda 03", descricao="Perfuração"))
    assert cc.nome == "Sonda 03"

    cc_id = cc.id
    with transaction():
        svc.excluir_centro_custo(cc_id)
    with pytest.raises(ServiceError):
        svc.atualizar_centro_custo(cc_id, CentroCustoIn(nome="X"))


def test_usuario_email_duplicado(ctx):
    dados = UsuarioIn(nome="Bia", email="Bia@Empresa.com", role="Operador de Campo", setor="Manutenção")
    assert dados.email == "bia@empresa.com"
    with transaction():
        svc.criar_usuario(dados, "segredo")

    with pytest.raises(ServiceError, match="Já existe"):
        svc.criar_usuario(dados, "outra")


def test_usuario_role_invalido():
    with pytest.raises(ValidationError):
        UsuarioIn(nome="X", email="x@y.com", role="Dono")


def test_nao_exclui_o_proprio_usuario(ctx):
    admin = User.query.filter_by(email="admin@teste.com").one()
    with pytest.raises(ServiceError, match="próprio"):
        svc.excluir_usuario(admin.id, admin.id)


def test_trocar_senha(ctx):
    admin = User.query.filter_by(email="admin@teste.com").one()
    with pytest.raises(ServiceError, match="incorreta"):
        svc.trocar_senha(admin, "errada", "novasenha", "novasenha")
    with pytest.raises(ServiceError, match="6 caracteres"):
        svc.trocar_senha(admin, "admin123", "123", "123")
    with pytest.raises(ServiceError, match="coincidem"):
        svc.trocar_senha(admin, "admin123", "novasenha", "outrasenha")

    with transaction():
        svc.trocar_senha(admin, "admin123", "novasenha", "novasenha")
    assert admin.check_password("novasenha")


def test_email_de_setor_duplicado(ctx):
    with transaction():
        svc.adicionar_email_setor("Compras", "Compras@Empresa.com")
    with pytest.raises(ServiceError, match="já está cadastrado"):
        svc.adicionar_email_setor("Compras", "compras@empresa.com")

    assert svc.emails_por_setor()["Compras"] == ["compras@empresa.com"]

    with transaction():
        svc.remover_email_setor("Compras", "compras@empresa.com")
    assert SetorEmail.query.count() == 0


def test_email_de_setor_invalido(ctx):
    with pytest.raises(ServiceError, match="Setor inválido"):
        svc.adicionar_email_setor("Financeiro", "a@b.com")


def test_atualizar_alerta_substitui_setores(ctx):
    with transaction():
        m, _ = criar_material(MaterialIn(nome="Broca", unidade="un"))
        svc.atualizar_alerta(m.id, ["Compras", "Engenharia", "Compras"])
    assert sorted(svc.setores_do_alerta(m.id)) == ["Compras", "Engenharia"]

    with transaction():
        svc.atualizar_alerta(m.id, ["Manutenção"])
    assert svc.setores_do_alerta(m.id) == ["Manutenção"]

    with transaction():
        svc.atualizar_alerta(m.id, [])
    assert AlertaMaterial.query.count() == 0


def test_usuario_excluido_some_da_sessao(ctx):
    with transaction():
        u = svc.criar_usuario(UsuarioIn(nome="Tmp", email="tmp@empresa.com"), "senha123")
    uid = u.id
    admin = User.query.filter_by(email="admin@teste.com").one()
    with transaction():
        svc.excluir_usuario(uid, admin.id)
    assert db.session.get(User, uid) is None


def test_definir_ativo(ctx):
    with transaction():
        u = svc.criar_usuario(UsuarioIn(nome="Tmp", email="tmp@empresa.com"), "senha123")
    admin = User.query.filter_by(email="admin@teste.com").one()

    with transaction():
        svc.definir_ativo(u.id, False, admin.id)
    assert u.is_active is False

    with transaction():
        svc.definir_ativo(u.id, True, admin.id)
    assert u.is_active is True

    with pytest.raises(ServiceError, match="próprio"):
        svc.definir_ativo(admin.id, False, admin.id)
    with pytest.raises(ServiceError, match="não encontrado"):
        svc.definir_ativo(9999, True, admin.id)

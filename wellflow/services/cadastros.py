import logging

from sqlalchemy import func

from wellflow.extensions import db
from wellflow.models import Fornecedor, CentroCusto, User, AlertaMaterial, SetorEmail, Material
from wellflow.permissions import SETORES
from wellflow.services import ServiceError, _ensure, _upper

log = logging.getLogger("wellflow.cadastros")


def _cnpj_limpo(cnpj):
    return "".join(ch for ch in (cnpj or "") if ch.isdigit())


# ------------------------- fornecedores -------------------------
def _aplicar_fornecedor(f: Fornecedor, dados):
    f.nome = dados.nome.upper()
    f.cnpj = dados.cnpj
    f.contato = dados.contato
    f.telefone = dados.telefone
    f.email = dados.email
    f.endereco = dados.endereco
    f.cidade = dados.cidade
    f.estado = dados.estado
    f.site = dados.site


def criar_fornecedor(dados) -> Fornecedor:
    f = Fornecedor()
    _aplicar_fornecedor(f, dados)
    db.session.add(f)
    db.session.flush()
    log.info("Fornecedor criado: %s", f.nome)
    return f


def atualizar_fornecedor(fornecedor_id: int, dados) -> Fornecedor:
    f = db.session.get(Fornecedor, fornecedor_id)
    _ensure(f is not None, "Fornecedor não encontrado.")
    _aplicar_fornecedor(f, dados)
    log.info("Fornecedor atualizado: %s", f.nome)
    return f


def excluir_fornecedor(fornecedor_id: int):
    f = db.session.get(Fornecedor, fornecedor_id)
    _ensure(f is not None, "Fornecedor não encontrado.")
    db.session.delete(f)
    log.info("Fornecedor excluído: %s", f.nome)


def importar_fornecedores(linhas):
    """Importa ``FornecedorIn``; pula quem já existe pelo nome ou pelo CNPJ."""
    nomes = {n.upper() for (n,) in db.session.query(Fornecedor.nome).all()}
    cnpjs = {_cnpj_limpo(c) for (c,) in db.session.query(Fornecedor.cnpj).all() if c}

    adicionados = 0
    for dados in linhas:
        nome = dados.nome.upper()
        cnpj = _cnpj_limpo(dados.cnpj)
        if nome in nomes or (cnpj and cnpj in cnpjs):
            continue
        criar_fornecedor(dados)
        nomes.add(nome)
        if cnpj:
            cnpjs.add(cnpj)
        adicionados += 1

    ignorados = len(linhas) - adicionados
    log.info("Importação de fornecedores: %d adicionados, %d ignorados", adicionados, ignorados)
    return adicionados, ignorados


def fornecedor_por_nome(nome):
    nome = _upper(nome)
    if not nome:
        return None
    return Fornecedor.query.filter(func.upper(Fornecedor.nome) == nome).first()


# ------------------------- centros de custo -------------------------
def criar_centro_custo(dados) -> CentroCusto:
    cc = CentroCusto(nome=dados.nome, descricao=dados.descricao)
    db.session.add(cc)
    db.session.flush()
    log.info("Centro de custo criado: %s", cc.nome)
    return cc


def atualizar_centro_custo(cc_id: int, dados) -> CentroCusto:
    cc = db.session.get(CentroCusto, cc_id)
    _ensure(cc is not None, "Centro de custo não encontrado.")
    cc.nome = dados.nome
    cc.descricao = dados.descricao
    return cc


def excluir_centro_custo(cc_id: int):
    cc = db.session.get(CentroCusto, cc_id)
    _ensure(cc is not None, "Centro de custo não encontrado.")
    db.session.delete(cc)
    log.info("Centro de custo excluído: %s", cc.nome)


# ------------------------- usuários -------------------------
def criar_usuario(dados, senha: str) -> User:
    _ensure(bool(senha), "Informe a senha.")
    _ensure(
        User.query.filter_by(email=dados.email).first() is None,
        f"Já existe um usuário com o e-mail {dados.email}.",
    )
    u = User(nome=dados.nome, email=dados.email, role=dados.role, setor=dados.setor, ativo=True)
    u.set_password(senha)
    db.session.add(u)
    db.session.flush()
    log.info("Usuário criado: %s (%s)", u.email, u.role)
    return u


def atualizar_usuario(user_id: int, dados) -> User:
    u = db.session.get(User, user_id)
    _ensure(u is not None, "Usuário não encontrado.")
    outro = User.query.filter(User.email == dados.email, User.id != u.id).first()
    _ensure(outro is None, f"Já existe um usuário com o e-mail {dados.email}.")

    u.nome = dados.nome
    u.email = dados.email
    u.role = dados.role
    u.setor = dados.setor
    log.info("Usuário atualizado: %s (%s)", u.email, u.role)
    return u


def excluir_usuario(user_id: int, atual_id: int):
    _ensure(user_id != atual_id, "Você não pode excluir o próprio usuário.")
    u = db.session.get(User, user_id)
    _ensure(u is not None, "Usuário não encontrado.")
    db.session.delete(u)
    log.info("Usuário excluído: %s", u.email)


def definir_ativo(user_id: int, ativo: bool, atual_id: int) -> User:
    _ensure(ativo or user_id != atual_id, "Você não pode inativar o próprio usuário.")
    u = db.session.get(User, user_id)
    _ensure(u is not None, "Usuário não encontrado.")
    u.ativo = ativo
    log.info("Usuário %s: %s", "ativado" if ativo else "inativado", u.email)
    return u


def trocar_senha(user: User, senha_atual: str, nova: str, confirmar: str):
    _ensure(user.check_password(senha_atual or ""), "Senha atual incorreta.")
    _ensure(bool(nova) and len(nova) >= 6, "A nova senha deve ter pelo menos 6 caracteres.")
    _ensure(nova == confirmar, "As senhas não coincidem.")
    user.set_password(nova)
    log.info("Senha alterada: %s", user.email)


# ------------------------- alertas -------------------------
def setores_do_alerta(material_id: int):
    return [a.setor for a in AlertaMaterial.query.filter_by(material_id=material_id).all()]


def atualizar_alerta(material_id: int, setores):
    m = db.session.get(Material, material_id)
    _ensure(m is not None and m.ativo, f"Material com ID {material_id} não encontrado.")
    setores = list(dict.fromkeys(s for s in setores if s))
    for s in setores:
        _ensure(s in SETORES, f"Setor inválido: {s}")

    AlertaMaterial.query.filter_by(material_id=material_id).delete()
    for s in setores:
        db.session.add(AlertaMaterial(material_id=material_id, setor=s))
    log.info("Alerta de %s: setores %s", m.codigo, ", ".join(setores) or "-")


def emails_por_setor() -> dict:
    config = {s: [] for s in SETORES}
    for se in SetorEmail.query.order_by(SetorEmail.id).all():
        config.setdefault(se.setor, []).append(se.email)
    return config


def adicionar_email_setor(setor: str, email: str):
    email = (email or "").strip().lower()
    _ensure(setor in SETORES, f"Setor inválido: {setor}")
    _ensure("@" in email, "E-mail inválido.")
    if SetorEmail.query.filter_by(setor=setor, email=email).first():
        raise ServiceError(f"O e-mail {email} já está cadastrado para o setor {setor}.")
    db.session.add(SetorEmail(setor=setor, email=email))
    log.info("E-mail %s adicionado ao setor %s", email, setor)


def remover_email_setor(setor: str, email: str):
    se = SetorEmail.query.filter_by(setor=setor, email=(email or "").strip().lower()).first()
    _ensure(se is not None, "E-mail não encontrado para o setor.")
    db.session.delete(se)
    log.info("E-mail %s removido do setor %s", se.email, setor)

import pytest

from config import Config
from wellflow import create_app
from wellflow.extensions import db
from wellflow.models import User


class ConfigTeste(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    ADMIN_EMAIL = "admin@teste.com"
    ADMIN_SENHA = "admin123"
    GEMINI_API_KEY = None
    LOG_LEVEL = "WARNING"


class FakeModelo:
    """Substitui o Gemini: devolve sempre a mesma resposta e guarda os prompts."""

    def __init__(self, resposta):
        self.resposta = resposta
        self.prompts = []

    def gerar_json(self, prompt, schema):
        self.prompts.append(prompt)
        return schema.model_validate(self.resposta)


@pytest.fixture()
def app():
    app = create_app(ConfigTeste)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def ctx(app):
    with app.app_context():
        yield
        db.session.rollback()


@pytest.fixture()
def client(app):
    return app.test_client()


def login(client, email="admin@teste.com", senha="admin123"):
    rv = client.post("/auth/login", data={"email": email, "senha": senha})
    assert rv.status_code == 302
    return rv


@pytest.fixture()
def admin_client(client):
    login(client)
    return client


def criar_usuario(app, email, role, senha="senha123", setor="Manutenção"):
    with app.app_context():
        u = User(nome=email.split("@")[0], email=email, role=role, setor=setor, ativo=True)
        u.set_password(senha)
        db.session.add(u)
        db.session.commit()

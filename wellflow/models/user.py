from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from wellflow.extensions import db

class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(120), nullable=False, default="Usuário")
    email = db.Column(db.String(160), nullable=False, unique=True)
    senha_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(30), nullable=False, default="Visitante")
    setor = db.Column(db.String(40), nullable=False, default="N/A")
    ativo = db.Column(db.Boolean, default=True)

    def set_password(self, senha: str):
        self.senha_hash = generate_password_hash(senha)

    def check_password(self, senha: str) -> bool:
        return check_password_hash(self.senha_hash, senha)

    @property
    def is_active(self):
        return bool(self.ativo)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"

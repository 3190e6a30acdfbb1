from wellflow.extensions import db

class Material(db.Model):
    __tablename__ = "materials"

    id = db.Column(db.Integer, primary_key=True)
    codigo = db.Column(db.String(20), unique=True)  # PRD00000001
    nome = db.Column(db.String(200), nullable=False)
    unidade = db.Column(db.String(20), nullable=False)
    categoria = db.Column(db.String(80), nullable=False, default="GERAL")

    estoque_minimo = db.Column(db.Numeric(12, 2), default=0)
    saldo_atual = db.Column(db.Numeric(12, 2), default=0)

    fornecedor = db.Column(db.String(200))
    ultimo_preco_pago = db.Column(db.Numeric(12, 2))

    ativo = db.Column(db.Boolean, default=True)

    transacoes = db.relationship("Transacao", back_populates="material")

    def __repr__(self):
        return f"<Material {self.codigo} {self.nome}>"


class Categoria(db.Model):
    __tablename__ = "categorias"

    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(80), unique=True, nullable=False)

    def __repr__(self):
        return f"<Categoria {self.nome}>"

from datetime import datetime
from wellflow.extensions import db

class Transacao(db.Model):
    __tablename__ = "transacoes"

    id = db.Column(db.Integer, primary_key=True)
    tipo = db.Column(db.String(10), nullable=False)  # entrada | saida
    data = db.Column(db.DateTime, default=datetime.now, nullable=False, index=True)

    material_id = db.Column(db.Integer, db.ForeignKey("materials.id"), nullable=False)
    material_nome = db.Column(db.String(200), nullable=False)
    quantidade = db.Column(db.Numeric(12, 2), nullable=False)
    preco_unitario = db.Column(db.Numeric(12, 2))

    fornecedor = db.Column(db.String(200))
    nota_fiscal = db.Column(db.String(60))
    nome_na_nota = db.Column(db.String(200))
    numero_os = db.Column(db.String(60))
    responsavel = db.Column(db.String(120), nullable=False)
    centro_custo = db.Column(db.String(120))
    local_estoque = db.Column(db.String(120))
    valor_frete = db.Column(db.Numeric(12, 2))

    material = db.relationship("Material", back_populates="transacoes")

    @property
    def documento(self):
        return self.nota_fiscal or self.numero_os or "-"

    def __repr__(self):
        return f"<Transacao {self.id} {self.tipo} {self.quantidade}>"

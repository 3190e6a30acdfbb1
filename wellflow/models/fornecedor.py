from wellflow.extensions import db

class Fornecedor(db.Model):
    __tablename__ = "fornecedores"

    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(200), nullable=False)
    cnpj = db.Column(db.String(20))
    contato = db.Column(db.String(120))
    telefone = db.Column(db.String(40))
    email = db.Column(db.String(160))
    endereco = db.Column(db.String(250))
    cidade = db.Column(db.String(120))
    estado = db.Column(db.String(2))
    site = db.Column(db.String(200))

    def __repr__(self):
        return f"<Fornecedor {self.cnpj} {self.nome}>"

from wellflow.extensions import db

class CentroCusto(db.Model):
    __tablename__ = "centros_custo"

    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(120), nullable=False)
    descricao = db.Column(db.String(250))

    def __repr__(self):
        return f"<CentroCusto {self.nome}>"

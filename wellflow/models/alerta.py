from wellflow.extensions import db

class AlertaMaterial(db.Model):
    """Setor que deve ser avisado quando o material fica abaixo do mínimo."""
    __tablename__ = "alertas_material"
    __table_args__ = (db.UniqueConstraint("material_id", "setor", name="uq_alerta_material_setor"),)

    id = db.Column(db.Integer, primary_key=True)
    material_id = db.Column(db.Integer, db.ForeignKey("materials.id"), nullable=False)
    setor = db.Column(db.String(40), nullable=False)

    material = db.relationship("Material")


class SetorEmail(db.Model):
    __tablename__ = "setor_emails"
    __table_args__ = (db.UniqueConstraint("setor", "email", name="uq_setor_email"),)

    id = db.Column(db.Integer, primary_key=True)
    setor = db.Column(db.String(40), nullable=False)
    email = db.Column(db.String(160), nullable=False)

    def __repr__(self):
        return f"<SetorEmail {self.setor} {self.email}>"

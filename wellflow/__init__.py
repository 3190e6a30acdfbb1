import logging

from flask import Flask, redirect, url_for, render_template, jsonify

from .extensions import db, login_manager, init_extensions
from .logging_config import setup_logging
from config import Config

log = logging.getLogger("wellflow")


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    db_url = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_url.startswith("postgres://"):
        app.config["SQLALCHEMY_DATABASE_URI"] = db_url.replace("postgres://", "postgresql+psycopg://", 1)

    setup_logging(app)
    init_extensions(app)

    from .models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Blueprints
    from .blueprints.auth import auth_bp
    from .blueprints.estoque import estoque_bp
    from .blueprints.cadastros import cadastros_bp
    from .blueprints.admin import admin_bp
    from .blueprints.compras import compras_bp
    from .blueprints.relatorios import relatorios_bp
    from .blueprints.ia import ia_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(estoque_bp)
    app.register_blueprint(cadastros_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(compras_bp)
    app.register_blueprint(relatorios_bp)
    app.register_blueprint(ia_bp)

    _register_error_handlers(app)

    @app.get("/")
    def index():
        return redirect(url_for("estoque.dashboard"))

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    # cria tabelas + admin padrão
    with app.app_context():
        db.create_all()
        _seed_admin(app)

    return app


def _register_error_handlers(app):
    @app.errorhandler(403)
    def forbidden(_e):
        return render_template("erro.html", codigo=403, mensagem="Acesso negado."), 403

    @app.errorhandler(404)
    def not_found(_e):
        return render_template("erro.html", codigo=404, mensagem="Página não encontrada."), 404

    @app.errorhandler(500)
    def internal_error(e):
        db.session.rollback()
        log.exception("Erro interno: %s", e)
        return render_template("erro.html", codigo=500, mensagem="Erro interno do servidor."), 500


def _seed_admin(app):
    from .models.user import User

    email = app.config.get("ADMIN_EMAIL")
    if not email or User.query.filter_by(email=email).first():
        return

    u = User(nome="Administrador", email=email, role="Administrador", setor="Engenharia", ativo=True)
    u.set_password(app.config.get("ADMIN_SENHA") or "123")
    db.session.add(u)
    db.session.commit()
    log.info("Administrador padrão criado: %s", email)

"""Endpoints JSON usados pelos formulários para pré-preenchimento via IA."""
import base64
import logging

from flask import request, jsonify
from flask_login import login_required
from pydantic import ValidationError

from wellflow.ia import ErroIA, PdfInvalido
from wellflow.ia import fluxos
from wellflow.models import Material
from wellflow.permissions import perm_required
from wellflow.schemas import mensagem_validacao
from wellflow.services.analise import historico_material

from . import ia_bp

log = logging.getLogger("wellflow.ia")


def _pdf_da_requisicao() -> dict:
    """Aceita JSON ``{"pdf_data_uri": ...}`` ou upload multipart no campo ``pdf``."""
    arquivo = request.files.get("pdf")
    if arquivo and arquivo.filename:
        dados = base64.b64encode(arquivo.read()).decode("ascii")
        return {"pdf_data_uri": f"data:{arquivo.mimetype or 'application/pdf'};base64,{dados}"}
    return request.get_json(silent=True) or {}


def _executar(fluxo, entrada):
    try:
        saida = fluxo(entrada)
    except ValidationError as e:
        return jsonify({"error": mensagem_validacao(e)}), 400
    except PdfInvalido as e:
        return jsonify({"error": str(e)}), 400
    except ErroIA as e:
        return jsonify({"error": str(e)}), 502
    return jsonify(saida.model_dump())


@ia_bp.post("/extrair-material")
@login_required
@perm_required("usar_ia")
def extrair_material():
    return _executar(fluxos.extrair_material_de_pdf, _pdf_da_requisicao())


@ia_bp.post("/extrair-transacao")
@login_required
@perm_required("usar_ia")
def extrair_transacao():
    return _executar(fluxos.extrair_transacao_de_pdf, _pdf_da_requisicao())


@ia_bp.post("/previsao")
@login_required
@perm_required("ver_relatorios")
def previsao():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Corpo JSON deve ser um objeto."}), 400

    ids = payload.get("material_ids") or []
    if not isinstance(ids, list):
        return jsonify({"error": "material_ids deve ser uma lista."}), 400
    ids = [int(i) for i in ids if str(i).isdigit()]
    materiais = Material.query.filter(Material.id.in_(ids), Material.ativo.is_(True)).all() if ids else []
    if not materiais:
        return jsonify({"error": "Selecione pelo menos um material."}), 400

    def _fluxo(horizonte):
        entrada = fluxos.montar_previsao_in(
            materiais, {m.id: historico_material(m.id) for m in materiais}, horizonte,
        )
        return fluxos.prever_consumo(entrada)

    horizonte = payload.get("horizonte")
    return _executar(_fluxo, horizonte.strip() if isinstance(horizonte, str) else horizonte)

"""
Acesso ao modelo generativo (Gemini).

O cliente fica guardado em ``app.extensions["wellflow_ia"]``; os testes
substituem esse objeto por um falso.
"""
import logging

from flask import current_app
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError

log = logging.getLogger("wellflow.ia")


class ErroIA(Exception):
    """Falha na chamada ao modelo ou resposta fora do schema."""


class ModeloGemini:
    def __init__(self, api_key: str | None, model: str):
        self.model = model
        self._client = genai.Client(api_key=api_key)

    def gerar_json(self, prompt: str, schema):
        """Envia o prompt pedindo JSON no formato de ``schema`` (pydantic)."""
        log.info("Chamando modelo %s (%s)", self.model, schema.__name__)
        try:
            resp = self._client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                    temperature=0.1,
                ),
            )
        except genai_errors.APIError as e:
            log.error("Erro na API do modelo: %s", e)
            raise ErroIA("Falha ao consultar o modelo de IA.") from e

        try:
            return schema.model_validate_json(resp.text or "")
        except ValidationError as e:
            log.warning("Resposta do modelo fora do formato esperado: %s", e)
            raise ErroIA("O modelo de IA retornou dados em formato inesperado.") from e


def get_modelo():
    modelo = current_app.extensions.get("wellflow_ia")
    if modelo is None:
        api_key = current_app.config.get("GEMINI_API_KEY")
        if not api_key:
            raise ErroIA("GEMINI_API_KEY não configurada.")
        modelo = ModeloGemini(api_key, current_app.config.get("GEMINI_MODEL") or "gemini-2.0-flash")
        current_app.extensions["wellflow_ia"] = modelo
    return modelo

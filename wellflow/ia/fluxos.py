"""
Fluxos de IA: leitura de PDF de nota fiscal e previsão de consumo.

Cada fluxo valida a entrada, monta o prompt e delega ao modelo; a saída
volta validada pelos schemas de ``wellflow.ia.schemas``.
"""
import json
import logging

from wellflow.ia import prompts
from wellflow.ia.cliente import get_modelo
from wellflow.ia.pdf import decodificar_data_uri, extrair_texto
from wellflow.ia.schemas import (
    PdfIn, MaterialExtraido, TransacaoExtraida, PrevisaoIn, PrevisaoOut, MaterialHistorico,
)

log = logging.getLogger("wellflow.ia")


def _texto_do_pdf(entrada) -> str:
    entrada = entrada if isinstance(entrada, PdfIn) else PdfIn.model_validate(entrada)
    return extrair_texto(decodificar_data_uri(entrada.pdf_data_uri))


def extrair_material_de_pdf(entrada) -> MaterialExtraido:
    texto = _texto_do_pdf(entrada)
    saida = get_modelo().gerar_json(prompts.prompt_material(texto), MaterialExtraido)
    log.info("Material extraído do PDF: %s", saida.nome)
    return saida


def extrair_transacao_de_pdf(entrada) -> TransacaoExtraida:
    texto = _texto_do_pdf(entrada)
    saida = get_modelo().gerar_json(prompts.prompt_transacao(texto), TransacaoExtraida)

    if saida.fornecedor and saida.fornecedor.nome:
        saida.fornecedor.nome = saida.fornecedor.nome.upper()
    for item in saida.materiais:
        if item.nome_material:
            item.nome_material = item.nome_material.upper()

    log.info("Nota extraída do PDF: NF %s, %d itens", saida.nota_fiscal, len(saida.materiais))
    return saida


def prever_consumo(entrada) -> PrevisaoOut:
    entrada = entrada if isinstance(entrada, PrevisaoIn) else PrevisaoIn.model_validate(entrada)
    saida = get_modelo().gerar_json(prompts.prompt_previsao(entrada), PrevisaoOut)
    log.info("Previsão gerada para %d materiais (%s)", len(saida.previsoes), entrada.horizonte)
    return saida


def montar_previsao_in(materiais, historicos, horizonte: str) -> PrevisaoIn:
    """``historicos``: material.id -> lista de movimentos (ver ``historico_material``)."""
    return PrevisaoIn(
        materiais=[
            MaterialHistorico(
                nome_material=m.nome,
                dados_historicos=json.dumps(historicos.get(m.id, []), ensure_ascii=False, indent=2),
            )
            for m in materiais
        ],
        horizonte=horizonte,
    )

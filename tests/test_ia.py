import base64
import io
import json

import pytest
from pydantic import ValidationError
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from conftest import FakeModelo, login, criar_usuario
from wellflow.ia import ErroIA, PdfInvalido, fluxos
from wellflow.ia.cliente import get_modelo
from wellflow.ia.pdf import decodificar_data_uri, extrair_texto
from wellflow.ia.schemas import Previsao, PrevisaoOut
from wellflow.schemas import MaterialIn, TransacaoIn
from wellflow.services import transaction
from wellflow.services.estoque import criar_material, registrar_transacao


def _pdf(*linhas) -> bytes:
    bio = io.BytesIO()
    c = canvas.Canvas(bio, pagesize=A4)
    y = 800
    for linha in linhas:
        c.drawString(50, y, linha)
        y -= 20
    c.showPage()
    c.save()
    return bio.getvalue()


def _data_uri(conteudo: bytes) -> str:
    return "data:application/pdf;base64," + base64.b64encode(conteudo).decode("ascii")


NOTA = _pdf("NOTA FISCAL 000123", "Fornecedor: Hidro Sul Ltda", "Tubo PVC 50mm  10 un  12,50")

RESPOSTA_NOTA = {
    "fornecedor": {"nome": "Hidro Sul Ltda", "cnpj": "12.345.678/0001-90", "estado": "RS"},
    "nota_fiscal": "000123",
    "valor_frete": 30.0,
    "materiais": [
        {"nome_material": "Tubo PVC 50mm", "quantidade": 10, "preco_unitario": 12.5, "unidade": "un",
         "categoria": "Hidráulica"},
    ],
}


# ------------------------- pdf -------------------------
def test_extrair_texto_do_pdf():
    texto = extrair_texto(NOTA)
    assert "NOTA FISCAL 000123" in texto
    assert "Hidro Sul" in texto


def test_pdf_sem_texto():
    with pytest.raises(PdfInvalido, match="texto"):
        extrair_texto(_pdf())


def test_pdf_corrompido():
    with pytest.raises(PdfInvalido):
        extrair_texto(b"isto nao e um pdf")


def test_erro_inesperado_na_leitura_nao_vira_pdf_invalido(monkeypatch):
    def _falha(_):
        raise RuntimeError("disco")

    monkeypatch.setattr("wellflow.ia.pdf.pdfplumber.open", _falha)
    with pytest.raises(RuntimeError):
        extrair_texto(NOTA)


def test_data_uri_invalido():
    with pytest.raises(PdfInvalido):
        decodificar_data_uri("data:application/pdf;base64,@@@")


# ------------------------- fluxos -------------------------
def test_extrair_material(app):
    fake = FakeModelo({"nome": "Tubo PVC 50mm", "unidade": "un", "fornecedor": "Hidro Sul", "categoria": "Hidráulica"})
    app.extensions["wellflow_ia"] = fake

    with app.app_context():
        saida = fluxos.extrair_material_de_pdf({"pdf_data_uri": _data_uri(NOTA)})

    assert saida.nome == "Tubo PVC 50mm"
    assert saida.estoque_minimo == 0
    assert "NOTA FISCAL 000123" in fake.prompts[0]


def test_extrair_transacao_coloca_nomes_em_maiusculas(app):
    app.extensions["wellflow_ia"] = FakeModelo(RESPOSTA_NOTA)

    with app.app_context():
        saida = fluxos.extrair_transacao_de_pdf({"pdf_data_uri": _data_uri(NOTA)})

    assert saida.fornecedor.nome == "HIDRO SUL LTDA"
    assert saida.materiais[0].nome_material == "TUBO PVC 50MM"
    assert saida.materiais[0].quantidade == 10
    assert saida.valor_frete == 30.0


def test_entrada_sem_data_uri_e_recusada(app):
    app.extensions["wellflow_ia"] = FakeModelo({})
    with app.app_context(), pytest.raises(ValidationError):
        fluxos.extrair_material_de_pdf({"pdf_data_uri": "JVBERi0xLjQ="})


def test_sem_chave_de_api(app):
    with app.app_context(), pytest.raises(ErroIA, match="GEMINI_API_KEY"):
        get_modelo()


def test_previsao_com_historico(app):
    fake = FakeModelo({"previsoes": [
        {"nome_material": "CABO", "consumo_previsto": 12, "nivel_confianca": 1.4, "explicacao": "Consumo estável."},
    ]})
    app.extensions["wellflow_ia"] = fake

    with app.app_context():
        with transaction():
            m, _ = criar_material(MaterialIn(nome="Cabo", unidade="m"))
            registrar_transacao("entrada", TransacaoIn(material_id=m.id, quantidade=20, responsavel="Ana"))
            registrar_transacao("saida", TransacaoIn(material_id=m.id, quantidade=4, responsavel="Ana"))

        from wellflow.services.analise import historico_material
        entrada = fluxos.montar_previsao_in([m], {m.id: historico_material(m.id)}, "próximo mês")
        saida = fluxos.prever_consumo(entrada)

    historico = json.loads(entrada.materiais[0].dados_historicos)
    assert [h["type"] for h in historico] == ["entrada", "saida"]
    assert "Horizonte de Previsão: próximo mês" in fake.prompts[0]
    assert "- Nome do Material: CABO" in fake.prompts[0]
    assert saida.previsoes[0].nivel_confianca == 1.0


def test_confianca_limitada():
    assert Previsao(nome_material="X", consumo_previsto=1, nivel_confianca=-0.2, explicacao="").nivel_confianca == 0.0


# ------------------------- endpoints -------------------------
def test_endpoint_extrair_transacao_json(admin_client, app):
    app.extensions["wellflow_ia"] = FakeModelo(RESPOSTA_NOTA)
    rv = admin_client.post("/ia/extrair-transacao", json={"pdf_data_uri": _data_uri(NOTA)})
    assert rv.status_code == 200
    assert rv.get_json()["fornecedor"]["nome"] == "HIDRO SUL LTDA"


def test_endpoint_extrair_material_upload(admin_client, app):
    app.extensions["wellflow_ia"] = FakeModelo({"nome": "Tubo", "unidade": "un"})
    rv = admin_client.post(
        "/ia/extrair-material",
        data={"pdf": (io.BytesIO(NOTA), "nota.pdf", "application/pdf")},
        content_type="multipart/form-data",
    )
    assert rv.status_code == 200
    assert rv.get_json()["nome"] == "Tubo"


def test_endpoint_erros(admin_client, app):
    rv = admin_client.post("/ia/extrair-material", json={})
    assert rv.status_code == 400

    rv = admin_client.post("/ia/extrair-material", json={"pdf_data_uri": _data_uri(_pdf())})
    assert rv.status_code == 400

    # sem GEMINI_API_KEY e sem modelo falso
    rv = admin_client.post("/ia/extrair-material", json={"pdf_data_uri": _data_uri(NOTA)})
    assert rv.status_code == 502
    assert "GEMINI_API_KEY" in rv.get_json()["error"]


def test_endpoint_previsao(admin_client, app):
    with app.app_context():
        with transaction():
            m, _ = criar_material(MaterialIn(nome="Cabo", unidade="m"))
        mid = m.id
    app.extensions["wellflow_ia"] = FakeModelo(PrevisaoOut(previsoes=[
        Previsao(nome_material="CABO", consumo_previsto=3, nivel_confianca=0.8, explicacao="ok"),
    ]).model_dump())

    rv = admin_client.post("/ia/previsao", json={"material_ids": [mid], "horizonte": "próxima semana"})
    assert rv.status_code == 200
    assert rv.get_json()["previsoes"][0]["consumo_previsto"] == 3

    assert admin_client.post("/ia/previsao", json={"material_ids": []}).status_code == 400
    assert admin_client.post("/ia/previsao", json={"material_ids": [mid]}).status_code == 400


def test_endpoint_previsao_corpo_invalido(admin_client, app):
    with app.app_context():
        with transaction():
            m, _ = criar_material(MaterialIn(nome="Cabo", unidade="m"))
        mid = m.id
    app.extensions["wellflow_ia"] = FakeModelo({"previsoes": []})

    for corpo in ([mid], "texto", {"material_ids": mid, "horizonte": "mês"},
                  {"material_ids": [mid], "horizonte": 3}):
        rv = admin_client.post("/ia/previsao", json=corpo)
        assert rv.status_code == 400, corpo
        assert "error" in rv.get_json()


def test_visitante_nao_usa_ia(client, app):
    criar_usuario(app, "v@teste.com", "Visitante")
    login(client, "v@teste.com", "senha123")
    rv = client.post("/ia/extrair-material", json={"pdf_data_uri": _data_uri(NOTA)})
    assert rv.status_code == 302

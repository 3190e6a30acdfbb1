import base64
import binascii
import io
import logging

import pdfplumber
from pdfminer.psparser import PSException
from pdfplumber.utils.exceptions import PdfminerException

log = logging.getLogger("wellflow.ia")


class PdfInvalido(ValueError):
    pass


def decodificar_data_uri(data_uri: str) -> bytes:
    try:
        return base64.b64decode(data_uri.split(",", 1)[1], validate=True)
    except (IndexError, binascii.Error) as e:
        raise PdfInvalido("Conteúdo base64 inválido.") from e


def extrair_texto(conteudo: bytes) -> str:
    """Texto de todas as páginas do PDF, separadas por quebra de linha."""
    try:
        with pdfplumber.open(io.BytesIO(conteudo)) as pdf:
            paginas = [page.extract_text(x_tolerance=2) or "" for page in pdf.pages]
    except (PdfminerException, PSException) as e:
        raise PdfInvalido("Não foi possível ler o PDF.") from e

    texto = "\n".join(paginas).strip()
    log.info("PDF lido: %d páginas, %d caracteres", len(paginas), len(texto))
    if not texto:
        raise PdfInvalido("O PDF não contém texto extraível.")
    return texto

from .cliente import ErroIA
from .pdf import PdfInvalido

__all__ = ["ErroIA", "PdfInvalido"]

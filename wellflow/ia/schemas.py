"""Entradas e saídas dos fluxos de IA."""
import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_DATA_URI = re.compile(r"^data:[\w.+-]+/[\w.+-]+;base64,", re.IGNORECASE)


class PdfIn(BaseModel):
    # 'data:<mimetype>;base64,<dados>'
    pdf_data_uri: str = Field(..., min_length=1)

    @field_validator("pdf_data_uri")
    @classmethod
    def _data_uri(cls, v):
        if not _DATA_URI.match(v.strip()):
            raise ValueError("Formato esperado: 'data:<mimetype>;base64,<dados>'")
        return v.strip()


class MaterialExtraido(BaseModel):
    nome: Optional[str] = None
    unidade: Optional[str] = None
    fornecedor: Optional[str] = None
    categoria: Optional[str] = None
    estoque_minimo: float = 0

    @field_validator("estoque_minimo", mode="before")
    @classmethod
    def _minimo(cls, v):
        return 0 if v is None else v


class FornecedorExtraido(BaseModel):
    nome: Optional[str] = None
    cnpj: Optional[str] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None


class MaterialNota(BaseModel):
    nome_material: Optional[str] = None
    quantidade: Optional[float] = None
    preco_unitario: Optional[float] = None
    unidade: Optional[str] = None
    categoria: Optional[str] = None


class TransacaoExtraida(BaseModel):
    fornecedor: Optional[FornecedorExtraido] = None
    nota_fiscal: Optional[str] = None
    valor_frete: Optional[float] = None
    materiais: list[MaterialNota] = Field(default_factory=list)


class MaterialHistorico(BaseModel):
    nome_material: str = Field(..., min_length=1)
    dados_historicos: str  # JSON com data, quantidade e tipo


class PrevisaoIn(BaseModel):
    materiais: list[MaterialHistorico] = Field(..., min_length=1)
    horizonte: str = Field(..., min_length=1)


class Previsao(BaseModel):
    nome_material: str
    consumo_previsto: float
    nivel_confianca: float
    explicacao: str

    @field_validator("nivel_confianca")
    @classmethod
    def _confianca(cls, v):
        return min(1.0, max(0.0, v))


class PrevisaoOut(BaseModel):
    previsoes: list[Previsao] = Field(default_factory=list)

"""
Schemas pydantic para validação dos dados que entram pelos formulários,
pelos arquivos CSV e pelos fluxos de IA.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from wellflow.permissions import ROLES, SETORES


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def _decimal_br(v):
    """Aceita '1.234,5', '1234,5' e '1234.5'."""
    v = _blank_to_none(v)
    if v is None or isinstance(v, (Decimal, int, float)):
        return v
    s = str(v)
    if "," in s:
        s = s.replace(".", "").replace(",", ".")
    try:
        d = Decimal(s)
    except InvalidOperation:
        raise ValueError("Valor numérico inválido")
    if not d.is_finite():
        raise ValueError("Valor numérico inválido")
    return d


# colunas Numeric(12, 2)
VALOR_MAXIMO = Decimal("9999999999.99")


def _duas_casas(v):
    if v is not None and v != v.quantize(Decimal("0.01")):
        raise ValueError("Informe no máximo 2 casas decimais")
    return v


class MaterialIn(BaseModel):
    nome: str = Field(..., min_length=1, max_length=200)
    unidade: str = Field(..., min_length=1, max_length=20)
    categoria: str = Field("GERAL", min_length=1, max_length=80)
    estoque_minimo: Decimal = Field(Decimal("0"), ge=0, le=VALOR_MAXIMO)
    fornecedor: Optional[str] = Field(None, max_length=200)

    @field_validator("nome", "unidade", "fornecedor", mode="before")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    @field_validator("categoria", mode="before")
    @classmethod
    def _categoria(cls, v):
        return _blank_to_none(v) or "GERAL"

    @field_validator("estoque_minimo", mode="before")
    @classmethod
    def _minimo(cls, v):
        v = _decimal_br(v)
        return Decimal("0") if v is None else v

    @field_validator("estoque_minimo")
    @classmethod
    def _casas_minimo(cls, v):
        return _duas_casas(v)


class TransacaoIn(BaseModel):
    material_id: Optional[int] = None
    # usados apenas quando a entrada cadastra um material novo
    material_nome: Optional[str] = Field(None, max_length=200)
    unidade: Optional[str] = Field(None, max_length=20)
    categoria: Optional[str] = Field(None, max_length=80)

    quantidade: Decimal = Field(..., gt=0, le=VALOR_MAXIMO)
    data: Optional[datetime] = None
    preco_unitario: Optional[Decimal] = Field(None, ge=0, le=VALOR_MAXIMO)
    fornecedor: Optional[str] = Field(None, max_length=200)
    nota_fiscal: Optional[str] = Field(None, max_length=60)
    nome_na_nota: Optional[str] = Field(None, max_length=200)
    numero_os: Optional[str] = Field(None, max_length=60)
    responsavel: str = Field(..., min_length=1, max_length=120)
    centro_custo: Optional[str] = Field(None, max_length=120)
    local_estoque: Optional[str] = Field(None, max_length=120)
    valor_frete: Optional[Decimal] = Field(None, ge=0, le=VALOR_MAXIMO)

    @field_validator(
        "material_id", "material_nome", "unidade", "categoria", "data", "fornecedor",
        "nota_fiscal", "nome_na_nota", "numero_os", "responsavel", "centro_custo",
        "local_estoque", mode="before",
    )
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    @field_validator("quantidade", "preco_unitario", "valor_frete", mode="before")
    @classmethod
    def _numeros(cls, v):
        return _decimal_br(v)

    @field_validator("quantidade", "preco_unitario", "valor_frete")
    @classmethod
    def _casas(cls, v):
        return _duas_casas(v)


class DadosLancamento(BaseModel):
    """Dados comuns a todos os itens de um lançamento em lote."""
    data: Optional[datetime] = None
    responsavel: str = Field(..., min_length=1, max_length=120)
    numero_os: Optional[str] = Field(None, max_length=60)
    centro_custo: Optional[str] = Field(None, max_length=120)
    local_estoque: Optional[str] = Field(None, max_length=120)
    fornecedor: Optional[str] = Field(None, max_length=200)
    nota_fiscal: Optional[str] = Field(None, max_length=60)

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)


class ItemSaida(BaseModel):
    material_id: int
    quantidade: Decimal = Field(..., gt=0, le=VALOR_MAXIMO)

    @field_validator("quantidade", mode="before")
    @classmethod
    def _qtd(cls, v):
        return _decimal_br(v)

    @field_validator("quantidade")
    @classmethod
    def _casas(cls, v):
        return _duas_casas(v)


class ItemEntrada(BaseModel):
    material_id: Optional[int] = None
    material_nome: str = Field(..., min_length=1, max_length=200)
    nome_na_nota: Optional[str] = Field(None, max_length=200)
    novo: bool = False
    quantidade: Decimal = Field(..., gt=0, le=VALOR_MAXIMO)
    preco_unitario: Optional[Decimal] = Field(None, ge=0, le=VALOR_MAXIMO)
    unidade: Optional[str] = Field(None, max_length=20)
    categoria: Optional[str] = Field(None, max_length=80)

    @field_validator("material_id", "material_nome", "nome_na_nota", "unidade", "categoria", mode="before")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    @field_validator("quantidade", "preco_unitario", mode="before")
    @classmethod
    def _numeros(cls, v):
        return _decimal_br(v)

    @field_validator("quantidade", "preco_unitario")
    @classmethod
    def _casas(cls, v):
        return _duas_casas(v)


class FornecedorIn(BaseModel):
    nome: str = Field(..., min_length=1, max_length=200)
    cnpj: Optional[str] = Field(None, max_length=20)
    contato: Optional[str] = Field(None, max_length=120)
    telefone: Optional[str] = Field(None, max_length=40)
    email: Optional[str] = Field(None, max_length=160)
    endereco: Optional[str] = Field(None, max_length=250)
    cidade: Optional[str] = Field(None, max_length=120)
    estado: Optional[str] = Field(None, max_length=2)
    site: Optional[str] = Field(None, max_length=200)

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        if v and "@" not in v:
            raise ValueError("E-mail inválido")
        return v

    @field_validator("estado")
    @classmethod
    def _uf(cls, v):
        return v.upper() if v else v


class CentroCustoIn(BaseModel):
    nome: str = Field(..., min_length=1, max_length=120)
    descricao: Optional[str] = Field(None, max_length=250)

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)


class UsuarioIn(BaseModel):
    nome: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=160)
    role: str = "Visitante"
    setor: str = "N/A"

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        if "@" not in v:
            raise ValueError("E-mail inválido")
        return v.lower()

    @field_validator("role")
    @classmethod
    def _role(cls, v):
        if v not in ROLES:
            raise ValueError(f"Perfil inválido: {v}")
        return v

    @field_validator("setor")
    @classmethod
    def _setor(cls, v):
        if v not in SETORES and v != "N/A":
            raise ValueError(f"Setor inválido: {v}")
        return v


def mensagem_validacao(exc) -> str:
    """Resume um ValidationError do pydantic numa frase para o flash."""
    partes = []
    for err in exc.errors():
        campo = ".".join(str(p) for p in err.get("loc", ()))
        partes.append(f"{campo}: {err.get('msg')}" if campo else err.get("msg"))
    return "Dados inválidos. " + "; ".join(partes)

"""
Leitura dos arquivos CSV de importação.

Colunas esperadas (primeira linha do arquivo):

- materiais:    name, category, unit, minStock, supplier
- fornecedores: name, cnpj, contactName, phone, email, address, city, state, website
- retiradas:    materialId, quantity
"""
import csv
import io
import logging

from pydantic import ValidationError

from wellflow.models import Material
from wellflow.schemas import MaterialIn, FornecedorIn, ItemSaida, _decimal_br
from wellflow.services import ServiceError

log = logging.getLogger("wellflow.importacao")

COLUNAS_MATERIAIS = ["name", "category", "unit", "minStock", "supplier"]
COLUNAS_FORNECEDORES = ["name", "cnpj", "contactName", "phone", "email", "address", "city", "state", "website"]
COLUNAS_RETIRADAS = ["materialId", "quantity"]


def ler_csv(arquivo, obrigatorias) -> list[dict]:
    """Lê um upload (FileStorage, bytes ou str) e devolve as linhas como dicts."""
    if hasattr(arquivo, "read"):
        arquivo = arquivo.read()
    if isinstance(arquivo, bytes):
        try:
            arquivo = arquivo.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ServiceError("O arquivo CSV deve estar em UTF-8.") from e

    reader = csv.DictReader(io.StringIO(arquivo.lstrip("\ufeff")))
    colunas = [c.strip() for c in (reader.fieldnames or [])]
    faltando = [c for c in obrigatorias if c not in colunas]
    if faltando:
        raise ServiceError(f"Cabeçalho inválido. Colunas ausentes: {', '.join(faltando)}")

    linhas = []
    for row in reader:
        linhas.append({k.strip(): (v or "").strip() for k, v in row.items() if k is not None})
    return linhas


def parse_materiais(linhas):
    validos, invalidos = [], 0
    for row in linhas:
        if not row.get("name") or not row.get("unit"):
            invalidos += 1
            continue
        try:
            validos.append(MaterialIn(
                nome=row.get("name"),
                categoria=row.get("category"),
                unidade=row.get("unit"),
                estoque_minimo=row.get("minStock") or 0,
                fornecedor=row.get("supplier"),
            ))
        except ValidationError:
            invalidos += 1
    log.info("CSV de materiais: %d válidos, %d inválidos", len(validos), invalidos)
    return validos, invalidos


def parse_fornecedores(linhas):
    validos, invalidos = [], 0
    for row in linhas:
        try:
            validos.append(FornecedorIn(
                nome=row.get("name"),
                cnpj=row.get("cnpj"),
                contato=row.get("contactName"),
                telefone=row.get("phone"),
                email=row.get("email"),
                endereco=row.get("address"),
                cidade=row.get("city"),
                estado=row.get("state"),
                site=row.get("website"),
            ))
        except ValidationError:
            invalidos += 1
    log.info("CSV de fornecedores: %d válidos, %d inválidos", len(validos), invalidos)
    return validos, invalidos


def _resolver_material(ref):
    """``materialId`` pode ser o código (PRD...) ou o id numérico."""
    ref = (ref or "").strip()
    if not ref:
        return None
    m = Material.query.filter_by(codigo=ref.upper(), ativo=True).first()
    if m is None and ref.isdigit():
        m = Material.query.filter_by(id=int(ref), ativo=True).first()
    return m


def parse_retiradas(linhas):
    """Converte as linhas em ``ItemSaida``; descarta id desconhecido e quantidade <= 0."""
    itens, invalidos = [], 0
    for row in linhas:
        m = _resolver_material(row.get("materialId"))
        try:
            qtd = _decimal_br(row.get("quantity"))
        except ValueError:
            qtd = None
        if m is None or qtd is None or not qtd.is_finite() or qtd <= 0:
            invalidos += 1
            continue
        try:
            itens.append(ItemSaida(material_id=m.id, quantidade=qtd))
        except ValidationError:
            invalidos += 1
    log.info("CSV de retiradas: %d válidas, %d inválidas", len(itens), invalidos)
    return itens, invalidos

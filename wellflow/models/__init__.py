from .user import User
from .material import Material, Categoria
from .transacao import Transacao
from .fornecedor import Fornecedor
from .centro_custo import CentroCusto
from .alerta import AlertaMaterial, SetorEmail

__all__ = [
    "User", "Material", "Categoria", "Transacao", "Fornecedor",
    "CentroCusto", "AlertaMaterial", "SetorEmail",
]

PROMPT_MATERIAL = """Você é um assistente de cadastro de produtos especializado em analisar texto de notas fiscais.
Analise o seguinte texto extraído de um PDF e identifique os seguintes campos para um novo material: nome, unidade de medida, fornecedor e sugira uma categoria.
Se um campo não for encontrado, deixe-o em branco. Foque em extrair os valores exatos.
Para o nome do material (nome), procure a descrição de um produto.
Para a unidade (unidade), procure por abreviações como 'un', 'pc', 'kg', 'm', 'm2', 'm3'.
Para a categoria (categoria), sugira uma categoria com base no nome do produto (ex: 'Hidráulica', 'Elétrica', 'Ferramenta', 'Agregado').
O estoque mínimo (estoque_minimo) só deve ser preenchido se puder ser inferido; caso contrário use 0.

Texto do PDF:
{texto_pdf}

Retorne os dados extraídos no formato JSON.
"""

PROMPT_TRANSACAO = """Você é um assistente de entrada de dados especialista em analisar texto de notas fiscais e faturas.
Sua tarefa é analisar o texto extraído de um PDF e extrair **apenas** as seguintes informações:

1.  **Dados do Fornecedor** (fornecedor):
    *   nome: O nome do fornecedor ou da empresa.
    *   cnpj: O CNPJ do fornecedor.
    *   telefone: O telefone de contato.
    *   endereco: O endereço completo (rua, número, bairro).
    *   cidade: A cidade.
    *   estado: O estado (sigla com 2 letras, ex: SP, RJ).

2.  **Dados da Nota**:
    *   nota_fiscal: O número da nota fiscal ou fatura.
    *   valor_frete: O valor do frete, se houver.

3.  **Lista de Materiais** (materiais):
    *   Para **cada item** listado, extraia: nome_material, quantidade, preco_unitario, unidade e categoria.
    *   Para quantidade, preco_unitario e valor_frete, extraia **apenas o valor numérico**.
    *   Para categoria, sugira uma com base no nome do produto (ex: 'Hidráulica', 'Elétrica', 'Ferramenta').

Se um campo específico não for encontrado no texto, deixe-o em branco. **Não inclua nenhuma informação adicional ou desnecessária.** Foque em extrair os valores exatos.

Texto do PDF:
{texto_pdf}

Retorne os dados extraídos no formato JSON.
"""

PROMPT_PREVISAO = """Você é um analista especialista em cadeia de suprimentos. Para cada material na lista a seguir, analise os dados históricos de uso e preveja o consumo para o horizonte de previsão especificado.

Horizonte de Previsão: {horizonte}

Materiais para análise:
{materiais}

Para cada material, considere tendências, sazonalidade e quaisquer anomalias nos dados. Forneça uma quantidade de consumo prevista (consumo_previsto), um nível de confiança de 0 a 1 (nivel_confianca) e uma explicação dos fatores que influenciam a predição (explicacao).
Garanta que 'consumo_previsto' seja um número e que 'nivel_confianca' esteja entre 0 e 1 para cada previsão.
A saída deve ser um objeto JSON contendo uma chave "previsoes", que é uma lista de objetos, um para cada material, com o campo nome_material igual ao nome informado.
"""

_ITEM_PREVISAO = """- Nome do Material: {nome}
  Dados Históricos: {dados}"""


def prompt_material(texto_pdf: str) -> str:
    return PROMPT_MATERIAL.format(texto_pdf=texto_pdf)


def prompt_transacao(texto_pdf: str) -> str:
    return PROMPT_TRANSACAO.format(texto_pdf=texto_pdf)


def prompt_previsao(entrada) -> str:
    materiais = "\n".join(
        _ITEM_PREVISAO.format(nome=m.nome_material, dados=m.dados_historicos) for m in entrada.materiais
    )
    return PROMPT_PREVISAO.format(horizonte=entrada.horizonte, materiais=materiais)

REWRITE_QUERY_PROMPT_VERSION = "rewrite_query_v1"

REWRITE_QUERY_PROMPT = """Você é um especialista em busca de planos de saúde.

Uma busca anterior não retornou resultados suficientes. Sua tarefa é REFORMULAR a query para melhorar os resultados.

## Problema Identificado
{problem}

## Query Original
{original_query}

## Perfil do Cliente
{client_info}

## Estratégias por Problema

1. **no_results** (nenhum resultado):
   - Remover termos muito específicos
   - Usar sinônimos mais comuns
   - Focar no aspecto mais importante do cliente

2. **low_similarity** (baixa similaridade):
   - Adicionar contexto do perfil do cliente
   - Usar termos mais técnicos do setor
   - Incluir operadoras conhecidas

3. **too_specific** (muito específica):
   - Generalizar a busca
   - Remover filtros de preço exato
   - Focar em categoria ao invés de produto específico

4. **missing_context** (falta contexto):
   - Incluir cidade/estado do cliente
   - Mencionar tipo de plano (individual/familiar)
   - Adicionar faixa etária

## Exemplos

**Problema: too_specific**
Original: "plano Amil S750 código ANS 12345 cobertura oncológica avançada"
Reescrita: "plano Amil com cobertura para tratamento de câncer São Paulo"

**Problema: no_results**
Original: "plano saúde tratamento doença rara específica XYZ"
Reescrita: "plano saúde cobertura doenças complexas tratamento especializado"

**Problema: missing_context**
Original: "melhor plano de saúde"
Reescrita: "plano de saúde familiar São Paulo cobertura completa até R$1000"

## Formato de Resposta (JSON)
{{
  "rewrittenQuery": "nova query reformulada",
  "changes": "breve descrição do que foi alterado"
}}

Reformule a query agora:"""

GENERATE_QUERIES_PROMPT_VERSION = "generate_queries_v1"

GENERATE_QUERIES_PROMPT = """Você é um especialista em planos de saúde no Brasil.

Dado o perfil do cliente abaixo, gere de 3 a 5 queries de busca diversificadas para encontrar planos de saúde relevantes.

**Regras:**
1. Cada query deve ter um foco diferente (profile, coverage, price, dependents, conditions, general)
2. Queries devem ser em português brasileiro
3. Priorize aspectos mais importantes do perfil (idade, condições, dependentes)
4. Queries devem ser específicas o suficiente para busca semântica
5. Evite queries genéricas demais

**Perfil do Cliente:**
{client_info}

**Formato de Resposta (JSON):**
{{
  "queries": [
    {{
      "query": "planos de saúde para pessoa de X anos em cidade Y com cobertura completa",
      "focus": "profile",
      "priority": 1
    }},
    ...
  ]
}}

Gere as queries agora:"""

"""
Service Portfolio
Static catalogs: strategic clusters, business models and scoring criteria.

The business-model mapper normalises the free-text ``businessModel`` stored
on each idea into one of six canonical categories so that every idea lands
in exactly one bucket on the charts.
"""

import unicodedata

# ── Criteria (order matches Service.scores) ─────────────────────────────────

CRITERIA = [
    {
        "id": "alinhamento",
        "shortTitle": "Alinhamento",
        "title": "Alinhamento Estratégico",
        "description": "Quanto a ideia reforça a estratégia e o posicionamento da marca.",
        "subCriteria": [
            "Coerência com a missão e os objetivos de médio prazo.",
            "Aproveita ativos e canais já existentes.",
            "Fortalece o ecossistema de produtos.",
        ],
        "sheetColumn": "score_alinhamento",
    },
    {
        "id": "valor-cliente",
        "shortTitle": "Valor Cliente",
        "title": "Valor para o Cliente",
        "description": "Intensidade da dor resolvida e do benefício percebido pelo cliente.",
        "subCriteria": [
            "Resolve um problema frequente ou relevante.",
            "Benefício claro e fácil de comunicar.",
            "Aumenta a satisfação e a recorrência.",
        ],
        "sheetColumn": "score_valor_cliente",
    },
    {
        "id": "impacto-financeiro",
        "shortTitle": "Impacto Fin.",
        "title": "Impacto Financeiro",
        "description": "Potencial de receita, margem e retorno sobre o investimento.",
        "subCriteria": [
            "Tamanho do mercado endereçável.",
            "Margem esperada.",
            "Tempo de retorno do investimento.",
        ],
        "sheetColumn": "score_impacto_fin",
    },
    {
        "id": "viabilidade",
        "shortTitle": "Viabilidade",
        "title": "Viabilidade de Execução",
        "description": "Facilidade de colocar a ideia em operação com os recursos disponíveis.",
        "subCriteria": [
            "Complexidade técnica e operacional.",
            "Parceiros e fornecedores necessários.",
            "Riscos regulatórios.",
        ],
        "sheetColumn": "score_viabilidade",
    },
    {
        "id": "vantagem-competitiva",
        "shortTitle": "Vantagem Comp.",
        "title": "Vantagem Competitiva",
        "description": "Dificuldade dos concorrentes em replicar a oferta.",
        "subCriteria": [
            "Diferenciação frente a ofertas existentes.",
            "Barreiras de entrada.",
            "Uso de dados ou relacionamento exclusivos.",
        ],
        "sheetColumn": "score_vantagem_comp",
    },
]

CRITERIA_SHEET_COLUMNS = [c["sheetColumn"] for c in CRITERIA]

# ── Strategic clusters ──────────────────────────────────────────────────────

CLUSTERS = [
    {
        "id": "casa-inteligente",
        "shortTitle": "Casa Inteligente",
        "title": "Casa Inteligente & Conectividade",
        "necessidades": [
            "Instalação e integração de dispositivos conectados.",
            "Suporte contínuo para automação residencial.",
        ],
    },
    {
        "id": "entretenimento",
        "shortTitle": "Entretenimento",
        "title": "Entretenimento & Setup",
        "necessidades": [
            "Montagem e otimização de home theater e setups gamer.",
            "Calibração de imagem e som.",
        ],
    },
    {
        "id": "mobilidade",
        "shortTitle": "Mobilidade",
        "title": "Mobilidade & Energia",
        "necessidades": [
            "Carregadores, baterias e soluções de energia.",
            "Manutenção de equipamentos de mobilidade elétrica.",
        ],
    },
    {
        "id": "protecao",
        "shortTitle": "Proteção",
        "title": "Proteção & Garantia",
        "necessidades": [
            "Cobertura contra danos, roubo e defeitos.",
            "Reparos rápidos com equipamento reserva.",
        ],
    },
    {
        "id": "empresas",
        "shortTitle": "Empresas",
        "title": "Soluções para Empresas",
        "necessidades": [
            "Equipar e manter escritórios e equipes remotas.",
            "Gestão de parque de dispositivos.",
        ],
    },
    {
        "id": "educacao",
        "shortTitle": "Educação",
        "title": "Educação & Capacitação",
        "necessidades": [
            "Aprender a usar melhor os produtos adquiridos.",
            "Trilhas de capacitação digital.",
        ],
    },
]

# ── Canonical business models ───────────────────────────────────────────────

BM_SUBSCRIPTION = "Assinatura/Recorrência"
BM_PACKAGE = "Pacote de Serviço"
BM_RENTAL = "Locação"
BM_CONSULTING = "Consultoria"
BM_B2B = "Soluções B2B"
BM_FINANCIAL = "Financeiro/Benefício"

BUSINESS_MODEL_CATEGORIES = [
    BM_SUBSCRIPTION, BM_PACKAGE, BM_RENTAL, BM_CONSULTING, BM_B2B, BM_FINANCIAL,
]

DEFAULT_BUSINESS_MODEL = BM_PACKAGE

BUSINESS_MODELS = [
    {
        "id": "assinatura-recorrencia",
        "shortTitle": BM_SUBSCRIPTION,
        "title": "1. Assinatura & Recorrência",
        "valor": (
            "Criar um fluxo de receita previsível e fortalecer o relacionamento com o "
            "cliente por meio de pagamentos periódicos."
        ),
        "caracteristicas": [
            "Fidelização de longo prazo do cliente.",
            "Receita mensal/anual previsível (MRR/ARR).",
            "Entrega contínua de valor para justificar o pagamento.",
        ],
    },
    {
        "id": "pacote-de-servico",
        "shortTitle": BM_PACKAGE,
        "title": "2. Pacote de Serviço (One-Time)",
        "valor": (
            "Oferecer uma solução completa e pontual para uma necessidade específica, "
            "com preço fixo e escopo definido."
        ),
        "caracteristicas": [
            "Transação única com preço definido.",
            "Escopo de trabalho claro e objetivo.",
            "Abre portas para vendas futuras.",
        ],
    },
    {
        "id": "locacao",
        "shortTitle": BM_RENTAL,
        "title": "3. Locação & Acesso (Leasing)",
        "valor": (
            "Permitir o uso de produtos de alto valor por um período determinado sem o "
            "custo e o compromisso da compra."
        ),
        "caracteristicas": [
            "Reduz a barreira de entrada para produtos caros.",
            "Permite experimentação (try-before-you-buy).",
            "Modelo 'Product-as-a-Service'.",
        ],
    },
    {
        "id": "consultoria",
        "shortTitle": BM_CONSULTING,
        "title": "4. Consultoria & Serviço Especializado",
        "valor": (
            "Vender conhecimento e expertise para orientar o cliente em decisões "
            "complexas, com soluções personalizadas."
        ),
        "caracteristicas": [
            "Monetização do capital intelectual.",
            "Alta margem e personalização.",
            "Posiciona a marca como autoridade.",
        ],
    },
    {
        "id": "solucoes-b2b",
        "shortTitle": BM_B2B,
        "title": "5. Soluções B2B (Business-to-Business)",
        "valor": (
            "Atender outras empresas com pacotes de produtos e serviços em maior "
            "escala, com gestão de contas dedicada."
        ),
        "caracteristicas": [
            "Contratos de maior valor e duração.",
            "Relacionamento focado em parceria.",
            "Pode incluir modelos B2B2C.",
        ],
    },
    {
        "id": "financeiro-beneficio",
        "shortTitle": BM_FINANCIAL,
        "title": "6. Serviços Financeiros & Benefícios",
        "valor": (
            "Integrar soluções financeiras e programas de benefícios à jornada de "
            "compra."
        ),
        "caracteristicas": [
            "Facilita a aquisição de produtos de alto valor.",
            "Seguros e garantia estendida.",
            "Programas de fidelidade e cash-back.",
        ],
    },
]


def _normalize_key(raw: str) -> str:
    """Lower-case, strip accents and collapse separators: 'Locação ' → 'locacao'."""
    text = unicodedata.normalize("NFKD", str(raw))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = text.casefold()
    for sep in ("/", "-", "_", "&", ",", "(", ")", "."):
        text = text.replace(sep, " ")
    return " ".join(text.split())


_RAW_ALIASES = {
    BM_SUBSCRIPTION: [
        "Assinatura/Recorrência", "Assinatura", "Recorrência", "Assinatura & Recorrência",
        "Subscription", "Clube de assinatura", "Mensalidade", "Plano mensal",
    ],
    BM_PACKAGE: [
        "Pacote de Serviço", "Pacote", "Serviço avulso", "Serviço pontual",
        "One-Time", "Instalação", "Taxa única",
    ],
    BM_RENTAL: [
        "Locação", "Aluguel", "Leasing", "Locação & Acesso", "Product-as-a-Service", "PaaS",
    ],
    BM_CONSULTING: [
        "Consultoria", "Serviço Especializado", "Consultoria & Serviço Especializado",
        "Curadoria", "Projeto sob medida",
    ],
    BM_B2B: [
        "Soluções B2B", "B2B", "B2B2C", "Business-to-Business", "Corporativo",
    ],
    BM_FINANCIAL: [
        "Financeiro/Benefício", "Financeiro", "Benefício", "Serviços Financeiros & Benefícios",
        "Seguro", "Garantia estendida", "Consórcio", "Crédito", "Cashback", "Fidelidade",
    ],
}

BUSINESS_MODEL_ALIASES = {
    _normalize_key(alias): category
    for category, aliases in _RAW_ALIASES.items()
    for alias in aliases
}


def map_business_model(raw, default: str = DEFAULT_BUSINESS_MODEL) -> str:
    """Resolve a raw business-model string to its canonical category.

    Total and deterministic: unknown, empty or non-string values resolve to
    ``default``.
    """
    if raw is None:
        return default
    key = _normalize_key(raw)
    if not key:
        return default
    return BUSINESS_MODEL_ALIASES.get(key, default)


def cluster_titles() -> list[str]:
    """Short titles of the catalog clusters, in catalog order."""
    return [c["shortTitle"] for c in CLUSTERS]

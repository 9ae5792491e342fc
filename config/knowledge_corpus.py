# config/knowledge_corpus.py
"""
Baseline FAQ corpus for the chatbot_knowledge table.

Loaded by tools/seed_chatbot_knowledge.py. Each item is a row:
  {category, title, content, keywords}
"""

from __future__ import annotations

from typing import Any, Dict, List

KNOWLEDGE_ITEMS: List[Dict[str, Any]] = [
    # --- Modelo ---
    {
        "category": "modelo",
        "title": "Qué mide el índice BRAINNOVA",
        "content": (
            "El **índice BRAINNOVA** mide el grado de desarrollo de la **economía digital** de un territorio. "
            "Es un indicador compuesto (0-100) que permite comparar territorios y seguir su evolución en el tiempo. "
            "Los datos por provincia y por dimensión están en la sección **Comparación Territorial**."
        ),
        "keywords": ["brainnova", "índice", "mide", "economía digital", "territorio"],
    },
    {
        "category": "modelo",
        "title": "Cuáles son las dimensiones del sistema",
        "content": (
            "El sistema BRAINNOVA se estructura en **7 dimensiones**: Transformación Digital Empresarial, "
            "Capital Humano, Infraestructura Digital, Ecosistema y Colaboración, Emprendimiento e Innovación, "
            "Servicios Públicos Digitales y Sostenibilidad Digital. Puedes explorarlas en el menú **Dimensiones**."
        ),
        "keywords": ["dimensiones", "sistema", "brainnova", "capital humano", "infraestructura"],
    },
    {
        "category": "modelo",
        "title": "Cómo se calcula el Índice Global BRAINNOVA",
        "content": (
            "Cada indicador se **normaliza** a una escala 0-100 (Min-Max), se **pondera** por su importancia "
            "(Alta, Media, Baja) para obtener el score de cada subdimensión, las subdimensiones se promedian "
            "en su dimensión y el **índice global** es la media ponderada por el peso de cada dimensión. "
            "Consulta la sección **Metodología**."
        ),
        "keywords": ["calcula", "índice global", "normalización", "ponderación", "metodología"],
    },
    {
        "category": "modelo",
        "title": "Cómo se normalizan los indicadores",
        "content": (
            "La metodología BRAINNOVA usa **normalización Min-Max**: (valor - mínimo) / (máximo - mínimo) × 100, "
            "tomando el mínimo y el máximo del conjunto de referencia. El peor valor se acerca a 0 y el mejor a 100."
        ),
        "keywords": ["normalizan", "indicadores", "min-max", "escala", "metodología"],
    },
    # --- Resultados globales ---
    {
        "category": "resultados_globales",
        "title": "Cuál es la puntuación global de la Comunidad Valenciana",
        "content": (
            "La **puntuación global** de la Comunitat Valenciana se obtiene a partir de las 7 dimensiones del índice. "
            "Los valores por provincia están en la sección **Comparación Territorial**; también puedes preguntar "
            "\"¿Cuál es el índice BRAINNOVA de Valencia?\"."
        ),
        "keywords": ["puntuación global", "Comunidad Valenciana", "Comunitat", "índice", "resultados"],
    },
    {
        "category": "resultados_globales",
        "title": "Cómo ha evolucionado el índice en los últimos 3 años",
        "content": (
            "La **evolución del índice** puede consultarse en la sección **Evolución Temporal**, seleccionando "
            "el territorio y los periodos disponibles (por ejemplo 2022, 2023 y 2024)."
        ),
        "keywords": ["evolución", "índice", "años", "periodos"],
    },
    # --- Infraestructura digital ---
    {
        "category": "infraestructura",
        "title": "Cuál es la cobertura 5G en la Comunidad Valenciana",
        "content": (
            "La **cobertura 5G** se refleja en los indicadores de la dimensión **Infraestructura Digital**. "
            "Consulta el indicador de 5G en **Todos los Indicadores (KPIs)** o en **Dimensiones** → Infraestructura Digital."
        ),
        "keywords": ["cobertura", "5G", "Comunidad Valenciana", "infraestructura", "conectividad"],
    },
    {
        "category": "infraestructura",
        "title": "Cómo se compara la cobertura VHCN con la media nacional",
        "content": (
            "La **cobertura VHCN** (redes de muy alta capacidad) se normaliza y compara con referencias nacionales "
            "y europeas dentro de la dimensión **Infraestructura Digital**."
        ),
        "keywords": ["VHCN", "cobertura", "media nacional", "banda ancha", "infraestructura"],
    },
    {
        "category": "infraestructura",
        "title": "Qué provincias presentan mejor conectividad digital",
        "content": (
            "La provincia con mayor score en **Infraestructura Digital** es la que presenta mejor conectividad. "
            "Compara Valencia, Alicante y Castellón en la sección **Comparación Territorial**."
        ),
        "keywords": ["provincias", "conectividad digital", "infraestructura", "Valencia", "Alicante", "Castellón"],
    },
    # --- Capital humano ---
    {
        "category": "capital_humano",
        "title": "Qué porcentaje de la población tiene competencias digitales básicas",
        "content": (
            "Se mide con el indicador **Personas con habilidades digitales básicas** de la dimensión **Capital Humano**. "
            "Los valores por territorio y periodo están en **Todos los Indicadores (KPIs)**."
        ),
        "keywords": ["población", "competencias digitales", "básicas", "capital humano", "porcentaje"],
    },
    {
        "category": "capital_humano",
        "title": "Existen dificultades para contratar perfiles TIC",
        "content": (
            "Las **dificultades para contratar perfiles TIC** se recogen en indicadores de la dimensión "
            "**Capital Humano** sobre oferta y demanda de talento digital."
        ),
        "keywords": ["dificultades", "contratar", "perfiles TIC", "capital humano", "empleo"],
    },
    # --- Transformación digital empresarial ---
    {
        "category": "transformacion_digital",
        "title": "Cuántas empresas utilizan inteligencia artificial",
        "content": (
            "El uso de **inteligencia artificial** en empresas se mide en la dimensión **Transformación Digital "
            "Empresarial**. Pregunta \"¿Cuál es el valor de empresas que usan inteligencia artificial?\" para ver el dato."
        ),
        "keywords": ["empresas", "inteligencia artificial", "IA", "transformación digital"],
    },
    {
        "category": "transformacion_digital",
        "title": "Qué porcentaje de empresas utiliza ERP",
        "content": (
            "El **porcentaje de empresas que utilizan ERP** es un indicador de la dimensión **Transformación Digital "
            "Empresarial**. Búscalo en **Todos los Indicadores (KPIs)**."
        ),
        "keywords": ["empresas", "ERP", "transformación digital", "porcentaje"],
    },
    # --- Metodología ---
    {
        "category": "metodologia",
        "title": "Qué fuentes de datos se utilizan",
        "content": (
            "Las **fuentes de datos** dependen de cada indicador: Eurostat, INE, fuentes sectoriales y datos propios "
            "del proyecto. La ficha de cada indicador muestra su **Fuente**."
        ),
        "keywords": ["fuentes", "datos", "Eurostat", "INE", "metodología"],
    },
    {
        "category": "metodologia",
        "title": "Cada cuánto se actualizan los indicadores",
        "content": (
            "La **actualización** depende de la disponibilidad de las fuentes oficiales (anual, semestral). "
            "El último periodo de cada indicador aparece en **Todos los Indicadores (KPIs)**."
        ),
        "keywords": ["actualizan", "indicadores", "periodo", "fuentes", "frecuencia"],
    },
]

"""
Intake Context

Responsibilities:
- Ingests vaga notes from markdown files and raw job descriptions
- Extracts application fields with heuristics (markdown) or an LLM (free text)
- Maps extracted data onto the add-vaga form and a saveable record

Owns: Vaga field extraction and normalization
Never: Enforces quotas or persists records
"""

"""
vagatrack - Job application ("vaga") tracking toolkit

Backend logic for a dashboard that logs internship and job applications,
with AI-assisted parsing of job postings.

Architecture:
- Intake Context: Markdown analysis ingestion and heuristic field extraction
- Quota Context: Per-client admission control for LLM-backed endpoints
"""

__version__ = "0.1.0"

"""
Unit tests for heuristic vaga field extraction.

Tests core extraction in vagatrack.contexts.intake.field_extractor.
"""

import re

import pytest

from vagatrack.contexts.intake.field_extractor import (
    FIELD_RULES,
    classify_status,
    classify_work_mode,
    extract_table_fields,
    first_valid,
    normalize_table_field_name,
    parse_bounded_int,
    parse_vaga_file,
    parse_vaga_markdown,
)
from vagatrack.contexts.intake.vaga_data_structure import VAGA_FIELDS, VagaStatus, WorkMode

TABLE_DOCUMENT = """\
# Análise da Vaga

| Campo | Detalhes |
|-------|----------|
| **Empresa** | Saipem |
| **Cargo** | Engenheiro de Dados Júnior |
| **Local** | Rio de Janeiro, RJ |
| **Modalidade** | Presencial \\| Híbrido \\| Remoto |
| **Requisitos** | 85 |
| **Fit** | 8 |
| **Etapa** | Entrevista técnica |
| **Status** | Em processo |
"""

INLINE_DOCUMENT = """\
**Empresa**: Google
**Cargo**: Senior Developer
**Local**: São Paulo, SP
**Modalidade**: Remoto
**Requisitos**: 90
**Fit**: 9
**Etapa**: Triagem
**Status**: Aguardando retorno

**Observações**:
Empresa com ótima cultura.
Processo rápido.

**Contato**: recrutamento@example.com
"""


@pytest.mark.unit
class TestParseVagaMarkdown:
    """Tests for parse_vaga_markdown() on complete documents."""

    def test_table_document(self):
        result = parse_vaga_markdown(TABLE_DOCUMENT)

        assert result == {
            "empresa": "Saipem",
            "cargo": "Engenheiro de Dados Júnior",
            "local": "Rio de Janeiro, RJ",
            "modalidade": WorkMode.HIBRIDO,
            "requisitos": 85,
            "fit": 8,
            "etapa": "Entrevista técnica",
            "status": VagaStatus.AVANCADO,
        }

    def test_inline_document(self):
        result = parse_vaga_markdown(INLINE_DOCUMENT)

        assert result["empresa"] == "Google"
        assert result["cargo"] == "Senior Developer"
        assert result["local"] == "São Paulo, SP"
        assert result["modalidade"] is WorkMode.REMOTO
        assert result["requisitos"] == 90
        assert result["fit"] == 9
        assert result["etapa"] == "Triagem"
        assert result["status"] is VagaStatus.PENDENTE
        assert result["observacoes"] == "Empresa com ótima cultura.\nProcesso rápido."

    def test_english_labels(self):
        text = (
            "**Company**: Acme\n"
            "**Role**: Data Engineer\n"
            "**Location**: Lisbon\n"
            "**Work mode**: Hybrid\n"
            "**Status**: Rejected\n"
        )
        result = parse_vaga_markdown(text)

        assert result == {
            "empresa": "Acme",
            "cargo": "Data Engineer",
            "local": "Lisbon",
            "modalidade": WorkMode.HIBRIDO,
            "status": VagaStatus.MELOU,
        }

    def test_plain_and_bulleted_labels(self):
        text = "- Empresa: Acme\n- **Local:** Porto\nCargo: Analista"
        result = parse_vaga_markdown(text)

        assert result == {"empresa": "Acme", "local": "Porto", "cargo": "Analista"}

    def test_heading_blocks(self):
        result = parse_vaga_markdown("# Empresa\nGoogle Inc\n\n# Cargo\nSenior Developer")

        assert result["empresa"] == "Google Inc"
        assert result["cargo"] == "Senior Developer"

    def test_bare_label_block(self):
        result = parse_vaga_markdown("Empresa\n\nNubank\n")

        assert result == {"empresa": "Nubank"}

    @pytest.mark.parametrize("newline", ["\r\n", "\r"])
    def test_windows_and_old_mac_line_endings(self, newline):
        lines = ["# Empresa", "Google", "", "Cargo", "", "Analista", "**Local**: Recife"]
        text = newline.join(lines)
        result = parse_vaga_markdown(text)

        assert result == {"empresa": "Google", "cargo": "Analista", "local": "Recife"}

    def test_heading_value_may_contain_a_colon(self):
        text = "# Cargo\nDev (Horário: 9h)\n\n# Empresa\nAcme Ltda (filial: Recife)"
        result = parse_vaga_markdown(text)

        assert result["cargo"] == "Dev (Horário: 9h)"
        assert result["empresa"] == "Acme Ltda (filial: Recife)"

    def test_heading_value_may_be_a_url(self):
        result = parse_vaga_markdown("# Empresa\nhttps://acme.example/careers")

        assert result["empresa"] == "https://acme.example/careers"

    @pytest.mark.parametrize(
        "next_line",
        ["Local: Recife", "**Local**: Recife", "- **Local:** Recife", "Work mode: remoto"],
    )
    def test_heading_followed_by_label_line_is_not_a_value(self, next_line):
        result = parse_vaga_markdown(f"# Empresa\n{next_line}")

        assert "empresa" not in result

    def test_table_value_takes_priority_over_inline(self):
        text = "| Empresa | Saipem |\n\n**Empresa**: Petrobras"

        assert parse_vaga_markdown(text)["empresa"] == "Saipem"

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "random text", "|||", "| a |", "# \n\n**:**", "\x00\x01", "**" * 50],
    )
    def test_never_raises_and_returns_empty_for_noise(self, text):
        assert parse_vaga_markdown(text) == {}

    def test_keys_are_vaga_fields_and_never_empty(self):
        for document in (TABLE_DOCUMENT, INLINE_DOCUMENT):
            result = parse_vaga_markdown(document)

            assert set(result) <= set(VAGA_FIELDS)
            assert all(value != "" for value in result.values())

    def test_rules_cover_every_field(self):
        assert [rule.name for rule in FIELD_RULES] == VAGA_FIELDS

    def test_rules_hold_compiled_patterns_and_normalizers(self):
        for rule in FIELD_RULES:
            assert rule.patterns
            assert all(isinstance(pattern, re.Pattern) for pattern in rule.patterns)
            assert all(pattern.groups >= 1 for pattern in rule.patterns)
            assert callable(rule.normalize)
            assert rule.normalize("   ") is None


@pytest.mark.unit
class TestEmptyAndMissingValues:
    """Tests that empty labels produce absent keys."""

    def test_empty_inline_label_is_absent(self):
        result = parse_vaga_markdown("**Empresa**:\n\n**Cargo**: Developer")

        assert "empresa" not in result
        assert result["cargo"] == "Developer"

    def test_empty_table_cell_is_absent(self):
        result = parse_vaga_markdown("| **Empresa** |          |\n| **Cargo** | Dev |")

        assert "empresa" not in result
        assert result["cargo"] == "Dev"

    def test_whitespace_only_value_is_absent(self):
        assert "local" not in parse_vaga_markdown("**Local**:    \n")


@pytest.mark.unit
class TestBoundedNumbers:
    """Tests for requisitos (0-100) and fit (0-10)."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("**Requisitos**: 0", 0),
            ("**Requisitos**: 100", 100),
            ("**Requisitos**: 85%", 85),
            ("Score: 42", 42),
            ("Nota: 70", 70),
        ],
    )
    def test_requisitos_in_range(self, text, expected):
        assert parse_vaga_markdown(text)["requisitos"] == expected

    @pytest.mark.parametrize("text", ["**Requisitos**: 150", "**Requisitos**: -5", "**Requisitos**: alto"])
    def test_requisitos_out_of_range_is_absent(self, text):
        assert "requisitos" not in parse_vaga_markdown(text)

    @pytest.mark.parametrize("text,expected", [("**Fit**: 10", 10), ("**Fit**: 8/10", 8), ("Adequação: 3", 3)])
    def test_fit_in_range(self, text, expected):
        assert parse_vaga_markdown(text)["fit"] == expected

    @pytest.mark.parametrize("text", ["**Fit**: 15", "**Fit**: 11", "**Fit**: 8.5", "**Fit**: -1"])
    def test_fit_out_of_range_or_decimal_is_absent(self, text):
        assert "fit" not in parse_vaga_markdown(text)

    def test_invalid_candidate_falls_through_to_next(self):
        text = "| Fit | 15 |\n\n**Fit**: 7"

        assert parse_vaga_markdown(text)["fit"] == 7

    def test_non_numeric_match_falls_through_to_later_match(self):
        text = "Requisitos: Python, SQL\nNota: 70"

        assert parse_vaga_markdown(text)["requisitos"] == 70

    def test_no_rescaling(self):
        assert parse_vaga_markdown("**Fit**: 8")["fit"] == 8

    @pytest.mark.parametrize(
        "raw,low,high,expected",
        [("7", 0, 10, 7), (" 3 pts", 0, 10, 3), ("+4", 0, 10, 4), ("11", 0, 10, None), ("x", 0, 10, None)],
    )
    def test_parse_bounded_int(self, raw, low, high, expected):
        assert parse_bounded_int(raw, low, high) == expected


@pytest.mark.unit
class TestClassification:
    """Tests for work mode and status classification."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Presencial | Híbrido | Remoto", WorkMode.HIBRIDO),
            ("Hibrido (3x por semana)", WorkMode.HIBRIDO),
            ("Remoto ou presencial", WorkMode.REMOTO),
            ("100% remote", WorkMode.REMOTO),
            ("PRESENCIAL", WorkMode.PRESENCIAL),
            ("On-site", WorkMode.PRESENCIAL),
            ("Flexível", None),
        ],
    )
    def test_classify_work_mode(self, raw, expected):
        assert classify_work_mode(raw) is expected

    def test_escaped_pipes_are_ignored(self):
        assert classify_work_mode("Presencial \\| Remoto") is WorkMode.REMOTO

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Contratado após processo", VagaStatus.CONTRATADO),
            ("Hired", VagaStatus.CONTRATADO),
            ("Avançado para entrevista", VagaStatus.AVANCADO),
            ("Em processo", VagaStatus.AVANCADO),
            ("In progress", VagaStatus.AVANCADO),
            ("Advanced", VagaStatus.AVANCADO),
            ("Advanced to interview", VagaStatus.AVANCADO),
            ("In process", VagaStatus.AVANCADO),
            ("Em progresso", VagaStatus.AVANCADO),
            ("Melou", VagaStatus.MELOU),
            ("Reprovado", VagaStatus.MELOU),
            ("Candidatura recusada", VagaStatus.MELOU),
            ("Pendente", VagaStatus.PENDENTE),
            ("Inscrito", VagaStatus.PENDENTE),
            ("Applied", VagaStatus.PENDENTE),
            ("???", None),
        ],
    )
    def test_classify_status(self, raw, expected):
        assert classify_status(raw) is expected

    def test_unclassifiable_modalidade_is_absent(self):
        assert "modalidade" not in parse_vaga_markdown("**Modalidade**: a combinar")


@pytest.mark.unit
class TestObservacoes:
    """Tests for the free-text observations block."""

    def test_block_runs_to_end_of_input(self):
        result = parse_vaga_markdown("**Notas**:\nLinha 1\n- item\nLinha 3")

        assert result["observacoes"] == "Linha 1\n- item\nLinha 3"

    def test_block_stops_at_heading(self):
        result = parse_vaga_markdown("Observações\nTexto livre.\n# Próxima seção\nfora")

        assert result["observacoes"] == "Texto livre."

    def test_heading_block(self):
        result = parse_vaga_markdown("# Observações\nTexto livre aqui.\n\n## Outra\nx")

        assert result["observacoes"] == "Texto livre aqui."

    def test_inline_fallback(self):
        result = parse_vaga_markdown("Observações: candidatar até sexta")

        assert result["observacoes"] == "candidatar até sexta"

    def test_empty_block_is_absent(self):
        result = parse_vaga_markdown("**Observações**:\n**Status**: Pendente")

        assert "observacoes" not in result
        assert result["status"] is VagaStatus.PENDENTE

    def test_table_value(self):
        result = parse_vaga_markdown("| Observações | Ligar na segunda |")

        assert result["observacoes"] == "Ligar na segunda"


@pytest.mark.unit
class TestExtractTableFields:
    """Tests for extract_table_fields()."""

    def test_skips_header_and_separator_rows(self):
        text = "| Campo | Detalhes |\n|:------|------:|\n| Empresa | Acme |"

        assert extract_table_fields(text) == {"empresa": "Acme"}

    def test_aliases_and_bold_names(self):
        text = (
            "| **Cidade/Estado** | Recife, PE |\n"
            "| Vaga | Analista |\n"
            "| Combinação | 6 |\n"
            "| Fase | Teste técnico |\n"
        )

        assert extract_table_fields(text) == {
            "local": "Recife, PE",
            "cargo": "Analista",
            "fit": "6",
            "etapa": "Teste técnico",
        }

    def test_escaped_pipes_stay_in_cell(self):
        text = "| **Modalidade** | Presencial \\| Híbrido |"

        assert extract_table_fields(text) == {"modalidade": "Presencial | Híbrido"}

    def test_unknown_fields_and_wrong_shapes_skipped(self):
        text = "| Salário | 5000 |\n| Empresa | Acme | extra |\n| Empresa |\nnot a row"

        assert extract_table_fields(text) == {}

    def test_first_row_wins(self):
        text = "| Empresa | Primeira |\n| Empresa | Segunda |"

        assert extract_table_fields(text)["empresa"] == "Primeira"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("**Empresa**", "empresa"),
            ("Cidade / Estado", "cidadeestado"),
            ("Localização:", "localização"),
            ("  FIT  ", "fit"),
        ],
    )
    def test_normalize_table_field_name(self, raw, expected):
        assert normalize_table_field_name(raw) == expected


@pytest.mark.unit
class TestFirstValid:
    """Tests for the first_valid() combinator."""

    def test_returns_first_accepted_value(self):
        assert first_valid(["", None, "x", "y"], lambda raw: raw or None) == "x"

    def test_returns_none_when_all_rejected(self):
        assert first_valid(["a", "b"], lambda raw: None) is None

    def test_consumes_candidates_lazily(self):
        consumed = []

        def candidates():
            for raw in ("1", "2", "3"):
                consumed.append(raw)
                yield raw

        assert first_valid(candidates(), lambda raw: int(raw) if raw == "2" else None) == 2
        assert consumed == ["1", "2"]


@pytest.mark.unit
class TestParseVagaFile:
    """Tests for parse_vaga_file()."""

    def test_reads_and_sanitizes(self, tmp_path):
        path = tmp_path / "vaga.md"
        path.write_bytes("**Empresa**: Acme\r\n\r\n\r\n\r\n**Fit**: 7\r\n".encode("utf-8"))

        assert parse_vaga_file(path) == {"empresa": "Acme", "fit": 7}

    def test_uppercase_suffix_accepted(self, tmp_path):
        path = tmp_path / "VAGA.MD"
        path.write_text("**Cargo**: Dev", encoding="utf-8")

        assert parse_vaga_file(path) == {"cargo": "Dev"}

    @pytest.mark.parametrize("name", ["vaga.txt", "vaga.markdown", "vaga"])
    def test_non_markdown_rejected(self, tmp_path, name):
        path = tmp_path / name
        path.write_text("**Empresa**: Acme", encoding="utf-8")

        with pytest.raises(ValueError, match="Not a markdown file"):
            parse_vaga_file(path)

"""Tests for layout detection and statistic extraction."""

from __future__ import annotations

import datetime

import pytest

from judstats.sheets.config import SheetLayout
from judstats.sheets.parser import (
    CategoryCount,
    ColumnarRow,
    ReferenceRow,
    Unrecognized,
    build_period,
    detect_layout,
    guess_totals,
    infer_dependency_from_template,
    parse_columnar_rows,
    parse_columnar_sheet,
    parse_detailed_document,
    parse_reference_rows,
    period_from_cell,
    resolve_column,
)

# =============================================================================
# Column resolution
# =============================================================================


class TestResolveColumn:
    """Header lookup by ordered candidate names."""

    def test_substring_match(self):
        headers = ["dependencia", "periodo", "cantidad de ingresos"]
        assert resolve_column(headers, ("ingresos",)) == 2

    def test_candidate_order_wins_over_position(self):
        """An earlier candidate is preferred even if it sits further right."""
        headers = ["recibidos", "cantidad de ingresos"]
        assert resolve_column(headers, ("cantidad de ingresos", "ingresos", "recibidos")) == 1

    def test_missing(self):
        assert resolve_column(["foo"], ("bar",)) is None


class TestDetectLayout:
    def test_id_column_means_reference(self):
        assert detect_layout(["Plantilla", "Id_Confirmado"]) is SheetLayout.REFERENCE

    def test_otherwise_consolidated(self):
        assert detect_layout(["Dependencia", "Periodo"]) is SheetLayout.CONSOLIDATED


# =============================================================================
# Consolidated sheets
# =============================================================================


class TestPeriodFromCell:
    """Accepted period cell formats."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("02/2024", "202402"),
            ("2/2024", "202402"),
            ("2024-03", "202403"),
            ("2024-3", "202403"),
            ("202410", "202410"),
            (202410, "202410"),
            (202410.0, "202410"),
            (45337, "202402"),
        ],
    )
    def test_formats(self, value, expected):
        assert period_from_cell(value) == expected

    @pytest.mark.parametrize("value", ["13/2024", "2024-00", "abc", "", None, 123])
    def test_unparseable(self, value):
        assert period_from_cell(value) is None


class TestParseColumnarRows:
    """Consolidated-layout extraction."""

    def test_scenario_a(self):
        """Received and in-progress columns map to recibidos and existentes."""
        rows = [
            ["Dependencia", "Periodo", "Cantidad de Ingresos", "En Trámite"],
            ["JUZGADO X", "02/2024", 50, 5],
        ]
        extraction = parse_columnar_sheet(rows, "Datos")

        assert len(extraction.statistics) == 1
        assert extraction.skipped == 0
        stat = extraction.statistics[0]
        assert stat.dependency_name == "JUZGADO X"
        assert stat.period == "202402"
        assert stat.count_recibidos == 50
        assert stat.count_existentes == 5
        assert stat.count_reingresados == 0
        assert stat.source_id == "Datos"
        assert stat.metadata.source_label == "Google Sheets - Datos"
        assert stat.statistic_date == datetime.date(2024, 2, 1)

    def test_resolved_column_lands_in_metadata(self):
        rows = [
            ["Dependencia", "Periodo", "Ingresos", "Resueltos"],
            ["SALA I", "2024-05", 10, 7],
        ]
        stat = parse_columnar_sheet(rows, "Datos").statistics[0]
        assert stat.metadata.resolved_count == 7
        assert stat.metadata.to_dict() == {
            "source_kind": "google_sheets",
            "source_label": "Google Sheets - Datos",
            "resolved_count": 7,
        }

    def test_incomplete_and_invalid_rows_are_unrecognized(self):
        rows = [
            ["Dependencia", "Periodo", "Cantidad de Ingresos"],
            ["", "02/2024", 5],
            ["JUZGADO X", "", 5],
            ["JUZGADO X", "02/2024", ""],
            ["JUZGADO X", "febrero", 5],
            ["JUZGADO Y", "03/2024", "12"],
        ]
        entries = parse_columnar_rows(rows)

        assert [type(e) for e in entries] == [
            Unrecognized, Unrecognized, Unrecognized, Unrecognized, ColumnarRow,
        ]
        assert entries[3].row_number == 5
        assert entries[4].received == 12

    def test_sheet_extraction_counts_skipped_rows(self):
        rows = [
            ["Dependencia", "Periodo", "Cantidad de Ingresos"],
            ["JUZGADO X", "02/2024", 5],
            ["JUZGADO Y", "", 5],
            ["JUZGADO Z", "13/2024", 5],
        ]
        extraction = parse_columnar_sheet(rows, "Datos")

        assert [s.dependency_name for s in extraction.statistics] == ["JUZGADO X"]
        assert extraction.skipped == 2

    def test_missing_essential_column_gives_nothing(self):
        rows = [["Dependencia", "Ingresos"], ["JUZGADO X", 5]]
        assert parse_columnar_rows(rows) == []

    def test_header_only(self):
        assert parse_columnar_rows([["Dependencia", "Periodo", "Ingresos"]]) == []

    def test_short_rows_default_to_zero(self):
        rows = [
            ["Dependencia", "Periodo", "Ingresos", "En Trámite"],
            ["JUZGADO X", "02/2024", 3],
        ]
        entry = parse_columnar_rows(rows)[0]
        assert entry.in_progress == 0
        assert entry.resolved is None


# =============================================================================
# Reference tables
# =============================================================================


class TestReferenceRows:
    """Reference-table extraction."""

    def test_rows_become_references(self):
        rows = [
            ["Plantilla", "Anio", "Mes", "Id_Confirmado"],
            ["Plantilla Previsional", 2024, 2, "abc123"],
            ["Plantilla Sala II", "2024", "11", "def456"],
            ["", 2024, 2, "ghi789"],
        ]
        entries = parse_reference_rows(rows)

        assert entries[0] == ReferenceRow(2, "Plantilla Previsional", "2024", "2", "abc123")
        assert entries[0].period == "202402"
        assert entries[0].dependency_name == "JUZGADO SECRETARÍA PREVISIONAL"
        assert entries[1].dependency_name == "SALA"
        assert entries[1].period == "202411"
        assert isinstance(entries[2], Unrecognized)

    def test_missing_columns(self):
        assert parse_reference_rows([["Plantilla", "Anio"], ["x", 2024]]) == []

    @pytest.mark.parametrize(
        ("template", "expected"),
        [
            ("PLANTILLA TRIBUTARIA 2024", "JUZGADO SECRETARÍA TRIBUTARIA"),
            ("Sala III Civil", "SALA"),
            ("Juzgado Federal de Jujuy " * 4, ("Juzgado Federal de Jujuy " * 4)[:50]),
        ],
    )
    def test_template_labels(self, template, expected):
        assert infer_dependency_from_template(template) == expected

    def test_build_period_pads_month(self):
        assert build_period(2024, 3) == "202403"
        assert build_period(2024.0, 3.0) == "202403"


# =============================================================================
# Detailed documents
# =============================================================================


class TestParseDetailedDocument:
    """Marker-driven extraction from individual statistics documents."""

    def test_scenario_c(self):
        rows = [
            ["I. EXPEDIENTES EXISTENTES", 1500],
            ["II. EXPEDIENTES RECIBIDOS", 300],
            ["Amparo", "", "", "", "", 20, 5],
        ]
        totals = parse_detailed_document(rows)

        assert totals.existentes == 1500
        assert totals.recibidos == 300
        assert totals.categories == {"Amparo": CategoryCount(asignados=20, reingresados=5)}
        assert totals.used_fallback is False

    def test_existing_total_in_next_row(self):
        """A split layout puts the large number one row below the marker."""
        rows = [
            ["I. EXPEDIENTES EXISTENTES"],
            ["", 12, 2400],
            ["II. EXPEDIENTES RECIBIDOS", 80],
        ]
        totals = parse_detailed_document(rows)
        assert totals.existentes == 2400
        assert totals.recibidos == 80

    def test_larger_received_in_next_row_wins(self):
        rows = [
            ["I. EXPEDIENTES EXISTENTES", 2000],
            ["II. EXPEDIENTES RECIBIDOS", 4],
            ["", 350],
        ]
        assert parse_detailed_document(rows).recibidos == 350

    def test_section_end_stops_categories(self):
        rows = [
            ["I. EXPEDIENTES EXISTENTES", 1500],
            ["II. EXPEDIENTES RECIBIDOS", 300],
            ["Amparo", "", "", "", "", 20, 5],
            ["Ejecuciones fiscales", "", "", "", "", 0, 0],
            ["Corto", "", "", "", "", 3, 1],
            ["III. EXPEDIENTES RESUELTOS", "", "", "", "", 99, 99],
            ["Previsional", "", "", "", "", 40, 2],
        ]
        totals = parse_detailed_document(rows)
        assert list(totals.categories) == ["Amparo"]

    def test_officials_and_date(self):
        rows = [
            ["ESTADISTICA AL: 31/10/2024"],
            ["Juez: Dra. María López - Secretario: Dr. Juan Pérez"],
            ["I. EXPEDIENTES EXISTENTES", 1500],
            ["II. EXPEDIENTES RECIBIDOS", 300],
        ]
        totals = parse_detailed_document(rows)
        assert totals.judge_name == "Dra. María López"
        assert totals.secretary_name == "Dr. Juan Pérez"
        assert totals.statistic_date == datetime.date(2024, 10, 31)

    def test_fallback_when_no_markers(self):
        """Without markers the first three small numbers are used."""
        rows = [
            ["Resumen", 120, "x"],
            ["", 45000, "7"],
            [3, 9],
        ]
        totals = parse_detailed_document(rows)
        assert totals.used_fallback is True
        assert (totals.recibidos, totals.existentes, totals.reingresados) == (120, 7, 3)
        assert totals.categories == {}


class TestGuessTotals:
    def test_pads_with_zeros(self):
        totals = guess_totals([["a", 5]])
        assert (totals.recibidos, totals.existentes, totals.reingresados) == (5, 0, 0)

    def test_ignores_booleans(self):
        totals = guess_totals([[True, 4, False, 6]])
        assert (totals.recibidos, totals.existentes) == (4, 6)

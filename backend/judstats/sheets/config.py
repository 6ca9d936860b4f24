"""Sheet layout constants: marker sets, candidate headers, ranges.

Two source layouts exist:
- REFERENCE ("Datos Crudos"): one row per individually published workbook,
  with Plantilla / Anio / Mes / Id_Confirmado columns.
- CONSOLIDATED ("Datos"): one row per statistic, with Dependencia / Periodo /
  Cantidad de Ingresos columns.
"""

import enum
from typing import Final


class SheetLayout(str, enum.Enum):
    REFERENCE = "reference"
    CONSOLIDATED = "consolidated"


# --- Discovery marker sets (lower-case substrings of header cells) ---

REFERENCE_MARKERS: Final[tuple[str, ...]] = ("plantilla", "anio", "mes", "id_confirmado")
# Each entry is a group of alternatives; every group must be covered
CONSOLIDATED_MARKERS: Final[tuple[tuple[str, ...], ...]] = (
    ("dependencia",),
    ("periodo",),
    ("ingreso", "recibido"),
)
REFERENCE_ID_MARKER: Final[str] = "id_confirmado"

# --- Ranges (A1 notation, title is quoted by the caller) ---

HEADER_PROBE_RANGE: Final[str] = "A1:Z2"
FULL_SHEET_RANGE: Final[str] = "A:Z"
DOCUMENT_RANGE: Final[str] = "A1:Z200"

# --- Consolidated layout: ordered candidate header names ---

DEPENDENCY_COLUMNS: Final[tuple[str, ...]] = ("dependencia", "dependenciasimple")
PERIOD_COLUMNS: Final[tuple[str, ...]] = ("periodo",)
RECEIVED_COLUMNS: Final[tuple[str, ...]] = ("cantidad de ingresos", "ingresos", "recibidos")
RESOLVED_COLUMNS: Final[tuple[str, ...]] = ("cantidad de resueltos", "resueltos")
IN_PROGRESS_COLUMNS: Final[tuple[str, ...]] = ("en trámite", "tramite", "en tramite")

# --- Reference layout columns ---

TEMPLATE_COLUMNS: Final[tuple[str, ...]] = ("plantilla",)
YEAR_COLUMNS: Final[tuple[str, ...]] = ("anio",)
MONTH_COLUMNS: Final[tuple[str, ...]] = ("mes",)
SOURCE_ID_COLUMNS: Final[tuple[str, ...]] = ("id_confirmado",)

# Template keyword -> dependency label, first match wins
TEMPLATE_LABELS: Final[tuple[tuple[str, str], ...]] = (
    ("previsional", "JUZGADO SECRETARÍA PREVISIONAL"),
    ("tributaria", "JUZGADO SECRETARÍA TRIBUTARIA"),
    ("sala", "SALA"),
)
TEMPLATE_LABEL_MAX_LEN: Final[int] = 50

# --- Detailed single-document markers (substring of the first cell) ---

EXISTING_MARKER: Final[str] = "I. EXPEDIENTES EXISTENTES"
RECEIVED_MARKER: Final[str] = "II. EXPEDIENTES RECIBIDOS"
SECTION_END_MARKER: Final[str] = "III."
JUDGE_MARKERS: Final[tuple[str, ...]] = ("juez:",)
SECRETARY_MARKERS: Final[tuple[str, ...]] = ("secretario:", "secretaria:")
DATE_MARKERS: Final[tuple[str, ...]] = ("ESTADISTICA AL:", "ESTADÍSTICA AL:")

# Existing-case totals are large; smaller numbers in that row are sub-counts
EXISTING_MIN_VALUE: Final[int] = 1000
# Category rows: first cell longer than this, counts in columns F and G
CATEGORY_MIN_LABEL_LEN: Final[int] = 5
CATEGORY_ASSIGNED_COL: Final[int] = 5
CATEGORY_REENTERED_COL: Final[int] = 6
# Numeric-guess fallback only considers 0 < n < this
FALLBACK_MAX_VALUE: Final[int] = 10000

# Excel serial dates accepted for a period cell (roughly 2009-06 .. 2173)
EXCEL_SERIAL_MIN: Final[int] = 40000
EXCEL_SERIAL_MAX: Final[int] = 100000

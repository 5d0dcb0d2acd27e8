"""Permanence model helpers (Woolf et al., 2021)."""

from collections.abc import Mapping
import csv
import math
from pathlib import Path
from types import MappingProxyType

import numpy as np

from .errors import InvalidInputError, UnsupportedScenarioError
from .params import DirectBiocharMass, MassInput, RawBiomassMass

CoefficientTable = Mapping[tuple[float, int], tuple[float, float]]

HORIZONS_YEARS: tuple[int, ...] = (0, 100, 500, 1000)
ALLOWED_SOIL_TEMPS_C: tuple[float, ...] = (5.0, 10.0, 10.9, 14.9, 15.0, 20.0, 25.0)
CO2_PER_C_MASS_RATIO = 44.0 / 12.0
HC_VALIDATED_MAX = 1.0

MODEL_NAME = "woolf_2021_linear_hc_permanence"
MODEL_CITATION = (
    "Woolf, D. et al. (2021). Greenhouse Gas Inventory Model for Biochar Additions to Soil. "
    "Environmental Science & Technology 55(21), 14795-14805."
)

PROVISIONAL_COEFFICIENT_SOURCE = "provisional"
PROVISIONAL_COEFFICIENT_ADVISORY = (
    "Built-in permanence coefficients are provisional placeholders, not the published "
    "Woolf et al. (2021) table; load a verified coefficient table before using these results."
)

# (Chc, Mhc) for Fperm = Chc + Mhc * H/C, keyed by soil temperature [C] and horizon [years].
# TODO: replace these provisional values with the published Woolf et al. (2021) coefficients;
# until then a verified table can be passed in via load_permanence_coefficients_csv.
_PROVISIONAL_ROWS: dict[float, dict[int, tuple[float, float]]] = {
    5.0: {100: (1.10, -0.40), 500: (1.00, -0.55), 1000: (0.94, -0.64)},
    10.0: {100: (1.12, -0.49), 500: (0.97, -0.66), 1000: (0.89, -0.76)},
    10.9: {100: (1.12, -0.51), 500: (0.96, -0.68), 1000: (0.88, -0.78)},
    14.9: {100: (1.13, -0.59), 500: (0.92, -0.78), 1000: (0.82, -0.89)},
    15.0: {100: (1.13, -0.60), 500: (0.92, -0.79), 1000: (0.81, -0.90)},
    20.0: {100: (1.14, -0.69), 500: (0.87, -0.88), 1000: (0.75, -1.00)},
    25.0: {100: (1.15, -0.78), 500: (0.82, -0.97), 1000: (0.68, -1.10)},
}

PROVISIONAL_PERMANENCE_COEFFICIENTS: CoefficientTable = MappingProxyType(
    {
        (temp_c, horizon): pair
        for temp_c, by_horizon in _PROVISIONAL_ROWS.items()
        for horizon, pair in by_horizon.items()
    }
)


def resolve_biochar_mass_t(mass: MassInput) -> float:
    """Return the authoritative biochar mass in tonnes."""

    if not (math.isfinite(mass.mass_t) and mass.mass_t > 0.0):
        raise InvalidInputError("mass_t must be > 0")
    if isinstance(mass, DirectBiocharMass):
        return mass.mass_t
    if isinstance(mass, RawBiomassMass):
        if not math.isfinite(mass.biochar_yield_percent):
            raise InvalidInputError("biochar_yield_percent must be a finite number")
        yield_percent = max(0.0, min(100.0, mass.biochar_yield_percent))
        return mass.mass_t * yield_percent / 100.0
    raise InvalidInputError(f"Unsupported mass input: {type(mass).__name__}")


def supported_soil_temps_c(coefficients: CoefficientTable = PROVISIONAL_PERMANENCE_COEFFICIENTS) -> tuple[float, ...]:
    return tuple(sorted({temp_c for temp_c, _ in coefficients}))


def lookup_permanence_coefficients(
    soil_temp_c: float,
    horizon_years: int,
    coefficients: CoefficientTable = PROVISIONAL_PERMANENCE_COEFFICIENTS,
) -> tuple[float, float]:
    """Return (Chc, Mhc) for an exact tabulated (temperature, horizon) pair."""

    if horizon_years not in HORIZONS_YEARS:
        raise UnsupportedScenarioError(
            f"Unsupported horizon: {horizon_years} years (expected one of {HORIZONS_YEARS})"
        )
    if soil_temp_c not in supported_soil_temps_c(coefficients):
        raise UnsupportedScenarioError(f"Unsupported soil temperature: {soil_temp_c} C")

    # Initial condition: nothing has decayed yet.
    if horizon_years == 0:
        return 1.0, 0.0

    key = (float(soil_temp_c), int(horizon_years))
    if key not in coefficients:
        raise UnsupportedScenarioError(
            f"No permanence coefficients for {soil_temp_c} C at {horizon_years} years"
        )
    return coefficients[key]


def compute_permanence_fraction(chc: float, mhc: float, hc_ratio: float) -> float:
    """Linear permanence model clamped to the physical range [0, 1]."""

    return max(0.0, min(1.0, chc + mhc * hc_ratio))


def compute_co2_sequestered_t(biochar_mass_t: float, carbon_content_percent: float, f_perm: float) -> float:
    """Convert retained organic carbon to tonnes of CO2-equivalent."""

    return biochar_mass_t * (carbon_content_percent / 100.0) * CO2_PER_C_MASS_RATIO * f_perm


def compute_permanence_curve(
    hc_values: np.ndarray,
    soil_temp_c: float,
    horizon_years: int,
    coefficients: CoefficientTable = PROVISIONAL_PERMANENCE_COEFFICIENTS,
) -> np.ndarray:
    """Evaluate clamped Fperm over an array of H/C ratios."""

    chc, mhc = lookup_permanence_coefficients(soil_temp_c, horizon_years, coefficients)
    hc = np.asarray(hc_values, dtype=float)
    return np.clip(chc + mhc * hc, 0.0, 1.0)


def classify_hc_stability(hc_ratio: float) -> str:
    """Bucket the H/C ratio into the stability classes shown in reports."""

    if hc_ratio <= 0.4:
        return "high"
    if hc_ratio <= 0.7:
        return "medium"
    return "low"


def load_permanence_coefficients_csv(path: str | Path) -> CoefficientTable:
    """Load a coefficient table with columns soil_temp_c, horizon_years, chc, mhc."""

    table: dict[tuple[float, int], tuple[float, float]] = {}
    source = Path(path)
    with source.open("r", newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        missing = {"soil_temp_c", "horizon_years", "chc", "mhc"} - set(reader.fieldnames or [])
        if missing:
            raise InvalidInputError(f"{source.name} is missing columns: {', '.join(sorted(missing))}")
        for line_no, row in enumerate(reader, start=2):
            try:
                key = (float(row["soil_temp_c"]), int(row["horizon_years"]))
                pair = (float(row["chc"]), float(row["mhc"]))
            except ValueError as exc:
                raise InvalidInputError(f"{source.name}:{line_no}: {exc}") from exc
            if key[1] not in HORIZONS_YEARS or key[1] == 0:
                raise InvalidInputError(f"{source.name}:{line_no}: horizon_years must be 100, 500 or 1000")
            if key in table:
                raise InvalidInputError(f"{source.name}:{line_no}: duplicate row for {key}")
            table[key] = pair

    if not table:
        raise InvalidInputError(f"{source.name} holds no coefficient rows")
    for temp_c in {temp_c for temp_c, _ in table}:
        for horizon in HORIZONS_YEARS[1:]:
            if (temp_c, horizon) not in table:
                raise InvalidInputError(f"{source.name}: missing {horizon}-year row for {temp_c} C")
    return MappingProxyType(table)

import numpy as np
import pytest

from bioccalc.errors import InvalidInputError, UnsupportedScenarioError
from bioccalc.model import (
    ALLOWED_SOIL_TEMPS_C,
    HORIZONS_YEARS,
    PROVISIONAL_PERMANENCE_COEFFICIENTS,
    classify_hc_stability,
    compute_co2_sequestered_t,
    compute_permanence_curve,
    compute_permanence_fraction,
    load_permanence_coefficients_csv,
    lookup_permanence_coefficients,
    resolve_biochar_mass_t,
    supported_soil_temps_c,
)
from bioccalc.params import DirectBiocharMass, RawBiomassMass


def test_resolve_direct_mass_returns_input() -> None:
    assert resolve_biochar_mass_t(DirectBiocharMass(mass_t=2.5)) == 2.5


def test_resolve_raw_biomass_applies_yield() -> None:
    assert resolve_biochar_mass_t(RawBiomassMass(mass_t=10.0, biochar_yield_percent=30.0)) == pytest.approx(3.0)


def test_resolve_raw_biomass_clamps_yield() -> None:
    assert resolve_biochar_mass_t(RawBiomassMass(mass_t=10.0, biochar_yield_percent=140.0)) == 10.0
    assert resolve_biochar_mass_t(RawBiomassMass(mass_t=10.0, biochar_yield_percent=-5.0)) == 0.0


def test_resolve_rejects_non_positive_mass() -> None:
    with pytest.raises(InvalidInputError) as exc:
        resolve_biochar_mass_t(DirectBiocharMass(mass_t=0.0))
    assert "mass_t must be > 0" in str(exc.value)


def test_resolve_rejects_nan_mass() -> None:
    with pytest.raises(InvalidInputError) as exc:
        resolve_biochar_mass_t(DirectBiocharMass(mass_t=float("nan")))
    assert "mass_t must be > 0" in str(exc.value)


def test_resolve_rejects_nan_yield() -> None:
    with pytest.raises(InvalidInputError) as exc:
        resolve_biochar_mass_t(RawBiomassMass(mass_t=10.0, biochar_yield_percent=float("nan")))
    assert "biochar_yield_percent must be a finite number" in str(exc.value)


def test_builtin_table_covers_every_allowed_temperature_and_horizon() -> None:
    assert supported_soil_temps_c() == ALLOWED_SOIL_TEMPS_C
    for temp_c in ALLOWED_SOIL_TEMPS_C:
        for horizon in HORIZONS_YEARS[1:]:
            assert (temp_c, horizon) in PROVISIONAL_PERMANENCE_COEFFICIENTS


def test_builtin_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        PROVISIONAL_PERMANENCE_COEFFICIENTS[(14.9, 100)] = (0.0, 0.0)  # type: ignore[index]


def test_lookup_year_zero_is_identity() -> None:
    assert lookup_permanence_coefficients(14.9, 0) == (1.0, 0.0)


def test_lookup_returns_tabulated_pair() -> None:
    assert lookup_permanence_coefficients(14.9, 100) == PROVISIONAL_PERMANENCE_COEFFICIENTS[(14.9, 100)]
    assert lookup_permanence_coefficients(10, 500) == PROVISIONAL_PERMANENCE_COEFFICIENTS[(10.0, 500)]


def test_lookup_rejects_unsupported_temperature() -> None:
    with pytest.raises(UnsupportedScenarioError) as exc:
        lookup_permanence_coefficients(12.0, 100)
    assert "Unsupported soil temperature: 12.0 C" in str(exc.value)


def test_lookup_rejects_unsupported_temperature_at_year_zero() -> None:
    with pytest.raises(UnsupportedScenarioError):
        lookup_permanence_coefficients(30.0, 0)


def test_lookup_rejects_unsupported_horizon() -> None:
    with pytest.raises(UnsupportedScenarioError) as exc:
        lookup_permanence_coefficients(14.9, 250)
    assert "Unsupported horizon: 250 years" in str(exc.value)


def test_permanence_fraction_is_clamped() -> None:
    assert compute_permanence_fraction(1.13, -0.59, 0.0) == 1.0
    assert compute_permanence_fraction(0.68, -1.10, 3.0) == 0.0
    assert compute_permanence_fraction(1.13, -0.59, 0.35) == pytest.approx(1.13 - 0.59 * 0.35)


def test_builtin_table_is_non_increasing_over_horizons() -> None:
    for temp_c in ALLOWED_SOIL_TEMPS_C:
        for hc_ratio in np.linspace(0.0, 3.0, 31):
            fractions = [
                compute_permanence_fraction(*lookup_permanence_coefficients(temp_c, year), float(hc_ratio))
                for year in HORIZONS_YEARS
            ]
            assert fractions == sorted(fractions, reverse=True)


def test_co2_conversion_uses_molar_mass_ratio() -> None:
    assert compute_co2_sequestered_t(1.0, 75.0, 1.0) == pytest.approx(2.75)
    assert compute_co2_sequestered_t(3.0, 0.0, 0.8) == 0.0


def test_permanence_curve_matches_scalar_model() -> None:
    hc_values = np.array([0.0, 0.35, 0.7, 1.2, 2.5])
    curve = compute_permanence_curve(hc_values, 20.0, 500)
    chc, mhc = lookup_permanence_coefficients(20.0, 500)
    expected = [compute_permanence_fraction(chc, mhc, float(hc)) for hc in hc_values]
    assert np.allclose(curve, expected)
    assert curve.min() >= 0.0
    assert curve.max() <= 1.0


def test_classify_hc_stability_boundaries() -> None:
    assert classify_hc_stability(0.2) == "high"
    assert classify_hc_stability(0.4) == "high"
    assert classify_hc_stability(0.55) == "medium"
    assert classify_hc_stability(0.7) == "medium"
    assert classify_hc_stability(0.71) == "low"


def _write_table(path, rows) -> None:
    lines = ["soil_temp_c,horizon_years,chc,mhc"] + [",".join(str(v) for v in row) for row in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def test_load_coefficients_csv_round_trips_lookup(tmp_path) -> None:
    csv_path = tmp_path / "coefficients.csv"
    _write_table(csv_path, [(12, 100, 1.0, -0.5), (12, 500, 0.9, -0.6), (12, 1000, 0.8, -0.7)])
    table = load_permanence_coefficients_csv(csv_path)
    assert lookup_permanence_coefficients(12.0, 500, table) == (0.9, -0.6)
    with pytest.raises(UnsupportedScenarioError):
        lookup_permanence_coefficients(14.9, 100, table)


def test_load_coefficients_csv_requires_all_horizons(tmp_path) -> None:
    csv_path = tmp_path / "coefficients.csv"
    _write_table(csv_path, [(12, 100, 1.0, -0.5), (12, 500, 0.9, -0.6)])
    with pytest.raises(InvalidInputError) as exc:
        load_permanence_coefficients_csv(csv_path)
    assert "missing 1000-year row for 12.0 C" in str(exc.value)


def test_load_coefficients_csv_rejects_missing_columns(tmp_path) -> None:
    csv_path = tmp_path / "coefficients.csv"
    csv_path.write_text("soil_temp_c,horizon_years,chc\n12,100,1.0\n", encoding="utf-8")
    with pytest.raises(InvalidInputError) as exc:
        load_permanence_coefficients_csv(csv_path)
    assert "missing columns: mhc" in str(exc.value)


def test_load_coefficients_csv_rejects_unknown_horizon(tmp_path) -> None:
    csv_path = tmp_path / "coefficients.csv"
    _write_table(csv_path, [(12, 200, 1.0, -0.5)])
    with pytest.raises(InvalidInputError) as exc:
        load_permanence_coefficients_csv(csv_path)
    assert "horizon_years must be 100, 500 or 1000" in str(exc.value)

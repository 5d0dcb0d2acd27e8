"""Scenario projection for BioC-Calc."""

from collections.abc import Sequence
import logging
from types import MappingProxyType

from .errors import InvalidInputError
from .model import (
    HC_VALIDATED_MAX,
    HORIZONS_YEARS,
    MODEL_CITATION,
    MODEL_NAME,
    PROVISIONAL_COEFFICIENT_ADVISORY,
    PROVISIONAL_COEFFICIENT_SOURCE,
    PROVISIONAL_PERMANENCE_COEFFICIENTS,
    CoefficientTable,
    classify_hc_stability,
    compute_co2_sequestered_t,
    compute_permanence_fraction,
    lookup_permanence_coefficients,
    resolve_biochar_mass_t,
)
from .params import SampleInputs, validate_inputs
from .results import CalculationResult, DataPoint, ScenarioResult

logger = logging.getLogger(__name__)


def project_scenario(
    biochar_mass_t: float,
    carbon_content_percent: float,
    hc_ratio: float,
    soil_temp_c: float,
    coefficients: CoefficientTable = PROVISIONAL_PERMANENCE_COEFFICIENTS,
) -> ScenarioResult:
    """Evaluate one soil-temperature regime at every fixed horizon."""

    points: list[DataPoint] = []
    for year in HORIZONS_YEARS:
        chc, mhc = lookup_permanence_coefficients(soil_temp_c, year, coefficients)
        f_perm = compute_permanence_fraction(chc, mhc, hc_ratio)
        points.append(
            DataPoint(
                year=year,
                f_perm=f_perm,
                co2_sequestered_t=compute_co2_sequestered_t(biochar_mass_t, carbon_content_percent, f_perm),
            )
        )
    logger.debug(
        "Projected %s C: f_perm=%s",
        soil_temp_c,
        [round(point.f_perm, 4) for point in points],
    )
    return ScenarioResult(temp_c=float(soil_temp_c), data_points=tuple(points))


def _build_advisories(hc_ratio: float, biochar_mass_t: float, coefficient_source: str) -> tuple[str, ...]:
    advisories: list[str] = []
    if coefficient_source == PROVISIONAL_COEFFICIENT_SOURCE:
        advisories.append(PROVISIONAL_COEFFICIENT_ADVISORY)
    if hc_ratio > HC_VALIDATED_MAX:
        advisories.append(
            f"H/C ratio {hc_ratio:g} is above the validated range (<= {HC_VALIDATED_MAX:g}); "
            "permanence estimates carry reduced confidence."
        )
    if biochar_mass_t == 0.0:
        advisories.append("Biochar yield is 0%; no biochar mass is available for sequestration.")
    return tuple(advisories)


def assemble_result(
    inputs: SampleInputs,
    biochar_mass_t: float,
    scenarios: Sequence[ScenarioResult],
    coefficient_source: str = PROVISIONAL_COEFFICIENT_SOURCE,
) -> CalculationResult:
    """Package scenarios into the immutable result after consistency checks."""

    expected = sorted(float(temp_c) for temp_c in inputs.selected_soil_temps_c)
    produced = [scenario.temp_c for scenario in scenarios]
    if sorted(produced) != expected:
        raise InvalidInputError(
            f"Scenario temperatures {produced} do not match selected temperatures {expected}"
        )
    for scenario in scenarios:
        if not scenario.data_points:
            raise InvalidInputError(f"Scenario at {scenario.temp_c} C has no data points")

    advisories = _build_advisories(inputs.hc_ratio, biochar_mass_t, coefficient_source)
    metadata = MappingProxyType(
        {
            "model": MODEL_NAME,
            "citation": MODEL_CITATION,
            "equation": "Fperm = Chc + Mhc * H/C",
            "horizons_years": HORIZONS_YEARS,
            "coefficient_source": coefficient_source,
            "hc_validated_max": HC_VALIDATED_MAX,
        }
    )
    return CalculationResult(
        inputs=inputs,
        biochar_mass_t=biochar_mass_t,
        scenarios=tuple(sorted(scenarios, key=lambda scenario: scenario.temp_c)),
        stability_class=classify_hc_stability(inputs.hc_ratio),
        low_confidence=inputs.hc_ratio > HC_VALIDATED_MAX,
        advisories=advisories,
        metadata=metadata,
    )


def compute(
    inputs: SampleInputs,
    coefficients: CoefficientTable = PROVISIONAL_PERMANENCE_COEFFICIENTS,
    coefficient_source: str | None = None,
) -> CalculationResult:
    """Run the full projection for one sample; fails the whole request on any error.

    Without an explicit coefficient_source the built-in table is labelled provisional
    and any other table "custom".
    """

    if coefficient_source is None:
        coefficient_source = (
            PROVISIONAL_COEFFICIENT_SOURCE if coefficients is PROVISIONAL_PERMANENCE_COEFFICIENTS else "custom"
        )
    validate_inputs(inputs)
    biochar_mass_t = resolve_biochar_mass_t(inputs.mass)
    if inputs.hc_ratio > HC_VALIDATED_MAX:
        logger.warning(
            "H/C ratio %.3f exceeds validated maximum %.1f; result flagged low confidence",
            inputs.hc_ratio,
            HC_VALIDATED_MAX,
        )

    scenarios = [
        project_scenario(
            biochar_mass_t=biochar_mass_t,
            carbon_content_percent=inputs.carbon_content_percent,
            hc_ratio=inputs.hc_ratio,
            soil_temp_c=soil_temp_c,
            coefficients=coefficients,
        )
        for soil_temp_c in sorted(inputs.selected_soil_temps_c)
    ]
    result = assemble_result(inputs, biochar_mass_t, scenarios, coefficient_source)
    logger.info(
        "Computed %d scenario(s) for %r: biochar_mass_t=%.4g",
        len(result.scenarios),
        inputs.sample_name,
        biochar_mass_t,
    )
    return result

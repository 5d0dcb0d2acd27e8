"""Biochar carbon sequestration projection package."""

from .errors import BiocharCalcError, InvalidInputError, UnsupportedScenarioError
from .params import (
    BiomassType,
    DirectBiocharMass,
    MassInput,
    RawBiomassMass,
    SampleInputs,
    build_mass_input,
    validate_inputs,
)
from .model import (
    ALLOWED_SOIL_TEMPS_C,
    HORIZONS_YEARS,
    PROVISIONAL_COEFFICIENT_SOURCE,
    PROVISIONAL_PERMANENCE_COEFFICIENTS,
    classify_hc_stability,
    compute_permanence_curve,
    load_permanence_coefficients_csv,
    lookup_permanence_coefficients,
    resolve_biochar_mass_t,
)
from .results import (
    CalculationResult,
    DataPoint,
    ScenarioResult,
    build_metadata_payload,
    export_csv,
    export_metadata_json,
    format_export_row,
    result_rows,
    results_to_frame,
    sequestration_efficiency,
)
from .projection import assemble_result, compute, project_scenario

__all__ = [
    "BiocharCalcError",
    "InvalidInputError",
    "UnsupportedScenarioError",
    "BiomassType",
    "DirectBiocharMass",
    "RawBiomassMass",
    "MassInput",
    "SampleInputs",
    "build_mass_input",
    "validate_inputs",
    "ALLOWED_SOIL_TEMPS_C",
    "HORIZONS_YEARS",
    "PROVISIONAL_COEFFICIENT_SOURCE",
    "PROVISIONAL_PERMANENCE_COEFFICIENTS",
    "classify_hc_stability",
    "compute_permanence_curve",
    "load_permanence_coefficients_csv",
    "lookup_permanence_coefficients",
    "resolve_biochar_mass_t",
    "CalculationResult",
    "DataPoint",
    "ScenarioResult",
    "build_metadata_payload",
    "export_csv",
    "export_metadata_json",
    "format_export_row",
    "result_rows",
    "results_to_frame",
    "sequestration_efficiency",
    "assemble_result",
    "compute",
    "project_scenario",
]

"""Input schema and validation for BioC-Calc."""

from dataclasses import dataclass
from enum import Enum
import math

from .errors import InvalidInputError

HC_INPUT_MAX = 3.0
MAX_SOIL_SCENARIOS = 3


class BiomassType(str, Enum):
    CASHEW_SHELL = "Cashew nut shell"
    COCONUT_HUSK = "Coconut husk"
    SUGARCANE_BAGASSE = "Sugarcane bagasse"
    RICE_HUSK = "Rice husk"
    WOOD_RESIDUE = "Wood / forestry residue"
    MANURE = "Animal manure"
    SEWAGE_SLUDGE = "Sewage sludge"
    OTHER = "Other"


@dataclass(frozen=True, slots=True)
class DirectBiocharMass:
    """Finished, dry biochar ready for application."""

    mass_t: float


@dataclass(frozen=True, slots=True)
class RawBiomassMass:
    """Raw feedstock mass converted through a pyrolysis yield."""

    mass_t: float
    biochar_yield_percent: float


MassInput = DirectBiocharMass | RawBiomassMass


def build_mass_input(
    mass_input_t: float,
    is_direct_biochar_input: bool,
    biochar_yield_percent: float,
) -> MassInput:
    """Map the form's mode toggle onto a mass variant. Yield is dropped in direct mode."""

    if is_direct_biochar_input:
        return DirectBiocharMass(mass_t=mass_input_t)
    return RawBiomassMass(mass_t=mass_input_t, biochar_yield_percent=biochar_yield_percent)


@dataclass(frozen=True, slots=True)
class SampleInputs:
    mass: MassInput
    carbon_content_percent: float
    hc_ratio: float
    selected_soil_temps_c: tuple[float, ...]
    pyrolysis_temp_c: float = 500.0
    biomass_type: BiomassType = BiomassType.CASHEW_SHELL
    sample_name: str = "Sample 01"

    @property
    def mass_input_t(self) -> float:
        return self.mass.mass_t

    @property
    def is_direct_biochar_input(self) -> bool:
        return isinstance(self.mass, DirectBiocharMass)


def validate_inputs(inputs: SampleInputs) -> None:
    """Validate sample inputs and raise InvalidInputError on failures.

    Soil temperatures are only checked for count and uniqueness here; membership
    in the tabulated set is decided by the coefficient lookup.
    """

    errors: list[str] = []

    if not isinstance(inputs.mass, (DirectBiocharMass, RawBiomassMass)):
        errors.append("mass must be DirectBiocharMass or RawBiomassMass")
    else:
        if not (math.isfinite(inputs.mass.mass_t) and inputs.mass.mass_t > 0.0):
            errors.append("mass_t must be > 0")
        if isinstance(inputs.mass, RawBiomassMass) and not math.isfinite(inputs.mass.biochar_yield_percent):
            errors.append("biochar_yield_percent must be a finite number")

    if not (0.0 <= inputs.carbon_content_percent <= 100.0):
        errors.append("carbon_content_percent must be between 0 and 100")
    if not (0.0 <= inputs.hc_ratio <= HC_INPUT_MAX):
        errors.append(f"hc_ratio must be between 0 and {HC_INPUT_MAX}")
    # Comparison is False for NaN, so NaN is rejected too.
    if not (inputs.pyrolysis_temp_c >= 0.0):
        errors.append("pyrolysis_temp_c must be >= 0")

    n_temps = len(inputs.selected_soil_temps_c)
    if not (1 <= n_temps <= MAX_SOIL_SCENARIOS):
        errors.append(f"selected_soil_temps_c must hold between 1 and {MAX_SOIL_SCENARIOS} temperatures")
    if len(set(inputs.selected_soil_temps_c)) != n_temps:
        errors.append("selected_soil_temps_c must not contain duplicates")

    if errors:
        raise InvalidInputError("; ".join(errors))

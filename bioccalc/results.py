"""Projection result data structures and exports."""

from collections.abc import Mapping
from dataclasses import asdict
from dataclasses import dataclass
import csv
import json
from pathlib import Path
from typing import Any

import pandas as pd

from .params import SampleInputs

EXPORT_COLUMNS = ["soil_temp_c", "year", "f_perm", "co2_sequestered_t", "co2_per_t_biochar"]


@dataclass(frozen=True, slots=True)
class DataPoint:
    year: int
    f_perm: float
    co2_sequestered_t: float


@dataclass(frozen=True, slots=True)
class ScenarioResult:
    temp_c: float
    data_points: tuple[DataPoint, ...]

    def point_at(self, year: int) -> DataPoint:
        for point in self.data_points:
            if point.year == year:
                return point
        raise KeyError(f"No data point for year {year} at {self.temp_c} C")


@dataclass(frozen=True, slots=True)
class CalculationResult:
    inputs: SampleInputs
    biochar_mass_t: float
    scenarios: tuple[ScenarioResult, ...]
    stability_class: str
    low_confidence: bool
    advisories: tuple[str, ...]
    metadata: Mapping[str, Any]


def sequestration_efficiency(result: CalculationResult) -> dict[float, dict[int, float]]:
    """Return t CO2e per t biochar for every scenario and horizon."""

    efficiency: dict[float, dict[int, float]] = {}
    for scenario in result.scenarios:
        efficiency[scenario.temp_c] = {
            point.year: (point.co2_sequestered_t / result.biochar_mass_t if result.biochar_mass_t > 0.0 else 0.0)
            for point in scenario.data_points
        }
    return efficiency


def result_rows(result: CalculationResult) -> list[dict[str, float]]:
    """Flatten a result into long-format rows in scenario then horizon order."""

    efficiency = sequestration_efficiency(result)
    rows: list[dict[str, float]] = []
    for scenario in result.scenarios:
        for point in scenario.data_points:
            rows.append(
                {
                    "soil_temp_c": scenario.temp_c,
                    "year": point.year,
                    "f_perm": point.f_perm,
                    "co2_sequestered_t": point.co2_sequestered_t,
                    "co2_per_t_biochar": efficiency[scenario.temp_c][point.year],
                }
            )
    return rows


def results_to_frame(result: CalculationResult) -> pd.DataFrame:
    return pd.DataFrame(result_rows(result), columns=EXPORT_COLUMNS)


def inputs_payload(inputs: SampleInputs) -> dict[str, Any]:
    """JSON-ready view of the inputs, tagging the mass mode explicitly."""

    return {
        "sample_name": inputs.sample_name,
        "biomass_type": inputs.biomass_type.value,
        "mass_mode": "direct_biochar" if inputs.is_direct_biochar_input else "raw_biomass",
        "mass": asdict(inputs.mass),
        "carbon_content_percent": inputs.carbon_content_percent,
        "hc_ratio": inputs.hc_ratio,
        "pyrolysis_temp_c": inputs.pyrolysis_temp_c,
        "selected_soil_temps_c": list(inputs.selected_soil_temps_c),
    }


def format_export_row(row: Mapping[str, float]) -> list[str]:
    """Render one result row as CSV cells in EXPORT_COLUMNS order."""

    return [
        f"{row['soil_temp_c']:.12g}",
        f"{int(row['year']):d}",
        f"{row['f_perm']:.12g}",
        f"{row['co2_sequestered_t']:.12g}",
        f"{row['co2_per_t_biochar']:.12g}",
    ]


def export_csv(result: CalculationResult, path: str | Path) -> None:
    """Export scenario data points to CSV with deterministic column order."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(EXPORT_COLUMNS)
        for row in result_rows(result):
            writer.writerow(format_export_row(row))


def build_metadata_payload(result: CalculationResult) -> dict[str, Any]:
    return {
        "inputs": inputs_payload(result.inputs),
        "outputs_summary": {
            "biochar_mass_t": result.biochar_mass_t,
            "n_scenarios": len(result.scenarios),
            "co2_sequestered_1000y_t": {
                f"{scenario.temp_c:g}": scenario.point_at(1000).co2_sequestered_t for scenario in result.scenarios
            },
            "stability_class": result.stability_class,
            "low_confidence": result.low_confidence,
            "advisories": list(result.advisories),
        },
        "metadata": {
            key: list(value) if isinstance(value, tuple) else value for key, value in result.metadata.items()
        },
    }


def export_metadata_json(result: CalculationResult, path: str | Path) -> None:
    """Export inputs, summary and model metadata to JSON."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", encoding="utf-8") as handle:
        json.dump(build_metadata_payload(result), handle, indent=2, sort_keys=True)

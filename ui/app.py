"""Streamlit UI for BioC-Calc."""

from __future__ import annotations

import csv
import io
import json
import logging
import os

import altair as alt
import numpy as np
import pandas as pd
import streamlit as st

from bioccalc import (
    ALLOWED_SOIL_TEMPS_C,
    HORIZONS_YEARS,
    PROVISIONAL_COEFFICIENT_SOURCE,
    PROVISIONAL_PERMANENCE_COEFFICIENTS,
    BiomassType,
    CalculationResult,
    SampleInputs,
    build_mass_input,
    build_metadata_payload,
    compute,
    compute_permanence_curve,
    format_export_row,
    load_permanence_coefficients_csv,
    result_rows,
    results_to_frame,
    sequestration_efficiency,
)
from bioccalc.model import CoefficientTable
from bioccalc.results import EXPORT_COLUMNS

COEFFICIENTS_ENV_VAR = "BIOCCALC_COEFFICIENTS_CSV"

STABILITY_TEXT = {
    "high": (
        "An H/C ratio at or below 0.4 indicates a highly condensed, aromatic biochar typical of "
        "high-temperature pyrolysis, with maximum resistance to biological degradation in soil."
    ),
    "medium": (
        "An H/C ratio between 0.4 and 0.7 indicates moderate carbonization. The material holds stable "
        "aromatic structures but keeps aliphatic fractions that mineralize faster in the first centuries."
    ),
    "low": (
        "An H/C ratio above 0.7 suggests low pyrolysis temperature or short residence time (close to "
        "torrefaction). Long-term stability is lower than for high-temperature biochars."
    ),
}

logger = logging.getLogger(__name__)


def _default_inputs() -> SampleInputs:
    return SampleInputs(
        mass=build_mass_input(1.0, is_direct_biochar_input=True, biochar_yield_percent=30.0),
        carbon_content_percent=75.0,
        hc_ratio=0.35,
        selected_soil_temps_c=(14.9,),
        pyrolysis_temp_c=500.0,
        biomass_type=BiomassType.CASHEW_SHELL,
        sample_name="Sample 01",
    )


def _load_coefficients(env: dict[str, str] | None = None) -> tuple[CoefficientTable, str]:
    """Return the coefficient table and its source label, honouring the CSV override."""

    env = dict(os.environ) if env is None else env
    csv_path = env.get(COEFFICIENTS_ENV_VAR, "").strip()
    if not csv_path:
        return PROVISIONAL_PERMANENCE_COEFFICIENTS, PROVISIONAL_COEFFICIENT_SOURCE
    logger.info("Loading permanence coefficients from %s", csv_path)
    return load_permanence_coefficients_csv(csv_path), csv_path


def _build_chart_frame(result: CalculationResult) -> pd.DataFrame:
    frame = results_to_frame(result)
    frame["scenario"] = frame["soil_temp_c"].map(lambda temp_c: f"Soil {temp_c:g} C")
    return frame


def _build_sensitivity_frame(
    soil_temp_c: float,
    coefficients: CoefficientTable,
    hc_max: float = 1.5,
    n_points: int = 61,
) -> pd.DataFrame:
    """Fperm against H/C for every non-zero horizon at one soil temperature."""

    hc_values = np.linspace(0.0, hc_max, n_points)
    rows = []
    for horizon in HORIZONS_YEARS[1:]:
        f_perm = compute_permanence_curve(hc_values, soil_temp_c, horizon, coefficients)
        rows.append(pd.DataFrame({"hc_ratio": hc_values, "f_perm": f_perm, "horizon": f"{horizon} years"}))
    return pd.concat(rows, ignore_index=True)


def _build_csv_text(result: CalculationResult) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for row in result_rows(result):
        writer.writerow(format_export_row(row))
    return buffer.getvalue()


def _build_excel_bytes(result: CalculationResult) -> bytes:
    """Build XLSX export bytes with the projection table and the sample inputs."""

    payload = build_metadata_payload(result)
    inputs_df = pd.DataFrame(
        [{"field": key, "value": json.dumps(value) if isinstance(value, (dict, list)) else value}
         for key, value in payload["inputs"].items()]
    )
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        results_to_frame(result).to_excel(writer, sheet_name="projection", index=False)
        inputs_df.to_excel(writer, sheet_name="inputs", index=False)
    return output.getvalue()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    st.set_page_config(page_title="BioC-Calc", layout="wide")
    st.title("BioC-Calc - Biochar Carbon Sequestration")
    st.caption("Long-term CO2 removal from biochar in soil using the Woolf et al. (2021) permanence model.")

    defaults = _default_inputs()

    with st.sidebar:
        st.header("Sample")
        sample_name = st.text_input("Sample ID", value=defaults.sample_name)
        biomass_options = list(BiomassType)
        biomass_type = st.selectbox(
            "Feedstock",
            options=biomass_options,
            index=biomass_options.index(defaults.biomass_type),
            format_func=lambda option: option.value,
        )

        st.header("Mass")
        mass_mode = st.radio("Input mode", options=["Biochar (ready)", "Raw biomass"], horizontal=True)
        is_direct = mass_mode == "Biochar (ready)"
        mass_input_t = st.number_input(
            "biochar_mass_t [t]" if is_direct else "biomass_mass_t [t]",
            min_value=0.0,
            value=defaults.mass_input_t,
            step=0.1,
            help="Dry mass in tonnes.",
        )
        if is_direct:
            biochar_yield_percent = 30.0
            st.caption("Final dry mass ready for application.")
        else:
            biochar_yield_percent = st.number_input(
                "biochar_yield [%]",
                min_value=0.0,
                max_value=100.0,
                value=30.0,
                step=0.1,
                help="Pyrolysis mass yield of biochar from raw biomass.",
            )
            st.caption(f"Estimated final mass: {mass_input_t * biochar_yield_percent / 100.0:.2f} t")

        st.header("Chemistry")
        carbon_content_percent = st.number_input(
            "carbon_content [%]",
            min_value=0.0,
            max_value=100.0,
            value=defaults.carbon_content_percent,
            step=0.01,
            help="Organic carbon content of the biochar, dry basis.",
        )
        hc_ratio = st.number_input(
            "hc_ratio [molar]",
            min_value=0.0,
            max_value=3.0,
            value=defaults.hc_ratio,
            step=0.01,
            help="Molar H/Corg ratio. The model is validated below 1.0.",
        )
        pyrolysis_temp_c = st.number_input(
            "pyrolysis_temp [C]",
            min_value=0.0,
            value=defaults.pyrolysis_temp_c,
            step=1.0,
            help="Reported only; stability is conditioned on H/C.",
        )

        st.header("Soil temperature")
        selected_soil_temps_c = st.multiselect(
            "Scenarios (1 to 3)",
            options=list(ALLOWED_SOIL_TEMPS_C),
            default=list(defaults.selected_soil_temps_c),
            max_selections=3,
            format_func=lambda temp_c: f"{temp_c:g} C",
        )

    candidate_inputs = SampleInputs(
        mass=build_mass_input(mass_input_t, is_direct, biochar_yield_percent),
        carbon_content_percent=carbon_content_percent,
        hc_ratio=hc_ratio,
        selected_soil_temps_c=tuple(sorted(selected_soil_temps_c)),
        pyrolysis_temp_c=pyrolysis_temp_c,
        biomass_type=biomass_type,
        sample_name=sample_name,
    )

    try:
        coefficients, coefficient_source = _load_coefficients()
        result = compute(candidate_inputs, coefficients, coefficient_source)
    except ValueError as exc:
        st.error(str(exc))
        return

    for advisory in result.advisories:
        st.warning(advisory)

    main_scenario = result.scenarios[0]
    st.markdown("### Summary")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Biochar mass [t]", f"{result.biochar_mass_t:.2f}")
    for col, year in zip((col2, col3, col4), HORIZONS_YEARS[1:]):
        col.metric(
            f"CO2e sequestered, {year} y [t]",
            f"{main_scenario.point_at(year).co2_sequestered_t:.2f}",
            help=f"Main scenario: soil at {main_scenario.temp_c:g} C.",
        )

    st.markdown("### Projection")
    chart_df = _build_chart_frame(result)
    projection_chart = (
        alt.Chart(chart_df)
        .mark_line(point=True)
        .encode(
            x=alt.X("year:Q", title="Time [years]"),
            y=alt.Y("co2_sequestered_t:Q", title="CO2e sequestered [t]"),
            color=alt.Color("scenario:N", title="Scenario"),
            tooltip=[
                alt.Tooltip("scenario:N", title="Scenario"),
                alt.Tooltip("year:Q", title="Year"),
                alt.Tooltip("co2_sequestered_t:Q", title="CO2e [t]", format=".2f"),
                alt.Tooltip("f_perm:Q", title="Fperm", format=".1%"),
            ],
        )
        .properties(height=320)
    )
    st.altair_chart(projection_chart, use_container_width=True)

    efficiency = sequestration_efficiency(result)
    table_rows = []
    for scenario in result.scenarios:
        row = {"Soil temperature [C]": f"{scenario.temp_c:g}"}
        for year in HORIZONS_YEARS[1:]:
            row[f"Fperm {year} y"] = f"{scenario.point_at(year).f_perm * 100.0:.1f}%"
            row[f"t CO2e / t biochar {year} y"] = f"{efficiency[scenario.temp_c][year]:.2f}"
        table_rows.append(row)
    st.dataframe(pd.DataFrame(table_rows), hide_index=True, use_container_width=True)

    st.markdown("### Stability")
    st.markdown(f"**{result.stability_class.capitalize()}** - {STABILITY_TEXT[result.stability_class]}")
    st.caption(
        f"Feedstock: {candidate_inputs.biomass_type.value}; carbon content {candidate_inputs.carbon_content_percent:g}%; "
        f"H/C {candidate_inputs.hc_ratio:g}; pyrolysis at {candidate_inputs.pyrolysis_temp_c:g} C."
    )
    sensitivity_df = _build_sensitivity_frame(main_scenario.temp_c, coefficients)
    sensitivity_chart = (
        alt.Chart(sensitivity_df)
        .mark_line()
        .encode(
            x=alt.X("hc_ratio:Q", title="H/C [molar]"),
            y=alt.Y("f_perm:Q", title="Fperm", scale=alt.Scale(domain=[0, 1])),
            color=alt.Color("horizon:N", title="Horizon"),
        )
        .properties(height=260)
    )
    marker = alt.Chart(pd.DataFrame({"hc_ratio": [candidate_inputs.hc_ratio]})).mark_rule(strokeDash=[4, 4]).encode(
        x="hc_ratio:Q"
    )
    st.altair_chart(sensitivity_chart + marker, use_container_width=True)
    st.caption(f"Fperm = Chc + Mhc x H/C at {main_scenario.temp_c:g} C, clamped to [0, 1].")

    st.markdown("### Export")
    dcol1, dcol2, dcol3 = st.columns(3)
    dcol1.download_button(
        "Download CSV",
        data=_build_csv_text(result),
        file_name=f"{candidate_inputs.sample_name}_projection.csv",
        mime="text/csv",
    )
    dcol2.download_button(
        "Download Excel",
        data=_build_excel_bytes(result),
        file_name=f"{candidate_inputs.sample_name}_projection.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    dcol3.download_button(
        "Download metadata JSON",
        data=json.dumps(build_metadata_payload(result), indent=2, sort_keys=True),
        file_name=f"{candidate_inputs.sample_name}_metadata.json",
        mime="application/json",
    )
    st.caption(result.metadata["citation"])


if __name__ == "__main__":
    main()

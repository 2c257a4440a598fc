import streamlit as st
import pandas as pd

from watchsim.archetypes import ARCHETYPES
from watchsim.config import MAX_SPEED, MIN_SPEED, SimConfig
from watchsim.export import bundle_run_to_zip, default_export_filename, hourly_distribution_frame
from watchsim.log import setup_logging
from watchsim.simulator import run_headless
from watchsim.validate import validate_config

setup_logging()

st.set_page_config(page_title="Watch Simulator", layout="wide")
st.title("Watch Simulator: accelerated wearable step counter")

st.markdown(
    """Simulate a wrist-worn step counter at up to 1000x real time:
- Device clock with per-second and per-minute interrupts
- Daily sleep/wake schedule and walk/run blocks per archetype
- Device power states (SLEEP / IDLE / BACKGROUND / ACTIVE)
- Per-minute step export
"""
)

with st.sidebar:
    st.header("Profile")
    archetype_id = st.selectbox(
        "Archetype", list(ARCHETYPES), format_func=lambda k: ARCHETYPES[k].name
    )
    st.caption(ARCHETYPES[archetype_id].description)

    st.header("Run")
    start_date = st.date_input("Start date", value=pd.Timestamp("2024-01-01").date())
    days = st.number_input("Days", 1, 30, 7)
    speed = st.slider("Speed (x real time)", MIN_SPEED, MAX_SPEED, 1000)
    st.caption("Runs here are not paced to wall time; speed is recorded in the export name.")
    seed = st.number_input("Seed", 0, 10_000_000, 42)
    modulate = st.checkbox("Scale steps by device state", value=False)

cfg = SimConfig(
    start_iso=pd.Timestamp(start_date).isoformat(),
    archetype_id=archetype_id,
    speed=int(speed),
    duration_days=int(days),
    seed=int(seed),
    modulate_by_state=bool(modulate),
)

for issue in validate_config(cfg):
    st.warning(issue)

st.write("### Simulate")
run = st.button("Run simulation", type="primary")

if run:
    with st.spinner("Simulating..."):
        result = run_headless(cfg)

    st.success(f"Simulated {cfg.duration_days} days ({result.progress:.0f}%), ending {result.end_time}.")

    c1, c2, c3 = st.columns(3)
    c1.metric("Total steps", f"{result.total_steps:,}")
    c2.metric("Average steps/day", f"{result.total_steps // max(1, cfg.duration_days):,}")
    c3.metric("Final state", result.final_state)

    hourly = hourly_distribution_frame(result.hourly.to_dict("records"))
    minutes = result.minute_log.to_frame()
    transitions = pd.DataFrame(
        [
            {"timestamp": t.timestamp, "from": t.from_state.value, "to": t.to_state.value, "reason": t.reason}
            for t in result.transitions
        ],
        columns=["timestamp", "from", "to", "reason"],
    )
    distribution = pd.DataFrame(
        {"state": list(result.state_distribution), "percent": list(result.state_distribution.values())}
    )

    c1, c2 = st.columns(2)
    with c1:
        st.write("Steps by hour of day")
        st.bar_chart(hourly.set_index("hour")["steps"])
        st.write("Daily totals")
        st.dataframe(minutes.set_index("timestamp")["steps"].resample("D").sum())
    with c2:
        st.write("State transitions (most recent)")
        st.dataframe(transitions)
        st.write("Time in state (%)")
        st.dataframe(distribution)

    st.write("Per-minute steps sample")
    st.dataframe(minutes[minutes["steps"] > 0].head(25))

    files = {
        "minute_steps.csv": minutes,
        "hourly.csv": hourly,
        "transitions.csv": transitions,
    }
    meta = {
        "archetype": cfg.archetype_id,
        "start_iso": cfg.start_iso,
        "days": cfg.duration_days,
        "speed": cfg.speed,
        "seed": cfg.seed,
        "modulate_by_state": cfg.modulate_by_state,
        "total_steps": result.total_steps,
        "completed": result.completed,
    }

    file_name = default_export_filename(cfg.speed)
    st.download_button(
        "Download minute steps",
        data=result.minute_log.to_text_lines(),
        file_name=file_name,
        mime="text/csv",
    )
    st.download_button(
        "Download run ZIP",
        data=bundle_run_to_zip(file_name[:-4], files, meta, minute_log=result.minute_log),
        file_name=file_name.replace(".csv", ".zip"),
        mime="application/zip",
    )

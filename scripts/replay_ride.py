from pathlib import Path
from warnings import warn

import matplotlib as mpl
import numpy as np
from loguru import logger

from ridescope import ArraySampleSource, ChartConfig, MatplotlibRenderer, RideStats
from ridescope.telemetry import configure_logging, create_ride_chart
from ridescope.telemetry.board import (
    BATTERY_LEVEL,
    CONTROLLER_TEMP,
    FOOT_PAD_1,
    FOOT_PAD_2,
    MOTOR_TEMP,
    RIDER_PRESENT,
    RPM,
    RPM_TO_MPH,
)

# --- User configuration dictionary ---
CONFIG = {
    "LOG_LEVEL": "INFO",  # logging level: DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL
    "RIDE_DURATION_S": 40 * 60,  # length of the synthetic ride (seconds)
    "SAMPLE_INTERVAL_S": 0.5,  # time between samples (seconds)
    "RIDE_START": 1_700_000_000.0,  # Unix time of the first sample
    "SEED": 7,
    "CHART_WIDTH_PX": 800,
    "CHART_HEIGHT_PX": 300,
    "OUTPUT_PATH": "./replay/",
    # Chart settings, see ChartConfig
    "MIN_SPACING_PX": 2.0,
    "NUM_AXIS_LABELS": 5,
    "SMOOTH_PAN": False,
    # Gestures replayed after the overview: (kind, value, anchor_x)
    "GESTURES": [
        ("zoom", 4.0, 400.0),
        ("pan", 150.0, None),
        ("zoom", 3.0, 200.0),
        ("pan", -600.0, None),
    ],
}


def synthesize_ride(duration_s: float, interval_s: float, start: float, seed: int) -> ArraySampleSource:
    """
    Generate a plausible ride: speed bursts, draining battery, warming motor,
    and a couple of dismounts at speed.
    """
    rng = np.random.default_rng(seed)
    t = start + np.arange(0.0, duration_s, interval_s)
    n = len(t)
    phase = np.linspace(0, 1, n)

    mph = 12 + 6 * np.sin(2 * np.pi * 9 * phase) + rng.normal(0, 1.0, n)
    mph = np.clip(mph, 0, None)
    rpm = mph / RPM_TO_MPH

    battery = np.clip(100 - 70 * phase + rng.normal(0, 0.3, n), 0, 100)
    controller_temp = 70 + 25 * phase + rng.normal(0, 0.5, n)
    motor_temp = 75 + 35 * phase + rng.normal(0, 0.5, n)

    pad_1 = np.ones(n, dtype=bool)
    pad_2 = np.ones(n, dtype=bool)
    for frac in (0.3, 0.72):
        idx = int(frac * n)
        pad_1[idx : idx + 8] = False
        pad_2[idx : idx + 8] = False

    return ArraySampleSource(
        t,
        {
            RPM: rpm,
            BATTERY_LEVEL: battery,
            CONTROLLER_TEMP: controller_temp,
            MOTOR_TEMP: motor_temp,
            FOOT_PAD_1: pad_1,
            FOOT_PAD_2: pad_2,
            RIDER_PRESENT: pad_1 | pad_2,
        },
    )


def main() -> None:
    """
    Replay a synthetic ride through the chart and save one image per step.
    """
    configure_logging(CONFIG.get("LOG_LEVEL", "INFO"))

    output_path = Path(CONFIG["OUTPUT_PATH"])
    output_path.mkdir(parents=True, exist_ok=True)

    source = synthesize_ride(
        CONFIG["RIDE_DURATION_S"],
        CONFIG["SAMPLE_INTERVAL_S"],
        CONFIG["RIDE_START"],
        CONFIG["SEED"],
    )
    stats = RideStats.from_source(source)

    width, height = CONFIG["CHART_WIDTH_PX"], CONFIG["CHART_HEIGHT_PX"]
    dpi = 100
    renderer = MatplotlibRenderer(figsize=(width / dpi, height / dpi), dpi=dpi)
    renderer.fig.subplots_adjust(left=0, right=1, bottom=0, top=1)

    chart = create_ride_chart(
        source, stats=stats, config=ChartConfig.from_dict(CONFIG), renderer=renderer
    )
    chart.resize(width, height)
    renderer.save(output_path / "00_overview.png")

    for step, (kind, value, anchor_x) in enumerate(CONFIG["GESTURES"], start=1):
        if kind == "zoom":
            chart.zoom_begin()
            chart.zoom_changed(value, anchor_x)
            chart.zoom_end()
        elif kind == "pan":
            chart.pan_begin()
            chart.pan_changed(value)
            chart.pan_end()
        else:
            logger.warning(f"Unknown gesture '{kind}', skipping")
            continue
        window = chart.state.window
        renderer.save(output_path / f"{step:02d}_{kind}_{window.start:.3f}-{window.end:.3f}.png")

    chart.set_portrait_mode(True)
    renderer.save(output_path / "99_portrait.png")
    renderer.close()
    logger.success(f"Replay images written to {output_path}")


if __name__ == "__main__":
    for optn, val in {
        "backend": "Agg",
        "font.family": ("sans-serif",),
        "font.size": 9,
    }.items():
        if isinstance(val, (list, tuple)):
            val = tuple(val)
        try:
            mpl.rcParams[optn] = val
        except KeyError:
            warn(f"mpl rcparams key '{optn}' not recognised as a valid rc parameter.")
    main()

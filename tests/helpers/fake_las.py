"""Generate LAS 2.0 text for reader, processor and orchestrator tests."""

import numpy as np

CURVE_DEFS = {
    "GR": ("GAPI", "GAMMA RAY"),
    "NPHI": ("V/V", "NEUTRON POROSITY"),
    "RHOB": ("G/CC", "BULK DENSITY"),
    "ILD": ("OHMM", "DEEP RESISTIVITY"),
    "CALI": ("IN", "CALIPER"),
}


def make_las_text(n=60, start=1000.0, step=0.5, curves=("GR", "NPHI", "RHOB"),
                  null_rows=(), spike_row=None, well="TEST WELL 1", seed=1):
    """LAS 2.0 text with ``n`` rows of smooth synthetic logs.

    ``null_rows`` get the -999.25 sentinel in every curve; ``spike_row``
    gets a GR spike.
    """
    rng = np.random.RandomState(seed)
    depth = start + step * np.arange(n)
    shale = 0.5 + 0.4 * np.sin(np.linspace(0, 4 * np.pi, n))
    generators = {
        "GR": 30 + 90 * shale + rng.normal(0, 2, n),
        "NPHI": 0.10 + 0.20 * shale + rng.normal(0, 0.005, n),
        "RHOB": 2.60 - 0.25 * shale + rng.normal(0, 0.01, n),
        "ILD": 10 ** (1.5 - shale) + rng.normal(0, 0.1, n),
        "CALI": 8.5 + rng.normal(0, 0.05, n),
    }
    columns = {c: generators[c].copy() for c in curves}
    if spike_row is not None and "GR" in columns:
        columns["GR"][spike_row] = 900.0

    lines = [
        "~Version Information",
        " VERS.                 2.0 : CWLS LOG ASCII STANDARD - VERSION 2.0",
        " WRAP.                  NO : ONE LINE PER DEPTH STEP",
        "~Well Information",
        f" STRT.M           {depth[0]:.4f} : START DEPTH",
        f" STOP.M           {depth[-1]:.4f} : STOP DEPTH",
        f" STEP.M           {step:.4f} : STEP",
        " NULL.            -999.25 : NULL VALUE",
        " COMP.     ACME OIL CO : COMPANY",
        f" WELL.     {well} : WELL",
        " FLD.      WILDCAT : FIELD",
        " LOC.      SEC 12 T3N R4W : LOCATION",
        "~Curve Information",
        " DEPT.M                 : DEPTH",
    ]
    for c in curves:
        unit, descr = CURVE_DEFS[c]
        lines.append(f" {c}.{unit}                 : {descr}")
    lines.append("~A")
    for i in range(n):
        values = [
            -999.25 if i in null_rows else float(columns[c][i]) for c in curves
        ]
        lines.append(" ".join([f"{depth[i]:.4f}"] + [f"{v:.5f}" for v in values]))
    return "\n".join(lines) + "\n"

"""Formal pipeline invariants.

This file documents what each stage MUST produce. Use it as a reviewer
anchor; the enforcing checks live in contracts.dataset and contracts.quality.
"""

PIPELINE_INVARIANTS = {
    "parse": [
        "Dataset frames have a 'depth' column followed by one column per curve",
        "Curve mnemonics are unique within a file",
        "Null sentinel values are converted to NaN",
        "Original snapshot is a separate copy from the processed snapshot",
    ],

    "stage": [
        "Output frame has the same shape and columns as the input frame",
        "Depth column is unchanged",
        "Null positions of the input remain null (filters never invent data)",
        "Original snapshot is untouched",
    ],

    "quality": [
        "Scores are finite and within 0..100",
        "total_points == rows * curves",
        "null_points <= total_points",
    ],

    "certificate": [
        "Signature is computed over the canonical sorted-key serialization",
        "Audit trail is a copy of the processing history at issue time",
    ],
}

# Which stages are optional vs required
STAGE_REQUIREMENTS = {
    "file_parsing": "REQUIRED",
    "quality_assessment": "REQUIRED",
    "mnemonic_standardization": "OPTIONAL",
    "denoising": "OPTIONAL",
    "despiking": "OPTIONAL",
    "baseline_correction": "OPTIONAL",
    "final_quality_assessment": "REQUIRED",
}

"""lasqc User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the pipeline behavior. Advanced settings are the defaults in
lasqc.schemas.param.

Usage:
    python scripts/run_las_pipeline.py scripts/user_config.py
    python scripts/run_las_pipeline.py scripts/user_config.py --workers 4
"""

CONFIG = {
    # ========================================================================
    # INPUT / OUTPUT
    # ========================================================================
    "INPUT_DIR": "./data/las",     # Directory scanned for *.las files
    "OUTPUT_DIR": "./output",      # reports/, certificates/, processed/, logs/
    "WORKERS": 2,                  # Processor threads

    # ========================================================================
    # DENOISING
    # ========================================================================
    "DENOISE_METHOD": "savitzky_golay",  # savitzky_golay, wavelet, moving_average, gaussian
    "WINDOW_SIZE": 11,             # Odd, 3-21
    "POLYNOMIAL_ORDER": 3,         # Savitzky-Golay only, below WINDOW_SIZE
    "STRENGTH": 0.7,               # 0 keeps the original, 1 is fully filtered

    # ========================================================================
    # DESPIKING
    # ========================================================================
    "DESPIKE_METHOD": "hampel",    # hampel, modified_zscore, iqr, manual
    "SPIKE_THRESHOLD": 2.5,
    "SPIKE_WINDOW": 5,             # Odd
    "REPLACEMENT_METHOD": "median",  # median, pchip, linear, null

    # ========================================================================
    # BASELINE / MNEMONICS
    # ========================================================================
    "BASELINE_CORRECTION": False,
    "MNEMONIC_STANDARD": "api",    # api, cwls, custom
    "CURVE_FAILURE_POLICY": "skip_curve",  # skip_curve, fail_fast

    # ========================================================================
    # GEOLOGY
    # ========================================================================
    "GEOLOGICAL_ANALYSIS": True,   # Infer lithology during QC
    "ADAPT_TO_FORMATION": False,   # Formation Hampel threshold / SG window

    # Set to sign certificates with HMAC-SHA256 instead of the rolling hash
    "SIGNING_KEY": None,
}

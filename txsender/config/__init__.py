"""
Configuration package for the smart transaction sender.
Environment-driven defaults and network constants.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# RPC configuration
SOLANA_RPC_URL = os.getenv("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com")

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Polling configuration
DEFAULT_POLLING_INTERVAL_SECONDS = float(os.getenv("TX_POLLING_INTERVAL", "2"))  # seconds

# Timeout configuration
DEFAULT_TRANSACTION_TIMEOUT_SECONDS = float(os.getenv("TX_TIMEOUT", "60"))  # seconds
JITO_REQUEST_TIMEOUT_SECONDS = float(os.getenv("JITO_REQUEST_TIMEOUT", "10"))  # seconds

# Compute budget configuration
MAX_COMPUTE_UNIT_LIMIT = 1_400_000  # Network hard ceiling per transaction
DEFAULT_COMPUTE_UNIT_MARGIN_MULTIPLIER = 1.15
MIN_COMPUTE_UNIT_MARGIN_MULTIPLIER = 1.0
MAX_COMPUTE_UNIT_MARGIN_MULTIPLIER = 10.0
SIMULATION_MAX_ATTEMPTS = 5

# Priority fee estimation
FEE_CHUNK_SIZE = 150  # Slots per percentile window
FEE_MAX_CHUNKS = 3
FEE_PERCENTILES = (70, 75, 80, 85, 95)

# Jito configuration
MIN_JITO_TIP_LAMPORTS = 1000
JITO_DEFAULT_REGION = "Default"

# Make everything available at package level
__all__ = [
    'SOLANA_RPC_URL',
    'LOG_LEVEL',
    'DEFAULT_POLLING_INTERVAL_SECONDS',
    'DEFAULT_TRANSACTION_TIMEOUT_SECONDS',
    'JITO_REQUEST_TIMEOUT_SECONDS',
    'MAX_COMPUTE_UNIT_LIMIT',
    'DEFAULT_COMPUTE_UNIT_MARGIN_MULTIPLIER',
    'MIN_COMPUTE_UNIT_MARGIN_MULTIPLIER',
    'MAX_COMPUTE_UNIT_MARGIN_MULTIPLIER',
    'SIMULATION_MAX_ATTEMPTS',
    'FEE_CHUNK_SIZE',
    'FEE_MAX_CHUNKS',
    'FEE_PERCENTILES',
    'MIN_JITO_TIP_LAMPORTS',
    'JITO_DEFAULT_REGION',
]

"""
Model card generation.

Renders the hub index README, one README per quantized variant, and the shared
MODELFILE from the lookup tables in a JobConfig.
"""
